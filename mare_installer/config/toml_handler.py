"""
TOML File I/O Handler.

This module provides TOML parsing and writing for installer settings.

Key features:
- Parse TOML files using tomllib (Python 3.11+)
- Write TOML files using tomlkit (preserves comments and formatting)
- Generate a commented settings template
"""

import tomllib
from pathlib import Path
from typing import Any

import tomlkit


class SettingsFileError(Exception):
    """Raised when a settings file cannot be read, parsed or written."""

    pass


def read_toml(file_path: Path) -> dict[str, Any]:
    """
    Load a settings file.

    Raises:
        SettingsFileError: If the file is missing, unreadable or not valid TOML
    """
    try:
        with open(file_path, "rb") as f:
            return tomllib.load(f)
    except (tomllib.TOMLDecodeError, UnicodeDecodeError) as e:
        raise SettingsFileError(f"Failed to parse settings file {file_path} ({e})") from e
    except OSError as e:
        raise SettingsFileError(f"Cannot open settings file {file_path}: {e.strerror or e}") from e


def write_toml(file_path: Path, content: str | dict[str, Any]) -> None:
    """
    Write a TOML document or rendered TOML text to a file.

    Args:
        file_path: Path to the TOML file
        content: Mapping to serialize, or already rendered TOML text

    Raises:
        SettingsFileError: If file cannot be written
    """
    try:
        file_path.parent.mkdir(parents=True, exist_ok=True)

        with open(file_path, "w", encoding="utf-8") as f:
            if isinstance(content, str):
                f.write(content)
            else:
                tomlkit.dump(content, f)
    except OSError as e:
        raise SettingsFileError(f"Cannot write settings file {file_path}: {e}") from e


def generate_settings_toml(
    values: dict[str, Any],
    descriptions: dict[str, str],
    plugins: dict[str, str],
) -> str:
    """
    Generate settings TOML with a descriptive comment above every key.

    Args:
        values: Top-level settings (key -> value); None values are commented out
        descriptions: Comment text per top-level key
        plugins: Plugin name -> repository URL, written as the [plugins] table

    Returns:
        TOML string with comments
    """
    doc = tomlkit.document()
    doc.add(tomlkit.comment("Mare installer settings"))
    doc.add(tomlkit.nl())

    for key, value in values.items():
        if key in descriptions:
            doc.add(tomlkit.comment(descriptions[key]))
        if value is None:
            # TOML has no null; leave the key as a hint
            doc.add(tomlkit.comment(f'{key} = ""'))
        else:
            doc.add(key, value)
        doc.add(tomlkit.nl())

    plugin_table = tomlkit.table()
    plugin_table.add(tomlkit.comment("Plugin internal name = repository URL"))
    for name, url in plugins.items():
        plugin_table.add(name, url)
    doc.add("plugins", plugin_table)

    return tomlkit.dumps(doc)
