"""
Installer Settings.

This module provides the settings that drive a run: where Dalamud lives,
which plugins to install, and which repositories they come from.

Key features:
- Defaults matching the stock Mare Synchronos plugin set
- TOML loading with type validation
- Derived repository lists (all / custom)
- Commented settings template generation
"""

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

from mare_installer.config.toml_handler import (
    SettingsFileError,
    generate_settings_toml,
    read_toml,
    write_toml,
)

DALAMUD_FOLDER_NAME = "XIVLauncher"
DALAMUD_CONFIG_FILE = "dalamudConfig.json"
INSTALLED_PLUGINS_FOLDER = "installedPlugins"

OFFICIAL_REPO_URL = "https://kamori.goats.dev/Plugin/PluginMaster"
SEA_OF_STARS_REPO_URL = "https://raw.githubusercontent.com/Ottermandias/SeaOfStars/main/repo.json"
REPO_TYPE_TAG = "Dalamud.Configuration.ThirdPartyRepoSettings, Dalamud"
BUG_REPORT_URL = "https://github.com/PrincessRTFM/MareInstaller/issues/new/choose"
REQUEST_TIMEOUT = 30.0

DEFAULT_PLUGINS: dict[str, str] = {
    "MareSynchronos": SEA_OF_STARS_REPO_URL,
    "Penumbra": SEA_OF_STARS_REPO_URL,
    "Glamourer": SEA_OF_STARS_REPO_URL,
    "SimpleHeels": SEA_OF_STARS_REPO_URL,
    "CustomizePlus": SEA_OF_STARS_REPO_URL,
    "PalettePlus": SEA_OF_STARS_REPO_URL,
    "Honorific": OFFICIAL_REPO_URL,
}

DESCRIPTIONS = {
    "dalamud_dir": "XIVLauncher data directory (holds dalamudConfig.json and installedPlugins)",
    "official_repo_url": "Main Dalamud repository; never injected into the third-party list",
    "repo_type_tag": "$type written on new repository entries when the list is empty",
    "timeout": "HTTP request timeout in seconds",
    "simulate": "Allow stale HTTP caches (for dry runs against a copied config)",
    "bug_report_url": "Shown when installation fails",
}


class SettingsError(Exception):
    """Raised when settings cannot be loaded or are invalid."""

    pass


def default_dalamud_dir() -> Path:
    """Resolve the XIVLauncher directory for the current user."""
    appdata = os.environ.get("APPDATA")
    if appdata:
        return Path(appdata) / DALAMUD_FOLDER_NAME
    return Path.home() / ".xlcore"


def _distinct(urls: list[str]) -> list[str]:
    """Drop case-insensitive duplicates, keeping the first spelling."""
    seen: set[str] = set()
    result = []
    for url in urls:
        key = url.casefold()
        if key not in seen:
            seen.add(key)
            result.append(url)
    return result


@dataclass
class Settings:
    """
    Installer settings.

    Attributes:
        dalamud_dir: XIVLauncher data directory
        official_repo_url: Main Dalamud repository URL
        plugins: Plugin internal name -> repository URL, in install order
        repo_type_tag: Type discriminator for synthesized repository entries
        timeout: HTTP request timeout in seconds
        simulate: Accept stale HTTP caches
        bug_report_url: Where users should report failures
    """

    dalamud_dir: Path = field(default_factory=default_dalamud_dir)
    official_repo_url: str = OFFICIAL_REPO_URL
    plugins: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_PLUGINS))
    repo_type_tag: str = REPO_TYPE_TAG
    timeout: float = REQUEST_TIMEOUT
    simulate: bool = False
    bug_report_url: str = BUG_REPORT_URL

    @property
    def config_file(self) -> Path:
        return self.dalamud_dir / DALAMUD_CONFIG_FILE

    @property
    def plugin_root(self) -> Path:
        return self.dalamud_dir / INSTALLED_PLUGINS_FOLDER

    @property
    def all_repositories(self) -> list[str]:
        """Official repository first, then every plugin repository once."""
        return _distinct([self.official_repo_url, *self.plugins.values()])

    @property
    def custom_repositories(self) -> list[str]:
        """Repositories that must be registered in the third-party list."""
        official = self.official_repo_url.casefold()
        return [url for url in self.all_repositories if url.casefold() != official]


_FIELD_TYPES: dict[str, tuple[type, ...]] = {
    "dalamud_dir": (str,),
    "official_repo_url": (str,),
    "plugins": (dict,),
    "repo_type_tag": (str,),
    "timeout": (int, float),
    "simulate": (bool,),
    "bug_report_url": (str,),
}


def settings_from_dict(data: dict[str, Any]) -> Settings:
    """
    Build Settings from parsed TOML data.

    Args:
        data: Parsed TOML document

    Returns:
        Settings instance (missing keys take their defaults)

    Raises:
        SettingsError: If a key is unknown or has the wrong type
    """
    kwargs: dict[str, Any] = {}

    for key, value in data.items():
        if key not in _FIELD_TYPES:
            raise SettingsError(f"Unknown setting: {key}")

        expected = _FIELD_TYPES[key]
        # bool is an int subclass; keep it out of numeric fields
        if not isinstance(value, expected) or (
            isinstance(value, bool) and bool not in expected
        ):
            names = " or ".join(t.__name__ for t in expected)
            raise SettingsError(
                f"Setting '{key}' must be {names}, got {type(value).__name__}"
            )

        if key == "plugins":
            for name, url in value.items():
                if not isinstance(url, str) or not url:
                    raise SettingsError(
                        f"Repository URL for plugin '{name}' must be a non-empty string"
                    )
            value = dict(value)
        elif key == "dalamud_dir":
            value = Path(value).expanduser()
        elif key == "timeout":
            if value <= 0:
                raise SettingsError("Setting 'timeout' must be positive")
            value = float(value)

        kwargs[key] = value

    return Settings(**kwargs)


def load_settings(file_path: Path | None = None) -> Settings:
    """
    Load settings from a TOML file.

    Args:
        file_path: Settings file; None or a missing file yields defaults

    Returns:
        Settings instance

    Raises:
        SettingsError: If the file cannot be parsed or is invalid
    """
    if file_path is None or not file_path.exists():
        return Settings()

    try:
        data = read_toml(file_path)
    except SettingsFileError as e:
        raise SettingsError(str(e)) from e

    return settings_from_dict(data)


def write_settings_template(file_path: Path, settings: Settings | None = None) -> None:
    """
    Write a commented settings file.

    Args:
        file_path: Destination path
        settings: Values to write (defaults if None)

    Raises:
        SettingsError: If the file cannot be written
    """
    settings = settings or Settings()
    values: dict[str, Any] = {}

    for f in fields(settings):
        if f.name == "plugins":
            continue
        value = getattr(settings, f.name)
        values[f.name] = str(value) if isinstance(value, Path) else value

    content = generate_settings_toml(values, DESCRIPTIONS, settings.plugins)

    try:
        write_toml(file_path, content)
    except SettingsFileError as e:
        raise SettingsError(str(e)) from e
