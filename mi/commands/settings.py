"""
mi settings template command (--write-settings).
"""

from pathlib import Path
from typing import Any

from mare_installer.config import SettingsError, write_settings_template


def write_settings_command(args: Any) -> int:
    """
    Write a commented settings file with the default values.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    from mi.cli import MIError

    path = Path(args.write_settings)
    if path.exists():
        raise MIError(f"Refusing to overwrite existing file: {path}")

    try:
        write_settings_template(path)
    except SettingsError as e:
        raise MIError(str(e)) from e

    print(f"Wrote settings template to {path}")
    return 0
