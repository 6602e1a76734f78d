"""
Mare Installer Configuration - TOML-based installer settings.

Example usage:
    from mare_installer.config import load_settings

    settings = load_settings(Path("mare-installer.toml"))
    print(settings.plugin_root)
"""

from mare_installer.config.settings import (
    Settings,
    SettingsError,
    default_dalamud_dir,
    load_settings,
    settings_from_dict,
    write_settings_template,
)

__all__ = [
    "Settings",
    "SettingsError",
    "default_dalamud_dir",
    "load_settings",
    "settings_from_dict",
    "write_settings_template",
]
