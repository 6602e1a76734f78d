"""
Mare Installer - One-shot installer for Mare Synchronos and its companion plugins.

This package patches the Dalamud configuration to register third-party plugin
repositories, then downloads and extracts every plugin in the configured set.
"""

__version__ = "0.1.0"

from mare_installer.errors import ErrorKind, InstallerError

__all__ = [
    "__version__",
    "ErrorKind",
    "InstallerError",
]
