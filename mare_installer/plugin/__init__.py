"""
Plugin download and installation.

This module handles:
- HTTP downloads
- Repository manifest caching
- Safe archive extraction into versioned directories
"""

from mare_installer.plugin.catalog import PluginCatalog, PluginMetadata
from mare_installer.plugin.http import HttpFetcher
from mare_installer.plugin.installer import PluginInstaller

__all__ = [
    "HttpFetcher",
    "PluginCatalog",
    "PluginInstaller",
    "PluginMetadata",
]
