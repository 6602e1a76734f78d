"""
Repository list handling for the Dalamud config.

This module handles:
- URL normalization and de-duplication
- Injection of required repositories
- Reading and writing dalamudConfig.json
"""

from mare_installer.repo.merger import (
    build_entry,
    merge_document,
    merge_repositories,
    normalize_url,
)
from mare_installer.repo.updater import ConfigUpdater

__all__ = [
    "ConfigUpdater",
    "build_entry",
    "merge_document",
    "merge_repositories",
    "normalize_url",
]
