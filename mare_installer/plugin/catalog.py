"""
Plugin Catalog.

This module provides the cache of plugin metadata read from repository
manifests.

Key features:
- Each repository manifest downloaded at most once per run
- First repository to list a plugin name wins
- One lock guarding both the repository set and the plugin map
- Case-insensitive repository URLs and plugin names
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Protocol

import json5

from mare_installer.errors import MalformedError

logger = logging.getLogger(__name__)

NAME_FIELD = "InternalName"
DOWNLOAD_FIELD = "DownloadLinkInstall"
VERSION_FIELD = "AssemblyVersion"


class Fetcher(Protocol):
    def get(self, url: str) -> bytes: ...


@dataclass(frozen=True)
class PluginMetadata:
    """
    Plugin record resolved from a repository manifest.

    Attributes:
        name: Plugin internal name
        version: Assembly version (used as a directory name, never compared)
        repo_url: Repository the record came from
        download_url: Archive download URL
    """

    name: str
    version: str
    repo_url: str
    download_url: str


def _required_string(record: dict[str, Any], key: str) -> str:
    value = record.get(key)
    if not isinstance(value, str):
        raise MalformedError(f"Plugin entry in repo doesn't have an {key}")
    return value


def parse_manifest(body: bytes | str, repo_url: str) -> list[PluginMetadata]:
    """
    Parse a repository manifest.

    Args:
        body: Raw manifest content
        repo_url: Repository URL (recorded on every plugin)

    Returns:
        PluginMetadata for every object in the manifest, in order

    Raises:
        MalformedError: If the manifest is not a list or a record lacks a required field
    """
    try:
        if isinstance(body, bytes):
            body = body.decode("utf-8-sig")
        data = json5.loads(body)
    except ValueError as e:
        raise MalformedError(f"Failed to parse repo content from {repo_url}: {e}") from e

    if not isinstance(data, list):
        raise MalformedError(f"Repo content from {repo_url} is not a list")

    plugins = []
    for record in data:
        if not isinstance(record, dict):
            continue
        plugins.append(
            PluginMetadata(
                name=_required_string(record, NAME_FIELD),
                version=_required_string(record, VERSION_FIELD),
                repo_url=repo_url,
                download_url=_required_string(record, DOWNLOAD_FIELD),
            )
        )
    return plugins


class PluginCatalog:
    """
    Cache of plugin metadata keyed by plugin name.

    Construct one per run and share it with every installer.
    """

    def __init__(self, fetcher: Fetcher):
        """
        Initialize PluginCatalog.

        Args:
            fetcher: Object with a get(url) -> bytes method
        """
        self.fetcher = fetcher
        self._repos: set[str] = set()
        self._plugins: dict[str, PluginMetadata] = {}
        self._lock = threading.Lock()

    def load_repo(self, url: str) -> None:
        """
        Download a repository manifest and cache its plugins.

        Does nothing if the repository was already requested, even if that
        request failed.

        Args:
            url: Repository manifest URL

        Raises:
            NetworkError: If the manifest cannot be downloaded
            MalformedError: If the manifest cannot be parsed
        """
        with self._lock:
            key = url.casefold()
            if key in self._repos:
                return
            self._repos.add(key)

            logger.info(f"Downloading plugin repo {url}")
            plugins = parse_manifest(self.fetcher.get(url), url)

            added = 0
            for plugin in plugins:
                name_key = plugin.name.casefold()
                if name_key in self._plugins:
                    continue
                self._plugins[name_key] = plugin
                added += 1

            logger.debug(f"Cached {added} of {len(plugins)} plugins from {url}")

    def find_plugin(self, name: str) -> PluginMetadata | None:
        """
        Look up a plugin.

        Args:
            name: Plugin internal name

        Returns:
            PluginMetadata, or None if no loaded repository lists it
        """
        with self._lock:
            return self._plugins.get(name.casefold())

    def has_plugin(self, name: str) -> bool:
        return self.find_plugin(name) is not None

    def has_repo(self, url: str) -> bool:
        with self._lock:
            return url.casefold() in self._repos

    def __len__(self) -> int:
        with self._lock:
            return len(self._plugins)
