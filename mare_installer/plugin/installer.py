"""
Plugin Installer.

This module downloads a plugin archive and extracts it into a versioned
install directory.

Key features:
- Skips plugins whose versioned directory already exists
- Rejects empty archives and entries that would land outside the target
- Removes the target directory again if extraction fails part-way
"""

import io
import logging
import os
import shutil
import zipfile
from pathlib import Path

from mare_installer.errors import (
    InstallerError,
    InstallResult,
    InstallStatus,
    IntegrityError,
    NotFoundError,
)
from mare_installer.plugin.catalog import Fetcher, PluginCatalog, PluginMetadata

logger = logging.getLogger(__name__)


def resolve_entry(target_dir: str, entry: zipfile.ZipInfo) -> str | None:
    """
    Compute where an archive entry would be extracted.

    Args:
        target_dir: Absolute install directory
        entry: Archive entry

    Returns:
        Absolute destination path, or None if it falls outside target_dir
    """
    destination = os.path.abspath(os.path.join(target_dir, entry.filename))
    if destination.startswith(target_dir + os.sep):
        return destination
    if entry.is_dir() and destination == target_dir:
        return destination
    return None


def extract_archive(content: bytes, target_dir: Path, label: str) -> int:
    """
    Safely extract a zip archive into target_dir.

    Every entry is checked before anything is written. If writing any entry
    fails, target_dir is removed and the error is re-raised.

    Args:
        content: Zip archive bytes
        target_dir: Directory to extract into (must not exist yet)
        label: Name used in error messages

    Returns:
        Number of entries extracted

    Raises:
        IntegrityError: If the archive is corrupt, empty, unsafe or cannot be extracted
    """
    target = os.path.abspath(target_dir)

    try:
        archive = zipfile.ZipFile(io.BytesIO(content))
    except zipfile.BadZipFile as e:
        raise IntegrityError(f"Plugin archive for {label} is not a valid zip file") from e

    with archive:
        entries = archive.infolist()
        if not entries:
            raise IntegrityError(f"Plugin archive for {label} contains no files")

        logger.info(f"Extracting plugin files for {label} ({len(entries)} found)")

        files: list[tuple[str, zipfile.ZipInfo]] = []
        for entry in entries:
            destination = resolve_entry(target, entry)
            if destination is None:
                raise IntegrityError(
                    f"Plugin archive for {label} contains an entry outside the install path: "
                    f"{entry.filename}"
                )
            files.append((destination, entry))

        for destination, entry in files:
            try:
                if entry.is_dir():
                    os.makedirs(destination, exist_ok=True)
                    continue
                os.makedirs(os.path.dirname(destination), exist_ok=True)
                with archive.open(entry) as source, open(destination, "wb") as sink:
                    shutil.copyfileobj(source, sink)
            except Exception as e:
                logger.error(
                    f"Cannot extract {entry.filename} to disk, installation aborted"
                )
                shutil.rmtree(target, ignore_errors=True)
                raise IntegrityError(
                    f"Failed to extract {entry.filename} for {label}"
                ) from e

    return len(files)


class PluginInstaller:
    """
    Installs one plugin from one repository.

    Example:
        installer = PluginInstaller("Penumbra", repo_url, catalog, fetcher, plugin_root)
        result = installer.run()
    """

    def __init__(
        self,
        name: str,
        repo_url: str,
        catalog: PluginCatalog,
        fetcher: Fetcher,
        plugin_root: Path,
    ):
        """
        Initialize PluginInstaller.

        Args:
            name: Plugin internal name
            repo_url: Repository manifest URL listing the plugin
            catalog: Shared plugin catalog
            fetcher: Object with a get(url) -> bytes method
            plugin_root: Dalamud installedPlugins directory
        """
        self.name = name
        self.repo_url = repo_url
        self.catalog = catalog
        self.fetcher = fetcher
        self.plugin_root = plugin_root

    def resolve(self) -> PluginMetadata:
        """
        Load the plugin's repository and look the plugin up.

        Raises:
            NotFoundError: If the repository does not list the plugin
        """
        self.catalog.load_repo(self.repo_url)
        metadata = self.catalog.find_plugin(self.name)
        if metadata is None:
            raise NotFoundError(f"Cannot find {self.name} in {self.repo_url}")
        return metadata

    def target_dir(self, metadata: PluginMetadata) -> Path:
        return Path(os.path.abspath(self.plugin_root / metadata.name / metadata.version))

    def install(self) -> InstallResult:
        """
        Install the plugin, raising on failure.

        Returns:
            InstallResult with status INSTALLED or ALREADY_PRESENT

        Raises:
            InstallerError: If any step fails
        """
        metadata = self.resolve()
        target = self.target_dir(metadata)

        if target.is_dir():
            logger.info(f"{metadata.name} v{metadata.version} is already installed")
            return InstallResult(
                plugin=self.name,
                status=InstallStatus.ALREADY_PRESENT,
                version=metadata.version,
                path=target,
            )

        logger.info(f"Downloading plugin {metadata.name} from {metadata.download_url}")
        content = self.fetcher.get(metadata.download_url)

        extract_archive(content, target, f"{metadata.name} v{metadata.version}")
        logger.info(f"Installed {metadata.name} v{metadata.version}")

        return InstallResult(
            plugin=self.name,
            status=InstallStatus.INSTALLED,
            version=metadata.version,
            path=target,
        )

    def run(self) -> InstallResult:
        """
        Install the plugin, reporting failure as a result instead of raising.

        Returns:
            InstallResult; status FAILED carries the error
        """
        try:
            return self.install()
        except InstallerError as e:
            metadata = self.catalog.find_plugin(self.name)
            return InstallResult(
                plugin=self.name,
                status=InstallStatus.FAILED,
                version=metadata.version if metadata else None,
                error=e,
            )
