"""
Installer Run.

This module ties the installer steps together:
1. Register the required repositories in the Dalamud config
2. Download every repository manifest
3. Install each plugin, continuing past individual failures
"""

import logging

from mare_installer.config.settings import Settings
from mare_installer.errors import (
    InstallerError,
    InstallResult,
    InstallStatus,
    MalformedError,
    NetworkError,
    RunReport,
    describe_error,
)
from mare_installer.plugin.catalog import Fetcher, PluginCatalog
from mare_installer.plugin.http import HttpFetcher
from mare_installer.plugin.installer import PluginInstaller
from mare_installer.repo.updater import ConfigUpdater

logger = logging.getLogger(__name__)


class PreconditionError(InstallerError):
    """Raised when the config updater cannot run."""

    pass


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}" + ("" if count == 1 else "s")


class Installer:
    """
    One installer run over a single plugin set.

    Example:
        with HttpFetcher(timeout=settings.timeout) as fetcher:
            report = Installer(settings, fetcher).run()
    """

    def __init__(self, settings: Settings, fetcher: Fetcher):
        """
        Initialize Installer.

        Args:
            settings: Resolved settings (paths, plugin set, repositories)
            fetcher: Object with a get(url) -> bytes method
        """
        self.settings = settings
        self.fetcher = fetcher
        self.catalog = PluginCatalog(fetcher)

    def update_config(self, report: RunReport) -> None:
        """
        Merge the custom repositories into the Dalamud config.

        Raises:
            PreconditionError: If there is nothing to register or no config file
            MalformedError: If the config is malformed
        """
        updater = ConfigUpdater(
            self.settings.custom_repositories,
            self.settings.config_file,
            self.settings.repo_type_tag,
        )
        if not updater.can_run:
            raise PreconditionError(
                f"Cannot run Dalamud config updater, precondition failed "
                f"({self.settings.config_file})"
            )
        report.merge = updater.run()

    def preload_repositories(self) -> None:
        """
        Download every repository manifest up front.

        Network failures are logged and skipped; plugins from that repository
        fail later. Malformed manifests abort the run.

        Raises:
            MalformedError: If a manifest is malformed
        """
        for url in self.settings.all_repositories:
            try:
                self.catalog.load_repo(url)
            except NetworkError as e:
                logger.error(f"Failed to download repository {url}")
                for line in describe_error(e):
                    logger.error(line)

    def install_plugin(self, name: str, repo_url: str) -> InstallResult:
        """Install one plugin; never raises."""
        installer = PluginInstaller(
            name, repo_url, self.catalog, self.fetcher, self.settings.plugin_root
        )
        try:
            result = installer.run()
        except Exception as e:
            result = InstallResult(plugin=name, status=InstallStatus.FAILED, error=e)

        if result.error is not None:
            logger.error(f"Failed to install {name}:")
            for line in describe_error(result.error):
                logger.error(line)
        return result

    def run(self) -> RunReport:
        """
        Execute the full run.

        Returns:
            RunReport; success requires the config merge and every plugin to succeed

        Raises:
            PreconditionError: If the config updater cannot run
            MalformedError: If the config or a repository manifest is malformed
        """
        report = RunReport()

        try:
            self.update_config(report)
        except MalformedError:
            logger.error("Dalamud config updater failed, aborting.")
            raise

        self.preload_repositories()

        self.settings.plugin_root.mkdir(parents=True, exist_ok=True)
        for name, repo_url in self.settings.plugins.items():
            report.results.append(self.install_plugin(name, repo_url))

        logger.info(
            f"{_plural(report.completed, 'download')} completed successfully, "
            f"{_plural(report.failed, 'download')} failed."
        )
        return report


def run_installer(settings: Settings, transport=None) -> RunReport:
    """
    Run the installer with a fresh HTTP client and catalog.

    Args:
        settings: Resolved settings
        transport: Optional httpx transport (for tests)

    Returns:
        RunReport
    """
    with HttpFetcher(
        timeout=settings.timeout, simulate=settings.simulate, transport=transport
    ) as fetcher:
        return Installer(settings, fetcher).run()
