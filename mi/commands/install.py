"""
mi install command (default).

Patch the Dalamud config, then download and extract every configured plugin.
"""

import logging
from pathlib import Path
from typing import Any

from mare_installer import __version__
from mare_installer.config import Settings, SettingsError, load_settings
from mare_installer.core import run_installer
from mare_installer.errors import InstallerError, RunReport, describe_error

logger = logging.getLogger(__name__)


def resolve_settings(args: Any) -> Settings:
    """
    Load settings and apply command-line overrides.

    Args:
        args: Parsed command-line arguments

    Returns:
        Settings instance
    """
    from mi.cli import MIError

    try:
        settings = load_settings(Path(args.settings) if args.settings else None)
    except SettingsError as e:
        raise MIError(str(e)) from e

    if args.dalamud_dir:
        settings.dalamud_dir = Path(args.dalamud_dir).expanduser()
    if args.simulate:
        settings.simulate = True
    return settings


def print_summary(report: RunReport | None, settings: Settings) -> None:
    logger.info("")
    if report is not None and report.success:
        logger.info("Mare Synchronos and dependencies have been installed.")
        logger.info(
            "You still need to configure them yourself, most importantly Mare by registering an ID."
        )
        logger.info("You will then need to manually pair with any users you wish to.")
        return

    logger.info(
        "Installation failed. Please either save or screenshot this log, and send it to the developer."
    )
    if settings.bug_report_url:
        logger.info(f"Bug reports: {settings.bug_report_url}")


def install_command(args: Any) -> int:
    """
    Execute install command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    settings = resolve_settings(args)
    logger.info(f"Initialising automatic Mare Synchronos plugin installer v{__version__}...")

    if not settings.config_file.is_file():
        logger.info("XIVLauncher/Dalamud does not appear to be installed.")
        logger.info(
            "Please install XIVLauncher and launch the game at least once through it, then rerun this tool."
        )
        return 1

    report = None
    try:
        report = run_installer(settings)
    except InstallerError as e:
        for line in describe_error(e):
            logger.error(line)
    except Exception as e:
        logger.error("Unexpected error during installation:")
        for line in describe_error(e):
            logger.error(line)

    print_summary(report, settings)
    return 0 if report is not None and report.success else 1
