"""
mi CLI - Mare Synchronos plugin installer.

Usage:
    mi                           Register repositories and install plugins
    mi --settings FILE           Use settings from a TOML file
    mi --dalamud-dir DIR         Operate on a specific XIVLauncher directory
    mi --simulate                Allow stale HTTP caches (dry runs on a copy)
    mi --write-settings FILE     Write a commented settings template and exit
"""

import argparse
import logging
import sys
import traceback


class MIError(Exception):
    """Base exception for mi errors."""

    pass


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog="mi",
        description="Mare installer - register plugin repositories and install plugins",
        add_help=False,
    )

    parser.add_argument("-h", "--help", action="store_true", help="Show help")
    parser.add_argument("--settings", metavar="FILE", help="Settings TOML file")
    parser.add_argument(
        "--dalamud-dir", metavar="DIR", help="XIVLauncher data directory"
    )
    parser.add_argument(
        "--simulate", action="store_true", help="Allow stale HTTP caches"
    )
    parser.add_argument(
        "--write-settings", metavar="FILE", help="Write settings template and exit"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    return parser


def print_help():
    """Print help message."""
    help_text = """
mi - Mare Synchronos plugin installer

Usage:
    mi                           Register repositories and install plugins
    mi --write-settings FILE     Write a commented settings template and exit

Options:
    --settings FILE              Settings TOML file
    --dalamud-dir DIR            XIVLauncher data directory
    --simulate                   Allow stale HTTP caches
    -v, --verbose                Verbose output
    -h, --help                   Show this help
"""
    print(help_text.strip())


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        stream=sys.stdout,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def main(argv: list[str] | None = None) -> int:
    """Main entry point for mi CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.help:
        print_help()
        return 0

    configure_logging(args.verbose)

    try:
        if args.write_settings:
            from mi.commands.settings import write_settings_command

            return write_settings_command(args)

        from mi.commands.install import install_command

        return install_command(args)

    except MIError as e:
        print(f"mi: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nmi: aborted by user", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"mi: {type(e).__name__}: {e}", file=sys.stderr)
        if args.verbose:
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
