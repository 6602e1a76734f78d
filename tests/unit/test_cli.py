"""
Tests for the mi command-line interface.
"""

import json
import tempfile
from pathlib import Path
from unittest.mock import patch

from mare_installer.errors import InstallResult, InstallStatus, MergeReport, RunReport
from mi.cli import create_parser, main


class TestParser:
    """Test argument parsing."""

    def test_defaults(self):
        """Should parse an empty command line."""
        args = create_parser().parse_args([])

        assert not args.help
        assert args.settings is None
        assert args.dalamud_dir is None
        assert not args.simulate

    def test_options(self):
        """Should parse every option."""
        args = create_parser().parse_args(
            ["--settings", "s.toml", "--dalamud-dir", "/xl", "--simulate", "-v"]
        )

        assert args.settings == "s.toml"
        assert args.dalamud_dir == "/xl"
        assert args.simulate
        assert args.verbose


class TestMain:
    """Test CLI entry point."""

    def test_help(self, capsys):
        """Should print help and exit 0."""
        assert main(["--help"]) == 0
        assert "mi - Mare Synchronos plugin installer" in capsys.readouterr().out

    def test_write_settings(self):
        """Should write a settings template once and refuse to overwrite it."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "settings.toml"

            assert main(["--write-settings", str(path)]) == 0
            assert path.is_file()
            assert main(["--write-settings", str(path)]) == 1

    def test_missing_dalamud(self):
        """Should exit 1 when no Dalamud config exists."""
        with tempfile.TemporaryDirectory() as tmpdir:
            assert main(["--dalamud-dir", tmpdir]) == 1

    def test_bad_settings_file(self, capsys):
        """Should report invalid settings files."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "settings.toml"
            path.write_text('colour = "blue"\n')

            assert main(["--settings", str(path)]) == 1
            assert "Unknown setting" in capsys.readouterr().err

    def test_exit_code_follows_report(self):
        """Should exit 0 only when the run succeeds."""
        with tempfile.TemporaryDirectory() as tmpdir:
            (Path(tmpdir) / "dalamudConfig.json").write_text(
                json.dumps({"ThirdRepoList": {"$values": []}})
            )
            ok = RunReport(
                merge=MergeReport(),
                results=[InstallResult("Alpha", InstallStatus.INSTALLED)],
            )
            failed = RunReport(
                merge=MergeReport(),
                results=[InstallResult("Alpha", InstallStatus.FAILED)],
            )

            with patch("mi.commands.install.run_installer", return_value=ok) as run:
                assert main(["--dalamud-dir", tmpdir, "--simulate"]) == 0
                settings = run.call_args.args[0]
                assert settings.simulate
                assert settings.dalamud_dir == Path(tmpdir)

            with patch("mi.commands.install.run_installer", return_value=failed):
                assert main(["--dalamud-dir", tmpdir]) == 1

    def test_unexpected_error_still_summarised(self, caplog, monkeypatch):
        """Should print the failure summary even for errors outside the installer taxonomy."""
        import logging

        from mare_installer.repo import updater

        def locked(file_path, document):
            raise PermissionError("file locked")

        monkeypatch.setattr(updater, "write_document", locked)
        caplog.set_level(logging.INFO)

        with tempfile.TemporaryDirectory() as tmpdir:
            (Path(tmpdir) / "dalamudConfig.json").write_text(
                json.dumps({"ThirdRepoList": {"$values": []}})
            )

            assert main(["--dalamud-dir", tmpdir]) == 1

        assert "PermissionError: file locked" in caplog.text
        assert "Installation failed" in caplog.text
        assert "issues/new/choose" in caplog.text
