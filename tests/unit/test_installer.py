"""
Tests for plugin download and extraction.

This test suite covers:
1. Successful install into <root>/<name>/<version>
2. Idempotent skip without network access
3. Path traversal rejection
4. Empty and corrupt archives
5. Rollback after a failed extraction
"""

import io
import json
import tempfile
import zipfile
from pathlib import Path

import httpx
import pytest

from mare_installer.errors import ErrorKind, InstallStatus, IntegrityError
from mare_installer.plugin.catalog import PluginCatalog
from mare_installer.plugin.http import HttpFetcher
from mare_installer.plugin.installer import PluginInstaller, extract_archive

REPO = "https://repo.example/pluginmaster.json"
ARCHIVE = "https://dl.example/Alpha.zip"


def make_zip(files):
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, data in files.items():
            archive.writestr(name, data)
    return buffer.getvalue()


def make_installer(plugin_root, archive, calls=None, name="Alpha"):
    manifest = [
        {
            "InternalName": "Alpha",
            "AssemblyVersion": "1.2.3.4",
            "DownloadLinkInstall": ARCHIVE,
        }
    ]

    def handler(request):
        url = str(request.url)
        if calls is not None:
            calls.append(url)
        if url == REPO:
            return httpx.Response(200, content=json.dumps(manifest).encode())
        if url == ARCHIVE:
            return httpx.Response(200, content=archive)
        return httpx.Response(404)

    fetcher = HttpFetcher(transport=httpx.MockTransport(handler))
    catalog = PluginCatalog(fetcher)
    return PluginInstaller(name, REPO, catalog, fetcher, plugin_root)


class TestPluginInstaller:
    """Test the install workflow."""

    def test_install(self):
        """Should extract the archive into the versioned directory."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir) / "installedPlugins"
            archive = make_zip({"Alpha.dll": b"dll", "Alpha.json": "{}", "lib/x.dll": b"x"})

            result = make_installer(root, archive).run()

            target = root / "Alpha" / "1.2.3.4"
            assert result.status == InstallStatus.INSTALLED
            assert result.ok
            assert result.version == "1.2.3.4"
            assert result.path == target
            assert (target / "Alpha.dll").read_bytes() == b"dll"
            assert (target / "lib" / "x.dll").read_bytes() == b"x"

    def test_already_installed_skips_network(self):
        """Should report success without downloading when the version exists."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            (root / "Alpha" / "1.2.3.4").mkdir(parents=True)
            calls = []

            result = make_installer(root, b"not used", calls).run()

            assert result.status == InstallStatus.ALREADY_PRESENT
            assert result.ok
            assert ARCHIVE not in calls

    def test_already_installed_without_any_fetch(self):
        """Should not touch the network at all if the catalog is already loaded."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            (root / "Alpha" / "1.2.3.4").mkdir(parents=True)
            calls = []
            installer = make_installer(root, b"", calls)
            installer.catalog.load_repo(REPO)
            calls.clear()

            result = installer.run()

            assert result.status == InstallStatus.ALREADY_PRESENT
            assert calls == []

    def test_plugin_not_found(self):
        """Should fail with NOT_FOUND when the repository lacks the plugin."""
        with tempfile.TemporaryDirectory() as tmpdir:
            result = make_installer(Path(tmpdir), b"", name="Missing").run()

            assert result.status == InstallStatus.FAILED
            assert result.error.kind == ErrorKind.NOT_FOUND
            assert "Missing" in str(result.error)

    def test_download_failure(self):
        """Should fail with NETWORK when the archive cannot be downloaded."""

        def handler(request):
            if str(request.url) == REPO:
                return httpx.Response(
                    200,
                    content=json.dumps(
                        [
                            {
                                "InternalName": "Alpha",
                                "AssemblyVersion": "1",
                                "DownloadLinkInstall": ARCHIVE,
                            }
                        ]
                    ).encode(),
                )
            return httpx.Response(503)

        with tempfile.TemporaryDirectory() as tmpdir:
            fetcher = HttpFetcher(transport=httpx.MockTransport(handler))
            installer = PluginInstaller(
                "Alpha", REPO, PluginCatalog(fetcher), fetcher, Path(tmpdir)
            )

            result = installer.run()

            assert result.status == InstallStatus.FAILED
            assert result.error.kind == ErrorKind.NETWORK
            assert result.version == "1"
            assert not (Path(tmpdir) / "Alpha" / "1").exists()

    def test_path_traversal_rejected(self):
        """Should refuse archives with entries outside the target directory."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir) / "plugins"
            archive = make_zip({"good.dll": b"ok", "../../evil.txt": b"evil"})

            result = make_installer(root, archive).run()

            assert result.status == InstallStatus.FAILED
            assert result.error.kind == ErrorKind.INTEGRITY
            assert "outside the install path" in str(result.error)
            assert not (root / "evil.txt").exists()
            assert not (root / "Alpha" / "1.2.3.4").exists()

    def test_sibling_prefix_rejected(self):
        """Should not accept a sibling directory sharing the target's name prefix."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            archive = make_zip({"../1.2.3.4-evil/x.txt": b"evil"})

            result = make_installer(root, archive).run()

            assert result.error.kind == ErrorKind.INTEGRITY
            assert not (root / "Alpha" / "1.2.3.4-evil").exists()

    def test_empty_archive(self):
        """Should treat an archive without entries as corrupt."""
        with tempfile.TemporaryDirectory() as tmpdir:
            result = make_installer(Path(tmpdir), make_zip({})).run()

            assert result.error.kind == ErrorKind.INTEGRITY
            assert "contains no files" in str(result.error)
            assert not (Path(tmpdir) / "Alpha" / "1.2.3.4").exists()

    def test_not_a_zip(self):
        """Should reject downloads that are not zip files."""
        with tempfile.TemporaryDirectory() as tmpdir:
            result = make_installer(Path(tmpdir), b"<html>oops</html>").run()

            assert result.error.kind == ErrorKind.INTEGRITY
            assert "not a valid zip" in str(result.error)


class TestExtractArchive:
    """Test archive extraction directly."""

    def test_directory_entries(self):
        """Should create directories listed in the archive."""
        with tempfile.TemporaryDirectory() as tmpdir:
            target = Path(tmpdir) / "out"
            archive = make_zip({"empty/": b"", "sub/file.txt": b"data"})

            count = extract_archive(archive, target, "test")

            assert count == 2
            assert (target / "empty").is_dir()
            assert (target / "sub" / "file.txt").read_bytes() == b"data"

    def test_failed_entry_rolls_back(self, monkeypatch):
        """Should remove the whole target directory if one entry fails."""
        import shutil

        original = shutil.copyfileobj
        written = []

        def flaky_copy(source, sink, *args, **kwargs):
            if written:
                raise OSError("disk full")
            written.append(True)
            return original(source, sink, *args, **kwargs)

        monkeypatch.setattr(shutil, "copyfileobj", flaky_copy)

        with tempfile.TemporaryDirectory() as tmpdir:
            target = Path(tmpdir) / "Alpha" / "1.0"
            archive = make_zip({"a.txt": b"a", "b/b.txt": b"b"})

            with pytest.raises(IntegrityError, match="Failed to extract b/b.txt") as exc_info:
                extract_archive(archive, target, "Alpha v1.0")

            assert isinstance(exc_info.value.__cause__, OSError)
            assert written
            assert not target.exists()
            assert (Path(tmpdir) / "Alpha").is_dir()

    def test_absolute_entry_rejected(self):
        """Should refuse absolute entry paths and write nothing."""
        with tempfile.TemporaryDirectory() as tmpdir:
            target = Path(tmpdir) / "Alpha" / "1.0"
            outside = Path(tmpdir) / "outside" / "evil.txt"
            archive = make_zip({"good.dll": b"ok", str(outside): b"evil"})

            with pytest.raises(IntegrityError, match="outside the install path"):
                extract_archive(archive, target, "Alpha v1.0")

            assert not target.exists()
            assert not outside.exists()
