"""
Dalamud Config Updater.

Reads dalamudConfig.json (comments and trailing commas allowed), merges the
required third-party repositories into it and writes it back once.
"""

import json
import logging
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import json5

from mare_installer.config.settings import REPO_TYPE_TAG
from mare_installer.errors import MalformedError, MergeReport
from mare_installer.repo.merger import get_repo_list, merge_document

logger = logging.getLogger(__name__)


def read_document(file_path: Path) -> dict[str, Any]:
    """
    Read a JSON config document, tolerating comments and trailing commas.

    Raises:
        MalformedError: If the file cannot be read or is not a JSON object
    """
    try:
        text = file_path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise MalformedError(f"Failed to read config file {file_path}: {e}") from e

    try:
        document = json5.loads(text)
    except ValueError as e:
        raise MalformedError(f"Failed to parse config file {file_path}: {e}") from e

    if not isinstance(document, dict):
        raise MalformedError(f"Config file {file_path} does not contain a JSON object")
    return document


def write_document(file_path: Path, document: dict[str, Any]) -> None:
    """
    Serialize a config document with stable 2-space indentation.

    The text goes to a sibling temp file that then replaces the original,
    so a failed write leaves the old config intact.

    Raises:
        MalformedError: If the file cannot be written
    """
    content = json.dumps(document, indent=2, ensure_ascii=False)
    temp_path = None
    try:
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=file_path.parent,
            prefix=f".{file_path.name}.",
            suffix=".tmp",
            delete=False,
        ) as f:
            temp_path = f.name
            f.write(content)
        os.replace(temp_path, file_path)
    except OSError as e:
        if temp_path is not None and os.path.exists(temp_path):
            os.unlink(temp_path)
        raise MalformedError(f"Failed to write config file {file_path}: {e}") from e


class ConfigUpdater:
    """
    Registers required third-party repositories in the Dalamud config.

    Example:
        updater = ConfigUpdater(settings.custom_repositories, settings.config_file)
        if updater.can_run:
            updater.run()
    """

    def __init__(
        self,
        urls: Iterable[str],
        config_file: Path,
        type_tag: str = REPO_TYPE_TAG,
    ):
        """
        Initialize ConfigUpdater.

        Args:
            urls: Repository URLs to register
            config_file: Path to dalamudConfig.json
            type_tag: $type for new entries when the list is empty
        """
        self.urls = list(dict.fromkeys(urls))
        self.config_file = config_file
        self.type_tag = type_tag

    @property
    def count(self) -> int:
        return len({url.casefold() for url in self.urls})

    @property
    def can_run(self) -> bool:
        return self.count > 0 and self.config_file.is_file()

    def run(self) -> MergeReport:
        """
        Merge the repositories into the config file.

        The file is only written after every step has succeeded.

        Returns:
            MergeReport with the counts of each step

        Raises:
            MalformedError: If the config or any repository entry is malformed
        """
        noun = "URL" if self.count == 1 else "URLs"
        logger.info(
            f"Checking for {self.count} third-party plugin repository {noun}"
        )

        document = read_document(self.config_file)
        logger.info(f"{len(get_repo_list(document))} currently defined")

        updated, report = merge_document(self.urls, document, self.type_tag)
        write_document(self.config_file, updated)
        return report
