"""
Repository List Merger.

This module rewrites the third-party repository list of a Dalamud config.

Key features:
- GitHub /raw/ URLs normalized to raw.githubusercontent.com
- Case-insensitive de-duplication (first occurrence wins)
- Missing required repositories injected and enabled
- Unknown entry fields passed through untouched
"""

import copy
import logging
import re
from collections.abc import Iterable
from typing import Any

from mare_installer.config.settings import REPO_TYPE_TAG
from mare_installer.errors import MalformedError, MergeReport

logger = logging.getLogger(__name__)

REPO_LIST_NODE = "ThirdRepoList"
ARRAY_NODE = "$values"
URL_NODE = "Url"
ENABLED_NODE = "IsEnabled"

GITHUB_RAW_URL = re.compile(
    r"^https?://(www\.)?github\.com/(?P<username>[^/]+)/(?P<repository>[^/]+)/raw/(?P<path>.*)$",
    re.IGNORECASE,
)


def normalize_url(url: str) -> str:
    """
    Rewrite a github.com /raw/ link to the raw.githubusercontent.com form it redirects to.

    Args:
        url: Repository URL

    Returns:
        Direct URL, or the input unchanged if it is not a redirecting link
    """
    match = GITHUB_RAW_URL.match(url)
    if not match:
        return url
    return (
        f"https://raw.githubusercontent.com/{match['username']}/"
        f"{match['repository']}/{match['path']}"
    )


def entry_url(entry: Any) -> str:
    """
    Get the URL of a repository entry.

    Raises:
        MalformedError: If the entry is not an object or has no string Url
    """
    if not isinstance(entry, dict):
        raise MalformedError(
            f"Repository entry must be an object, got {type(entry).__name__}"
        )
    url = entry.get(URL_NODE)
    if not isinstance(url, str):
        raise MalformedError(f"Repository entry doesn't have a {URL_NODE} string")
    return url


def build_entry(
    prototype: dict[str, Any] | None,
    url: str,
    type_tag: str = REPO_TYPE_TAG,
) -> dict[str, Any]:
    """
    Build a new enabled repository entry.

    Args:
        prototype: Existing entry to copy unknown fields from, or None
        url: Repository URL
        type_tag: $type used when there is no prototype

    Returns:
        New entry dict
    """
    if prototype is not None:
        entry = copy.deepcopy(prototype)
    else:
        # Name is unused by Dalamud and null in stock configs
        entry = {"$type": type_tag, URL_NODE: "", ENABLED_NODE: True, "Name": None}

    entry[URL_NODE] = url
    entry[ENABLED_NODE] = True
    return entry


def _ordered_required(required_urls: Iterable[str]) -> tuple[list[str], set[str]]:
    # compared against entries after their normalization
    ordered = []
    keys: set[str] = set()
    for url in map(normalize_url, required_urls):
        key = url.casefold()
        if key not in keys:
            keys.add(key)
            ordered.append(url)
    return ordered, keys


def clean_urls(entries: list[dict[str, Any]], required: set[str], report: MergeReport) -> None:
    """Normalize entry URLs and force required repositories on."""
    for entry in entries:
        url = entry_url(entry)
        normalized = normalize_url(url)
        if normalized != url:
            entry[URL_NODE] = normalized
            report.normalized += 1
            logger.info(f"Normalised {normalized}")

        if normalized.casefold() in required and entry.get(ENABLED_NODE) is not True:
            entry[ENABLED_NODE] = True
            report.enabled += 1
            logger.info(f"Forcibly enabled repo {normalized}")


def dedupe_urls(entries: list[dict[str, Any]], report: MergeReport) -> None:
    """Drop later entries whose URL matches an earlier one, ignoring case."""
    seen: set[str] = set()
    kept = []
    for entry in entries:
        url = entry_url(entry)
        key = url.casefold()
        if key in seen:
            logger.info(f"Removing duplicate repo {url}")
            continue
        seen.add(key)
        kept.append(entry)

    report.removed = len(entries) - len(kept)
    entries[:] = kept

    noun = "URL" if report.removed == 1 else "URLs"
    logger.info(
        f"Removed {report.removed} duplicate repository {noun}, leaving {len(kept)}"
    )


def add_urls(
    entries: list[dict[str, Any]],
    required: list[str],
    report: MergeReport,
    type_tag: str = REPO_TYPE_TAG,
) -> None:
    """Append an enabled entry for every required URL not yet listed."""
    known = {entry_url(entry).casefold() for entry in entries}
    prototype = entries[0] if entries else None

    for url in required:
        if url.casefold() in known:
            continue
        entries.append(build_entry(prototype, url, type_tag))
        known.add(url.casefold())
        report.added += 1
        logger.info(f"Added repo {url} to list")


def merge_repositories(
    required_urls: Iterable[str],
    entries: list[dict[str, Any]],
    type_tag: str = REPO_TYPE_TAG,
) -> MergeReport:
    """
    Merge required repositories into a repository list in place.

    Every entry is validated before anything is changed, so a malformed
    list is left exactly as it was.

    Args:
        required_urls: URLs that must end up present and enabled
        entries: Repository entries (modified in place)
        type_tag: $type for synthesized entries when the list is empty

    Returns:
        MergeReport with the counts of each step

    Raises:
        MalformedError: If any entry is malformed
    """
    for entry in entries:
        entry_url(entry)

    ordered, keys = _ordered_required(required_urls)
    report = MergeReport()

    clean_urls(entries, keys, report)
    dedupe_urls(entries, report)
    add_urls(entries, ordered, report, type_tag)

    report.total = len(entries)
    return report


def get_repo_list(document: Any) -> list[Any]:
    """
    Locate the repository list inside a config document.

    Raises:
        MalformedError: If the document has no ThirdRepoList.$values array
    """
    if not isinstance(document, dict):
        raise MalformedError("Dalamud config must be a JSON object")
    container = document.get(REPO_LIST_NODE)
    values = container.get(ARRAY_NODE) if isinstance(container, dict) else None
    if not isinstance(values, list):
        raise MalformedError("Cannot find third-party repo list in dalamud config")
    return values


def merge_document(
    required_urls: Iterable[str],
    document: dict[str, Any],
    type_tag: str = REPO_TYPE_TAG,
) -> tuple[dict[str, Any], MergeReport]:
    """
    Merge required repositories into a config document without mutating it.

    Args:
        required_urls: URLs that must end up present and enabled
        document: Parsed Dalamud config
        type_tag: $type for synthesized entries when the list is empty

    Returns:
        Tuple of (new document, MergeReport)

    Raises:
        MalformedError: If the document or any entry is malformed
    """
    entries = copy.deepcopy(get_repo_list(document))
    report = merge_repositories(required_urls, entries, type_tag)

    result = dict(document)
    result[REPO_LIST_NODE] = dict(document[REPO_LIST_NODE])
    result[REPO_LIST_NODE][ARRAY_NODE] = entries
    return result, report
