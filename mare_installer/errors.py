"""
Installer Errors and Results.

This module provides the error taxonomy shared by every installer step and
the result objects returned at the per-plugin and per-run boundaries.

Key features:
- ErrorKind enumeration (malformed, not found, network, integrity)
- Exception hierarchy rooted at InstallerError
- Cause-chain formatting for log output
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class ErrorKind(Enum):
    """Error kind enumeration."""

    MALFORMED = "malformed"
    NOT_FOUND = "not_found"
    NETWORK = "network"
    INTEGRITY = "integrity"


class InstallerError(Exception):
    """Base exception for installer errors."""

    kind: ErrorKind = ErrorKind.MALFORMED


class MalformedError(InstallerError):
    """Raised when a config document or manifest has the wrong shape."""

    kind = ErrorKind.MALFORMED


class NotFoundError(InstallerError):
    """Raised when a plugin cannot be found in its repository."""

    kind = ErrorKind.NOT_FOUND


class NetworkError(InstallerError):
    """Raised when an HTTP request times out or fails."""

    kind = ErrorKind.NETWORK


class IntegrityError(InstallerError):
    """Raised when a downloaded archive is empty, corrupt or unsafe."""

    kind = ErrorKind.INTEGRITY


class InstallStatus(Enum):
    """Per-plugin install outcome."""

    INSTALLED = "installed"
    ALREADY_PRESENT = "already_present"
    FAILED = "failed"


@dataclass
class InstallResult:
    """
    Outcome of installing a single plugin.

    Attributes:
        plugin: Plugin name
        status: Install outcome
        version: Resolved version (None if resolution failed)
        path: Versioned install directory (None if resolution failed)
        error: Error that caused the failure, if any
    """

    plugin: str
    status: InstallStatus
    version: str | None = None
    path: Path | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        """True if the plugin is installed, whether now or previously."""
        return self.status != InstallStatus.FAILED


@dataclass
class MergeReport:
    """
    Counts collected while merging the repository list.

    Attributes:
        normalized: URLs rewritten to their direct form
        enabled: Required entries forcibly enabled
        removed: Duplicate entries dropped
        added: Required entries synthesized
        total: Entries in the list after the merge
    """

    normalized: int = 0
    enabled: int = 0
    removed: int = 0
    added: int = 0
    total: int = 0


@dataclass
class RunReport:
    """
    Outcome of a whole installer run.

    Attributes:
        merge: Merge counts, or None if the merge did not complete
        results: Per-plugin results in processing order
    """

    merge: MergeReport | None = None
    results: list[InstallResult] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return sum(1 for result in self.results if not result.ok)

    @property
    def completed(self) -> int:
        return len(self.results) - self.failed

    @property
    def success(self) -> bool:
        return self.merge is not None and self.failed == 0


def describe_error(error: BaseException) -> list[str]:
    """
    Format an exception and its cause chain, one indented line per link.

    Args:
        error: Outermost exception

    Returns:
        Lines of the form "   Type: message", indented by depth
    """
    lines = []
    current: BaseException | None = error
    depth = 0
    seen: set[int] = set()

    while current is not None and id(current) not in seen:
        seen.add(id(current))
        depth += 1
        lines.append("   " * depth + f"{type(current).__name__}: {current}")
        current = current.__cause__ or current.__context__

    return lines
