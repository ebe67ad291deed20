# common/exceptions.py
# -*- coding: utf-8 -*-
"""
Exception types raised by the setup steps.

Every subclass of ``SetupError`` is treated as fatal when it escapes a step
declared fatal; best-effort steps log it as a warning instead.
"""

from typing import Iterable


class SetupError(Exception):
    """Base class for all setup failures."""


class PreconditionError(SetupError):
    """The environment does not allow the setup to run (not root, unknown user...)."""


class LockTimeoutError(SetupError):
    """The package manager stayed locked for longer than the allowed wait."""

    def __init__(self, waited_seconds: int, holders: Iterable[str]):
        self.waited_seconds = waited_seconds
        self.holders = list(holders)
        super().__init__(
            f"Package manager still locked after {waited_seconds}s "
            f"(held by: {', '.join(self.holders) or 'unknown'})"
        )


class PackageInstallError(SetupError):
    """The package manager failed to install a set of packages."""

    def __init__(self, packages: Iterable[str], detail: str = ""):
        self.packages = list(packages)
        message = f"Failed to install packages: {' '.join(self.packages)}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class DownloadError(SetupError):
    """An installer artifact could not be downloaded."""


class BuildError(SetupError):
    """Building a tool from source failed or produced the wrong version."""
