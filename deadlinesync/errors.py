"""
Exception types raised across the project.

Structural extraction errors are caught close to where they happen and turned
into "no data"; only NotAuthenticated and unexpected failures reach the run
boundary (see deadlinesync.sync and deadlinesync.cli).
"""

from __future__ import annotations


class DeadlineSyncError(Exception):
    """Base class for all errors raised by deadlinesync."""


class NotAuthenticated(DeadlineSyncError):
    """No saved portal session, or the saved session is no longer accepted."""

    def __init__(self, message: str = 'No valid session. Please run "deadline-sync login" first.') -> None:
        super().__init__(message)


class DiscoveryPartialFailure(DeadlineSyncError):
    """One view or strategy could not be read. Never fatal for a run."""

    def __init__(self, view: str, reason: str) -> None:
        super().__init__(f"{view}: {reason}")
        self.view = view
        self.reason = reason


class ParseFailure(DeadlineSyncError):
    """A date string or a document could not be parsed."""


class UnsupportedFormat(ParseFailure):
    """The document converter does not handle this file type."""


class ConstraintViolation(DeadlineSyncError):
    """A fingerprint was written to the ledger twice."""


class CreationFailure(DeadlineSyncError):
    """The reminder system rejected one item."""

    def __init__(self, title: str, reason: str) -> None:
        super().__init__(f"Failed to create reminder {title!r}: {reason}")
        self.title = title
        self.reason = reason
