"""Error taxonomy shared by sources, storage and the ranker bridge."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class Retryability(str, Enum):
    RETRYABLE = "retryable"
    TERMINAL = "terminal"


def classify_status(status: int) -> Retryability:
    """429 and 5xx are worth another attempt; everything else is final."""
    if status == 429 or 500 <= status < 600:
        return Retryability.RETRYABLE
    return Retryability.TERMINAL


class ConnectorError(Exception):
    """Base connector error."""

    def __init__(self, message: str, *, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status

    @property
    def retryability(self) -> Retryability:
        return Retryability.TERMINAL


class TransientError(ConnectorError):
    """Retryable error (rate limit or upstream 5xx)."""

    @property
    def retryability(self) -> Retryability:
        return Retryability.RETRYABLE


class PermanentError(ConnectorError):
    """Non-retryable error (e.g., 4xx semantics, unparseable payload)."""


class NotConfiguredError(PermanentError):
    """A source credential is missing."""


class RetriesExhaustedError(ConnectorError):
    """All attempts hit retryable errors."""

    def __init__(self, attempts: int, last_error: TransientError) -> None:
        super().__init__(f"retries exhausted after {attempts} attempts: {last_error}", status=last_error.status)
        self.attempts = attempts
        self.last_error = last_error


def error_for_status(status: int, message: str) -> ConnectorError:
    if classify_status(status) is Retryability.RETRYABLE:
        return TransientError(message, status=status)
    return PermanentError(message, status=status)


class RankerError(Exception):
    """External ranker unreachable or rejected a request."""

    def __init__(self, message: str, *, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class StorageError(Exception):
    """A content storage operation failed."""


class CollectionError(Exception):
    """Run-level failure of the collection orchestrator."""
