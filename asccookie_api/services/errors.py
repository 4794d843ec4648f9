"""Exception hierarchy and diagnostic values for the cookie storage layer."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class CookieStorageError(RuntimeError):
    """Base error that carries optional metadata about the failing operation."""

    def __init__(self, message: str, *, metadata: Optional[Any] = None) -> None:
        super().__init__(message)
        self.metadata = metadata


class InitializationError(CookieStorageError):
    """The base storage root cannot be resolved; the jar is unusable."""


class CodecError(CookieStorageError):
    """A cookie file could not be decoded."""


@dataclass(slots=True)
class StorageFailure:
    """A non-fatal filesystem failure observed while touching a cookie file."""

    operation: str
    path: Path
    error: BaseException

    def describe(self) -> str:
        return f"Failed to {self.operation} cookie at {self.path}. Error: {self.error}"


DiagnosticsHandler = Callable[[StorageFailure], None]


def log_failure(failure: StorageFailure) -> None:
    logger.warning(failure.describe())
