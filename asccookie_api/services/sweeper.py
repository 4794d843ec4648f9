"""Expiration-driven pruning of cookie files."""
from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from .codec import CookieFileCodec
from .errors import CodecError, DiagnosticsHandler, StorageFailure, log_failure

logger = logging.getLogger(__name__)


class ExpirationSweeper:
    """Deletes expired cookie files before they are handed out.

    Files that cannot be decoded are dropped from the result but stay on
    disk.
    """

    def __init__(
        self,
        codec: CookieFileCodec,
        clock: Callable[[], float] = time.time,
        diagnostics: Optional[DiagnosticsHandler] = None,
    ) -> None:
        self._codec = codec
        self._clock = clock
        self._diagnostics = diagnostics or log_failure

    def prune(self, paths: Iterable[Path]) -> List[Path]:
        now = self._clock()
        surviving: List[Path] = []
        for path in paths:
            try:
                cookie = self._codec.decode(path.read_bytes())
            except CodecError as exc:
                self._diagnostics(StorageFailure("decode", path, exc))
                continue
            except OSError as exc:
                self._diagnostics(StorageFailure("read", path, exc))
                continue

            if cookie.is_expired(now):
                logger.debug("Cookie %s at %s expired", cookie.name, path)
                try:
                    path.unlink(missing_ok=True)
                except OSError as exc:
                    self._diagnostics(StorageFailure("remove", path, exc))
                continue
            surviving.append(path)
        return surviving
