"""Administrative clearing of every cookie namespace under a storage root."""
from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Optional, Union

from . import constants
from .errors import DiagnosticsHandler, StorageFailure, log_failure
from .machine import Machine

logger = logging.getLogger(__name__)


def clear_cookies(
    root: Optional[Union[str, Path]] = None,
    including_protected: bool = False,
    *,
    machine: Optional[Machine] = None,
    protected_prefix: str = constants.PROTECTED_COOKIE_PREFIX,
    diagnostics: Optional[DiagnosticsHandler] = None,
) -> int:
    """Deletes cookie files of every account stored under ``root``.

    Files whose name starts with ``protected_prefix`` survive unless
    ``including_protected`` is set, in which case whole domain partitions
    are removed. Returns the number of cookie files removed.
    """
    base = Path(root) if root else (machine or Machine()).storage_root()
    report = diagnostics or log_failure
    if not base.is_dir():
        return 0

    removed = 0
    for namespace in _children(base, report):
        if not namespace.is_dir():
            continue
        for partition in _children(namespace, report):
            if not partition.is_dir():
                continue
            files = [entry for entry in _children(partition, report) if entry.is_file()]
            if including_protected:
                try:
                    shutil.rmtree(partition)
                except OSError as exc:
                    report(StorageFailure("remove", partition, exc))
                    continue
                removed += len(files)
                continue
            for entry in files:
                if entry.name.startswith(protected_prefix):
                    continue
                try:
                    entry.unlink(missing_ok=True)
                except OSError as exc:
                    report(StorageFailure("remove", entry, exc))
                    continue
                removed += 1

    logger.debug("Cleared %d cookie files under %s", removed, base)
    return removed


def _children(directory: Path, report: DiagnosticsHandler):
    try:
        return sorted(directory.iterdir())
    except OSError as exc:
        report(StorageFailure("enumerate", directory, exc))
        return []
