"""Machine-specific helpers used to locate the cookie storage root."""
from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Optional

from . import constants
from .errors import InitializationError


class Machine:
    def home_directory(self) -> str:
        return str(Path.home())

    def application_support_directory(self) -> Path:
        if sys.platform == "darwin":
            return Path(self.home_directory()) / "Library" / "Application Support"
        if sys.platform.startswith("win"):
            appdata = os.getenv("APPDATA")
            if appdata:
                return Path(appdata)
            return Path(self.home_directory()) / "AppData" / "Roaming"
        xdg_data = os.getenv("XDG_DATA_HOME")
        if xdg_data:
            return Path(xdg_data)
        return Path(self.home_directory()) / ".local" / "share"

    def storage_root(self, override: Optional[str] = None) -> Path:
        """Base directory holding every namespace.

        Raises :class:`InitializationError` when no home directory can be
        determined, since no jar can work without it.
        """
        if override:
            return Path(override).expanduser()
        try:
            base = self.application_support_directory()
        except (RuntimeError, KeyError, OSError) as exc:
            raise InitializationError("Can't create cookie storage", metadata={"error": str(exc)}) from exc
        return base / constants.STORAGE_DIRECTORY_NAME
