"""Serialization of a single cookie to and from its on-disk file."""
from __future__ import annotations

import plistlib
from typing import Optional, Tuple
from urllib.parse import unquote
from xml.parsers.expat import ExpatError

from . import constants
from .errors import CodecError
from .models import Cookie
from .namespace import path_component


class CookieFileCodec:
    """Encodes cookies as XML property lists.

    Filenames carry the cookie name and creation time:
    ``<name>_-_<epochMillis>_-_<suffix>.cookiedata``. The name is
    percent-encoded so it never leaves its partition directory.
    """

    extension = constants.COOKIE_FILE_EXTENSION
    delimiter = constants.COOKIE_FILENAME_DELIMITER

    def encode(self, cookie: Cookie) -> bytes:
        try:
            return plistlib.dumps(cookie.to_dict(), fmt=plistlib.FMT_XML, sort_keys=True)
        except (TypeError, OverflowError) as exc:
            raise CodecError(f"cookie {cookie.name!r} cannot be serialized") from exc

    def decode(self, data: bytes) -> Cookie:
        try:
            payload = plistlib.loads(data)
        except (plistlib.InvalidFileException, ExpatError, ValueError, TypeError, KeyError, IndexError) as exc:
            raise CodecError("malformed cookie data") from exc
        if not isinstance(payload, dict) or not payload.get("name"):
            raise CodecError("cookie data is missing a name", metadata=payload)
        try:
            return Cookie.from_dict(payload)
        except (TypeError, ValueError) as exc:
            raise CodecError("invalid cookie attributes", metadata=payload) from exc

    def encode_name(self, name: str) -> str:
        encoded = path_component(name)
        if encoded.startswith("."):
            encoded = "%2E" + encoded[1:]
        return encoded

    def filename_for(self, name: str, created_millis: int, suffix: int) -> str:
        return f"{self.encode_name(name)}{self.delimiter}{created_millis}{self.delimiter}{suffix}.{self.extension}"

    def is_cookie_file(self, filename: str) -> bool:
        return not filename.startswith(".") and filename.endswith(f".{self.extension}")

    def parse_filename(self, filename: str) -> Optional[Tuple[str, int]]:
        """Returns ``(cookie_name, created_millis)`` or ``None`` when unparsable."""
        stem = filename[: -(len(self.extension) + 1)] if self.is_cookie_file(filename) else filename
        parts = stem.rsplit(self.delimiter, 2)
        if len(parts) != 3:
            return None
        try:
            return unquote(parts[0]), int(parts[1])
        except ValueError:
            return None
