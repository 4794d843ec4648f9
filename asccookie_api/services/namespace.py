"""Path resolution for per-identifier namespaces and per-domain partitions."""
from __future__ import annotations

import hashlib
import hmac
from pathlib import Path
from typing import Optional
from urllib.parse import quote, urlsplit

from . import constants
from .models import Cookie


# RFC 6265 token characters minus "/" and "%"; anything else is percent-encoded.
_SAFE_CHARACTERS = "!#$&'*+-.^_`|~"


def path_component(text: str) -> str:
    """Percent-encodes ``text`` so it cannot span more than one path segment."""
    return quote(text, safe=_SAFE_CHARACTERS)


def hmac_sha256_hex(key: str, message: str) -> str:
    return hmac.new(key.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).hexdigest()


class IdentifierNamespace:
    """Maps an opaque account identifier to its obfuscated storage directory.

    The directory name is the hex HMAC-SHA256 of the identifier. It keeps
    plaintext account ids out of the filesystem and keeps namespaces apart;
    it does not protect the cookies from anyone who can read the root.
    """

    def __init__(self, root: Path, key: str = constants.NAMESPACE_HASH_KEY) -> None:
        self.root = Path(root)
        self._key = key

    def directory_name(self, identifier: str) -> str:
        return hmac_sha256_hex(self._key, identifier)

    def resolve(self, identifier: str) -> Path:
        return self.root / self.directory_name(identifier)


class DomainPartition:
    """Resolves ``storage_<domain>`` directories inside a namespace."""

    @staticmethod
    def host_of(url: Optional[str]) -> Optional[str]:
        if not url:
            return None
        return urlsplit(url).hostname or None

    @classmethod
    def domain_for(cls, cookie: Optional[Cookie] = None, url: Optional[str] = None) -> str:
        host = cls.host_of(url)
        if host:
            return host
        if cookie is not None and cookie.domain:
            return cookie.domain
        return constants.DEFAULT_DOMAIN

    @staticmethod
    def resolve(namespace_root: Path, domain: str) -> Path:
        name = path_component(domain or constants.DEFAULT_DOMAIN)
        return Path(namespace_root) / f"{constants.PARTITION_PREFIX}{name}"

    @staticmethod
    def ensure(partition: Path) -> Path:
        partition.mkdir(parents=True, exist_ok=True)
        return partition
