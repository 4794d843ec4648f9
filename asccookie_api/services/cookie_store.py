"""Per-account persistent cookie storage compatible with ``requests`` sessions."""
from __future__ import annotations

import logging
import os
import random
import tempfile
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

from requests.cookies import RequestsCookieJar

from . import constants
from .codec import CookieFileCodec
from .errors import CodecError, DiagnosticsHandler, StorageFailure, log_failure
from .machine import Machine
from .models import Cookie
from .namespace import DomainPartition, IdentifierNamespace
from .sweeper import ExpirationSweeper

logger = logging.getLogger(__name__)

SortKey = Union[str, Callable[[Cookie], Any]]


class UniqueCookieStorage:
    """Cookie store isolated to a single account identifier.

    Every cookie lives in its own file under
    ``<root>/<hmac(identifier)>/storage_<domain>/``. Filesystem errors after
    construction are reported to ``diagnostics`` (logged by default) and never
    raised, so every operation is best-effort.

    Two behaviours are kept deliberately literal:

    * :meth:`store` evicts every file whose name *starts with* the cookie
      name, so storing ``"a"`` also removes a stored ``"ab"``.
    * :meth:`remove_cookies_since` removes cookies created *after* the
      cutoff, not before it.
    """

    def __init__(
        self,
        identifier: str,
        root: Optional[Union[str, Path]] = None,
        *,
        machine: Optional[Machine] = None,
        hash_key: str = constants.NAMESPACE_HASH_KEY,
        codec: Optional[CookieFileCodec] = None,
        clock: Callable[[], float] = time.time,
        rng: Optional[random.Random] = None,
        diagnostics: Optional[DiagnosticsHandler] = None,
    ) -> None:
        base = Path(root) if root else (machine or Machine()).storage_root()
        self.identifier = identifier
        self.namespace = IdentifierNamespace(base, hash_key)
        self.storage_path = self.namespace.resolve(identifier)
        self._codec = codec or CookieFileCodec()
        self._clock = clock
        self._rng = rng or random.Random()
        self._diagnostics = diagnostics or log_failure
        self._sweeper = ExpirationSweeper(self._codec, clock=clock, diagnostics=self._diagnostics)

    # ------------------------------------------------------------------
    # Storing
    # ------------------------------------------------------------------

    def store(self, cookie: Cookie, url: Optional[str] = None) -> Optional[Path]:
        domain = DomainPartition.domain_for(cookie, url)
        partition = DomainPartition.resolve(self.storage_path, domain)
        cookie_path = partition / self._filename_for(cookie)

        try:
            data = self._codec.encode(cookie)
        except CodecError as exc:
            self._report("encode", cookie_path, exc)
            return None

        try:
            DomainPartition.ensure(partition)
        except OSError as exc:
            self._report("store", partition, exc)
            return None

        prefix = self._codec.encode_name(cookie.name)
        for existing in self._cookie_files(partition):
            if existing.name.startswith(prefix):
                self._remove(existing)

        try:
            self._write_atomically(cookie_path, data)
        except OSError as exc:
            self._report("store", cookie_path, exc)
            return None
        return cookie_path

    set_cookie = store

    def store_all(self, cookies: Iterable[Cookie], url: Optional[str] = None) -> None:
        for cookie in cookies:
            self.store(cookie, url)

    # ------------------------------------------------------------------
    # Retrieval
    # ------------------------------------------------------------------

    def cookies(self, url: str) -> List[Cookie]:
        """Cookies stored for the host of ``url``, in no particular order."""
        partition = DomainPartition.resolve(self.storage_path, DomainPartition.domain_for(url=url))
        return self._load(partition)

    def all_cookies(self) -> List[Cookie]:
        return self._load(self.storage_path)

    def entries(self) -> List[Tuple[Path, Cookie]]:
        """Live cookies of every partition paired with the file holding them."""
        return self._load_entries(self.storage_path)

    def sorted_cookies(self, *keys: SortKey) -> List[Cookie]:
        """All cookies ordered by ``keys``; ``"-attr"`` sorts descending."""
        return sort_cookies(self.all_cookies(), *keys)

    # ------------------------------------------------------------------
    # Removal
    # ------------------------------------------------------------------

    def delete(self, cookie: Cookie, url: Optional[str] = None) -> None:
        partition = DomainPartition.resolve(self.storage_path, DomainPartition.domain_for(cookie, url))
        self.delete_in(partition, cookie.name)

    delete_cookie = delete

    def delete_in(self, partition: Path, name: str) -> None:
        """Removes every file for cookie ``name`` inside ``partition``."""
        for path in self._cookie_files(partition):
            parsed = self._codec.parse_filename(path.name)
            if parsed is not None and parsed[0] == name:
                self._remove(path)

    def remove_cookies_since(self, since: Union[datetime, int, float]) -> int:
        """Removes cookies created strictly after ``since``.

        ``since`` is a datetime or epoch milliseconds. Returns the number of
        files removed.
        """
        cutoff = int(since.timestamp() * 1000) if isinstance(since, datetime) else int(since)
        removed = 0
        for path in self._cookie_files(self.storage_path):
            parsed = self._codec.parse_filename(path.name)
            if parsed is None:
                logger.warning("Can't parse cookie timestamp from %s", path)
                continue
            if parsed[1] > cutoff and self._remove(path):
                removed += 1
        return removed

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _load(self, directory: Path) -> List[Cookie]:
        return [cookie for _, cookie in self._load_entries(directory)]

    def _load_entries(self, directory: Path) -> List[Tuple[Path, Cookie]]:
        files = self._sweeper.prune(self._cookie_files(directory))
        entries: List[Tuple[Path, Cookie]] = []
        for path in files:
            try:
                entries.append((path, self._codec.decode(path.read_bytes())))
            except CodecError as exc:
                self._report("decode", path, exc)
            except OSError as exc:
                self._report("read", path, exc)
        return entries

    def _cookie_files(self, directory: Path) -> List[Path]:
        if not directory.is_dir():
            return []
        files: List[Path] = []
        try:
            for path in directory.rglob(f"*.{self._codec.extension}"):
                if self._codec.is_cookie_file(path.name) and path.is_file():
                    files.append(path)
        except OSError as exc:
            self._report("enumerate", directory, exc)
        return files

    def _filename_for(self, cookie: Cookie) -> str:
        created = int(self._clock() * 1000)
        suffix = self._rng.randint(constants.RANDOM_SUFFIX_MIN, constants.RANDOM_SUFFIX_MAX)
        return self._codec.filename_for(cookie.name, created, suffix)

    def _remove(self, path: Path) -> bool:
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            self._report("remove", path, exc)
            return False
        logger.debug("Removed cookie file %s", path)
        return True

    def _write_atomically(self, path: Path, data: bytes) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _report(self, operation: str, path: Path, error: BaseException) -> None:
        self._diagnostics(StorageFailure(operation, path, error))


def sort_cookies(cookies: Iterable[Cookie], *keys: SortKey) -> List[Cookie]:
    """Stable multi-key sort; the first key is the most significant."""
    ordered = list(cookies)
    for key in reversed(keys):
        key_func, reverse = _sort_key(key)
        ordered.sort(key=key_func, reverse=reverse)
    return ordered


def _sort_key(key: SortKey) -> Tuple[Callable[[Cookie], Any], bool]:
    if callable(key):
        return key, False
    reverse = key.startswith("-")
    attribute = key.lstrip("-")

    def key_func(cookie: Cookie) -> Tuple[bool, Any]:
        value = getattr(cookie, attribute)
        return value is None, value

    return key_func, reverse


class PersistentCookieJar(RequestsCookieJar):
    """RequestsCookieJar mirrored into a :class:`UniqueCookieStorage`.

    Loads every live cookie of the account on creation; :meth:`save` writes
    back only cookies that changed and drops the ones that disappeared from
    the partition their file was found in.
    """

    def __init__(self, storage: UniqueCookieStorage) -> None:
        super().__init__()
        self._storage = storage
        self._persisted: Dict[Tuple[str, str, str], Tuple[Cookie, Path]] = {}
        self.load()

    def load(self) -> None:
        for path, cookie in self._storage.entries():
            self.set_cookie(cookie.to_cookiejar())
            self._persisted[(cookie.domain, cookie.path, cookie.name)] = (cookie, path)

    def save(self) -> None:
        current = {(c.domain, c.path, c.name): Cookie.from_cookiejar(c) for c in list(self)}

        persisted: Dict[Tuple[str, str, str], Tuple[Cookie, Path]] = {}
        for key, cookie in current.items():
            previous = self._persisted.get(key)
            if previous is not None and previous[0] == cookie:
                persisted[key] = previous
                continue
            path = self._storage.store(cookie)
            if path is None:
                if previous is not None:
                    persisted[key] = previous
                continue
            if previous is not None and previous[1].parent != path.parent:
                self._storage.delete_in(previous[1].parent, cookie.name)
            persisted[key] = (cookie, path)

        live = {(domain, name) for domain, _, name in current}
        for (domain, _, name), (_, path) in self._persisted.items():
            if (domain, name) not in live:
                self._storage.delete_in(path.parent, name)

        self._persisted = persisted


class CookieStore:
    """Wrapper responsible for attaching and persisting session cookies."""

    def __init__(self, storage: UniqueCookieStorage) -> None:
        self.storage = storage
        self._jar: Optional[PersistentCookieJar] = None

    @property
    def jar(self) -> PersistentCookieJar:
        if self._jar is None:
            self._jar = PersistentCookieJar(self.storage)
        return self._jar

    def attach_to(self, session) -> None:
        session.cookies = self.jar

    def save(self) -> None:
        self.jar.save()
