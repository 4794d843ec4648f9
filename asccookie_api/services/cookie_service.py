"""Account-level operations over the per-identifier cookie stores."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence, Union

from . import constants
from .bulk import clear_cookies
from .cookie_store import CookieStore, UniqueCookieStorage, sort_cookies
from .errors import CookieStorageError
from .http_client import HTTPClient
from .models import Cookie


@dataclass(slots=True)
class CookieServiceConfig:
    root: Path
    hash_key: str = constants.NAMESPACE_HASH_KEY
    verify: bool | str = True


class CookieService:
    """Entry point used by the REST layer and by API clients."""

    def __init__(self, config: CookieServiceConfig) -> None:
        self._root = Path(config.root)
        self._hash_key = config.hash_key
        self._verify = config.verify

    @property
    def root(self) -> Path:
        return self._root

    def storage(self, identifier: str) -> UniqueCookieStorage:
        if not identifier:
            raise CookieStorageError("account identifier is required")
        return UniqueCookieStorage(identifier, self._root, hash_key=self._hash_key)

    def http_client(self, identifier: str, session=None) -> HTTPClient:
        return HTTPClient(CookieStore(self.storage(identifier)), verify=self._verify, session=session)

    # ------------------------------------------------------------------
    # Cookies
    # ------------------------------------------------------------------

    def list_cookies(
        self,
        identifier: str,
        url: Optional[str] = None,
        sort: Sequence[str] = (),
    ) -> List[Cookie]:
        storage = self.storage(identifier)
        cookies = storage.cookies(url) if url else storage.all_cookies()
        if sort:
            _validate_sort_keys(sort)
            cookies = sort_cookies(cookies, *sort)
        return cookies

    def store_cookie(self, identifier: str, cookie: Cookie, url: Optional[str] = None) -> None:
        if not cookie.name:
            raise CookieStorageError("cookie name is required")
        self.storage(identifier).store(cookie, url)

    def delete_cookie(self, identifier: str, name: str, domain: str = "", url: Optional[str] = None) -> None:
        self.storage(identifier).delete(Cookie(name=name, value="", domain=domain), url)

    def remove_cookies_since(self, identifier: str, since: Union[datetime, int]) -> int:
        return self.storage(identifier).remove_cookies_since(since)

    def clear_all(self, including_protected: bool = False) -> int:
        return clear_cookies(self._root, including_protected)


_SORTABLE = {"name", "value", "domain", "path", "expires", "secure", "http_only", "version"}


def _validate_sort_keys(keys: Sequence[str]) -> None:
    for key in keys:
        if key.lstrip("-") not in _SORTABLE:
            raise CookieStorageError(f"unsupported sort key: {key}", metadata={"sortable": sorted(_SORTABLE)})
