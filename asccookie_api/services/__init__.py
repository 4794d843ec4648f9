"""Service-layer exports."""
from .bulk import clear_cookies
from .codec import CookieFileCodec
from .cookie_service import CookieService, CookieServiceConfig
from .cookie_store import CookieStore, PersistentCookieJar, UniqueCookieStorage
from .errors import CodecError, CookieStorageError, InitializationError, StorageFailure
from .http_client import HTTPClient
from .machine import Machine
from .models import Cookie

__all__ = [
    "CodecError",
    "Cookie",
    "CookieFileCodec",
    "CookieService",
    "CookieServiceConfig",
    "CookieStorageError",
    "CookieStore",
    "HTTPClient",
    "InitializationError",
    "Machine",
    "PersistentCookieJar",
    "StorageFailure",
    "UniqueCookieStorage",
    "clear_cookies",
]
