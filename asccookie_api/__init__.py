"""Per-account persistent cookie storage for App Store Connect sessions."""
import logging

from .services import (
    Cookie,
    CookieStore,
    UniqueCookieStorage,
    clear_cookies,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = ["Cookie", "CookieStore", "UniqueCookieStorage", "clear_cookies"]
