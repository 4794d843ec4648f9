"""Domain models for the cookie storage layer."""
from __future__ import annotations

from dataclasses import dataclass, field
from http.cookiejar import Cookie as JarCookie
from typing import Any, Dict, Optional


@dataclass(slots=True)
class Cookie:
    name: str
    value: str
    domain: str = ""
    path: str = "/"
    expires: Optional[int] = None
    secure: bool = False
    http_only: bool = False
    version: int = 0
    port: Optional[str] = None
    comment: Optional[str] = None
    comment_url: Optional[str] = None
    discard: bool = False
    attributes: Dict[str, Any] = field(default_factory=dict)

    def is_expired(self, now: float) -> bool:
        return self.expires is not None and self.expires <= now

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Cookie":
        expires = data.get("expires")
        return cls(
            name=str(data.get("name", "")),
            value=str(data.get("value", "")),
            domain=data.get("domain", "") or "",
            path=data.get("path", "/") or "/",
            expires=int(expires) if expires is not None else None,
            secure=bool(data.get("secure", False)),
            http_only=bool(data.get("httpOnly", False)),
            version=int(data.get("version", 0) or 0),
            port=data.get("port"),
            comment=data.get("comment"),
            comment_url=data.get("commentURL"),
            discard=bool(data.get("discard", False)),
            attributes=dict(data.get("attributes") or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "name": self.name,
            "value": self.value,
            "domain": self.domain,
            "path": self.path,
            "expires": self.expires,
            "secure": self.secure,
            "httpOnly": self.http_only,
            "version": self.version,
            "port": self.port,
            "comment": self.comment,
            "commentURL": self.comment_url,
            "discard": self.discard,
            "attributes": dict(self.attributes),
        }
        # Property lists have no null.
        return {key: value for key, value in payload.items() if value is not None}

    @classmethod
    def from_cookiejar(cls, cookie: JarCookie) -> "Cookie":
        rest = dict(getattr(cookie, "_rest", {}) or {})
        http_only = False
        for key in list(rest):
            if key.lower() == "httponly":
                rest.pop(key)
                http_only = True
        return cls(
            name=cookie.name,
            value=cookie.value or "",
            domain=cookie.domain,
            path=cookie.path,
            expires=int(cookie.expires) if cookie.expires is not None else None,
            secure=bool(cookie.secure),
            http_only=http_only,
            version=cookie.version or 0,
            port=cookie.port,
            comment=cookie.comment,
            comment_url=cookie.comment_url,
            discard=bool(cookie.discard),
            attributes={str(k): "" if v is None else v for k, v in rest.items()},
        )

    def to_cookiejar(self) -> JarCookie:
        rest: Dict[str, Any] = dict(self.attributes)
        if self.http_only:
            rest["HttpOnly"] = None
        return JarCookie(
            version=self.version,
            name=self.name,
            value=self.value,
            port=self.port,
            port_specified=self.port is not None,
            domain=self.domain,
            domain_specified=bool(self.domain),
            domain_initial_dot=self.domain.startswith("."),
            path=self.path,
            path_specified=bool(self.path),
            secure=self.secure,
            expires=self.expires,
            discard=self.discard,
            comment=self.comment,
            comment_url=self.comment_url,
            rest=rest,
        )
