from pathlib import Path

import pytest

from asccookie_api.factory import create_app
from asccookie_api.services import Cookie, UniqueCookieStorage


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def storage_root(tmp_path) -> Path:
    return tmp_path / "GKUniqueCookieStorage"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_storage(storage_root, clock):
    def _factory(identifier: str = "acct1", **kwargs) -> UniqueCookieStorage:
        kwargs.setdefault("clock", clock)
        return UniqueCookieStorage(identifier, storage_root, **kwargs)
    return _factory


@pytest.fixture
def make_cookie(clock):
    def _make(name: str = "session", value: str = "abc", domain: str = "example.com", **kwargs) -> Cookie:
        kwargs.setdefault("expires", int(clock.now) + 3600)
        return Cookie(name=name, value=value, domain=domain, **kwargs)
    return _make


@pytest.fixture
def app(storage_root):
    return create_app({"STORAGE_ROOT": str(storage_root), "TESTING": True})


@pytest.fixture
def client(app):
    return app.test_client()
