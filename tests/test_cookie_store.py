from datetime import datetime, timezone

import pytest

from asccookie_api.services import Cookie, StorageFailure
from asccookie_api.services.namespace import DomainPartition


def _partition_files(storage, domain="example.com"):
    partition = DomainPartition.resolve(storage.storage_path, domain)
    return sorted(p.name for p in partition.glob("*.cookiedata"))


@pytest.mark.unit
class Describe_store:
    def test_should_round_trip_every_attribute(self, make_storage, make_cookie):
        """A stored cookie comes back unchanged."""
        storage = make_storage()
        cookie = make_cookie(secure=True, http_only=True, path="/auth", attributes={"SameSite": "Lax"})
        storage.store(cookie)
        assert storage.cookies("https://example.com/anything") == [cookie]

    def test_should_name_file_with_timestamp_and_suffix(self, make_storage, make_cookie, clock):
        """Filenames embed the cookie name, creation millis and a 4-digit suffix."""
        storage = make_storage()
        path = storage.store(make_cookie())
        name, created, rest = path.name.split("_-_")
        suffix, extension = rest.split(".")
        assert name == "session"
        assert int(created) == int(clock.now * 1000)
        assert 1000 <= int(suffix) <= 9999
        assert extension == "cookiedata"
        assert path.parent.name == "storage_example.com"

    def test_should_keep_single_file_when_overwriting(self, make_storage, make_cookie, clock):
        """Storing the same name twice leaves one file holding the newest value."""
        storage = make_storage()
        storage.store(make_cookie(value="v1"))
        clock.advance(1)
        storage.store(make_cookie(value="v2"))
        assert len(_partition_files(storage)) == 1
        assert [c.value for c in storage.cookies("https://example.com")] == ["v2"]

    def test_should_evict_files_sharing_name_prefix(self, make_storage, make_cookie):
        """Eviction is a raw filename prefix match: storing 'a' removes 'ab'."""
        storage = make_storage()
        storage.store(make_cookie(name="ab", value="long"))
        storage.store(make_cookie(name="a", value="short"))
        assert [c.name for c in storage.cookies("https://example.com")] == ["a"]

    def test_should_prefer_url_host_over_cookie_domain(self, make_storage, make_cookie):
        """The partition follows the URL host when one is given."""
        storage = make_storage()
        storage.store(make_cookie(domain=".apple.com"), url="https://idmsa.apple.com/appleauth")
        assert len(storage.cookies("https://idmsa.apple.com")) == 1
        assert _partition_files(storage, ".apple.com") == []

    def test_should_fall_back_to_default_partition(self, make_storage, make_cookie):
        """A cookie without domain or URL lands in storage_default."""
        storage = make_storage()
        path = storage.store(make_cookie(domain=""))
        assert path.parent.name == "storage_default"

    def test_should_store_all_in_input_order(self, make_storage, make_cookie):
        """store_all applies store to each cookie, later duplicates win."""
        storage = make_storage()
        storage.store_all([make_cookie(value="1"), make_cookie(name="other"), make_cookie(value="2")])
        values = {c.name: c.value for c in storage.cookies("https://example.com")}
        assert values == {"session": "2", "other": "abc"}

    def test_should_not_leave_temporary_files(self, make_storage, make_cookie):
        """Atomic writes leave only the final cookie file behind."""
        storage = make_storage()
        path = storage.store(make_cookie())
        assert [p.name for p in path.parent.iterdir()] == [path.name]

    def test_should_report_failures_without_raising(self, make_storage, make_cookie):
        """Filesystem errors go to the diagnostics callback."""
        failures = []
        storage = make_storage(diagnostics=failures.append)
        storage.storage_path.mkdir(parents=True)
        (storage.storage_path / "storage_example.com").write_text("not a directory")

        assert storage.store(make_cookie()) is None
        assert len(failures) == 1
        assert isinstance(failures[0], StorageFailure)
        assert failures[0].operation == "store"

    def test_should_keep_path_like_names_inside_partition(self, make_storage, make_cookie, storage_root):
        """Names with separators or dots are encoded into a single filename."""
        storage = make_storage()
        partition = DomainPartition.resolve(storage.storage_path, "example.com")
        for name in ("..", "../../../escaped", ".hidden", "a\\b"):
            path = storage.store(make_cookie(name=name))
            assert path.parent == partition
            assert storage_root.resolve() in path.resolve().parents
            assert not path.name.startswith(".")
        names = sorted(c.name for c in storage.cookies("https://example.com"))
        assert names == sorted(["../../../escaped", "..", ".hidden", "a\\b"])

        storage.delete(make_cookie(name="../../../escaped"))
        assert "../../../escaped" not in [c.name for c in storage.all_cookies()]

    def test_should_keep_path_like_domains_inside_namespace(self, make_storage, make_cookie):
        storage = make_storage()
        path = storage.store(make_cookie(domain="../../elsewhere"))
        assert path.parent.parent == storage.storage_path
        assert [c.domain for c in storage.all_cookies()] == ["../../elsewhere"]

    def test_should_continue_batch_after_failed_write(self, make_storage, make_cookie):
        """One failing cookie does not stop the rest of store_all."""
        failures = []
        storage = make_storage(diagnostics=failures.append)
        storage.storage_path.mkdir(parents=True)
        (storage.storage_path / "storage_blocked.example").write_text("not a directory")

        storage.store_all([
            make_cookie(name="first", domain="blocked.example"),
            make_cookie(name="second"),
            make_cookie(name="third", domain="other.example"),
        ])

        assert [f.operation for f in failures] == ["store"]
        assert sorted(c.name for c in storage.all_cookies()) == ["second", "third"]

    def test_should_report_unserializable_cookie(self, make_storage, make_cookie):
        failures = []
        storage = make_storage(diagnostics=failures.append)
        assert storage.store(make_cookie(attributes={"handle": object()})) is None
        assert [f.operation for f in failures] == ["encode"]
        assert storage.all_cookies() == []


@pytest.mark.unit
class Describe_retrieval:
    def test_should_return_empty_for_unknown_host(self, make_storage):
        """A missing partition reads as empty and is not created."""
        storage = make_storage()
        assert storage.cookies("https://nowhere.example") == []
        assert not storage.storage_path.exists()

    def test_should_isolate_namespaces(self, make_storage, make_cookie):
        """Different identifiers never see each other's cookies."""
        first, second = make_storage("acct1"), make_storage("acct2")
        first.store(make_cookie(value="same"))
        second.store(make_cookie(value="same"))
        first.delete(make_cookie())
        assert first.cookies("https://example.com") == []
        assert [c.value for c in second.cookies("https://example.com")] == ["same"]
        assert first.storage_path != second.storage_path

    def test_should_prune_expired_cookies(self, make_storage, make_cookie, clock):
        """Expired cookies are removed from disk on read."""
        storage = make_storage()
        path = storage.store(make_cookie(expires=int(clock.now) - 1))
        assert storage.cookies("https://example.com") == []
        assert not path.exists()

    def test_should_expire_at_exact_boundary(self, make_storage, make_cookie, clock):
        """A cookie expiring exactly now is already gone."""
        storage = make_storage()
        storage.store(make_cookie(expires=int(clock.now) + 10))
        clock.advance(10)
        assert storage.all_cookies() == []

    def test_should_keep_session_cookies_without_expiry(self, make_storage, make_cookie, clock):
        storage = make_storage()
        storage.store(make_cookie(expires=None))
        clock.advance(10 ** 6)
        assert len(storage.all_cookies()) == 1

    def test_should_skip_corrupt_files_and_leave_them(self, make_storage, make_cookie):
        """Undecodable files are omitted but not deleted."""
        storage = make_storage()
        path = storage.store(make_cookie())
        corrupt = path.parent / "broken_-_1_-_1000.cookiedata"
        corrupt.write_bytes(b"\x00garbage")
        assert [c.name for c in storage.cookies("https://example.com")] == ["session"]
        assert corrupt.exists()

    def test_should_collect_all_domains(self, make_storage, make_cookie):
        storage = make_storage()
        storage.store(make_cookie(domain="a.example"))
        storage.store(make_cookie(domain="b.example"))
        assert sorted(c.domain for c in storage.all_cookies()) == ["a.example", "b.example"]

    def test_should_sort_by_multiple_keys(self, make_storage, make_cookie):
        """sorted_cookies sorts stably with the first key most significant."""
        storage = make_storage()
        storage.store(make_cookie(name="b", domain="one.example"))
        storage.store(make_cookie(name="a", domain="two.example"))
        storage.store(make_cookie(name="c", domain="one.example"))
        ordered = storage.sorted_cookies("domain", "-name")
        assert [(c.domain, c.name) for c in ordered] == [
            ("one.example", "c"),
            ("one.example", "b"),
            ("two.example", "a"),
        ]

    def test_should_sort_with_callable_and_missing_values(self, make_storage, make_cookie):
        storage = make_storage()
        storage.store(make_cookie(name="x", expires=None))
        storage.store(make_cookie(name="y"))
        assert [c.name for c in storage.sorted_cookies("expires")] == ["y", "x"]
        assert [c.name for c in storage.sorted_cookies(lambda c: c.name)] == ["x", "y"]


@pytest.mark.unit
class Describe_removal:
    def test_should_delete_current_file_for_name(self, make_storage, make_cookie):
        storage = make_storage()
        cookie = make_cookie()
        storage.store(cookie)
        storage.store(make_cookie(name="other"))
        storage.delete(cookie)
        assert [c.name for c in storage.cookies("https://example.com")] == ["other"]

    def test_should_treat_missing_file_as_success(self, make_storage, make_cookie):
        failures = []
        storage = make_storage(diagnostics=failures.append)
        storage.delete(make_cookie())
        assert failures == []

    def test_should_remove_cookies_created_after_cutoff(self, make_storage, make_cookie, clock):
        """Only cookies created strictly after the cutoff are removed."""
        storage = make_storage()
        storage.store(make_cookie(name="first"))
        clock.advance(1)
        t2 = int(clock.now * 1000)
        storage.store(make_cookie(name="second"))
        clock.advance(1)
        storage.store(make_cookie(name="third"))

        assert storage.remove_cookies_since(t2) == 1
        assert sorted(c.name for c in storage.all_cookies()) == ["first", "second"]

    def test_should_accept_datetime_cutoff(self, make_storage, make_cookie, clock):
        storage = make_storage()
        storage.store(make_cookie(name="old"))
        cutoff = datetime.fromtimestamp(clock.now, tz=timezone.utc)
        clock.advance(5)
        storage.store(make_cookie(name="new"))
        storage.remove_cookies_since(cutoff)
        assert [c.name for c in storage.all_cookies()] == ["old"]


@pytest.mark.unit
def test_end_to_end_store_read_delete(make_storage, clock):
    storage = make_storage("acct1")
    cookie = Cookie(name="session", value="abc", domain="example.com", expires=int(clock.now) + 3600)
    storage.store(cookie)
    assert [(c.name, c.value) for c in storage.cookies("https://example.com")] == [("session", "abc")]
    storage.delete(cookie)
    assert storage.cookies("https://example.com") == []
