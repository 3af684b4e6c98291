"""Tests for the in-memory session store."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from gmail_oauth_app.auth.session import SessionRecord
from gmail_oauth_app.auth.storage import InMemorySessionStore, SessionStore


def _expired_record() -> SessionRecord:
    return SessionRecord(
        state="old", expires_at=datetime.now(UTC) - timedelta(seconds=1)
    )


class TestInMemorySessionStore:
    """Tests for get/set/delete and expiry."""

    def test_implements_session_store(self, store) -> None:
        assert isinstance(store, SessionStore)

    def test_set_then_get(self, store) -> None:
        record = SessionRecord(state="abc")
        store.set(record)

        loaded = store.get(record.id)
        assert loaded is not None
        assert loaded.id == record.id
        assert loaded.state == "abc"

    def test_get_unknown_or_empty_id(self, store) -> None:
        assert store.get("missing") is None
        assert store.get("") is None

    def test_get_returns_a_copy(self, store, token_set) -> None:
        """Changes are only visible to others after an explicit set()."""
        record = SessionRecord(state="abc")
        store.set(record)

        loaded = store.get(record.id)
        loaded.tokens = token_set
        assert not store.get(record.id).is_authenticated

        store.set(loaded)
        assert store.get(record.id).is_authenticated

    def test_set_stores_a_copy(self, store, token_set) -> None:
        record = SessionRecord(state="abc")
        store.set(record)

        record.tokens = token_set
        assert not store.get(record.id).is_authenticated

    def test_set_replaces_existing_record(self, store) -> None:
        record = SessionRecord(state="first")
        store.set(record)
        store.set(record.model_copy(update={"state": "second"}))

        assert store.get(record.id).state == "second"
        assert len(store) == 1

    def test_update_existing_record(self, store) -> None:
        record = SessionRecord(state="first")
        store.set(record)

        assert store.update(record.model_copy(update={"state": "second"})) is True
        assert store.get(record.id).state == "second"

    def test_update_does_not_recreate_deleted_record(self, store, token_set):
        record = SessionRecord(state="abc", tokens=token_set)
        store.set(record)
        store.delete(record.id)

        assert store.update(record) is False
        assert store.get(record.id) is None
        assert len(store) == 0

    def test_update_skips_expired_record(self, store) -> None:
        record = _expired_record()
        store.set(record)

        assert store.update(record) is False

    def test_delete(self, store) -> None:
        record = SessionRecord(state="abc")
        store.set(record)

        assert store.delete(record.id) is True
        assert store.get(record.id) is None
        assert store.delete(record.id) is False

    def test_expired_record_is_absent(self, store) -> None:
        record = _expired_record()
        store.set(record)

        assert store.get(record.id) is None
        assert len(store) == 0

    def test_cleanup_expired(self, store) -> None:
        live = SessionRecord(state="live")
        store.set(live)
        store.set(_expired_record())
        store.set(_expired_record())

        assert store.cleanup_expired() == 2
        assert len(store) == 1
        assert store.get(live.id) is not None

    def test_cleanup_on_empty_store(self) -> None:
        assert InMemorySessionStore().cleanup_expired() == 0
