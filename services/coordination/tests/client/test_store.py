"""Tests for the client notification list and toast slot."""

import pytest

from services.coordination.src.coordination.client.normalize import NotificationRecord
from services.coordination.src.coordination.client.store import NotificationStore, ToastSlot


def _record(record_id: str, message: str = "m") -> NotificationRecord:
    return NotificationRecord(id=record_id, type="referral:updated", message=message)


@pytest.fixture
def store():
    return NotificationStore()


class TestNotificationStore:
    def test_most_recent_first(self, store):
        store.add(_record("a"))
        store.add(_record("b"))
        assert [r.id for r in store.list()] == ["b", "a"]
        assert store.unread_count == 2

    def test_mark_as_read_removes(self, store):
        store.add(_record("a"))
        store.add(_record("b"))
        assert store.mark_as_read("a") == 1
        assert [r.id for r in store.list()] == ["b"]
        assert store.unread_count == 1

    def test_remove_drops_every_duplicate(self, store):
        store.add(_record("a", "first"))
        store.add(_record("a", "second"))
        assert store.remove("a") == 2
        assert len(store) == 0

    def test_remove_unknown_is_noop(self, store):
        store.add(_record("a"))
        assert store.remove("zzz") == 0
        assert len(store) == 1

    def test_clear(self, store):
        store.add(_record("a"))
        store.clear()
        assert store.list() == []
        assert store.unread_count == 0

    def test_list_is_a_copy(self, store):
        store.add(_record("a"))
        store.list().clear()
        assert len(store) == 1


class TestToastSlot:
    def test_new_toast_replaces_old(self):
        slot = ToastSlot()
        slot.show("first")
        slot.show("second", "warning")
        assert slot.current.message == "second"
        assert slot.current.severity == "warning"

    def test_hide(self):
        slot = ToastSlot()
        slot.show("first")
        slot.hide()
        assert slot.current is None
