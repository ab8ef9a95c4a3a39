"""JSON document storage and write-behind tests."""
import json

import pytest

from scan_hub.json_store import JsonFileStore
from scan_hub.write_behind import CoalescingWriter


class TestJsonFileStore:
    def test_write_then_read(self, store):
        store.write_atomic("doc.json", {"name": "Ваги", "n": 1})
        assert store.read("doc.json") == {"name": "Ваги", "n": 1}

    def test_atomic_write_leaves_no_temp_file(self, store):
        store.write_atomic("doc.json", [1, 2, 3])
        assert sorted(p.name for p in store.root.iterdir()) == ["doc.json"]

    def test_missing_document(self, store):
        assert store.read("nothing.json") is None

    def test_corrupt_document_reads_as_none(self, store, caplog):
        store.path_for("broken.json").write_text("{not json", encoding="utf-8")
        assert store.read("broken.json") is None
        assert "broken.json" in caplog.text

    def test_stamp_changes_on_rewrite(self, store):
        assert store.stamp("doc.json") is None
        store.write_atomic("doc.json", {"a": 1})
        first = store.stamp("doc.json")
        store.write_atomic("doc.json", {"a": 2})
        assert first is not None and store.stamp("doc.json") != first

    def test_delete(self, store):
        store.write_atomic("doc.json", {})
        assert store.delete("doc.json")
        assert not store.delete("doc.json")

    @pytest.mark.parametrize("name", ["", "../x.json", "a/b.json", ".hidden"])
    def test_rejects_unsafe_names(self, store, name):
        with pytest.raises(ValueError):
            store.path_for(name)


class TestCoalescingWriter:
    def test_last_write_wins(self, store):
        writer = CoalescingWriter(store, delay_ms=50)
        try:
            for i in range(20):
                writer.submit("doc.json", {"i": i})
            assert writer.flush(timeout=5)
        finally:
            writer.close()
        assert json.loads(store.path_for("doc.json").read_text(encoding="utf-8")) == {"i": 19}

    def test_read_sees_pending_payload(self, store):
        writer = CoalescingWriter(store, delay_ms=10_000)
        try:
            writer.submit("doc.json", {"pending": True})
            assert writer.read("doc.json") == {"pending": True}
        finally:
            writer.close()
        assert store.read("doc.json") == {"pending": True}

    def test_delete_after_write(self, writer, store):
        writer.submit("doc.json", {"a": 1})
        writer.submit_delete("doc.json")
        writer.flush(timeout=5)
        assert writer.read("doc.json") is None
        assert not store.exists("doc.json")

    def test_closed_writer_rejects_submits(self, store):
        writer = CoalescingWriter(store)
        writer.close()
        with pytest.raises(RuntimeError):
            writer.submit("doc.json", {})
