"""
tests/test_store.py
===================

Tests for the JSON and in-memory record stores and the monitored-document
pointer file.
"""

import json
import os

import pytest

from cadence.errors import StoreError, StoreUnavailable
from cadence.models import MonitoredDocument, Record, Role, Status
from cadence.store import DocumentConfigStore, JsonRecordStore, MemoryRecordStore


def test_json_round_trip_keeps_order_and_shape(tmp_path, records):
    path = tmp_path / "reminders.json"
    store = JsonRecordStore(path)
    store.save(records)

    raw = json.loads(path.read_text())
    assert [r["id"] for r in raw] == [r.id for r in records]
    assert raw[1]["email"] == ["matt@example.com", "shiju@example.com"]
    assert "status" not in raw[3]  # chase entry

    loaded = store.load()
    assert [r.to_dict() for r in loaded] == [r.to_dict() for r in records]


def test_missing_file_loads_empty(tmp_path):
    assert JsonRecordStore(tmp_path / "absent.json").load() == []


def test_malformed_file_raises_unavailable(tmp_path):
    path = tmp_path / "reminders.json"
    path.write_text("{not json")
    with pytest.raises(StoreUnavailable):
        JsonRecordStore(path).load()


def test_non_list_file_raises_unavailable(tmp_path):
    path = tmp_path / "reminders.json"
    path.write_text('{"id": "acme"}')
    with pytest.raises(StoreUnavailable):
        JsonRecordStore(path).load()


def test_reads_legacy_entries_without_timestamps(tmp_path):
    path = tmp_path / "reminders.json"
    path.write_text(json.dumps([
        {"id": "1", "name": "Acme", "owner": "Ann", "email": "a@example.com",
         "role": "portfolio_owner", "status": "pending"},
        {"id": "2", "name": "Final", "owner": "Rick", "email": "r@example.com", "role": "final"},
    ]))
    acme, final = JsonRecordStore(path).load()
    assert acme.status is Status.PENDING and acme.last_updated is None
    assert final.role is Role.FINAL


def test_failed_write_keeps_previous_file(tmp_path, records, monkeypatch):
    path = tmp_path / "reminders.json"
    store = JsonRecordStore(path)
    store.save(records)
    before = path.read_text()

    def boom(src, dst):
        raise OSError("read-only filesystem")

    monkeypatch.setattr(os, "replace", boom)
    with pytest.raises(StoreError):
        store.save([Record("x", "X", "Xavier", "x@example.com")])
    assert path.read_text() == before
    assert [p.name for p in tmp_path.iterdir()] == ["reminders.json"]


def test_memory_store_isolates_copies(records):
    store = MemoryRecordStore(records)
    loaded = store.load()
    loaded[0].status = Status.COMPLETE
    assert store.load()[0].status is Status.PENDING


def test_document_config_defaults_and_persists(tmp_path):
    docs = DocumentConfigStore(tmp_path / "box-config.json")
    assert docs.load() is None
    doc = docs.load(default_id="987")
    assert doc == MonitoredDocument("987")

    doc.last_modified_at = "2026-10-16T10:00:00Z"
    docs.save(doc)
    assert docs.load(default_id="ignored").last_modified_at == "2026-10-16T10:00:00Z"
