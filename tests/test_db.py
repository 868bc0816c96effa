"""
tests/test_db.py
================

Integration-style tests for the SQLite-backed record store.

These mirror `test_store.py` but use DBRecordStore to ensure persistence
and API parity with the JSON version.
"""

from datetime import timedelta

from cadence.db import DBRecordStore
from cadence.models import Record, Status, Via
from cadence.service import TrackerContext

from conftest import NOW


def _store(tmp_path):
    return DBRecordStore(f"sqlite:///{tmp_path / 'cadence.db'}")


def test_save_and_load_round_trip(tmp_path, records):
    store = _store(tmp_path)
    store.save(records)
    loaded = store.load()
    assert [r.id for r in loaded] == [r.id for r in records]
    assert [r.to_dict() for r in loaded] == [r.to_dict() for r in records]


def test_timestamps_come_back_in_utc(tmp_path):
    rec = Record(
        "acme", "Acme", "Ann", "ann@example.com",
        status=Status.COMPLETE, last_updated=NOW,
        completed_at=NOW - timedelta(minutes=5), completed_by="Ann Lee", completed_via=Via.BOX,
    )
    store = _store(tmp_path)
    store.save([rec])
    loaded = store.load()[0]
    assert loaded.last_updated == NOW
    assert loaded.completed_via is Via.BOX


def test_context_completion_persists_to_db(tmp_path, records, dispatcher, engine):
    store = _store(tmp_path)
    store.save(records)
    ctx = TrackerContext(store, dispatcher, engine, clock=lambda: NOW)
    ctx.load()

    rec, changed = ctx.complete("acme")
    assert changed

    reloaded = {r.id: r for r in _store(tmp_path).load()}
    assert reloaded["acme"].status is Status.COMPLETE
    assert reloaded["acme"].completed_at == NOW
    assert reloaded["acme"].completed_via is Via.MANUAL
    assert reloaded["sunrise"].last_updated == NOW - timedelta(days=1)


def test_save_replaces_whole_collection(tmp_path, records):
    store = _store(tmp_path)
    store.save(records)
    store.save(records[:2])
    assert [r.id for r in store.load()] == ["acme", "widget"]


def test_persistence_across_stores(tmp_path, records):
    _store(tmp_path).save(records)
    assert len(_store(tmp_path).load()) == len(records)
