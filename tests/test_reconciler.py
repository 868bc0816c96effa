"""
tests/test_reconciler.py
========================

Unit tests for cadence.reconciler: completion by id, Box edit matching and
the two cycle resets.
"""

from datetime import timedelta

import pytest

from cadence.errors import NotFound
from cadence.models import Record, Role, Status, Via
from cadence.portfolio import RecordCollection
from cadence.reconciler import (
    bulk_reset,
    complete_by_id,
    names_match,
    reconcile_external_edit,
    soft_reset,
)

from conftest import NOW

EDITED = NOW - timedelta(minutes=5)


@pytest.fixture
def rc(records):
    return RecordCollection(records)


# ---------------------------------------------------------------------------
# Explicit completion
# ---------------------------------------------------------------------------
def test_complete_by_id_sets_status_and_timestamp(rc):
    rec, changed = complete_by_id(rc, "acme", NOW)
    assert changed is True
    assert rec.status is Status.COMPLETE
    assert rec.last_updated == NOW
    assert rec.completed_via is Via.MANUAL


def test_complete_by_id_twice_is_a_noop(rc):
    complete_by_id(rc, "acme", NOW)
    first = rc.get("acme").to_dict()
    rec, changed = complete_by_id(rc, "acme", NOW + timedelta(hours=2))
    assert changed is False
    assert rec.to_dict() == first


def test_complete_unknown_id_raises(rc):
    with pytest.raises(NotFound):
        complete_by_id(rc, "ghost", NOW)


def test_complete_non_owner_raises(rc):
    with pytest.raises(NotFound):
        complete_by_id(rc, "chase-1", NOW)


def test_multi_email_record_completes_by_id_alone(rc):
    rec, changed = complete_by_id(rc, "widget", NOW)
    assert changed and rec.addresses == ["matt@example.com", "shiju@example.com"]


# ---------------------------------------------------------------------------
# Fuzzy name matching
# ---------------------------------------------------------------------------
@pytest.mark.parametrize(
    "modifier, owner, expected",
    [
        ("Matt Jones", "Matt/Shiju", True),
        ("Matt Jones", "Karl Weiss", False),
        ("karl weiss", "Karl Weiss", True),
        ("Karl", "Karl Weiss", True),
        ("Ann Lee (Acme)", "Ann Lee", True),
        ("", "Ann Lee", False),
        ("Ann Lee", "  ", False),
    ],
)
def test_names_match(modifier, owner, expected):
    assert names_match(modifier, owner) is expected


def test_external_edit_completes_match_with_box_provenance(rc):
    changed = reconcile_external_edit(rc, "Matt Jones", EDITED, NOW)
    assert [r.id for r in changed] == ["widget"]
    rec = rc.get("widget")
    assert rec.status is Status.COMPLETE
    assert rec.completed_via is Via.BOX
    assert rec.completed_by == "Matt Jones"
    assert rec.completed_at == EDITED
    assert rec.last_updated == NOW


def test_external_edit_without_match_changes_nothing(rc):
    before = [r.to_dict() for r in rc]
    assert reconcile_external_edit(rc, "Somebody Else", EDITED, NOW) == []
    assert [r.to_dict() for r in rc] == before


def test_external_edit_skips_already_complete(rc):
    # Karl Weiss is already complete in the sample portfolio
    assert reconcile_external_edit(rc, "Karl Weiss", EDITED, NOW) == []
    assert rc.get("sunrise").completed_via is None


def test_ambiguous_edit_completes_every_match():
    rc = RecordCollection([
        Record("a", "Alpha", "Matt", "a@example.com"),
        Record("b", "Beta", "Matt/Shiju", "b@example.com"),
        Record("c", "Gamma", "Ann", "c@example.com"),
    ])
    changed = reconcile_external_edit(rc, "Matt Jones", EDITED, NOW)
    assert sorted(r.id for r in changed) == ["a", "b"]


# ---------------------------------------------------------------------------
# Resets
# ---------------------------------------------------------------------------
def test_bulk_reset_clears_owners_only(rc):
    complete_by_id(rc, "acme", NOW)
    chase_before = rc.get("chase-1").to_dict()
    bulk_reset(rc, NOW)
    for rec in rc.owners():
        assert rec.status is Status.PENDING
        assert rec.last_updated is None
        assert rec.completed_at is None and rec.completed_by is None and rec.completed_via is None
    assert rc.get("chase-1").to_dict() == chase_before
    assert rc.get("chase-1").role is Role.CHASE


def test_soft_reset_keeps_timestamps(rc):
    soft_reset(rc, NOW)
    sunrise = rc.get("sunrise")
    assert sunrise.status is Status.PENDING
    assert sunrise.last_updated == NOW - timedelta(days=1)
