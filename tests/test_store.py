import itertools
import uuid
from datetime import date, datetime, timezone

import pytest
from sqlalchemy.exc import NoResultFound

from daycare.core.incidents import store

_seq = itertools.count(1)


def _fields(child, **overrides):
    fields = {
        "incident_number": f"INC-TEST-{next(_seq):04d}",
        "child_id": child.id,
        "incident_type": "injury",
        "severity": "minor",
        "status": "open",
        "occurred_at": datetime(2025, 6, 10, 14, 30, tzinfo=timezone.utc),
        "description": "Se cayó en el patio",
    }
    fields.update(overrides)
    return fields


def test_incident_number_format():
    assert store.format_incident_number(2025, 1) == "INC-2025-0001"
    assert store.format_incident_number(2025, 42) == "INC-2025-0042"
    assert store.format_incident_number(2025, 12345) == "INC-2025-12345"


async def test_next_number_starts_at_one(db, org):
    assert await store.compute_next_incident_number(db, org.id, 2025) == "INC-2025-0001"


async def test_next_number_counts_only_this_year_and_org(db, org, other_org, child):
    await store.insert(db, org.id, _fields(child, created_at=datetime(2024, 12, 31, 23, 0, tzinfo=timezone.utc)))
    await store.insert(db, org.id, _fields(child, created_at=datetime(2025, 1, 2, tzinfo=timezone.utc)))
    await store.insert(db, org.id, _fields(child, created_at=datetime(2025, 3, 5, tzinfo=timezone.utc)))
    await store.insert(db, other_org.id, _fields(child, created_at=datetime(2025, 3, 5, tzinfo=timezone.utc)))

    assert await store.compute_next_incident_number(db, org.id, 2025) == "INC-2025-0003"
    assert await store.compute_next_incident_number(db, other_org.id, 2025) == "INC-2025-0002"


async def test_insert_assigns_id_and_timestamps(db, org, child):
    incident = await store.insert(db, org.id, _fields(child))
    assert incident.id is not None
    assert incident.created_at is not None
    assert incident.updated_at is not None
    assert incident.witness_staff_ids == []
    assert incident.parent_notified is False
    assert incident.child.first_name == "Sofía"


async def test_get_by_id_missing_is_none(db):
    assert await store.get_by_id(db, uuid.uuid4()) is None


async def test_list_all_newest_first_and_scoped(db, org, other_org, child):
    older = await store.insert(db, org.id, _fields(child, occurred_at=datetime(2025, 6, 1, tzinfo=timezone.utc)))
    newer = await store.insert(db, org.id, _fields(child, occurred_at=datetime(2025, 6, 9, tzinfo=timezone.utc)))
    await store.insert(db, other_org.id, _fields(child))

    result = await store.list_all(db, org.id)
    assert [i.id for i in result] == [newer.id, older.id]


async def test_list_pending_signature(db, org, child):
    await store.insert(db, org.id, _fields(child, status="open"))
    pending = await store.insert(db, org.id, _fields(child, status="pending_signature"))
    await store.insert(db, org.id, _fields(child, status="pending_closure"))

    result = await store.list_pending_signature(db, org.id)
    assert [i.id for i in result] == [pending.id]


async def test_list_requiring_follow_up(db, org, child):
    as_of = date(2025, 6, 15)
    due_later = await store.insert(db, org.id, _fields(child, follow_up_required=True, follow_up_date=date(2025, 6, 15)))
    due_first = await store.insert(db, org.id, _fields(child, follow_up_required=True, follow_up_date=date(2025, 6, 1)))
    # future, completed, and not required are all excluded
    await store.insert(db, org.id, _fields(child, follow_up_required=True, follow_up_date=date(2025, 7, 1)))
    await store.insert(db, org.id, _fields(
        child, follow_up_required=True, follow_up_date=date(2025, 6, 2), follow_up_completed=True,
    ))
    await store.insert(db, org.id, _fields(child, follow_up_required=False, follow_up_date=date(2025, 6, 2)))

    result = await store.list_requiring_follow_up(db, org.id, as_of)
    assert [i.id for i in result] == [due_first.id, due_later.id]


async def test_list_by_child(db, org, child, classroom):
    from daycare.core.directory.models import Child

    sibling = Child(organization_id=org.id, classroom_id=classroom.id, first_name="Lucas", last_name="García")
    db.add(sibling)
    await db.flush()
    mine = await store.insert(db, org.id, _fields(child))
    await store.insert(db, org.id, _fields(sibling))

    result = await store.list_by_child(db, org.id, child.id)
    assert [i.id for i in result] == [mine.id]


async def test_update_applies_only_given_keys(db, org, child):
    incident = await store.insert(db, org.id, _fields(child, location="Patio", action_taken="Hielo"))

    updated = await store.update(db, incident.id, {"location": None, "severity": "moderate"})
    assert updated.location is None
    assert updated.severity == "moderate"
    assert updated.action_taken == "Hielo"
    assert updated.description == "Se cayó en el patio"


async def test_update_unknown_id_raises(db):
    with pytest.raises(NoResultFound):
        await store.update(db, uuid.uuid4(), {"location": "Patio"})


async def test_get_stats(db, org, other_org, child):
    since = datetime(2025, 6, 1, tzinfo=timezone.utc)
    await store.insert(db, org.id, _fields(child, severity="minor", created_at=datetime(2025, 5, 20, tzinfo=timezone.utc)))
    await store.insert(db, org.id, _fields(
        child, severity="serious", status="pending_signature", created_at=datetime(2025, 6, 3, tzinfo=timezone.utc),
        follow_up_required=True,
    ))
    await store.insert(db, org.id, _fields(
        child, severity="serious", status="closed", parent_signature_data="data:image/png;base64,AAA",
        created_at=datetime(2025, 6, 4, tzinfo=timezone.utc), follow_up_required=True, follow_up_completed=True,
    ))
    await store.insert(db, other_org.id, _fields(child, created_at=datetime(2025, 6, 5, tzinfo=timezone.utc)))

    stats = await store.get_stats(db, org.id, since)
    assert stats["total"] == 3
    assert stats["created_since"] == 2
    assert stats["pending_follow_up"] == 1
    assert stats["by_status"] == {"open": 1, "pending_signature": 1, "pending_closure": 0, "closed": 1}
    assert stats["by_severity"] == {"minor": 1, "moderate": 0, "serious": 2, "critical": 0}


async def test_get_stats_empty(db, org):
    stats = await store.get_stats(db, org.id, datetime(2025, 6, 1, tzinfo=timezone.utc))
    assert stats["total"] == 0
    assert stats["created_since"] == 0
    assert stats["by_status"]["closed"] == 0
