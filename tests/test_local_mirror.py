import pytest
from sqlmodel import Session, create_engine

from services.local_mirror import LocalMirror


@pytest.mark.asyncio
async def test_scheduled_workout_is_merged_by_id(session_factory):
    mirror = LocalMirror(session_factory=session_factory)

    assert await mirror.upsert("scheduledWorkouts", {"id": 5, "status": "scheduled", "title": "Run"}) is True
    assert await mirror.upsert("scheduledWorkouts", {"id": 5, "status": "completed"}) is True

    assert mirror.get("scheduledWorkouts", "5") == {"id": 5, "status": "completed", "title": "Run"}


@pytest.mark.asyncio
async def test_calendar_target_uses_event_id(session_factory):
    mirror = LocalMirror(session_factory=session_factory)

    await mirror.upsert("calendar", {"eventId": "evt-1", "summary": "Yoga"})

    assert mirror.get("calendarEvents", "evt-1") == {"eventId": "evt-1", "summary": "Yoga"}
    assert mirror.get("calendar", "evt-1") is None


@pytest.mark.asyncio
async def test_documents_without_ids_are_skipped(session_factory):
    mirror = LocalMirror(session_factory=session_factory)

    assert await mirror.upsert("scheduledWorkouts", {"status": "completed"}) is False
    assert await mirror.upsert("calendar", {"id": 3}) is False
    assert await mirror.upsert("scheduledWorkouts", ["not", "a", "document"]) is False


@pytest.mark.asyncio
async def test_storage_errors_are_swallowed():
    engine = create_engine("sqlite:///:memory:")  # no tables
    mirror = LocalMirror(session_factory=lambda: Session(engine))

    assert await mirror.upsert("scheduledWorkouts", {"id": 1}) is False
