"""Logical resource paths of the SyncFit API written through the reliability layer."""
from __future__ import annotations


class ScheduledWorkouts:
    create = "/api/scheduled-workouts"

    @staticmethod
    def update(scheduled_id) -> str:
        return f"/api/scheduled-workouts/{scheduled_id}"

    @staticmethod
    def delete(scheduled_id) -> str:
        return f"/api/scheduled-workouts/{scheduled_id}"


class Calendar:
    create_event = "/api/calendar/events"


class SlotStats:
    record = "/api/slot-stats/record"
    reset = "/api/slot-stats/reset"


__all__ = ["ScheduledWorkouts", "Calendar", "SlotStats"]
