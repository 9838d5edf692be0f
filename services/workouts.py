from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

from core.logs import get_logger
from services import endpoints
from services.reliability import ReliabilityLayer


logger = get_logger("workouts")

WORKOUT_STATUSES = ("completed", "missed", "cancelled")

DEFAULT_DURATION_MIN = 30
_DURATION_RE = re.compile(r"(\d+)")


def workout_end_time(start_time: str, duration: Any) -> str:
    """Return ``HH:MM`` of ``start_time`` plus the first number in ``duration`` minutes."""
    match = _DURATION_RE.search(str(duration or ""))
    minutes = int(match.group(1)) if match else DEFAULT_DURATION_MIN
    hours, _, mins = start_time.partition(":")
    total = (int(hours) * 60 + int(mins or 0) + minutes) % (24 * 60)
    return f"{total // 60:02d}:{total % 60:02d}"


@dataclass
class ScheduleResult:
    success: bool
    scheduled_workout: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    queued: bool = False


class WorkoutService:
    """Workout and calendar writes routed through the reliability layer."""

    def __init__(self, reliability: ReliabilityLayer) -> None:
        self.reliability = reliability

    async def schedule_workout(
        self,
        workout: Dict[str, Any],
        *,
        start_time: str,
        date: str,
        end_time: Optional[str] = None,
        calendar_event_id: Optional[str] = None,
        recurring: Optional[Dict[str, Any]] = None,
        create_calendar_event: bool = False,
    ) -> ScheduleResult:
        """Schedule ``workout`` at ``start_time`` on ``date``.

        ``end_time`` defaults to the start plus the workout's duration. With
        ``create_calendar_event`` a calendar event is written first; a failure
        there is logged and scheduling continues without an event id.
        """
        if end_time is None:
            end_time = workout_end_time(start_time, workout.get("duration"))

        if create_calendar_event and calendar_event_id is None:
            event = await self.create_calendar_event(
                {
                    "title": f"Workout: {workout.get('title')}",
                    "description": workout.get("description"),
                    "startTime": start_time,
                    "endTime": end_time,
                    "date": date,
                    "recurrence": recurring,
                }
            )
            if event.get("success") and isinstance(event.get("data"), dict):
                calendar_event_id = event["data"].get("eventId")
            else:
                logger.warning("Failed to create calendar event: %s", event.get("error"))

        payload = {
            "workoutId": workout.get("id"),
            "title": workout.get("title"),
            "startTime": start_time,
            "endTime": end_time,
            "date": date,
            "duration": workout.get("duration"),
            "status": "scheduled",
            "calendarEventId": calendar_event_id,
            "recurring": bool(recurring),
        }
        if recurring:
            payload["recurrenceRule"] = json.dumps(recurring)

        result = await self.reliability.post(
            endpoints.ScheduledWorkouts.create,
            payload,
            priority="high",
            sync_target="scheduledWorkouts",
        )
        if result.success and result.data:
            return ScheduleResult(success=True, scheduled_workout=result.data)
        if result.queued:
            # Placeholder shown until the server assigns the real ids.
            placeholder = dict(payload, id=-1, userId=-1)
            return ScheduleResult(
                success=False,
                scheduled_workout=placeholder,
                error="Workout scheduling queued for when online",
                queued=True,
            )
        logger.warning("Failed to schedule workout %s: %s", workout.get("id"), result.error)
        return ScheduleResult(success=False, error=result.error or "Failed to schedule workout")

    async def update_workout_status(self, scheduled_id: int, status: str) -> bool:
        if status not in WORKOUT_STATUSES:
            raise ValueError(f"Unsupported workout status: {status}")
        result = await self.reliability.put(
            endpoints.ScheduledWorkouts.update(scheduled_id),
            {"status": status},
            priority="medium",
            sync_target="scheduledWorkouts",
        )
        return result.success

    async def delete_scheduled_workout(self, scheduled_id: int) -> bool:
        result = await self.reliability.delete(
            endpoints.ScheduledWorkouts.delete(scheduled_id),
            priority="medium",
            sync_target="scheduledWorkouts",
        )
        return result.success

    async def create_calendar_event(self, event: Dict[str, Any]) -> Dict[str, Any]:
        result = await self.reliability.post(
            endpoints.Calendar.create_event,
            event,
            priority="high",
            sync_target="calendar",
        )
        return result.to_dict()

    async def record_time_slot_result(self, day_of_week: str, time_slot: str, completed: bool) -> bool:
        result = await self.reliability.post(
            endpoints.SlotStats.record,
            {"dayOfWeek": day_of_week, "timeSlot": time_slot, "completed": completed},
            priority="low",
        )
        return result.success

    async def reset_all_slot_stats(self) -> bool:
        result = await self.reliability.post(endpoints.SlotStats.reset, {}, priority="low")
        return result.success


__all__ = ["WorkoutService", "ScheduleResult", "WORKOUT_STATUSES", "workout_end_time"]
