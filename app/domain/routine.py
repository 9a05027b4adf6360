"""RoutineInstance - one scheduled occurrence of a routine template"""
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from app.utils.validation import normalize_time_of_day, parse_wire_date


class RoutineStatus(str, Enum):
    SCHEDULED = "scheduled"      # upcoming, not started
    STARTED = "started"          # notes acknowledged
    IN_PROGRESS = "in_progress"  # working on steps
    COMPLETED = "completed"
    MISSED = "missed"            # overdue and not completed
    CANCELLED = "cancelled"


ACTIVE_ROUTINE_STATUSES = frozenset({RoutineStatus.STARTED, RoutineStatus.IN_PROGRESS})
CLOSED_ROUTINE_STATUSES = frozenset({
    RoutineStatus.COMPLETED, RoutineStatus.CANCELLED, RoutineStatus.MISSED,
})
FINISHED_ROUTINE_STATUSES = frozenset({RoutineStatus.COMPLETED, RoutineStatus.CANCELLED})


def derive_percent_complete(steps_completed: int, steps_total: int) -> int:
    """round(100 * completed / total), halves rounded up; 0 when there are no steps."""
    if steps_total <= 0:
        return 0
    ratio = Decimal(100 * steps_completed) / Decimal(steps_total)
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _step_count(value: Any, name: str) -> int:
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{name} must be a number, got {value!r}")
    return int(value)


class RoutineProgress(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    steps_completed: int = 0
    steps_total: int = 0
    percent_complete: int = 0

    @model_validator(mode="before")
    @classmethod
    def _derive_percent(cls, data: Any) -> Any:
        # percent_complete is denormalised on the backend; always recompute it
        if not isinstance(data, dict):
            return data
        completed = _step_count(data.get("steps_completed", data.get("stepsCompleted")), "stepsCompleted")
        total = _step_count(data.get("steps_total", data.get("stepsTotal")), "stepsTotal")
        return {
            "steps_completed": completed,
            "steps_total": total,
            "percent_complete": derive_percent_complete(completed, total),
        }

    @property
    def is_complete(self) -> bool:
        return self.steps_total > 0 and self.steps_completed == self.steps_total


class RoutineInstance(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    template_id: str | None = None
    template_name: str
    stable_id: str | None = None
    scheduled_date: date | None = None
    scheduled_start_time: str  # "HH:MM"
    estimated_duration: int = 0  # minutes
    assigned_to: str | None = None
    assigned_to_name: str | None = None
    status: RoutineStatus = RoutineStatus.SCHEDULED
    progress: RoutineProgress = RoutineProgress()

    @model_validator(mode="before")
    @classmethod
    def _normalize_wire_fields(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        template = data.get("template") or {}
        if not isinstance(template, dict):
            raise ValueError(f"template must be an object, got {type(template).__name__}")

        def pick(*keys):
            for key in keys:
                if data.get(key) not in (None, ""):
                    return data[key]
            return None

        normalized = {
            "id": str(data["id"]) if data.get("id") is not None else None,
            "template_id": pick("template_id", "templateId"),
            "template_name": pick("template_name", "templateName") or template.get("name"),
            "stable_id": pick("stable_id", "stableId"),
            "scheduled_date": pick("scheduled_date", "scheduledDate"),
            "scheduled_start_time": pick("scheduled_start_time", "scheduledStartTime"),
            "estimated_duration": (
                pick("estimated_duration", "estimatedDuration") or template.get("estimatedDuration")
            ),
            "assigned_to": pick("assigned_to", "assignedTo"),
            "assigned_to_name": pick("assigned_to_name", "assignedToName"),
            "status": pick("status"),
            "progress": pick("progress"),
        }
        return {k: v for k, v in normalized.items() if v is not None}

    @field_validator("scheduled_date", mode="before")
    @classmethod
    def _parse_date(cls, v):
        return parse_wire_date(v)

    @field_validator("scheduled_start_time", mode="before")
    @classmethod
    def _parse_start_time(cls, v):
        normalized = normalize_time_of_day(v)
        if normalized is None:
            raise ValueError(f"invalid scheduledStartTime: {v!r}")
        return normalized

    @property
    def is_finished(self) -> bool:
        return self.status in FINISHED_ROUTINE_STATUSES
