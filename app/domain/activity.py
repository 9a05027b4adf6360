"""ActivityInstance - one scheduled or ad-hoc task at a stable, as sent by the backend"""
from datetime import date
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from app.utils.validation import normalize_time_of_day, parse_wire_date

UNKNOWN_ACTIVITY_TYPE = "Unknown"


class ActivityStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    OVERDUE = "overdue"


FINISHED_ACTIVITY_STATUSES = frozenset({ActivityStatus.COMPLETED, ActivityStatus.CANCELLED})


def _first_present(data: dict, *keys: str) -> Any:
    for key in keys:
        value = data.get(key)
        if value not in (None, "", []):
            return value
    return None


def _activity_type_name(data: dict) -> str | None:
    explicit = _first_present(data, "activity_type_name", "activityTypeName")
    if explicit:
        return explicit
    raw = data.get("activityType")
    if raw:
        if not isinstance(raw, str):
            raise ValueError(f"activityType must be a string, got {type(raw).__name__}")
        return raw[:1].upper() + raw[1:]
    return None


def _as_list(many: Any, single: Any) -> list | None:
    if many:
        if not isinstance(many, (list, tuple)):
            raise ValueError(f"expected a list, got {type(many).__name__}")
        return [str(v) for v in many]
    if single:
        return [str(single)]
    return None


class ActivityInstance(BaseModel):
    """
    Read-only projection of a backend activity record.

    The backend is not consistent about field names, so the wire payload is
    normalised before validation:
      activityTypeName | activityType (capitalised) -> activity_type_name
      date | scheduledDate                          -> scheduled_date
      horseNames | horseName                        -> horse_names
      notes | note                                  -> notes
    """
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    activity_type_name: str = UNKNOWN_ACTIVITY_TYPE
    scheduled_date: date | None = None
    scheduled_time: str | None = None  # "HH:MM"
    duration: int | None = None  # minutes
    assigned_to: str | None = None
    assigned_to_name: str | None = None
    status: ActivityStatus = ActivityStatus.PENDING
    horse_ids: list[str] = []
    horse_names: list[str] = []
    stable_id: str | None = None
    stable_name: str | None = None
    notes: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _normalize_wire_fields(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        normalized = {
            "id": str(data["id"]) if data.get("id") is not None else None,
            "activity_type_name": _activity_type_name(data),
            "scheduled_date": _first_present(data, "scheduled_date", "date", "scheduledDate"),
            "scheduled_time": _first_present(data, "scheduled_time", "scheduledTime"),
            "duration": data.get("duration"),
            "assigned_to": _first_present(data, "assigned_to", "assignedTo"),
            "assigned_to_name": _first_present(data, "assigned_to_name", "assignedToName"),
            "status": data.get("status"),
            "horse_ids": _as_list(
                _first_present(data, "horse_ids", "horseIds"), data.get("horseId"),
            ),
            "horse_names": _as_list(
                _first_present(data, "horse_names", "horseNames"), data.get("horseName"),
            ),
            "stable_id": _first_present(data, "stable_id", "stableId"),
            "stable_name": _first_present(data, "stable_name", "stableName"),
            "notes": _first_present(data, "notes", "note"),
        }
        return {k: v for k, v in normalized.items() if v is not None}

    @field_validator("scheduled_date", mode="before")
    @classmethod
    def _parse_date(cls, v):
        return parse_wire_date(v)

    @field_validator("scheduled_time", mode="before")
    @classmethod
    def _parse_time(cls, v):
        return normalize_time_of_day(v)

    @property
    def is_finished(self) -> bool:
        return self.status in FINISHED_ACTIVITY_STATUSES
