"""
TodayItem - merge/sort unit of the Today feed.

Tagged union over TodayActivity | TodayRoutine. Activity and routine ids come
from different collections and may collide, so list keys are namespaced:
"activity-<id>" / "routine-<id>".
"""
from dataclasses import dataclass
from typing import Literal, Union

from app.domain.activity import ActivityInstance
from app.domain.routine import RoutineInstance

# Untimed activities sort to the end of the day
UNTIMED_SORT_KEY = "23:59"


@dataclass(frozen=True)
class TodayActivity:
    instance: ActivityInstance
    kind: Literal["activity"] = "activity"

    @property
    def key(self) -> str:
        return f"activity-{self.instance.id}"

    @property
    def time_key(self) -> str:
        return self.instance.scheduled_time or UNTIMED_SORT_KEY

    @property
    def assigned_to(self) -> str | None:
        return self.instance.assigned_to

    @property
    def is_finished(self) -> bool:
        return self.instance.is_finished


@dataclass(frozen=True)
class TodayRoutine:
    instance: RoutineInstance
    kind: Literal["routine"] = "routine"

    @property
    def key(self) -> str:
        return f"routine-{self.instance.id}"

    @property
    def time_key(self) -> str:
        return self.instance.scheduled_start_time

    @property
    def assigned_to(self) -> str | None:
        return self.instance.assigned_to

    @property
    def is_finished(self) -> bool:
        return self.instance.is_finished


TodayItem = Union[TodayActivity, TodayRoutine]
