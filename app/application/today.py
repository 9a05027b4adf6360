"""
Today feed - aggregation of activity instances and routine instances.

Pure functions: no I/O, no mutation of inputs.
Provides:
  1. aggregate()          - merged, "mine only"-filtered, time-ordered feed
  2. apply_filters()      - aggregate() + "show finished" filter
  3. select_view()        - all / activities / routines
  4. group_routines()     - active / scheduled / completed
  5. temporal_sections()  - overdue / today / upcoming activities
  6. group_activities()   - by horse / staff / activity type
"""
from dataclasses import dataclass, replace
from datetime import date
from enum import Enum
from typing import Iterable

from app.domain.activity import ActivityInstance
from app.domain.routine import (
    RoutineInstance, RoutineStatus,
    ACTIVE_ROUTINE_STATUSES, CLOSED_ROUTINE_STATUSES,
)
from app.domain.today_item import TodayActivity, TodayItem, TodayRoutine, UNTIMED_SORT_KEY

NO_HORSE_LABEL = "No horse"
UNASSIGNED_LABEL = "Unassigned"


# ---------------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------------

class ViewMode(str, Enum):
    ALL = "all"
    ACTIVITIES = "activities"
    ROUTINES = "routines"


class GroupBy(str, Enum):
    NONE = "none"
    HORSE = "horse"
    STAFF = "staff"
    TYPE = "type"


@dataclass(frozen=True)
class TodayFilters:
    only_mine: bool = False
    show_finished: bool = True
    group_by: GroupBy = GroupBy.NONE

    @property
    def has_active_filters(self) -> bool:
        return self.active_filter_count > 0

    @property
    def active_filter_count(self) -> int:
        count = 0
        if self.group_by != GroupBy.NONE:
            count += 1
        if self.only_mine:
            count += 1
        if not self.show_finished:
            count += 1
        return count

    def cleared(self) -> "TodayFilters":
        return TodayFilters()

    def toggled_only_mine(self) -> "TodayFilters":
        return replace(self, only_mine=not self.only_mine)


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------

def _activity_time_key(a: ActivityInstance) -> str:
    return a.scheduled_time or UNTIMED_SORT_KEY


def aggregate(
    activities: Iterable[ActivityInstance],
    routines: Iterable[RoutineInstance],
    only_mine: bool,
    current_user_id: str | None,
) -> list[TodayItem]:
    """
    Merge activities and routines into one feed sorted by time of day.

    "Only mine" filters by assigned_to and is a no-op while the current
    user is unknown. The sort is stable: items with equal time keep
    activities-before-routines input order.
    """
    activities = list(activities)
    routines = list(routines)

    if only_mine and current_user_id is not None:
        activities = [a for a in activities if a.assigned_to == current_user_id]
        routines = [r for r in routines if r.assigned_to == current_user_id]

    items: list[TodayItem] = [TodayActivity(a) for a in activities]
    items.extend(TodayRoutine(r) for r in routines)
    items.sort(key=lambda it: it.time_key)
    return items


def apply_filters(
    activities: Iterable[ActivityInstance],
    routines: Iterable[RoutineInstance],
    filters: TodayFilters,
    current_user_id: str | None,
) -> list[TodayItem]:
    items = aggregate(activities, routines, filters.only_mine, current_user_id)
    if not filters.show_finished:
        items = [it for it in items if not it.is_finished]
    return items


def select_view(items: Iterable[TodayItem], mode: ViewMode) -> list[TodayItem]:
    if mode == ViewMode.ACTIVITIES:
        return [it for it in items if it.kind == "activity"]
    if mode == ViewMode.ROUTINES:
        return [it for it in items if it.kind == "routine"]
    return list(items)


def count_items(items: Iterable[TodayItem]) -> dict:
    activities = routines = 0
    for it in items:
        if it.kind == "activity":
            activities += 1
        else:
            routines += 1
    return {"total": activities + routines, "activities": activities, "routines": routines}


# ---------------------------------------------------------------------------
# Routine groups
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RoutineGroups:
    active: list[RoutineInstance]     # started, in_progress
    scheduled: list[RoutineInstance]
    completed: list[RoutineInstance]  # completed, cancelled, missed

    @property
    def total_count(self) -> int:
        return len(self.active) + len(self.scheduled) + len(self.completed)

    @property
    def is_empty(self) -> bool:
        return self.total_count == 0


def group_routines(routines: Iterable[RoutineInstance]) -> RoutineGroups:
    active: list[RoutineInstance] = []
    scheduled: list[RoutineInstance] = []
    completed: list[RoutineInstance] = []
    for r in routines:
        if r.status in ACTIVE_ROUTINE_STATUSES:
            active.append(r)
        elif r.status == RoutineStatus.SCHEDULED:
            scheduled.append(r)
        elif r.status in CLOSED_ROUTINE_STATUSES:
            completed.append(r)

    _by_start = lambda r: r.scheduled_start_time
    active.sort(key=_by_start)
    scheduled.sort(key=_by_start)
    completed.sort(key=_by_start)
    return RoutineGroups(active=active, scheduled=scheduled, completed=completed)


# ---------------------------------------------------------------------------
# Activity sections and groups
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TemporalSections:
    overdue: list[ActivityInstance]   # scheduled before the reference date
    today: list[ActivityInstance]
    upcoming: list[ActivityInstance]  # after the reference date (week/month windows)

    @property
    def total_count(self) -> int:
        return len(self.overdue) + len(self.today) + len(self.upcoming)


def temporal_sections(activities: Iterable[ActivityInstance], reference_date: date) -> TemporalSections:
    """Split activities around reference_date. Undated activities count as today."""
    overdue: list[ActivityInstance] = []
    today: list[ActivityInstance] = []
    upcoming: list[ActivityInstance] = []
    for a in activities:
        d = a.scheduled_date or reference_date
        if d < reference_date:
            overdue.append(a)
        elif d == reference_date:
            today.append(a)
        else:
            upcoming.append(a)

    _sort = lambda a: (a.scheduled_date or reference_date, _activity_time_key(a))
    overdue.sort(key=_sort)
    today.sort(key=_sort)
    upcoming.sort(key=_sort)
    return TemporalSections(overdue=overdue, today=today, upcoming=upcoming)


def _group_key(a: ActivityInstance, group_by: GroupBy) -> str:
    if group_by == GroupBy.HORSE:
        return ", ".join(a.horse_names) or NO_HORSE_LABEL
    if group_by == GroupBy.STAFF:
        return a.assigned_to_name or UNASSIGNED_LABEL
    if group_by == GroupBy.TYPE:
        return a.activity_type_name
    raise ValueError(f"unhandled group_by: {group_by}")


def group_activities(
    activities: Iterable[ActivityInstance],
    group_by: GroupBy,
) -> list[tuple[str, list[ActivityInstance]]]:
    """
    Group activities for display.

    GroupBy.NONE returns a single ("", activities) group. Groups are sorted
    by key, members by (date, time).
    """
    _sort = lambda a: (a.scheduled_date or date.min, _activity_time_key(a))
    if group_by == GroupBy.NONE:
        return [("", sorted(activities, key=_sort))]

    grouped: dict[str, list[ActivityInstance]] = {}
    for a in activities:
        grouped.setdefault(_group_key(a, group_by), []).append(a)
    return [(key, sorted(members, key=_sort)) for key, members in sorted(grouped.items())]
