"""
TodayFeed - screen-scoped state holder for the Today view.

Owns the selected date/period, filters and load state; recomputes the merged
feed whenever activities, routines, filters or the current user change.

Load flow:
  IDLE -> LOADING -> READY | PARTIALLY_FAILED, and back to LOADING on any
  trigger (navigation, period change, refresh, stable switch).

The activities and routines fetches run concurrently and settle
independently: a failure in one is summarised in error_message and never
hides data from the other. No fetch exception escapes this class.
"""
import asyncio
import logging
from datetime import date
from enum import Enum
from typing import Callable

from app.application.observable import Observable
from app.application.today import (
    TodayFilters, ViewMode, GroupBy,
    RoutineGroups, TemporalSections,
    apply_filters, select_view, count_items,
    group_routines, temporal_sections as split_by_date, group_activities,
)
from app.domain.activity import ActivityInstance
from app.domain.period import (
    Period, DateRange, resolve_range, navigate as navigate_date, is_current_period as in_current_period,
)
from app.domain.routine import RoutineInstance
from app.domain.today_item import TodayItem
from app.infrastructure.stores import ActivityStore, RoutineService, SessionContext

logger = logging.getLogger(__name__)

ERROR_PREFIX = "Could not load "


class LoadState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    PARTIALLY_FAILED = "partially_failed"


def summarize_errors(failed: list[str]) -> str | None:
    if not failed:
        return None
    return ERROR_PREFIX + " and ".join(failed)


class TodayFeed:
    def __init__(
        self,
        session: SessionContext,
        activity_store: ActivityStore,
        routine_service: RoutineService,
        today: Callable[[], date] = date.today,
        selected_date: date | None = None,
        period: Period = Period.DAY,
        filters: TodayFilters | None = None,
        view_mode: ViewMode = ViewMode.ALL,
        routines_follow_selected_range: bool = False,
    ):
        self.current_user_id = session.current_user_id
        self.selected_stable_id = session.selected_stable_id
        self.activity_store = activity_store
        self.routine_service = routine_service
        self._today = today
        self.routines_follow_selected_range = routines_follow_selected_range

        self.selected_date = selected_date or today()
        self.period = period
        self.view_mode = view_mode
        self.filters: Observable[TodayFilters] = Observable(filters or TodayFilters())
        self.routines: Observable[list[RoutineInstance]] = Observable([])
        self.items: Observable[list[TodayItem]] = Observable([])

        self.load_state = LoadState.IDLE
        self.is_loading = False
        self.error_message: str | None = None

        self._routines_request: tuple | None = None
        self._task: asyncio.Task | None = None
        self._closed = False
        self._unsubscribers = [
            self.activity_store.activities.subscribe(self._recompute),
            self.routines.subscribe(self._recompute),
            self.filters.subscribe(self._recompute),
            self.current_user_id.subscribe(self._recompute),
            self.selected_stable_id.subscribe(self._on_stable_changed),
        ]
        self._recompute()

    # ------------------------------------------------------------------
    # Lifetime
    # ------------------------------------------------------------------

    async def __aenter__(self) -> "TodayFeed":
        return self

    async def __aexit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        """Detach from injected observables and cancel any in-flight load."""
        self._closed = True
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self.is_loading = False

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    @property
    def date_range(self) -> DateRange:
        return resolve_range(self.selected_date, self.period)

    @property
    def activities(self) -> list[ActivityInstance]:
        return self.activity_store.activities.value

    @property
    def visible_items(self) -> list[TodayItem]:
        return select_view(self.items.value, self.view_mode)

    @property
    def filtered_activities(self) -> list[ActivityInstance]:
        return [it.instance for it in self.items.value if it.kind == "activity"]

    @property
    def filtered_routines(self) -> list[RoutineInstance]:
        return [it.instance for it in self.items.value if it.kind == "routine"]

    @property
    def counts(self) -> dict:
        return count_items(self.items.value)

    @property
    def routine_groups(self) -> RoutineGroups:
        return group_routines(self.filtered_routines)

    @property
    def temporal_sections(self) -> TemporalSections:
        return split_by_date(self.filtered_activities, self.selected_date)

    @property
    def grouped_activities(self) -> list[tuple[str, list[ActivityInstance]]]:
        return group_activities(self.filtered_activities, self.filters.value.group_by)

    @property
    def is_empty(self) -> bool:
        """Nothing fetched for the current view mode (before filtering)."""
        if self.view_mode == ViewMode.ACTIVITIES:
            return not self.activities
        if self.view_mode == ViewMode.ROUTINES:
            return not self.routines.value
        return not self.activities and not self.routines.value

    @property
    def is_filtered_empty(self) -> bool:
        return not self.visible_items

    @property
    def is_current_period(self) -> bool:
        return in_current_period(self.selected_date, self.period, self._today())

    def _recompute(self, _=None) -> None:
        self.items.set(apply_filters(
            self.activity_store.activities.value,
            self.routines.value,
            self.filters.value,
            self.current_user_id.value,
        ))

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------

    def navigate(self, offset: int) -> asyncio.Task | None:
        self.selected_date = navigate_date(self.selected_date, self.period, offset)
        return self._start_load()

    def go_to_today(self) -> asyncio.Task | None:
        self.selected_date = self._today()
        return self._start_load()

    def set_period(self, period: Period) -> asyncio.Task | None:
        self.period = Period.parse(period)
        return self._start_load()

    async def refresh(self) -> None:
        await self.load()

    def _on_stable_changed(self, stable_id: str | None) -> None:
        if stable_id is not None:
            self._start_load()
        else:
            self._reset()

    def _reset(self) -> None:
        """Drop in-flight work and data of the previous stable; back to IDLE."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        self.activity_store.clear()
        self._routines_request = None
        self.routines.set([])
        self.error_message = None
        self.is_loading = False
        self.load_state = LoadState.IDLE

    # Filters are applied reactively, no reload needed

    def toggle_only_mine(self) -> None:
        self.filters.set(self.filters.value.toggled_only_mine())

    def apply_filters(self, filters: TodayFilters) -> None:
        self.filters.set(filters)

    def clear_filters(self) -> None:
        self.filters.set(self.filters.value.cleared())

    def set_view_mode(self, mode: ViewMode) -> None:
        self.view_mode = ViewMode(mode)

    def set_group_by(self, group_by: GroupBy) -> None:
        current = self.filters.value
        self.filters.set(TodayFilters(current.only_mine, current.show_finished, GroupBy(group_by)))

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load(self) -> None:
        """Load activities and routines for the current window; returns when settled."""
        task = self._start_load()
        while task is not None:
            try:
                await asyncio.shield(task)
                return
            except asyncio.CancelledError:
                if not task.cancelled():
                    raise  # the caller itself was cancelled
                if self._closed or self._task is task:
                    return
                # superseded by a newer trigger: wait for that one instead
                task = self._task

    def _start_load(self) -> asyncio.Task | None:
        if self._closed:
            return None
        if self.selected_stable_id.value is None:
            logger.debug("No stable selected, skipping Today load")
            return None
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, Today load deferred until load() is awaited")
            return None
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = loop.create_task(self._load_once())
        return self._task

    async def _fetch_routines(self, stable_id: str, window: DateRange) -> list[RoutineInstance]:
        start, end = window.to_iso()
        if start == end:
            return await self.routine_service.fetch_routine_instances(stable_id, start)
        return await self.routine_service.fetch_routine_instances(stable_id, start, end)

    def _routine_window(self) -> DateRange:
        if self.routines_follow_selected_range:
            return self.date_range
        today = self._today()
        return DateRange(today, today)

    async def _load_once(self) -> None:
        stable_id = self.selected_stable_id.value
        if stable_id is None:
            return

        window = self.date_range
        routine_window = self._routine_window()
        start_iso, end_iso = window.to_iso()

        self.is_loading = True
        self.load_state = LoadState.LOADING
        self.error_message = None
        try:
            activities_result, routines_result = await asyncio.gather(
                self.activity_store.fetch_activities(stable_id, start_iso, end_iso),
                self._fetch_routines(stable_id, routine_window),
                return_exceptions=True,
            )
        finally:
            if self._task is asyncio.current_task():
                self.is_loading = False

        failed: list[str] = []

        if isinstance(activities_result, BaseException):
            logger.error(
                "Failed to load activities for stable %s (%s..%s)",
                stable_id, start_iso, end_iso, exc_info=activities_result,
            )
            failed.append("activities")
            if self.activity_store.window != (stable_id, start_iso, end_iso):
                self.activity_store.clear()

        routines_request = (stable_id, routine_window)
        if isinstance(routines_result, BaseException):
            logger.error(
                "Failed to load routines for stable %s", stable_id, exc_info=routines_result,
            )
            failed.append("routines")
            if self._routines_request != routines_request:
                self._routines_request = None
                self.routines.set([])
        else:
            self._routines_request = routines_request
            self.routines.set(routines_result)

        self.error_message = summarize_errors(failed)
        self.load_state = LoadState.PARTIALLY_FAILED if failed else LoadState.READY
        logger.info(
            "Today load for stable %s (%s, %s..%s): %d activities, %d routines%s",
            stable_id, self.period.value, start_iso, end_iso,
            len(self.activities), len(self.routines.value),
            f", failed: {', '.join(failed)}" if failed else "",
        )
