"""
Today feed API endpoints
"""
from datetime import date

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel

from app.api.deps import get_current_user_id, get_equiduty_client
from app.application.today import GroupBy, TodayFilters, ViewMode
from app.application.today_state import LoadState, TodayFeed
from app.config import Settings, get_settings
from app.domain.activity import ActivityInstance
from app.domain.period import Period, navigate, resolve_range, is_current_period
from app.domain.routine import RoutineInstance
from app.domain.today_item import TodayItem
from app.infrastructure.equiduty.client import EquiDutyClient
from app.infrastructure.stores import ActivityStore, RoutineService, SessionContext
from app.utils.dates import local_today


router = APIRouter(prefix="/api/v1/today", tags=["today"])


# === Response models ===

class TodayItemResponse(BaseModel):
    key: str  # "activity-<id>" / "routine-<id>"
    kind: str
    time: str
    activity: ActivityInstance | None = None
    routine: RoutineInstance | None = None


class FiltersResponse(BaseModel):
    only_mine: bool
    show_finished: bool
    group_by: GroupBy
    active_filter_count: int


class CountsResponse(BaseModel):
    total: int
    activities: int
    routines: int


class ActivityGroupResponse(BaseModel):
    title: str
    keys: list[str]


class RoutineGroupsResponse(BaseModel):
    active: list[str]
    scheduled: list[str]
    completed: list[str]


class TodayResponse(BaseModel):
    stable_id: str | None
    selected_date: date
    period: Period
    range_start: date
    range_end: date
    is_current_period: bool
    load_state: LoadState
    error_message: str | None
    view_mode: ViewMode
    filters: FiltersResponse
    items: list[TodayItemResponse]
    counts: CountsResponse
    activity_groups: list[ActivityGroupResponse]
    routine_groups: RoutineGroupsResponse


class RangeResponse(BaseModel):
    selected_date: date
    period: Period
    start: date
    end: date
    is_current_period: bool


# === Helper functions ===

def _item_response(item: TodayItem) -> TodayItemResponse:
    if item.kind == "activity":
        return TodayItemResponse(key=item.key, kind=item.kind, time=item.time_key, activity=item.instance)
    return TodayItemResponse(key=item.key, kind=item.kind, time=item.time_key, routine=item.instance)


def _feed_response(feed: TodayFeed) -> TodayResponse:
    rng = feed.date_range
    filters = feed.filters.value
    groups = feed.routine_groups
    activity_groups = []
    if filters.group_by != GroupBy.NONE:
        activity_groups = [
            ActivityGroupResponse(title=title, keys=[f"activity-{a.id}" for a in members])
            for title, members in feed.grouped_activities
        ]

    return TodayResponse(
        stable_id=feed.selected_stable_id.value,
        selected_date=feed.selected_date,
        period=feed.period,
        range_start=rng.start,
        range_end=rng.end,
        is_current_period=feed.is_current_period,
        load_state=feed.load_state,
        error_message=feed.error_message,
        view_mode=feed.view_mode,
        filters=FiltersResponse(
            only_mine=filters.only_mine,
            show_finished=filters.show_finished,
            group_by=filters.group_by,
            active_filter_count=filters.active_filter_count,
        ),
        items=[_item_response(it) for it in feed.visible_items],
        counts=CountsResponse(**feed.counts),
        activity_groups=activity_groups,
        routine_groups=RoutineGroupsResponse(
            active=[f"routine-{r.id}" for r in groups.active],
            scheduled=[f"routine-{r.id}" for r in groups.scheduled],
            completed=[f"routine-{r.id}" for r in groups.completed],
        ),
    )


# === Endpoints ===

@router.get("", response_model=TodayResponse)
async def get_today(
    request: Request,
    stable_id: str | None = None,
    selected_date: date | None = Query(None, alias="date"),
    period: Period = Period.DAY,
    only_mine: bool = False,
    show_finished: bool = True,
    view_mode: ViewMode = ViewMode.ALL,
    group_by: GroupBy = GroupBy.NONE,
    client: EquiDutyClient = Depends(get_equiduty_client),
    settings: Settings = Depends(get_settings),
):
    """Merged activities + routines feed for a stable and date window"""
    session = SessionContext.of(
        get_current_user_id(request),
        stable_id or request.session.get("selected_stable_id"),
    )
    feed = TodayFeed(
        session,
        ActivityStore(client),
        RoutineService(client),
        today=lambda: local_today(settings.TIMEZONE),
        selected_date=selected_date,
        period=period,
        filters=TodayFilters(only_mine=only_mine, show_finished=show_finished, group_by=group_by),
        view_mode=view_mode,
        routines_follow_selected_range=settings.ROUTINES_FOLLOW_SELECTED_RANGE,
    )
    async with feed:
        await feed.load()
        return _feed_response(feed)


@router.get("/range", response_model=RangeResponse)
def get_range(
    selected_date: date | None = Query(None, alias="date"),
    period: Period = Period.DAY,
    offset: int = 0,
    settings: Settings = Depends(get_settings),
):
    """Resolve the date window after moving `offset` periods from `date`"""
    today = local_today(settings.TIMEZONE)
    target = navigate(selected_date or today, period, offset)
    rng = resolve_range(target, period)
    return RangeResponse(
        selected_date=target,
        period=period,
        start=rng.start,
        end=rng.end,
        is_current_period=is_current_period(target, period, today),
    )
