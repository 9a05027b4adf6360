"""
In-memory stores backed by the EquiDuty client.

ActivityStore  - shared activities cache; fetch populates an observable
RoutineService - direct fetch of routine instances for a day or range
SessionContext - current user / selected stable, owned by the caller
"""
import logging
from dataclasses import dataclass, field

from app.application.observable import Observable
from app.domain.activity import ActivityInstance
from app.domain.routine import RoutineInstance
from app.infrastructure.equiduty.client import EquiDutyClient

logger = logging.getLogger(__name__)


class ActivityStore:
    """
    Activities of the last fetched (stable, window).

    fetch_activities() does not return data; subscribers of `activities`
    see the new list once it arrives. A failed fetch leaves the previous
    value untouched and re-raises.
    """

    def __init__(self, client: EquiDutyClient):
        self.client = client
        self.activities: Observable[list[ActivityInstance]] = Observable([])
        self.window: tuple[str, str, str] | None = None  # (stable_id, start, end)

    async def fetch_activities(self, stable_id: str, start_iso: str, end_iso: str) -> None:
        activities = await self.client.get_activities_for_stable(stable_id, start_iso, end_iso)
        self.window = (stable_id, start_iso, end_iso)
        self.activities.set(activities)
        logger.debug("Activity store: %d activities for %s", len(activities), self.window)

    def clear(self) -> None:
        self.window = None
        self.activities.set([])


class RoutineService:
    def __init__(self, client: EquiDutyClient):
        self.client = client

    async def fetch_routine_instances(
        self, stable_id: str, date_iso: str, end_iso: str | None = None,
    ) -> list[RoutineInstance]:
        return await self.client.get_routine_instances(stable_id, date_iso, end_iso)


@dataclass
class SessionContext:
    current_user_id: Observable[str | None] = field(default_factory=lambda: Observable(None))
    selected_stable_id: Observable[str | None] = field(default_factory=lambda: Observable(None))

    @classmethod
    def of(cls, user_id: str | None, stable_id: str | None) -> "SessionContext":
        return cls(Observable(user_id), Observable(stable_id))
