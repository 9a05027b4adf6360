"""
Pytest fixtures for testing
"""
import asyncio
from datetime import date

import pytest

from app.domain.activity import ActivityInstance
from app.domain.routine import RoutineInstance
from app.infrastructure.equiduty.client import EquiDutyApiError


def make_activity(id="a1", scheduled_time=None, assigned_to=None, status="pending", **extra) -> ActivityInstance:
    data = {
        "id": id,
        "activity_type_name": extra.pop("activity_type_name", "Farrier"),
        "scheduled_time": scheduled_time,
        "assigned_to": assigned_to,
        "status": status,
    }
    data.update(extra)
    return ActivityInstance.model_validate(data)


def make_routine(id="r1", scheduled_start_time="08:00", assigned_to=None, status="scheduled", **extra) -> RoutineInstance:
    data = {
        "id": id,
        "template_name": extra.pop("template_name", "Morning feeding"),
        "scheduled_start_time": scheduled_start_time,
        "assigned_to": assigned_to,
        "status": status,
    }
    data.update(extra)
    return RoutineInstance.model_validate(data)


class FakeEquiDutyClient:
    """
    Stand-in for EquiDutyClient.

    Set fail_activities / fail_routines to make a call raise; set a gate
    (asyncio.Event) to hold a call until the test releases it.
    """

    def __init__(self, activities=None, routines=None):
        self.activities = list(activities or [])
        self.routines = list(routines or [])
        self.fail_activities = False
        self.fail_routines = False
        self.activity_gate: asyncio.Event | None = None
        self.activity_calls: list[tuple] = []
        self.routine_calls: list[tuple] = []

    async def get_activities_for_stable(self, stable_id, start, end):
        self.activity_calls.append((stable_id, str(start), str(end)))
        if self.activity_gate is not None:
            await self.activity_gate.wait()
        if self.fail_activities:
            raise EquiDutyApiError("activities unavailable", status_code=500)
        return list(self.activities)

    async def get_routine_instances(self, stable_id, start, end=None):
        self.routine_calls.append((stable_id, str(start), str(end or start)))
        if self.fail_routines:
            raise EquiDutyApiError("routines unavailable", status_code=500)
        return list(self.routines)


@pytest.fixture
def today():
    """Fixed 'today' for feed tests"""
    return date(2026, 3, 11)


@pytest.fixture
def fake_client():
    return FakeEquiDutyClient(
        activities=[make_activity("a1", "09:00", assigned_to="u1")],
        routines=[make_routine("r1", "08:00", assigned_to="u2")],
    )
