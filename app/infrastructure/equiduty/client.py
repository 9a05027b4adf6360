"""
EquiDuty backend client (activities and routine instances).

Endpoints:
  GET api/v1/activities/stable/{stableId}?startDate&endDate          -> {"activities": [...]}
  GET api/v1/routines/instances/stable/{stableId}?startDate&endDate  -> {"routineInstances": [...]}

Records that fail validation are logged and skipped; one malformed record
never fails the whole response.
"""
import logging
from datetime import date
from typing import Any, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from app.config import Settings, get_settings
from app.domain.activity import ActivityInstance
from app.domain.routine import RoutineInstance

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class EquiDutyApiError(RuntimeError):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


def build_http_client(settings: Settings | None = None, token: str | None = None) -> httpx.AsyncClient:
    """AsyncClient bound to the backend base URL; token overrides EQUIDUTY_API_TOKEN."""
    settings = settings or get_settings()
    headers = {"Accept": "application/json"}
    bearer = token or settings.EQUIDUTY_API_TOKEN
    if bearer:
        headers["Authorization"] = f"Bearer {bearer}"
    return httpx.AsyncClient(
        base_url=settings.get_api_base_url(),
        headers=headers,
        timeout=settings.EQUIDUTY_API_TIMEOUT,
    )


def parse_records(raw: Any, model: Type[M], label: str) -> list[M]:
    if not isinstance(raw, list):
        raise EquiDutyApiError(f"Malformed {label} payload: expected a list")
    out: list[M] = []
    for record in raw:
        try:
            out.append(model.model_validate(record))
        except (ValidationError, TypeError, ValueError) as e:
            record_id = record.get("id") if isinstance(record, dict) else None
            logger.warning("Skipping malformed %s record id=%s: %s", label, record_id, e)
    return out


class EquiDutyClient:
    def __init__(self, http: httpx.AsyncClient, token: str | None = None):
        self.http = http
        # Per-user token; takes precedence over the client's default Authorization header
        self._headers = {"Authorization": f"Bearer {token}"} if token else None

    async def check_health(self) -> None:
        await self._get_json("health", {})

    async def _get_json(self, path: str, params: dict[str, str]) -> dict:
        try:
            resp = await self.http.get(path, params=params, headers=self._headers)
        except httpx.HTTPError as e:
            raise EquiDutyApiError(f"EquiDuty API request failed: {e}") from e

        if resp.status_code != 200:
            raise EquiDutyApiError(
                f"EquiDuty API error on {path}: HTTP {resp.status_code} {resp.text[:200]}",
                status_code=resp.status_code,
            )
        try:
            data = resp.json()
        except ValueError as e:
            raise EquiDutyApiError(f"EquiDuty API returned invalid JSON on {path}") from e
        if not isinstance(data, dict):
            raise EquiDutyApiError(f"EquiDuty API returned unexpected payload on {path}")
        return data

    async def get_activities_for_stable(
        self, stable_id: str, start: date | str, end: date | str,
    ) -> list[ActivityInstance]:
        data = await self._get_json(
            f"api/v1/activities/stable/{stable_id}",
            {"startDate": str(start), "endDate": str(end)},
        )
        activities = parse_records(data.get("activities") or [], ActivityInstance, "activity")
        logger.debug("Fetched %d activities for stable %s (%s..%s)", len(activities), stable_id, start, end)
        return activities

    async def get_routine_instances(
        self, stable_id: str, start: date | str, end: date | str | None = None,
    ) -> list[RoutineInstance]:
        end = end or start
        data = await self._get_json(
            f"api/v1/routines/instances/stable/{stable_id}",
            {"startDate": str(start), "endDate": str(end)},
        )
        routines = parse_records(data.get("routineInstances") or [], RoutineInstance, "routine instance")
        logger.debug("Fetched %d routine instances for stable %s (%s..%s)", len(routines), stable_id, start, end)
        return routines
