"""
Tests for the EquiDuty backend client (httpx MockTransport, no network)
"""
import asyncio
import json

import httpx
import pytest

from app.config import Settings
from app.domain.activity import ActivityInstance
from app.infrastructure.equiduty.client import (
    EquiDutyApiError, EquiDutyClient, build_http_client, parse_records,
)


def make_client(handler, token=None) -> EquiDutyClient:
    http = httpx.AsyncClient(
        base_url="http://equiduty.test/",
        transport=httpx.MockTransport(handler),
    )
    return EquiDutyClient(http, token=token)


def run(coro):
    return asyncio.run(coro)


class TestActivities:
    def test_request_path_and_params(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, json={"activities": [
                {"id": "a1", "activityTypeName": "Vet", "scheduledTime": "10:00", "assignedTo": "u1"},
            ]})

        activities = run(make_client(handler, token="tok").get_activities_for_stable(
            "s1", "2026-03-09", "2026-03-15",
        ))

        assert seen["path"] == "/api/v1/activities/stable/s1"
        assert seen["params"] == {"startDate": "2026-03-09", "endDate": "2026-03-15"}
        assert seen["auth"] == "Bearer tok"
        assert [a.id for a in activities] == ["a1"]
        assert activities[0].activity_type_name == "Vet"

    def test_malformed_record_is_skipped(self):
        def handler(request):
            return httpx.Response(200, json={"activities": [
                {"id": "a1"},
                {"activityType": "vet"},  # no id
                {"id": "a3", "status": "exploded"},
                "garbage",
            ]})

        activities = run(make_client(handler).get_activities_for_stable("s1", "2026-03-11", "2026-03-11"))
        assert [a.id for a in activities] == ["a1"]

    def test_wrongly_typed_fields_skip_only_that_record(self):
        def handler(request):
            return httpx.Response(200, json={"activities": [
                {"id": "a1", "activityType": "vet"},
                {"id": "a2", "activityType": 5},
                {"id": "a3", "horseNames": 5},
                {"id": "a4", "horseName": "Stella"},
            ]})

        activities = run(make_client(handler).get_activities_for_stable("s1", "2026-03-11", "2026-03-11"))
        assert [a.id for a in activities] == ["a1", "a4"]

    def test_null_list_is_empty(self):
        def handler(request):
            return httpx.Response(200, json={"activities": None})

        assert run(make_client(handler).get_activities_for_stable("s1", "2026-03-11", "2026-03-11")) == []


class TestRoutines:
    def test_single_day_uses_start_as_end(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json={"routineInstances": [
                {"id": "r1", "templateName": "Morning", "scheduledStartTime": "07:00",
                 "progress": {"stepsCompleted": 1, "stepsTotal": 2}},
            ]})

        routines = run(make_client(handler).get_routine_instances("s1", "2026-03-11"))

        assert seen["path"] == "/api/v1/routines/instances/stable/s1"
        assert seen["params"] == {"startDate": "2026-03-11", "endDate": "2026-03-11"}
        assert routines[0].progress.percent_complete == 50

    def test_wrongly_typed_fields_skip_only_that_record(self):
        def handler(request):
            return httpx.Response(200, json={"routineInstances": [
                {"id": "r1", "templateName": "Morning", "scheduledStartTime": "07:00"},
                {"id": "r2", "scheduledStartTime": "08:00", "template": "x"},
                {"id": "r3", "templateName": "Noon", "scheduledStartTime": "12:00",
                 "progress": {"stepsCompleted": [1], "stepsTotal": 2}},
                {"id": "r4", "templateName": "Evening", "scheduledStartTime": "18:00",
                 "progress": {"stepsCompleted": "2", "stepsTotal": 3}},
            ]})

        routines = run(make_client(handler).get_routine_instances("s1", "2026-03-11"))
        assert [r.id for r in routines] == ["r1"]

    def test_range(self):
        seen = {}

        def handler(request):
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json={"routineInstances": []})

        assert run(make_client(handler).get_routine_instances("s1", "2026-03-01", "2026-03-31")) == []
        assert seen["params"] == {"startDate": "2026-03-01", "endDate": "2026-03-31"}


class TestErrors:
    def test_http_error_status(self):
        def handler(request):
            return httpx.Response(503, text="maintenance")

        with pytest.raises(EquiDutyApiError) as exc_info:
            run(make_client(handler).get_activities_for_stable("s1", "2026-03-11", "2026-03-11"))
        assert exc_info.value.status_code == 503

    def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(EquiDutyApiError, match="request failed"):
            run(make_client(handler).get_routine_instances("s1", "2026-03-11"))

    def test_invalid_json(self):
        def handler(request):
            return httpx.Response(200, content=b"<html>", headers={"Content-Type": "text/html"})

        with pytest.raises(EquiDutyApiError, match="invalid JSON"):
            run(make_client(handler).get_activities_for_stable("s1", "2026-03-11", "2026-03-11"))

    def test_non_object_payload(self):
        def handler(request):
            return httpx.Response(200, content=json.dumps([1, 2]).encode())

        with pytest.raises(EquiDutyApiError, match="unexpected payload"):
            run(make_client(handler).get_activities_for_stable("s1", "2026-03-11", "2026-03-11"))

    def test_non_list_records(self):
        with pytest.raises(EquiDutyApiError, match="expected a list"):
            parse_records({"id": "a1"}, ActivityInstance, "activity")


def test_build_http_client_from_settings():
    settings = Settings(
        EQUIDUTY_API_BASE_URL="https://api.example.org/v",
        EQUIDUTY_API_TOKEN="service",
        EQUIDUTY_API_TIMEOUT=5.0,
    )
    http = build_http_client(settings)
    try:
        assert str(http.base_url) == "https://api.example.org/v/"
        assert http.headers["Authorization"] == "Bearer service"
        assert http.timeout.read == 5.0
    finally:
        run(http.aclose())
