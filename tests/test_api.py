"""Integration-focused tests for the Day Planner FastAPI surface."""
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional

import pytest
from fastapi.testclient import TestClient
from langchain_core.messages import AIMessage, HumanMessage
from zoneinfo import ZoneInfo

from dayplanner.api import app as api_app
from dayplanner.api.planning_service import PlanningBundle
from dayplanner.api.schemas import PlanRequest
from dayplanner.core.config import ApiSettings
from dayplanner.core.errors import UnknownCityError
from dayplanner.core.knowledge_base import get_city_config
from dayplanner.core.schemas import (
    ActivityEntry,
    DroppedEntry,
    EntryKind,
    Itinerary,
    LatLng,
    ParsedRequest,
    PlanContext,
    ResolvedActivity,
    Venue,
)

LONDON = ZoneInfo("Europe/London")


def _make_plan_payload(**overrides: Any) -> Dict[str, Any]:
    """Return a representative planning payload."""

    payload = {
        "query": "Lunch in Mayfair at 12, then a quiet coffee nearby, and drinks in Chelsea at 7pm",
        "date": "2025-06-14",
        "city_slug": "london",
    }
    payload.update(overrides)
    return payload


def _make_activity(name: str, start: int, end: int) -> ResolvedActivity:
    return ResolvedActivity(
        entry=ActivityEntry(activity=name, kind=EntryKind.FIXED, time=f"{start:02d}:00"),
        venue=Venue(name=f"{name.title()} Place", location=LatLng(lat=51.51, lng=-0.14)),
        start_time=datetime(2025, 6, 14, start, tzinfo=LONDON),
        end_time=datetime(2025, 6, 14, end, tzinfo=LONDON),
    )


def _make_parsed() -> ParsedRequest:
    return ParsedRequest(
        fixed_time_entries=[ActivityEntry(activity="lunch", kind=EntryKind.FIXED, time="12:00")]
    )


def _make_itinerary(dropped: Optional[List[DroppedEntry]] = None) -> Itinerary:
    return Itinerary(
        title="Lunch, Drinks in London",
        city_slug="london",
        plan_date=date(2025, 6, 14),
        activities=[_make_activity("lunch", 12, 13), _make_activity("drinks", 19, 20)],
        dropped=dropped or [],
    )


class StubBundle:
    """Planning bundle double that records requests and returns canned results."""

    def __init__(self) -> None:
        self.settings = ApiSettings(planning_timeout_s=5.0)
        self.llm = None
        self.places = object()
        self.weather = None
        self.recursion_limit = 25
        self.requests: List[PlanRequest] = []
        self.result: Mapping[str, Any] = {
            "messages": [HumanMessage(content="query"), AIMessage(content="Scheduled 2 activities")],
            "parsed": _make_parsed(),
            "itinerary": _make_itinerary(),
        }
        self.error: Optional[Exception] = None

    async def plan(self, request: PlanRequest):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return None, self.result


@pytest.fixture
def stub_bundle(monkeypatch) -> StubBundle:
    """Replace the cached bundle with a stub."""

    bundle = StubBundle()
    monkeypatch.setattr(api_app, "get_planning_bundle", lambda: bundle)
    return bundle


@pytest.fixture
def client(stub_bundle: StubBundle) -> TestClient:
    """Yield a TestClient that uses the stubbed planning bundle."""

    with TestClient(api_app.app) as test_client:
        yield test_client


def test_health_endpoint(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "service": "day-planner-api"}


def test_plan_returns_complete_itinerary(client: TestClient, stub_bundle: StubBundle) -> None:
    response = client.post("/plan", json=_make_plan_payload())

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "complete"
    assert data["title"] == "Lunch, Drinks in London"
    assert [item["entry"]["activity"] for item in data["itinerary"]["activities"]] == ["lunch", "drinks"]
    assert data["itinerary"]["activities"][0]["duration_minutes"] == 60
    assert data["dropped"] == []
    assert data["messages"] == ["query", "Scheduled 2 activities"]

    request = stub_bundle.requests[-1]
    assert request.plan_date == date(2025, 6, 14)
    assert request.city_slug == "london"


def test_plan_reports_partial_itinerary(client: TestClient, stub_bundle: StubBundle) -> None:
    dropped = DroppedEntry(
        entry=ActivityEntry(activity="museum", kind=EntryKind.FLEXIBLE),
        reason="Venue search timed out",
        error="ProviderTimeout",
    )
    stub_bundle.result = {**stub_bundle.result, "itinerary": _make_itinerary([dropped])}

    data = client.post("/plan", json=_make_plan_payload()).json()

    assert data["status"] == "partial"
    assert data["dropped"][0]["error"] == "ProviderTimeout"
    assert data["dropped"][0]["entry"]["activity"] == "museum"


def test_plan_reports_not_understood(client: TestClient, stub_bundle: StubBundle) -> None:
    stub_bundle.result = {
        "messages": [],
        "parsed": ParsedRequest(),
        "parse_error": "Parse provider unavailable: timeout",
    }

    data = client.post("/plan", json=_make_plan_payload(query="asdf")).json()

    assert data["status"] == "not_understood"
    assert data["itinerary"] is None
    assert data["parse_error"].startswith("Parse provider unavailable")


def test_plan_reports_no_plan(client: TestClient, stub_bundle: StubBundle) -> None:
    empty = Itinerary(title="Day in London", city_slug="london", plan_date=date(2025, 6, 14))
    stub_bundle.result = {"messages": [], "parsed": _make_parsed(), "itinerary": empty}

    data = client.post("/plan", json=_make_plan_payload()).json()

    assert data["status"] == "no_plan"
    assert data["itinerary"] is None
    assert data["title"] is None


def test_plan_unknown_city_returns_404(client: TestClient, stub_bundle: StubBundle) -> None:
    stub_bundle.error = UnknownCityError("atlantis")

    response = client.post("/plan", json=_make_plan_payload(city_slug="atlantis"))

    assert response.status_code == 404
    assert "atlantis" in response.json()["detail"]


def test_plan_runtime_error_returns_500(client: TestClient, stub_bundle: StubBundle) -> None:
    stub_bundle.error = RuntimeError("graph exploded")

    response = client.post("/plan", json=_make_plan_payload())

    assert response.status_code == 500
    assert response.json()["detail"] == "graph exploded"


def test_plan_validation_errors(client: TestClient) -> None:
    assert client.post("/plan", json=_make_plan_payload(query="")).status_code == 422
    assert client.post("/plan", json=_make_plan_payload(start_time="25:00")).status_code == 422
    assert client.post("/plan", json=_make_plan_payload(unexpected=True)).status_code == 422


def test_list_cities(client: TestClient) -> None:
    response = client.get("/cities")

    assert response.status_code == 200
    cities = {city["slug"]: city for city in response.json()}
    assert set(cities) == {"london", "nyc", "boston"}
    assert cities["london"]["timezone"] == "Europe/London"
    assert "Mayfair" in cities["london"]["areas"]


def test_planner_info(client: TestClient) -> None:
    info = client.get("/planner/info").json()["planner_info"]

    assert info["llm_model"] == "rules"
    assert info["venue_search"] is True
    assert info["weather"] is False
    assert info["planning_timeout_s"] == 5.0


def test_bundle_context_defaults() -> None:
    bundle = PlanningBundle(ApiSettings(enable_gap_filling=True))
    assert bundle.places is None and bundle.weather is None and bundle.llm is None

    context = bundle.make_context(PlanRequest(query="coffee", city_slug="New York"))
    assert isinstance(context, PlanContext)
    assert context.city_slug == "nyc"
    assert context.enable_gap_filling is True
    assert context.plan_date == datetime.now(ZoneInfo(get_city_config("nyc").timezone)).date()

    explicit = bundle.make_context(
        PlanRequest.model_validate({"query": "coffee", "date": "2025-06-10", "enable_gap_filling": False})
    )
    assert explicit.plan_date == date(2025, 6, 10)
    assert explicit.enable_gap_filling is False

    with pytest.raises(UnknownCityError):
        bundle.make_context(PlanRequest(query="coffee", city_slug="atlantis"))


async def test_bundle_plan_runs_rule_based_graph() -> None:
    bundle = PlanningBundle(ApiSettings())
    request = PlanRequest.model_validate(_make_plan_payload())

    context, result = await bundle.plan(request)

    assert context.plan_date == date(2025, 6, 14)
    itinerary = result["itinerary"]
    assert itinerary.is_empty
    assert {item.error for item in itinerary.dropped} == {"ProviderError"}
