"""FastAPI surface for the day itinerary planner."""
from __future__ import annotations

import os
# Load environment variables from .env file
from dotenv import load_dotenv

# Load .env file before any other imports that might need environment variables
load_dotenv()


import logging
from typing import Any, Dict, List

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from dayplanner.api.dependencies import get_planning_bundle, lifespan
from dayplanner.api.response_builder import _result_to_response
from dayplanner.api.schemas import CityInfo, PlanRequest, PlanResponse
from dayplanner.core.errors import UnknownCityError
from dayplanner.core.knowledge_base import available_cities, load_knowledge_base

logger = logging.getLogger(__name__)

try:  # pragma: no cover - exercised through import side effects
    import sentry_sdk
except ImportError:  # pragma: no cover - only triggers in lean environments
    sentry_sdk = None  # type: ignore[assignment]
else:  # pragma: no cover - runtime configuration
    if os.getenv("SENTRY_DSN"):
        sentry_sdk.init(
            dsn=os.getenv("SENTRY_DSN"),
            enable_logs=True,
            traces_sample_rate=float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.1")),
        )

app = FastAPI(title="Day Planner API", version="0.1.0", lifespan=lifespan)

origins = [
    "http://localhost:3000",
    "http://localhost:5173",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.post("/plan", response_model=PlanResponse)
async def plan_day(payload: PlanRequest) -> PlanResponse:
    """Plan a single day from a free-text request.

    The workflow parses the request into fixed and flexible activities,
    resolves areas, venues and forecasts for each, and assembles a
    travel-aware timeline. Entries that cannot be placed are listed in
    ``dropped``; a partial itinerary is returned whenever at least one entry
    was placed.

    Raises:
        HTTPException: 404 for unknown cities, 400 for invalid input, 500 for workflow errors

    Example JSON payload:
        ```json
        {
            "query": "Lunch in Mayfair at 12, then a quiet coffee nearby, and drinks in Chelsea at 7pm",
            "date": "2025-06-14",
            "city_slug": "london"
        }
        ```
    """

    logger.info(f"Plan request for {payload.city_slug}: {payload.query!r}")
    bundle = get_planning_bundle()
    try:
        _, result = await bundle.plan(payload)
    except UnknownCityError as exc:
        logger.warning(f"Unknown city requested: {exc.slug}")
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValueError as exc:
        logger.error(f"Value error during plan: {str(exc)}")
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except RuntimeError as exc:
        logger.error(f"Runtime error during plan: {str(exc)}")
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    except Exception as exc:
        logger.error(f"Unexpected error during plan: {str(exc)}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    response = _result_to_response(result)
    logger.info(f"Plan finished with status {response.status}")
    return response


@app.get("/cities", response_model=List[CityInfo])
async def list_cities() -> List[CityInfo]:
    """Supported cities and their known areas."""

    return [
        CityInfo(
            slug=city.slug,
            name=city.name,
            timezone=city.timezone,
            areas=load_knowledge_base(city.slug).names(),
        )
        for city in available_cities()
    ]


@app.get("/health")
async def health_check() -> Dict[str, str]:
    """Simple health endpoint used for readiness probes."""

    return {"status": "healthy", "service": "day-planner-api"}


@app.get("/planner/info")
async def get_planner_info() -> Dict[str, Any]:
    """Get information about the planner configuration."""

    bundle = get_planning_bundle()
    return {
        "planner_info": {
            "llm_model": getattr(bundle.llm, "model_name", None) or ("rules" if bundle.llm is None else type(bundle.llm).__name__),
            "venue_search": bundle.places is not None,
            "weather": bundle.weather is not None,
            "planning_timeout_s": bundle.settings.planning_timeout_s,
            "recursion_limit": bundle.recursion_limit,
        }
    }
