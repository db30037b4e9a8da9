import logging
import os
import time
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Tuple
from zoneinfo import ZoneInfo

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import HumanMessage
from langchain_xai import ChatXAI

from dayplanner.api.schemas import PlanRequest
from dayplanner.core.config import ApiSettings
from dayplanner.core.graph_builder import build_planner_graph
from dayplanner.core.knowledge_base import get_city_config
from dayplanner.core.parser import LLMParseService
from dayplanner.core.schemas import PlanContext
from dayplanner.services import create_places_client, create_weather_client

logger = logging.getLogger(__name__)

DEFAULT_RECURSION_LIMIT = int(os.getenv("GRAPH_RECURSION_LIMIT", "25"))


class PlanningBundle:
    """Container for the planning graph and its external clients.

    Attributes:
        settings: API configuration with external service credentials
        llm: Chat model used for request parsing, ``None`` for rule-based parsing
        places: Venue search client, ``None`` when no key is configured
        weather: Forecast client, ``None`` when no key is configured
        graph: Compiled LangGraph workflow
    """

    def __init__(self, settings: ApiSettings, *, llm: Optional[BaseChatModel] = None) -> None:
        self.settings = settings
        self.recursion_limit = DEFAULT_RECURSION_LIMIT

        if llm is None and settings.xai_api_key:
            llm = ChatXAI(
                model=settings.llm_model,
                temperature=0,
                api_key=settings.ensure("xai_api_key"),
            )
        if llm is None:
            logger.warning("XAI_API_KEY not set; using the rule-based request parser")
        self.llm = llm

        self.places = create_places_client(settings)
        self.weather = create_weather_client(settings)
        self.graph = build_planner_graph(
            llm_service=LLMParseService(llm) if llm is not None else None,
            search=self.places,
            weather=self.weather,
        )

    def __repr__(self) -> str:
        llm_name = getattr(self.llm, "model_name", None) or getattr(self.llm, "model", None) or "rules"
        return (
            f"PlanningBundle(llm='{llm_name}', places={self.places is not None}, "
            f"weather={self.weather is not None}, timeout_s={self.settings.planning_timeout_s})"
        )

    async def close(self) -> None:
        for client in (self.places, self.weather):
            if client is not None:
                await client.aclose()

    def make_context(self, request: PlanRequest) -> PlanContext:
        """Validate the request against the city registry and build the run context.

        Raises ``UnknownCityError`` for unsupported cities.
        """

        city = get_city_config(request.city_slug)
        plan_date = request.plan_date or datetime.now(ZoneInfo(city.timezone)).date()
        gap_filling = request.enable_gap_filling
        return PlanContext(
            query=request.query,
            city_slug=city.slug,
            plan_date=plan_date,
            start_time=request.start_time,
            enable_gap_filling=self.settings.enable_gap_filling if gap_filling is None else gap_filling,
            preferred_mode=request.preferred_mode,
            history=tuple(request.history),
        )

    async def plan(self, request: PlanRequest) -> Tuple[PlanContext, Mapping[str, Any]]:
        """Run the planning workflow once; returns the context and final state."""

        context = self.make_context(request)
        logger.info(f"Planning {context.plan_date} in {context.city_slug}: {context.query!r}")
        initial: Dict[str, Any] = {
            "messages": [HumanMessage(content=context.query)],
            "deadline": time.monotonic() + self.settings.planning_timeout_s,
        }
        result = await self.graph.ainvoke(
            initial,
            context=context,
            config={"recursion_limit": self.recursion_limit},
        )
        return context, result
