from typing import Any, Optional

from langgraph.checkpoint.memory import InMemorySaver
from langgraph.graph import END, START, StateGraph

from dayplanner.core.nodes import (
    ForecastProvider,
    VenueSearch,
    make_assemble_node,
    make_parse_node,
    make_resolve_node,
    route_after_parse,
)
from dayplanner.core.parser import LLMParseService
from dayplanner.core.schemas import PlanContext, State
from dayplanner.core.weather import WeatherSuitabilityFilter


def build_planner_graph(
    *,
    llm_service: Optional[LLMParseService] = None,
    search: Optional[VenueSearch] = None,
    weather: Optional[ForecastProvider] = None,
    weather_filter: Optional[WeatherSuitabilityFilter] = None,
    memory: Optional[InMemorySaver] = None,
) -> Any:
    """Wire parse, resolve and assemble into a compiled LangGraph state machine."""

    graph_builder = StateGraph(state_schema=State, context_schema=PlanContext)

    graph_builder.add_node("parse_request", make_parse_node(llm_service))
    graph_builder.add_node("resolve_entries", make_resolve_node(search, weather))
    graph_builder.add_node("assemble_schedule", make_assemble_node(weather_filter))

    graph_builder.add_edge(START, "parse_request")
    # Unparseable or empty requests stop before any provider is called
    graph_builder.add_conditional_edges(
        "parse_request",
        route_after_parse,
        {"resolve_entries": "resolve_entries", END: END},
    )
    graph_builder.add_edge("resolve_entries", "assemble_schedule")
    graph_builder.add_edge("assemble_schedule", END)

    return graph_builder.compile(checkpointer=memory)
