"""Configuration helpers for API keys and environment variables."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_LLM_MODEL = "grok-4-fast-reasoning"
DEFAULT_PLANNING_TIMEOUT_S = 20.0


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise RuntimeError(f"Invalid number in {name}: {value!r}") from exc


@dataclass(slots=True)
class ApiSettings:
    """Centralised container for the external service credentials."""

    xai_api_key: Optional[str] = None
    google_places_api_key: Optional[str] = None
    weather_api_key: Optional[str] = None
    llm_model: str = DEFAULT_LLM_MODEL
    planning_timeout_s: float = DEFAULT_PLANNING_TIMEOUT_S
    enable_gap_filling: bool = False

    @classmethod
    def from_env(cls) -> "ApiSettings":
        """Load settings from environment variables."""

        return cls(
            xai_api_key=os.getenv("XAI_API_KEY"),
            google_places_api_key=os.getenv("GOOGLE_PLACES_API_KEY"),
            weather_api_key=os.getenv("OPENWEATHER_API_KEY"),
            llm_model=os.getenv("PLANNER_LLM_MODEL") or DEFAULT_LLM_MODEL,
            planning_timeout_s=_env_float("PLANNING_TIMEOUT_S", DEFAULT_PLANNING_TIMEOUT_S),
            enable_gap_filling=_env_flag("ENABLE_GAP_FILLING"),
        )

    def ensure(self, field: str) -> str:
        """Return the requested field and fail fast if it is missing."""

        value = getattr(self, field)
        if not value:
            raise RuntimeError(f"Missing configuration value: {field}")
        return value
