from contextlib import asynccontextmanager
from functools import lru_cache
from typing import AsyncGenerator

from fastapi import FastAPI

from dayplanner.api.planning_service import PlanningBundle
from dayplanner.core.config import ApiSettings


@lru_cache(maxsize=1)
def get_planning_bundle() -> PlanningBundle:
    settings = ApiSettings.from_env()
    return PlanningBundle(settings)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    try:
        yield
    finally:
        if get_planning_bundle.cache_info().currsize:
            await get_planning_bundle().close()
