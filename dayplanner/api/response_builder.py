from typing import Any, List, Mapping, Optional

from langchain_core.messages import BaseMessage

from dayplanner.api.schemas import PlanResponse, PlanStatus
from dayplanner.core.schemas import Itinerary, ParsedRequest


def _messages_to_strings(result: Mapping[str, Any]) -> List[str]:
    rendered: List[str] = []
    for message in result.get("messages", []):
        if isinstance(message, BaseMessage):
            content = getattr(message, "content", None)
            rendered.append(content if isinstance(content, str) else repr(message))
        else:
            rendered.append(str(message))
    return rendered


def _determine_status(result: Mapping[str, Any]) -> PlanStatus:
    parsed: Optional[ParsedRequest] = result.get("parsed")
    if result.get("parse_error") or parsed is None or parsed.is_empty:
        return "not_understood"
    itinerary: Optional[Itinerary] = result.get("itinerary")
    if itinerary is None or itinerary.is_empty:
        return "no_plan"
    if itinerary.dropped:
        return "partial"
    return "complete"


def _result_to_response(result: Mapping[str, Any]) -> PlanResponse:
    itinerary: Optional[Itinerary] = result.get("itinerary")
    status = _determine_status(result)
    return PlanResponse(
        status=status,
        title=itinerary.title if itinerary and not itinerary.is_empty else None,
        itinerary=itinerary if status in ("complete", "partial") else None,
        dropped=list(itinerary.dropped) if itinerary else [],
        parse_error=result.get("parse_error"),
        messages=_messages_to_strings(result),
    )
