# schemas/tickets.py
from __future__ import annotations

from typing import Literal, Optional

from pydantic import Field, StrictInt

from schemas.common import DirectionName, Payload


class TicketRequest(Payload):
    """Sections are the displayed numbers for the given direction."""
    bus_number: str = Field(min_length=1)
    route_id: Optional[StrictInt] = None
    from_section_number: StrictInt
    to_section_number: StrictInt
    direction: DirectionName = "forward"
    passenger_count: StrictInt = Field(1, ge=1)
    payment_method: Literal["cash", "card", "mobile"] = "cash"


class CancelRequest(Payload):
    reason: Optional[str] = Field(None, max_length=120)
