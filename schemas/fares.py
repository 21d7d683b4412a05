# schemas/fares.py
from __future__ import annotations

from typing import Optional

from pydantic import StrictInt

from schemas.common import Category, DirectionName, Payload


class FareQuery(Payload):
    """
    fromSection/toSection are canonical unless a direction is given, in which
    case they are the numbers shown to the conductor for that direction.
    """
    route_id: StrictInt
    from_section: StrictInt
    to_section: StrictInt
    category: Category = "normal"
    direction: Optional[DirectionName] = None
