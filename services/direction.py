# backend/services/direction.py
"""
Displayed vs canonical section numbers.

Stops are stored with their canonical section number (route origin = 0,
terminus = N - 1). The conductor sees them numbered by travel direction:

  forward: displayed = canonical
  return : displayed = (N - 1) - canonical

The mirror is its own inverse, so the same formula converts both ways.
"""

from __future__ import annotations

from typing import List, NamedTuple, Optional, Tuple

from models.stop import Stop
from services.errors import BackwardTravel, InvalidPayload, NegativeSection, NotFound

FORWARD = "forward"
RETURN = "return"
DIRECTIONS = (FORWARD, RETURN)


class Journey(NamedTuple):
    direction: str
    span: int
    displayed_from: int
    displayed_to: int
    from_section: int      # canonical
    to_section: int        # canonical
    from_stop: Stop
    to_stop: Stop


def normalize_direction(value: Optional[str]) -> str:
    d = (value or FORWARD).strip().lower()
    if d not in DIRECTIONS:
        raise InvalidPayload("direction must be 'forward' or 'return'", direction=value)
    return d


def canonical_stops(route_id: int) -> List[Stop]:
    return (
        Stop.query
        .filter(Stop.route_id == route_id, Stop.is_active.is_(True))
        .order_by(Stop.section_number.asc(), Stop.order.asc(), Stop.id.asc())
        .all()
    )


def route_span(stops: List[Stop]) -> int:
    if not stops:
        return 0
    return max(int(s.section_number) for s in stops) + 1


def to_display(canonical: int, span: int, direction: str) -> int:
    if direction == RETURN:
        return (span - 1) - int(canonical)
    return int(canonical)


def to_canonical(displayed: int, span: int, direction: str) -> int:
    return to_display(displayed, span, direction)


def displayed_stops(stops: List[Stop], direction: str) -> List[Tuple[int, Stop]]:
    span = route_span(stops)
    pairs = [(to_display(s.section_number, span, direction), s) for s in stops]
    return sorted(pairs, key=lambda p: p[0])


def reconcile(span: int, direction: str, displayed_from: int, displayed_to: int) -> Tuple[int, int]:
    """Displayed pair -> canonical pair; rejects anything that is not forward in canonical space."""
    displayed_from, displayed_to = int(displayed_from), int(displayed_to)
    if displayed_from < 0 or displayed_to < 0:
        raise NegativeSection(
            "Section numbers must be zero or greater",
            fromSection=displayed_from,
            toSection=displayed_to,
        )
    if displayed_from >= span or displayed_to >= span:
        raise NotFound(
            "Section number is beyond the end of the route",
            fromSection=displayed_from,
            toSection=displayed_to,
            sections=span,
        )

    canonical_from = to_canonical(displayed_from, span, direction)
    canonical_to = to_canonical(displayed_to, span, direction)
    if canonical_from >= canonical_to:
        if direction == RETURN:
            msg = (f"For the return direction, the destination section ({displayed_to}) "
                   f"must be before the current section ({displayed_from}).")
        else:
            msg = (f"For the forward direction, the destination section ({displayed_to}) "
                   f"must be after the current section ({displayed_from}).")
        raise BackwardTravel(msg, direction=direction, fromSection=displayed_from, toSection=displayed_to)
    return canonical_from, canonical_to


def stop_at(stops: List[Stop], canonical: int) -> Stop:
    for s in stops:
        if int(s.section_number) == int(canonical):
            return s
    raise NotFound("Stop not found", sectionNumber=int(canonical))


def find_displayed_stop(stops: List[Stop], direction: str, typed) -> Tuple[int, Stop]:
    """Conductor typed a 'get off here' section; match it against the displayed numbering."""
    try:
        value = int(str(typed).strip())
    except (TypeError, ValueError):
        raise NotFound("No stop matches that section number", typed=str(typed))

    for shown, stop in displayed_stops(stops, direction):
        if shown == value:
            return shown, stop
    raise NotFound("No stop matches that section number", typed=str(typed))


def resolve_destination(stops: List[Stop], direction: str, displayed_from: int, typed) -> Journey:
    shown_to, to_stop = find_displayed_stop(stops, direction, typed)
    span = route_span(stops)
    canonical_from, canonical_to = reconcile(span, direction, displayed_from, shown_to)
    return Journey(
        direction, span, int(displayed_from), shown_to,
        canonical_from, canonical_to,
        stop_at(stops, canonical_from), to_stop,
    )


def locate_journey(route_id: int, direction: str, displayed_from: int, displayed_to: int) -> Journey:
    direction = normalize_direction(direction)
    stops = canonical_stops(route_id)
    span = route_span(stops)
    canonical_from, canonical_to = reconcile(span, direction, displayed_from, displayed_to)
    return Journey(
        direction, span, int(displayed_from), int(displayed_to),
        canonical_from, canonical_to,
        stop_at(stops, canonical_from), stop_at(stops, canonical_to),
    )
