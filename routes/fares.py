# backend/routes/fares.py
from __future__ import annotations

from flask import Blueprint, request, jsonify

from auth_guard import require_role
from models.bus import BUS_CATEGORIES
from schemas.common import load
from schemas.fares import FareQuery
from services.direction import canonical_stops, locate_journey
from services.errors import InvalidPayload
from services.fares import FareResolver, fare_structure

fares_bp = Blueprint("fares", __name__, url_prefix="/fares")


def _category_arg(raw: str | None) -> str:
    category = (raw or "normal").strip().lower()
    if category not in BUS_CATEGORIES:
        raise InvalidPayload("unknown category", category=raw, allowed=list(BUS_CATEGORIES))
    return category


def _stop_view(stop, section: int, row=None) -> dict:
    out = {
        "stopName": stop.stop_name if stop is not None else (row.stop_name if row is not None else None),
        "sectionNumber": section,
    }
    if stop is not None:
        out["stopId"] = stop.id
        out["code"] = stop.code
    if row is not None:
        out["fare"] = row.fare
    return out


@fares_bp.route("/calculate", methods=["POST"])
@require_role()
def calculate():
    """
    Point-to-point fare. With a direction the section numbers are the ones the
    conductor sees for that direction; without one they are canonical.
    """
    q = load(FareQuery, request.get_json(silent=True))

    if q.direction:
        journey = locate_journey(q.route_id, q.direction, q.from_section, q.to_section)
        from_section, to_section = journey.from_section, journey.to_section
        from_stop, to_stop = journey.from_stop, journey.to_stop
    else:
        from_section, to_section = q.from_section, q.to_section
        by_section = {s.section_number: s for s in canonical_stops(q.route_id)}
        from_stop, to_stop = by_section.get(from_section), by_section.get(to_section)

    quote = FareResolver().resolve(q.route_id, q.category, from_section, to_section)

    return jsonify(
        fromStop=_stop_view(from_stop, from_section, quote.from_row),
        toStop=_stop_view(to_stop, to_section, quote.to_row),
        fare=quote.fare,
        calculatedFare=quote.fare,
        sections=quote.sections,
        category=q.category,
        direction=q.direction or "forward",
        dataSource=quote.source,
    ), 200


@fares_bp.route("/matrix/<int:route_id>", methods=["GET"])
@require_role()
def matrix(route_id: int):
    category = _category_arg(request.args.get("category"))
    stops, rows = FareResolver().fare_matrix(route_id, category)
    return jsonify(
        category=category,
        stops=[s.to_dict() for s in stops],
        fareMatrix=rows,
    ), 200


@fares_bp.route("/structure/<category>", methods=["GET"])
@require_role()
def structure(category: str):
    category = _category_arg(category)
    sections = fare_structure(category)
    return jsonify(
        success=True,
        category=category,
        fareStructure=[
            {"section": s.section_number, "fare": s.fare, "description": s.description}
            for s in sections
        ],
        totalSections=len(sections),
    ), 200
