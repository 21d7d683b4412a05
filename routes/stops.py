# backend/routes/stops.py
from __future__ import annotations

from flask import Blueprint, request, jsonify

from auth_guard import require_role
from schemas.common import load
from schemas.fleet import StopCreate, StopUpdate
from services import fleet
from services.direction import (
    canonical_stops,
    displayed_stops,
    find_displayed_stop,
    normalize_direction,
    resolve_destination,
    route_span,
)
from services.errors import InvalidPayload

stops_bp = Blueprint("stops", __name__, url_prefix="/stops")


def _stop_payload(stop, shown: int) -> dict:
    out = stop.to_dict()
    out["displayedSection"] = shown
    return out


@stops_bp.route("/route/<int:route_id>", methods=["GET"])
@require_role()
def route_stops(route_id: int):
    """Stops in the order the conductor walks them for ?direction= (default forward)."""
    route = fleet.get_route(route_id)
    direction = normalize_direction(request.args.get("direction"))
    stops = canonical_stops(route_id)
    return jsonify(
        route={"id": route.id, "routeName": route.route_name, "routeNumber": route.route_number},
        direction=direction,
        totalSections=route_span(stops),
        stops=[_stop_payload(s, shown) for shown, s in displayed_stops(stops, direction)],
    ), 200


@stops_bp.route("/route/<int:route_id>/section/<typed>", methods=["GET"])
@require_role()
def stop_by_section(route_id: int, typed: str):
    """
    Look up the stop a conductor typed. With ?fromSection= the typed stop is
    treated as the destination and the pair is validated for the direction.
    """
    fleet.get_route(route_id)
    direction = normalize_direction(request.args.get("direction"))
    stops = canonical_stops(route_id)

    raw_from = request.args.get("fromSection")
    if raw_from is None or raw_from == "":
        shown, stop = find_displayed_stop(stops, direction, typed)
        return jsonify(direction=direction, stop=_stop_payload(stop, shown)), 200

    try:
        displayed_from = int(raw_from)
    except ValueError:
        raise InvalidPayload("fromSection must be an integer", fromSection=raw_from)

    j = resolve_destination(stops, direction, displayed_from, typed)
    return jsonify(
        direction=j.direction,
        stop=_stop_payload(j.to_stop, j.displayed_to),
        journey={
            "fromStop": _stop_payload(j.from_stop, j.displayed_from),
            "toStop": _stop_payload(j.to_stop, j.displayed_to),
            "fromSection": j.from_section,
            "toSection": j.to_section,
            "sections": j.to_section - j.from_section,
        },
    ), 200


# ---------- stop management ----------

@stops_bp.route("", methods=["POST"])
@require_role("bus_owner")
def create_stop():
    data = load(StopCreate, request.get_json(silent=True))
    stop = fleet.create_stop(data)
    return jsonify(message="Stop created successfully", stop=stop.to_dict()), 201


@stops_bp.route("/<int:stop_id>", methods=["PUT"])
@require_role("bus_owner")
def update_stop(stop_id: int):
    data = load(StopUpdate, request.get_json(silent=True))
    stop = fleet.update_stop(stop_id, data)
    return jsonify(message="Stop updated successfully", stop=stop.to_dict()), 200


@stops_bp.route("/<int:stop_id>", methods=["DELETE"])
@require_role("admin")
def delete_stop(stop_id: int):
    fleet.deactivate_stop(stop_id)
    return jsonify(message="Stop deleted successfully"), 200
