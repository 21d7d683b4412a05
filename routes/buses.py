# backend/routes/buses.py
from __future__ import annotations

from flask import Blueprint, request, jsonify

from auth_guard import require_role
from models.bus import BUS_CATEGORIES, Bus
from schemas.common import load
from schemas.fleet import BusCreate, BusUpdate
from services import fleet
from services.errors import InvalidPayload

buses_bp = Blueprint("buses", __name__, url_prefix="/buses")


def _bus_payload(bus: Bus) -> dict:
    out = bus.to_dict()
    route = bus.route
    out["route"] = (
        {"id": route.id, "routeName": route.route_name, "routeNumber": route.route_number}
        if route else None
    )
    c = bus.conductor
    out["conductor"] = {"id": c.id, "username": c.username, "employeeId": c.employee_id} if c else None
    return out


def _category(raw: str | None) -> str | None:
    category = (raw or "").strip().lower() or None
    if category is not None and category not in BUS_CATEGORIES:
        raise InvalidPayload("unknown category", category=raw, allowed=list(BUS_CATEGORIES))
    return category


@buses_bp.route("", methods=["GET"])
@require_role()
def list_buses():
    raw_active = (request.args.get("isActive") or "").strip().lower()
    rows = fleet.list_buses(
        route_id=request.args.get("routeId", type=int),
        category=_category(request.args.get("category")),
        is_active=(raw_active == "true") if raw_active else None,
    )
    return jsonify(buses=[_bus_payload(b) for b in rows]), 200


@buses_bp.route("/<int:bus_id>", methods=["GET"])
@require_role()
def get_bus(bus_id: int):
    return jsonify(bus=_bus_payload(fleet.get_bus(bus_id))), 200


@buses_bp.route("/route/<int:route_id>/category/<category>", methods=["GET"])
@require_role()
def buses_for_route(route_id: int, category: str):
    rows = fleet.buses_for(route_id, _category(category))
    return jsonify(buses=[_bus_payload(b) for b in rows]), 200


@buses_bp.route("/conductors/available", methods=["GET"])
@require_role("admin")
def available_conductors():
    return jsonify(conductors=[u.to_dict() for u in fleet.available_conductors()]), 200


@buses_bp.route("", methods=["POST"])
@require_role("admin")
def create_bus():
    data = load(BusCreate, request.get_json(silent=True))
    bus = fleet.create_bus(data)
    return jsonify(message="Bus created successfully", bus=_bus_payload(bus)), 201


@buses_bp.route("/<int:bus_id>", methods=["PUT"])
@require_role("admin")
def update_bus(bus_id: int):
    data = load(BusUpdate, request.get_json(silent=True))
    bus = fleet.update_bus(bus_id, data)
    return jsonify(message="Bus updated successfully", bus=_bus_payload(bus)), 200


@buses_bp.route("/<int:bus_id>", methods=["DELETE"])
@require_role("admin")
def delete_bus(bus_id: int):
    fleet.deactivate_bus(bus_id)
    return jsonify(message="Bus deleted successfully"), 200
