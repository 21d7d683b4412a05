# backend/routes/bus_routes.py
from __future__ import annotations

from flask import Blueprint, request, jsonify, g

from auth_guard import require_role
from schemas.common import load
from schemas.fleet import RouteCreate, RouteUpdate
from services import fleet

routes_bp = Blueprint("bus_routes", __name__, url_prefix="/routes")


@routes_bp.route("", methods=["GET"])
@require_role()
def list_routes():
    return jsonify(routes=[r.to_dict() for r in fleet.list_routes()]), 200


@routes_bp.route("/<int:route_id>", methods=["GET"])
@require_role()
def get_route(route_id: int):
    route = fleet.get_route(route_id)
    out = route.to_dict()
    out["stopCount"] = sum(1 for s in route.stops if s.is_active)
    return jsonify(route=out), 200


@routes_bp.route("", methods=["POST"])
@require_role("bus_owner")
def create_route():
    data = load(RouteCreate, request.get_json(silent=True))
    route = fleet.create_route(data, creator=g.user)
    return jsonify(message="Route created successfully", route=route.to_dict()), 201


@routes_bp.route("/<int:route_id>", methods=["PUT"])
@require_role("bus_owner")
def update_route(route_id: int):
    data = load(RouteUpdate, request.get_json(silent=True))
    route = fleet.update_route(route_id, data)
    return jsonify(message="Route updated successfully", route=route.to_dict()), 200


@routes_bp.route("/<int:route_id>", methods=["DELETE"])
@require_role("admin")
def delete_route(route_id: int):
    fleet.deactivate_route(route_id)
    return jsonify(message="Route deleted successfully"), 200
