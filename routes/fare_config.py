# backend/routes/fare_config.py
from __future__ import annotations

from collections import OrderedDict

from flask import Blueprint, request, jsonify

from auth_guard import require_role
from models.bus import BUS_CATEGORIES
from schemas.common import load
from schemas.config import (
    AutoGenerateRequest,
    RouteSectionBulk,
    RouteSectionCreate,
    RouteSectionUpdate,
    SectionCreate,
    SectionUpdate,
)
from services import fare_config as svc
from services.errors import InvalidPayload

config_bp = Blueprint("fare_config", __name__, url_prefix="/config")


def _category_arg(raw: str | None, required: bool = False) -> str | None:
    category = (raw or "").strip().lower() or None
    if category is None and not required:
        return None
    if category not in BUS_CATEGORIES:
        raise InvalidPayload("unknown category", category=raw, allowed=list(BUS_CATEGORIES))
    return category


# ---------- sections (bus owner) ----------

@config_bp.route("/sections", methods=["GET"])
@require_role("bus_owner")
def list_sections():
    category = _category_arg(request.args.get("category"))
    rows = svc.list_sections(category)
    return jsonify(sections=[s.to_dict() for s in rows]), 200


@config_bp.route("/sections", methods=["POST"])
@require_role("bus_owner")
def create_section():
    data = load(SectionCreate, request.get_json(silent=True))
    row = svc.create_section(data)
    return jsonify(message="Section created successfully", section=row.to_dict()), 201


@config_bp.route("/sections/<int:section_id>", methods=["PUT"])
@require_role("bus_owner")
def update_section(section_id: int):
    data = load(SectionUpdate, request.get_json(silent=True))
    row = svc.update_section(section_id, data)
    return jsonify(message="Section updated successfully", section=row.to_dict()), 200


@config_bp.route("/sections/<int:section_id>", methods=["DELETE"])
@require_role("bus_owner")
def delete_section(section_id: int):
    svc.deactivate_section(section_id)
    return jsonify(message="Section deleted successfully"), 200


# ---------- route sections (admin) ----------

@config_bp.route("/route-sections/route/<int:route_id>", methods=["GET"])
@require_role("admin")
def list_route_sections(route_id: int):
    category = _category_arg(request.args.get("category"))
    rows = svc.list_route_sections(route_id, category)

    grouped: "OrderedDict[str, list]" = OrderedDict()
    for r in rows:
        grouped.setdefault(r.category, []).append(r.to_dict())

    return jsonify(
        routeId=route_id,
        routeSections=[r.to_dict() for r in rows],
        groupedByCategory=grouped,
        total=len(rows),
    ), 200


@config_bp.route("/route-sections", methods=["POST"])
@require_role("admin")
def create_route_section():
    data = load(RouteSectionCreate, request.get_json(silent=True))
    row = svc.create_route_section(data)
    return jsonify(message="Route section created successfully", routeSection=row.to_dict()), 201


@config_bp.route("/route-sections/bulk", methods=["POST"])
@require_role("admin")
def bulk_create_route_sections():
    data = load(RouteSectionBulk, request.get_json(silent=True))
    created, errors = svc.bulk_create_route_sections(data)
    return jsonify(
        message=f"Created {len(created)} route sections",
        created=[r.to_dict() for r in created],
        errors=errors,
    ), (201 if created else 400)


@config_bp.route("/route-sections/<int:row_id>", methods=["PUT"])
@require_role("admin")
def update_route_section(row_id: int):
    data = load(RouteSectionUpdate, request.get_json(silent=True))
    row = svc.update_route_section(row_id, data)
    return jsonify(message="Route section updated successfully", routeSection=row.to_dict()), 200


@config_bp.route("/route-sections/<int:row_id>", methods=["DELETE"])
@require_role("admin")
def delete_route_section(row_id: int):
    svc.deactivate_route_section(row_id)
    return jsonify(message="Route section deleted successfully"), 200


@config_bp.route("/route-sections/auto-generate/<int:route_id>/<category>", methods=["POST"])
@require_role("admin")
def auto_generate(route_id: int, category: str):
    category = _category_arg(category, required=True)
    body = load(AutoGenerateRequest, request.get_json(silent=True))
    created, errors = svc.auto_generate_route_sections(route_id, category, body.fare_multiplier)
    return jsonify(
        message=f"Auto-generated {len(created)} route sections",
        created=[r.to_dict() for r in created],
        errors=errors,
    ), 201
