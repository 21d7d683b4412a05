# backend/routes/manager.py
from __future__ import annotations

from flask import Blueprint, request, jsonify

from auth_guard import require_role
from services.reports import list_tickets, parse_day, revenue_report

manager_bp = Blueprint("manager", __name__, url_prefix="/manager")


@manager_bp.route("/tickets", methods=["GET"])
@require_role("admin")
def tickets():
    rows = list_tickets(
        route_id=request.args.get("routeId", type=int),
        conductor_id=request.args.get("conductorId", type=int),
        status=(request.args.get("status") or "").strip().lower() or None,
        start=parse_day(request.args.get("startDate")),
        end=parse_day(request.args.get("endDate")),
        limit=request.args.get("limit", default=200, type=int),
    )
    return jsonify(tickets=[t.to_dict() for t in rows], count=len(rows)), 200


@manager_bp.route("/revenue-report", methods=["GET"])
@require_role("admin")
def revenue():
    report = revenue_report(
        start=parse_day(request.args.get("startDate")),
        end=parse_day(request.args.get("endDate")),
        route_id=request.args.get("routeId", type=int),
    )
    return jsonify(report), 200
