# backend/routes/tickets.py
from __future__ import annotations

from flask import Blueprint, request, jsonify, g

from auth_guard import require_role
from models.ticket import Ticket
from schemas.common import load
from schemas.tickets import CancelRequest, TicketRequest
from services.errors import Forbidden, NotFound
from services.reports import parse_day
from services.ticketing import cancel_ticket, conductor_day, issue_ticket, preview_ticket

tickets_bp = Blueprint("tickets", __name__, url_prefix="/tickets")


@tickets_bp.route("/preview", methods=["POST"])
@require_role("conductor")
def preview():
    req = load(TicketRequest, request.get_json(silent=True))
    return jsonify(preview_ticket(req)), 200


@tickets_bp.route("/generate", methods=["POST"])
@require_role("conductor")
def generate():
    req = load(TicketRequest, request.get_json(silent=True))
    t = issue_ticket(g.user, req)
    return jsonify(message="Ticket generated successfully", ticket=t.to_dict()), 201


@tickets_bp.route("/my-tickets", methods=["GET"])
@require_role("conductor")
def my_tickets():
    """Tickets the caller issued on ?date=YYYY-MM-DD (default: today, UTC)."""
    day = parse_day(request.args.get("date"))
    tickets, summary = conductor_day(g.user.id, day)
    return jsonify(tickets=[t.to_dict() for t in tickets], summary=summary), 200


@tickets_bp.route("/number/<ticket_number>", methods=["GET"])
@require_role()
def by_number(ticket_number: str):
    t = Ticket.query.filter_by(ticket_number=ticket_number.strip().upper()).first()
    if not t:
        raise NotFound("Ticket not found", ticketNumber=ticket_number)
    if g.role == "conductor" and int(t.conductor_id) != int(g.user.id):
        raise Forbidden("Access denied")
    return jsonify(ticket=t.to_dict()), 200


@tickets_bp.route("/<int:ticket_id>/cancel", methods=["PATCH"])
@require_role("conductor")
def cancel(ticket_id: int):
    body = load(CancelRequest, request.get_json(silent=True))
    t = cancel_ticket(ticket_id, g.user, body.reason)
    return jsonify(message="Ticket cancelled successfully", ticket=t.to_dict()), 200
