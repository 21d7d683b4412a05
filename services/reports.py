# backend/services/reports.py
"""
Admin reporting over issued tickets. Cancelled tickets never count as revenue.

Public API:
  - parse_day(raw) -> date | None
  - revenue_report(start, end, route_id=None) -> dict
  - list_tickets(route_id=None, conductor_id=None, status=None, start=None, end=None, limit=200) -> [Ticket]
"""

from __future__ import annotations

import datetime as dt
from typing import List, Optional

from dateutil import parser as dtparse
from flask import current_app
from sqlalchemy import func

from db import db
from models.bus_route import BusRoute
from models.ticket import TICKET_STATUSES, Ticket
from models.user import User
from services.errors import InvalidPayload


def parse_day(raw: Optional[str]) -> Optional[dt.date]:
    if not raw:
        return None
    try:
        return dtparse.parse(raw).date()
    except (ValueError, OverflowError):
        raise InvalidPayload("invalid date", value=raw)


def _window(q, start: Optional[dt.date], end: Optional[dt.date]):
    # end is inclusive (whole day)
    if start:
        q = q.filter(Ticket.issued_at >= dt.datetime.combine(start, dt.time.min))
    if end:
        q = q.filter(Ticket.issued_at < dt.datetime.combine(end + dt.timedelta(days=1), dt.time.min))
    return q


def revenue_report(
    start: Optional[dt.date] = None,
    end: Optional[dt.date] = None,
    route_id: Optional[int] = None,
) -> dict:
    if start and end and end < start:
        raise InvalidPayload("endDate is before startDate")

    def base(*cols):
        q = db.session.query(*cols).select_from(Ticket).filter(Ticket.status != "cancelled")
        if route_id:
            q = q.filter(Ticket.route_id == route_id)
        return _window(q, start, end)

    tickets_col = func.count(Ticket.id).label("tickets")
    revenue_col = func.coalesce(func.sum(Ticket.fare), 0).label("revenue")

    totals = base(tickets_col, revenue_col).one()
    total_tickets = int(totals.tickets or 0)
    total_revenue = int(totals.revenue or 0)

    by_route = (
        base(BusRoute.id, BusRoute.route_name, BusRoute.route_number, tickets_col, revenue_col)
        .join(BusRoute, BusRoute.id == Ticket.route_id)
        .group_by(BusRoute.id, BusRoute.route_name, BusRoute.route_number)
        .order_by(BusRoute.route_number.asc())
        .all()
    )
    by_conductor = (
        base(User.id, User.username, tickets_col, revenue_col)
        .join(User, User.id == Ticket.conductor_id)
        .group_by(User.id, User.username)
        .order_by(User.username.asc())
        .all()
    )

    current_app.logger.info(
        "[reports] revenue start=%s end=%s route=%s tickets=%s revenue=%s",
        start, end, route_id, total_tickets, total_revenue,
    )

    return {
        "summary": {
            "totalRevenue": total_revenue,
            "totalTickets": total_tickets,
            "averageFare": round(total_revenue / total_tickets, 2) if total_tickets else 0,
        },
        "revenueByRoute": [
            {
                "routeId": r.id,
                "routeName": r.route_name,
                "routeNumber": r.route_number,
                "totalRevenue": int(r.revenue or 0),
                "totalTickets": int(r.tickets or 0),
            }
            for r in by_route
        ],
        "revenueByConductor": [
            {
                "conductorId": r.id,
                "conductorName": r.username,
                "totalRevenue": int(r.revenue or 0),
                "totalTickets": int(r.tickets or 0),
            }
            for r in by_conductor
        ],
        "period": {
            "startDate": start.isoformat() if start else "N/A",
            "endDate": end.isoformat() if end else "N/A",
        },
    }


def list_tickets(
    route_id: Optional[int] = None,
    conductor_id: Optional[int] = None,
    status: Optional[str] = None,
    start: Optional[dt.date] = None,
    end: Optional[dt.date] = None,
    limit: int = 200,
) -> List[Ticket]:
    if status and status not in TICKET_STATUSES:
        raise InvalidPayload("invalid status", status=status, allowed=list(TICKET_STATUSES))

    q = Ticket.query
    if route_id:
        q = q.filter(Ticket.route_id == route_id)
    if conductor_id:
        q = q.filter(Ticket.conductor_id == conductor_id)
    if status:
        q = q.filter(Ticket.status == status)
    q = _window(q, start, end)

    limit = max(1, min(200 if limit is None else int(limit), 1000))
    return q.order_by(Ticket.issued_at.desc(), Ticket.id.desc()).limit(limit).all()
