# backend/services/ticketing.py
"""
Conductor ticket issuance and the ticket lifecycle.

Amounts are WHOLE RUPEES (ints).

Public API:
  - price_journey(req: TicketRequest) -> Priced
  - preview_ticket(req: TicketRequest) -> dict
  - issue_ticket(conductor: User, req: TicketRequest) -> Ticket
  - cancel_ticket(ticket_id: int, actor: User, reason: str | None = None) -> Ticket
  - conductor_day(conductor_id: int, day: date | None = None) -> (tickets, summary)
  - format_ticket_number(day, seq) -> 'TKT20250101000001'

Ticket numbers come from an atomically bumped per-day counter row. The
counter commits on its own, so a ticket insert that fails later leaves a gap
instead of handing the same number to the next issuer.
"""

from __future__ import annotations

import datetime as dt
from typing import List, NamedTuple, Optional, Tuple

from flask import current_app
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from db import db
from models.bus import Bus
from models.ticket import Ticket, TicketCounter
from models.user import User
from schemas.tickets import TicketRequest
from services.direction import Journey, locate_journey
from services.errors import (
    DuplicateTicketNumber,
    Forbidden,
    InvalidPayload,
    InvalidTicketTransition,
    NotFound,
)
from services.fares import FareQuote, FareResolver


class Priced(NamedTuple):
    bus: Bus
    journey: Journey
    quote: FareQuote
    total_fare: int


# ---------- small utils ----------

def now_utc_naive() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc).replace(tzinfo=None)


def ticket_day(at: Optional[dt.datetime] = None) -> dt.date:
    return (at or now_utc_naive()).date()


def day_bounds(day: dt.date) -> Tuple[dt.datetime, dt.datetime]:
    start = dt.datetime.combine(day, dt.time(0, 0, 0))
    return start, start + dt.timedelta(days=1)


def format_ticket_number(day: dt.date, seq: int, prefix: Optional[str] = None) -> str:
    if prefix is None:
        prefix = current_app.config.get("TICKET_NUMBER_PREFIX", "TKT")
    return f"{prefix}{day:%Y%m%d}{int(seq):06d}"


# ---------- numbering ----------

def _allocate_sequence(day: dt.date) -> int:
    """
    Bump today's counter and return the new value. Commits.
    First issuer of the day inserts the row; losing that insert race falls
    back to the UPDATE path.
    """
    for _ in range(2):
        res = db.session.execute(
            update(TicketCounter)
            .where(TicketCounter.day == day)
            .values(last_seq=TicketCounter.last_seq + 1)
            .execution_options(synchronize_session=False)
        )
        if res.rowcount:
            seq = db.session.execute(
                select(TicketCounter.last_seq).where(TicketCounter.day == day)
            ).scalar()
            db.session.commit()
            return int(seq)

        try:
            db.session.add(TicketCounter(day=day, last_seq=1))
            db.session.commit()
            return 1
        except IntegrityError:
            db.session.rollback()
            current_app.logger.info("[tickets] counter row for %s created concurrently; retrying", day)

    raise DuplicateTicketNumber("Could not allocate a ticket number", day=day.isoformat())


# ---------- pricing ----------

def price_journey(req: TicketRequest) -> Priced:
    bus = Bus.query.filter_by(bus_number=req.bus_number, is_active=True).first()
    if not bus:
        raise NotFound("Bus not found or inactive", busNumber=req.bus_number)

    route_id = req.route_id if req.route_id is not None else bus.route_id
    if int(route_id) != int(bus.route_id):
        raise InvalidPayload("Bus does not run on this route", busNumber=bus.bus_number, routeId=route_id)

    journey = locate_journey(route_id, req.direction, req.from_section_number, req.to_section_number)
    quote = FareResolver().resolve(route_id, bus.category, journey.from_section, journey.to_section)
    return Priced(bus, journey, quote, int(quote.fare) * int(req.passenger_count))


def preview_ticket(req: TicketRequest) -> dict:
    """What issue_ticket would charge, without allocating a number or writing anything."""
    p = price_journey(req)
    j = p.journey
    return {
        "busNumber": p.bus.bus_number,
        "routeId": p.bus.route_id,
        "category": p.bus.category,
        "direction": j.direction,
        "fromStop": {
            "stopId": j.from_stop.id,
            "stopName": j.from_stop.stop_name,
            "sectionNumber": j.from_section,
            "displayedSection": j.displayed_from,
        },
        "toStop": {
            "stopId": j.to_stop.id,
            "stopName": j.to_stop.stop_name,
            "sectionNumber": j.to_section,
            "displayedSection": j.displayed_to,
        },
        "sections": p.quote.sections,
        "unitFare": p.quote.fare,
        "passengerCount": req.passenger_count,
        "fare": p.total_fare,
        "dataSource": p.quote.source,
    }


# ---------- public API ----------

def issue_ticket(conductor: User, req: TicketRequest) -> Ticket:
    priced = price_journey(req)
    bus, journey, quote = priced.bus, priced.journey, priced.quote

    max_attempts = max(1, int(current_app.config.get("TICKET_NUMBER_MAX_ATTEMPTS", 3)))
    issued_at = now_utc_naive()
    day = ticket_day(issued_at)

    for attempt in range(1, max_attempts + 1):
        number = format_ticket_number(day, _allocate_sequence(day))
        t = Ticket(
            ticket_number=number,
            route_id=bus.route_id,
            bus_number=bus.bus_number,
            category=bus.category,
            direction=journey.direction,
            from_stop_id=journey.from_stop.id,
            from_stop_name=journey.from_stop.stop_name,
            from_section_number=journey.from_section,
            to_stop_id=journey.to_stop.id,
            to_stop_name=journey.to_stop.stop_name,
            to_section_number=journey.to_section,
            sections=quote.sections,
            unit_fare=quote.fare,
            fare=priced.total_fare,
            fare_source=quote.source,
            passenger_count=req.passenger_count,
            payment_method=req.payment_method,
            status="active",
            conductor_id=conductor.id,
            issued_at=issued_at,
        )
        db.session.add(t)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            if not Ticket.query.filter_by(ticket_number=number).first():
                raise
            current_app.logger.warning(
                "[tickets] ticket number %s already taken (attempt %s/%s)", number, attempt, max_attempts
            )
            continue

        current_app.logger.info(
            "[tickets] issued %s bus=%s route=%s %s %s->%s pax=%s fare=%s source=%s conductor=%s",
            t.ticket_number, t.bus_number, t.route_id, t.direction,
            t.from_section_number, t.to_section_number,
            t.passenger_count, t.fare, t.fare_source, conductor.id,
        )
        return t

    raise DuplicateTicketNumber("Ticket number collision; please retry", attempts=max_attempts)


def cancel_ticket(ticket_id: int, actor: User, reason: Optional[str] = None) -> Ticket:
    t = db.session.get(Ticket, ticket_id)
    if not t:
        raise NotFound("Ticket not found", id=ticket_id)

    if not actor.is_admin and int(t.conductor_id) != int(actor.id):
        raise Forbidden("Access denied")

    if t.status == "cancelled":
        raise InvalidTicketTransition("Ticket already cancelled", id=t.id, status=t.status)
    if t.status != "active":
        raise InvalidTicketTransition(f"Cannot cancel a {t.status} ticket", id=t.id, status=t.status)

    t.status = "cancelled"
    t.cancelled_at = now_utc_naive()
    t.cancelled_by = actor.id
    t.cancel_reason = reason or None
    db.session.commit()

    current_app.logger.info("[tickets] cancelled %s by uid=%s reason=%r", t.ticket_number, actor.id, reason)
    return t


def conductor_day(conductor_id: int, day: Optional[dt.date] = None) -> Tuple[List[Ticket], dict]:
    day = day or ticket_day()
    start, end = day_bounds(day)
    tickets = (
        Ticket.query
        .filter(
            Ticket.conductor_id == conductor_id,
            Ticket.issued_at >= start,
            Ticket.issued_at < end,
        )
        .order_by(Ticket.issued_at.desc(), Ticket.id.desc())
        .all()
    )

    by_status: dict = {}
    revenue = 0
    for t in tickets:
        by_status[t.status] = by_status.get(t.status, 0) + 1
        if t.status != "cancelled":
            revenue += int(t.fare or 0)

    summary = {
        "totalTickets": len(tickets),
        "totalRevenue": revenue,
        "ticketsByStatus": by_status,
        "date": day.isoformat(),
    }
    return tickets, summary
