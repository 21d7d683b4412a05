# backend/services/fare_config.py
"""
Admin-side fare configuration: the category Section table and the per-route
RouteSection (cumulative fare) table.

Every RouteSection write keeps cumulative fares non-decreasing in
section_number within one (route, category); a write that would break that is
rejected before commit.
"""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional, Tuple

from flask import current_app

from db import db
from models.bus_route import BusRoute
from models.route_section import RouteSection
from models.section import Section
from models.stop import Stop
from schemas.config import (
    RouteSectionBulk,
    RouteSectionCreate,
    RouteSectionRow,
    RouteSectionUpdate,
    SectionCreate,
    SectionUpdate,
)
from services.direction import canonical_stops
from services.errors import InvalidPayload, NonMonotonicFare, NotFound, TicketingError


# ---------- sections ----------

def list_sections(category: Optional[str] = None) -> List[Section]:
    q = Section.query.filter(Section.is_active.is_(True))
    if category:
        q = q.filter(Section.category == category)
    return q.order_by(Section.category.asc(), Section.section_number.asc()).all()


def create_section(data: SectionCreate) -> Section:
    row = Section.query.filter_by(section_number=data.section_number, category=data.category).first()
    if row and row.is_active:
        raise InvalidPayload(f"Section {data.section_number} already exists for {data.category} category")

    description = data.description or f"Section {data.section_number} - Rs. {data.fare} ({data.category})"
    if row:
        # soft-deleted earlier; same key, bring it back
        row.fare = data.fare
        row.description = description
        row.is_active = True
    else:
        row = Section(
            section_number=data.section_number,
            category=data.category,
            fare=data.fare,
            description=description,
        )
        db.session.add(row)
    db.session.commit()
    current_app.logger.info("[config] section %s/%s fare=%s", row.category, row.section_number, row.fare)
    return row


def _active_section(section_id: int) -> Section:
    row = db.session.get(Section, section_id)
    if not row or not row.is_active:
        raise NotFound("Section not found", id=section_id)
    return row


def update_section(section_id: int, data: SectionUpdate) -> Section:
    row = _active_section(section_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        if value is None:
            continue
        setattr(row, field, value)
    db.session.commit()
    return row


def deactivate_section(section_id: int) -> Section:
    row = _active_section(section_id)
    row.is_active = False
    db.session.commit()
    current_app.logger.info("[config] section %s deactivated", section_id)
    return row


# ---------- route sections ----------

def check_monotonic(route_id: int, category: str, candidate: RouteSection) -> None:
    """Raise NonMonotonicFare if `candidate` would make cumulative fares decrease along the route."""
    others = (
        RouteSection.query
        .filter(
            RouteSection.route_id == route_id,
            RouteSection.category == category,
            RouteSection.is_active.is_(True),
        )
        .all()
    )
    rows = [r for r in others if candidate.id is None or r.id != candidate.id]
    rows.append(candidate)

    by_section: Dict[int, List[int]] = {}
    for r in rows:
        by_section.setdefault(int(r.section_number), []).append(int(r.fare))

    ceiling: Optional[Tuple[int, int]] = None  # (section, highest fare so far)
    for number in sorted(by_section):
        fares = by_section[number]
        if ceiling is not None and min(fares) < ceiling[1]:
            raise NonMonotonicFare(
                f"Fare at section {number} ({min(fares)}) is lower than at section {ceiling[0]} ({ceiling[1]})",
                routeId=route_id,
                category=category,
                sectionNumber=number,
            )
        top = max(fares)
        if ceiling is None or top >= ceiling[1]:
            ceiling = (number, top)


def list_route_sections(route_id: int, category: Optional[str] = None) -> List[RouteSection]:
    q = RouteSection.query.filter(
        RouteSection.route_id == route_id,
        RouteSection.is_active.is_(True),
    )
    if category:
        q = q.filter(RouteSection.category == category)
    return q.order_by(RouteSection.category.asc(), RouteSection.order.asc(), RouteSection.id.asc()).all()


def _route_or_404(route_id: int) -> BusRoute:
    route = db.session.get(BusRoute, route_id)
    if not route or not route.is_active:
        raise NotFound("Route not found", routeId=route_id)
    return route


def _stage_route_section(route_id: int, category: str, data: RouteSectionRow) -> RouteSection:
    """Build (or revive) a row, check it, add it to the session. Caller commits."""
    stop = db.session.get(Stop, data.stop_id)
    if not stop or not stop.is_active or int(stop.route_id) != int(route_id):
        raise NotFound("Stop not found on this route", stopId=data.stop_id, routeId=route_id)

    row = RouteSection.query.filter_by(route_id=route_id, stop_id=stop.id, category=category).first()
    if row and row.is_active:
        raise InvalidPayload("Route section already exists for this stop and category", stopId=stop.id)

    values = {
        "section_number": data.section_number if data.section_number is not None else stop.section_number,
        "fare": data.fare,
        "order": data.order if data.order is not None else stop.order,
        "stop_code": data.stop_code or stop.code,
        "stop_name": data.stop_name or stop.stop_name,
    }
    if row is None:
        row = RouteSection(route_id=route_id, stop_id=stop.id, category=category, **values)
    else:
        for k, v in values.items():
            setattr(row, k, v)
    row.is_active = True

    check_monotonic(route_id, category, row)
    db.session.add(row)
    return row


def create_route_section(data: RouteSectionCreate) -> RouteSection:
    _route_or_404(data.route_id)
    try:
        row = _stage_route_section(data.route_id, data.category, data)
        db.session.commit()
    except TicketingError:
        db.session.rollback()
        raise
    current_app.logger.info(
        "[config] route section route=%s cat=%s section=%s fare=%s",
        row.route_id, row.category, row.section_number, row.fare,
    )
    return row


def bulk_create_route_sections(data: RouteSectionBulk) -> Tuple[List[RouteSection], List[dict]]:
    _route_or_404(data.route_id)
    created: List[RouteSection] = []
    errors: List[dict] = []
    for item in data.sections:
        try:
            row = _stage_route_section(data.route_id, data.category, item)
            db.session.commit()
            created.append(row)
        except TicketingError as e:
            db.session.rollback()
            errors.append({"section": item.model_dump(by_alias=True), "error": e.message})
    current_app.logger.info(
        "[config] bulk route sections route=%s cat=%s created=%s failed=%s",
        data.route_id, data.category, len(created), len(errors),
    )
    return created, errors


def _active_route_section(row_id: int) -> RouteSection:
    row = db.session.get(RouteSection, row_id)
    if not row or not row.is_active:
        raise NotFound("Route section not found", id=row_id)
    return row


def update_route_section(row_id: int, data: RouteSectionUpdate) -> RouteSection:
    row = _active_route_section(row_id)
    changes = data.model_dump(exclude_unset=True)
    try:
        with db.session.no_autoflush:
            for field, value in changes.items():
                if value is not None:
                    setattr(row, field, value)
            check_monotonic(row.route_id, row.category, row)
        db.session.commit()
    except TicketingError:
        db.session.rollback()
        raise
    return row


def deactivate_route_section(row_id: int) -> RouteSection:
    row = _active_route_section(row_id)
    row.is_active = False
    db.session.commit()
    current_app.logger.info("[config] route section %s deactivated", row_id)
    return row


def _round_half_up(x: Decimal) -> int:
    return int(x.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def auto_generate_route_sections(route_id: int, category: str, fare_multiplier: float = 1.0):
    """
    Seed RouteSection rows for every stop of a route that has none yet in this
    category: Section table fare for the stop's section number (or
    section_number * 10 when the table has no entry), scaled by the multiplier.
    """
    _route_or_404(route_id)
    stops = canonical_stops(route_id)
    if not stops:
        raise InvalidPayload("No stops found for this route", routeId=route_id)

    table = {s.section_number: s.fare for s in list_sections(category)}
    mult = Decimal(str(fare_multiplier))

    created: List[RouteSection] = []
    errors: List[dict] = []
    for i, stop in enumerate(stops):
        exists = RouteSection.query.filter_by(
            route_id=route_id, stop_id=stop.id, category=category, is_active=True
        ).first()
        if exists:
            continue

        base = table.get(stop.section_number, stop.section_number * 10)
        row_data = RouteSectionRow(
            stop_id=stop.id,
            fare=_round_half_up(Decimal(base) * mult),
            section_number=stop.section_number,
            order=i + 1,
        )
        try:
            created.append(_stage_route_section(route_id, category, row_data))
            db.session.commit()
        except TicketingError as e:
            db.session.rollback()
            errors.append({"stop": stop.stop_name, "error": e.message})

    current_app.logger.info(
        "[config] auto-generated route sections route=%s cat=%s created=%s failed=%s",
        route_id, category, len(created), len(errors),
    )
    return created, errors
