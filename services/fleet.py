# backend/services/fleet.py
"""
Routes, their stops, and the buses that run them.

Deletes are soft: rows keep their id (tickets and route sections point at
them) and `is_active` goes False. Creating a row with the key of a
soft-deleted one brings that row back instead of inserting a duplicate.

Public API:
  - list_routes() / get_route(id) / create_route(data, creator) / update_route(id, data) / deactivate_route(id)
  - create_stop(data) / update_stop(id, data) / deactivate_stop(id)
  - list_buses(route_id, category, is_active) / get_bus(id) / buses_for(route_id, category)
  - create_bus(data) / update_bus(id, data) / deactivate_bus(id)
  - available_conductors() -> [User]
"""

from __future__ import annotations

from typing import List, Optional

from flask import current_app
from sqlalchemy import select

from db import db
from models.bus import Bus
from models.bus_route import BusRoute
from models.route_section import RouteSection
from models.stop import Stop
from models.user import User
from schemas.fleet import BusCreate, BusUpdate, RouteCreate, RouteUpdate, StopCreate, StopUpdate
from services.errors import InvalidPayload, NotFound

# Columns a client may clear by sending null; everything else ignores null.
BUS_NULLABLE = {"driver_name", "conductor_id", "last_maintenance_date", "notes"}


# ---------- routes ----------

def list_routes() -> List[BusRoute]:
    return BusRoute.query.filter(BusRoute.is_active.is_(True)).order_by(BusRoute.route_number.asc()).all()


def get_route(route_id: int) -> BusRoute:
    route = db.session.get(BusRoute, route_id)
    if not route or not route.is_active:
        raise NotFound("Route not found", routeId=route_id)
    return route


def _route_values(changes: dict) -> dict:
    if "distance" in changes:
        changes["distance_km"] = changes.pop("distance")
    return changes


def create_route(data: RouteCreate, creator: Optional[User] = None) -> BusRoute:
    row = BusRoute.query.filter_by(route_number=data.route_number).first()
    if row and row.is_active:
        raise InvalidPayload("Route number already exists", routeNumber=data.route_number)

    values = _route_values(data.model_dump())
    if row is None:
        row = BusRoute(**values)
        db.session.add(row)
    else:
        for k, v in values.items():
            setattr(row, k, v)
        row.is_active = True
    row.created_by = creator.id if creator else None
    db.session.commit()
    current_app.logger.info("[fleet] route %s created (%s)", row.route_number, row.route_name)
    return row


def update_route(route_id: int, data: RouteUpdate) -> BusRoute:
    row = get_route(route_id)
    changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}

    number = changes.get("route_number")
    if number and number != row.route_number:
        if BusRoute.query.filter(BusRoute.route_number == number, BusRoute.id != row.id).first():
            raise InvalidPayload("Route number already exists", routeNumber=number)

    for k, v in _route_values(changes).items():
        setattr(row, k, v)
    db.session.commit()
    return row


def deactivate_route(route_id: int) -> BusRoute:
    row = get_route(route_id)
    row.is_active = False
    db.session.commit()
    current_app.logger.info("[fleet] route %s deactivated", row.route_number)
    return row


# ---------- stops ----------

def _active_stop(stop_id: int) -> Stop:
    stop = db.session.get(Stop, stop_id)
    if not stop or not stop.is_active:
        raise NotFound("Stop not found", id=stop_id)
    return stop


def _stop_values(changes: dict) -> dict:
    coords = changes.pop("coordinates", None)
    if coords:
        for axis in ("latitude", "longitude"):
            if coords.get(axis) is not None:
                changes[axis] = coords[axis]
    return changes


def create_stop(data: StopCreate) -> Stop:
    get_route(data.route_id)
    stop = Stop.query.filter_by(code=data.code).first()
    if stop and stop.is_active:
        raise InvalidPayload("Stop code already exists", code=data.code)

    values = _stop_values(data.model_dump())
    if stop is None:
        stop = Stop(**values)
        db.session.add(stop)
    else:
        for k, v in values.items():
            setattr(stop, k, v)
        stop.is_active = True
    db.session.commit()
    current_app.logger.info(
        "[fleet] stop %s (%s) route=%s section=%s",
        stop.code, stop.stop_name, stop.route_id, stop.section_number,
    )
    return stop


def update_stop(stop_id: int, data: StopUpdate) -> Stop:
    stop = _active_stop(stop_id)
    changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}

    code = changes.get("code")
    if code and code != stop.code:
        if Stop.query.filter(Stop.code == code, Stop.id != stop.id).first():
            raise InvalidPayload("Stop code already exists", code=code)

    for k, v in _stop_values(changes).items():
        setattr(stop, k, v)

    # route sections carry a copy of the stop's label
    if "code" in changes or "stop_name" in changes:
        for rs in RouteSection.query.filter_by(stop_id=stop.id).all():
            rs.stop_code = stop.code
            rs.stop_name = stop.stop_name

    db.session.commit()
    return stop


def deactivate_stop(stop_id: int) -> Stop:
    stop = _active_stop(stop_id)
    stop.is_active = False
    db.session.commit()
    current_app.logger.info("[fleet] stop %s deactivated", stop.code)
    return stop


# ---------- buses ----------

def list_buses(
    route_id: Optional[int] = None,
    category: Optional[str] = None,
    is_active: Optional[bool] = None,
) -> List[Bus]:
    q = Bus.query
    if route_id is not None:
        q = q.filter(Bus.route_id == route_id)
    if category:
        q = q.filter(Bus.category == category)
    if is_active is not None:
        q = q.filter(Bus.is_active.is_(is_active))
    return q.order_by(Bus.bus_number.asc()).all()


def buses_for(route_id: int, category: str) -> List[Bus]:
    """Active buses serving one route in one category."""
    return list_buses(route_id=route_id, category=category, is_active=True)


def get_bus(bus_id: int) -> Bus:
    bus = db.session.get(Bus, bus_id)
    if not bus:
        raise NotFound("Bus not found", id=bus_id)
    return bus


def _check_conductor(conductor_id: int, exclude_bus_id: Optional[int] = None) -> User:
    conductor = db.session.get(User, conductor_id)
    if not conductor or not conductor.is_active or conductor.role != "conductor":
        raise InvalidPayload("Invalid conductor selected", conductorId=conductor_id)

    q = Bus.query.filter(Bus.conductor_id == conductor_id, Bus.is_active.is_(True))
    if exclude_bus_id is not None:
        q = q.filter(Bus.id != exclude_bus_id)
    if q.first():
        raise InvalidPayload("Conductor is already assigned to another bus", conductorId=conductor_id)
    return conductor


def create_bus(data: BusCreate) -> Bus:
    get_route(data.route_id)
    bus = Bus.query.filter_by(bus_number=data.bus_number).first()
    if bus and bus.is_active:
        raise InvalidPayload("Bus number already exists", busNumber=data.bus_number)
    if data.conductor_id is not None:
        _check_conductor(data.conductor_id, exclude_bus_id=bus.id if bus else None)

    values = data.model_dump()
    if bus is None:
        bus = Bus(**values)
        db.session.add(bus)
    else:
        for k, v in values.items():
            setattr(bus, k, v)
        bus.is_active = True
    db.session.commit()
    current_app.logger.info(
        "[fleet] bus %s route=%s cat=%s conductor=%s",
        bus.bus_number, bus.route_id, bus.category, bus.conductor_id,
    )
    return bus


def update_bus(bus_id: int, data: BusUpdate) -> Bus:
    bus = get_bus(bus_id)
    changes = {
        k: v
        for k, v in data.model_dump(exclude_unset=True).items()
        if v is not None or k in BUS_NULLABLE
    }

    if changes.get("route_id") is not None:
        get_route(changes["route_id"])
    number = changes.get("bus_number")
    if number and number != bus.bus_number:
        if Bus.query.filter(Bus.bus_number == number, Bus.id != bus.id).first():
            raise InvalidPayload("Bus number already exists", busNumber=number)
    if changes.get("conductor_id") is not None:
        _check_conductor(changes["conductor_id"], exclude_bus_id=bus.id)

    for k, v in changes.items():
        setattr(bus, k, v)
    db.session.commit()
    return bus


def deactivate_bus(bus_id: int) -> Bus:
    bus = get_bus(bus_id)
    if not bus.is_active:
        raise NotFound("Bus not found", id=bus_id)
    bus.is_active = False
    # frees the conductor for another bus
    bus.conductor_id = None
    db.session.commit()
    current_app.logger.info("[fleet] bus %s deactivated", bus.bus_number)
    return bus


def available_conductors() -> List[User]:
    """Active conductors not assigned to any active bus."""
    assigned = (
        select(Bus.conductor_id)
        .where(Bus.is_active.is_(True), Bus.conductor_id.isnot(None))
    )
    return (
        User.query
        .filter(
            User.role == "conductor",
            User.is_active.is_(True),
            User.id.notin_(assigned),
        )
        .order_by(User.username.asc())
        .all()
    )
