# schemas/fleet.py
from __future__ import annotations

from datetime import date
from typing import Optional

from pydantic import Field, StrictInt

from schemas.common import Category, Payload


# ---------- routes ----------

class RouteCreate(Payload):
    route_name: str = Field(min_length=1, max_length=128)
    route_number: str = Field(min_length=1, max_length=32)
    start_point: str = Field("Embilipitiya", min_length=1, max_length=128)
    end_point: str = Field(min_length=1, max_length=128)
    distance: float = Field(gt=0)
    estimated_duration: StrictInt = Field(gt=0)


class RouteUpdate(Payload):
    route_name: Optional[str] = Field(None, min_length=1, max_length=128)
    route_number: Optional[str] = Field(None, min_length=1, max_length=32)
    start_point: Optional[str] = Field(None, min_length=1, max_length=128)
    end_point: Optional[str] = Field(None, min_length=1, max_length=128)
    distance: Optional[float] = Field(None, gt=0)
    estimated_duration: Optional[StrictInt] = Field(None, gt=0)


# ---------- stops ----------

class Coordinates(Payload):
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


class StopCreate(Payload):
    code: str = Field(min_length=1, max_length=32)
    stop_name: str = Field(min_length=1, max_length=128)
    route_id: StrictInt
    section_number: StrictInt = Field(ge=0)
    order: StrictInt = Field(ge=0)
    fare: Optional[StrictInt] = Field(None, ge=0)
    coordinates: Optional[Coordinates] = None


class StopUpdate(Payload):
    code: Optional[str] = Field(None, min_length=1, max_length=32)
    stop_name: Optional[str] = Field(None, min_length=1, max_length=128)
    section_number: Optional[StrictInt] = Field(None, ge=0)
    order: Optional[StrictInt] = Field(None, ge=0)
    fare: Optional[StrictInt] = Field(None, ge=0)
    coordinates: Optional[Coordinates] = None


# ---------- buses ----------

class BusCreate(Payload):
    bus_number: str = Field(min_length=1, max_length=64)
    route_id: StrictInt
    category: Category = "normal"
    capacity: StrictInt = Field(50, ge=1)
    driver_name: Optional[str] = Field(None, max_length=128)
    conductor_id: Optional[StrictInt] = None
    last_maintenance_date: Optional[date] = None
    notes: Optional[str] = Field(None, max_length=255)


class BusUpdate(Payload):
    bus_number: Optional[str] = Field(None, min_length=1, max_length=64)
    route_id: Optional[StrictInt] = None
    category: Optional[Category] = None
    capacity: Optional[StrictInt] = Field(None, ge=1)
    driver_name: Optional[str] = Field(None, max_length=128)
    conductor_id: Optional[StrictInt] = None
    last_maintenance_date: Optional[date] = None
    notes: Optional[str] = Field(None, max_length=255)
