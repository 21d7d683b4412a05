# schemas/config.py
from __future__ import annotations

from typing import List, Optional

from pydantic import Field, StrictInt

from schemas.common import Category, Payload


class SectionCreate(Payload):
    section_number: StrictInt = Field(ge=1)
    fare: StrictInt = Field(ge=0)
    category: Category
    description: Optional[str] = Field(None, max_length=255)


class SectionUpdate(Payload):
    fare: Optional[StrictInt] = Field(None, ge=0)
    description: Optional[str] = Field(None, max_length=255)


class RouteSectionRow(Payload):
    stop_id: StrictInt
    fare: StrictInt = Field(ge=0)
    section_number: Optional[StrictInt] = Field(None, ge=0)
    order: Optional[StrictInt] = Field(None, ge=0)
    stop_code: Optional[str] = Field(None, max_length=32)
    stop_name: Optional[str] = Field(None, max_length=128)


class RouteSectionCreate(RouteSectionRow):
    route_id: StrictInt
    category: Category


class RouteSectionBulk(Payload):
    route_id: StrictInt
    category: Category
    sections: List[RouteSectionRow] = Field(min_length=1)


class RouteSectionUpdate(Payload):
    fare: Optional[StrictInt] = Field(None, ge=0)
    section_number: Optional[StrictInt] = Field(None, ge=0)
    order: Optional[StrictInt] = Field(None, ge=0)
    stop_code: Optional[str] = Field(None, max_length=32)
    stop_name: Optional[str] = Field(None, max_length=128)


class AutoGenerateRequest(Payload):
    fare_multiplier: float = Field(1.0, gt=0)
