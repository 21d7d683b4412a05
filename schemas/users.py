# schemas/users.py
from __future__ import annotations

from typing import Literal, Optional

from pydantic import Field

from schemas.common import Payload

Role = Literal["admin", "bus_owner", "conductor"]

_EMAIL = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class UserCreate(Payload):
    username: str = Field(min_length=3, max_length=50)
    email: str = Field(max_length=254, pattern=_EMAIL)
    password: str = Field(min_length=6, max_length=128)
    role: Role = "conductor"
    employee_id: Optional[str] = Field(None, max_length=32)


class UserUpdate(Payload):
    username: Optional[str] = Field(None, min_length=3, max_length=50)
    email: Optional[str] = Field(None, max_length=254, pattern=_EMAIL)
    password: Optional[str] = Field(None, min_length=6, max_length=128)
    role: Optional[Role] = None
    employee_id: Optional[str] = Field(None, max_length=32)
