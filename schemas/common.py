# schemas/common.py
from __future__ import annotations

from typing import Literal, Type, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from services.errors import InvalidPayload

Category = Literal["normal", "semi-luxury", "luxury", "super-luxury"]
DirectionName = Literal["forward", "return"]

M = TypeVar("M", bound=BaseModel)


class Payload(BaseModel):
    """Request body: camelCase on the wire, only the declared fields accepted."""
    model_config = ConfigDict(
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


def load(model: Type[M], data) -> M:
    try:
        return model.model_validate(data if data is not None else {})
    except ValidationError as e:
        problems = [
            {"field": ".".join(str(p) for p in err.get("loc", ())), "message": err.get("msg", "")}
            for err in e.errors()
        ]
        raise InvalidPayload("Validation error", errors=problems)
