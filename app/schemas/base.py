"""
Mataam Back Office - Schema Base

Shared pydantic base: camelCase on the wire, snake_case in Python.
"""

from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator
from pydantic.alias_generators import to_camel


def enum_name(value: Any) -> Any:
    """Expose enums by NAME ("BONUS", "CASH") and accept names in any case."""
    if isinstance(value, Enum):
        return value.name
    if isinstance(value, str):
        return value.upper()
    return value


EnumName = Annotated[str, BeforeValidator(enum_name)]


class CamelModel(BaseModel):
    """Base schema with camelCase aliases."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True
