# swimdesk/schemas/catalog.py
"""
Catalogue schemas: class types and credit packages.

The ``*Input`` models are the admin request bodies; updates replace the whole
record, so create and update share one body.
"""

from typing import Annotated, Optional

from pydantic import AfterValidator, Field

from ..core.constants import MAX_NAME_LENGTH
from ..core.enums import Difficulty
from ..core.ulid_helper import generate_ulid
from .base import Money, StandardizedModel, StrictRequestModel


def _non_negative(value: Money) -> Money:
    if value < 0:
        raise ValueError("Price cannot be negative")
    return value


Price = Annotated[Money, AfterValidator(_non_negative)]


class ClassTypeInput(StrictRequestModel):
    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    description: str = ""
    price_single: Price
    price_package: Price = Money(0)
    duration_minutes: int = Field(..., gt=0)
    difficulty: Difficulty = Difficulty.BEGINNER
    capacity: Optional[int] = Field(None, gt=0)


class ClassType(StandardizedModel):
    """A kind of lesson on offer."""

    id: str = Field(default_factory=generate_ulid)
    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    description: str = ""
    price_single: Price
    price_package: Price = Money(0)
    duration_minutes: int = Field(..., gt=0)
    difficulty: Difficulty = Difficulty.BEGINNER
    capacity: Optional[int] = Field(None, gt=0)


class PackageInput(StrictRequestModel):
    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    credits: int = Field(..., gt=0)
    price: Price
    description: str = ""


class Package(StandardizedModel):
    """A bundle of lesson credits."""

    id: str = Field(default_factory=generate_ulid)
    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    credits: int = Field(..., gt=0)
    price: Price
    description: str = ""
