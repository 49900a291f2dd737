# swimdesk/schemas/purchase.py
"""Purchase ledger entries. Immutable once recorded."""

import datetime as dt
from typing import Optional

from pydantic import ConfigDict, Field, field_validator

from ..core.timezone_utils import utc_now
from ..core.ulid_helper import generate_ulid
from .base import StandardizedModel, StrictRequestModel, as_utc
from .catalog import Price


class Purchase(StandardizedModel):
    model_config = ConfigDict(frozen=True, validate_assignment=False)

    id: str = Field(default_factory=generate_ulid)
    user_id: str
    package_id: Optional[str] = None
    package_name: str
    credits: int = Field(..., gt=0)
    price: Price
    date: dt.datetime = Field(default_factory=utc_now)

    @field_validator("date")
    @classmethod
    def normalize_utc(cls, value: dt.datetime) -> dt.datetime:
        return as_utc(value)


class PurchaseRequest(StrictRequestModel):
    package_id: str
    user_id: Optional[str] = None


class PurchaseResult(StandardizedModel):
    purchase: Purchase
    package_credits: int
