"""
schemas/records.py — Structured records embedded in requisition rows

Line items and history entries are stored as JSON on the requisition, but
always pass through these models on the way in and out of the database
(see utils/versioned_json.py), so malformed legacy data is rejected at the
store boundary instead of leaking into workflow code.

Business Rules:
- quantity is a positive whole number; unit_price has at most 2 decimals
- total is always derived as quantity * unit_price, never trusted from input
- records are immutable once built

Called by: models/requisitions.py, models/quotes.py, services/*
Depends on: pydantic
"""

from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

CENT = Decimal("0.01")


def money(value) -> Decimal:
    """Quantize to cents."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


class LineItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid4().hex)
    description: str
    quantity: int = Field(gt=0)
    unit_price: Decimal = Field(ge=0, decimal_places=2)
    supplier_preference: str | None = None

    @field_validator("description")
    @classmethod
    def description_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("description must not be blank")
        return v

    @computed_field
    @property
    def total(self) -> Decimal:
        return money(self.quantity * self.unit_price)


class HistoryEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    action: str
    actor_id: str
    actor_name: str
    timestamp: datetime
    details: str = ""


def items_total(items) -> Decimal:
    """Sum of derived item totals."""
    return money(sum((item.total for item in items), Decimal("0")))
