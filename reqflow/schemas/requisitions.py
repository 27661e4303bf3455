"""
schemas/requisitions.py — Pydantic models for requisition endpoints

Request bodies are deliberately loose about numbers (quantity, unit_price)
so that the approval service, not the HTTP layer, owns the business
validation and reports it as a typed ValidationError.

Business Rules:
- urgency defaults to NORMAL
- a split needs at least two groups, each naming item ids
- decision comments are trimmed

Called by: routers/requisitions.py, services/approval_service.py,
           services/split_service.py
Depends on: pydantic, workflow
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from ..workflow import Decision, Urgency
from .responses import PaginatedResponse


class LineItemIn(BaseModel):
    description: str = ""
    quantity: int = 0
    unit_price: Decimal = Decimal("0")
    supplier_preference: str | None = None


class RequisitionCreate(BaseModel):
    items: list[LineItemIn] = Field(default_factory=list)
    urgency: Urgency = Urgency.NORMAL
    department: str | None = None
    currency: str | None = None
    due_date: date | None = None
    payment_due_date: date | None = None
    document_url: str | None = None


class DecisionIn(BaseModel):
    decision: Decision
    comments: str = ""

    @field_validator("comments")
    @classmethod
    def strip_comments(cls, v: str) -> str:
        return v.strip()


class SplitGroupIn(BaseModel):
    item_ids: list[str] = Field(default_factory=list)
    comments: str = ""


class SplitIn(BaseModel):
    groups: list[SplitGroupIn] = Field(min_length=2)


# ── Responses ────────────────────────────────────────────────────────


class LineItemOut(BaseModel):
    id: str
    description: str
    quantity: int
    unit_price: Decimal
    total: Decimal
    supplier_preference: str | None = None

    model_config = {"from_attributes": True}


class HistoryEntryOut(BaseModel):
    action: str
    actor_id: str
    actor_name: str
    timestamp: datetime
    details: str = ""

    model_config = {"from_attributes": True}


class RequisitionOut(BaseModel):
    id: str
    transaction_id: str
    organization_id: str
    parent_id: str | None = None
    requested_by: str
    requested_by_name: str
    department: str | None = None
    items: list[LineItemOut] = Field(default_factory=list)
    total_amount: Decimal
    currency: str
    urgency: str
    status: str
    hod_status: str
    finance_status: str
    due_date: date | None = None
    payment_due_date: date | None = None
    document_url: str | None = None
    history: list[HistoryEntryOut] = Field(default_factory=list)
    version: int
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class RequisitionListResponse(PaginatedResponse):
    requisitions: list[RequisitionOut] = Field(default_factory=list)


class SplitOut(BaseModel):
    parent: RequisitionOut
    children: list[RequisitionOut]
