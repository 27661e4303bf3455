"""
schemas/quotes.py — Pydantic models for quote request and quote endpoints

Called by: routers/quotes.py, services/quote_service.py
Depends on: pydantic
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from .requisitions import LineItemOut


class QuoteRequestCreate(BaseModel):
    supplier_id: str
    item_ids: list[str] = Field(default_factory=list)
    message: str | None = None


class QuoteRequestResponseIn(BaseModel):
    accept: bool


class QuoteCreate(BaseModel):
    amount: Decimal
    delivery_time: str | None = None
    valid_until: date | None = None
    notes: str | None = None
    document_url: str | None = None


class QuoteResolutionIn(BaseModel):
    accept: bool
    comments: str = ""


# ── Responses ────────────────────────────────────────────────────────


class QuoteRequestOut(BaseModel):
    id: str
    pr_id: str
    organization_id: str
    supplier_id: str
    requested_by: str
    items: list[LineItemOut] = Field(default_factory=list)
    message: str | None = None
    status: str
    created_at: datetime | None = None
    responded_at: datetime | None = None

    model_config = {"from_attributes": True}


class QuoteOut(BaseModel):
    id: str
    quote_request_id: str
    pr_id: str
    organization_id: str
    supplier_id: str
    amount: Decimal
    delivery_time: str | None = None
    valid_until: date | None = None
    notes: str | None = None
    document_url: str | None = None
    status: str
    resolved_by: str | None = None
    resolved_at: datetime | None = None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class QuoteWorkflowStatusOut(BaseModel):
    pr_id: str
    quote_workflow_status: str
    quote_request_count: int = 0
    accepted_request_count: int = 0
    submitted_quote_count: int = 0
    accepted_quote_count: int = 0
