"""
schemas/invoices.py — Pydantic models for invoice endpoints

Called by: routers/invoices.py, routers/quotes.py
Depends on: pydantic
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class InvoiceCreate(BaseModel):
    document_url: str = Field(min_length=1, max_length=1024)


class MarkPaidIn(BaseModel):
    invoice_ids: list[str] = Field(default_factory=list)


class InvoiceOut(BaseModel):
    id: str
    pr_id: str
    quote_id: str
    supplier_id: str
    organization_id: str
    document_url: str
    status: str
    paid_by: str | None = None
    paid_at: datetime | None = None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class MarkPaidOut(BaseModel):
    updated: list[str] = Field(default_factory=list)
    failed: dict[str, str] = Field(default_factory=dict)
