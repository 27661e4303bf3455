"""
invoices.py — Invoice payment tracking router

Called by: main.py (router mount)
Depends on: services/invoice_service, dependencies
"""

from fastapi import APIRouter, Depends
from loguru import logger
from sqlalchemy.orm import Session

from ..actor import Actor
from ..database import get_db
from ..dependencies import require_actor, require_finance
from ..schemas.invoices import InvoiceOut, MarkPaidIn, MarkPaidOut
from ..services import invoice_service

router = APIRouter(tags=["invoices"])


@router.get("/api/invoices", response_model=list[InvoiceOut])
async def list_invoices(
    status: str = "",
    actor: Actor = Depends(require_actor),
    db: Session = Depends(get_db),
):
    rows = invoice_service.list_invoices(db, actor, status or None)
    return [InvoiceOut.model_validate(i) for i in rows]


@router.get("/api/invoices/awaiting-payment", response_model=list[InvoiceOut])
async def awaiting_payment(
    actor: Actor = Depends(require_finance),
    db: Session = Depends(get_db),
):
    return [InvoiceOut.model_validate(i) for i in invoice_service.list_awaiting_payment(db, actor)]


@router.post("/api/invoices/mark-paid", response_model=MarkPaidOut)
async def mark_paid(
    payload: MarkPaidIn,
    actor: Actor = Depends(require_finance),
    db: Session = Depends(get_db),
):
    """Mark invoices paid. Per-invoice failures are reported, not raised."""
    result = invoice_service.mark_paid(db, actor, payload.invoice_ids)
    if result.failed:
        logger.warning(f"mark-paid: {len(result.failed)} of {len(payload.invoice_ids)} not updated")
    return MarkPaidOut(updated=result.updated, failed=result.failed)
