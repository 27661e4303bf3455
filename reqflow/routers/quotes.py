"""
quotes.py — Supplier quotation router

Finance requests quotes and resolves them; suppliers answer requests,
submit quotes and invoice accepted quotes.

Business Rules:
- Suppliers only ever see their own requests and quotes
- Quote reads apply lazy expiry before returning
- Accepting one quote leaves its siblings untouched

Called by: main.py (router mount)
Depends on: services/quote_service, services/invoice_service, dependencies
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..actor import Actor
from ..database import get_db
from ..dependencies import require_actor, require_finance, require_supplier
from ..schemas.invoices import InvoiceCreate, InvoiceOut
from ..schemas.quotes import (
    QuoteCreate,
    QuoteOut,
    QuoteRequestCreate,
    QuoteRequestOut,
    QuoteRequestResponseIn,
    QuoteResolutionIn,
)
from ..services import invoice_service, quote_service

router = APIRouter(tags=["quotes"])


# ── Quote requests ───────────────────────────────────────────────────


@router.post(
    "/api/requisitions/{pr_id}/quote-requests",
    response_model=QuoteRequestOut,
    status_code=201,
)
async def create_quote_request(
    pr_id: str,
    payload: QuoteRequestCreate,
    actor: Actor = Depends(require_finance),
    db: Session = Depends(get_db),
):
    qr = quote_service.request_quote(
        db, actor, pr_id, payload.supplier_id, payload.item_ids, payload.message
    )
    return QuoteRequestOut.model_validate(qr)


@router.get("/api/quote-requests", response_model=list[QuoteRequestOut])
async def list_quote_requests(
    status: str = "",
    pr_id: str = "",
    actor: Actor = Depends(require_actor),
    db: Session = Depends(get_db),
):
    rows = quote_service.list_quote_requests(db, actor, status or None, pr_id or None)
    return [QuoteRequestOut.model_validate(r) for r in rows]


@router.post("/api/quote-requests/{request_id}/response", response_model=QuoteRequestOut)
async def respond_to_quote_request(
    request_id: str,
    payload: QuoteRequestResponseIn,
    actor: Actor = Depends(require_supplier),
    db: Session = Depends(get_db),
):
    """Supplier accepts or declines. Can only be done once."""
    qr = quote_service.respond_to_request(db, actor, request_id, payload.accept)
    return QuoteRequestOut.model_validate(qr)


@router.post(
    "/api/quote-requests/{request_id}/quote", response_model=QuoteOut, status_code=201
)
async def submit_quote(
    request_id: str,
    payload: QuoteCreate,
    actor: Actor = Depends(require_supplier),
    db: Session = Depends(get_db),
):
    return QuoteOut.model_validate(quote_service.submit_quote(db, actor, request_id, payload))


# ── Quotes ───────────────────────────────────────────────────────────


@router.get("/api/quotes", response_model=list[QuoteOut])
async def list_quotes(
    pr_id: str = "",
    status: str = "",
    actor: Actor = Depends(require_actor),
    db: Session = Depends(get_db),
):
    rows = quote_service.list_quotes(db, actor, pr_id or None, status or None)
    return [QuoteOut.model_validate(q) for q in rows]


@router.get("/api/quotes/{quote_id}", response_model=QuoteOut)
async def get_quote(
    quote_id: str,
    actor: Actor = Depends(require_actor),
    db: Session = Depends(get_db),
):
    return QuoteOut.model_validate(quote_service.get_quote(db, actor, quote_id))


@router.post("/api/quotes/{quote_id}/resolution", response_model=QuoteOut)
async def resolve_quote(
    quote_id: str,
    payload: QuoteResolutionIn,
    actor: Actor = Depends(require_finance),
    db: Session = Depends(get_db),
):
    quote = quote_service.resolve_quote(db, actor, quote_id, payload.accept, payload.comments)
    return QuoteOut.model_validate(quote)


@router.post("/api/quotes/{quote_id}/invoice", response_model=InvoiceOut, status_code=201)
async def upload_invoice(
    quote_id: str,
    payload: InvoiceCreate,
    actor: Actor = Depends(require_supplier),
    db: Session = Depends(get_db),
):
    """Record the supplier's invoice for an accepted quote."""
    invoice = invoice_service.record_invoice(db, actor, quote_id, payload.document_url)
    return InvoiceOut.model_validate(invoice)
