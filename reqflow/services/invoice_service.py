"""
invoice_service.py — Supplier invoices and payment tracking

Record-keeping only: no money moves here. A supplier uploads one invoice
per accepted quote, and Finance marks invoices paid in batches.

Business Rules:
- Only the quote's own supplier may invoice it, and only once it is ACCEPTED
- One invoice per quote (unique constraint on quote_id)
- Invoices start as AWAITING_PAYMENT; UPLOADED rows are also payable
- mark_paid reports every id individually: not_found, already_paid,
  invalid_status or persistence_failure; one failure never blocks the rest
  of the batch
- Recording an invoice appends INVOICE_UPLOADED to the requisition history
  and posts a system note to the requisition's message thread

Called by: routers/invoices.py, routers/quotes.py
Depends on: services/quote_service (lazy expiry), services/message_service,
            services/store, models
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy import exists
from sqlalchemy.orm import Session

from ..actor import Actor
from ..database import utcnow
from ..models import Invoice, Quote, Supplier
from ..workflow import PAYABLE_INVOICE_STATUSES, InvoiceStatus, QuoteStatus, Role
from . import errors, message_service
from .approval_service import require_organization
from .audit import append_history, history_entry
from .quote_service import expire_if_stale, require_role
from .store import RequisitionStore, commit, compare_and_set_status

log = logging.getLogger("reqflow.invoices")

PAYABLE = [s.value for s in PAYABLE_INVOICE_STATUSES]


@dataclass
class BatchResult:
    updated: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)


def record_invoice(db: Session, actor: Actor, quote_id: str, document_url: str) -> Invoice:
    """Supplier attaches an invoice to one of its accepted quotes."""
    require_role(actor, Role.SUPPLIER, "upload invoices")
    if not (document_url or "").strip():
        raise errors.ValidationError("document_url is required")

    quote = db.get(Quote, quote_id)
    if quote is None or actor.supplier_id is None or quote.supplier_id != actor.supplier_id:
        raise errors.NotFound("Quote not found", quote_id=quote_id)
    if db.query(exists().where(Invoice.quote_id == quote.id)).scalar():
        raise errors.DuplicateInvoice("An invoice was already uploaded for this quote")
    expire_if_stale(db, quote)
    if quote.status != QuoteStatus.ACCEPTED.value:
        raise errors.InvalidTransition(
            f"Cannot invoice a quote in status {quote.status}", status=quote.status
        )

    store = RequisitionStore(db)
    pr = store.get(quote.pr_id)
    if pr.organization_id != quote.organization_id:
        raise errors.OrganizationMismatch("Quote and requisition belong to different organizations")

    invoice = Invoice(
        pr_id=quote.pr_id,
        quote_id=quote.id,
        supplier_id=quote.supplier_id,
        organization_id=quote.organization_id,
        document_url=document_url.strip(),
        status=InvoiceStatus.AWAITING_PAYMENT.value,
    )
    db.add(invoice)
    pr.history = append_history(
        pr.history,
        history_entry("INVOICE_UPLOADED", actor, f"Invoice uploaded for quote {quote.id}"),
    )
    try:
        store.save(pr)
    except errors.PersistenceFailure:
        if db.query(exists().where(Invoice.quote_id == quote_id)).scalar():
            raise errors.DuplicateInvoice("An invoice was already uploaded for this quote")
        raise
    log.info(f"Invoice {invoice.id} recorded for quote {quote_id} on {pr.transaction_id}")

    # The invoice is already stored; a failed note must not undo the upload
    supplier = db.get(Supplier, quote.supplier_id)
    try:
        message_service.post_system_note(
            db,
            actor,
            pr,
            f"Final invoice uploaded by {supplier.company_name} after quotation approval.",
        )
    except errors.PersistenceFailure as e:
        log.warning(f"Invoice {invoice.id} saved but system note on {pr.transaction_id} failed: {e.message}")
    return invoice


def mark_paid(db: Session, actor: Actor, invoice_ids: list[str]) -> BatchResult:
    """Mark a batch of invoices as paid, reporting each id's outcome."""
    require_role(actor, Role.FINANCE, "mark invoices paid")
    org_id = require_organization(actor)
    if not invoice_ids:
        raise errors.ValidationError("Select at least one invoice")

    result = BatchResult()
    for invoice_id in dict.fromkeys(invoice_ids):
        invoice = db.get(Invoice, invoice_id)
        if invoice is None or invoice.organization_id != org_id:
            result.failed[invoice_id] = "not_found"
            continue
        if invoice.status == InvoiceStatus.PAID.value:
            result.failed[invoice_id] = "already_paid"
            continue
        if invoice.status not in PAYABLE:
            result.failed[invoice_id] = "invalid_status"
            continue
        try:
            changed = compare_and_set_status(
                db,
                Invoice,
                invoice_id,
                PAYABLE,
                InvoiceStatus.PAID.value,
                paid_by=actor.id,
                paid_at=utcnow(),
            )
            if changed:
                commit(db, "invoice payment")
                db.refresh(invoice)
        except errors.PersistenceFailure:
            result.failed[invoice_id] = "persistence_failure"
            continue
        if not changed:
            # Lost the race; report what the winner left behind
            db.rollback()
            db.refresh(invoice)
            result.failed[invoice_id] = (
                "already_paid" if invoice.status == InvoiceStatus.PAID.value else "invalid_status"
            )
            continue
        result.updated.append(invoice_id)

    log.info(
        f"mark_paid by {actor.id}: {len(result.updated)} paid, {len(result.failed)} failed"
    )
    return result


def list_awaiting_payment(db: Session, actor: Actor) -> list[Invoice]:
    return (
        db.query(Invoice)
        .filter(
            Invoice.organization_id == require_organization(actor),
            Invoice.status.in_(PAYABLE),
        )
        .order_by(Invoice.created_at)
        .all()
    )


def list_invoices(db: Session, actor: Actor, status: str | None = None) -> list[Invoice]:
    """Suppliers see their own invoices; organization staff see their organization's."""
    q = db.query(Invoice)
    if actor.role is Role.SUPPLIER:
        if actor.supplier_id is None:
            return []
        q = q.filter(Invoice.supplier_id == actor.supplier_id)
    else:
        q = q.filter(Invoice.organization_id == require_organization(actor))
    if status:
        q = q.filter(Invoice.status == status)
    return q.order_by(Invoice.created_at.desc()).all()
