"""
quote_service.py — Supplier quotation sub-workflow

Finance asks a verified supplier to price some of a requisition's items;
the supplier accepts or declines the request, submits at most one quote,
and Finance accepts or rejects that quote.

Status flow:
    QuoteRequest: PENDING → ACCEPTED | DECLINED          (supplier, once)
    Quote:        SUBMITTED → ACCEPTED | REJECTED        (finance, once)
                  SUBMITTED | ACCEPTED → EXPIRED         (past valid_until)

Business Rules:
- Quotes can only be requested while the requisition is at
  PENDING_FINANCE_APPROVAL or FINANCE_APPROVED
- Requested item ids must all be on the requisition
- The supplier must be verified and registered with the requisition's
  organization
- A supplier only sees and answers its own requests
- One quote per request (unique constraint on quote_request_id)
- Every status change is a conditional UPDATE on the expected status
- Accepting a quote does not reject its siblings
- Expiry is lazy: checked whenever a quote is read or acted on; a quote
  that already has an invoice is settled and never expires
- Quote resolutions are recorded in the requisition history

Called by: routers/quotes.py, services/invoice_service.py
Depends on: services/store, services/audit, models, workflow
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone

from sqlalchemy import exists, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..actor import Actor
from ..database import utcnow
from ..models import Invoice, Quote, QuoteRequest, Requisition, Supplier
from ..schemas.quotes import QuoteCreate
from ..schemas.records import money
from ..workflow import QUOTABLE_STATUSES, QuoteRequestStatus, QuoteStatus, Role
from . import errors
from .approval_service import require_organization
from .audit import append_history, history_entry
from .store import RequisitionStore, commit, compare_and_set_status

log = logging.getLogger("reqflow.quotes")

EXPIRABLE_STATUSES = (QuoteStatus.SUBMITTED.value, QuoteStatus.ACCEPTED.value)


def require_role(actor: Actor, role: Role, action: str) -> None:
    if actor.role is not role:
        raise errors.InvalidTransition(f"Only {role.value} can {action}", role=actor.role.value)


def _today() -> date:
    return datetime.now(timezone.utc).date()


def _ensure_same_org(pr: Requisition, organization_id: str) -> None:
    if pr.organization_id != organization_id:
        log.error(f"Organization mismatch: requisition {pr.id} vs {organization_id}")
        raise errors.OrganizationMismatch("Record belongs to a different organization")


# ── Quote requests ───────────────────────────────────────────────────


def request_quote(
    db: Session,
    actor: Actor,
    pr_id: str,
    supplier_id: str,
    item_ids: list[str],
    message: str | None = None,
) -> QuoteRequest:
    """Finance asks one supplier to quote on a subset of a requisition's items."""
    require_role(actor, Role.FINANCE, "request quotes")
    pr = RequisitionStore(db).get(pr_id, require_organization(actor))

    if pr.status not in {s.value for s in QUOTABLE_STATUSES}:
        raise errors.InvalidTransition(
            f"Cannot request quotes for a requisition in status {pr.status}",
            status=pr.status,
        )
    if not item_ids:
        raise errors.NoItemsSelected("Select at least one item to quote on")

    by_id = {item.id: item for item in pr.items}
    unknown = [i for i in item_ids if i not in by_id]
    if unknown:
        raise errors.ValidationError("Items are not on this requisition", item_ids=unknown)

    supplier = db.get(Supplier, supplier_id)
    # Another tenant's supplier is reported exactly like an unknown one
    if (
        supplier is None
        or not supplier.is_verified
        or supplier.organization_id != pr.organization_id
    ):
        raise errors.SupplierNotVerified(
            "Supplier is unknown, not verified or not registered with this organization",
            supplier_id=supplier_id,
        )

    wanted = set(item_ids)
    qr = QuoteRequest(
        pr_id=pr.id,
        organization_id=pr.organization_id,
        supplier_id=supplier.id,
        requested_by=actor.id,
        items=[item for item in pr.items if item.id in wanted],
        message=(message or "").strip() or None,
        status=QuoteRequestStatus.PENDING.value,
    )
    db.add(qr)
    commit(db, "quote request")
    log.info(
        f"Quote request {qr.id} for {pr.transaction_id} sent to supplier "
        f"{supplier.id} by {actor.id} ({len(wanted)} items)"
    )
    return qr


def _supplier_request(db: Session, actor: Actor, request_id: str) -> QuoteRequest:
    qr = db.get(QuoteRequest, request_id)
    if qr is None or actor.supplier_id is None or qr.supplier_id != actor.supplier_id:
        raise errors.NotFound("Quote request not found", request_id=request_id)
    return qr


def respond_to_request(db: Session, actor: Actor, request_id: str, accept: bool) -> QuoteRequest:
    """Supplier accepts or declines a pending quote request. One-shot."""
    require_role(actor, Role.SUPPLIER, "respond to quote requests")
    qr = _supplier_request(db, actor, request_id)
    if qr.status != QuoteRequestStatus.PENDING.value:
        raise errors.AlreadyResolved(
            "Quote request has already been answered", status=qr.status
        )

    new_status = QuoteRequestStatus.ACCEPTED if accept else QuoteRequestStatus.DECLINED
    if not compare_and_set_status(
        db,
        QuoteRequest,
        qr.id,
        [QuoteRequestStatus.PENDING.value],
        new_status.value,
        responded_at=utcnow(),
    ):
        db.rollback()
        raise errors.AlreadyResolved("Quote request has already been answered")
    commit(db, "quote request response")
    db.refresh(qr)
    log.info(f"Quote request {qr.id} {new_status.value} by supplier {actor.supplier_id}")
    return qr


def list_quote_requests(
    db: Session,
    actor: Actor,
    status: str | None = None,
    pr_id: str | None = None,
) -> list[QuoteRequest]:
    """Suppliers see their own requests; organization staff see their organization's."""
    q = db.query(QuoteRequest)
    if actor.role is Role.SUPPLIER:
        if actor.supplier_id is None:
            return []
        q = q.filter(QuoteRequest.supplier_id == actor.supplier_id)
    else:
        q = q.filter(QuoteRequest.organization_id == require_organization(actor))
    if status:
        q = q.filter(QuoteRequest.status == status)
    if pr_id:
        q = q.filter(QuoteRequest.pr_id == pr_id)
    return q.order_by(QuoteRequest.created_at.desc()).all()


# ── Quotes ───────────────────────────────────────────────────────────


def submit_quote(db: Session, actor: Actor, request_id: str, data: QuoteCreate) -> Quote:
    """Supplier submits its single quote against an accepted request."""
    require_role(actor, Role.SUPPLIER, "submit quotes")
    qr = _supplier_request(db, actor, request_id)
    if qr.status != QuoteRequestStatus.ACCEPTED.value:
        raise errors.RequestNotAccepted(
            "Quote request must be accepted before quoting", status=qr.status
        )
    if data.amount is None or data.amount <= 0:
        raise errors.ValidationError("Quote amount must be greater than zero")
    if money(data.amount) != data.amount:
        raise errors.ValidationError("Quote amount has more than two decimal places")
    if data.valid_until is not None and data.valid_until < _today():
        raise errors.ValidationError("valid_until is in the past")
    if db.query(exists().where(Quote.quote_request_id == qr.id)).scalar():
        raise errors.DuplicateQuote("A quote was already submitted for this request")

    quote = Quote(
        quote_request_id=qr.id,
        pr_id=qr.pr_id,
        organization_id=qr.organization_id,
        supplier_id=qr.supplier_id,
        amount=data.amount,
        delivery_time=data.delivery_time,
        valid_until=data.valid_until,
        notes=data.notes,
        document_url=data.document_url,
        status=QuoteStatus.SUBMITTED.value,
    )
    db.add(quote)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise errors.DuplicateQuote("A quote was already submitted for this request")
    except SQLAlchemyError as e:
        db.rollback()
        log.error(f"Quote insert failed for request {qr.id}: {e}")
        raise errors.PersistenceFailure("Could not save quote")
    log.info(f"Quote {quote.id} ({quote.amount}) submitted on request {qr.id}")
    return quote


def expire_if_stale(db: Session, quote: Quote, today: date | None = None) -> bool:
    today = today or _today()
    if (
        quote.status not in EXPIRABLE_STATUSES
        or quote.valid_until is None
        or quote.valid_until >= today
    ):
        return False
    if db.query(exists().where(Invoice.quote_id == quote.id)).scalar():
        return False
    if not compare_and_set_status(db, Quote, quote.id, [quote.status], QuoteStatus.EXPIRED.value):
        db.rollback()
        db.refresh(quote)
        return False
    commit(db, "quote expiry")
    db.refresh(quote)
    log.info(f"Quote {quote.id} expired (valid until {quote.valid_until})")
    return True


def expire(db: Session, quote_id: str, today: date | None = None) -> Quote:
    """Move a SUBMITTED/ACCEPTED quote past its valid_until date to EXPIRED."""
    quote = db.get(Quote, quote_id)
    if quote is None:
        raise errors.NotFound("Quote not found", quote_id=quote_id)
    expire_if_stale(db, quote, today)
    return quote


def _visible_quote(db: Session, actor: Actor, quote_id: str) -> Quote:
    quote = db.get(Quote, quote_id)
    if quote is None:
        raise errors.NotFound("Quote not found", quote_id=quote_id)
    if actor.role is Role.SUPPLIER:
        if actor.supplier_id is None or quote.supplier_id != actor.supplier_id:
            raise errors.NotFound("Quote not found", quote_id=quote_id)
    elif quote.organization_id != actor.organization_id:
        raise errors.NotFound("Quote not found", quote_id=quote_id)
    return quote


def get_quote(db: Session, actor: Actor, quote_id: str, today: date | None = None) -> Quote:
    quote = _visible_quote(db, actor, quote_id)
    expire_if_stale(db, quote, today)
    return quote


def list_quotes(
    db: Session,
    actor: Actor,
    pr_id: str | None = None,
    status: str | None = None,
    today: date | None = None,
) -> list[Quote]:
    q = db.query(Quote)
    if actor.role is Role.SUPPLIER:
        if actor.supplier_id is None:
            return []
        q = q.filter(Quote.supplier_id == actor.supplier_id)
    else:
        q = q.filter(Quote.organization_id == require_organization(actor))
    if pr_id:
        q = q.filter(Quote.pr_id == pr_id)
    quotes = q.order_by(Quote.created_at.desc()).all()
    for quote in quotes:
        expire_if_stale(db, quote, today)
    if status:
        quotes = [quote for quote in quotes if quote.status == status]
    return quotes


def resolve_quote(
    db: Session,
    actor: Actor,
    quote_id: str,
    accept: bool,
    comments: str = "",
    today: date | None = None,
) -> Quote:
    """Finance accepts or rejects a submitted quote.

    The quote's status change and the requisition history entry are
    committed together.
    """
    require_role(actor, Role.FINANCE, "resolve quotes")
    quote = _visible_quote(db, actor, quote_id)
    expire_if_stale(db, quote, today)
    if quote.status != QuoteStatus.SUBMITTED.value:
        raise errors.InvalidTransition(
            f"Cannot resolve a quote in status {quote.status}", status=quote.status
        )

    store = RequisitionStore(db)
    pr = store.get(quote.pr_id)
    _ensure_same_org(pr, quote.organization_id)

    new_status = QuoteStatus.ACCEPTED if accept else QuoteStatus.REJECTED
    if not compare_and_set_status(
        db,
        Quote,
        quote.id,
        [QuoteStatus.SUBMITTED.value],
        new_status.value,
        resolved_by=actor.id,
        resolved_at=utcnow(),
    ):
        db.rollback()
        raise errors.InvalidTransition("Quote has already been resolved")

    action, verb = ("QUOTE_ACCEPTED", "accepted") if accept else ("QUOTE_REJECTED", "rejected")
    details = f"Quote {quote.id} from supplier {quote.supplier_id} for {quote.amount} {verb}"
    if comments.strip():
        details = f"{details}. {comments.strip()}"
    pr.history = append_history(pr.history, history_entry(action, actor, details))
    store.save(pr)
    db.refresh(quote)
    log.info(f"Quote {quote.id} {new_status.value} by {actor.id} on {pr.transaction_id}")
    return quote


# ── Finance overview ─────────────────────────────────────────────────


@dataclass(frozen=True)
class QuoteWorkflowSummary:
    pr_id: str
    quote_workflow_status: str
    quote_request_count: int
    accepted_request_count: int
    submitted_quote_count: int
    accepted_quote_count: int


def quote_workflow_status(db: Session, pr: Requisition) -> QuoteWorkflowSummary:
    """How far the quotation process has got for one requisition.

    COMPLETED once any quote is accepted, then QUOTE_SUBMITTED,
    QUOTE_ACCEPTED (a supplier agreed to quote), QUOTE_SENT, PENDING_REVIEW.
    """
    request_counts = dict(
        db.query(QuoteRequest.status, func.count(QuoteRequest.id))
        .filter(QuoteRequest.pr_id == pr.id)
        .group_by(QuoteRequest.status)
        .all()
    )
    quote_counts = dict(
        db.query(Quote.status, func.count(Quote.id))
        .filter(Quote.pr_id == pr.id)
        .group_by(Quote.status)
        .all()
    )
    requested = sum(request_counts.values())
    accepted_requests = request_counts.get(QuoteRequestStatus.ACCEPTED.value, 0)
    submitted = quote_counts.get(QuoteStatus.SUBMITTED.value, 0)
    accepted = quote_counts.get(QuoteStatus.ACCEPTED.value, 0)

    if accepted:
        status = "COMPLETED"
    elif submitted:
        status = "QUOTE_SUBMITTED"
    elif accepted_requests:
        status = "QUOTE_ACCEPTED"
    elif requested:
        status = "QUOTE_SENT"
    else:
        status = "PENDING_REVIEW"

    return QuoteWorkflowSummary(
        pr_id=pr.id,
        quote_workflow_status=status,
        quote_request_count=requested,
        accepted_request_count=accepted_requests,
        submitted_quote_count=submitted,
        accepted_quote_count=accepted,
    )


def quote_overview(db: Session, actor: Actor, pr_id: str) -> QuoteWorkflowSummary:
    pr = RequisitionStore(db).get(pr_id, require_organization(actor))
    return quote_workflow_status(db, pr)
