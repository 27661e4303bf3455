"""
approval_service.py — Requisition submission and the HOD/Finance approval gates

Handles the requisition state machine:
- submit  → PENDING_HOD_APPROVAL, or PENDING_FINANCE_APPROVAL when the
            organization has no active HOD (bypass path)
- decide  → approve / decline per the transition table in workflow.py
- reads   → single requisition, filtered lists, approver queues, children

Business Rules:
- Every item needs quantity > 0 and unit_price > 0; due_date is required
- The actor must belong to an organization
- Status, the hod_status/finance_status mirror and the new history entry
  are written together in one conditional update (see store.save)
- Terminal statuses reject every decision with InvalidTransition
- Employees only see their own requisitions

Called by: routers/requisitions.py
Depends on: services/store, services/audit, workflow, models
"""

from __future__ import annotations

import logging
from decimal import Decimal

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from ..actor import Actor
from ..config import settings
from ..models import Requisition
from ..schemas.records import LineItem, items_total
from ..schemas.requisitions import LineItemIn, RequisitionCreate
from ..workflow import APPROVER_QUEUES, Decision, Role, initial_status, lookup_transition
from . import errors
from .audit import append_history, history_entry
from .store import RequisitionStore

log = logging.getLogger("reqflow.approval")


def require_organization(actor: Actor) -> str:
    if not actor.organization_id:
        raise errors.OrganizationMissing("Actor is not associated with an organization")
    return actor.organization_id


def build_items(raw_items: list[LineItemIn]) -> list[LineItem]:
    """Validate submitted rows and turn them into line item records."""
    if not raw_items:
        raise errors.ValidationError("At least one item is required")
    items = []
    for index, raw in enumerate(raw_items):
        if not (raw.description or "").strip():
            raise errors.ValidationError("Item description is required", index=index)
        if raw.quantity is None or raw.quantity <= 0:
            raise errors.ValidationError("Item quantity must be greater than zero", index=index)
        if raw.unit_price is None or raw.unit_price <= Decimal("0"):
            raise errors.ValidationError("Item unit price must be greater than zero", index=index)
        try:
            items.append(
                LineItem(
                    description=raw.description,
                    quantity=raw.quantity,
                    unit_price=raw.unit_price,
                    supplier_preference=raw.supplier_preference or None,
                )
            )
        except PydanticValidationError as e:
            raise errors.ValidationError(
                "Invalid item", index=index, errors=[err["msg"] for err in e.errors()]
            )
    return items


def submit(db: Session, actor: Actor, data: RequisitionCreate) -> Requisition:
    """Create a requisition and route it to the first approval gate."""
    items = build_items(data.items)
    if data.due_date is None:
        raise errors.ValidationError("due_date is required")
    org_id = require_organization(actor)

    store = RequisitionStore(db)
    has_hod = store.org_has_active_hod(org_id)
    status, hod_status = initial_status(has_hod)
    details = (
        "Submitted for HOD approval"
        if has_hod
        else "Submitted directly for Finance approval (no HOD in organization)"
    )

    pr = Requisition(
        organization_id=org_id,
        requested_by=actor.id,
        requested_by_name=actor.name,
        department=data.department or actor.department,
        items=items,
        total_amount=items_total(items),
        currency=(data.currency or settings.default_currency).upper(),
        urgency=data.urgency.value,
        status=status.value,
        hod_status=hod_status,
        finance_status="Pending",
        due_date=data.due_date,
        payment_due_date=data.payment_due_date,
        document_url=data.document_url,
        history=append_history((), history_entry("PR_CREATED", actor, details)),
    )
    store.insert(pr)
    log.info(
        f"Requisition {pr.transaction_id} submitted by {actor.id} "
        f"({len(items)} items, total {pr.total_amount}) → {pr.status}"
    )
    return pr


def decide(
    db: Session,
    actor: Actor,
    pr_id: str,
    decision: Decision,
    comments: str = "",
) -> Requisition:
    """Approve or decline a requisition at the actor's approval gate."""
    if decision is Decision.SPLIT:
        raise errors.InvalidTransition("Splits go through the split operation")
    store = RequisitionStore(db)
    pr = store.get(pr_id, require_organization(actor))

    transition = lookup_transition(pr.status, decision, actor.role)
    if transition is None:
        log.warning(
            f"Rejected {decision.value} on {pr.transaction_id} by {actor.id} "
            f"({actor.role.value}) in status {pr.status}"
        )
        raise errors.InvalidTransition(
            f"Cannot {decision.value} a requisition in status {pr.status} as {actor.role.value}",
            status=pr.status,
        )

    previous = pr.status
    pr.status = transition.to_status.value
    setattr(pr, transition.mirror_field, transition.mirror_value)
    pr.history = append_history(
        pr.history,
        history_entry(transition.history_action, actor, comments or transition.default_details),
    )
    store.save(pr)
    log.info(f"Requisition {pr.transaction_id}: {previous} → {pr.status} by {actor.id}")
    return pr


# ── Reads ────────────────────────────────────────────────────────────


def get_requisition(db: Session, actor: Actor, pr_id: str) -> Requisition:
    pr = RequisitionStore(db).get(pr_id, require_organization(actor))
    if actor.role is Role.EMPLOYEE and pr.requested_by != actor.id:
        raise errors.NotFound("Requisition not found", pr_id=pr_id)
    return pr


def list_requisitions(
    db: Session,
    actor: Actor,
    status: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[Requisition], int]:
    requested_by = actor.id if actor.role is Role.EMPLOYEE else None
    return RequisitionStore(db).search(
        require_organization(actor),
        status=status or None,
        requested_by=requested_by,
        limit=limit,
        offset=offset,
    )


def pending_queue(db: Session, actor: Actor, limit: int = 50, offset: int = 0):
    """Requisitions waiting at the actor's approval gate."""
    queue_status = APPROVER_QUEUES.get(actor.role)
    if queue_status is None:
        return [], 0
    return RequisitionStore(db).search(
        require_organization(actor), status=queue_status.value, limit=limit, offset=offset
    )


def get_children(db: Session, actor: Actor, pr_id: str) -> list[Requisition]:
    parent = get_requisition(db, actor, pr_id)
    rows, _ = RequisitionStore(db).search(
        parent.organization_id, parent_id=parent.id, limit=500
    )
    return sorted(rows, key=lambda r: r.transaction_id)


def get_history(db: Session, actor: Actor, pr_id: str):
    """Audit trail, oldest first."""
    return list(get_requisition(db, actor, pr_id).history)
