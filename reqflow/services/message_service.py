"""
message_service.py — Per-requisition message thread

Staff and invited suppliers talk about a requisition here, and other
services post system notes for lifecycle events (invoice uploads) so the
thread doubles as a readable audit trail.

Business Rules:
- Append-only: there is no edit or delete operation
- A message needs text or at least one attachment
- Every message is stamped with the requisition's organization, never the
  sender's, because supplier profiles have no organization
- Organization staff see threads of their organization's requisitions
  (employees only their own requisitions)
- A supplier sees a thread only if it was asked to quote on that requisition
- Messages come back oldest first

Called by: routers/messages.py, services/invoice_service.py
Depends on: services/approval_service (visibility), services/store, models
"""

from __future__ import annotations

import logging

from sqlalchemy import exists
from sqlalchemy.orm import Session

from ..actor import Actor
from ..models import PRMessage, QuoteRequest, Requisition
from ..schemas.messages import AttachmentIn
from ..workflow import Role
from . import errors
from .approval_service import get_requisition
from .store import RequisitionStore, commit

log = logging.getLogger("reqflow.messages")


def visible_requisition(db: Session, actor: Actor, pr_id: str) -> Requisition:
    """Load a requisition the actor may read or post on, else NotFound."""
    if actor.role is not Role.SUPPLIER:
        return get_requisition(db, actor, pr_id)

    pr = RequisitionStore(db).find(pr_id)
    invited = actor.supplier_id is not None and db.query(
        exists().where(
            QuoteRequest.pr_id == pr_id,
            QuoteRequest.supplier_id == actor.supplier_id,
        )
    ).scalar()
    if pr is None or not invited:
        raise errors.NotFound("Requisition not found", pr_id=pr_id)
    return pr


def _write(
    db: Session,
    actor: Actor,
    pr: Requisition,
    text: str,
    attachments: list[AttachmentIn],
    is_system_note: bool,
) -> PRMessage:
    msg = PRMessage(
        pr_id=pr.id,
        organization_id=pr.organization_id,
        sender_id=actor.id,
        sender_name=actor.name,
        sender_role=actor.role.value,
        message=text,
        attachments=[a.model_dump() for a in attachments],
        is_system_note=is_system_note,
    )
    db.add(msg)
    commit(db, "message")
    return msg


def send_message(
    db: Session,
    actor: Actor,
    pr_id: str,
    text: str | None = None,
    attachments: list[AttachmentIn] | None = None,
) -> PRMessage:
    text = (text or "").strip()
    attachments = list(attachments or [])
    if not text and not attachments:
        raise errors.ValidationError("A message needs text or at least one attachment")

    pr = visible_requisition(db, actor, pr_id)
    msg = _write(db, actor, pr, text, attachments, is_system_note=False)
    log.info(f"Message {msg.id} on {pr.transaction_id} from {actor.id} ({len(attachments)} attachments)")
    return msg


def post_system_note(db: Session, actor: Actor, pr: Requisition, note: str) -> PRMessage:
    """Record a lifecycle event in the thread on behalf of the acting user.

    The caller has already authorized the action the note describes, so no
    visibility check is repeated here.
    """
    note = (note or "").strip()
    if not note:
        raise errors.ValidationError("System note text is required")
    msg = _write(db, actor, pr, note, [], is_system_note=True)
    log.info(f"System note {msg.id} on {pr.transaction_id}: {note}")
    return msg


def list_messages(db: Session, actor: Actor, pr_id: str) -> list[PRMessage]:
    pr = visible_requisition(db, actor, pr_id)
    return (
        db.query(PRMessage)
        .filter(PRMessage.pr_id == pr.id, PRMessage.organization_id == pr.organization_id)
        .order_by(PRMessage.created_at, PRMessage.id)
        .all()
    )
