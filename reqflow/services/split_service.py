"""
split_service.py — Split a pending requisition into child requisitions

A split replaces one requisition with N children, each carrying a subset of
the parent's items. Children skip the HOD gate and land in the Finance queue.

Business Rules:
- Only legal where the transition table allows a split (HOD at the HOD
  gate, Finance at the Finance gate)
- Groups must partition the parent's items exactly: at least two non-empty
  groups, every item in exactly one group, no unknown item ids
- Items are copied from the parent, so child totals always sum to the
  parent total
- Child transaction IDs are <parent transaction id><n>, n starting at 1
- Children are committed one at a time; if one fails, SplitFailed lists
  the children already created and the parent keeps its status

Called by: routers/requisitions.py
Depends on: services/store, services/audit, services/approval_service, workflow
"""

from __future__ import annotations

import itertools
import logging

from sqlalchemy.orm import Session

from ..actor import Actor
from ..models import Requisition
from ..schemas.records import LineItem, items_total
from ..schemas.requisitions import SplitGroupIn
from ..workflow import Decision, PRStatus, Role, lookup_transition
from . import errors
from .approval_service import require_organization
from .audit import append_history, history_entry, split_transaction_id
from .store import RequisitionStore

log = logging.getLogger("reqflow.split")


def partition_items(
    items: list[LineItem], groups: list[SplitGroupIn]
) -> list[tuple[list[LineItem], str]]:
    """Resolve each group's item ids against the parent's items.

    Raises ValidationError unless the groups form an exact partition.
    """
    if len(groups) < 2:
        raise errors.ValidationError("A split needs at least two groups")

    by_id = {item.id: item for item in items}
    owner: dict[str, int] = {}
    for index, group in enumerate(groups):
        if not group.item_ids:
            raise errors.NoItemsSelected("Split group has no items", group=index)
        for item_id in group.item_ids:
            if item_id not in by_id:
                raise errors.ValidationError(
                    "Item is not on this requisition", group=index, item_id=item_id
                )
            if item_id in owner:
                raise errors.ValidationError(
                    "Item appears in more than one group", group=index, item_id=item_id
                )
            owner[item_id] = index

    unassigned = [item.id for item in items if item.id not in owner]
    if unassigned:
        raise errors.ValidationError(
            "Every item must be assigned to a group", unassigned=unassigned
        )

    return [
        ([item for item in items if owner[item.id] == index], group.comments.strip())
        for index, group in enumerate(groups)
    ]


def split(
    db: Session,
    actor: Actor,
    pr_id: str,
    groups: list[SplitGroupIn],
) -> tuple[Requisition, list[Requisition]]:
    """Split a requisition. Returns (parent, children)."""
    store = RequisitionStore(db)
    parent = store.get(pr_id, require_organization(actor))

    transition = lookup_transition(parent.status, Decision.SPLIT, actor.role)
    if transition is None:
        log.warning(
            f"Rejected split of {parent.transaction_id} by {actor.id} "
            f"({actor.role.value}) in status {parent.status}"
        )
        raise errors.InvalidTransition(
            f"Cannot split a requisition in status {parent.status} as {actor.role.value}",
            status=parent.status,
        )

    partition = partition_items(list(parent.items), groups)

    # Snapshot before child commits expire the parent instance
    parent_tx = parent.transaction_id
    from_status = parent.status
    read_version = parent.version
    copied = {
        "organization_id": parent.organization_id,
        "parent_id": parent.id,
        "requested_by": parent.requested_by,
        "requested_by_name": parent.requested_by_name,
        "department": parent.department,
        "currency": parent.currency,
        "urgency": parent.urgency,
        "due_date": parent.due_date,
        "payment_due_date": parent.payment_due_date,
        "document_url": parent.document_url,
    }

    sequence = itertools.count(1)
    children: list[Requisition] = []
    created: list[str] = []
    for items, comments in partition:
        details = f"Split from {parent_tx}. {comments}".strip()
        child = Requisition(
            **copied,
            items=items,
            total_amount=items_total(items),
            status=PRStatus.PENDING_FINANCE_APPROVAL.value,
            hod_status="Approved",
            finance_status="Pending",
            history=append_history((), history_entry("PR_SPLIT_CREATED", actor, details)),
        )
        try:
            store.insert(child, id_factory=lambda: split_transaction_id(parent_tx, next(sequence)))
        except errors.WorkflowError as e:
            log.error(f"Split of {parent_tx} failed after {len(created)} children: {e.message}")
            raise errors.SplitFailed(
                f"Split of {parent_tx} failed after {len(created)} children",
                created=created,
                reason=e.code,
            )
        created.append(child.transaction_id)
        children.append(child)

    if parent.version != read_version or parent.status != from_status:
        log.error(f"Requisition {parent_tx} changed while being split")
        raise errors.SplitFailed(
            f"Requisition {parent_tx} changed while being split",
            created=created,
            reason=errors.ConcurrentModification.code,
        )

    stage = "HOD" if actor.role is Role.HOD else "Finance"
    parent.status = transition.to_status.value
    setattr(parent, transition.mirror_field, transition.mirror_value)
    parent.history = append_history(
        parent.history,
        history_entry(
            transition.history_action,
            actor,
            f"Split into {len(children)} child PRs by {stage}",
        ),
    )
    try:
        store.save(parent)
    except errors.WorkflowError as e:
        raise errors.SplitFailed(
            f"Children created but {parent_tx} could not be marked as split",
            created=created,
            reason=e.code,
        )

    log.info(f"Requisition {parent_tx} split into {', '.join(created)} by {actor.id}")
    return parent, children
