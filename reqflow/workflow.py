"""
workflow.py — Requisition workflow vocabulary and transition table

Single source of truth for statuses, roles, decisions and which role may
move a requisition from which status. Services look transitions up here
instead of encoding them in if-chains, and callers use ROLE_PORTALS
instead of keeping their own role→landing-page tables.

Business Rules:
- Initial status is PENDING_HOD_APPROVAL if the organization has an active
  HOD, else PENDING_FINANCE_APPROVAL (bypass path)
- HOD acts only on PENDING_HOD_APPROVAL, Finance only on
  PENDING_FINANCE_APPROVAL
- Terminal statuses admit no further transitions
- HOD_APPROVED is part of the vocabulary but is never produced; HOD
  approval moves straight to PENDING_FINANCE_APPROVAL

Called by: services/approval_service.py, services/split_service.py,
           services/quote_service.py, routers/requisitions.py
Depends on: nothing
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class PRStatus(str, Enum):
    PENDING_HOD_APPROVAL = "PENDING_HOD_APPROVAL"
    HOD_APPROVED = "HOD_APPROVED"
    HOD_DECLINED = "HOD_DECLINED"
    PENDING_FINANCE_APPROVAL = "PENDING_FINANCE_APPROVAL"
    FINANCE_APPROVED = "FINANCE_APPROVED"
    FINANCE_DECLINED = "FINANCE_DECLINED"
    SPLIT = "SPLIT"


class Urgency(str, Enum):
    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    URGENT = "URGENT"


class Role(str, Enum):
    EMPLOYEE = "EMPLOYEE"
    HOD = "HOD"
    FINANCE = "FINANCE"
    ADMIN = "ADMIN"
    SUPPLIER = "SUPPLIER"


class Decision(str, Enum):
    APPROVE = "approve"
    DECLINE = "decline"
    SPLIT = "split"


class QuoteRequestStatus(str, Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    DECLINED = "DECLINED"


class QuoteStatus(str, Enum):
    SUBMITTED = "SUBMITTED"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    EXPIRED = "EXPIRED"


class InvoiceStatus(str, Enum):
    UPLOADED = "UPLOADED"
    AWAITING_PAYMENT = "AWAITING_PAYMENT"
    PAID = "PAID"


TERMINAL_STATUSES = frozenset(
    {
        PRStatus.HOD_DECLINED,
        PRStatus.FINANCE_DECLINED,
        PRStatus.FINANCE_APPROVED,
        PRStatus.SPLIT,
    }
)

# Statuses during which finance may solicit supplier quotes
QUOTABLE_STATUSES = frozenset(
    {PRStatus.PENDING_FINANCE_APPROVAL, PRStatus.FINANCE_APPROVED}
)

PAYABLE_INVOICE_STATUSES = frozenset(
    {InvoiceStatus.UPLOADED, InvoiceStatus.AWAITING_PAYMENT}
)


@dataclass(frozen=True)
class Transition:
    """Outcome of a legal (status, decision, role) combination."""

    to_status: PRStatus
    history_action: str
    mirror_field: str  # "hod_status" or "finance_status"
    mirror_value: str
    default_details: str


TRANSITIONS: dict[tuple[PRStatus, Decision, Role], Transition] = {
    (PRStatus.PENDING_HOD_APPROVAL, Decision.APPROVE, Role.HOD): Transition(
        PRStatus.PENDING_FINANCE_APPROVAL, "HOD_APPROVED", "hod_status", "Approved", "Approved by HOD"
    ),
    (PRStatus.PENDING_HOD_APPROVAL, Decision.DECLINE, Role.HOD): Transition(
        PRStatus.HOD_DECLINED, "HOD_DECLINED", "hod_status", "Declined", "Declined by HOD"
    ),
    (PRStatus.PENDING_HOD_APPROVAL, Decision.SPLIT, Role.HOD): Transition(
        PRStatus.SPLIT, "PR_SPLIT", "hod_status", "Split", "Split by HOD"
    ),
    (PRStatus.PENDING_FINANCE_APPROVAL, Decision.APPROVE, Role.FINANCE): Transition(
        PRStatus.FINANCE_APPROVED, "FINANCE_APPROVED", "finance_status", "Approved", "Approved by Finance"
    ),
    (PRStatus.PENDING_FINANCE_APPROVAL, Decision.DECLINE, Role.FINANCE): Transition(
        PRStatus.FINANCE_DECLINED, "FINANCE_DECLINED", "finance_status", "Declined", "Declined by Finance"
    ),
    (PRStatus.PENDING_FINANCE_APPROVAL, Decision.SPLIT, Role.FINANCE): Transition(
        PRStatus.SPLIT, "PR_SPLIT", "finance_status", "Split", "Split by Finance"
    ),
}


def lookup_transition(status: str, decision: Decision, role: Role) -> Transition | None:
    """Return the transition for this combination, or None if it is illegal."""
    try:
        current = PRStatus(status)
    except ValueError:
        return None
    return TRANSITIONS.get((current, decision, role))


def initial_status(org_has_hod: bool) -> tuple[PRStatus, str]:
    """Initial (status, hod_status) for a new requisition."""
    if org_has_hod:
        return PRStatus.PENDING_HOD_APPROVAL, "Pending"
    return PRStatus.PENDING_FINANCE_APPROVAL, "N/A"


# Which status each approver role works from
APPROVER_QUEUES: dict[Role, PRStatus] = {
    Role.HOD: PRStatus.PENDING_HOD_APPROVAL,
    Role.FINANCE: PRStatus.PENDING_FINANCE_APPROVAL,
}

ROLE_PORTALS: dict[Role, str] = {
    Role.EMPLOYEE: "/employee/portal",
    Role.HOD: "/hod/portal",
    Role.FINANCE: "/finance/portal",
    Role.ADMIN: "/admin/portal",
    Role.SUPPLIER: "/supplier/portal",
}


def portal_for(role: Role | str) -> str:
    """Landing page for a role. Unknown roles land on the employee portal."""
    try:
        return ROLE_PORTALS[Role(role)]
    except ValueError:
        return ROLE_PORTALS[Role.EMPLOYEE]
