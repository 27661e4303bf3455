"""
store.py — Requisition store: the read/write contract the engine needs

Wraps a SQLAlchemy Session. Services never call commit() on requisitions
directly; they go through insert()/save() so that invariants, unique
transaction IDs and optimistic concurrency are enforced in one place.

Business Rules:
- total_amount must equal the sum of item totals on every write
- items must be non-empty on every write
- insert() retries transaction-ID collisions up to settings.transaction_id_retries
- save() is a compare-and-swap on the row's version column; a lost race
  raises ConcurrentModification and the row keeps the winner's state
- Any other database error is rolled back and raised as PersistenceFailure
- Reads are scoped to the caller's organization; out-of-scope rows are NotFound
- Quote request, quote and invoice status changes go through
  compare_and_set_status(): UPDATE ... WHERE status IN (expected)

Called by: approval_service, split_service, quote_service, invoice_service
Depends on: models, services/errors, services/audit
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable

from sqlalchemy import exists, func, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ..config import settings
from ..models import Profile, Requisition
from ..schemas.records import items_total
from ..workflow import Role
from . import errors
from .audit import generate_transaction_id

log = logging.getLogger("reqflow.store")


class RequisitionStore:
    def __init__(self, db: Session):
        self.db = db

    # ── Reads ────────────────────────────────────────────────────────────

    def find(self, pr_id: str, organization_id: str | None = None) -> Requisition | None:
        try:
            pr = self.db.get(Requisition, pr_id)
        except ValueError as e:
            # Stored items/history failed schema validation
            log.error(f"Malformed requisition row {pr_id}: {e}")
            raise errors.PersistenceFailure("Stored requisition is malformed", pr_id=pr_id)
        if pr is None:
            return None
        if organization_id is not None and pr.organization_id != organization_id:
            return None
        return pr

    def get(self, pr_id: str, organization_id: str | None = None) -> Requisition:
        pr = self.find(pr_id, organization_id)
        if pr is None:
            raise errors.NotFound("Requisition not found", pr_id=pr_id)
        return pr

    def search(
        self,
        organization_id: str,
        status: str | None = None,
        requested_by: str | None = None,
        parent_id: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Requisition], int]:
        """Filtered, newest-first page of requisitions plus the total match count."""
        q = self.db.query(Requisition).filter(Requisition.organization_id == organization_id)
        if status:
            q = q.filter(Requisition.status == status)
        if requested_by:
            q = q.filter(Requisition.requested_by == requested_by)
        if parent_id:
            q = q.filter(Requisition.parent_id == parent_id)
        total = q.with_entities(func.count(Requisition.id)).scalar() or 0
        try:
            rows = (
                q.order_by(Requisition.created_at.desc(), Requisition.transaction_id)
                .offset(offset)
                .limit(limit)
                .all()
            )
        except ValueError as e:
            log.error(f"Malformed requisition row in {organization_id} listing: {e}")
            raise errors.PersistenceFailure("Stored requisition is malformed", organization_id=organization_id)
        return rows, total

    def org_has_active_hod(self, organization_id: str) -> bool:
        return self.db.query(
            exists().where(
                Profile.organization_id == organization_id,
                Profile.role == Role.HOD.value,
                Profile.is_active.is_(True),
            )
        ).scalar()

    def transaction_id_taken(self, transaction_id: str) -> bool:
        return self.db.query(
            exists().where(Requisition.transaction_id == transaction_id)
        ).scalar()

    # ── Writes ───────────────────────────────────────────────────────────

    @staticmethod
    def check_invariants(pr: Requisition) -> None:
        if not pr.items:
            raise errors.ValidationError("A requisition must have at least one item")
        expected = items_total(pr.items)
        if pr.total_amount is None or expected != pr.total_amount:
            raise errors.ValidationError(
                "total_amount does not match the sum of item totals",
                expected=str(expected),
                actual=str(pr.total_amount),
            )

    def insert(
        self,
        pr: Requisition,
        id_factory: Callable[[], str] = generate_transaction_id,
        attempts: int | None = None,
    ) -> Requisition:
        """Persist a new requisition under a fresh, unique transaction ID."""
        self.check_invariants(pr)
        attempts = attempts or settings.transaction_id_retries
        for attempt in range(1, attempts + 1):
            candidate = id_factory()
            if self.transaction_id_taken(candidate):
                log.warning(f"Transaction ID collision on {candidate} (attempt {attempt})")
                continue
            pr.transaction_id = candidate
            self.db.add(pr)
            try:
                self.db.commit()
            except IntegrityError as e:
                self.db.rollback()
                if self.transaction_id_taken(candidate):
                    log.warning(f"Transaction ID {candidate} taken concurrently (attempt {attempt})")
                    continue
                log.error(f"Requisition insert failed: {e}")
                raise errors.PersistenceFailure("Could not create requisition")
            except SQLAlchemyError as e:
                self.db.rollback()
                log.error(f"Requisition insert failed: {e}")
                raise errors.PersistenceFailure("Could not create requisition")
            return pr
        raise errors.PersistenceFailure(
            "Could not allocate a unique transaction ID", attempts=attempts
        )

    def save(self, pr: Requisition) -> Requisition:
        """Write pending changes as one conditional update."""
        pr_id = pr.id
        try:
            self.check_invariants(pr)
        except errors.ValidationError:
            self.db.rollback()
            raise
        try:
            self.db.commit()
        except StaleDataError:
            self.db.rollback()
            log.warning(f"Lost update on requisition {pr_id}; caller must retry")
            raise errors.ConcurrentModification(
                "Requisition was modified by someone else; reload and retry",
                pr_id=pr_id,
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            log.error(f"Requisition {pr_id} update failed: {e}")
            raise errors.PersistenceFailure("Could not update requisition", pr_id=pr_id)
        return pr


# ── Status compare-and-swap for quote requests, quotes and invoices ─────


def compare_and_set_status(
    db: Session,
    model,
    row_id: str,
    expected: Iterable[str],
    new_status: str,
    **values,
) -> bool:
    """UPDATE model SET status=new_status WHERE id=row_id AND status IN expected.

    Returns False when no row matched, i.e. another writer got there first
    or the row was never in an expected status. Does not commit.
    """
    stmt = (
        update(model)
        .where(model.id == row_id, model.status.in_(list(expected)))
        .values(status=new_status, **values)
        .execution_options(synchronize_session=False)
    )
    try:
        result = db.execute(stmt)
    except SQLAlchemyError as e:
        db.rollback()
        log.error(f"{model.__tablename__} {row_id} status update failed: {e}")
        raise errors.PersistenceFailure(f"Could not update {model.__tablename__}", id=row_id)
    return result.rowcount == 1


def commit(db: Session, what: str) -> None:
    """Commit the session, mapping database errors to PersistenceFailure."""
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        log.error(f"Commit failed ({what}): {e}")
        raise errors.PersistenceFailure(f"Could not save {what}")
