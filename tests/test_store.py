"""
test_store.py — Tests for reqflow/services/store.py

Covers organization scoping, invariant checks, transaction-ID collision
retry, lost-update detection and the status compare-and-swap helper.

Called by: pytest
Depends on: reqflow/services/store.py, conftest.py
"""

from decimal import Decimal

import pytest
from sqlalchemy import text

from reqflow.models import Quote, QuoteRequest, Requisition
from reqflow.schemas.records import LineItem
from reqflow.services import errors
from reqflow.services.audit import append_history, history_entry
from reqflow.services.store import RequisitionStore, compare_and_set_status
from reqflow.workflow import Role


def _new_pr(actor, **kw) -> Requisition:
    items = [LineItem(description="Cable", quantity=4, unit_price=Decimal("25.00"))]
    defaults = dict(
        organization_id=actor.organization_id,
        requested_by=actor.id,
        requested_by_name=actor.name,
        items=items,
        total_amount=Decimal("100.00"),
        status="PENDING_FINANCE_APPROVAL",
        hod_status="N/A",
        finance_status="Pending",
        history=append_history((), history_entry("PR_CREATED", actor)),
    )
    defaults.update(kw)
    return Requisition(**defaults)


class TestReads:
    def test_get_scoped_to_org(self, db_session, make_requisition, other_org):
        pr = make_requisition()
        store = RequisitionStore(db_session)
        assert store.get(pr.id, pr.organization_id).id == pr.id
        with pytest.raises(errors.NotFound):
            store.get(pr.id, other_org.id)

    def test_get_missing(self, db_session):
        with pytest.raises(errors.NotFound):
            RequisitionStore(db_session).get("nope")

    def test_search_filters_and_counts(self, db_session, make_requisition, employee_actor):
        for _ in range(3):
            make_requisition()
        rows, total = RequisitionStore(db_session).search(employee_actor.organization_id, limit=2)
        assert total == 3
        assert len(rows) == 2
        rows, total = RequisitionStore(db_session).search(
            employee_actor.organization_id, status="FINANCE_APPROVED"
        )
        assert (rows, total) == ([], 0)

    def test_org_has_active_hod(self, db_session, org, make_profile):
        store = RequisitionStore(db_session)
        assert store.org_has_active_hod(org.id) is False
        make_profile(Role.HOD, is_active=False)
        assert store.org_has_active_hod(org.id) is False
        make_profile(Role.HOD)
        assert store.org_has_active_hod(org.id) is True

    def test_malformed_row_is_persistence_failure(self, db_session, make_requisition):
        pr = make_requisition()
        db_session.execute(
            text("UPDATE purchase_requisitions SET items = :bad WHERE id = :id"),
            {"bad": '{"schema_version": 99, "records": []}', "id": pr.id},
        )
        db_session.commit()
        db_session.expunge_all()
        with pytest.raises(errors.PersistenceFailure):
            RequisitionStore(db_session).get(pr.id)

    def test_malformed_row_in_listing_is_persistence_failure(self, db_session, make_requisition, employee_actor):
        make_requisition()
        bad = make_requisition()
        db_session.execute(
            text("UPDATE purchase_requisitions SET history = :bad WHERE id = :id"),
            {"bad": '{"schema_version": 99, "records": []}', "id": bad.id},
        )
        db_session.commit()
        db_session.expunge_all()
        with pytest.raises(errors.PersistenceFailure):
            RequisitionStore(db_session).search(employee_actor.organization_id)


class TestInsert:
    def test_rejects_total_mismatch(self, db_session, employee_actor):
        pr = _new_pr(employee_actor, total_amount=Decimal("99.99"))
        with pytest.raises(errors.ValidationError):
            RequisitionStore(db_session).insert(pr)

    def test_rejects_empty_items(self, db_session, employee_actor):
        pr = _new_pr(employee_actor, items=[], total_amount=Decimal("0"))
        with pytest.raises(errors.ValidationError):
            RequisitionStore(db_session).insert(pr)

    def test_retries_on_collision(self, db_session, employee_actor):
        store = RequisitionStore(db_session)
        store.insert(_new_pr(employee_actor), id_factory=lambda: "PR-20260101-AAAAAA")
        candidates = iter(["PR-20260101-AAAAAA", "PR-20260101-AAAAAA", "PR-20260101-BBBBBB"])
        pr = store.insert(_new_pr(employee_actor), id_factory=lambda: next(candidates))
        assert pr.transaction_id == "PR-20260101-BBBBBB"

    def test_gives_up_after_attempts(self, db_session, employee_actor):
        store = RequisitionStore(db_session)
        store.insert(_new_pr(employee_actor), id_factory=lambda: "PR-20260101-AAAAAA")
        with pytest.raises(errors.PersistenceFailure):
            store.insert(_new_pr(employee_actor), id_factory=lambda: "PR-20260101-AAAAAA", attempts=3)
        assert db_session.query(Requisition).count() == 1

    def test_version_starts_at_one(self, db_session, employee_actor):
        pr = RequisitionStore(db_session).insert(_new_pr(employee_actor))
        assert pr.version == 1


class TestSave:
    def test_save_bumps_version(self, db_session, make_requisition):
        pr = make_requisition()
        pr.finance_status = "Approved"
        RequisitionStore(db_session).save(pr)
        assert pr.version == 2

    def test_lost_update_detected(self, db_session, make_requisition):
        pr = make_requisition()
        # Another writer bumps the version behind this session's back
        db_session.execute(
            text("UPDATE purchase_requisitions SET version = version + 1 WHERE id = :id"),
            {"id": pr.id},
        )
        db_session.commit()
        pr.status = "FINANCE_APPROVED"
        with pytest.raises(errors.ConcurrentModification):
            RequisitionStore(db_session).save(pr)
        db_session.refresh(pr)
        assert pr.status == "PENDING_FINANCE_APPROVAL"

    def test_invariant_violation_rolls_back(self, db_session, make_requisition):
        pr = make_requisition()
        original_total = pr.total_amount
        pr.total_amount = Decimal("1.00")
        with pytest.raises(errors.ValidationError):
            RequisitionStore(db_session).save(pr)
        assert pr.total_amount == original_total


class TestCompareAndSet:
    def _quote_request(self, db_session, pr, supplier, finance_actor):
        qr = QuoteRequest(
            pr_id=pr.id,
            organization_id=pr.organization_id,
            supplier_id=supplier.id,
            requested_by=finance_actor.id,
            items=list(pr.items),
            status="PENDING",
        )
        db_session.add(qr)
        db_session.commit()
        return qr

    def test_matches_expected_status_once(self, db_session, make_requisition, supplier, finance_actor):
        qr = self._quote_request(db_session, make_requisition(), supplier, finance_actor)
        assert compare_and_set_status(db_session, QuoteRequest, qr.id, ["PENDING"], "ACCEPTED")
        db_session.commit()
        assert not compare_and_set_status(db_session, QuoteRequest, qr.id, ["PENDING"], "DECLINED")
        db_session.rollback()
        db_session.refresh(qr)
        assert qr.status == "ACCEPTED"

    def test_unknown_row(self, db_session):
        assert not compare_and_set_status(db_session, Quote, "missing", ["SUBMITTED"], "ACCEPTED")
