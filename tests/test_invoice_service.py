"""
test_invoice_service.py — Tests for reqflow/services/invoice_service.py

Covers invoice upload (ownership, quote status, one per quote, history
entry, thread note) and batch payment with per-id failure reasons.

Called by: pytest
Depends on: reqflow/services/invoice_service.py, conftest.py
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from reqflow.actor import Actor
from reqflow.models import Invoice, PRMessage
from reqflow.schemas.quotes import QuoteCreate
from reqflow.services import errors, invoice_service, quote_service
from reqflow.workflow import Role
from conftest import utc_today


@pytest.fixture()
def pr(make_requisition):
    return make_requisition()


def _quote(db_session, finance_actor, supplier_actor, supplier, pr, item_index=0, accept=True):
    qr = quote_service.request_quote(
        db_session, finance_actor, pr.id, supplier.id, [pr.items[item_index].id]
    )
    quote_service.respond_to_request(db_session, supplier_actor, qr.id, True)
    q = quote_service.submit_quote(
        db_session,
        supplier_actor,
        qr.id,
        QuoteCreate(amount=Decimal("850.00"), valid_until=utc_today() + timedelta(days=10)),
    )
    if accept:
        quote_service.resolve_quote(db_session, finance_actor, q.id, True)
    return q


@pytest.fixture()
def accepted_quote(db_session, finance_actor, supplier_actor, supplier, pr):
    return _quote(db_session, finance_actor, supplier_actor, supplier, pr)


@pytest.fixture()
def invoice(db_session, supplier_actor, accepted_quote):
    return invoice_service.record_invoice(
        db_session, supplier_actor, accepted_quote.id, "https://files.example/inv-1.pdf"
    )


class TestRecordInvoice:
    def test_records_awaiting_payment(self, invoice, accepted_quote, pr, supplier):
        assert invoice.status == "AWAITING_PAYMENT"
        assert invoice.quote_id == accepted_quote.id
        assert invoice.pr_id == pr.id
        assert invoice.supplier_id == supplier.id
        assert invoice.organization_id == pr.organization_id
        assert invoice.paid_at is None

    def test_appends_history(self, db_session, invoice, pr):
        db_session.refresh(pr)
        assert pr.history[-1].action == "INVOICE_UPLOADED"
        assert invoice.quote_id in pr.history[-1].details

    def test_posts_system_note_to_thread(self, db_session, invoice, pr, supplier, supplier_actor):
        notes = db_session.query(PRMessage).filter_by(pr_id=pr.id).all()
        assert len(notes) == 1
        assert notes[0].is_system_note is True
        assert notes[0].sender_id == supplier_actor.id
        assert notes[0].organization_id == pr.organization_id
        assert supplier.company_name in notes[0].message

    def test_failed_note_keeps_invoice(self, db_session, supplier_actor, accepted_quote, monkeypatch):
        from reqflow.services import message_service

        def broken_note(*args, **kwargs):
            raise errors.PersistenceFailure("Could not save message")

        monkeypatch.setattr(message_service, "post_system_note", broken_note)
        invoice = invoice_service.record_invoice(
            db_session, supplier_actor, accepted_quote.id, "https://files.example/inv-1.pdf"
        )
        assert invoice.status == "AWAITING_PAYMENT"
        assert db_session.query(Invoice).count() == 1
        assert db_session.query(PRMessage).count() == 0

    def test_one_per_quote(self, db_session, supplier_actor, invoice, accepted_quote):
        with pytest.raises(errors.DuplicateInvoice):
            invoice_service.record_invoice(
                db_session, supplier_actor, accepted_quote.id, "https://files.example/inv-2.pdf"
            )
        assert db_session.query(Invoice).count() == 1

    def test_quote_must_be_accepted(self, db_session, finance_actor, supplier_actor, supplier, pr):
        submitted = _quote(db_session, finance_actor, supplier_actor, supplier, pr, accept=False)
        with pytest.raises(errors.InvalidTransition):
            invoice_service.record_invoice(db_session, supplier_actor, submitted.id, "https://x/1.pdf")

    def test_document_url_required(self, db_session, supplier_actor, accepted_quote):
        with pytest.raises(errors.ValidationError):
            invoice_service.record_invoice(db_session, supplier_actor, accepted_quote.id, "   ")

    def test_other_supplier_not_found(self, db_session, make_profile, accepted_quote):
        from reqflow.models import Supplier

        user = make_profile(Role.SUPPLIER, organization=None)
        db_session.add(Supplier(company_name="Rival", contact_email="r@x.example", user_id=user.id, is_verified=True))
        db_session.commit()
        rival = Actor.from_profile(db_session, user)
        with pytest.raises(errors.NotFound):
            invoice_service.record_invoice(db_session, rival, accepted_quote.id, "https://x/1.pdf")

    def test_only_suppliers_upload(self, db_session, finance_actor, accepted_quote):
        with pytest.raises(errors.InvalidTransition):
            invoice_service.record_invoice(db_session, finance_actor, accepted_quote.id, "https://x/1.pdf")

    def test_invoiced_quote_does_not_expire(self, db_session, invoice, accepted_quote):
        later = accepted_quote.valid_until + timedelta(days=1)
        assert quote_service.expire(db_session, accepted_quote.id, today=later).status == "ACCEPTED"


class TestMarkPaid:
    def test_pays_and_reports_each_id(self, db_session, finance_actor, invoice):
        result = invoice_service.mark_paid(db_session, finance_actor, [invoice.id, "missing"])
        assert result.updated == [invoice.id]
        assert result.failed == {"missing": "not_found"}
        db_session.refresh(invoice)
        assert invoice.status == "PAID"
        assert invoice.paid_by == finance_actor.id
        assert invoice.paid_at is not None

    def test_second_payment_reports_already_paid(self, db_session, finance_actor, invoice):
        invoice_service.mark_paid(db_session, finance_actor, [invoice.id])
        result = invoice_service.mark_paid(db_session, finance_actor, [invoice.id])
        assert result.updated == []
        assert result.failed == {invoice.id: "already_paid"}

    def test_duplicate_ids_processed_once(self, db_session, finance_actor, invoice):
        result = invoice_service.mark_paid(db_session, finance_actor, [invoice.id, invoice.id])
        assert result.updated == [invoice.id]
        assert result.failed == {}

    def test_uploaded_status_is_payable(self, db_session, finance_actor, invoice):
        invoice.status = "UPLOADED"
        db_session.commit()
        assert invoice_service.mark_paid(db_session, finance_actor, [invoice.id]).updated == [invoice.id]

    def test_unknown_status_is_invalid(self, db_session, finance_actor, invoice):
        invoice.status = "VOID"
        db_session.commit()
        result = invoice_service.mark_paid(db_session, finance_actor, [invoice.id])
        assert result.failed == {invoice.id: "invalid_status"}

    def test_write_failure_is_reported_per_id(self, db_session, finance_actor, invoice, monkeypatch):
        def broken_update(*args, **kwargs):
            raise errors.PersistenceFailure("database unavailable")

        monkeypatch.setattr(invoice_service, "compare_and_set_status", broken_update)
        result = invoice_service.mark_paid(db_session, finance_actor, [invoice.id, "missing"])
        assert result.updated == []
        assert result.failed == {invoice.id: "persistence_failure", "missing": "not_found"}
        db_session.refresh(invoice)
        assert invoice.status == "AWAITING_PAYMENT"

    def test_other_org_invoice_is_not_found(self, db_session, make_profile, other_org, invoice):
        outsider = Actor.from_profile(db_session, make_profile(Role.FINANCE, organization=other_org))
        result = invoice_service.mark_paid(db_session, outsider, [invoice.id])
        assert result.failed == {invoice.id: "not_found"}
        db_session.refresh(invoice)
        assert invoice.status == "AWAITING_PAYMENT"

    def test_empty_batch(self, db_session, finance_actor):
        with pytest.raises(errors.ValidationError):
            invoice_service.mark_paid(db_session, finance_actor, [])

    def test_only_finance(self, db_session, employee_actor, invoice):
        with pytest.raises(errors.InvalidTransition):
            invoice_service.mark_paid(db_session, employee_actor, [invoice.id])


class TestListing:
    def test_awaiting_payment(self, db_session, finance_actor, invoice):
        assert [i.id for i in invoice_service.list_awaiting_payment(db_session, finance_actor)] == [invoice.id]
        invoice_service.mark_paid(db_session, finance_actor, [invoice.id])
        assert invoice_service.list_awaiting_payment(db_session, finance_actor) == []

    def test_supplier_sees_own(self, db_session, supplier_actor, invoice):
        assert [i.id for i in invoice_service.list_invoices(db_session, supplier_actor)] == [invoice.id]

    def test_status_filter(self, db_session, finance_actor, invoice):
        assert invoice_service.list_invoices(db_session, finance_actor, status="PAID") == []
