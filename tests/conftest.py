"""
conftest.py — Shared Test Fixtures for reqflow

Provides an in-memory SQLite database, a FastAPI TestClient with the
actor dependency overridden, and factory fixtures for organizations,
profiles, suppliers and requisitions.

Business Rules:
- All tests run against an isolated in-memory DB
- Identity is overridden so tests never need a session cookie; switch the
  acting user with `acting["actor"] = ...`
- Each test function gets fresh tables

Called by: all test files via pytest autodiscovery
Depends on: reqflow.models (Base), reqflow.database (get_db), reqflow.dependencies
"""

import os

os.environ["TESTING"] = "1"  # Must be set before importing reqflow modules

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from reqflow.actor import Actor
from reqflow.models import Base, Organization, Profile, Supplier
from reqflow.schemas.requisitions import LineItemIn, RequisitionCreate
from reqflow.workflow import Role

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@event.listens_for(engine, "connect")
def _enable_fk(dbapi_conn, _):
    """SQLite ignores FKs by default — turn them on."""
    dbapi_conn.execute("PRAGMA foreign_keys=ON")


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


# ── Database ─────────────────────────────────────────────────────────


@pytest.fixture(autouse=True)
def db_session():
    """Create all tables, yield a session, then tear down."""
    Base.metadata.create_all(bind=engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


# ── Factories ────────────────────────────────────────────────────────


@pytest.fixture()
def org(db_session: Session) -> Organization:
    o = Organization(name="Acme Mining", contact_email="ops@acme.example")
    db_session.add(o)
    db_session.commit()
    return o


@pytest.fixture()
def other_org(db_session: Session) -> Organization:
    o = Organization(name="Other Co", contact_email="ops@other.example")
    db_session.add(o)
    db_session.commit()
    return o


@pytest.fixture()
def make_profile(db_session: Session, org: Organization):
    """Factory: make_profile(Role.HOD, name="Hana") → committed Profile."""
    counter = {"n": 0}

    def _make(role: Role, name: str | None = None, organization=org, department="Operations", **kw):
        counter["n"] += 1
        profile = Profile(
            email=f"{role.value.lower()}{counter['n']}@acme.example",
            name=name or role.value.title(),
            surname="Tester",
            role=role.value,
            organization_id=organization.id if organization is not None else None,
            department=department,
            **kw,
        )
        db_session.add(profile)
        db_session.commit()
        return profile

    return _make


@pytest.fixture()
def employee(make_profile) -> Profile:
    return make_profile(Role.EMPLOYEE, name="Erin")


@pytest.fixture()
def hod(make_profile) -> Profile:
    return make_profile(Role.HOD, name="Hana")


@pytest.fixture()
def finance(make_profile) -> Profile:
    return make_profile(Role.FINANCE, name="Femi")


@pytest.fixture()
def supplier(db_session: Session, org: Organization, make_profile) -> Supplier:
    """A verified supplier registered with `org`. Its login profile has no organization."""
    user = make_profile(Role.SUPPLIER, name="Sam", organization=None, department=None)
    s = Supplier(
        company_name="Bolt & Nut Ltd",
        contact_email="sales@boltnut.example",
        contact_person="Sam Tester",
        organization_id=org.id,
        user_id=user.id,
        is_verified=True,
    )
    db_session.add(s)
    db_session.commit()
    return s


@pytest.fixture()
def employee_actor(db_session, employee) -> Actor:
    return Actor.from_profile(db_session, employee)


@pytest.fixture()
def hod_actor(db_session, hod) -> Actor:
    return Actor.from_profile(db_session, hod)


@pytest.fixture()
def finance_actor(db_session, finance) -> Actor:
    return Actor.from_profile(db_session, finance)


@pytest.fixture()
def supplier_actor(db_session, supplier) -> Actor:
    return Actor.from_profile(db_session, supplier.user)


def requisition_input(*items, **kw) -> RequisitionCreate:
    """Build submit input from (description, quantity, unit_price) tuples."""
    rows = items or (("Safety boots", 2, "450.00"), ("Hard hat", 5, "120.50"))
    return RequisitionCreate(
        items=[LineItemIn(description=d, quantity=q, unit_price=Decimal(p)) for d, q, p in rows],
        due_date=kw.pop("due_date", utc_today() + timedelta(days=14)),
        **kw,
    )


@pytest.fixture()
def make_requisition(db_session: Session, employee_actor: Actor):
    """Factory: submit a requisition through the approval service."""
    from reqflow.services import approval_service

    def _make(*items, actor: Actor | None = None, **kw):
        return approval_service.submit(db_session, actor or employee_actor, requisition_input(*items, **kw))

    return _make


# ── HTTP client ──────────────────────────────────────────────────────


@pytest.fixture()
def acting(employee_actor) -> dict:
    """Mutable holder for the actor the client authenticates as."""
    return {"actor": employee_actor}


@pytest.fixture()
def client(db_session: Session, acting: dict) -> TestClient:
    """FastAPI TestClient with get_db and require_actor overridden."""
    from reqflow.database import get_db
    from reqflow.dependencies import require_actor
    from reqflow.main import app

    def _override_db():
        yield db_session

    def _override_actor():
        return acting["actor"]

    app.dependency_overrides[get_db] = _override_db
    app.dependency_overrides[require_actor] = _override_actor

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()
