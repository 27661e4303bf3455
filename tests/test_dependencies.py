"""
test_dependencies.py — Tests for reqflow/dependencies.py

Exercises require_actor against a real session cookie (no override) and
the role gate factory directly.

Called by: pytest
Depends on: reqflow/dependencies.py, conftest.py
"""

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from reqflow.dependencies import require_role
from reqflow.workflow import Role


@pytest.fixture()
def session_client(db_session):
    """Client whose identity comes from the signed session cookie."""
    from fastapi import Request

    from reqflow.database import get_db
    from reqflow.main import app

    def _override_db():
        yield db_session

    async def _login(request: Request):
        request.session["user_id"] = request.query_params["uid"]
        return {"ok": True}

    app.dependency_overrides[get_db] = _override_db
    app.add_api_route("/_test/login", _login)
    with TestClient(app) as c:
        yield c
    app.router.routes = [r for r in app.router.routes if getattr(r, "path", "") != "/_test/login"]
    app.dependency_overrides.clear()


def test_no_session_is_401(session_client):
    resp = session_client.get("/api/me/portal")
    assert resp.status_code == 401
    assert resp.json()["code"] == "HTTPException"


def test_session_resolves_actor(session_client, hod):
    session_client.get("/_test/login", params={"uid": hod.id})
    assert session_client.get("/api/me/portal").json() == {"role": "HOD", "portal": "/hod/portal"}


def test_unknown_profile_is_401(session_client):
    session_client.get("/_test/login", params={"uid": "ghost"})
    assert session_client.get("/api/me/portal").status_code == 401


def test_deactivated_profile_is_403(session_client, db_session, employee):
    employee.is_active = False
    db_session.commit()
    session_client.get("/_test/login", params={"uid": employee.id})
    assert session_client.get("/api/me/portal").status_code == 403
    # Session was cleared, so the next call is unauthenticated
    assert session_client.get("/api/me/portal").status_code == 401


def test_require_role_gate(employee_actor, finance_actor):
    gate = require_role(Role.FINANCE)
    assert gate(actor=finance_actor) is finance_actor
    with pytest.raises(HTTPException) as exc:
        gate(actor=employee_actor)
    assert exc.value.status_code == 403
