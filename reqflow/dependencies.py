"""
dependencies.py — Shared FastAPI Dependencies

Resolves the acting user once per request and hands services an explicit
Actor. All routers import from here instead of reading the session
themselves.

Business Rules:
- require_actor raises 401 if no user_id is in the session or the
  profile no longer exists, 403 if the profile is deactivated
- require_role(...) raises 403 unless the actor has one of the roles
- Session issuance (login) happens upstream; this module only reads it

Called by: all routers
Depends on: models, database, actor
"""

import logging

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from .actor import Actor
from .database import get_db
from .models import Profile
from .workflow import Role

log = logging.getLogger(__name__)


# ── Authentication ────────────────────────────────────────────────────


def get_profile(request: Request, db: Session) -> Profile | None:
    """Return the current profile from the session, or None if not logged in."""
    uid = request.session.get("user_id")
    if not uid:
        return None
    return db.get(Profile, uid)


def require_actor(request: Request, db: Session = Depends(get_db)) -> Actor:
    """Dependency: raises 401 if no authenticated user, 403 if deactivated."""
    profile = get_profile(request, db)
    if not profile:
        raise HTTPException(401, "Not authenticated")
    if not profile.is_active:
        request.session.clear()
        raise HTTPException(403, "Account deactivated — contact admin")
    return Actor.from_profile(db, profile)


# ── Authorization ─────────────────────────────────────────────────────


def require_role(*roles: Role):
    """Dependency factory: the actor must hold one of `roles`."""
    allowed = frozenset(roles)

    def _check(actor: Actor = Depends(require_actor)) -> Actor:
        if actor.role not in allowed:
            log.warning(f"{actor.id} ({actor.role.value}) denied; needs one of {sorted(r.value for r in allowed)}")
            raise HTTPException(403, f"{' or '.join(sorted(r.value for r in allowed))} role required")
        return actor

    return _check


require_finance = require_role(Role.FINANCE)
require_supplier = require_role(Role.SUPPLIER)
require_approver = require_role(Role.HOD, Role.FINANCE)
require_org_member = require_role(Role.EMPLOYEE, Role.HOD, Role.FINANCE, Role.ADMIN)
