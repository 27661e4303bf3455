"""
actor.py — Explicit per-request identity passed into every workflow operation

Resolved once at the request boundary (dependencies.require_actor) from the
session's profile, then handed to services. Services never look the current
user up themselves.

Called by: dependencies.py, services/*, tests
Depends on: models (Profile, Supplier), workflow (Role)
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.orm import Session

from .models import Profile, Supplier
from .workflow import Role


@dataclass(frozen=True)
class Actor:
    id: str
    name: str
    role: Role
    organization_id: str | None = None
    department: str | None = None
    supplier_id: str | None = None

    @classmethod
    def from_profile(cls, db: Session, profile: Profile) -> "Actor":
        supplier_id = None
        role = Role(profile.role)
        if role is Role.SUPPLIER:
            supplier = db.query(Supplier).filter_by(user_id=profile.id).first()
            supplier_id = supplier.id if supplier else None
        return cls(
            id=profile.id,
            name=profile.full_name,
            role=role,
            organization_id=profile.organization_id,
            department=profile.department,
            supplier_id=supplier_id,
        )
