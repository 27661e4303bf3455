"""Tenants, actor profiles and suppliers."""

from sqlalchemy import Boolean, Column, ForeignKey, Index, String
from sqlalchemy.orm import relationship

from ..database import UTCDateTime, utcnow
from .base import Base, new_id


class Organization(Base):
    __tablename__ = "organizations"
    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    contact_email = Column(String(255))
    created_at = Column(UTCDateTime, default=utcnow)

    members = relationship("Profile", back_populates="organization")


class Profile(Base):
    """A person who acts on requisitions. One role per profile."""

    __tablename__ = "profiles"
    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String(255), unique=True, nullable=False)
    name = Column(String(255), nullable=False)
    surname = Column(String(255))
    role = Column(String(20), nullable=False, default="EMPLOYEE")
    # EMPLOYEE | HOD | FINANCE | ADMIN | SUPPLIER
    organization_id = Column(String(36), ForeignKey("organizations.id", ondelete="SET NULL"))
    department = Column(String(255))
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(UTCDateTime, default=utcnow)

    organization = relationship("Organization", back_populates="members")

    __table_args__ = (Index("ix_profiles_org_role", "organization_id", "role"),)

    @property
    def full_name(self) -> str:
        return f"{self.name} {self.surname}" if self.surname else self.name


class Supplier(Base):
    __tablename__ = "suppliers"
    id = Column(String(36), primary_key=True, default=new_id)
    company_name = Column(String(255), nullable=False)
    contact_email = Column(String(255), nullable=False)
    contact_person = Column(String(255))
    # Tenant the supplier is registered with; quote requests never cross it
    organization_id = Column(String(36), ForeignKey("organizations.id", ondelete="SET NULL"))
    user_id = Column(String(36), ForeignKey("profiles.id", ondelete="SET NULL"), unique=True)
    is_verified = Column(Boolean, nullable=False, default=False)
    created_at = Column(UTCDateTime, default=utcnow)

    user = relationship("Profile", foreign_keys=[user_id])

    __table_args__ = (Index("ix_suppliers_org", "organization_id"),)
