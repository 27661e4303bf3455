"""Supplier invoices raised against accepted quotes."""

from sqlalchemy import Column, ForeignKey, Index, String
from sqlalchemy.orm import relationship

from ..database import UTCDateTime, utcnow
from .base import Base, new_id


class Invoice(Base):
    __tablename__ = "invoices"
    id = Column(String(36), primary_key=True, default=new_id)
    pr_id = Column(
        String(36), ForeignKey("purchase_requisitions.id"), nullable=False
    )
    quote_id = Column(String(36), ForeignKey("quotes.id"), nullable=False, unique=True)
    supplier_id = Column(String(36), ForeignKey("suppliers.id"), nullable=False)
    organization_id = Column(
        String(36), ForeignKey("organizations.id"), nullable=False
    )
    document_url = Column(String(1024), nullable=False)

    status = Column(String(20), nullable=False, default="AWAITING_PAYMENT")
    # UPLOADED | AWAITING_PAYMENT | PAID
    paid_by = Column(String(36), ForeignKey("profiles.id"))
    paid_at = Column(UTCDateTime)

    created_at = Column(UTCDateTime, default=utcnow)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow)

    quote = relationship("Quote")
    supplier = relationship("Supplier")

    __table_args__ = (
        Index("ix_invoices_org_status", "organization_id", "status"),
        Index("ix_invoices_pr", "pr_id"),
    )
