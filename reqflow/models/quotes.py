"""Supplier quote requests and the quotes submitted against them."""

from sqlalchemy import Column, Date, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import relationship

from ..database import UTCDateTime, utcnow
from ..schemas.records import LineItem
from ..utils.versioned_json import VersionedRecords
from .base import Base, new_id


class QuoteRequest(Base):
    """Finance asks one supplier to price a subset of a requisition's items."""

    __tablename__ = "quote_requests"
    id = Column(String(36), primary_key=True, default=new_id)
    pr_id = Column(
        String(36), ForeignKey("purchase_requisitions.id"), nullable=False
    )
    organization_id = Column(
        String(36), ForeignKey("organizations.id"), nullable=False
    )
    supplier_id = Column(String(36), ForeignKey("suppliers.id"), nullable=False)
    requested_by = Column(String(36), ForeignKey("profiles.id"), nullable=False)

    items = Column(VersionedRecords(LineItem), nullable=False, default=list)
    message = Column(Text)
    status = Column(String(20), nullable=False, default="PENDING")
    # PENDING | ACCEPTED | DECLINED

    created_at = Column(UTCDateTime, default=utcnow)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow)
    responded_at = Column(UTCDateTime)

    requisition = relationship("Requisition", back_populates="quote_requests")
    supplier = relationship("Supplier")
    quote = relationship("Quote", back_populates="quote_request", uselist=False)

    __table_args__ = (
        Index("ix_qr_pr", "pr_id"),
        Index("ix_qr_supplier_status", "supplier_id", "status"),
    )


class Quote(Base):
    __tablename__ = "quotes"
    id = Column(String(36), primary_key=True, default=new_id)
    quote_request_id = Column(
        String(36), ForeignKey("quote_requests.id"), nullable=False, unique=True
    )
    pr_id = Column(
        String(36), ForeignKey("purchase_requisitions.id"), nullable=False
    )
    organization_id = Column(
        String(36), ForeignKey("organizations.id"), nullable=False
    )
    supplier_id = Column(String(36), ForeignKey("suppliers.id"), nullable=False)

    amount = Column(Numeric(14, 2), nullable=False)
    delivery_time = Column(String(100))
    valid_until = Column(Date)
    notes = Column(Text)
    document_url = Column(String(1024))

    status = Column(String(20), nullable=False, default="SUBMITTED")
    # SUBMITTED | ACCEPTED | REJECTED | EXPIRED
    resolved_by = Column(String(36), ForeignKey("profiles.id"))
    resolved_at = Column(UTCDateTime)

    created_at = Column(UTCDateTime, default=utcnow)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow)

    quote_request = relationship("QuoteRequest", back_populates="quote")
    supplier = relationship("Supplier")

    __table_args__ = (
        Index("ix_quotes_pr_status", "pr_id", "status"),
        Index("ix_quotes_supplier", "supplier_id"),
    )
