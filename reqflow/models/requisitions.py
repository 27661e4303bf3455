"""Purchase requisition model."""

from sqlalchemy import Column, Date, ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.orm import relationship

from ..database import UTCDateTime, utcnow
from ..schemas.records import HistoryEntry, LineItem
from ..utils.versioned_json import VersionedRecords
from .base import Base, new_id


class Requisition(Base):
    """A purchase requisition. Never deleted; terminal rows stay for audit.

    `version` is the optimistic-concurrency counter: every UPDATE is issued
    as `... WHERE id = :id AND version = :read_version`, and a zero-row
    result raises StaleDataError.
    """

    __tablename__ = "purchase_requisitions"
    id = Column(String(36), primary_key=True, default=new_id)
    transaction_id = Column(String(40), nullable=False, unique=True)
    organization_id = Column(
        String(36), ForeignKey("organizations.id"), nullable=False
    )
    parent_id = Column(String(36), ForeignKey("purchase_requisitions.id"))

    requested_by = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    requested_by_name = Column(String(255), nullable=False)
    department = Column(String(255))

    items = Column(VersionedRecords(LineItem), nullable=False, default=list)
    total_amount = Column(Numeric(14, 2), nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="ZAR")
    urgency = Column(String(10), nullable=False, default="NORMAL")

    status = Column(String(30), nullable=False)
    hod_status = Column(String(20), nullable=False, default="Pending")
    finance_status = Column(String(20), nullable=False, default="Pending")

    due_date = Column(Date)
    payment_due_date = Column(Date)
    document_url = Column(String(1024))

    history = Column(VersionedRecords(HistoryEntry), nullable=False, default=list)

    version = Column(Integer, nullable=False)
    created_at = Column(UTCDateTime, default=utcnow)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow)

    parent = relationship("Requisition", remote_side=[id], foreign_keys=[parent_id])
    quote_requests = relationship("QuoteRequest", back_populates="requisition")

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("ix_pr_org_status", "organization_id", "status"),
        Index("ix_pr_requested_by", "requested_by"),
        Index("ix_pr_parent", "parent_id"),
        Index("ix_pr_created_at", "created_at"),
    )
