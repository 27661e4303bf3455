"""Per-requisition message thread. Rows are written once and never edited."""

from sqlalchemy import JSON, Boolean, Column, ForeignKey, Index, String, Text

from ..database import UTCDateTime, utcnow
from .base import Base, new_id


class PRMessage(Base):
    __tablename__ = "pr_messages"
    id = Column(String(36), primary_key=True, default=new_id)
    pr_id = Column(
        String(36), ForeignKey("purchase_requisitions.id", ondelete="CASCADE"), nullable=False
    )
    organization_id = Column(
        String(36), ForeignKey("organizations.id"), nullable=False
    )
    sender_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    sender_name = Column(String(255), nullable=False)
    sender_role = Column(String(20), nullable=False)
    message = Column(Text, nullable=False, default="")
    attachments = Column(JSON, nullable=False, default=list)
    # [{"file_name": ..., "file_url": ...}]
    is_system_note = Column(Boolean, nullable=False, default=False)
    created_at = Column(UTCDateTime, default=utcnow)

    __table_args__ = (Index("ix_pr_messages_pr_created", "pr_id", "created_at"),)
