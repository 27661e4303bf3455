"""
schemas/messages.py — Pydantic models for the requisition message thread

Called by: routers/messages.py, services/message_service.py
Depends on: pydantic
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class AttachmentIn(BaseModel):
    file_name: str = Field(min_length=1, max_length=255)
    file_url: str = Field(min_length=1, max_length=1024)


class MessageCreate(BaseModel):
    message: str = Field(default="", max_length=5000)
    attachments: list[AttachmentIn] = Field(default_factory=list)


class MessageOut(BaseModel):
    id: str
    pr_id: str
    sender_id: str
    sender_name: str
    sender_role: str
    message: str
    attachments: list[AttachmentIn] = Field(default_factory=list)
    is_system_note: bool = False
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
