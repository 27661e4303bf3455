"""
messages.py — Requisition message thread router

Called by: main.py (router mount)
Depends on: services/message_service, dependencies
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..actor import Actor
from ..database import get_db
from ..dependencies import require_actor
from ..schemas.messages import MessageCreate, MessageOut
from ..services import message_service

router = APIRouter(tags=["messages"])


@router.get("/api/requisitions/{pr_id}/messages", response_model=list[MessageOut])
async def list_messages(
    pr_id: str,
    actor: Actor = Depends(require_actor),
    db: Session = Depends(get_db),
):
    return [MessageOut.model_validate(m) for m in message_service.list_messages(db, actor, pr_id)]


@router.post("/api/requisitions/{pr_id}/messages", response_model=MessageOut, status_code=201)
async def send_message(
    pr_id: str,
    payload: MessageCreate,
    actor: Actor = Depends(require_actor),
    db: Session = Depends(get_db),
):
    """Post to the thread. Messages cannot be edited or deleted afterwards."""
    msg = message_service.send_message(db, actor, pr_id, payload.message, payload.attachments)
    return MessageOut.model_validate(msg)
