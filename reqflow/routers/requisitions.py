"""
requisitions.py — Requisition submission, approval and split router

Business Rules:
- Any organization member may submit; employees only see their own
- Only HOD and Finance reach the decision, split and pending endpoints;
  the transition table in workflow.py decides what each may do
- Workflow failures propagate as WorkflowError and are rendered by the
  handler in main.py

Called by: main.py (router mount)
Depends on: services/approval_service, services/split_service,
            services/quote_service (quote status), dependencies
"""

from dataclasses import asdict

from fastapi import APIRouter, Depends, Query
from loguru import logger
from sqlalchemy.orm import Session

from ..actor import Actor
from ..database import get_db
from ..dependencies import require_approver, require_finance, require_org_member
from ..schemas.quotes import QuoteWorkflowStatusOut
from ..schemas.requisitions import (
    DecisionIn,
    HistoryEntryOut,
    RequisitionCreate,
    RequisitionListResponse,
    RequisitionOut,
    SplitIn,
    SplitOut,
)
from ..services import approval_service, quote_service, split_service

router = APIRouter(tags=["requisitions"])


@router.post("/api/requisitions", response_model=RequisitionOut, status_code=201)
async def submit_requisition(
    payload: RequisitionCreate,
    actor: Actor = Depends(require_org_member),
    db: Session = Depends(get_db),
):
    """Submit a new requisition into the approval workflow."""
    pr = approval_service.submit(db, actor, payload)
    return RequisitionOut.model_validate(pr)


@router.get("/api/requisitions", response_model=RequisitionListResponse)
async def list_requisitions(
    status: str = "",
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    actor: Actor = Depends(require_org_member),
    db: Session = Depends(get_db),
):
    rows, total = approval_service.list_requisitions(db, actor, status, limit, offset)
    return RequisitionListResponse(
        total=total,
        limit=limit,
        offset=offset,
        requisitions=[RequisitionOut.model_validate(r) for r in rows],
    )


@router.get("/api/requisitions/pending", response_model=RequisitionListResponse)
async def pending_requisitions(
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    actor: Actor = Depends(require_approver),
    db: Session = Depends(get_db),
):
    """Requisitions waiting at the caller's approval gate."""
    rows, total = approval_service.pending_queue(db, actor, limit, offset)
    return RequisitionListResponse(
        total=total,
        limit=limit,
        offset=offset,
        requisitions=[RequisitionOut.model_validate(r) for r in rows],
    )


@router.get("/api/requisitions/{pr_id}", response_model=RequisitionOut)
async def get_requisition(
    pr_id: str,
    actor: Actor = Depends(require_org_member),
    db: Session = Depends(get_db),
):
    return RequisitionOut.model_validate(approval_service.get_requisition(db, actor, pr_id))


@router.get("/api/requisitions/{pr_id}/history", response_model=list[HistoryEntryOut])
async def requisition_history(
    pr_id: str,
    actor: Actor = Depends(require_org_member),
    db: Session = Depends(get_db),
):
    return [HistoryEntryOut.model_validate(e) for e in approval_service.get_history(db, actor, pr_id)]


@router.get("/api/requisitions/{pr_id}/children", response_model=list[RequisitionOut])
async def requisition_children(
    pr_id: str,
    actor: Actor = Depends(require_org_member),
    db: Session = Depends(get_db),
):
    return [RequisitionOut.model_validate(c) for c in approval_service.get_children(db, actor, pr_id)]


@router.post("/api/requisitions/{pr_id}/decision", response_model=RequisitionOut)
async def decide_requisition(
    pr_id: str,
    payload: DecisionIn,
    actor: Actor = Depends(require_approver),
    db: Session = Depends(get_db),
):
    """Approve or decline at the caller's gate."""
    pr = approval_service.decide(db, actor, pr_id, payload.decision, payload.comments)
    return RequisitionOut.model_validate(pr)


@router.post("/api/requisitions/{pr_id}/split", response_model=SplitOut)
async def split_requisition(
    pr_id: str,
    payload: SplitIn,
    actor: Actor = Depends(require_approver),
    db: Session = Depends(get_db),
):
    parent, children = split_service.split(db, actor, pr_id, payload.groups)
    logger.info(f"Split {parent.transaction_id} into {len(children)} via API")
    return SplitOut(
        parent=RequisitionOut.model_validate(parent),
        children=[RequisitionOut.model_validate(c) for c in children],
    )


@router.get("/api/requisitions/{pr_id}/quote-status", response_model=QuoteWorkflowStatusOut)
async def requisition_quote_status(
    pr_id: str,
    actor: Actor = Depends(require_finance),
    db: Session = Depends(get_db),
):
    """How far supplier quotation has got for this requisition."""
    summary = quote_service.quote_overview(db, actor, pr_id)
    return QuoteWorkflowStatusOut(**asdict(summary))
