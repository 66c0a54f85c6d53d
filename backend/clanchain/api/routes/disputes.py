"""
API routes for the dispute workflow
"""
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from clanchain.api.deps import paginated
from clanchain.core.auth import Identity, require_identity
from clanchain.core.database import get_db
from clanchain.services.dispute_service import DisputeService
from clanchain.services.verdict_advisor import (VerdictAdvisor,
                                                get_verdict_advisor)

router = APIRouter(prefix="/api", tags=["disputes"])

DisputeTypeName = Literal["inheritance", "marriage", "debt", "land", "other"]
DisputeStatusName = Literal["open", "under_review", "escalated", "resolved", "rejected"]


class DisputeCreateRequest(BaseModel):
    """Request model for opening a dispute"""
    title: str = Field(..., min_length=1, max_length=255)
    type: DisputeTypeName = "other"
    description: Optional[str] = None
    submitted_by: Optional[str] = Field(None, description="Defaults to the caller")
    involved_parties: List[str] = []


class TestimonyRequest(BaseModel):
    by: str = Field(..., min_length=1)
    text: str = Field(..., min_length=1)


class VerifyTestimonyRequest(BaseModel):
    verified_by: Optional[str] = Field(None, description="Defaults to the caller")


class StatusRequest(BaseModel):
    status: DisputeStatusName


class ElderOverrideRequest(BaseModel):
    """Request model for an elder override"""
    decision: str = Field(..., min_length=1)
    elder_id: Optional[str] = Field(None, description="Defaults to the caller's elder membership in the clan")
    reasoning: str = Field(..., min_length=1, description="Why the elder overrode the workflow")


@router.get("/clans/{clan_id}/disputes")
async def list_disputes(
    clan_id: str,
    status_filter: Optional[DisputeStatusName] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """Get a clan's disputes, newest first"""
    items, total = DisputeService(db).list_disputes(clan_id, status=status_filter, page=page, limit=limit)
    return paginated(items, total, page, limit)


@router.post("/clans/{clan_id}/disputes", status_code=status.HTTP_201_CREATED)
async def create_dispute(
    clan_id: str,
    request: DisputeCreateRequest,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    dispute = DisputeService(db).create_dispute(
        clan_id=clan_id,
        title=request.title,
        dispute_type=request.type,
        description=request.description,
        submitted_by=request.submitted_by or identity.user_id,
        involved_parties=request.involved_parties,
    )
    return dispute.to_dict()


@router.get("/disputes/{dispute_id}")
async def get_dispute(dispute_id: str, db: Session = Depends(get_db)):
    return DisputeService(db).get_dispute_or_404(dispute_id).to_dict()


@router.post("/disputes/{dispute_id}/testimonies", status_code=status.HTTP_201_CREATED)
async def add_testimony(
    dispute_id: str,
    request: TestimonyRequest,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    """Append a testimony; the dispute status is unchanged"""
    return DisputeService(db).add_testimony(dispute_id, by=request.by, text=request.text).to_dict()


@router.patch("/disputes/{dispute_id}/testimonies/{index}/verify")
async def verify_testimony(
    dispute_id: str,
    index: int,
    request: VerifyTestimonyRequest,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    dispute = DisputeService(db).verify_testimony(
        dispute_id, index, verified_by=request.verified_by or identity.user_id
    )
    return dispute.to_dict()


@router.patch("/disputes/{dispute_id}/status")
async def update_status(
    dispute_id: str,
    request: StatusRequest,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    return DisputeService(db).update_status(dispute_id, request.status).to_dict()


@router.post("/disputes/{dispute_id}/agent-verdict")
async def request_agent_verdict(
    dispute_id: str,
    identity: Identity = Depends(require_identity),
    advisor: VerdictAdvisor = Depends(get_verdict_advisor),
    db: Session = Depends(get_db),
):
    """Ask the external advisor for a recommendation; 503 when none is configured"""
    return await DisputeService(db).request_agent_verdict(dispute_id, advisor)


@router.post("/disputes/{dispute_id}/elder-override")
async def elder_override(
    dispute_id: str,
    request: ElderOverrideRequest,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    """Force a decision; only an elder of the clan, acting through their own account"""
    dispute = DisputeService(db).elder_override(
        dispute_id,
        decision=request.decision,
        elder_id=request.elder_id,
        reasoning=request.reasoning,
        acting_user_id=identity.user_id,
    )
    return dispute.to_dict()
