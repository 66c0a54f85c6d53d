"""
API routes for rites
"""
from datetime import datetime
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from clanchain.api.deps import paginated
from clanchain.core.auth import Identity, require_identity
from clanchain.core.database import get_db
from clanchain.services.rite_service import RiteService

router = APIRouter(prefix="/api", tags=["rites"])

RiteTypeName = Literal["birth", "naming", "marriage", "burial", "initiation", "blessing"]
RiteStatusName = Literal["planned", "completed"]


class RiteDetails(BaseModel):
    member_id: Optional[str] = None
    officiant: Optional[str] = None
    participants: List[str] = []
    location: Optional[str] = None
    notes: Optional[str] = None
    cultural_significance: Optional[str] = None


class RiteCreateRequest(RiteDetails):
    type: RiteTypeName
    date: datetime
    status: RiteStatusName = "planned"


class RiteScheduleRequest(RiteDetails):
    type: RiteTypeName
    date: datetime = Field(..., description="Must be in the future")


class RiteUpdateRequest(BaseModel):
    date: Optional[datetime] = None
    officiant: Optional[str] = None
    participants: Optional[List[str]] = None
    location: Optional[str] = None
    notes: Optional[str] = None
    cultural_significance: Optional[str] = None
    status: Optional[RiteStatusName] = None


@router.get("/clans/{clan_id}/rites")
async def list_rites(
    clan_id: str,
    rite_type: Optional[RiteTypeName] = Query(None, alias="type"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    items, total = RiteService(db).list_rites(clan_id, rite_type=rite_type, page=page, limit=limit)
    return paginated(items, total, page, limit)


@router.post("/clans/{clan_id}/rites", status_code=status.HTTP_201_CREATED)
async def create_rite(
    clan_id: str,
    request: RiteCreateRequest,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    details = request.model_dump(exclude={"type", "date"})
    return RiteService(db).create_rite(clan_id, request.type, request.date, **details).to_dict()


@router.post("/clans/{clan_id}/rites/schedule", status_code=status.HTTP_201_CREATED)
async def schedule_rite(
    clan_id: str,
    request: RiteScheduleRequest,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    details = request.model_dump(exclude={"type", "date"})
    return RiteService(db).schedule_rite(clan_id, request.type, request.date, **details).to_dict()


@router.get("/rites/{rite_id}")
async def get_rite(rite_id: str, db: Session = Depends(get_db)):
    return RiteService(db).get_rite(rite_id).to_dict()


@router.patch("/rites/{rite_id}")
async def update_rite(
    rite_id: str,
    request: RiteUpdateRequest,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    return RiteService(db).update_rite(rite_id, request.model_dump(exclude_unset=True)).to_dict()
