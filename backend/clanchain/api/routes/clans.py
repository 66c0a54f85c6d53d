"""
API routes for clans and their members
"""
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from clanchain.core.auth import Identity, require_identity
from clanchain.core.database import get_db
from clanchain.services.clan_service import ClanService

router = APIRouter(prefix="/api/clans", tags=["clans"])

MemberRoleName = Literal["elder", "youth", "women", "diaspora", "tech_steward"]


class ClanCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    region: Optional[str] = None
    founder_name: Optional[str] = Field(None, description="Registers the founder as the first elder")


class ClanUpdateRequest(BaseModel):
    """Elders are not listed here; they follow member roles"""
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    region: Optional[str] = None
    covenant_status: Optional[Literal["active", "dormant", "suspended"]] = None


class MemberCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    role: MemberRoleName = "youth"
    lineage: List[str] = []
    user_id: Optional[str] = None


class MemberRoleRequest(BaseModel):
    role: MemberRoleName


@router.get("/search")
async def search_clans(
    q: str = Query(..., min_length=1),
    region: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """Search clans by name, optionally within a region"""
    return [clan.to_dict() for clan in ClanService(db).search_clans(q, region=region)]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_clan(
    request: ClanCreateRequest,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    clan = ClanService(db).create_clan(
        name=request.name,
        region=request.region,
        founder_id=identity.user_id,
        founder_name=request.founder_name,
    )
    return clan.to_dict()


@router.get("/{clan_id}")
async def get_clan(clan_id: str, db: Session = Depends(get_db)):
    return ClanService(db).get_clan(clan_id).to_dict()


@router.patch("/{clan_id}")
async def update_clan(
    clan_id: str,
    request: ClanUpdateRequest,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    updates = request.model_dump(exclude_unset=True)
    return ClanService(db).update_clan(clan_id, updates).to_dict()


@router.get("/{clan_id}/members")
async def list_members(clan_id: str, db: Session = Depends(get_db)):
    return [member.to_dict() for member in ClanService(db).list_members(clan_id)]


@router.post("/{clan_id}/members", status_code=status.HTTP_201_CREATED)
async def add_member(
    clan_id: str,
    request: MemberCreateRequest,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    member = ClanService(db).add_member(
        clan_id,
        name=request.name,
        role=request.role,
        lineage=request.lineage,
        user_id=request.user_id,
    )
    return member.to_dict()


@router.patch("/{clan_id}/members/{member_id}")
async def update_member_role(
    clan_id: str,
    member_id: str,
    request: MemberRoleRequest,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    return ClanService(db).update_member_role(clan_id, member_id, request.role).to_dict()
