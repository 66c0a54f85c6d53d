"""
API routes for clan vaults and the ClanToken ledger
"""
from decimal import Decimal
from typing import Any, Dict, Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from clanchain.api.deps import paginated
from clanchain.core.auth import Identity, require_identity
from clanchain.core.database import get_db
from clanchain.services.token_service import TokenService
from clanchain.services.vault_service import VaultService

router = APIRouter(prefix="/api", tags=["vaults"])


class VaultCreateRequest(BaseModel):
    vault_type: Literal["education", "health", "funeral", "legal", "emergency"]
    currency: str = Field("USD", min_length=3, max_length=10)
    name: Optional[str] = None
    rules: Dict[str, Any] = {}
    target_amount: Optional[Decimal] = Field(None, gt=0)


class ContributionRequest(BaseModel):
    amount: Decimal = Field(..., gt=0)
    member_id: Optional[str] = Field(None, description="Defaults to the caller")


class WithdrawalRequest(BaseModel):
    amount: Decimal = Field(..., gt=0)
    reason: str = Field(..., min_length=1)
    requested_by: Optional[str] = Field(None, description="Defaults to the caller")


class TokenAwardRequest(BaseModel):
    member_id: str
    action: str = Field(..., min_length=1)
    tokens_earned: int = Field(..., ge=0)
    tokens_spent: int = Field(0, ge=0)
    category: Literal["community_service", "cultural_preservation", "education", "elder_care"]


class TokenVerifyRequest(BaseModel):
    verified_by: Optional[str] = Field(None, description="Defaults to the caller")


@router.get("/clans/{clan_id}/vaults")
async def list_vaults(clan_id: str, db: Session = Depends(get_db)):
    return [vault.to_dict() for vault in VaultService(db).list_vaults(clan_id)]


@router.post("/clans/{clan_id}/vaults", status_code=status.HTTP_201_CREATED)
async def create_vault(
    clan_id: str,
    request: VaultCreateRequest,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    """Create a vault with a zero balance"""
    vault = VaultService(db).create_vault(
        clan_id,
        vault_type=request.vault_type,
        currency=request.currency,
        name=request.name,
        rules=request.rules,
        target_amount=request.target_amount,
    )
    return vault.to_dict()


@router.post("/vaults/{vault_id}/contribute")
async def contribute(
    vault_id: str,
    request: ContributionRequest,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    vault = VaultService(db).contribute(vault_id, request.amount, request.member_id or identity.user_id)
    return vault.to_dict()


@router.post("/vaults/{vault_id}/withdraw")
async def withdraw(
    vault_id: str,
    request: WithdrawalRequest,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    """Withdraw funds; 409 when the balance is insufficient"""
    vault = VaultService(db).withdraw(
        vault_id,
        request.amount,
        reason=request.reason,
        requested_by=request.requested_by or identity.user_id,
    )
    return vault.to_dict()


@router.get("/clans/{clan_id}/tokens")
async def list_tokens(
    clan_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    items, total = TokenService(db).list_tokens(clan_id, page=page, limit=limit)
    return paginated(items, total, page, limit)


@router.post("/clans/{clan_id}/tokens", status_code=status.HTTP_201_CREATED)
async def award_tokens(
    clan_id: str,
    request: TokenAwardRequest,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    token = TokenService(db).award_tokens(
        clan_id,
        member_id=request.member_id,
        action=request.action,
        tokens_earned=request.tokens_earned,
        tokens_spent=request.tokens_spent,
        category=request.category,
    )
    return token.to_dict()


@router.patch("/tokens/{token_id}/verify")
async def verify_tokens(
    token_id: str,
    request: TokenVerifyRequest,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    return TokenService(db).verify_tokens(token_id, request.verified_by or identity.user_id).to_dict()


@router.get("/members/{member_id}/token-balance")
async def member_token_balance(
    member_id: str,
    verified_only: bool = False,
    db: Session = Depends(get_db),
):
    return TokenService(db).member_balance(member_id, verified_only=verified_only)
