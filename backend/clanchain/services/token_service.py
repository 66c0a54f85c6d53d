"""
ClanToken ledger service
"""
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from clanchain.core.exceptions import NotFoundError, ValidationError
from clanchain.core.logging_config import LoggingConfig
from clanchain.models.clan import Clan
from clanchain.models.token import ClanToken, TokenCategory

logger = LoggingConfig.get_logger(__name__)


class TokenService:
    def __init__(self, db: Session):
        self.db = db

    def award_tokens(
        self,
        clan_id: str,
        member_id: str,
        action: str,
        tokens_earned: int,
        category: str,
        tokens_spent: int = 0,
    ) -> ClanToken:
        """Record tokens for an action; unverified until an elder confirms"""
        if self.db.get(Clan, clan_id) is None:
            raise NotFoundError(f"Clan {clan_id} not found")
        if category not in {c.value for c in TokenCategory}:
            raise ValidationError(f"Invalid token category '{category}'")
        if tokens_earned < 0 or tokens_spent < 0:
            raise ValidationError("Token amounts cannot be negative")

        token = ClanToken(
            clan_id=clan_id,
            member_id=member_id,
            action=action,
            tokens_earned=tokens_earned,
            tokens_spent=tokens_spent,
            category=category,
            verified=False,
        )
        self.db.add(token)
        self.db.commit()
        self.db.refresh(token)
        return token

    def list_tokens(self, clan_id: str, page: int = 1, limit: int = 20) -> Tuple[List[ClanToken], int]:
        query = self.db.query(ClanToken).filter(ClanToken.clan_id == clan_id)
        total = query.count()
        items = (
            query.order_by(ClanToken.created_at.desc())
            .offset((max(page, 1) - 1) * limit)
            .limit(limit)
            .all()
        )
        return items, total

    def verify_tokens(self, token_id: str, verified_by: str) -> ClanToken:
        token = self.db.get(ClanToken, token_id)
        if token is None:
            raise NotFoundError(f"Token record {token_id} not found")
        token.verified = True
        token.verified_by = verified_by
        self.db.commit()
        self.db.refresh(token)
        logger.info("Tokens verified", extra={"token_id": token_id, "verified_by": verified_by})
        return token

    def member_balance(self, member_id: str, verified_only: Optional[bool] = False) -> Dict[str, int]:
        """Earned minus spent across all of a member's token records"""
        query = self.db.query(
            func.coalesce(func.sum(ClanToken.tokens_earned), 0),
            func.coalesce(func.sum(ClanToken.tokens_spent), 0),
        ).filter(ClanToken.member_id == member_id)
        if verified_only:
            query = query.filter(ClanToken.verified.is_(True))

        earned, spent = query.one()
        return {"balance": int(earned) - int(spent), "total_earned": int(earned)}
