"""
Clan and membership service
"""
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from clanchain.core.exceptions import NotFoundError, ValidationError
from clanchain.core.logging_config import LoggingConfig
from clanchain.models.clan import (Clan, CovenantStatus, Member, MemberRole,
                                   MemberStatus)
from clanchain.utils.sql_utils import LIKE_ESCAPE, escape_like

logger = LoggingConfig.get_logger(__name__)

# elders follows member roles; see update_member_role
_UPDATABLE_CLAN_FIELDS = {"name", "region", "covenant_status"}


class ClanService:
    """Service for clans and their members"""

    def __init__(self, db: Session):
        self.db = db

    def create_clan(
        self,
        name: str,
        region: Optional[str] = None,
        founder_id: Optional[str] = None,
        founder_name: Optional[str] = None,
        clan_id: Optional[str] = None,
    ) -> Clan:
        """
        Create a clan; when a founder name is given the founder becomes its first elder
        """
        if not name or not name.strip():
            raise ValidationError("Clan name is required")

        clan = Clan(name=name.strip(), region=region, founder_id=founder_id, elders=[])
        if clan_id:
            clan.id = clan_id
        self.db.add(clan)
        self.db.flush()

        if founder_name:
            founder = Member(
                clan_id=clan.id,
                user_id=founder_id,
                name=founder_name,
                role=MemberRole.ELDER.value,
            )
            self.db.add(founder)
            self.db.flush()
            clan.elders = [founder.id]

        self.db.commit()
        self.db.refresh(clan)
        logger.info("Clan created", extra={"clan_id": clan.id})
        return clan

    def get_clan(self, clan_id: str) -> Clan:
        clan = self.db.get(Clan, clan_id)
        if clan is None:
            raise NotFoundError(f"Clan {clan_id} not found")
        return clan

    def update_clan(self, clan_id: str, updates: Dict[str, Any]) -> Clan:
        clan = self.get_clan(clan_id)

        unknown = set(updates) - _UPDATABLE_CLAN_FIELDS
        if unknown:
            raise ValidationError(f"Fields not updatable: {sorted(unknown)}")
        if "covenant_status" in updates and \
                updates["covenant_status"] not in {s.value for s in CovenantStatus}:
            raise ValidationError(f"Invalid covenant status '{updates['covenant_status']}'")

        for key, value in updates.items():
            setattr(clan, key, value)
        self.db.commit()
        self.db.refresh(clan)
        return clan

    def search_clans(self, query: str, region: Optional[str] = None, limit: int = 50) -> List[Clan]:
        q = self.db.query(Clan).filter(Clan.name.ilike(f"%{escape_like(query)}%", escape=LIKE_ESCAPE))
        if region:
            q = q.filter(Clan.region == region)
        return q.order_by(Clan.name).limit(limit).all()

    def list_members(self, clan_id: str) -> List[Member]:
        return self.get_clan(clan_id).members

    def add_member(
        self,
        clan_id: str,
        name: str,
        role: str = MemberRole.YOUTH.value,
        lineage: Optional[List[str]] = None,
        user_id: Optional[str] = None,
    ) -> Member:
        """Add a member; a member belongs to exactly this clan"""
        clan = self.get_clan(clan_id)
        if role not in {r.value for r in MemberRole}:
            raise ValidationError(f"Invalid member role '{role}'")

        member = Member(
            clan_id=clan.id,
            user_id=user_id,
            name=name,
            role=role,
            lineage=list(lineage or []),
            rites_completed=[],
            status=MemberStatus.ACTIVE.value,
        )
        self.db.add(member)
        self.db.flush()

        if role == MemberRole.ELDER.value:
            clan.elders = [*(clan.elders or []), member.id]

        self.db.commit()
        self.db.refresh(member)
        return member

    def update_member_role(self, clan_id: str, member_id: str, role: str) -> Member:
        """Change a member's role and keep the clan's elder list in step"""
        clan = self.get_clan(clan_id)
        if role not in {r.value for r in MemberRole}:
            raise ValidationError(f"Invalid member role '{role}'")

        member = self.db.query(Member).filter(
            Member.id == member_id, Member.clan_id == clan_id
        ).first()
        if member is None:
            raise NotFoundError(f"Member {member_id} not found in clan {clan_id}")

        member.role = role
        elders = [e for e in (clan.elders or []) if e != member_id]
        if role == MemberRole.ELDER.value:
            elders.append(member_id)
        clan.elders = elders

        self.db.commit()
        self.db.refresh(member)
        return member
