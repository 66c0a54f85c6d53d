"""
Rite scheduling service
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from clanchain.core.exceptions import NotFoundError, ValidationError
from clanchain.models.clan import Clan, Member
from clanchain.models.rite import Rite, RiteStatus, RiteType
from clanchain.utils.datetime_utils import utc_now

_UPDATABLE_FIELDS = {"date", "officiant", "participants", "location", "notes",
                     "cultural_significance", "status"}


class RiteService:
    def __init__(self, db: Session):
        self.db = db

    def create_rite(
        self,
        clan_id: str,
        rite_type: str,
        date: datetime,
        member_id: Optional[str] = None,
        officiant: Optional[str] = None,
        participants: Optional[List[str]] = None,
        location: Optional[str] = None,
        notes: Optional[str] = None,
        cultural_significance: Optional[str] = None,
        status: str = RiteStatus.PLANNED.value,
    ) -> Rite:
        if self.db.get(Clan, clan_id) is None:
            raise NotFoundError(f"Clan {clan_id} not found")
        if rite_type not in {t.value for t in RiteType}:
            raise ValidationError(f"Invalid rite type '{rite_type}'")
        if status not in {s.value for s in RiteStatus}:
            raise ValidationError(f"Invalid rite status '{status}'")

        rite = Rite(
            clan_id=clan_id,
            type=rite_type,
            date=date,
            member_id=member_id,
            officiant=officiant,
            participants=list(participants or []),
            location=location,
            notes=notes,
            cultural_significance=cultural_significance,
            status=status,
        )
        self.db.add(rite)
        self.db.commit()
        self.db.refresh(rite)
        return rite

    def schedule_rite(self, clan_id: str, rite_type: str, date: datetime, **details) -> Rite:
        """Plan a future rite"""
        when = date if date.tzinfo else date.replace(tzinfo=timezone.utc)
        if when <= utc_now():
            raise ValidationError("A scheduled rite must be dated in the future")
        return self.create_rite(clan_id, rite_type, date, status=RiteStatus.PLANNED.value, **details)

    def get_rite(self, rite_id: str) -> Rite:
        rite = self.db.get(Rite, rite_id)
        if rite is None:
            raise NotFoundError(f"Rite {rite_id} not found")
        return rite

    def list_rites(
        self,
        clan_id: str,
        rite_type: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[Rite], int]:
        query = self.db.query(Rite).filter(Rite.clan_id == clan_id)
        if rite_type:
            query = query.filter(Rite.type == rite_type)
        total = query.count()
        items = query.order_by(Rite.date.desc()).offset((max(page, 1) - 1) * limit).limit(limit).all()
        return items, total

    def update_rite(self, rite_id: str, updates: Dict[str, Any]) -> Rite:
        """Partial update; completing a rite records it on the member"""
        rite = self.get_rite(rite_id)

        unknown = set(updates) - _UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Fields not updatable: {sorted(unknown)}")
        if "status" in updates and updates["status"] not in {s.value for s in RiteStatus}:
            raise ValidationError(f"Invalid rite status '{updates['status']}'")

        completing = (
            updates.get("status") == RiteStatus.COMPLETED.value
            and rite.status != RiteStatus.COMPLETED.value
        )
        for key, value in updates.items():
            setattr(rite, key, value)

        if completing and rite.member_id:
            member = self.db.get(Member, rite.member_id)
            if member is not None and rite.id not in (member.rites_completed or []):
                member.rites_completed = [*(member.rites_completed or []), rite.id]

        self.db.commit()
        self.db.refresh(rite)
        return rite
