"""
Dispute workflow service: creation, testimonies, status lifecycle, elder override
"""
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from clanchain.core.exceptions import (ConflictError, NotFoundError,
                                       PermissionDeniedError, ValidationError)
from clanchain.core.logging_config import LoggingConfig
from clanchain.core.metrics import dispute_transitions_total
from clanchain.models.clan import Clan, Member, MemberRole
from clanchain.models.dispute import (ALLOWED_TRANSITIONS, TERMINAL_STATUSES,
                                      Dispute, DisputeStatus, DisputeType,
                                      Testimony)
from clanchain.services.verdict_advisor import VerdictAdvisor

logger = LoggingConfig.get_logger(__name__)


class DisputeService:
    """Service for the dispute resolution workflow"""

    def __init__(self, db: Session):
        self.db = db

    def create_dispute(
        self,
        clan_id: str,
        title: str,
        dispute_type: str = DisputeType.OTHER.value,
        description: Optional[str] = None,
        submitted_by: Optional[str] = None,
        involved_parties: Optional[List[str]] = None,
    ) -> Dispute:
        """Create a dispute in `open` status with no testimonies"""
        if not title or not title.strip():
            raise ValidationError("Dispute title is required")
        if dispute_type not in {t.value for t in DisputeType}:
            raise ValidationError(f"Invalid dispute type '{dispute_type}'")
        if self.db.get(Clan, clan_id) is None:
            raise NotFoundError(f"Clan {clan_id} not found")

        dispute = Dispute(
            clan_id=clan_id,
            type=dispute_type,
            title=title.strip(),
            description=description,
            status=DisputeStatus.OPEN.value,
            submitted_by=submitted_by,
            involved_parties=list(involved_parties or []),
        )

        self.db.add(dispute)
        self.db.commit()
        self.db.refresh(dispute)

        logger.info("Dispute created", extra={"dispute_id": dispute.id, "clan_id": clan_id})
        return dispute

    def get_dispute(self, dispute_id: str) -> Optional[Dispute]:
        """Get dispute by ID"""
        return self.db.get(Dispute, dispute_id)

    def get_dispute_or_404(self, dispute_id: str) -> Dispute:
        dispute = self.get_dispute(dispute_id)
        if dispute is None:
            raise NotFoundError(f"Dispute {dispute_id} not found")
        return dispute

    def list_disputes(
        self,
        clan_id: str,
        status: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[Dispute], int]:
        """One page of a clan's disputes, newest first, and the total count"""
        query = self.db.query(Dispute).filter(Dispute.clan_id == clan_id)
        if status:
            query = query.filter(Dispute.status == status)

        total = query.count()
        items = (
            query.order_by(Dispute.created_at.desc())
            .offset((max(page, 1) - 1) * limit)
            .limit(limit)
            .all()
        )
        return items, total

    def add_testimony(self, dispute_id: str, by: str, text: str) -> Dispute:
        """
        Append a testimony; status is never touched.

        Each testimony is its own row, so concurrent appends both persist.
        """
        if not by or not text or not text.strip():
            raise ValidationError("Testimony requires 'by' and non-empty 'text'")

        dispute = self.get_dispute_or_404(dispute_id)

        self.db.add(Testimony(dispute_id=dispute.id, by=by, text=text, verified=False))
        self.db.commit()

        logger.info("Testimony added", extra={"dispute_id": dispute_id, "testimony_by": by})
        return dispute

    def verify_testimony(self, dispute_id: str, index: int, verified_by: str) -> Dispute:
        """Mark the testimony at ordinal position `index` as verified"""
        dispute = self.get_dispute_or_404(dispute_id)
        testimonies = dispute.testimonies

        if index < 0 or index >= len(testimonies):
            raise NotFoundError(f"Testimony {index} not found on dispute {dispute_id}")

        testimony = testimonies[index]
        testimony.verified = True
        testimony.verified_by = verified_by
        self.db.commit()

        logger.info(
            "Testimony verified",
            extra={"dispute_id": dispute_id, "testimony_index": index, "verified_by": verified_by},
        )
        return dispute

    def update_status(self, dispute_id: str, new_status: str) -> Dispute:
        """Apply a normal workflow transition"""
        if new_status not in {s.value for s in DisputeStatus}:
            raise ValidationError(f"Invalid dispute status '{new_status}'")

        dispute = self.get_dispute_or_404(dispute_id)
        current = dispute.status

        if new_status not in ALLOWED_TRANSITIONS.get(current, frozenset()):
            raise ConflictError(f"Cannot move dispute from '{current}' to '{new_status}'")

        self._set_status(dispute, new_status, via="workflow")
        self.db.commit()
        self.db.refresh(dispute)
        return dispute

    async def request_agent_verdict(self, dispute_id: str, advisor: VerdictAdvisor) -> Dict[str, Any]:
        """Ask the external advisor for a recommendation and store it on the dispute"""
        dispute = self.get_dispute_or_404(dispute_id)

        verdict = await advisor.recommend(dispute.to_dict())

        dispute.verdict = verdict
        self.db.commit()

        logger.info("Advisor verdict stored", extra={"dispute_id": dispute_id})
        return verdict

    def elder_override(
        self,
        dispute_id: str,
        decision: str,
        elder_id: Optional[str],
        reasoning: str,
        acting_user_id: Optional[str] = None,
    ) -> Dispute:
        """
        Force a decision outside the normal workflow.

        `resolved` and `rejected` set that status; `under_review` reopens an
        escalated dispute; any other decision text is recorded as the final
        decision and the dispute becomes `resolved`. No quorum is checked.

        `elder_id` must name an elder of the dispute's clan. When
        `acting_user_id` is given the elder must be linked to that user, and
        `elder_id` may be omitted to use the caller's own elder membership.
        """
        if not reasoning or not reasoning.strip():
            raise ValidationError("Elder override requires reasoning")
        if not decision or not decision.strip():
            raise ValidationError("Elder override requires a decision")

        dispute = self.get_dispute_or_404(dispute_id)
        decision = decision.strip()
        elder_id = self._authorize_elder(dispute, elder_id, acting_user_id)

        if decision == DisputeStatus.UNDER_REVIEW.value:
            if dispute.status != DisputeStatus.ESCALATED.value:
                raise ConflictError("Only escalated disputes can be returned to review")
            target = DisputeStatus.UNDER_REVIEW.value
        elif decision in TERMINAL_STATUSES:
            target = decision
        else:
            target = DisputeStatus.RESOLVED.value

        dispute.final_decision = decision
        dispute.resolution_reasoning = reasoning.strip()
        dispute.resolved_by = elder_id
        dispute.elder_override = True
        if isinstance(dispute.verdict, dict):
            dispute.verdict = {**dispute.verdict, "final_decision": decision, "elder_override": True}

        self._set_status(dispute, target, via="elder_override")
        self.db.commit()
        self.db.refresh(dispute)

        logger.info(
            "Elder override applied",
            extra={"dispute_id": dispute_id, "elder_id": elder_id, "decision": decision},
        )
        return dispute

    def _authorize_elder(self, dispute: Dispute, elder_id: Optional[str], acting_user_id: Optional[str]) -> str:
        """Return the id of the elder allowed to override this dispute"""
        if not elder_id:
            if acting_user_id is None:
                raise ValidationError("Elder override requires elder_id")
            elder = (
                self.db.query(Member)
                .filter(
                    Member.clan_id == dispute.clan_id,
                    Member.user_id == acting_user_id,
                    Member.role == MemberRole.ELDER.value,
                )
                .first()
            )
        else:
            elder = self.db.get(Member, elder_id)
            if elder is not None and (elder.clan_id != dispute.clan_id or elder.role != MemberRole.ELDER.value):
                elder = None

        if elder is None:
            logger.warning(
                "Elder override refused",
                extra={"dispute_id": dispute.id, "elder_id": elder_id, "user_id": acting_user_id},
            )
            raise PermissionDeniedError("Only an elder of this clan can override a dispute")
        if acting_user_id is not None and elder.user_id != acting_user_id:
            raise PermissionDeniedError("Elder override must be made by the elder's own account")
        return elder.id

    def _set_status(self, dispute: Dispute, new_status: str, via: str):
        dispute_transitions_total.labels(
            from_status=dispute.status, to_status=new_status, via=via
        ).inc()
        dispute.status = new_status
