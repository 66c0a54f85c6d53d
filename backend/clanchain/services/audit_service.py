"""
Audit log writer and query service
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clanchain.core.logging_config import LoggingConfig
from clanchain.core.metrics import audit_writes_total
from clanchain.models.audit import AuditLog

logger = LoggingConfig.get_logger(__name__)


class AuditService:
    """Records privileged mutations after they commit"""

    def __init__(self, db: Session):
        self.db = db

    def log_action(
        self,
        action: str,
        details: Optional[Dict[str, Any]] = None,
        user_id: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Optional[AuditLog]:
        """
        Write one audit row in its own commit.

        The mutation it describes has already been committed, so a failure
        here is logged and reported as None rather than raised.
        """
        entry = AuditLog(
            action=action,
            details=details or {},
            user_id=user_id,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        try:
            self.db.add(entry)
            self.db.commit()
            self.db.refresh(entry)
        except SQLAlchemyError as e:
            self.db.rollback()
            audit_writes_total.labels(status="failed").inc()
            logger.error(
                f"Failed to write audit log for action '{action}': {e}",
                exc_info=True,
                extra={"audit_action": action, "actor_id": user_id},
            )
            return None

        audit_writes_total.labels(status="success").inc()
        logger.info("Audit log written", extra={"audit_action": action, "actor_id": user_id})
        return entry

    def list_logs(
        self,
        user_id: Optional[str] = None,
        action: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        limit: int = 1000,
    ) -> List[AuditLog]:
        """Newest first, filtered by actor, action and created_at range"""
        query = self.db.query(AuditLog)
        if user_id:
            query = query.filter(AuditLog.user_id == user_id)
        if action:
            query = query.filter(AuditLog.action == action)
        if start_date:
            query = query.filter(AuditLog.created_at >= start_date)
        if end_date:
            query = query.filter(AuditLog.created_at <= end_date)
        return query.order_by(AuditLog.created_at.desc()).limit(limit).all()
