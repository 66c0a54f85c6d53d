"""
SQLAlchemy models
"""
# Import all models here so Alembic and create_all() can detect them
from clanchain.core.database import Base
from clanchain.models.audit import AuditLog, SystemConfig  # noqa: F401
from clanchain.models.billing import (Payment, PaymentStatus,  # noqa: F401
                                      ServicePackage, Subscription,
                                      SubscriptionStatus)
from clanchain.models.clan import (Clan, CovenantStatus, Member,  # noqa: F401
                                   MemberRole, MemberStatus)
from clanchain.models.community import (CommunityInsight,  # noqa: F401
                                        CulturalMemory, Notification,
                                        NotificationType, Task, TaskPriority,
                                        TaskStatus)
from clanchain.models.dispute import (Dispute, DisputeStatus,  # noqa: F401
                                      DisputeType, Testimony)
from clanchain.models.ethics import (EthicsEntry,  # noqa: F401
                                     EthicsEntryStatus, EthicsEntryType,
                                     EthicsRule, EthicsRuleStatus)
from clanchain.models.rite import Rite, RiteStatus, RiteType  # noqa: F401
from clanchain.models.token import ClanToken, TokenCategory  # noqa: F401
from clanchain.models.user import (AppRole, AuthSession,  # noqa: F401
                                   Profile, ProfileStatus, UserRole)
from clanchain.models.vault import (Vault, VaultTransaction,  # noqa: F401
                                    VaultTransactionType, VaultType)

__all__ = [
    "Base",
    # Tenancy
    "Clan",
    "CovenantStatus",
    "Member",
    "MemberRole",
    "MemberStatus",
    # Disputes
    "Dispute",
    "DisputeStatus",
    "DisputeType",
    "Testimony",
    # Ledgers
    "Vault",
    "VaultTransaction",
    "VaultTransactionType",
    "VaultType",
    "ClanToken",
    "TokenCategory",
    "EthicsEntry",
    "EthicsEntryStatus",
    "EthicsEntryType",
    "EthicsRule",
    "EthicsRuleStatus",
    "Rite",
    "RiteStatus",
    "RiteType",
    # Community
    "Task",
    "TaskPriority",
    "TaskStatus",
    "CommunityInsight",
    "CulturalMemory",
    "Notification",
    "NotificationType",
    # Billing
    "ServicePackage",
    "Subscription",
    "SubscriptionStatus",
    "Payment",
    "PaymentStatus",
    # Platform
    "Profile",
    "ProfileStatus",
    "AuthSession",
    "UserRole",
    "AppRole",
    "AuditLog",
    "SystemConfig",
]
