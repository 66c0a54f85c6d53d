"""
Vault service: balances change only through contribution and withdrawal events
"""
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from clanchain.core.exceptions import (ConflictError, NotFoundError,
                                       ValidationError)
from clanchain.core.logging_config import LoggingConfig
from clanchain.models.clan import Clan
from clanchain.models.vault import (Vault, VaultTransaction,
                                    VaultTransactionType, VaultType)

logger = LoggingConfig.get_logger(__name__)


def _to_amount(value: Any) -> Decimal:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Invalid amount '{value}'")
    if amount <= 0:
        raise ValidationError("Amount must be positive")
    return amount.quantize(Decimal("0.01"))


class VaultService:
    """Service for clan vaults"""

    def __init__(self, db: Session):
        self.db = db

    def list_vaults(self, clan_id: str) -> List[Vault]:
        return self.db.query(Vault).filter(Vault.clan_id == clan_id).order_by(Vault.created_at.desc()).all()

    def create_vault(
        self,
        clan_id: str,
        vault_type: str,
        currency: str = "USD",
        name: Optional[str] = None,
        rules: Optional[Dict[str, Any]] = None,
        target_amount: Optional[Any] = None,
    ) -> Vault:
        """New vaults always start at a zero balance"""
        if self.db.get(Clan, clan_id) is None:
            raise NotFoundError(f"Clan {clan_id} not found")
        if vault_type not in {t.value for t in VaultType}:
            raise ValidationError(f"Invalid vault type '{vault_type}'")

        vault = Vault(
            clan_id=clan_id,
            name=name,
            vault_type=vault_type,
            currency=currency,
            rules=rules or {},
            contributors=[],
            balance=Decimal("0"),
            target_amount=_to_amount(target_amount) if target_amount is not None else None,
        )
        self.db.add(vault)
        self.db.commit()
        self.db.refresh(vault)
        return vault

    def get_vault(self, vault_id: str) -> Vault:
        vault = self.db.get(Vault, vault_id)
        if vault is None:
            raise NotFoundError(f"Vault {vault_id} not found")
        return vault

    def contribute(self, vault_id: str, amount: Any, member_id: str) -> Vault:
        """Add funds and record the contributor"""
        value = _to_amount(amount)
        vault = self.get_vault(vault_id)

        vault.balance = Decimal(vault.balance or 0) + value
        if member_id not in (vault.contributors or []):
            vault.contributors = [*(vault.contributors or []), member_id]
        self.db.add(VaultTransaction(
            vault_id=vault.id,
            kind=VaultTransactionType.CONTRIBUTION.value,
            amount=value,
            member_id=member_id,
            balance_after=vault.balance,
        ))
        self.db.commit()
        self.db.refresh(vault)

        logger.info("Vault contribution", extra={"vault_id": vault_id, "member_id": member_id})
        return vault

    def withdraw(self, vault_id: str, amount: Any, reason: str, requested_by: str) -> Vault:
        """
        Remove funds

        Raises:
            ConflictError: if the balance would go negative
        """
        value = _to_amount(amount)
        if not reason:
            raise ValidationError("Withdrawal reason is required")
        vault = self.get_vault(vault_id)

        balance = Decimal(vault.balance or 0)
        if value > balance:
            raise ConflictError(f"Insufficient vault balance: {balance} < {value}")

        vault.balance = balance - value
        self.db.add(VaultTransaction(
            vault_id=vault.id,
            kind=VaultTransactionType.WITHDRAWAL.value,
            amount=value,
            member_id=requested_by,
            reason=reason,
            balance_after=vault.balance,
        ))
        self.db.commit()
        self.db.refresh(vault)

        logger.info("Vault withdrawal", extra={"vault_id": vault_id, "requested_by": requested_by})
        return vault
