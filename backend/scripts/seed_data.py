"""Seed demo clans, members, disputes, vaults, tokens, ethics entries and platform config"""
import sys
from datetime import datetime
from pathlib import Path

# ensure backend/ is on sys.path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from clanchain.core.database import Base, get_engine, get_session_local
from clanchain.core.logging_config import LoggingConfig
from clanchain.models import (Clan, ClanToken, Dispute, EthicsEntry, Member,
                              SystemConfig, Testimony)
from clanchain.services.vault_service import VaultService

logger = LoggingConfig.get_logger("clanchain.scripts.seed_data")

CLANS = [
    ("gusii_nyamira_001", "Abagusii ya Nyamira", "Nyamira County, Kenya", "active"),
    ("yoruba_lagos_002", "Egbe Omo Yoruba Lagos", "Lagos State, Nigeria", "active"),
    ("kikuyu_kiambu_003", "Athuri a Kikuyu", "Kiambu County, Kenya", "active"),
    ("akan_ashanti_005", "Asante Kotoko", "Ashanti Region, Ghana", "dormant"),
]

# (id, clan, name, role, lineage)
MEMBERS = [
    ("elder_001", "gusii_nyamira_001", "Mzee Samuel Nyong'o", "elder", ["Nyong'o", "Magara", "Omweri"]),
    ("elder_002", "gusii_nyamira_001", "Mama Grace Kemunto", "elder", ["Kemunto", "Bochaberi", "Omweri"]),
    ("member_001", "gusii_nyamira_001", "Diana Moraa", "women", ["Moraa", "Kemunto", "Bochaberi"]),
    ("member_002", "gusii_nyamira_001", "James Momanyi", "youth", ["Momanyi", "Nyong'o", "Magara"]),
    ("member_003", "gusii_nyamira_001", "Dr. Peter Bosire", "diaspora", ["Bosire", "Magara", "Omweri"]),
    ("elder_004", "yoruba_lagos_002", "Chief Adebayo Ogundimu", "elder", ["Ogundimu", "Adebayo", "Ogun"]),
    ("member_006", "yoruba_lagos_002", "Folake Adeyemi", "women", ["Adeyemi", "Ogundimu", "Adebayo"]),
    ("member_007", "yoruba_lagos_002", "Taiwo Oladele", "youth", ["Oladele", "Adebayo", "Ogun"]),
    ("elder_006", "kikuyu_kiambu_003", "Mzee John Kamau", "elder", ["Kamau", "Njoroge", "Waiyaki"]),
    ("member_010", "kikuyu_kiambu_003", "Mary Wanjiku", "women", ["Wanjiku", "Kamau", "Njoroge"]),
    ("member_011", "kikuyu_kiambu_003", "Michael Githae", "tech_steward", ["Githae", "Waiyaki", "Kamau"]),
]

DISPUTES = [
    {
        "id": "land_inheritance_001",
        "clan_id": "gusii_nyamira_001",
        "type": "inheritance",
        "title": "Magara Family Land Dispute",
        "description": "Dispute over 5-acre ancestral land between two branches of the Magara family.",
        "status": "under_review",
        "submitted_by": "member_002",
        "involved_parties": ["member_002", "member_003"],
        "testimonies": [
            ("member_002", "I am the firstborn son and have cultivated this land for 10 years.",
             "2024-11-20T10:15:00+00:00", True),
            ("member_003", "I cared for our father in his final years and received his blessing.",
             "2024-11-20T14:30:00+00:00", True),
            ("elder_001", "Both sons showed dedication. We consider birth order and care given to parents.",
             "2024-11-21T09:45:00+00:00", True),
        ],
    },
    {
        "id": "marriage_custom_002",
        "clan_id": "yoruba_lagos_002",
        "type": "marriage",
        "title": "Bride Price Negotiation Dispute",
        "description": "Disagreement over traditional bride price requirements between families.",
        "status": "open",
        "submitted_by": "member_007",
        "involved_parties": ["member_007", "member_006"],
        "testimonies": [
            ("member_007", "The requested bride price is beyond our family's means.",
             "2024-12-01T11:20:00+00:00", False),
            ("member_006", "The bride price reflects our family's investment in her education.",
             "2024-12-01T15:45:00+00:00", False),
        ],
    },
    {
        "id": "debt_resolution_003",
        "clan_id": "kikuyu_kiambu_003",
        "type": "debt",
        "title": "Business Loan Repayment Issue",
        "description": "A vault loan has not been repaid on the agreed terms.",
        "status": "escalated",
        "submitted_by": "elder_006",
        "involved_parties": ["member_011", "elder_006"],
        "testimonies": [
            ("member_011", "My business was hit by the pandemic; I propose a new payment plan.",
             "2024-11-15T09:30:00+00:00", True),
            ("elder_006", "The vault needs these funds for other community projects.",
             "2024-11-15T14:15:00+00:00", True),
        ],
    },
]

# (clan, type, currency, rules, target, contributions)
VAULTS = [
    ("gusii_nyamira_001", "education", "KES",
     {"min_contribution": 1000, "max_withdrawal": 50000, "approval_required": True, "minimum_elders_approval": 2},
     500000, [("elder_001", 100000), ("elder_002", 60000), ("member_001", 50000), ("member_003", 40000)]),
    ("gusii_nyamira_001", "health", "KES",
     {"emergency_access": True, "max_withdrawal": 100000, "approval_required": False},
     None, [("elder_001", 80000), ("member_002", 50000), ("member_003", 50000)]),
]

# (clan, member, action, earned, category, verified_by)
TOKENS = [
    ("gusii_nyamira_001", "member_001", "Organized youth education workshop", 50, "education", "elder_001"),
    ("gusii_nyamira_001", "member_002", "Helped with elder care duties", 30, "elder_care", "elder_002"),
    ("gusii_nyamira_001", "member_003", "Documented traditional stories", 40, "cultural_preservation", "elder_001"),
    ("yoruba_lagos_002", "member_006", "Community clean-up initiative", 25, "community_service", None),
    ("kikuyu_kiambu_003", "member_011", "Set up digital literacy training", 60, "education", "elder_006"),
]

# (clan, type, member, description, impact, witness, status)
ETHICS = [
    ("gusii_nyamira_001", "contribution", "member_001",
     "Exceptional leadership in organizing community events", 8, "elder_001", "approved"),
    ("gusii_nyamira_001", "violation", "member_002",
     "Failed to attend mandatory clan meeting without notice", -2, "elder_002", "approved"),
    ("yoruba_lagos_002", "recognition", "member_007",
     "Outstanding respect shown to elders", 6, "elder_004", "approved"),
    ("kikuyu_kiambu_003", "contribution", "member_011",
     "Technology solutions that benefit the community", 9, "elder_006", "pending"),
]

SYSTEM_CONFIG = [
    ("max_clans_per_user", 5, "Maximum clans a user can create"),
    ("payment_providers", ["paystack", "paypal"], "Enabled payment providers"),
    ("maintenance_mode", False, "Platform maintenance mode"),
    ("max_file_upload_size", 10485760, "Maximum file upload size in bytes"),
    ("session_timeout", 86400, "User session timeout in seconds"),
]


def seed_clans(db) -> bool:
    """Insert clans and members; returns False when they already exist"""
    if db.get(Clan, CLANS[0][0]) is not None:
        logger.info("Clans already seeded, skipping")
        return False

    for clan_id, name, region, status in CLANS:
        elders = [m[0] for m in MEMBERS if m[1] == clan_id and m[3] == "elder"]
        db.add(Clan(id=clan_id, name=name, region=region, covenant_status=status, elders=elders))
    db.flush()

    for member_id, clan_id, name, role, lineage in MEMBERS:
        db.add(Member(id=member_id, clan_id=clan_id, name=name, role=role, lineage=lineage, rites_completed=[]))
    db.commit()
    return True


def seed_disputes(db):
    for data in DISPUTES:
        dispute = Dispute(**{k: v for k, v in data.items() if k != "testimonies"})
        for by, text, timestamp, verified in data["testimonies"]:
            dispute.testimonies.append(Testimony(
                by=by, text=text, timestamp=datetime.fromisoformat(timestamp), verified=verified,
                verified_by="elder_001" if verified else None,
            ))
        db.add(dispute)
    db.commit()


def seed_vaults(db):
    """Balances are built through contributions so the transaction log matches"""
    service = VaultService(db)
    for clan_id, vault_type, currency, rules, target, contributions in VAULTS:
        vault = service.create_vault(clan_id, vault_type, currency=currency, rules=rules, target_amount=target)
        for member_id, amount in contributions:
            service.contribute(vault.id, amount, member_id)


def seed_ledgers(db):
    for clan_id, member_id, action, earned, category, verified_by in TOKENS:
        db.add(ClanToken(
            clan_id=clan_id, member_id=member_id, action=action, tokens_earned=earned, category=category,
            verified=verified_by is not None, verified_by=verified_by,
        ))
    for clan_id, entry_type, member_id, description, impact, witness, status in ETHICS:
        db.add(EthicsEntry(
            clan_id=clan_id, type=entry_type, member_id=member_id, description=description,
            impact_score=impact, witness=witness, status=status,
        ))
    db.commit()


def seed_system_config(db):
    for key, value, description in SYSTEM_CONFIG:
        if db.query(SystemConfig).filter(SystemConfig.key == key).first() is None:
            db.add(SystemConfig(key=key, value=value, description=description))
    db.commit()


def main():
    Base.metadata.create_all(bind=get_engine())
    db = get_session_local()()
    try:
        seed_system_config(db)
        if seed_clans(db):
            seed_disputes(db)
            seed_vaults(db)
            seed_ledgers(db)
        logger.info("Seed data loaded")
    finally:
        db.close()


if __name__ == "__main__":
    main()
