"""Initial ClanChain schema.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00
"""

revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None

from alembic import op
import sqlalchemy as sa


def _timestamps(*names):
    return [sa.Column(name, sa.DateTime(timezone=True), nullable=False) for name in names]


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=True),
        sa.Column("password_hash", sa.String(255), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("focus_areas", sa.String(255), nullable=True),
        *_timestamps("created_at"),
        sa.Column("last_sign_in_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_profiles_email", "profiles", ["email"], unique=True)
    op.create_index("ix_profiles_created_at", "profiles", ["created_at"])

    op.create_table(
        "sessions",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("token", sa.String(255), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps("created_at"),
    )
    op.create_index("ix_sessions_user_id", "sessions", ["user_id"])
    op.create_index("ix_sessions_token", "sessions", ["token"], unique=True)
    op.create_index("ix_sessions_expires_at", "sessions", ["expires_at"])

    op.create_table(
        "user_roles",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("role", sa.String(50), nullable=False),
        sa.Column("assigned_by", sa.String(36), nullable=True),
        *_timestamps("assigned_at"),
        sa.UniqueConstraint("user_id", "role", name="uq_user_roles_user_role"),
    )
    op.create_index("ix_user_roles_user_id", "user_roles", ["user_id"])
    op.create_index("ix_user_roles_role", "user_roles", ["role"])

    op.create_table(
        "clans",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("region", sa.String(255), nullable=True),
        sa.Column("elders", sa.JSON(), nullable=False),
        sa.Column("covenant_status", sa.String(20), nullable=False),
        sa.Column("verified", sa.Boolean(), nullable=False),
        sa.Column("founder_id", sa.String(36), sa.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True),
        *_timestamps("created_at", "updated_at"),
    )
    op.create_index("ix_clans_name", "clans", ["name"])
    op.create_index("ix_clans_region", "clans", ["region"])
    op.create_index("ix_clans_created_at", "clans", ["created_at"])

    op.create_table(
        "members",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("clan_id", sa.String(36), sa.ForeignKey("clans.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("lineage", sa.JSON(), nullable=False),
        sa.Column("rites_completed", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        *_timestamps("join_date"),
    )
    op.create_index("ix_members_clan_id", "members", ["clan_id"])
    op.create_index("ix_members_role", "members", ["role"])

    op.create_table(
        "disputes",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("clan_id", sa.String(36), sa.ForeignKey("clans.id", ondelete="CASCADE"), nullable=False),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("submitted_by", sa.String(36), nullable=True),
        sa.Column("involved_parties", sa.JSON(), nullable=False),
        sa.Column("verdict", sa.JSON(), nullable=True),
        sa.Column("final_decision", sa.Text(), nullable=True),
        sa.Column("resolution_reasoning", sa.Text(), nullable=True),
        sa.Column("resolved_by", sa.String(36), nullable=True),
        sa.Column("elder_override", sa.Boolean(), nullable=False),
        *_timestamps("created_at", "updated_at"),
    )
    op.create_index("ix_disputes_clan_id", "disputes", ["clan_id"])
    op.create_index("ix_disputes_status", "disputes", ["status"])
    op.create_index("ix_disputes_created_at", "disputes", ["created_at"])

    op.create_table(
        "dispute_testimonies",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("dispute_id", sa.String(36), sa.ForeignKey("disputes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("given_by", sa.String(36), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("verified", sa.Boolean(), nullable=False),
        sa.Column("verified_by", sa.String(36), nullable=True),
    )
    op.create_index("ix_dispute_testimonies_dispute_id", "dispute_testimonies", ["dispute_id"])

    op.create_table(
        "vaults",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("clan_id", sa.String(36), sa.ForeignKey("clans.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("balance", sa.Numeric(14, 2), nullable=False),
        sa.Column("currency", sa.String(10), nullable=False),
        sa.Column("vault_type", sa.String(20), nullable=False),
        sa.Column("rules", sa.JSON(), nullable=False),
        sa.Column("contributors", sa.JSON(), nullable=False),
        sa.Column("target_amount", sa.Numeric(14, 2), nullable=True),
        *_timestamps("created_at"),
        sa.CheckConstraint("balance >= 0", name="vaults_balance_non_negative"),
    )
    op.create_index("ix_vaults_clan_id", "vaults", ["clan_id"])
    op.create_index("ix_vaults_created_at", "vaults", ["created_at"])

    op.create_table(
        "vault_transactions",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("vault_id", sa.String(36), sa.ForeignKey("vaults.id", ondelete="CASCADE"), nullable=False),
        sa.Column("kind", sa.String(20), nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("member_id", sa.String(36), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("balance_after", sa.Numeric(14, 2), nullable=False),
        *_timestamps("created_at"),
    )
    op.create_index("ix_vault_transactions_vault_id", "vault_transactions", ["vault_id"])

    op.create_table(
        "clan_tokens",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("clan_id", sa.String(36), sa.ForeignKey("clans.id", ondelete="CASCADE"), nullable=False),
        sa.Column("member_id", sa.String(36), nullable=False),
        sa.Column("action", sa.Text(), nullable=False),
        sa.Column("tokens_earned", sa.Integer(), nullable=False),
        sa.Column("tokens_spent", sa.Integer(), nullable=False),
        sa.Column("category", sa.String(40), nullable=False),
        sa.Column("verified", sa.Boolean(), nullable=False),
        sa.Column("verified_by", sa.String(36), nullable=True),
        *_timestamps("created_at"),
    )
    op.create_index("ix_clan_tokens_clan_id", "clan_tokens", ["clan_id"])
    op.create_index("ix_clan_tokens_member_id", "clan_tokens", ["member_id"])
    op.create_index("ix_clan_tokens_created_at", "clan_tokens", ["created_at"])

    op.create_table(
        "ethics_entries",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("clan_id", sa.String(36), sa.ForeignKey("clans.id", ondelete="CASCADE"), nullable=False),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("member_id", sa.String(36), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("impact_score", sa.Integer(), nullable=False),
        sa.Column("witness", sa.String(255), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        *_timestamps("created_at"),
    )
    op.create_index("ix_ethics_entries_clan_id", "ethics_entries", ["clan_id"])
    op.create_index("ix_ethics_entries_member_id", "ethics_entries", ["member_id"])
    op.create_index("ix_ethics_entries_created_at", "ethics_entries", ["created_at"])

    op.create_table(
        "ethics_rules",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("clan_id", sa.String(36), sa.ForeignKey("clans.id", ondelete="CASCADE"), nullable=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(50), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("created_by", sa.String(36), nullable=True),
        *_timestamps("created_at", "updated_at"),
    )
    op.create_index("ix_ethics_rules_clan_id", "ethics_rules", ["clan_id"])
    op.create_index("ix_ethics_rules_status", "ethics_rules", ["status"])
    op.create_index("ix_ethics_rules_created_at", "ethics_rules", ["created_at"])

    op.create_table(
        "rites",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("clan_id", sa.String(36), sa.ForeignKey("clans.id", ondelete="CASCADE"), nullable=False),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("member_id", sa.String(36), nullable=True),
        sa.Column("officiant", sa.String(255), nullable=True),
        sa.Column("participants", sa.JSON(), nullable=False),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("cultural_significance", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        *_timestamps("created_at"),
    )
    op.create_index("ix_rites_clan_id", "rites", ["clan_id"])
    op.create_index("ix_rites_type", "rites", ["type"])
    op.create_index("ix_rites_created_at", "rites", ["created_at"])

    op.create_table(
        "tasks",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("clan_id", sa.String(36), sa.ForeignKey("clans.id", ondelete="CASCADE"), nullable=True),
        sa.Column("user_id", sa.String(36), nullable=True),
        sa.Column("created_by", sa.String(36), nullable=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("priority", sa.String(20), nullable=False),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps("created_at"),
    )
    op.create_index("ix_tasks_clan_id", "tasks", ["clan_id"])
    op.create_index("ix_tasks_user_id", "tasks", ["user_id"])
    op.create_index("ix_tasks_created_at", "tasks", ["created_at"])

    op.create_table(
        "community_insights",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("clan_id", sa.String(36), sa.ForeignKey("clans.id", ondelete="CASCADE"), nullable=True),
        sa.Column("topic", sa.String(100), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("sentiment_score", sa.Float(), nullable=True),
        sa.Column("created_by", sa.String(36), nullable=True),
        *_timestamps("created_at"),
    )
    op.create_index("ix_community_insights_clan_id", "community_insights", ["clan_id"])
    op.create_index("ix_community_insights_topic", "community_insights", ["topic"])
    op.create_index("ix_community_insights_created_at", "community_insights", ["created_at"])

    op.create_table(
        "cultural_memories",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("clan_id", sa.String(36), sa.ForeignKey("clans.id", ondelete="CASCADE"), nullable=True),
        sa.Column("memory_type", sa.String(50), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("media_url", sa.String(500), nullable=True),
        sa.Column("contributed_by", sa.String(36), nullable=True),
        *_timestamps("created_at"),
    )
    op.create_index("ix_cultural_memories_clan_id", "cultural_memories", ["clan_id"])
    op.create_index("ix_cultural_memories_memory_type", "cultural_memories", ["memory_type"])
    op.create_index("ix_cultural_memories_created_at", "cultural_memories", ["created_at"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("clan_id", sa.String(36), sa.ForeignKey("clans.id", ondelete="CASCADE"), nullable=True),
        sa.Column("user_id", sa.String(36), nullable=True),
        sa.Column("type", sa.String(30), nullable=False),
        sa.Column("priority", sa.String(20), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("read", sa.Boolean(), nullable=False),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column("created_by", sa.String(36), nullable=True),
        *_timestamps("created_at"),
    )
    op.create_index("ix_notifications_clan_id", "notifications", ["clan_id"])
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])
    op.create_index("ix_notifications_type", "notifications", ["type"])
    op.create_index("ix_notifications_created_at", "notifications", ["created_at"])

    op.create_table(
        "service_packages",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False, unique=True),
        sa.Column("price_monthly", sa.Numeric(10, 2), nullable=False),
        sa.Column("features", sa.JSON(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps("created_at"),
    )

    op.create_table(
        "subscriptions",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("package_id", sa.String(36), sa.ForeignKey("service_packages.id"), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        *_timestamps("created_at", "updated_at"),
    )
    op.create_index("ix_subscriptions_user_id", "subscriptions", ["user_id"])
    op.create_index("ix_subscriptions_status", "subscriptions", ["status"])
    op.create_index("ix_subscriptions_created_at", "subscriptions", ["created_at"])

    op.create_table(
        "payments",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("subscription_id", sa.String(36), sa.ForeignKey("subscriptions.id", ondelete="CASCADE"),
                  nullable=True),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.String(10), nullable=False),
        sa.Column("payment_provider", sa.String(50), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        *_timestamps("created_at"),
    )
    op.create_index("ix_payments_subscription_id", "payments", ["subscription_id"])
    op.create_index("ix_payments_status", "payments", ["status"])
    op.create_index("ix_payments_created_at", "payments", ["created_at"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True),
        sa.Column("action", sa.String(100), nullable=False),
        sa.Column("details", sa.JSON(), nullable=True),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
        *_timestamps("created_at"),
    )
    op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"])
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])

    op.create_table(
        "system_config",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("key", sa.String(100), nullable=False),
        sa.Column("value", sa.JSON(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("updated_by", sa.String(36), nullable=True),
        *_timestamps("created_at", "updated_at"),
    )
    op.create_index("ix_system_config_key", "system_config", ["key"], unique=True)


def downgrade() -> None:
    for table in (
        "system_config", "audit_logs", "payments", "subscriptions", "service_packages",
        "notifications", "cultural_memories", "community_insights", "tasks", "rites", "ethics_rules",
        "ethics_entries", "clan_tokens", "vault_transactions", "vaults", "dispute_testimonies",
        "disputes", "members", "clans", "user_roles", "sessions", "profiles",
    ):
        op.drop_table(table)
