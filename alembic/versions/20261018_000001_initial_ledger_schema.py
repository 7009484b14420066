"""Create ledger schema.

Revision ID: 20261018_000001
Revises:
Create Date: 2026-10-18 00:00:01

"""

from typing import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "20261018_000001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade database schema."""
    # Users (referral edges live on the row)
    op.create_table(
        "users",
        sa.Column("phone", sa.String(length=10), nullable=False),
        sa.Column("full_name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("referral_code", sa.String(length=10), nullable=False),
        sa.Column("referrer_code", sa.String(length=10), nullable=True),
        sa.Column(
            "pending_commission",
            sa.BigInteger(),
            nullable=False,
            server_default="0",
        ),
        sa.Column(
            "paid_commission",
            sa.BigInteger(),
            nullable=False,
            server_default="0",
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "pending_commission >= 0",
            name="check_user_pending_commission_non_negative",
        ),
        sa.CheckConstraint(
            "paid_commission >= 0",
            name="check_user_paid_commission_non_negative",
        ),
        sa.ForeignKeyConstraint(
            ["referrer_code"],
            ["users.referral_code"],
        ),
        sa.PrimaryKeyConstraint("phone"),
        sa.UniqueConstraint("referral_code", name="uq_users_referral_code"),
    )
    op.create_index(
        "ix_users_referrer_code",
        "users",
        ["referrer_code"],
        unique=False,
    )

    # Fee events (idempotency of commission emission)
    op.create_table(
        "fee_events",
        sa.Column("payment_id", sa.String(length=64), nullable=False),
        sa.Column("payer_phone", sa.String(length=10), nullable=False),
        sa.Column("fee_amount", sa.Integer(), nullable=False),
        sa.Column("commission_count", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["payer_phone"],
            ["users.phone"],
        ),
        sa.PrimaryKeyConstraint("payment_id"),
    )
    op.create_index(
        "ix_fee_events_payer_phone",
        "fee_events",
        ["payer_phone"],
        unique=False,
    )

    # Payouts
    op.create_table(
        "payouts",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("recipient_phone", sa.String(length=10), nullable=False),
        sa.Column("total_amount", sa.BigInteger(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "total_amount > 0", name="check_payout_total_positive"
        ),
        sa.ForeignKeyConstraint(
            ["recipient_phone"],
            ["users.phone"],
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_payouts_recipient_phone",
        "payouts",
        ["recipient_phone"],
        unique=False,
    )

    # Transactions
    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("from_phone", sa.String(length=10), nullable=False),
        sa.Column("to_phone", sa.String(length=10), nullable=False),
        sa.Column("initiated_by", sa.String(length=10), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("description", sa.String(length=1000), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("settled_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "amount > 0", name="check_transaction_amount_positive"
        ),
        sa.CheckConstraint(
            "from_phone <> to_phone",
            name="check_transaction_distinct_principals",
        ),
        sa.CheckConstraint(
            "initiated_by = from_phone OR initiated_by = to_phone",
            name="check_transaction_initiator_is_principal",
        ),
        sa.CheckConstraint(
            "(status = 'pending' AND settled_at IS NULL) OR "
            "(status IN ('confirmed', 'denied') AND settled_at IS NOT NULL)",
            name="check_transaction_settled_at_matches_status",
        ),
        sa.ForeignKeyConstraint(
            ["from_phone"],
            ["users.phone"],
        ),
        sa.ForeignKeyConstraint(
            ["to_phone"],
            ["users.phone"],
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_transactions_from_phone",
        "transactions",
        ["from_phone"],
        unique=False,
    )
    op.create_index(
        "ix_transactions_to_phone",
        "transactions",
        ["to_phone"],
        unique=False,
    )
    op.create_index(
        "ix_transactions_status",
        "transactions",
        ["status"],
        unique=False,
    )
    op.create_index(
        "ix_transactions_created_at",
        "transactions",
        ["created_at"],
        unique=False,
    )
    # Composite indexes for per-user status filters
    op.create_index(
        "idx_transaction_from_status",
        "transactions",
        ["from_phone", "status"],
        unique=False,
    )
    op.create_index(
        "idx_transaction_to_status",
        "transactions",
        ["to_phone", "status"],
        unique=False,
    )

    # Commissions
    op.create_table(
        "commissions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("payment_id", sa.String(length=64), nullable=False),
        sa.Column("recipient_phone", sa.String(length=10), nullable=False),
        sa.Column("level", sa.Integer(), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("payout_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "amount > 0", name="check_commission_amount_positive"
        ),
        sa.CheckConstraint(
            "level BETWEEN 1 AND 4", name="check_commission_level_range"
        ),
        sa.CheckConstraint(
            "(status = 'pending' AND paid_at IS NULL AND payout_id IS NULL) OR "
            "(status = 'paid' AND paid_at IS NOT NULL AND payout_id IS NOT NULL)",
            name="check_commission_payout_matches_status",
        ),
        sa.ForeignKeyConstraint(
            ["payment_id"],
            ["fee_events.payment_id"],
        ),
        sa.ForeignKeyConstraint(
            ["recipient_phone"],
            ["users.phone"],
        ),
        sa.ForeignKeyConstraint(
            ["payout_id"],
            ["payouts.id"],
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "payment_id",
            "recipient_phone",
            "level",
            name="uq_commission_payment_recipient_level",
        ),
    )
    op.create_index(
        "ix_commissions_payment_id",
        "commissions",
        ["payment_id"],
        unique=False,
    )
    op.create_index(
        "ix_commissions_recipient_phone",
        "commissions",
        ["recipient_phone"],
        unique=False,
    )
    op.create_index(
        "ix_commissions_status",
        "commissions",
        ["status"],
        unique=False,
    )
    op.create_index(
        "ix_commissions_payout_id",
        "commissions",
        ["payout_id"],
        unique=False,
    )
    op.create_index(
        "idx_commission_recipient_status",
        "commissions",
        ["recipient_phone", "status"],
        unique=False,
    )


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_index("idx_commission_recipient_status", table_name="commissions")
    op.drop_index("ix_commissions_payout_id", table_name="commissions")
    op.drop_index("ix_commissions_status", table_name="commissions")
    op.drop_index("ix_commissions_recipient_phone", table_name="commissions")
    op.drop_index("ix_commissions_payment_id", table_name="commissions")
    op.drop_table("commissions")

    op.drop_index("idx_transaction_to_status", table_name="transactions")
    op.drop_index("idx_transaction_from_status", table_name="transactions")
    op.drop_index("ix_transactions_created_at", table_name="transactions")
    op.drop_index("ix_transactions_status", table_name="transactions")
    op.drop_index("ix_transactions_to_phone", table_name="transactions")
    op.drop_index("ix_transactions_from_phone", table_name="transactions")
    op.drop_table("transactions")

    op.drop_index("ix_payouts_recipient_phone", table_name="payouts")
    op.drop_table("payouts")

    op.drop_index("ix_fee_events_payer_phone", table_name="fee_events")
    op.drop_table("fee_events")

    op.drop_index("ix_users_referrer_code", table_name="users")
    op.drop_table("users")
