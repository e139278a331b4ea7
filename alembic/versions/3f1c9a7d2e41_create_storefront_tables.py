"""create storefront tables

Revision ID: 3f1c9a7d2e41
Revises:
Create Date: 2026-10-18 10:12:03.481526

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c9a7d2e41'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade():
    op.create_table(
        "appliedcouponrecord",
        sa.Column("session_id", sa.String(), primary_key=True),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("coupon_id", sa.String(), nullable=False),
        sa.Column("coupon_code", sa.String(), nullable=False),
        sa.Column("discount_type", sa.String(), nullable=False),
        sa.Column("discount_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("final_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("cart_total", sa.Numeric(12, 2), nullable=False),
        sa.Column("applied_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_appliedcouponrecord_user_id", "appliedcouponrecord", ["user_id"])

    op.create_table(
        "checkoutsnapshot",
        sa.Column("session_id", sa.String(), primary_key=True),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("subtotal", sa.Numeric(12, 2), nullable=False),
        sa.Column("discount", sa.Numeric(12, 2), nullable=False),
        sa.Column("coupon_code", sa.String(), nullable=True),
        sa.Column("coupon_id", sa.String(), nullable=True),
        sa.Column("shipping", sa.Numeric(12, 2), nullable=False),
        sa.Column("total", sa.Numeric(12, 2), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_checkoutsnapshot_user_id", "checkoutsnapshot", ["user_id"])

    card_payment_status = sa.Enum(
        "intent_created",
        "confirmed",
        "payment_failed",
        "confirmation_failed",
        name="cardpaymentstatus",
    )
    op.create_table(
        "cardpayment",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("payment_intent_id", sa.String(), nullable=False),
        sa.Column("session_id", sa.String(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.String(), nullable=False),
        sa.Column("coupon_code", sa.String(), nullable=True),
        sa.Column("status", card_payment_status, nullable=False),
        sa.Column("order_id", sa.String(), nullable=True),
        sa.Column("failure_reason", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_cardpayment_payment_intent_id", "cardpayment", ["payment_intent_id"], unique=True)
    op.create_index("ix_cardpayment_session_id", "cardpayment", ["session_id"])
    op.create_index("ix_cardpayment_user_id", "cardpayment", ["user_id"])

    recipient_role = sa.Enum("admin", "customer", name="recipientrole")
    notification_level = sa.Enum("success", "info", "warning", "error", name="notificationlevel")
    op.create_table(
        "notification",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("recipient_role", recipient_role, nullable=False),
        sa.Column("session_id", sa.String(), nullable=True),
        sa.Column("user_id", sa.String(), nullable=True),
        sa.Column("trigger_source", sa.String(), nullable=False),
        sa.Column("related_id", sa.String(), nullable=True),
        sa.Column("level", notification_level, nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("content", sa.String(), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_notification_session_id", "notification", ["session_id"])


def downgrade():
    op.drop_index("ix_notification_session_id", table_name="notification")
    op.drop_table("notification")
    sa.Enum(name="notificationlevel").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="recipientrole").drop(op.get_bind(), checkfirst=True)

    op.drop_index("ix_cardpayment_user_id", table_name="cardpayment")
    op.drop_index("ix_cardpayment_session_id", table_name="cardpayment")
    op.drop_index("ix_cardpayment_payment_intent_id", table_name="cardpayment")
    op.drop_table("cardpayment")
    sa.Enum(name="cardpaymentstatus").drop(op.get_bind(), checkfirst=True)

    op.drop_index("ix_checkoutsnapshot_user_id", table_name="checkoutsnapshot")
    op.drop_table("checkoutsnapshot")

    op.drop_index("ix_appliedcouponrecord_user_id", table_name="appliedcouponrecord")
    op.drop_table("appliedcouponrecord")
