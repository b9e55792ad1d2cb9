"""Add subscriptions and subscription_tokens tables

Revision ID: 3b1f0c2a9d7e
Revises:
Create Date: 2026-10-19

Подписчики рассылки и одноразовые токены подтверждения подписки.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3b1f0c2a9d7e"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "subscriptions",
        sa.Column("id", sa.Uuid(), nullable=False, comment="Уникальный идентификатор подписчика"),
        sa.Column("email", sa.String(length=320), nullable=False, comment="Проверенный email подписчика"),
        sa.Column("name", sa.String(length=256), nullable=False, comment="Имя из формы подписки"),
        sa.Column(
            "status",
            sa.String(length=32),
            nullable=False,
            server_default="pending_confirmation",
            comment="pending_confirmation | confirmed",
        ),
        sa.Column(
            "subscribed_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
            comment="Дата и время подписки",
        ),
        sa.PrimaryKeyConstraint("id"),
        comment="Подписчики рассылки",
    )
    op.create_index(
        op.f("ix_subscriptions_email"),
        "subscriptions",
        ["email"],
        unique=True,
    )

    op.create_table(
        "subscription_tokens",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("subscriber_id", sa.Uuid(), nullable=False, comment="Подписчик, которому выдан токен"),
        sa.Column("token_hash", sa.String(length=64), nullable=False, comment="sha256 от токена из ссылки"),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.ForeignKeyConstraint(["subscriber_id"], ["subscriptions.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("token_hash"),
        comment="Токены подтверждения подписки",
    )
    op.create_index(
        op.f("ix_subscription_tokens_subscriber_id"),
        "subscription_tokens",
        ["subscriber_id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_subscription_tokens_expires_at"),
        "subscription_tokens",
        ["expires_at"],
        unique=False,
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f("ix_subscription_tokens_expires_at"), table_name="subscription_tokens")
    op.drop_index(op.f("ix_subscription_tokens_subscriber_id"), table_name="subscription_tokens")
    op.drop_table("subscription_tokens")
    op.drop_index(op.f("ix_subscriptions_email"), table_name="subscriptions")
    op.drop_table("subscriptions")
