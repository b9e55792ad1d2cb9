import hashlib
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from urllib.parse import urlencode

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.integrations.email.types import EmailAddress
from app.modules.subscription.model import (
    STATUS_CONFIRMED,
    Subscription,
    SubscriptionToken,
)

CONFIRM_PATH = "/api/v1/subscriptions/confirm"


def generate_token() -> str:
    """Генерировать безопасный одноразовый токен."""
    return secrets.token_urlsafe(32)


def hash_token(token: str) -> str:
    """Хешировать токен для хранения в БД (поиск по точному совпадению хеша)."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def build_confirmation_link(app_base_url: str, raw_token: str) -> str:
    """Ссылка подтверждения для письма."""
    query = urlencode({"subscription_token": raw_token})
    return f"{app_base_url.rstrip('/')}{CONFIRM_PATH}?{query}"


async def get_by_id(session: AsyncSession, subscriber_id: uuid.UUID) -> Subscription | None:
    """Получить подписчика по id."""
    result = await session.execute(select(Subscription).where(Subscription.id == subscriber_id))
    return result.scalar_one_or_none()


async def get_by_email(session: AsyncSession, email: EmailAddress) -> Subscription | None:
    """Получить подписчика по email."""
    result = await session.execute(select(Subscription).where(Subscription.email == email.value))
    return result.scalar_one_or_none()


async def create_subscriber(
    session: AsyncSession,
    email: EmailAddress,
    name: str,
) -> Subscription:
    """Создать подписчика в статусе pending_confirmation."""
    subscriber = Subscription(email=email.value, name=name)
    session.add(subscriber)
    await session.flush()
    await session.refresh(subscriber)
    return subscriber


async def create_subscription_token(
    session: AsyncSession,
    subscriber_id: uuid.UUID,
    ttl_hours: int,
) -> tuple[SubscriptionToken, str]:
    """
    Создать токен подтверждения подписки.

    Returns:
        tuple: (SubscriptionToken объект, raw_token строка)
    """
    raw_token = generate_token()
    token = SubscriptionToken(
        subscriber_id=subscriber_id,
        token_hash=hash_token(raw_token),
        expires_at=datetime.now(timezone.utc) + timedelta(hours=ttl_hours),
        used_at=None,
    )
    session.add(token)
    await session.flush()
    return token, raw_token


async def find_and_consume_subscription_token(
    session: AsyncSession,
    raw_token: str,
) -> SubscriptionToken | None:
    """
    Найти действующий токен по сырой строке и пометить как использованный.
    SELECT ... FOR UPDATE защищает от гонки при одновременных переходах по одной ссылке.
    """
    now = datetime.now(timezone.utc)
    result = await session.execute(
        select(SubscriptionToken)
        .where(
            SubscriptionToken.token_hash == hash_token(raw_token),
            SubscriptionToken.used_at.is_(None),
            SubscriptionToken.expires_at > now,
        )
        .with_for_update()
    )
    token = result.scalar_one_or_none()
    if token is None:
        return None
    token.used_at = now
    await session.flush()
    return token


async def find_used_subscription_token(
    session: AsyncSession,
    raw_token: str,
) -> SubscriptionToken | None:
    """Найти уже использованный токен (повторный переход по ссылке из письма)."""
    result = await session.execute(
        select(SubscriptionToken).where(
            SubscriptionToken.token_hash == hash_token(raw_token),
            SubscriptionToken.used_at.isnot(None),
        )
    )
    return result.scalar_one_or_none()


async def confirm_subscriber(session: AsyncSession, subscriber_id: uuid.UUID) -> Subscription | None:
    """Перевести подписчика в статус confirmed (идемпотентно)."""
    subscriber = await get_by_id(session, subscriber_id)
    if not subscriber:
        return None
    if subscriber.status != STATUS_CONFIRMED:
        subscriber.status = STATUS_CONFIRMED
        await session.flush()
    return subscriber
