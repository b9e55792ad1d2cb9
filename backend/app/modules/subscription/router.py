import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.db.session import get_db
from app.integrations.email import DeliveryError, SubscriptionEmailService
from app.modules.subscription.model import STATUS_CONFIRMED
from app.modules.subscription.schemas import (
    ConfirmResponse,
    SubscribeRequest,
    SubscribeResponse,
)
from app.modules.subscription.service import (
    build_confirmation_link,
    confirm_subscriber,
    create_subscriber,
    create_subscription_token,
    find_and_consume_subscription_token,
    find_used_subscription_token,
    get_by_email,
    get_by_id,
)

router = APIRouter(prefix="/api/v1/subscriptions", tags=["subscriptions"])

logger = logging.getLogger(__name__)


def get_subscription_email_service(request: Request) -> SubscriptionEmailService:
    """Возвращает SubscriptionEmailService из app.state (инициализируется при старте)."""
    return request.app.state.subscription_email_service


@router.post("", response_model=SubscribeResponse)
async def subscribe(
    request: SubscribeRequest,
    db: AsyncSession = Depends(get_db),
    email_service: SubscriptionEmailService = Depends(get_subscription_email_service),
) -> SubscribeResponse:
    """
    Подписка на рассылку.

    Создаёт подписчика в статусе pending_confirmation и отправляет письмо
    со ссылкой подтверждения. Повторная подписка неподтверждённого адреса
    выдаёт новый токен и новое письмо.
    """
    existing = await get_by_email(db, request.email)
    if existing and existing.status == STATUS_CONFIRMED:
        logger.warning(f"Subscription attempt for already confirmed email: {request.email}")
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email is already subscribed",
        )

    settings = get_settings()
    try:
        subscriber = existing or await create_subscriber(
            session=db,
            email=request.email,
            name=request.name,
        )
        _, raw_token = await create_subscription_token(
            session=db,
            subscriber_id=subscriber.id,
            ttl_hours=settings.SUBSCRIPTION_TOKEN_TTL_HOURS,
        )

        # Без доставленного письма подписка не сохраняется
        confirmation_link = build_confirmation_link(settings.APP_BASE_URL, raw_token)
        await email_service.send_confirmation_email(
            recipient=request.email,
            confirmation_link=confirmation_link,
        )

        await db.commit()
    except IntegrityError:
        await db.rollback()
        logger.error(f"Integrity error during subscription for email: {request.email}")
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email is already subscribed",
        )
    except DeliveryError:
        await db.rollback()
        logger.error(f"Subscription aborted, confirmation email not sent: {request.email}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to send confirmation email",
        )

    logger.info(f"Subscription pending confirmation: {request.email} (id: {subscriber.id})")
    return SubscribeResponse(message="Confirmation email sent")


@router.get("/confirm", response_model=ConfirmResponse)
async def confirm(
    subscription_token: str | None = None,
    db: AsyncSession = Depends(get_db),
) -> ConfirmResponse:
    """
    Подтверждение подписки по одноразовой ссылке из письма.
    GET /api/v1/subscriptions/confirm?subscription_token=...
    """
    if not subscription_token or not subscription_token.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Subscription token is required",
        )
    raw = subscription_token.strip()

    token = await find_and_consume_subscription_token(db, raw)
    if token is None:
        # Повторный переход по ссылке: токен уже использован — вернуть 200 "already confirmed"
        used = await find_used_subscription_token(db, raw)
        if used is not None:
            subscriber = await get_by_id(db, used.subscriber_id)
            if subscriber and subscriber.status == STATUS_CONFIRMED:
                logger.info(f"Subscription already confirmed (reused link) id={subscriber.id}")
                return ConfirmResponse(message="Subscription already confirmed")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired subscription token",
        )

    subscriber = await confirm_subscriber(db, token.subscriber_id)
    if subscriber is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired subscription token",
        )
    await db.commit()
    logger.info(f"Subscription confirmed id={subscriber.id}")
    return ConfirmResponse(message="Subscription confirmed")
