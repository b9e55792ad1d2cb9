"""
Use-cases для email, связанных с подпиской на рассылку.
"""
import logging

from app.integrations.email.errors import DeliveryError, DeliveryRejectedError
from app.integrations.email.ports import EmailSender
from app.integrations.email.templates.confirmation_email import render_confirmation_email
from app.integrations.email.types import EmailAddress

logger = logging.getLogger(__name__)


class SubscriptionEmailService:
    """Сервис отправки писем подписчикам (подтверждение подписки)."""

    def __init__(self, sender: EmailSender) -> None:
        self._sender = sender

    @property
    def sender(self) -> EmailSender:
        return self._sender

    async def send_confirmation_email(
        self,
        recipient: EmailAddress,
        confirmation_link: str,
    ) -> None:
        """
        Отправить письмо со ссылкой подтверждения подписки.

        Args:
            recipient: Email подписчика (уже проверенный).
            confirmation_link: Полная ссылка подтверждения (уже с токеном).

        Raises:
            DeliveryError: решение, что делать с ошибкой, принимает вызывающий код.
        """
        subject, html, text = render_confirmation_email(confirmation_link)
        try:
            await self._sender.send_email(recipient, subject, html, text)
        except DeliveryRejectedError as e:
            logger.warning(
                "Confirmation email rejected by provider: to=%s status=%s",
                recipient,
                e.status_code,
            )
            raise
        except DeliveryError as e:
            logger.warning("Confirmation email not delivered: to=%s error=%s", recipient, e)
            raise
        logger.info("Confirmation email sent to=%s", recipient)
