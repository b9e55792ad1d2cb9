"""
Fallback для локальной разработки: печать письма в лог (без реальной отправки).
"""
import logging

from app.integrations.email.ports import EmailSender
from app.integrations.email.types import EmailAddress

logger = logging.getLogger(__name__)


class ConsoleEmailSender(EmailSender):
    """Отправка «в консоль» — только логирование текстовой версии."""

    async def send_email(
        self,
        recipient: EmailAddress,
        subject: str,
        html_content: str,
        text_content: str,
    ) -> None:
        logger.info(
            "[ConsoleEmail] to=%s subject=%s\n---\n%s\n---",
            recipient,
            subject,
            text_content,
        )
