"""
Интерфейс отправки email (port).
"""
from abc import ABC, abstractmethod

from app.integrations.email.types import EmailAddress


class EmailSender(ABC):
    """Абстракция для отправки транзакционных писем."""

    @abstractmethod
    async def send_email(
        self,
        recipient: EmailAddress,
        subject: str,
        html_content: str,
        text_content: str,
    ) -> None:
        """
        Отправить письмо одному получателю. Одна попытка, без ретраев.

        Args:
            recipient: Проверенный email получателя.
            subject: Тема письма.
            html_content: HTML-версия тела.
            text_content: Текстовая (plain text) версия того же письма.

        Raises:
            DeliveryError: письмо не принято провайдером или запрос не завершён.
        """
        ...

    async def aclose(self) -> None:
        """Освободить ресурсы (соединения). По умолчанию — ничего."""
        return None
