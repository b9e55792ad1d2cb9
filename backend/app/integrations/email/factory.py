"""
Фабрика выбора реализации EmailSender по EMAIL_PROVIDER из env.
"""
from app.core.config import Settings, get_settings
from app.integrations.email.ports import EmailSender
from app.integrations.email.senders.api_sender import EmailDeliveryClient
from app.integrations.email.senders.console_sender import ConsoleEmailSender


def get_email_sender(settings: Settings | None = None) -> EmailSender:
    """
    Возвращает экземпляр EmailSender в зависимости от EMAIL_PROVIDER.

    - "api" (по умолчанию) — HTTP API провайдера доставки
    - "console" — вывод в лог/консоль

    Вызывается при старте: неизвестный провайдер, неверный адрес отправителя
    или таймаут — ошибка конфигурации, приложение не стартует.
    """
    if settings is None:
        settings = get_settings()
    provider = (settings.EMAIL_PROVIDER or "api").strip().lower()
    if provider == "console":
        return ConsoleEmailSender()
    if provider == "api":
        return EmailDeliveryClient(
            base_url=settings.EMAIL_BASE_URL,
            sender=settings.email_sender(),
            auth_token=settings.EMAIL_AUTH_TOKEN,
            timeout=settings.email_timeout(),
            sender_name=settings.EMAIL_SENDER_NAME or None,
        )
    raise RuntimeError(f"Unsupported EMAIL_PROVIDER: {provider}")
