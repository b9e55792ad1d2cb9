"""
Ошибки отправки email через провайдера.

DeliveryError и наследники — runtime-ошибки одного вызова send_email.
Ошибки конфигурации клиента (таймаут, base_url) сюда не относятся:
они поднимаются из конструктора как ValueError/TypeError.
"""


class InvalidEmailAddress(ValueError):
    """Строка не прошла синтаксическую проверку email-адреса."""


class DeliveryError(Exception):
    """Базовая ошибка доставки письма провайдером."""


class DeliveryTransportError(DeliveryError):
    """Запрос не завершён: DNS, отказ в соединении, разрыв или истёк таймаут."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Email delivery request to {url} failed: {reason}")


class DeliveryRejectedError(DeliveryError):
    """Провайдер ответил не-2xx статусом."""

    def __init__(self, url: str, status_code: int) -> None:
        self.url = url
        self.status_code = status_code
        super().__init__(f"Email delivery rejected by provider: HTTP {status_code} from {url}")
