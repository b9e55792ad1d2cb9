"""
Отправка email через HTTP API провайдера: POST {base_url}/send с Bearer-токеном.
Ответ провайдера не разбирается: важен только HTTP-статус.
"""
import asyncio
from datetime import timedelta
from typing import Any

import httpx
from pydantic import SecretStr

from app.integrations.email.errors import DeliveryRejectedError, DeliveryTransportError
from app.integrations.email.ports import EmailSender
from app.integrations.email.types import EmailAddress, OutboundMessage

SEND_PATH = "/send"


def _check_base_url(base_url: str) -> None:
    """Нужны схема http/https и непустой хост без пробелов, иначе — ValueError."""
    if any(ch.isspace() for ch in base_url):
        raise ValueError(f"Email client base_url contains whitespace: {base_url!r}")
    try:
        url = httpx.URL(base_url)
    except httpx.InvalidURL as e:
        raise ValueError(f"Email client base_url is not a valid URL: {base_url!r}: {e}") from e
    if url.scheme not in ("http", "https") or not url.host:
        raise ValueError(f"Email client base_url must be an absolute http(s) URL: {base_url!r}")


class EmailDeliveryClient(EmailSender):
    """
    Клиент API доставки писем.

    Создаётся один раз при старте и живёт всё время работы процесса.
    Состояние после создания не меняется, поэтому send_email можно вызывать
    конкурентно; пул соединений — забота httpx.AsyncClient.
    """

    def __init__(
        self,
        base_url: str,
        sender: EmailAddress,
        auth_token: SecretStr,
        timeout: float | timedelta,
        *,
        sender_name: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if isinstance(timeout, timedelta):
            timeout = timeout.total_seconds()
        if timeout <= 0:
            raise ValueError(f"Email client timeout must be positive, got {timeout}")
        if not base_url or not base_url.strip():
            raise ValueError("Email client base_url is empty")
        _check_base_url(base_url.strip())
        if not isinstance(sender, EmailAddress):
            raise TypeError("sender must be an EmailAddress")
        if not isinstance(auth_token, SecretStr):
            raise TypeError("auth_token must be a SecretStr")

        self._base_url = base_url.strip().rstrip("/")
        self._sender = sender
        self._sender_name = sender_name or None
        self._auth_token = auth_token
        self._timeout = float(timeout)
        self._client = httpx.AsyncClient(timeout=self._timeout, transport=transport)

    @property
    def send_url(self) -> str:
        return f"{self._base_url}{SEND_PATH}"

    @property
    def timeout(self) -> float:
        return self._timeout

    def build_payload(self, message: OutboundMessage) -> dict[str, Any]:
        """
        Тело запроса к провайдеру. Имена полей и вложенность — контракт с провайдером;
        в content сначала text/html, затем text/plain.
        """
        sender: dict[str, str] = {"email": self._sender.value}
        if self._sender_name:
            sender["name"] = self._sender_name
        return {
            "personalizations": [
                {
                    "to": [{"email": message.recipient.value}],
                    "subject": message.subject,
                }
            ],
            "content": [
                {"type": "text/html", "value": message.html_content},
                {"type": "text/plain", "value": message.text_content},
            ],
            "from": dict(sender),
            "reply_to": dict(sender),
        }

    async def send_email(
        self,
        recipient: EmailAddress,
        subject: str,
        html_content: str,
        text_content: str,
    ) -> None:
        """
        POST {base_url}/send. Вся операция ограничена таймаутом клиента.

        Raises:
            DeliveryTransportError: сеть, отказ в соединении, истёк таймаут.
            DeliveryRejectedError: провайдер вернул не-2xx.
        """
        message = OutboundMessage(
            recipient=recipient,
            subject=subject,
            html_content=html_content,
            text_content=text_content,
        )
        url = self.send_url
        headers = {
            "Authorization": f"Bearer {self._auth_token.get_secret_value()}",
            "Content-Type": "application/json",
        }

        try:
            response = await asyncio.wait_for(
                self._client.post(url, json=self.build_payload(message), headers=headers),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as e:
            raise DeliveryTransportError(url, f"timed out after {self._timeout}s") from e
        except httpx.TimeoutException as e:
            raise DeliveryTransportError(url, f"timed out after {self._timeout}s ({type(e).__name__})") from e
        except httpx.RequestError as e:
            raise DeliveryTransportError(url, f"{type(e).__name__}: {e}") from e

        if not response.is_success:
            raise DeliveryRejectedError(url, response.status_code)

    async def aclose(self) -> None:
        await self._client.aclose()

    def __repr__(self) -> str:
        return (
            f"EmailDeliveryClient(base_url={self._base_url!r}, sender={self._sender!r}, "
            f"timeout={self._timeout})"
        )
