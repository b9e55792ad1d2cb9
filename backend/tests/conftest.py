"""
Общие фикстуры: окружение, заглушка API доставки писем, тестовая БД (SQLite in-memory).
"""
import asyncio
import json
import os
import re

# Окружение до импорта app.*: Settings читает env при импорте
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["APP_BASE_URL"] = "http://127.0.0.1:8000"
os.environ["EMAIL_PROVIDER"] = "console"
os.environ.pop("LOG_FILE", None)

import httpx
import pytest
from faker import Faker
from pydantic import SecretStr

from app.integrations.email.senders.api_sender import EmailDeliveryClient
from app.integrations.email.types import EmailAddress

LINK_RE = re.compile(r"https?://[^\s\"'<>]+")


class ProviderStub:
    """API доставки писем в памяти: запоминает запросы, отвечает заданным статусом."""

    def __init__(self, status_code: int = 200, body: bytes = b"", delay: float = 0.0) -> None:
        self.status_code = status_code
        self.body = body
        self.delay = delay
        self.requests: list[httpx.Request] = []

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        return httpx.Response(self.status_code, content=self.body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def json_body(self, index: int = 0) -> dict:
        return json.loads(self.requests[index].content)

    def confirmation_links(self, index: int = 0) -> tuple[str, str]:
        """Ссылки из письма: content[0] — HTML, content[1] — plain text."""
        content = self.json_body(index)["content"]
        html_links = LINK_RE.findall(content[0]["value"])
        text_links = LINK_RE.findall(content[1]["value"])
        assert len(html_links) == 1, html_links
        assert len(text_links) == 1, text_links
        return html_links[0], text_links[0]


@pytest.fixture
def fake() -> Faker:
    return Faker()


@pytest.fixture
def provider_factory() -> type[ProviderStub]:
    """Заглушки с нужным статусом, телом или задержкой: provider_factory(status_code=500)."""
    return ProviderStub


@pytest.fixture
def email_provider(provider_factory) -> ProviderStub:
    return provider_factory()


@pytest.fixture
def make_email(fake):
    def _make() -> EmailAddress:
        return EmailAddress.parse(fake.safe_email())

    return _make


@pytest.fixture
async def make_client(make_email, fake):
    """Фабрика EmailDeliveryClient; все созданные клиенты закрываются после теста."""
    clients: list[EmailDeliveryClient] = []

    def _make(
        base_url: str = "http://email.test",
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 0.2,
        sender: EmailAddress | None = None,
        auth_token: str | None = None,
        sender_name: str | None = None,
    ) -> EmailDeliveryClient:
        client = EmailDeliveryClient(
            base_url=base_url,
            sender=sender or make_email(),
            auth_token=SecretStr(auth_token or fake.password(length=24)),
            timeout=timeout,
            sender_name=sender_name,
            transport=transport,
        )
        clients.append(client)
        return client

    yield _make
    for client in clients:
        await client.aclose()
