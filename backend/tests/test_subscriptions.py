"""
Тесты POST /api/v1/subscriptions и GET /api/v1/subscriptions/confirm.
БД — SQLite in-memory, API доставки писем — заглушка из conftest (lifespan не вызывается при ASGITransport).
"""
from urllib.parse import urlsplit

import pytest
from httpx import ASGITransport, AsyncClient
from pydantic import SecretStr
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.db.base import Base
from app.db.session import get_db
from app.integrations.email import EmailAddress, SubscriptionEmailService
from app.integrations.email.senders.api_sender import EmailDeliveryClient
from app.main import app
from app.modules.subscription.model import Subscription, SubscriptionToken
from app.modules.subscription.router import get_subscription_email_service

SUBSCRIBE_URL = "/api/v1/subscriptions"
CONFIRM_URL = "/api/v1/subscriptions/confirm"
VALID_BODY = {"name": "le guin", "email": "ursula_le_guin@gmail.com"}


@pytest.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False, autoflush=False)
    await engine.dispose()


@pytest.fixture
async def api(session_factory, email_provider):
    """HTTP-клиент к приложению с подменёнными БД и клиентом доставки писем."""
    email_client = EmailDeliveryClient(
        base_url="http://email.test",
        sender=EmailAddress.parse("newsletter@example.com"),
        auth_token=SecretStr("test-token"),
        timeout=1.0,
        transport=email_provider.transport,
    )
    email_service = SubscriptionEmailService(email_client)

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_subscription_email_service] = lambda: email_service
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
    await email_client.aclose()


async def _subscriptions(session_factory) -> list[Subscription]:
    async with session_factory() as session:
        result = await session.execute(select(Subscription))
        return list(result.scalars().all())


def _confirm_params(link: str) -> tuple[str, str]:
    parts = urlsplit(link)
    return parts.path, parts.query


@pytest.mark.asyncio
async def test_subscribe_returns_200_for_valid_data(api, email_provider) -> None:
    response = await api.post(SUBSCRIBE_URL, json=VALID_BODY)

    assert response.status_code == 200, response.text
    assert response.json() == {"message": "Confirmation email sent"}
    assert len(email_provider.requests) == 1


@pytest.mark.asyncio
async def test_subscribe_persists_the_new_subscriber(api, session_factory) -> None:
    await api.post(SUBSCRIBE_URL, json=VALID_BODY)

    saved = await _subscriptions(session_factory)
    assert len(saved) == 1
    assert saved[0].email == "ursula_le_guin@gmail.com"
    assert saved[0].name == "le guin"
    assert saved[0].status == "pending_confirmation"


@pytest.mark.asyncio
async def test_subscribe_sends_a_confirmation_email_with_a_link(api, email_provider) -> None:
    await api.post(SUBSCRIBE_URL, json=VALID_BODY)

    body = email_provider.json_body()
    assert body["personalizations"][0]["to"] == [{"email": "ursula_le_guin@gmail.com"}]
    assert body["from"] == {"email": "newsletter@example.com"}
    html_link, text_link = email_provider.confirmation_links()
    assert html_link == text_link
    assert urlsplit(html_link).netloc == "127.0.0.1:8000"
    assert urlsplit(html_link).path == CONFIRM_URL


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body, description",
    [
        ({"name": "le guin"}, "missing the email"),
        ({"email": "ursula_le_guin@gmail.com"}, "missing the name"),
        ({}, "missing both name and email"),
        ({"name": "", "email": "ursula_le_guin@gmail.com"}, "empty name"),
        ({"name": "   ", "email": "ursula_le_guin@gmail.com"}, "blank name"),
        ({"name": "Ursula <script>", "email": "ursula_le_guin@gmail.com"}, "forbidden characters"),
        ({"name": "x" * 257, "email": "ursula_le_guin@gmail.com"}, "too long name"),
        ({"name": "Ursula", "email": ""}, "empty email"),
        ({"name": "Ursula", "email": "definitely-not-an-email"}, "invalid email"),
    ],
)
async def test_subscribe_rejects_invalid_data(api, email_provider, session_factory, body, description) -> None:
    response = await api.post(SUBSCRIBE_URL, json=body)

    assert response.status_code == 422, f"The API did not reject the payload: {description}"
    assert email_provider.requests == []
    assert await _subscriptions(session_factory) == []


@pytest.mark.asyncio
async def test_subscribe_fails_and_stores_nothing_when_email_is_rejected(
    api, email_provider, session_factory
) -> None:
    email_provider.status_code = 500

    response = await api.post(SUBSCRIBE_URL, json=VALID_BODY)

    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to send confirmation email"
    assert len(email_provider.requests) == 1
    assert await _subscriptions(session_factory) == []


@pytest.mark.asyncio
async def test_subscribing_twice_while_pending_sends_a_new_link(api, email_provider, session_factory) -> None:
    first = await api.post(SUBSCRIBE_URL, json=VALID_BODY)
    second = await api.post(SUBSCRIBE_URL, json=VALID_BODY)

    assert first.status_code == 200
    assert second.status_code == 200
    assert len(email_provider.requests) == 2
    assert email_provider.confirmation_links(0)[1] != email_provider.confirmation_links(1)[1]
    assert len(await _subscriptions(session_factory)) == 1


@pytest.mark.asyncio
async def test_confirm_without_token_is_rejected_with_400(api) -> None:
    response = await api.get(CONFIRM_URL)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_confirm_with_unknown_token_is_rejected_with_401(api) -> None:
    response = await api.get(CONFIRM_URL, params={"subscription_token": "nope"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_link_from_the_email_confirms_the_subscriber(api, email_provider, session_factory) -> None:
    await api.post(SUBSCRIBE_URL, json=VALID_BODY)
    _, text_link = email_provider.confirmation_links()
    path, query = _confirm_params(text_link)

    response = await api.get(f"{path}?{query}")

    assert response.status_code == 200, response.text
    assert response.json() == {"message": "Subscription confirmed"}
    saved = await _subscriptions(session_factory)
    assert saved[0].status == "confirmed"


@pytest.mark.asyncio
async def test_reusing_the_link_reports_already_confirmed(api, email_provider) -> None:
    await api.post(SUBSCRIBE_URL, json=VALID_BODY)
    path, query = _confirm_params(email_provider.confirmation_links()[1])

    await api.get(f"{path}?{query}")
    response = await api.get(f"{path}?{query}")

    assert response.status_code == 200
    assert response.json() == {"message": "Subscription already confirmed"}


@pytest.mark.asyncio
async def test_subscribe_after_confirmation_is_a_conflict(api, email_provider) -> None:
    await api.post(SUBSCRIBE_URL, json=VALID_BODY)
    path, query = _confirm_params(email_provider.confirmation_links()[1])
    await api.get(f"{path}?{query}")

    response = await api.post(SUBSCRIBE_URL, json=VALID_BODY)

    assert response.status_code == 409
    assert len(email_provider.requests) == 1


@pytest.mark.asyncio
async def test_only_the_token_hash_is_stored(api, email_provider, session_factory) -> None:
    await api.post(SUBSCRIBE_URL, json=VALID_BODY)
    _, query = _confirm_params(email_provider.confirmation_links()[1])
    raw_token = query.split("=", 1)[1]

    async with session_factory() as session:
        count = await session.scalar(select(func.count()).select_from(SubscriptionToken))
        stored = (await session.execute(select(SubscriptionToken.token_hash))).scalars().all()

    assert count == 1
    assert raw_token not in stored
    assert len(stored[0]) == 64


@pytest.mark.asyncio
async def test_health_check_works(api) -> None:
    response = await api.get("/health_check")

    assert response.status_code == 200
    assert response.content == b""
