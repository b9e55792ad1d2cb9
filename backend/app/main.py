from contextlib import asynccontextmanager

from fastapi import FastAPI, Response, status

from app.core.config import get_settings
from app.core.logging_config import setup_logging
from app.integrations.email import SubscriptionEmailService, get_email_sender
from app.modules.subscription.router import router as subscription_router

# Настраиваем логирование при старте приложения
setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Инициализация при старте: конфиг, клиент доставки писем. Закрытие соединений при остановке."""
    settings = get_settings()
    email_sender = get_email_sender(settings)
    app.state.subscription_email_service = SubscriptionEmailService(email_sender)
    yield
    await email_sender.aclose()


app = FastAPI(
    title="Newsletter API",
    description="Newsletter subscriptions API",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(subscription_router)


@app.get("/health_check", status_code=status.HTTP_200_OK)
def health_check() -> Response:
    return Response(status_code=status.HTTP_200_OK)
