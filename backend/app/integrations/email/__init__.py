"""
Интеграция отправки email: абстракция EmailSender + фабрика по EMAIL_PROVIDER.
"""
from app.integrations.email.errors import (
    DeliveryError,
    DeliveryRejectedError,
    DeliveryTransportError,
    InvalidEmailAddress,
)
from app.integrations.email.factory import get_email_sender
from app.integrations.email.ports import EmailSender
from app.integrations.email.service import SubscriptionEmailService
from app.integrations.email.types import EmailAddress, OutboundMessage

__all__ = [
    "EmailSender",
    "EmailAddress",
    "OutboundMessage",
    "get_email_sender",
    "SubscriptionEmailService",
    "DeliveryError",
    "DeliveryRejectedError",
    "DeliveryTransportError",
    "InvalidEmailAddress",
]
