from app.integrations.email.senders.api_sender import EmailDeliveryClient
from app.integrations.email.senders.console_sender import ConsoleEmailSender

__all__ = ["EmailDeliveryClient", "ConsoleEmailSender"]
