"""Письмо подтверждения подписки на рассылку."""
from html import escape

SUBJECT = "Welcome! Please confirm your subscription"


def render_confirmation_email(confirmation_link: str) -> tuple[str, str, str]:
    """
    Вернуть (subject, html, text). Обе версии тела содержат одну и ту же ссылку.
    """
    html = (
        "<p>Welcome to our newsletter!</p>"
        f'<p>Click <a href="{escape(confirmation_link, quote=True)}">here</a> '
        "to confirm your subscription.</p>"
    )
    text = (
        "Welcome to our newsletter!\n"
        f"Visit {confirmation_link} to confirm your subscription."
    )
    return SUBJECT, html, text
