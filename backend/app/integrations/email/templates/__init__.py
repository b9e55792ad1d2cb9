from app.integrations.email.templates.confirmation_email import render_confirmation_email

__all__ = ["render_confirmation_email"]
