"""Схемы API подписки: форма подписки и ответы."""

from pydantic import BaseModel, Field, field_validator

from app.integrations.email.types import EmailAddress

NAME_MAX_LENGTH = 256
FORBIDDEN_NAME_CHARACTERS = frozenset('/()"<>\\{}')


class SubscribeRequest(BaseModel):
    """Тело POST /subscriptions."""

    name: str = Field(..., min_length=1, max_length=NAME_MAX_LENGTH)
    email: EmailAddress

    @field_validator("name")
    @classmethod
    def name_is_valid(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name must not be blank")
        if any(ch in FORBIDDEN_NAME_CHARACTERS for ch in v):
            raise ValueError("Name contains forbidden characters")
        return v


class SubscribeResponse(BaseModel):
    message: str


class ConfirmResponse(BaseModel):
    message: str
