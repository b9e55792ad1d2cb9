"""
Типы интеграции email: проверенный адрес и исходящее сообщение.
"""
from dataclasses import dataclass
from typing import Any

from email_validator import EmailNotValidError, validate_email
from pydantic_core import core_schema

from app.integrations.email.errors import InvalidEmailAddress

# Экземпляр EmailAddress создаётся только через EmailAddress.parse()
_PARSE_KEY = object()


class EmailAddress:
    """
    Синтаксически проверенный email-адрес (неизменяемый).

    Единственная точка проверки — EmailAddress.parse(); дальше по коду адрес
    повторно не валидируется. Прямой вызов конструктора запрещён.
    Можно использовать как тип поля pydantic-модели: строка на входе
    проходит через parse().
    """

    __slots__ = ("_value",)

    def __init__(self, value: str, _key: object = None) -> None:
        if _key is not _PARSE_KEY:
            raise TypeError("EmailAddress can only be created with EmailAddress.parse()")
        object.__setattr__(self, "_value", value)

    @classmethod
    def parse(cls, raw: str) -> "EmailAddress":
        """
        Проверить строку и вернуть EmailAddress.

        Отклоняет пустую строку, пробельные символы, отсутствие или несколько '@',
        пустую локальную часть или домен, а также всё, что не принимает email-validator
        (без DNS-проверки доставляемости).

        Raises:
            InvalidEmailAddress: строка не является email-адресом.
        """
        if not isinstance(raw, str) or not raw:
            raise InvalidEmailAddress("Email address is empty")
        if any(ch.isspace() for ch in raw):
            raise InvalidEmailAddress(f"Email address contains whitespace: {raw!r}")
        if raw.count("@") != 1:
            raise InvalidEmailAddress(f"Email address must contain exactly one '@': {raw!r}")
        local, _, domain = raw.partition("@")
        if not local or not domain:
            raise InvalidEmailAddress(f"Email address has an empty local or domain part: {raw!r}")
        try:
            info = validate_email(raw, check_deliverability=False)
        except EmailNotValidError as e:
            raise InvalidEmailAddress(f"Invalid email address {raw!r}: {e}") from e
        return cls(info.normalized, _key=_PARSE_KEY)

    @property
    def value(self) -> str:
        return self._value

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("EmailAddress is immutable")

    def __str__(self) -> str:
        return self._value

    def __repr__(self) -> str:
        return f"EmailAddress({self._value!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, EmailAddress):
            return self._value == other._value
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._value)

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: Any) -> core_schema.CoreSchema:
        from_str = core_schema.no_info_after_validator_function(cls.parse, core_schema.str_schema())
        return core_schema.json_or_python_schema(
            json_schema=from_str,
            python_schema=core_schema.union_schema(
                [core_schema.is_instance_schema(cls), from_str]
            ),
            serialization=core_schema.plain_serializer_function_ser_schema(str),
        )


@dataclass(frozen=True)
class OutboundMessage:
    """Одно исходящее письмо: один получатель, тема и две версии тела (HTML и текст)."""

    recipient: EmailAddress
    subject: str
    html_content: str
    text_content: str
