"""Custom SQLAlchemy types for encrypted fields."""

from __future__ import annotations

from sqlalchemy.types import TypeDecorator, Text

from agent_calendar.core.encryption import decrypt_token, encrypt_token


class EncryptedToken(TypeDecorator):
    """Encrypt/decrypt OAuth token values transparently."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if not isinstance(value, str):
            value = str(value)
        if value == "":
            return ""
        return encrypt_token(value)

    def process_result_value(self, value, dialect):
        if value is None or value == "":
            return value
        return decrypt_token(value)
