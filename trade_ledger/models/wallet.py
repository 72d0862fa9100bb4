"""Wallet model — owner public key bound to an encrypted signing secret."""

from datetime import datetime, timezone
from sqlmodel import SQLModel, Field


class Wallet(SQLModel, table=True):
    __tablename__ = "wallet"

    public_key: str = Field(primary_key=True)  # base58
    secret_encrypted: str = ""  # Fernet-encrypted signing secret
    secret_encoding: str | None = None  # "base58", "byte_array", or None to classify on read
    is_active: bool = True
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
