"""Signing-secret parsing.

A secret arrives in one of two encodings: a base58 string of the 64-byte
keypair, or the same 64 bytes written as comma-separated decimals. The
encoding is chosen first (explicitly, or by the presence of a comma), then
only that variant's parser runs and reports its own failure.
"""

from enum import Enum

import base58
from solders.keypair import Keypair

from trade_ledger.errors import KeyFormatError, OwnerMismatchError
from trade_ledger.utils.constants import SECRET_KEY_LENGTH


class SecretEncoding(str, Enum):
    BASE58 = "base58"
    BYTE_ARRAY = "byte_array"


def classify_secret(secret: str) -> SecretEncoding:
    if "," in secret:
        return SecretEncoding.BYTE_ARRAY
    return SecretEncoding.BASE58


def _decode_byte_array(secret: str) -> bytes:
    values = []
    for position, part in enumerate(secret.split(","), start=1):
        text = part.strip()
        try:
            value = int(text)
        except ValueError:
            raise KeyFormatError(f"byte {position} is not a decimal integer: {text!r}") from None
        if not 0 <= value <= 255:
            raise KeyFormatError(f"byte {position} out of range 0..255: {value}")
        values.append(value)
    if len(values) != SECRET_KEY_LENGTH:
        raise KeyFormatError(f"Invalid private key length: {len(values)} (expected {SECRET_KEY_LENGTH})")
    return bytes(values)


def _decode_base58(secret: str) -> bytes:
    try:
        raw = base58.b58decode(secret.strip())
    except ValueError as e:
        raise KeyFormatError(f"secret is not valid base58: {e}") from e
    if len(raw) != SECRET_KEY_LENGTH:
        raise KeyFormatError(f"Invalid private key length: {len(raw)} (expected {SECRET_KEY_LENGTH})")
    return raw


_DECODERS = {
    SecretEncoding.BASE58: _decode_base58,
    SecretEncoding.BYTE_ARRAY: _decode_byte_array,
}


def resolve_encoding(encoding: SecretEncoding | str) -> SecretEncoding:
    try:
        return SecretEncoding(encoding)
    except ValueError:
        allowed = ", ".join(e.value for e in SecretEncoding)
        raise KeyFormatError(f"unknown secret encoding {encoding!r} (expected one of: {allowed})") from None


def decode_secret(secret: str, encoding: SecretEncoding | str | None = None) -> bytes:
    if not secret or not secret.strip():
        raise KeyFormatError("signing secret is empty")
    variant = resolve_encoding(encoding) if encoding else classify_secret(secret)
    return _DECODERS[variant](secret)


def parse_keypair(secret: str, encoding: SecretEncoding | str | None = None) -> Keypair:
    raw = decode_secret(secret, encoding)
    try:
        return Keypair.from_bytes(raw)
    except ValueError as e:
        raise KeyFormatError(f"secret bytes are not a valid ed25519 keypair: {e}") from e


def load_owner_keypair(secret: str, owner_address: str, encoding: SecretEncoding | str | None = None) -> Keypair:
    """Parse ``secret`` and require that it signs for ``owner_address``."""
    keypair = parse_keypair(secret, encoding)
    derived = str(keypair.pubkey())
    if derived != owner_address:
        raise OwnerMismatchError(expected=owner_address, actual=derived)
    return keypair
