"""Wallet registry: signing secrets keyed by owner public key.

Secrets are Fernet-encrypted at rest with ``TL_ENCRYPTION_KEY``; the
plaintext only leaves the registry through ``reveal_secret``.
"""

import logging

from cryptography.fernet import Fernet

from trade_ledger.config import settings
from trade_ledger.errors import NotFoundError
from trade_ledger.models.wallet import Wallet
from trade_ledger.services.keys import SecretEncoding, load_owner_keypair, resolve_encoding
from trade_ledger.store import LedgerStore

logger = logging.getLogger(__name__)


class WalletRegistry:
    def __init__(self, store: LedgerStore, encryption_key: str | bytes | None = None):
        self.store = store
        self._encryption_key = encryption_key
        self._fernet: Fernet | None = None

    def _cipher(self) -> Fernet:
        if self._fernet is None:
            key = self._encryption_key or settings.encryption_key
            if not key:
                raise RuntimeError(
                    "TL_ENCRYPTION_KEY not set; wallet secrets cannot be stored or read"
                )
            self._fernet = Fernet(key.encode() if isinstance(key, str) else key)
        return self._fernet

    def add_wallet(self, public_key: str, secret: str, encoding: SecretEncoding | str | None = None) -> Wallet:
        """Store a wallet after checking the secret signs for ``public_key``."""
        variant = resolve_encoding(encoding) if encoding else None
        load_owner_keypair(secret, public_key, variant)
        wallet = Wallet(
            public_key=public_key,
            secret_encrypted=self._cipher().encrypt(secret.encode()).decode(),
            secret_encoding=variant.value if variant else None,
        )
        wallet = self.store.put(wallet)
        logger.info(f"Wallet {public_key[:8]}... stored")
        return wallet

    def get_wallet(self, public_key: str) -> Wallet:
        wallet = self.store.get(Wallet, public_key)
        if wallet is None or not wallet.is_active:
            raise NotFoundError(public_key, what="Wallet")
        return wallet

    def reveal_secret(self, wallet: Wallet) -> str:
        return self._cipher().decrypt(wallet.secret_encrypted.encode()).decode()
