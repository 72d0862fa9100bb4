"""Shared API dependencies."""

import secrets

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from trade_ledger import database
from trade_ledger.config import settings
from trade_ledger.engine.settle_job import TradeSettler
from trade_ledger.engine.settlement import RetryPolicy, SettlementEngine
from trade_ledger.services.dedup_guard import DedupGuard
from trade_ledger.services.position_updater import PositionUpdater
from trade_ledger.services.solana_client import SolanaClient
from trade_ledger.services.trade_ledger import TradeLedger
from trade_ledger.services.wallets import WalletRegistry
from trade_ledger.store import LedgerStore

bearer_scheme = HTTPBearer()


def require_token(credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme)) -> None:
    """Validate the static API bearer token."""
    if not settings.api_token or not secrets.compare_digest(credentials.credentials, settings.api_token):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing token",
        )


def get_store() -> LedgerStore:
    return LedgerStore(database.engine)


def get_ledger(store: LedgerStore = Depends(get_store)) -> TradeLedger:
    return TradeLedger(store)


def get_dedup_guard(store: LedgerStore = Depends(get_store)) -> DedupGuard:
    return DedupGuard(store)


def get_position_updater(ledger: TradeLedger = Depends(get_ledger)) -> PositionUpdater:
    return PositionUpdater(ledger)


async def get_rpc():
    """Yield a fresh RPC client, closed after the request."""
    rpc = SolanaClient(settings.rpc_url, timeout=settings.rpc_timeout_seconds)
    try:
        yield rpc
    finally:
        await rpc.close()


def get_settler(
    store: LedgerStore = Depends(get_store),
    ledger: TradeLedger = Depends(get_ledger),
    rpc: SolanaClient = Depends(get_rpc),
) -> TradeSettler:
    return TradeSettler(
        ledger=ledger,
        wallets=WalletRegistry(store),
        engine=SettlementEngine(rpc, RetryPolicy.from_settings()),
    )


def resolve_owner(owner: str | None = None) -> str:
    """Owner address from the ``owner`` query parameter, else the configured wallet."""
    address = owner or settings.wallet_public_key
    if not address:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No owner given and TL_WALLET_PUBLIC_KEY is not set",
        )
    return address
