"""Per-token queries used before opening a position."""

import asyncio

from fastapi import APIRouter, Depends, HTTPException, Query

from trade_ledger.api.deps import get_dedup_guard, get_ledger, get_rpc, require_token, resolve_owner
from trade_ledger.config import settings
from trade_ledger.schemas.trade import RecentExitResponse, TokenBalanceResponse, TradeRead
from trade_ledger.services.dedup_guard import DedupGuard
from trade_ledger.services.solana_client import SolanaClient
from trade_ledger.services.trade_ledger import TradeLedger

router = APIRouter(prefix="/api/tokens", tags=["tokens"], dependencies=[Depends(require_token)])


@router.get("/{token_address}/recent-exit", response_model=RecentExitResponse)
def recent_exit(
    token_address: str,
    window_hours: float | None = Query(default=None, gt=0),
    guard: DedupGuard = Depends(get_dedup_guard),
):
    window = window_hours or settings.dedup_window_hours
    return RecentExitResponse(
        token_address=token_address,
        window_hours=window,
        recently_settled=guard.check_recent_settlement(token_address, window),
    )


@router.get("/{token_address}/active", response_model=TradeRead | None)
def active_trade(token_address: str, ledger: TradeLedger = Depends(get_ledger)):
    return ledger.find_active_trade_by_token(token_address)


@router.get("/{token_address}/balance", response_model=TokenBalanceResponse)
async def token_balance(
    token_address: str,
    owner: str = Depends(resolve_owner),
    rpc: SolanaClient = Depends(get_rpc),
):
    """Raw on-chain balance the owner holds of this mint; 0 without a token account."""
    try:
        balance = await rpc.get_owner_token_balance(owner, token_address)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid address: {e}")
    except asyncio.TimeoutError:
        raise HTTPException(status_code=504, detail="RPC node timed out")
    return TokenBalanceResponse(token_address=token_address, owner=owner, balance=balance)
