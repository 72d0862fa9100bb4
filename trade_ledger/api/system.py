"""Health and wallet endpoints."""

import asyncio

from fastapi import APIRouter, Depends, HTTPException

from trade_ledger.api.deps import get_ledger, get_rpc, require_token, resolve_owner
from trade_ledger.schemas.trade import SolBalanceResponse
from trade_ledger.services.solana_client import SolanaClient
from trade_ledger.services.trade_ledger import TradeLedger

router = APIRouter(prefix="/api", tags=["system"])


@router.get("/health")
def health(ledger: TradeLedger = Depends(get_ledger)):
    return {"status": "ok", "active_trades": len(ledger.get_active_trades())}


@router.get("/wallet/balance", response_model=SolBalanceResponse, dependencies=[Depends(require_token)])
async def wallet_balance(
    owner: str = Depends(resolve_owner),
    rpc: SolanaClient = Depends(get_rpc),
):
    try:
        balance = await rpc.get_sol_balance(owner)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid address: {e}")
    except asyncio.TimeoutError:
        raise HTTPException(status_code=504, detail="RPC node timed out")
    return SolBalanceResponse(owner=owner, balance_sol=balance)
