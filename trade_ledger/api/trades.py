"""Trade API — open, grow, query and settle positions."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from trade_ledger.api.deps import get_ledger, get_position_updater, get_settler, require_token
from trade_ledger.engine.settle_job import TradeSettler
from trade_ledger.errors import KeyFormatError, NotFoundError, OwnerMismatchError, SettlementError
from trade_ledger.schemas.trade import (
    BuyIn,
    PastTradeRead,
    SettleResponse,
    SettlementInfo,
    TargetsUpdate,
    TradeCreate,
    TradeRead,
)
from trade_ledger.services.position_updater import PositionUpdater
from trade_ledger.services.trade_ledger import TradeLedger

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/trades", tags=["trades"], dependencies=[Depends(require_token)])


@router.get("", response_model=list[TradeRead])
def list_active_trades(ledger: TradeLedger = Depends(get_ledger)):
    return ledger.get_active_trades()


@router.post("", status_code=201)
def open_trade(data: TradeCreate, ledger: TradeLedger = Depends(get_ledger)):
    existing = ledger.find_active_trade_by_token(data.token_address)
    if existing:
        raise HTTPException(
            status_code=409,
            detail=f"Active trade {existing.trade_id} already open for {data.token_address}",
        )
    trade_id = ledger.create_trade(data.model_dump())
    return {"trade_id": trade_id}


@router.get("/history", response_model=list[PastTradeRead])
def list_past_trades(token_address: str | None = None, ledger: TradeLedger = Depends(get_ledger)):
    return ledger.get_past_trades(token_address)


@router.get("/{trade_id}", response_model=TradeRead)
def get_trade(trade_id: str, ledger: TradeLedger = Depends(get_ledger)):
    trade = ledger.get_trade(trade_id)
    if not trade:
        raise HTTPException(status_code=404, detail="Trade not found")
    return trade


@router.post("/{trade_id}/buy-in", response_model=TradeRead)
def buy_in(trade_id: str, data: BuyIn, updater: PositionUpdater = Depends(get_position_updater)):
    try:
        return updater.apply_buy_in(
            trade_id,
            data.amount_invested,
            data.tokens_received,
            data.target_percentage_gain,
            data.target_percentage_loss,
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.put("/{trade_id}/targets", response_model=TradeRead)
def update_targets(trade_id: str, data: TargetsUpdate, ledger: TradeLedger = Depends(get_ledger)):
    try:
        return ledger.update_trade_targets(
            trade_id, data.target_percentage_gain, data.target_percentage_loss
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{trade_id}/settle", response_model=SettleResponse)
async def settle_trade(
    trade_id: str,
    data: SettlementInfo,
    settler: TradeSettler = Depends(get_settler),
):
    """Burn residual tokens, close the token account, then archive the trade."""
    try:
        outcome = await settler.settle(trade_id, data)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (KeyFormatError, OwnerMismatchError, ValueError) as e:
        logger.error(f"[{trade_id}] Settlement refused: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except SettlementError as e:
        logger.error(f"[{trade_id}] Settlement failed: {e}")
        raise HTTPException(status_code=502, detail=str(e))

    response = SettleResponse(trade_id=trade_id, already_archived=outcome.already_archived)
    if outcome.settlement is not None:
        response.outcome = outcome.settlement.outcome.value
        response.burned_amount = outcome.settlement.burned_amount
        response.close_signature = outcome.settlement.close_signature
    return response
