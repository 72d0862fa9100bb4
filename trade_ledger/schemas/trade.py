"""Pydantic schemas for Trade API and ledger inputs."""

from pydantic import BaseModel, Field, field_validator

from trade_ledger.utils.constants import TradeStatus


class TradeCreate(BaseModel):
    token_address: str = Field(min_length=1, max_length=64)
    token_name: str = Field(default="", max_length=120)
    amount_invested: float = Field(default=0.0, ge=0)
    tokens_received: float = Field(default=0.0, ge=0)
    entry_price_sol: float | None = Field(default=None, ge=0)
    entry_price_usd: float | None = Field(default=None, ge=0)
    target_percentage_gain: float | None = None
    target_percentage_loss: float | None = None
    trade_type: str | None = Field(default=None, max_length=32)

    @field_validator("token_address")
    @classmethod
    def _trim_required_text(cls, value: str) -> str:
        text = value.strip()
        if not text:
            raise ValueError("must not be empty")
        return text


class SettlementInfo(BaseModel):
    """Exit data merged into a trade when it is archived."""

    exit_price_sol: float | None = None
    exit_price_usd: float | None = None
    sell_percentage_gain: float | None = None
    sell_percentage_loss: float | None = None
    status: str = TradeStatus.COMPLETED.value
    reason: str | None = None

    @field_validator("status")
    @classmethod
    def _terminal_status(cls, value: str) -> str:
        text = value.strip().upper()
        if not text:
            raise ValueError("must not be empty")
        if text == TradeStatus.ACTIVE.value:
            raise ValueError("archived trades cannot be ACTIVE")
        return text


class BuyIn(BaseModel):
    amount_invested: float = Field(ge=0)
    tokens_received: float = Field(ge=0)
    target_percentage_gain: float | None = None
    target_percentage_loss: float | None = None


class TargetsUpdate(BaseModel):
    target_percentage_gain: float | None = None
    target_percentage_loss: float | None = None


class TradeRead(BaseModel):
    trade_id: str
    token_address: str
    token_name: str
    amount_invested: float
    tokens_received: float
    entry_price_sol: float | None
    entry_price_usd: float | None
    exit_price_sol: float | None
    exit_price_usd: float | None
    target_percentage_gain: float | None
    target_percentage_loss: float | None
    status: str
    trade_type: str | None
    timestamp: str

    model_config = {"from_attributes": True}


class PastTradeRead(TradeRead):
    sell_percentage_gain: float | None
    sell_percentage_loss: float | None
    reason: str | None
    completed_at: str


class SettleResponse(BaseModel):
    trade_id: str
    already_archived: bool = False
    outcome: str | None = None  # "closed" / "no_account"
    burned_amount: int = 0
    close_signature: str | None = None


class RecentExitResponse(BaseModel):
    token_address: str
    window_hours: float
    recently_settled: bool


class TokenBalanceResponse(BaseModel):
    token_address: str
    owner: str
    balance: int  # raw base units


class SolBalanceResponse(BaseModel):
    owner: str
    balance_sol: float
