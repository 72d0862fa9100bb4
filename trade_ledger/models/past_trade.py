"""PastTrade model — immutable record of every archived trade."""

from sqlmodel import Field

from trade_ledger.models.trade import TradeBase, utc_now_iso


class PastTrade(TradeBase, table=True):
    __tablename__ = "past_trade"

    reason: str | None = None
    completed_at: str = Field(default_factory=utc_now_iso)  # ISO-8601
