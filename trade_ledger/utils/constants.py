"""Shared constants and defaults."""

from enum import Enum


class TradeStatus(str, Enum):
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    STOPPED = "STOPPED"
    MANUAL = "MANUAL"
    FAILED = "FAILED"


# Default re-entry cool-down after a trade is archived
DEDUP_WINDOW_HOURS = 24.0

# Close-account retry defaults
SETTLE_MAX_ATTEMPTS = 3
SETTLE_BASE_DELAY_SECONDS = 2.0

LAMPORTS_PER_SOL = 1_000_000_000
SECRET_KEY_LENGTH = 64
