"""Settlement engine — burn residual tokens and close the owner's token account.

Steps for one (owner, mint):
1. Parse the signing secret and require it to sign for the owner.
2. Find the owner's token account; none means already settled.
3. Burn any remaining balance and wait for finalization.
4. Close the account, retrying with a fresh blockhash per attempt.

Safe to repeat for the same (owner, mint): once the account is closed, step 2
turns later calls into no-ops. Not safe to run twice concurrently for the
same pair; callers serialize settlement per trade.
"""

import asyncio
import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable

from trade_ledger.config import settings
from trade_ledger.errors import BurnFailedError, SettlementFailedError
from trade_ledger.services.keys import SecretEncoding, load_owner_keypair
from trade_ledger.services.solana_client import SolanaClient
from trade_ledger.utils.constants import SETTLE_BASE_DELAY_SECONDS, SETTLE_MAX_ATTEMPTS

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


@dataclass
class RetryPolicy:
    max_attempts: int = SETTLE_MAX_ATTEMPTS
    base_delay: float = SETTLE_BASE_DELAY_SECONDS
    backoff_factor: float = 1.0  # 1.0 keeps the delay fixed
    jitter: float = 0.0  # upper bound of uniform random extra delay

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay < 0 or self.jitter < 0:
            raise ValueError("delays must be non-negative")

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after failed ``attempt`` (1-based)."""
        delay = self.base_delay * (self.backoff_factor ** (attempt - 1))
        if self.jitter:
            delay += random.uniform(0, self.jitter)
        return delay

    @classmethod
    def from_settings(cls) -> "RetryPolicy":
        return cls(
            max_attempts=settings.settle_max_attempts,
            base_delay=settings.settle_base_delay_seconds,
            backoff_factor=settings.settle_backoff_factor,
            jitter=settings.settle_jitter_seconds,
        )


class SettlementOutcome(str, Enum):
    CLOSED = "closed"
    NO_ACCOUNT = "no_account"


@dataclass
class SettlementResult:
    outcome: SettlementOutcome
    token_account: str | None = None
    burned_amount: int = 0
    burn_signature: str | None = None
    close_signature: str | None = None
    attempts: int = 0
    errors: list[str] = field(default_factory=list)


class SettlementEngine:
    """Final on-chain settlement for one token position."""

    def __init__(
        self,
        rpc: SolanaClient,
        retry_policy: RetryPolicy | None = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.rpc = rpc
        self.retry_policy = retry_policy or RetryPolicy()
        self._sleep = sleep

    async def settle(
        self,
        token_mint: str,
        owner_address: str,
        signing_secret: str,
        encoding: SecretEncoding | str | None = None,
    ) -> SettlementResult:
        keypair = load_owner_keypair(signing_secret, owner_address, encoding)

        account = await self.rpc.find_token_account(owner_address, token_mint)
        if account is None:
            logger.info(f"No token account for mint {token_mint}; nothing to close")
            return SettlementResult(outcome=SettlementOutcome.NO_ACCOUNT)

        result = SettlementResult(outcome=SettlementOutcome.CLOSED, token_account=str(account))

        balance = await self.rpc.get_token_balance(account)
        if balance > 0:
            logger.info(f"Burning remaining {balance} tokens of {token_mint} before closing account")
            try:
                blockhash = await self.rpc.get_latest_blockhash()
                burn_ix = self.rpc.build_burn_instruction(account, token_mint, owner_address, balance)
                result.burn_signature = await self.rpc.send_and_confirm([burn_ix], keypair, blockhash)
            except Exception as e:
                logger.error(f"Burn of {balance} {token_mint} failed: {e}")
                raise BurnFailedError(f"Failed to burn {balance} tokens of {token_mint}: {e}") from e
            result.burned_amount = balance

        close_ix = self.rpc.build_close_instruction(account, owner_address)
        policy = self.retry_policy
        last_error: Exception | None = None

        for attempt in range(1, policy.max_attempts + 1):
            result.attempts = attempt
            try:
                # A stale blockhash is always rejected, so fetch one per attempt
                blockhash = await self.rpc.get_latest_blockhash()
                result.close_signature = await self.rpc.send_and_confirm([close_ix], keypair, blockhash)
                logger.info(f"Token account {account} closed with signature {result.close_signature}")
                return result
            except Exception as e:
                last_error = e
                result.errors.append(str(e))
                logger.warning(f"Close attempt {attempt}/{policy.max_attempts} failed: {e}")
                if attempt < policy.max_attempts:
                    await self._sleep(policy.delay_for(attempt))

        logger.error(f"Giving up on closing {account} after {policy.max_attempts} attempts")
        raise SettlementFailedError(policy.max_attempts, last_error) from last_error
