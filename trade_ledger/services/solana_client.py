"""Solana RPC client wrapper for token-account settlement.

Wraps the solana-py async client and the SPL Token instruction builders.
Every RPC call is bounded by ``timeout`` seconds so a stalled node surfaces
as ``TimeoutError`` instead of hanging the caller.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Sequence, TypeVar

from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Finalized
from solana.rpc.models import TokenAccountOpts, TxOpts
from solders.hash import Hash
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.transaction import Transaction
from spl.token.constants import TOKEN_PROGRAM_ID
from spl.token.instructions import burn, close_account
from spl.token.models import BurnParams, CloseAccountParams

from trade_ledger.utils.constants import LAMPORTS_PER_SOL

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class BlockhashInfo:
    blockhash: Hash
    last_valid_block_height: int


class TransactionFailedError(Exception):
    """The transaction landed but the runtime reported an error."""


class SolanaClient:
    """Wrapper around solana-py for token account lookups and settlement transactions."""

    def __init__(self, rpc_url: str, timeout: float = 60.0):
        self.rpc_url = rpc_url
        self.timeout = timeout
        self._client: AsyncClient | None = None

    def _ensure_client(self) -> AsyncClient:
        """Lazily create the async RPC client."""
        if self._client is None:
            self._client = AsyncClient(self.rpc_url, commitment=Finalized, timeout=self.timeout)
            logger.info("Solana RPC client initialized")
        return self._client

    async def _call(self, what: str, awaitable: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.error(f"RPC {what} exceeded {self.timeout}s deadline")
            raise

    async def find_token_account(self, owner: str, mint: str) -> Pubkey | None:
        """Return the owner's first SPL token account for ``mint``, or None."""
        client = self._ensure_client()
        resp = await self._call(
            "getTokenAccountsByOwner",
            client.get_token_accounts_by_owner(
                Pubkey.from_string(owner),
                TokenAccountOpts(mint=Pubkey.from_string(mint), program_id=TOKEN_PROGRAM_ID),
                commitment=Finalized,
            ),
        )
        if not resp.value:
            return None
        return resp.value[0].pubkey

    async def get_token_balance(self, account: Pubkey) -> int:
        """Raw (base-unit) balance of a token account."""
        client = self._ensure_client()
        resp = await self._call(
            "getTokenAccountBalance",
            client.get_token_account_balance(account, commitment=Finalized),
        )
        return int(resp.value.amount)

    async def get_owner_token_balance(self, owner: str, mint: str) -> int:
        """Raw balance the owner holds of ``mint``; 0 when there is no account."""
        account = await self.find_token_account(owner, mint)
        if account is None:
            logger.info(f"No token account found for mint {mint}")
            return 0
        return await self.get_token_balance(account)

    async def get_sol_balance(self, address: str) -> float:
        client = self._ensure_client()
        resp = await self._call(
            "getBalance",
            client.get_balance(Pubkey.from_string(address), commitment=Finalized),
        )
        return resp.value / LAMPORTS_PER_SOL

    async def get_latest_blockhash(self) -> BlockhashInfo:
        client = self._ensure_client()
        resp = await self._call("getLatestBlockhash", client.get_latest_blockhash(commitment=Finalized))
        return BlockhashInfo(
            blockhash=resp.value.blockhash,
            last_valid_block_height=resp.value.last_valid_block_height,
        )

    def build_burn_instruction(self, account: Pubkey, mint: str, owner: str, amount: int) -> Instruction:
        return burn(
            BurnParams(
                program_id=TOKEN_PROGRAM_ID,
                account=account,
                mint=Pubkey.from_string(mint),
                owner=Pubkey.from_string(owner),
                amount=amount,
                signers=[],
            )
        )

    def build_close_instruction(self, account: Pubkey, owner: str) -> Instruction:
        owner_pubkey = Pubkey.from_string(owner)
        return close_account(
            CloseAccountParams(
                program_id=TOKEN_PROGRAM_ID,
                account=account,
                dest=owner_pubkey,
                owner=owner_pubkey,
                signers=[],
            )
        )

    async def send_and_confirm(
        self,
        instructions: Sequence[Instruction],
        signer: Keypair,
        blockhash: BlockhashInfo,
    ) -> str:
        """Sign with ``signer`` as fee payer, submit, and wait for finalized confirmation.

        Returns the transaction signature.
        """
        client = self._ensure_client()
        tx = Transaction.new_signed_with_payer(
            list(instructions), signer.pubkey(), [signer], blockhash.blockhash
        )
        sent = await self._call(
            "sendTransaction",
            client.send_raw_transaction(
                bytes(tx),
                opts=TxOpts(skip_confirmation=True, skip_preflight=False, preflight_commitment=Finalized),
            ),
        )
        signature = sent.value
        logger.debug(f"Transaction submitted: {signature}")

        confirmed = await self._call(
            "confirmTransaction",
            client.confirm_transaction(
                signature,
                commitment=Finalized,
                last_valid_block_height=blockhash.last_valid_block_height,
            ),
        )
        status = confirmed.value[0] if confirmed.value else None
        if status is not None and status.err is not None:
            raise TransactionFailedError(f"Transaction {signature} failed: {status.err}")
        logger.info(f"Transaction finalized: {signature}")
        return str(signature)

    async def close(self):
        """Close the RPC client."""
        if self._client is not None:
            try:
                await self._client.close()
            except Exception as e:
                logger.warning(f"Error closing RPC client: {e}")
        self._client = None
