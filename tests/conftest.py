"""Shared fixtures: a throwaway SQLite ledger and a scripted RPC fake."""

import pytest
from solders.hash import Hash
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from trade_ledger.database import build_engine, create_db_and_tables
from trade_ledger.services.solana_client import BlockhashInfo
from trade_ledger.services.trade_ledger import TradeLedger
from trade_ledger.store import LedgerStore


@pytest.fixture
def engine(tmp_path):
    eng = build_engine(f"sqlite:///{tmp_path / 'ledger.db'}")
    create_db_and_tables(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def store(engine) -> LedgerStore:
    return LedgerStore(engine)


@pytest.fixture
def ledger(store) -> TradeLedger:
    return TradeLedger(store)


@pytest.fixture
def keypair() -> Keypair:
    return Keypair()


class FakeRpc:
    """Stands in for SolanaClient; records every call in ``calls``.

    ``send_failures`` is a list consumed one entry per ``send_and_confirm``:
    an Exception instance is raised, None means success.
    """

    def __init__(self, account: Pubkey | None = None, balance: int = 0, send_failures=None):
        self.account = account
        self.balance = balance
        self.send_failures = list(send_failures or [])
        self.calls: list[tuple] = []
        self.sent: list[str] = []  # "burn" / "close" in submission order
        self._blockhash_count = 0

    async def find_token_account(self, owner, mint):
        self.calls.append(("find_token_account", owner, mint))
        return self.account

    async def get_token_balance(self, account):
        self.calls.append(("get_token_balance", account))
        return self.balance

    async def get_latest_blockhash(self):
        self._blockhash_count += 1
        self.calls.append(("get_latest_blockhash", self._blockhash_count))
        return BlockhashInfo(blockhash=Hash.default(), last_valid_block_height=self._blockhash_count)

    def build_burn_instruction(self, account, mint, owner, amount):
        self.calls.append(("build_burn_instruction", amount))
        return ("burn", amount)

    def build_close_instruction(self, account, owner):
        self.calls.append(("build_close_instruction",))
        return ("close", None)

    async def send_and_confirm(self, instructions, signer, blockhash):
        kind, amount = instructions[0]
        self.calls.append(("send_and_confirm", kind, blockhash.last_valid_block_height))
        self.sent.append(kind)
        failure = self.send_failures.pop(0) if self.send_failures else None
        if failure is not None:
            raise failure
        if kind == "burn":
            self.balance -= amount
        else:
            self.account = None
        return f"sig-{kind}-{len(self.sent)}"

    async def close(self):
        pass


@pytest.fixture
def fake_rpc_factory():
    return FakeRpc


@pytest.fixture
def sleeps():
    """Recording replacement for asyncio.sleep."""
    delays: list[float] = []

    async def _sleep(delay: float):
        delays.append(delay)

    _sleep.delays = delays
    return _sleep
