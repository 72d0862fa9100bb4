"""CLI tool for admin operations.

Usage:
    python -m trade_ledger.cli add-wallet
    python -m trade_ledger.cli reconcile
    python -m trade_ledger.cli settle <trade_id> [reason]
"""

import asyncio
import getpass
import sys

from trade_ledger.config import settings
from trade_ledger.database import create_db_and_tables, engine
from trade_ledger.engine.reconcile import reconcile_archive
from trade_ledger.engine.settle_job import TradeSettler
from trade_ledger.engine.settlement import RetryPolicy, SettlementEngine
from trade_ledger.errors import LedgerError, SettlementError
from trade_ledger.services.solana_client import SolanaClient
from trade_ledger.services.trade_ledger import TradeLedger
from trade_ledger.services.wallets import WalletRegistry
from trade_ledger.store import LedgerStore
from trade_ledger.utils.constants import TradeStatus
from trade_ledger.utils.logging import setup_logging


def add_wallet(store: LedgerStore):
    """Register the signing wallet, encrypted at rest."""
    public_key = input("Public key: ").strip() or settings.wallet_public_key
    if not public_key:
        print("Public key cannot be empty.")
        sys.exit(1)

    secret = getpass.getpass("Secret key (base58 or comma-separated bytes): ").strip()
    try:
        WalletRegistry(store).add_wallet(public_key, secret)
    except SettlementError as e:
        print(f"Rejected: {e}")
        sys.exit(1)
    print(f"\nWallet '{public_key}' stored.")


def reconcile(store: LedgerStore):
    repaired = reconcile_archive(store)
    print(f"Repaired {len(repaired)} trade(s): {', '.join(repaired) or '-'}")


async def _settle(store: LedgerStore, trade_id: str, reason: str | None):
    rpc = SolanaClient(settings.rpc_url, timeout=settings.rpc_timeout_seconds)
    settler = TradeSettler(
        ledger=TradeLedger(store),
        wallets=WalletRegistry(store),
        engine=SettlementEngine(rpc, RetryPolicy.from_settings()),
    )
    try:
        return await settler.settle(trade_id, {"status": TradeStatus.MANUAL.value, "reason": reason or "cli"})
    finally:
        await rpc.close()


def settle(store: LedgerStore, trade_id: str, reason: str | None):
    try:
        outcome = asyncio.run(_settle(store, trade_id, reason))
    except (LedgerError, SettlementError) as e:
        print(f"Settlement failed: {e}")
        sys.exit(1)
    if outcome.already_archived:
        print(f"Trade {trade_id} was already archived.")
    else:
        print(f"Trade {trade_id} settled ({outcome.settlement.outcome.value}) and archived.")


def main():
    if len(sys.argv) < 2:
        print("Usage: python -m trade_ledger.cli <command>")
        print("Commands: add-wallet, reconcile, settle <trade_id> [reason]")
        sys.exit(1)

    setup_logging()
    create_db_and_tables()
    store = LedgerStore(engine)

    command = sys.argv[1]
    if command == "add-wallet":
        add_wallet(store)
    elif command == "reconcile":
        reconcile(store)
    elif command == "settle" and len(sys.argv) >= 3:
        settle(store, sys.argv[2], sys.argv[3] if len(sys.argv) > 3 else None)
    else:
        print(f"Unknown command: {' '.join(sys.argv[1:])}")
        sys.exit(1)


if __name__ == "__main__":
    main()
