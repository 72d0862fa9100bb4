"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from trade_ledger import database
from trade_ledger.api import system, tokens, trades
from trade_ledger.engine.reconcile import reconcile_archive
from trade_ledger.store import LedgerStore
from trade_ledger.utils.logging import setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    setup_logging()
    database.create_db_and_tables()
    # Clear trades stranded in both tables by an interrupted archive
    reconcile_archive(LedgerStore(database.engine))
    yield


app = FastAPI(
    title="Trade Ledger",
    description="Position ledger and on-chain settlement service",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(trades.router)
app.include_router(tokens.router)
app.include_router(system.router)
