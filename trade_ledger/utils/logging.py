"""Process-wide logging setup."""

import logging
import sys

from trade_ledger.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def setup_logging(level: str | None = None):
    """Configure the root logger once; safe to call repeatedly."""
    root = logging.getLogger()
    root.setLevel((level or settings.log_level).upper())
    if any(getattr(h, "_trade_ledger", False) for h in root.handlers):
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._trade_ledger = True
    root.addHandler(handler)

    # httpx logs every RPC request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
