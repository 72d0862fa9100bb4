"""Trade ledger and on-chain settlement service."""
