"""Exception taxonomy for the ledger and settlement layers."""


class LedgerError(Exception):
    """Base class for trade ledger failures."""


class NotFoundError(LedgerError):
    """A record required by the operation does not exist."""

    def __init__(self, key: str, what: str = "Trade"):
        self.key = key
        super().__init__(f"{what} not found: {key}")


class SettlementError(Exception):
    """Base class for on-chain settlement failures."""


class KeyFormatError(SettlementError):
    """Signing secret is neither a valid base58 key nor a 64-byte array."""


class OwnerMismatchError(SettlementError):
    """Signing secret derives a public key other than the declared owner."""

    def __init__(self, expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Keypair public key {actual} does not match owner {expected}")


class BurnFailedError(SettlementError):
    """Burning the residual balance failed; the account was left open."""


class SettlementFailedError(SettlementError):
    """Closing the token account failed on every attempt."""

    def __init__(self, attempts: int, last_error: BaseException | None):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Failed to close token account after {attempts} attempts. Last error: {last_error}"
        )
