"""Application configuration via environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite:///./trade_ledger.db"
    encryption_key: str = ""  # Fernet key; generate with: python -c "from cryptography.fernet import Fernet; print(Fernet.generate_key().decode())"
    log_level: str = "INFO"
    api_token: str = ""  # Bearer token required by the HTTP API

    # Solana RPC
    rpc_url: str = "https://api.mainnet-beta.solana.com"
    rpc_timeout_seconds: float = 60.0
    wallet_public_key: str = ""

    # Settlement retry policy
    settle_max_attempts: int = 3
    settle_base_delay_seconds: float = 2.0
    settle_backoff_factor: float = 1.0  # 1.0 = fixed delay
    settle_jitter_seconds: float = 0.0

    # Re-entry cool-down
    dedup_window_hours: float = 24.0

    model_config = {"env_prefix": "TL_", "env_file": ".env"}


settings = Settings()
