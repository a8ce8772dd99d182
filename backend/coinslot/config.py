"""Application configuration derived from environment."""
from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Server settings, overridable through COINSLOT_* environment variables."""

    model_config = ConfigDict(env_prefix="COINSLOT_")

    # Server
    debug: bool = False
    log_level: str = "INFO"
    redis_url: str = "redis://localhost:6379/0"

    # Economy
    spin_cost: int = 10
    starting_balance: int = 1000  # single source for every provisioning path
    username_max_length: int = 32

    # Machine: one weight per symbol, index == symbol id
    symbol_weights: list[int] = [1, 1, 1, 1, 1, 1, 1, 1, 1]

    # Settlement
    settle_max_attempts: int = 3
    store_timeout_seconds: float = 2.0

    # Identity provider
    identity_backend: str = "supabase"  # "supabase" | "static"
    identity_timeout_seconds: float = 5.0
    supabase_url: str = ""
    supabase_service_role_key: str = ""
    static_tokens: dict[str, str] = {}


settings = Settings()
