"""Application configuration using pydantic settings with structured sections."""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False


class DatabaseSettings(BaseModel):
    url: str = Field(default="sqlite+aiosqlite:///./credit_ledger.db", alias="url")
    echo: bool = False
    pool_size: Optional[int] = None
    max_overflow: Optional[int] = None
    # seconds a SQLite connection waits on a locked database before failing
    busy_timeout: float = 5.0
    create_tables: bool = True


class LedgerSettings(BaseModel):
    max_attempts: int = Field(default=3, ge=1)
    backoff_initial: float = Field(default=0.01, ge=0)
    backoff_max: float = Field(default=0.2, ge=0)
    operation_timeout: float = Field(default=10.0, gt=0)
    bulk_concurrency: int = Field(default=8, ge=1)
    bulk_max_accounts: int = Field(default=1000, ge=1)
    # largest accepted |delta|; stored balances and totals are signed 64-bit
    max_delta: int = Field(default=2**62, ge=1)
    low_balance_threshold: int = 100
    default_page_size: int = Field(default=50, ge=1)
    max_page_size: int = Field(default=200, ge=1)
    recent_transactions: int = Field(default=100, ge=1)
    max_description_length: int = Field(default=255, ge=1)
    max_idempotency_key_length: int = Field(default=128, ge=1)
    account_id_pattern: str = r"^[A-Za-z0-9][A-Za-z0-9_.:@-]{0,63}$"


class LoggingSettings(BaseModel):
    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class Settings(BaseSettings):
    """Top-level application settings with nested sections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="CREDIT_LEDGER_",
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
    )

    environment: Literal["development", "staging", "production", "test"] = "development"
    debug: bool = False
    project_name: str = "Credit Ledger Server"
    api_prefix: str = "/api"

    server: ServerSettings = ServerSettings()
    database: DatabaseSettings = DatabaseSettings()
    ledger: LedgerSettings = LedgerSettings()
    logging: LoggingSettings = LoggingSettings()

    @property
    def database_url(self) -> str:
        return self.database.url

    @property
    def host(self) -> str:
        return self.server.host

    @property
    def port(self) -> int:
        return self.server.port


@lru_cache()
def get_settings() -> Settings:
    return Settings()
