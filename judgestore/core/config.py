import logging
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings
from sqlalchemy.engine import make_url

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "postgresql+psycopg2://localhost:5432/"
DEFAULT_DATABASE_NAME = "judge"


class Settings(BaseSettings):
    # Environment
    environment: str = Field(default="production", alias="judge_env")

    # Database
    database_dsn: Optional[str] = Field(default=None, alias="judge_database_url")
    connect_timeout_seconds: int = Field(3, alias="judge_connect_timeout")
    pool_size: int = Field(10, alias="judge_pool_size")
    create_schema: bool = Field(False, alias="judge_create_schema")

    # Store behaviour
    operation_timeout_seconds: float = Field(5.0, alias="judge_operation_timeout")
    strict_updates: bool = Field(False, alias="judge_strict_updates")

    # Monitoring & Error Tracking
    log_level: str = Field("INFO", alias="judge_log_level")
    sentry_dsn: Optional[str] = Field(None, alias="judge_sentry_dsn")

    @property
    def database_url(self) -> str:
        """Connection string handed to SQLAlchemy."""
        if self.database_dsn:
            return self.database_dsn
        url = make_url(DEFAULT_DATABASE_URL).set(database=DEFAULT_DATABASE_NAME)
        return url.render_as_string(hide_password=False)

    @property
    def database_name(self) -> Optional[str]:
        """Logical database name, derived from the supplied DSN when there is one."""
        if self.database_dsn:
            return make_url(self.database_dsn).database
        return DEFAULT_DATABASE_NAME

    @property
    def is_production(self) -> bool:
        return self.environment in ("production", "prod")

    @property
    def is_development(self) -> bool:
        return self.environment in ("development", "dev", "local", "test")

    def validate_production_config(self) -> None:
        """Validate that the store is not pointed at SQLite in production."""
        if self.is_production and self.database_url.startswith("sqlite"):
            raise RuntimeError("Production requires a server database (no SQLite allowed)")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "case_sensitive": False
    }


@lru_cache()
def get_settings() -> Settings:
    settings = Settings()
    try:
        settings.validate_production_config()
    except RuntimeError as e:
        logger.error(f"Production configuration validation failed: {e}")
        logger.warning("Starting with degraded configuration - store may not be durable")
    return settings
