"""
Configuration management for modelsync.

Every setting can be supplied through the environment or a ``.env`` file in
the working directory (``DB_HOST``, ``DB_PORT``, ``MIGRATIONS_DIR``, ...).
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """modelsync settings."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Database
    database_url: Optional[str] = Field(
        default=None,
        description="Full SQLAlchemy URL; takes precedence over the DB_* credentials",
    )
    db_dialect: str = Field(default="mysql", description="mysql, mariadb or sqlite")
    db_driver: str = Field(default="pymysql", description="DBAPI driver for DB_DIALECT")
    db_host: str = Field(default="")
    db_port: Optional[int] = Field(default=None)
    db_username: str = Field(default="")
    db_password: str = Field(default="")
    db_name: str = Field(default="")
    db_sslmode: str = Field(
        default="", description="disable, prefer, require, verify-ca, verify-full"
    )

    # Connection pool
    pool_size: int = Field(default=10)
    max_overflow: int = Field(default=0)
    pool_recycle_seconds: int = Field(
        default=180, description="Maximum lifetime of a pooled connection"
    )

    # Migrations
    migrations_dir: str = Field(default="./migrations/")

    # Queries
    query_limit: int = Field(default=1000, description="Default LIMIT for querysets")

    # Logging
    log_level: str = Field(default="INFO")

    def has_credentials(self) -> bool:
        """Whether enough is configured to open a connection."""
        if self.database_url:
            return True
        return all(
            (self.db_username, self.db_name, self.db_host, self.db_port, self.db_sslmode)
        )


def get_settings() -> Settings:
    """Load settings from the environment (and ``.env``)."""
    return Settings()
