"""Engine creation and connection URL handling for modelsync."""

from typing import Optional

from sqlalchemy import Engine, create_engine
from sqlalchemy.engine.url import URL, make_url
from sqlalchemy.pool import StaticPool

from .config import Settings, get_settings
from .errors import ConfigurationError

SQLITE_MEMORY_URL = "sqlite:///:memory:"


def _ensure_sync_driver(url: URL) -> URL:
    """Force a synchronous driver; modelsync issues blocking statements only."""

    if url.drivername.startswith("mysql+") or url.drivername.startswith("mariadb+"):
        # Normalize async MySQL drivers to PyMySQL (sync)
        if any(token in url.drivername for token in ("aiomysql", "asyncmy")):
            url = url.set(drivername="mysql+pymysql")
    elif url.drivername.startswith("sqlite+"):
        # Align async SQLite drivers to the synchronous default
        if "aiosqlite" in url.drivername:
            url = url.set(drivername="sqlite")

    return url


def build_database_url(settings: Settings) -> URL:
    """Build the connection URL from the configured credentials.

    Raises:
        ConfigurationError: If neither DATABASE_URL nor the DB_* credentials are set
    """
    if settings.database_url:
        return make_url(settings.database_url)

    if not settings.has_credentials():
        raise ConfigurationError(
            "Database credentials are missing: set DATABASE_URL or "
            "DB_HOST, DB_PORT, DB_USERNAME, DB_NAME and DB_SSLMODE"
        )

    return URL.create(
        drivername=f"{settings.db_dialect}+{settings.db_driver}",
        username=settings.db_username,
        password=settings.db_password or None,
        host=settings.db_host,
        port=settings.db_port,
        database=settings.db_name,
    )


def get_database_url(raw_url: Optional[str] = None, settings: Optional[Settings] = None) -> str:
    """Return a database URL with a guaranteed synchronous driver."""

    url = make_url(raw_url) if raw_url else build_database_url(settings or get_settings())
    # str(url) masks the password.
    return _ensure_sync_driver(url).render_as_string(hide_password=False)


def create_database_engine(
    raw_url: Optional[str] = None, settings: Optional[Settings] = None
) -> Engine:
    """Create an engine with bounded pool size and connection lifetime."""
    settings = settings or get_settings()
    database_url = get_database_url(raw_url, settings)

    if database_url.startswith("sqlite"):
        # One shared connection so in-memory databases survive between statements
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    return create_engine(
        database_url,
        pool_size=settings.pool_size,
        max_overflow=settings.max_overflow,
        pool_pre_ping=True,
        pool_recycle=settings.pool_recycle_seconds,
    )
