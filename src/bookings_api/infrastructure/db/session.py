from urllib.parse import quote_plus

from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlmodel.ext.asyncio.session import AsyncSession

from bookings_api.shared.config.settings import Settings, settings


def build_database_url(app_settings: Settings) -> str:
    """Build async SQLAlchemy URL from explicit URL or MySQL settings."""
    if app_settings.database_url:
        return app_settings.database_url

    password = quote_plus(app_settings.mysql_password)
    return (
        "mysql+aiomysql://"
        f"{app_settings.mysql_user}:{password}@"
        f"{app_settings.mysql_host}:{app_settings.mysql_port}/"
        f"{app_settings.mysql_database}"
    )


def create_session_factory(
    app_settings: Settings = settings,
) -> async_sessionmaker[AsyncSession]:
    """Create async SQLModel session factory.

    Pool sizing only applies to server databases; SQLite URLs get the
    driver's default pool.
    """
    url = build_database_url(app_settings)
    engine_options: dict[str, object] = {"echo": app_settings.app_debug, "pool_pre_ping": True}
    if not url.startswith("sqlite"):
        engine_options.update(
            pool_size=app_settings.db_pool_size,
            max_overflow=app_settings.db_max_overflow,
            pool_timeout=app_settings.db_pool_timeout_seconds,
            pool_recycle=app_settings.db_pool_recycle_seconds,
        )
    engine = create_async_engine(url, **engine_options)
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
