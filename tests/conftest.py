import os
import re
import uuid

import pytest
import pytest_asyncio
from dotenv import load_dotenv
from sqlalchemy import text
from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel, create_engine
from sqlmodel.ext.asyncio.session import AsyncSession

# Ensure model metadata is registered before creating/dropping tables.
from bookings_api.infrastructure.db.models import (  # noqa: F401
    BookingModel,
    BookingStatusHistoryModel,
    NotificationModel,
    ServiceProModel,
)

load_dotenv()


def _server_url(url: URL) -> str:
    return url.set(database=None).render_as_string(hide_password=False)


def _sync_url(url: URL) -> URL:
    if url.drivername == "mysql":
        return url.set(drivername="mysql+pymysql")
    return url.set(drivername=url.drivername.replace("aiomysql", "pymysql"))


def _isolated_mysql_urls(raw_url: str) -> tuple[str, str]:
    url = make_url(raw_url)
    if url.get_backend_name() != "mysql":
        pytest.fail("MYSQL_TEST_DATABASE_URL must point at MySQL.")
    if not (url.database and url.database.endswith("_test")):
        pytest.fail("MYSQL_TEST_DATABASE_URL database name must end with '_test'.")

    database = f"{url.database}_{uuid.uuid4().hex[:8]}"[:64]
    if not re.fullmatch(r"[A-Za-z0-9_]+", database):
        pytest.fail("Test database name contains unsupported characters.")
    async_url = url.set(database=database)
    if async_url.drivername == "mysql":
        async_url = async_url.set(drivername="mysql+aiomysql")
    return (
        async_url.render_as_string(hide_password=False),
        _sync_url(async_url).render_as_string(hide_password=False),
    )


def _run_admin_statement(sync_url: str, statement: str) -> None:
    engine = create_engine(_server_url(make_url(sync_url)), pool_pre_ping=True)
    try:
        with engine.begin() as connection:
            connection.execute(text(statement))
    finally:
        engine.dispose()


@pytest.fixture(scope="function")
def database_urls(tmp_path) -> tuple[str, str]:
    """Async and sync URLs of an empty schema.

    MySQL is used when ``MYSQL_TEST_DATABASE_URL`` is set; otherwise each test
    gets its own SQLite file.
    """
    raw_url = os.getenv("MYSQL_TEST_DATABASE_URL")
    if not raw_url:
        path = tmp_path / "bookings.db"
        async_url, sync_url = f"sqlite+aiosqlite:///{path}", f"sqlite:///{path}"
        engine = create_engine(sync_url)
        try:
            SQLModel.metadata.create_all(engine)
        finally:
            engine.dispose()
        yield async_url, sync_url
        return

    async_url, sync_url = _isolated_mysql_urls(raw_url)
    database = make_url(sync_url).database
    _run_admin_statement(
        sync_url,
        f"CREATE DATABASE IF NOT EXISTS `{database}` "
        "CHARACTER SET utf8mb4 COLLATE utf8mb4_0900_ai_ci",
    )
    engine = create_engine(sync_url, pool_pre_ping=True)
    try:
        SQLModel.metadata.create_all(engine, checkfirst=False)
    finally:
        engine.dispose()
    try:
        yield async_url, sync_url
    finally:
        _run_admin_statement(sync_url, f"DROP DATABASE IF EXISTS `{database}`")


@pytest_asyncio.fixture(scope="function")
async def session_factory(database_urls: tuple[str, str]) -> async_sessionmaker[AsyncSession]:
    async_url, _ = database_urls
    engine = create_async_engine(async_url, poolclass=NullPool)
    try:
        yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    finally:
        await engine.dispose()
