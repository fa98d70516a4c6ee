"""Database engine, session factory and the request-scoped session dependency."""

import ssl
from collections.abc import AsyncGenerator
from urllib.parse import parse_qs, urlencode, urlparse, urlunparse

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from vrms.config import settings

_SSL_QUERY_PARAMS = ("sslmode", "ssl")


def _permissive_ssl_context() -> ssl.SSLContext:
    """Hosted Postgres poolers present chains some local trust stores reject."""
    ctx = ssl.create_default_context()
    ctx.check_hostname = False
    ctx.verify_mode = ssl.CERT_NONE
    return ctx


def asyncpg_url_and_connect_args(url: str) -> tuple[str, dict]:
    """Split libpq-style SSL query params out of ``url`` for asyncpg.

    asyncpg rejects ``sslmode``; SSL goes through ``connect_args`` instead,
    and is forced on for Supabase hosts.
    """
    connect_args: dict = {}
    parsed = urlparse(url)
    query = parse_qs(parsed.query)
    if any(name in query for name in _SSL_QUERY_PARAMS):
        for name in _SSL_QUERY_PARAMS:
            query.pop(name, None)
        url = urlunparse(parsed._replace(query=urlencode(query, doseq=True)))
    if "supabase" in parsed.netloc:
        connect_args["ssl"] = _permissive_ssl_context()
    return url, connect_args


class Base(DeclarativeBase):
    """Declarative base shared by every vrms table."""


_db_url, _connect_args = asyncpg_url_and_connect_args(settings.database_url)

engine = create_async_engine(
    _db_url,
    echo=settings.log_level == "DEBUG",
    pool_pre_ping=True,
    connect_args=_connect_args,
)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Session per request.

    Claim stages commit on their own; whatever is still pending when the
    request finishes is committed here, and rolled back on error.
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
