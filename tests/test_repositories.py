"""Unit tests for duplicate-key classification in the identity store."""

import contextlib
from types import SimpleNamespace

import pytest
from sqlalchemy.exc import IntegrityError

from vrms.models import Profile
from vrms.storage.repositories import (
    DuplicateKey,
    IdentityStore,
    constraint_name,
    is_unique_violation,
)


class _AsyncpgError(Exception):
    """Shape of an asyncpg error: sqlstate and constraint_name attributes."""

    def __init__(self, sqlstate, constraint=None, message="database error"):
        super().__init__(message)
        self.sqlstate = sqlstate
        self.constraint_name = constraint


class _PsycopgError(Exception):
    """Shape of a psycopg error: pgcode plus diag.constraint_name."""

    def __init__(self, pgcode, constraint=None):
        super().__init__("database error")
        self.pgcode = pgcode
        self.diag = SimpleNamespace(constraint_name=constraint)


def _integrity_error(orig):
    return IntegrityError("INSERT INTO users", {}, orig)


def _wrapped(cause):
    """SQLAlchemy's asyncpg adapter wraps the driver error as __cause__."""
    wrapper = Exception("adapted driver error")
    wrapper.__cause__ = cause
    return wrapper


class _Session:
    """Just enough AsyncSession for ``IdentityStore._insert``."""

    def __init__(self, error=None):
        self.error = error
        self.added = []

    def add(self, record):
        self.added.append(record)

    @contextlib.asynccontextmanager
    async def begin_nested(self):
        yield
        if self.error is not None:
            raise self.error


def test_unique_violation_from_asyncpg_error():
    exc = _integrity_error(_AsyncpgError("23505", "uq_users_email"))
    assert is_unique_violation(exc)
    assert constraint_name(exc) == "uq_users_email"


def test_unique_violation_from_wrapped_driver_error():
    exc = _integrity_error(_wrapped(_AsyncpgError("23505", "uq_customers_email_property")))
    assert is_unique_violation(exc)
    assert constraint_name(exc) == "uq_customers_email_property"


def test_unique_violation_from_psycopg_diag():
    exc = _integrity_error(_PsycopgError("23505", "uq_chat_participants_member"))
    assert is_unique_violation(exc)
    assert constraint_name(exc) == "uq_chat_participants_member"


def test_foreign_key_violation_is_not_duplicate():
    exc = _integrity_error(_AsyncpgError("23503", "customers_property_id_fkey"))
    assert not is_unique_violation(exc)


def test_message_fallback_without_sqlstate():
    exc = _integrity_error(
        Exception('duplicate key value violates unique constraint "uq_users_email"')
    )
    assert is_unique_violation(exc)
    assert constraint_name(exc) is None
    assert not is_unique_violation(_integrity_error(Exception("null value in column")))


@pytest.mark.asyncio
async def test_insert_returns_duplicate_key_on_unique_violation():
    session = _Session(_integrity_error(_AsyncpgError("23505", "uq_users_email")))
    result = await IdentityStore(session).insert_profile(Profile(id="p-1", email="a@example.com"))
    assert result == DuplicateKey("uq_users_email")


@pytest.mark.asyncio
async def test_insert_propagates_other_integrity_errors():
    error = _integrity_error(_AsyncpgError("23503", "customers_property_id_fkey"))
    with pytest.raises(IntegrityError):
        await IdentityStore(_Session(error)).insert_profile(Profile(id="p-1", email="a@example.com"))


@pytest.mark.asyncio
async def test_insert_returns_record_on_success():
    session = _Session()
    profile = Profile(id="p-1", email="a@example.com")
    assert await IdentityStore(session).insert_profile(profile) is profile
    assert session.added == [profile]
