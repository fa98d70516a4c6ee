"""Unit tests for identity resolution and account provisioning."""

import asyncio

import pytest

from vrms.auth.provider import AuthProviderError
from vrms.engine.identity import AccountProvisioner, IdentityResolver
from vrms.errors import AppError, ErrorKind
from vrms.models import Profile


@pytest.mark.asyncio
async def test_resolve_normalizes_email(store):
    """Resolver matches on the lower-cased, stripped email."""
    profile = store.add_profile("guest@example.com")
    assert await IdentityResolver(store).resolve("  Guest@Example.COM ") is profile


@pytest.mark.asyncio
async def test_resolve_missing_returns_none(store):
    assert await IdentityResolver(store).resolve("nobody@example.com") is None
    assert await IdentityResolver(store).resolve("") is None


@pytest.mark.asyncio
async def test_existing_profile_is_reused(store, auth):
    """Existing profile short-circuits - no auth call."""
    profile = store.add_profile("guest@example.com")
    identity = await AccountProvisioner(store, auth).provision_or_fetch(
        "guest@example.com", "Guest", "+1555"
    )
    assert identity.identity_id == profile.id
    assert identity.is_new_account is False
    assert auth.created == []


@pytest.mark.asyncio
async def test_new_guest_gets_account_and_profile(store, auth):
    """Account and profile are created as a pair with the same id."""
    identity = await AccountProvisioner(store, auth).provision_or_fetch(
        "New@Example.com", "New Guest", "+1555"
    )
    assert identity.is_new_account is True
    account = auth.accounts["new@example.com"]
    assert account.id == identity.identity_id
    assert account.confirmed is False
    profile = store.profiles[identity.identity_id]
    assert profile.email == "new@example.com"
    assert profile.full_name == "New Guest"
    assert profile.phone == "+1555"
    assert profile.user_type == "free"


@pytest.mark.asyncio
async def test_orphan_auth_account_gets_missing_profile(store, auth):
    """Auth account without profile (earlier partial failure) is located and completed."""
    orphan = auth.add_account("orphan@example.com")
    identity = await AccountProvisioner(store, auth).provision_or_fetch(
        "orphan@example.com", "Orphan", None
    )
    assert identity.identity_id == orphan.id
    assert identity.is_new_account is True
    assert store.profiles[orphan.id].email == "orphan@example.com"


@pytest.mark.asyncio
async def test_registered_but_unfindable_account_is_internal_error(store, auth):
    auth.add_account("ghost@example.com")
    auth.hide_from_search = True
    with pytest.raises(AppError) as exc_info:
        await AccountProvisioner(store, auth).provision_or_fetch("ghost@example.com", "G", None)
    assert exc_info.value.kind is ErrorKind.INTERNAL_ERROR
    assert store.profiles == {}


@pytest.mark.asyncio
async def test_account_search_failure_is_internal_error(store, auth):
    auth.add_account("ghost@example.com")
    auth.find_error = AuthProviderError("listing failed")
    with pytest.raises(AppError) as exc_info:
        await AccountProvisioner(store, auth).provision_or_fetch("ghost@example.com", "G", None)
    assert exc_info.value.kind is ErrorKind.INTERNAL_ERROR


@pytest.mark.asyncio
async def test_other_auth_failure_is_fatal(store, auth):
    """Provider failure other than "already registered" aborts provisioning."""
    auth.create_error = AuthProviderError("503 from provider")
    with pytest.raises(AppError) as exc_info:
        await AccountProvisioner(store, auth).provision_or_fetch("x@example.com", "X", None)
    assert exc_info.value.kind is ErrorKind.INTERNAL_ERROR
    assert exc_info.value.status_code == 500
    assert store.profiles == {}


@pytest.mark.asyncio
async def test_profile_created_concurrently_after_account_create(store, auth):
    """Account create wins but another claim already wrote the profile."""
    real_create = auth.create_account

    async def create_then_competitor_writes_profile(email, password, confirmed, metadata):
        account = await real_create(email, password, confirmed, metadata)
        store.add_profile(email, profile_id=account.id)
        return account

    auth.create_account = create_then_competitor_writes_profile
    identity = await AccountProvisioner(store, auth).provision_or_fetch(
        "race@example.com", "Race", None
    )
    assert identity.is_new_account is False
    assert len(store.profiles) == 1


@pytest.mark.asyncio
async def test_profile_insert_duplicate_is_reconciled(store, auth):
    """Lost insert race re-fetches the winner instead of failing."""

    def competitor(profile):
        store.profiles[profile.id] = Profile(id=profile.id, email=profile.email, user_type="free")

    store.before_profile_insert = competitor
    identity = await AccountProvisioner(store, auth).provision_or_fetch(
        "race@example.com", "Race", None
    )
    assert identity.is_new_account is False
    assert identity.identity_id == auth.accounts["race@example.com"].id
    assert len(store.profiles) == 1


@pytest.mark.asyncio
async def test_email_taken_by_other_identity_is_validation_error(store, auth):
    """A profile under another id holding the email cannot be reconciled."""

    def competitor(profile):
        store.add_profile(profile.email)

    store.before_profile_insert = competitor
    with pytest.raises(AppError) as exc_info:
        await AccountProvisioner(store, auth).provision_or_fetch("clash@example.com", "C", None)
    assert exc_info.value.kind is ErrorKind.VALIDATION_ERROR


@pytest.mark.asyncio
async def test_concurrent_provisioning_converges(store, auth):
    """N concurrent calls: one account, one profile, at most one new."""
    provisioner = AccountProvisioner(store, auth)
    results = await asyncio.gather(
        *(provisioner.provision_or_fetch("crowd@example.com", "Crowd", None) for _ in range(8))
    )
    assert len({r.identity_id for r in results}) == 1
    assert sum(r.is_new_account for r in results) <= 1
    assert auth.created == ["crowd@example.com"]
    assert [p.email for p in store.profiles.values()] == ["crowd@example.com"]
