"""Shared fixtures - in-memory store, auth provider and notifier."""

import pytest

from vrms.engine.outbox import reset_outbox_metrics
from tests.fakes import FakeAuthProvider, FakeIdentityStore, RecordingNotifier


@pytest.fixture
def store() -> FakeIdentityStore:
    return FakeIdentityStore()


@pytest.fixture
def auth() -> FakeAuthProvider:
    return FakeAuthProvider()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def world(store):
    """Owner, company and property plus a claimable 20% OFF promotion."""
    owner, company, prop = store.add_owner_property()
    promotion = store.add_promotion()
    return {"owner": owner, "company": company, "property": prop, "promotion": promotion}


@pytest.fixture(autouse=True)
def _clean_outbox_metrics():
    reset_outbox_metrics()
    yield
    reset_outbox_metrics()
