"""
Shared fixtures: an in-memory store and identity provider, profile builders
and an HTTP client wired to them.
"""
import os
import tempfile
from typing import AsyncGenerator

import pytest
from faker import Faker
from httpx import ASGITransport, AsyncClient

os.environ["STORE_BACKEND"] = "memory"
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="projectmates-logs-"))

from app.main import app
from app.api.dependencies import get_identity, get_store
from app.db.collections import PROFILES
from app.db.identity import MemoryIdentityProvider
from app.db.memory_store import MemoryDocumentStore
from app.models.profile import Profile, avatar_initial_for

fake = Faker()


def fake_email() -> str:
    return f"{fake.unique.user_name()}@university.edu"


@pytest.fixture
def store() -> MemoryDocumentStore:
    return MemoryDocumentStore()


@pytest.fixture
def identity() -> MemoryIdentityProvider:
    return MemoryIdentityProvider(auto_confirm=True)


@pytest.fixture
def make_profile(store):
    """Write a profile straight into the store."""

    async def _make(**fields) -> Profile:
        name = fields.pop("name", fake.name())
        profile = Profile(
            id=fields.pop("id", store.new_id()),
            name=name,
            avatar_initial=avatar_initial_for(name),
            email=fields.pop("email", fake_email()),
            profile_complete=fields.pop("profile_complete", True),
            **fields,
        )
        await store.set(PROFILES, profile.id, profile.model_dump(mode="json"))
        return profile

    return _make


@pytest.fixture
def make_user(identity, make_profile):
    """Create a verified identity with a profile and return (profile, headers)."""

    async def _make(**fields):
        email = fields.pop("email", fake_email())
        name = fields.pop("name", fake.name())
        auth_user = await identity.sign_up(email, "secret-password", name)
        profile = await make_profile(id=auth_user.id, name=name, email=email, **fields)
        token = identity.issue_token(auth_user.id)
        return profile, {"Authorization": f"Bearer {token}"}

    return _make


@pytest.fixture
async def client(store, identity) -> AsyncGenerator[AsyncClient, None]:
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_identity] = lambda: identity

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
