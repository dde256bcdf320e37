import os
import time

# Settings are read once and cached; configure them before anything
# from storefront is imported.
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("ADMIN_EMAILS", "owner@pickles.test")
os.environ.setdefault("ADMIN_PASSWORD", "let-me-in")
os.environ.setdefault("PAYMENT_DELAY_SECONDS", "0")

import pytest
from jose import jwt

from fakes import FakeRemoteStore
from storefront.repositories.local_store import InMemoryCartStore
from storefront.services.storefront_session import StorefrontSession


def make_token(user_id: str, email: str | None = None, expires_in: int = 3600) -> str:
    claims = {
        "sub": user_id,
        "email": email or f"{user_id}@example.test",
        "exp": int(time.time()) + expires_in,
        "aud": "authenticated",
    }
    return jwt.encode(claims, os.environ["SUPABASE_JWT_SECRET"], algorithm="HS256")


@pytest.fixture
def remote_store():
    return FakeRemoteStore()


@pytest.fixture
def local_store():
    return InMemoryCartStore()


@pytest.fixture
async def storefront_session(remote_store, local_store):
    session = StorefrontSession("device-1", local_store, remote_store)
    await session.observe(None)
    yield session
    session.close()
