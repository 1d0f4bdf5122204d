"""Tests for session identity resolution and token claims."""

from __future__ import annotations

import anyio
import pytest
from jose import jwt

from notification_center.domain.entities import Identity, TenantContext
from notification_center.domain.errors import IdentityUnavailable
from notification_center.infrastructure.identity import SessionIdentityProvider
from notification_center.infrastructure.security import (
    ALGORITHM,
    decode_access_token,
    identity_from_claims,
)


@pytest.mark.anyio
async def test_wait_returns_current_identity(actor) -> None:
    provider = SessionIdentityProvider(actor)

    assert await provider.wait_for_identity(0.01) is actor


@pytest.mark.anyio
async def test_wait_times_out_without_session() -> None:
    provider = SessionIdentityProvider()

    with pytest.raises(IdentityUnavailable):
        await provider.wait_for_identity(0.05)


@pytest.mark.anyio
async def test_sign_in_releases_waiters(actor) -> None:
    provider = SessionIdentityProvider()
    resolved = []

    async def wait() -> None:
        resolved.append(await provider.wait_for_identity(1.0))

    async with anyio.create_task_group() as task_group:
        task_group.start_soon(wait)
        await anyio.sleep(0.01)
        provider.sign_in(actor)

    assert resolved == [actor]


@pytest.mark.anyio
async def test_sign_out_clears_identity(actor) -> None:
    provider = SessionIdentityProvider(actor)

    provider.sign_out()

    assert provider.current is None
    with pytest.raises(IdentityUnavailable):
        await provider.wait_for_identity(0.01)


def test_tenant_context_requires_both_levels() -> None:
    assert Identity(user_id="u", client_id="c").tenant_context is None
    assert Identity(user_id="u", client_id="c", condominium_id="k").tenant_context == TenantContext("c", "k")


def test_author_name_fallbacks() -> None:
    assert Identity(user_id="u", display_name="Ana", email="a@x.com").author_name == "Ana"
    assert Identity(user_id="u", email="a@x.com").author_name == "a@x.com"
    assert Identity(user_id="u").author_name == "Usuario"


def test_decode_access_token_round_trip() -> None:
    token = jwt.encode({"sub": "admin-1", "role": "admin"}, "test-secret-key", algorithm=ALGORITHM)

    assert decode_access_token(token) == {"sub": "admin-1", "role": "admin"}


def test_decode_access_token_rejects_foreign_signature() -> None:
    token = jwt.encode({"sub": "admin-1"}, "another-secret", algorithm=ALGORITHM)

    with pytest.raises(ValueError):
        decode_access_token(token)


def test_identity_from_claims_prefers_selected_condominium() -> None:
    claims = {
        "sub": "admin-1",
        "name": "Ana",
        "email": "ana@example.com",
        "role": "admin",
        "client_id": "client-1",
        "condominium_id": "condo-1",
    }

    identity = identity_from_claims(claims, condominium_id="condo-2")

    assert identity.user_id == "admin-1"
    assert identity.tenant_context == TenantContext("client-1", "condo-2")
    assert identity_from_claims(claims).condominium_id == "condo-1"


def test_identity_from_claims_requires_subject() -> None:
    with pytest.raises(ValueError):
        identity_from_claims({"name": "Ana"})
