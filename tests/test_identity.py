"""Tests for the identity collaborator and session tokens."""

from datetime import timedelta

import pytest

from school_leave.backend.identity import IdentityProvider
from school_leave.core.config import Settings
from school_leave.core.exceptions import ConfigurationMissing, IdentityError
from school_leave.core.security import (create_custom_token, create_session_token,
                                        decode_session_token)


@pytest.fixture
def cfg() -> Settings:
    return Settings(BACKEND_API_KEY="unit-key", BACKEND_PROJECT_ID="proj", BACKEND_AUTH_DOMAIN="auth.test")


@pytest.mark.asyncio
async def test_anonymous_sessions_are_distinct(cfg):
    provider = IdentityProvider(cfg)
    first = await provider.establish_session()
    second = await provider.establish_session()
    assert first.provider == "anonymous"
    assert first.uid != second.uid


@pytest.mark.asyncio
async def test_custom_token_exchange(cfg):
    provider = IdentityProvider(cfg)
    session = await provider.establish_session(create_custom_token("teacher-7", cfg))
    assert session.uid == "teacher-7"
    assert session.provider == "custom"
    assert provider.verify(session.token).uid == "teacher-7"


@pytest.mark.asyncio
async def test_invalid_custom_token(cfg):
    provider = IdentityProvider(cfg)
    with pytest.raises(IdentityError):
        await provider.establish_session("not-a-jwt")

    # A session token is not accepted where a custom token is expected
    session_token, _ = create_session_token("u1", "anonymous", cfg)
    with pytest.raises(IdentityError):
        await provider.establish_session(session_token)


@pytest.mark.asyncio
async def test_token_from_other_deployment_rejected(cfg):
    other = Settings(BACKEND_API_KEY="other-key", BACKEND_PROJECT_ID="proj")
    with pytest.raises(IdentityError):
        await IdentityProvider(cfg).establish_session(create_custom_token("u1", other))


@pytest.mark.asyncio
async def test_unconfigured_backend(cfg):
    provider = IdentityProvider(Settings(BACKEND_API_KEY=None))
    assert not provider.configured
    with pytest.raises(ConfigurationMissing):
        await provider.establish_session()
    with pytest.raises(ConfigurationMissing):
        provider.verify("anything")


def test_expired_session_token(cfg):
    token, _ = create_session_token("u1", "anonymous", cfg, expires_delta=timedelta(seconds=-5))
    assert decode_session_token(token, cfg) is None
    with pytest.raises(IdentityError):
        IdentityProvider(cfg).verify(token)


def test_blank_api_key_counts_as_missing():
    assert not Settings(BACKEND_API_KEY="   ").backend_configured


@pytest.mark.asyncio
async def test_auth_state_notifies_observers(cfg):
    state = IdentityProvider(cfg).auth_state()
    seen = []

    async def observer(session):
        seen.append(session)

    unsubscribe = await state.on_session_change(observer)
    assert seen == [None]

    session = await state.sign_in()
    assert seen[-1] == session
    assert state.current == session

    await state.sign_out()
    assert seen[-1] is None

    unsubscribe()
    await state.sign_in()
    assert len(seen) == 3
