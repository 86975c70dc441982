from dataclasses import replace

import pytest

from resumail.auth.api_keys import ApiKeyGate
from resumail.auth.authenticator import (
    ApiKeyAuthenticator,
    RequestCredentials,
    SessionAuthenticator,
    build_authenticator,
)
from resumail.auth.errors import AuthenticationFailure, ConfigurationError, FailureReason
from resumail.auth.passwords import CredentialVerifier
from resumail.auth.session import SessionCodec


@pytest.fixture()
def session_auth(clock):
    return SessionAuthenticator(SessionCodec("sig", 3600, clock=clock), CredentialVerifier(password="pw"))


def test_login_with_correct_password_issues_verifiable_token(session_auth):
    token = session_auth.login("pw")
    assert token
    assert session_auth.verify_request(RequestCredentials(cookies={"admin_session": token}))


def test_login_with_wrong_password_returns_none(session_auth):
    assert session_auth.login("pW") is None
    assert session_auth.login("") is None


@pytest.mark.parametrize("cookies, reason", [
    ({}, FailureReason.MISSING_CREDENTIAL),
    ({"admin_session": ""}, FailureReason.MISSING_CREDENTIAL),
    ({"admin_session": "garbage"}, FailureReason.MALFORMED),
    ({"admin_session": "abc.def"}, FailureReason.BAD_SIGNATURE),
])
def test_session_rejections_carry_internal_reason(session_auth, cookies, reason):
    creds = RequestCredentials(cookies=cookies)
    with pytest.raises(AuthenticationFailure) as ei:
        session_auth.authenticate(creds)
    assert ei.value.reason is reason
    assert session_auth.verify_request(creds) is False


def test_token_from_other_cookie_name_is_ignored(session_auth):
    token = session_auth.login("pw")
    assert not session_auth.verify_request(RequestCredentials(cookies={"other": token}))


def test_logout_keeps_token_valid_until_expiry(session_auth, clock):
    token = session_auth.login("pw")
    assert session_auth.logout() is None
    creds = RequestCredentials(cookies={"admin_session": token})
    assert session_auth.verify_request(creds)
    clock.advance(3601)
    assert not session_auth.verify_request(creds)


def test_api_key_authenticator_reads_header_case_insensitively():
    auth = ApiKeyAuthenticator(ApiKeyGate("k-1"))
    assert auth.verify_request(RequestCredentials(headers={"X-Api-Key": "k-1"}))
    assert auth.verify_request(RequestCredentials(headers={"x-api-key": "k-1"}))
    assert not auth.verify_request(RequestCredentials(headers={"x-api-key": " k-1 "}))
    assert not auth.verify_request(RequestCredentials(headers={"x-api-key": "k-2"}))
    assert not auth.verify_request(RequestCredentials())


def test_api_key_mode_ignores_session_cookie(session_auth):
    token = session_auth.login("pw")
    auth = ApiKeyAuthenticator(ApiKeyGate("k-1"))
    assert not auth.verify_request(RequestCredentials(cookies={"admin_session": token}))


def test_build_authenticator_picks_variant(settings, api_key_settings):
    assert isinstance(build_authenticator(settings), SessionAuthenticator)
    assert isinstance(build_authenticator(api_key_settings), ApiKeyAuthenticator)


@pytest.mark.parametrize("changes", [
    {"session_secret": ""},
    {"admin_password": "", "admin_password_hash": ""},
    {"auth_mode": "api_key", "api_key": ""},
    {"auth_mode": "both"},
])
def test_build_authenticator_fails_closed_on_missing_secrets(settings, changes):
    with pytest.raises(ConfigurationError):
        build_authenticator(replace(settings, **changes))
