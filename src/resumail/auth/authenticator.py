# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Request gate shared by the protected routes.

A deployment runs exactly one variant: session cookies issued by ``login``
or a static API key header. Both are terminal: a request is either
authenticated or rejected with no detail about why.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Mapping, Optional

from resumail.auth.api_keys import API_KEY_HEADER, ApiKeyGate
from resumail.auth.errors import AuthenticationFailure, ConfigurationError, FailureReason
from resumail.auth.passwords import CredentialVerifier
from resumail.auth.session import COOKIE_NAME, SessionCodec
from resumail.config import AUTH_MODE_API_KEY, AUTH_MODE_SESSION, Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestCredentials:
    cookies: Mapping[str, str] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)

    def header(self, name: str) -> str:
        # Starlette headers are already case-insensitive; plain dicts are not.
        # The value is compared as sent, whitespace included.
        value = self.headers.get(name)
        if value is None:
            lname = name.lower()
            for k, v in self.headers.items():
                if k.lower() == lname:
                    value = v
                    break
        return value or ""


class Authenticator(ABC):
    mode: str = ""

    @abstractmethod
    def authenticate(self, credentials: RequestCredentials) -> None:
        """Raise AuthenticationFailure unless the request may proceed."""

    def verify_request(self, credentials: RequestCredentials) -> bool:
        try:
            self.authenticate(credentials)
        except AuthenticationFailure as e:
            logger.debug("Request rejected (%s): %s", self.mode, e.reason.value)
            return False
        return True


class SessionAuthenticator(Authenticator):
    mode = AUTH_MODE_SESSION

    def __init__(self, codec: SessionCodec, verifier: CredentialVerifier, cookie_name: str = COOKIE_NAME):
        self.codec = codec
        self.verifier = verifier
        self.cookie_name = cookie_name

    def login(self, candidate: str) -> Optional[str]:
        """Return a fresh session token, or None for a wrong password."""
        if not self.verifier.verify(candidate):
            logger.info("Admin login rejected")
            return None
        logger.info("Admin login accepted")
        return self.codec.issue()

    def logout(self) -> None:
        # Tokens are not stored server-side; the client drops the cookie.
        return None

    def authenticate(self, credentials: RequestCredentials) -> None:
        token = credentials.cookies.get(self.cookie_name, "")
        if not token:
            raise AuthenticationFailure(FailureReason.MISSING_CREDENTIAL)
        self.codec.decode(token)


class ApiKeyAuthenticator(Authenticator):
    mode = AUTH_MODE_API_KEY

    def __init__(self, gate: ApiKeyGate, header_name: str = API_KEY_HEADER):
        self.gate = gate
        self.header_name = header_name

    def authenticate(self, credentials: RequestCredentials) -> None:
        provided = credentials.header(self.header_name)
        if not provided:
            raise AuthenticationFailure(FailureReason.MISSING_CREDENTIAL)
        if not self.gate.check(provided):
            raise AuthenticationFailure(FailureReason.BAD_API_KEY)


def build_authenticator(settings: Settings) -> Authenticator:
    if settings.auth_mode == AUTH_MODE_SESSION:
        verifier = CredentialVerifier(settings.admin_password_hash, settings.admin_password)
        if not verifier.configured:
            raise ConfigurationError(
                "Missing admin password config. Set ADMIN_PASSWORD_HASH (recommended) or ADMIN_PASSWORD."
            )
        codec = SessionCodec(settings.session_secret, settings.session_ttl_seconds)
        return SessionAuthenticator(codec, verifier, cookie_name=settings.cookie_name)
    if settings.auth_mode == AUTH_MODE_API_KEY:
        gate = ApiKeyGate(settings.api_key)
        if not gate.configured:
            raise ConfigurationError("Missing API_KEY for api_key auth mode.")
        return ApiKeyAuthenticator(gate, header_name=settings.api_key_header)
    raise ConfigurationError(f"Unknown AUTH_MODE '{settings.auth_mode}' (use session or api_key).")
