# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import hashlib
import hmac
import json
import logging
import math
import time
from dataclasses import dataclass
from typing import Callable, Optional

from itsdangerous import BadData, Signer
from itsdangerous.encoding import base64_decode, base64_encode

from resumail.auth.errors import AuthenticationFailure, ConfigurationError, FailureReason

logger = logging.getLogger(__name__)

COOKIE_NAME = "admin_session"
DEFAULT_TTL_SECONDS = 8 * 60 * 60
SESSION_KIND = "admin"
SEPARATOR = "."
SIGNER_SALT = "resumail.admin-session.v1"


@dataclass(frozen=True)
class SessionPayload:
    expires_at_ms: int
    kind: str = SESSION_KIND


class SessionCodec:
    """Issues and checks ``<payload>.<signature>`` admin tokens.

    Both segments are URL-safe base64 without padding. The payload is
    compact JSON ``{"exp": <epoch ms>, "typ": "admin"}`` and the signature is
    HMAC-SHA256 over the encoded payload segment. The signature is checked
    before the payload is decoded.
    """

    def __init__(
        self,
        secret: str,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        *,
        clock: Callable[[], float] = time.time,
    ):
        if not secret:
            raise ConfigurationError("Missing SESSION_SECRET")
        if ttl_seconds <= 0:
            raise ConfigurationError("Session TTL must be positive")
        self.ttl_seconds = int(ttl_seconds)
        self._clock = clock
        self._signer = Signer(
            secret,
            salt=SIGNER_SALT,
            sep=SEPARATOR,
            key_derivation="hmac",
            digest_method=hashlib.sha256,
        )

    def _now_ms(self) -> int:
        return int(round(self._clock() * 1000))

    def issue(self) -> str:
        payload = {"exp": self._now_ms() + self.ttl_seconds * 1000, "typ": SESSION_KIND}
        raw = json.dumps(payload, separators=(",", ":"), sort_keys=True).encode("utf-8")
        return self._signer.sign(base64_encode(raw)).decode("ascii")

    def decode(self, token: Optional[str]) -> SessionPayload:
        if not token or not isinstance(token, str):
            raise AuthenticationFailure(FailureReason.MISSING_CREDENTIAL)
        if token.count(SEPARATOR) != 1:
            raise AuthenticationFailure(FailureReason.MALFORMED)
        payload_part, sig_part = token.split(SEPARATOR)
        if not payload_part or not sig_part:
            raise AuthenticationFailure(FailureReason.MALFORMED)

        # Compared in encoded form; non-canonical base64 of a valid signature is rejected.
        expected = self._signer.get_signature(payload_part)
        if not hmac.compare_digest(expected, sig_part.encode("utf-8")):
            raise AuthenticationFailure(FailureReason.BAD_SIGNATURE)

        # Nothing below is reachable without a valid signature.
        try:
            data = json.loads(base64_decode(payload_part).decode("utf-8"))
        except (BadData, UnicodeDecodeError, ValueError) as e:
            raise AuthenticationFailure(FailureReason.MALFORMED) from e
        if not isinstance(data, dict):
            raise AuthenticationFailure(FailureReason.MALFORMED)
        if data.get("typ") != SESSION_KIND:
            raise AuthenticationFailure(FailureReason.WRONG_KIND)
        exp = data.get("exp")
        if isinstance(exp, bool) or not isinstance(exp, (int, float)) or not math.isfinite(exp):
            raise AuthenticationFailure(FailureReason.MALFORMED)
        if self._now_ms() > exp:
            raise AuthenticationFailure(FailureReason.EXPIRED)
        return SessionPayload(expires_at_ms=int(exp))

    def verify(self, token: Optional[str]) -> bool:
        try:
            self.decode(token)
        except AuthenticationFailure as e:
            logger.debug("Session token rejected: %s", e.reason.value)
            return False
        return True
