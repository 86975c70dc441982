# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import secrets
from dataclasses import dataclass
from typing import Optional

from argon2 import PasswordHasher, extract_parameters
from argon2.exceptions import InvalidHashError, VerificationError

from resumail.auth.errors import ConfigurationError

_PH = PasswordHasher()

SCRYPT_PREFIX = "scrypt$"
ARGON2_PREFIX = "$argon2"

# scrypt cost parameters (N, r, p); descriptors only carry salt and key.
SCRYPT_N = 16384
SCRYPT_R = 8
SCRYPT_P = 1
SCRYPT_SALT_BYTES = 16
SCRYPT_KEY_BYTES = 64


@dataclass(frozen=True)
class ScryptHash:
    algorithm: str
    salt: bytes
    derived_key: bytes


def _scrypt(plain: str, salt: bytes, length: int) -> bytes:
    return hashlib.scrypt(
        plain.encode("utf-8"),
        salt=salt,
        n=SCRYPT_N,
        r=SCRYPT_R,
        p=SCRYPT_P,
        dklen=length,
    )


def hash_password(plain: str) -> str:
    """Return a ``scrypt$<salt>$<key>`` descriptor for ``ADMIN_PASSWORD_HASH``."""
    if not plain:
        raise ValueError("Empty password")
    salt = secrets.token_bytes(SCRYPT_SALT_BYTES)
    key = _scrypt(plain, salt, SCRYPT_KEY_BYTES)
    return "$".join(
        [
            "scrypt",
            base64.b64encode(salt).decode("ascii"),
            base64.b64encode(key).decode("ascii"),
        ]
    )


def parse_password_hash(value: str) -> Optional[ScryptHash]:
    """Parse a scrypt descriptor.

    Returns None for an empty value and for a well-formed argon2 encoded hash
    (handed to argon2 as-is). Anything else is a configuration mistake.
    """
    v = (value or "").strip()
    if not v:
        return None
    if v.startswith(ARGON2_PREFIX):
        try:
            extract_parameters(v)
        except (InvalidHashError, ValueError, KeyError) as e:
            raise ConfigurationError("Malformed argon2 hash in ADMIN_PASSWORD_HASH") from e
        return None
    if not v.startswith(SCRYPT_PREFIX):
        raise ConfigurationError("Unsupported ADMIN_PASSWORD_HASH format (expected scrypt$... or $argon2...)")
    parts = v.split("$")
    if len(parts) != 3:
        raise ConfigurationError("Malformed scrypt descriptor in ADMIN_PASSWORD_HASH")
    try:
        salt = base64.b64decode(parts[1], validate=True)
        key = base64.b64decode(parts[2], validate=True)
    except (binascii.Error, ValueError) as e:
        raise ConfigurationError("Malformed scrypt descriptor in ADMIN_PASSWORD_HASH") from e
    if not salt or not key:
        raise ConfigurationError("Malformed scrypt descriptor in ADMIN_PASSWORD_HASH")
    return ScryptHash(algorithm="scrypt", salt=salt, derived_key=key)


class CredentialVerifier:
    """Checks a candidate admin password against the configured secret.

    The stored hash wins over the raw password when both are configured.
    With neither configured every candidate is rejected.
    """

    def __init__(self, password_hash: str = "", password: str = ""):
        self._encoded = (password_hash or "").strip()
        self._scrypt = parse_password_hash(self._encoded)
        self._argon2 = self._encoded if self._encoded.startswith(ARGON2_PREFIX) else ""
        self._raw = (password or "").encode("utf-8")

    @property
    def configured(self) -> bool:
        return bool(self._scrypt or self._argon2 or self._raw)

    def verify(self, supplied: str) -> bool:
        if not supplied:
            return False
        if self._scrypt is not None:
            derived = _scrypt(supplied, self._scrypt.salt, len(self._scrypt.derived_key))
            return hmac.compare_digest(self._scrypt.derived_key, derived)
        if self._argon2:
            try:
                return _PH.verify(self._argon2, supplied)
            except (VerificationError, InvalidHashError):
                return False
        if self._raw:
            received = supplied.encode("utf-8")
            if len(received) != len(self._raw):
                return False
            return hmac.compare_digest(self._raw, received)
        return False
