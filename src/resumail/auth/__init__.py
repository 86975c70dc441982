# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Authentication helpers.

This package provides:
- Admin password verification (scrypt descriptors, argon2 hashes, raw secret)
- Signed, expiring admin session tokens (itsdangerous)
- Static API key gate
- Authenticator variants (session cookie / API key) selected at startup
"""

from resumail.auth.errors import AuthenticationFailure, ConfigurationError, FailureReason

__all__ = ["AuthenticationFailure", "ConfigurationError", "FailureReason"]
