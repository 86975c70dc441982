# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from enum import Enum


class ConfigurationError(Exception):
    """A secret required by the selected auth mode is missing or malformed."""


class FailureReason(str, Enum):
    MISSING_CREDENTIAL = "missing_credential"
    MALFORMED = "malformed"
    BAD_SIGNATURE = "bad_signature"
    WRONG_KIND = "wrong_kind"
    EXPIRED = "expired"
    BAD_PASSWORD = "bad_password"
    BAD_API_KEY = "bad_api_key"


class AuthenticationFailure(Exception):
    """Per-request auth failure.

    The reason is for logs and tests only; callers must answer every
    instance with the same generic unauthorized response.
    """

    def __init__(self, reason: FailureReason):
        super().__init__(reason.value)
        self.reason = reason
