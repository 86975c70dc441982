# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import hmac
from typing import Optional

API_KEY_HEADER = "x-api-key"


class ApiKeyGate:
    """Static shared-key check. Without a configured key nothing passes."""

    def __init__(self, api_key: str = ""):
        self._key = (api_key or "").encode("utf-8")

    @property
    def configured(self) -> bool:
        return bool(self._key)

    def check(self, provided: Optional[str]) -> bool:
        if not self._key or not provided:
            return False
        return hmac.compare_digest(self._key, provided.encode("utf-8"))
