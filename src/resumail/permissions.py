# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from fastapi import HTTPException, Request

from resumail.auth.authenticator import Authenticator, RequestCredentials
from resumail.config import Settings

UNAUTHORIZED = "Unauthorized"


def credentials_from_request(request: Request) -> RequestCredentials:
    return RequestCredentials(cookies=request.cookies, headers=request.headers)


def get_authenticator(request: Request) -> Authenticator:
    return request.app.state.authenticator


def require_admin(request: Request) -> bool:
    """Route dependency: every failure reason ends in the same 401."""
    auth = get_authenticator(request)
    if not auth.verify_request(credentials_from_request(request)):
        raise HTTPException(status_code=401, detail=UNAUTHORIZED)
    request.state.authenticated = True
    return True


def cookie_settings(settings: Settings) -> dict:
    secure = settings.is_production
    return {
        "httponly": True,
        "secure": secure,
        "samesite": "none" if secure else "lax",
        "path": "/",
    }
