# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, field_validator
from starlette.exceptions import HTTPException as StarletteHTTPException

from resumail.auth.authenticator import SessionAuthenticator, build_authenticator
from resumail.config import Settings
from resumail.permissions import cookie_settings, require_admin
from resumail.ratelimit import API_LIMIT, LOGIN_LIMIT, FixedWindowLimiter
from resumail.services.mail_service import MailDeliveryError, Mailer, build_mailer, send_resume

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
    "Cross-Origin-Resource-Policy": "same-origin",
}

MAX_BODY_BYTES = 32 * 1024


def _coerce_text(value: Any) -> str:
    if value is None or isinstance(value, (dict, list, bool)):
        return ""
    return str(value)


class LoginBody(BaseModel):
    password: str = ""

    @field_validator("password", mode="before")
    @classmethod
    def coerce_password(cls, value: Any) -> str:
        return _coerce_text(value)


class SendResumeBody(BaseModel):
    toEmail: str = ""
    toName: str = ""

    @field_validator("toEmail", "toName", mode="before")
    @classmethod
    def coerce_fields(cls, value: Any) -> str:
        return _coerce_text(value)


def _client_id(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def _body_size_error(request: Request) -> Optional[JSONResponse]:
    """Refuse bodies over MAX_BODY_BYTES before they are read."""
    if request.method not in ("POST", "PUT", "PATCH"):
        return None
    raw = request.headers.get("content-length")
    if raw is None:
        if "chunked" in request.headers.get("transfer-encoding", "").lower():
            return JSONResponse({"error": "Length required"}, status_code=411)
        return None
    try:
        size = int(raw)
    except ValueError:
        return JSONResponse({"error": "Invalid request"}, status_code=400)
    if size > MAX_BODY_BYTES:
        return JSONResponse({"error": "Payload too large"}, status_code=413)
    return None


def create_app(
    settings: Optional[Settings] = None,
    *,
    mailer: Optional[Mailer] = None,
    api_limiter: Optional[FixedWindowLimiter] = None,
    login_limiter: Optional[FixedWindowLimiter] = None,
) -> FastAPI:
    """Build the app. Configuration errors surface here, before serving."""
    settings = (settings or Settings.from_env()).validate()
    authenticator = build_authenticator(settings)
    mailer = mailer or build_mailer(settings)
    api_limiter = api_limiter or FixedWindowLimiter(API_LIMIT)
    login_limiter = login_limiter or FixedWindowLimiter(LOGIN_LIMIT)

    app = FastAPI(title="resumail")
    app.state.settings = settings
    app.state.authenticator = authenticator
    app.state.mailer = mailer

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError):
        # Input is never echoed back.
        return JSONResponse({"error": "Invalid request"}, status_code=400)

    @app.middleware("http")
    async def _security_middleware(request: Request, call_next):
        path = request.url.path
        if path.startswith("/api") and request.method != "OPTIONS":
            cid = _client_id(request)
            limited = not api_limiter.hit(cid)
            if not limited and path == "/api/admin/login":
                limited = not login_limiter.hit(cid)
            size_error = _body_size_error(request)
            if limited:
                logger.warning("Rate limit exceeded for %s on %s", cid, path)
                response = JSONResponse({"error": "Too many requests"}, status_code=429)
            elif size_error is not None:
                response = size_error
            else:
                response = await call_next(request)
        else:
            response = await call_next(request)
        for k, v in SECURITY_HEADERS.items():
            response.headers.setdefault(k, v)
        return response

    # Starlette cannot echo "*" with credentials; an empty allow-list means any origin.
    if settings.allowed_origins:
        cors = {"allow_origins": list(settings.allowed_origins)}
    else:
        cors = {"allow_origin_regex": ".*"}
    app.add_middleware(
        CORSMiddleware,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", settings.api_key_header],
        **cors,
    )

    @app.get("/health")
    def health():
        return {"ok": True, "ts": datetime.now(timezone.utc).isoformat()}

    if isinstance(authenticator, SessionAuthenticator):

        @app.post("/api/admin/login")
        def login(body: Optional[LoginBody] = None):
            token = authenticator.login(body.password if body else "")
            if not token:
                return JSONResponse({"error": "Invalid credentials"}, status_code=401)
            resp = JSONResponse({"ok": True})
            resp.set_cookie(
                settings.cookie_name,
                token,
                max_age=authenticator.codec.ttl_seconds,
                **cookie_settings(settings),
            )
            return resp

        @app.post("/api/admin/logout")
        def logout():
            authenticator.logout()
            resp = JSONResponse({"ok": True})
            resp.delete_cookie(settings.cookie_name, **cookie_settings(settings))
            return resp

    @app.get("/api/admin/me")
    def me(_: bool = Depends(require_admin)):
        return {"ok": True, "authenticated": True}

    @app.post("/api/send-resume")
    def send_resume_route(request: Request, body: Optional[SendResumeBody] = None, _: bool = Depends(require_admin)):
        body = body or SendResumeBody()
        try:
            message_id = send_resume(request.app.state.mailer, body.toEmail, body.toName)
        except ValueError:
            return JSONResponse({"error": "Invalid recipient email"}, status_code=400)
        except MailDeliveryError:
            logger.exception("send-resume error")
            return JSONResponse({"error": "Failed to send resume email"}, status_code=500)
        return {"ok": True, "messageId": message_id}

    logger.debug("App built with %s authenticator", authenticator.mode)
    return app
