# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Process configuration.

Everything is read from the environment once at startup into a frozen
``Settings`` object which is then handed to the components that need it.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Tuple

from resumail.auth.errors import ConfigurationError
from resumail.auth.passwords import parse_password_hash

AUTH_MODE_SESSION = "session"
AUTH_MODE_API_KEY = "api_key"

EMAIL_PROVIDER_SMTP = "smtp"
EMAIL_PROVIDER_BREVO = "brevo"

_TRUTHY = {"1", "true", "yes", "y"}


def _get(env: Mapping[str, str], name: str, default: str = "") -> str:
    return str(env.get(name, default) or default).strip()


def _as_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = _get(env, name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got '{raw}'") from e


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 8787
    environment: str = "development"
    allowed_origins: Tuple[str, ...] = ()
    # Proxies whose X-Forwarded-For is trusted for the client address (rate limiting).
    forwarded_allow_ips: str = "127.0.0.1"

    auth_mode: str = AUTH_MODE_SESSION
    session_secret: str = ""
    admin_password_hash: str = ""
    admin_password: str = ""
    session_ttl_seconds: int = 8 * 60 * 60
    cookie_name: str = "admin_session"
    api_key: str = ""
    api_key_header: str = "x-api-key"

    email_provider: str = EMAIL_PROVIDER_SMTP
    smtp_host: str = ""
    smtp_port: int = 465
    smtp_secure: bool = True
    smtp_user: str = ""
    smtp_pass: str = ""
    brevo_api_key: str = ""
    from_name: str = "Portfolio"
    from_email: str = ""
    resume_file_path: str = ""

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def resume_path(self) -> Path:
        return Path(self.resume_file_path).resolve()

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        smtp_user = _get(env, "SMTP_USER")
        origins = tuple(o.strip() for o in _get(env, "ALLOWED_ORIGINS").split(",") if o.strip())
        return cls(
            host=_get(env, "HOST", "0.0.0.0"),
            port=_as_int(env, "PORT", 8787),
            environment=(_get(env, "APP_ENV") or _get(env, "NODE_ENV", "development")).lower(),
            allowed_origins=origins,
            forwarded_allow_ips=_get(env, "FORWARDED_ALLOW_IPS", "127.0.0.1"),
            auth_mode=_get(env, "AUTH_MODE", AUTH_MODE_SESSION).lower(),
            session_secret=_get(env, "SESSION_SECRET"),
            admin_password_hash=_get(env, "ADMIN_PASSWORD_HASH"),
            admin_password=_get(env, "ADMIN_PASSWORD"),
            session_ttl_seconds=_as_int(env, "SESSION_TTL_SECONDS", 8 * 60 * 60),
            api_key=_get(env, "API_KEY"),
            email_provider=_get(env, "EMAIL_PROVIDER", EMAIL_PROVIDER_SMTP).lower(),
            smtp_host=_get(env, "SMTP_HOST"),
            smtp_port=_as_int(env, "SMTP_PORT", 465),
            smtp_secure=_get(env, "SMTP_SECURE", "true").lower() in _TRUTHY,
            smtp_user=smtp_user,
            smtp_pass=_get(env, "SMTP_PASS"),
            brevo_api_key=_get(env, "BREVO_API_KEY"),
            from_name=_get(env, "FROM_NAME", "Portfolio"),
            from_email=_get(env, "FROM_EMAIL") or smtp_user,
            resume_file_path=_get(env, "RESUME_FILE_PATH"),
        )

    def validate(self) -> "Settings":
        """Raise ConfigurationError unless the selected modes can actually run."""
        if self.auth_mode == AUTH_MODE_SESSION:
            if not self.session_secret:
                raise ConfigurationError("Missing SESSION_SECRET.")
            if not self.admin_password_hash and not self.admin_password:
                raise ConfigurationError(
                    "Missing admin password config. Set ADMIN_PASSWORD_HASH (recommended) or ADMIN_PASSWORD."
                )
            parse_password_hash(self.admin_password_hash)
            if self.session_ttl_seconds <= 0:
                raise ConfigurationError("SESSION_TTL_SECONDS must be positive.")
        elif self.auth_mode == AUTH_MODE_API_KEY:
            if not self.api_key:
                raise ConfigurationError("Missing API_KEY for api_key auth mode.")
        else:
            raise ConfigurationError(f"Unknown AUTH_MODE '{self.auth_mode}' (use session or api_key).")

        if self.email_provider == EMAIL_PROVIDER_SMTP:
            if not self.smtp_host or not self.smtp_user or not self.smtp_pass:
                raise ConfigurationError("Missing SMTP configuration. Check SMTP_HOST, SMTP_USER, SMTP_PASS.")
        elif self.email_provider == EMAIL_PROVIDER_BREVO:
            if not self.brevo_api_key:
                raise ConfigurationError("Missing BREVO_API_KEY for brevo provider.")
        else:
            raise ConfigurationError(f"Unknown EMAIL_PROVIDER '{self.email_provider}' (use smtp or brevo).")

        if not self.resume_file_path:
            raise ConfigurationError("Missing RESUME_FILE_PATH.")
        if not self.resume_path.is_file():
            raise ConfigurationError(f"Resume file not found: {self.resume_path}")
        return self
