from dataclasses import replace

import pytest

from resumail.auth.errors import ConfigurationError
from resumail.config import Settings


def _env(resume_file, **extra):
    env = {
        "SESSION_SECRET": "sig",
        "ADMIN_PASSWORD": "pw",
        "SMTP_HOST": "smtp.example.test",
        "SMTP_USER": "me@example.test",
        "SMTP_PASS": "pass",
        "RESUME_FILE_PATH": str(resume_file),
    }
    env.update(extra)
    return env


def test_from_env_defaults(resume_file):
    s = Settings.from_env(_env(resume_file))
    assert s.port == 8787
    assert s.auth_mode == "session"
    assert s.email_provider == "smtp"
    assert s.smtp_port == 465
    assert s.smtp_secure is True
    assert s.from_name == "Portfolio"
    assert s.from_email == "me@example.test"
    assert s.session_ttl_seconds == 8 * 60 * 60
    assert s.cookie_name == "admin_session"
    assert s.allowed_origins == ()
    assert s.forwarded_allow_ips == "127.0.0.1"
    assert not s.is_production
    assert s.validate() is s


def test_from_env_parses_values(resume_file):
    s = Settings.from_env(_env(
        resume_file,
        PORT="9000",
        NODE_ENV="Production",
        ALLOWED_ORIGINS=" https://a.example , ,https://b.example",
        SMTP_SECURE="false",
        AUTH_MODE="API_KEY",
        API_KEY=" key ",
        FORWARDED_ALLOW_IPS="10.0.0.5",
    ))
    assert s.forwarded_allow_ips == "10.0.0.5"
    assert s.port == 9000
    assert s.is_production
    assert s.allowed_origins == ("https://a.example", "https://b.example")
    assert s.smtp_secure is False
    assert s.auth_mode == "api_key"
    assert s.api_key == "key"


def test_non_integer_port_is_configuration_error(resume_file):
    with pytest.raises(ConfigurationError):
        Settings.from_env(_env(resume_file, PORT="eighty"))


@pytest.mark.parametrize("changes", [
    {"session_secret": ""},
    {"admin_password": ""},
    {"admin_password_hash": "md5$abc"},
    {"admin_password": "", "admin_password_hash": "$argon2id$garbage"},
    {"session_ttl_seconds": 0},
    {"auth_mode": "api_key"},
    {"auth_mode": "oauth"},
    {"smtp_pass": ""},
    {"email_provider": "brevo"},
    {"email_provider": "sendgrid"},
    {"resume_file_path": ""},
    {"resume_file_path": "/nonexistent/resume.pdf"},
])
def test_validate_rejects_incomplete_config(settings, changes):
    with pytest.raises(ConfigurationError):
        replace(settings, **changes).validate()


def test_api_key_mode_does_not_need_session_secrets(api_key_settings):
    assert api_key_settings.validate() is api_key_settings


def test_brevo_provider_does_not_need_smtp(settings):
    s = replace(settings, email_provider="brevo", brevo_api_key="b", smtp_host="", smtp_user="", smtp_pass="")
    assert s.validate() is s
