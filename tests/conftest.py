import sys
from pathlib import Path as _Path
sys.path.insert(0, str(_Path(__file__).resolve().parents[1] / "src"))

from dataclasses import replace
from pathlib import Path
from typing import List, Tuple

import pytest

from resumail.config import Settings


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingMailer:
    def __init__(self):
        self.sent: List[Tuple[str, str]] = []

    def send(self, to_email: str, to_name: str) -> str:
        self.sent.append((to_email, to_name))
        return f"<msg-{len(self.sent)}@test>"


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def resume_file(tmp_path: Path) -> Path:
    p = tmp_path / "resume.pdf"
    p.write_bytes(b"%PDF-1.4\n% fake resume\n")
    return p


@pytest.fixture()
def settings(resume_file: Path) -> Settings:
    """Valid session-mode settings with a raw admin password and SMTP transport."""
    return Settings(
        session_secret="test-signing-secret",
        admin_password="correct horse",
        smtp_host="smtp.example.test",
        smtp_user="me@example.test",
        smtp_pass="smtp-pass",
        from_email="me@example.test",
        resume_file_path=str(resume_file),
    )


@pytest.fixture()
def api_key_settings(settings: Settings) -> Settings:
    return replace(settings, auth_mode="api_key", session_secret="", admin_password="", api_key="k-123456")


@pytest.fixture()
def mailer() -> RecordingMailer:
    return RecordingMailer()
