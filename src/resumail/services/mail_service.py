# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Resume email dispatch (SMTP or Brevo transactional API)."""

from __future__ import annotations

import base64
import logging
import mimetypes
import re
import smtplib
import ssl
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import formataddr, formatdate, make_msgid
from pathlib import Path
from typing import Optional, Protocol, Tuple

import requests

from resumail.config import EMAIL_PROVIDER_BREVO, Settings

logger = logging.getLogger(__name__)

BREVO_SEND_URL = "https://api.brevo.com/v3/smtp/email"
SUBJECT = "Your requested resume"
MAX_NAME_LENGTH = 120
SEND_TIMEOUT_SECONDS = 30

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class MailDeliveryError(Exception):
    pass


def is_valid_email(value: str) -> bool:
    return bool(_EMAIL_RE.match(str(value or "").strip()))


def normalize_recipient(to_email: str, to_name: str) -> Tuple[str, str]:
    """Lower-case the address and fall back to a friendly greeting name."""
    email = str(to_email or "").strip().lower()
    name = str(to_name or "").strip()[:MAX_NAME_LENGTH] or "there"
    return email, name


def build_text(to_name: str, from_name: str) -> str:
    return (
        f"Hi {to_name},\n\n"
        "Thanks for your interest. Please find my resume attached.\n\n"
        f"Best regards,\n{from_name}"
    )


@dataclass(frozen=True)
class ResumeAttachment:
    filename: str
    content: bytes
    content_type: str

    @classmethod
    def load(cls, path: Path) -> "ResumeAttachment":
        ctype, _ = mimetypes.guess_type(path.name)
        return cls(
            filename=path.name,
            content=path.read_bytes(),
            content_type=ctype or "application/pdf",
        )

    @property
    def base64(self) -> str:
        return base64.b64encode(self.content).decode("ascii")


class Mailer(Protocol):
    def send(self, to_email: str, to_name: str) -> str: ...


class SmtpMailer:
    def __init__(self, settings: Settings, attachment: ResumeAttachment):
        self.settings = settings
        self.attachment = attachment

    def build_message(self, to_email: str, to_name: str) -> EmailMessage:
        s = self.settings
        msg = EmailMessage()
        msg["From"] = formataddr((s.from_name, s.from_email))
        msg["To"] = to_email
        msg["Subject"] = SUBJECT
        msg["Date"] = formatdate(localtime=True)
        domain = s.from_email.rpartition("@")[2] or None
        msg["Message-ID"] = make_msgid(domain=domain)
        msg.set_content(build_text(to_name, s.from_name))
        maintype, _, subtype = self.attachment.content_type.partition("/")
        msg.add_attachment(
            self.attachment.content,
            maintype=maintype,
            subtype=subtype or "octet-stream",
            filename=self.attachment.filename,
        )
        return msg

    def _connect(self) -> smtplib.SMTP:
        s = self.settings
        context = ssl.create_default_context()
        if s.smtp_secure:
            return smtplib.SMTP_SSL(s.smtp_host, s.smtp_port, context=context, timeout=SEND_TIMEOUT_SECONDS)
        client = smtplib.SMTP(s.smtp_host, s.smtp_port, timeout=SEND_TIMEOUT_SECONDS)
        client.ehlo()
        if client.has_extn("starttls"):
            client.starttls(context=context)
            client.ehlo()
        return client

    def send(self, to_email: str, to_name: str) -> str:
        msg = self.build_message(to_email, to_name)
        try:
            with self._connect() as client:
                client.login(self.settings.smtp_user, self.settings.smtp_pass)
                client.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise MailDeliveryError(f"SMTP send failed: {e}") from e
        return str(msg["Message-ID"])


class BrevoMailer:
    def __init__(self, settings: Settings, attachment: ResumeAttachment, session: Optional[requests.Session] = None):
        self.settings = settings
        self.attachment = attachment
        self.http = session or requests.Session()

    def build_payload(self, to_email: str, to_name: str) -> dict:
        s = self.settings
        return {
            "sender": {"name": s.from_name, "email": s.from_email},
            "to": [{"email": to_email, "name": to_name}],
            "subject": SUBJECT,
            "textContent": build_text(to_name, s.from_name),
            "attachment": [{"name": self.attachment.filename, "content": self.attachment.base64}],
        }

    def send(self, to_email: str, to_name: str) -> str:
        try:
            r = self.http.post(
                BREVO_SEND_URL,
                headers={"Content-Type": "application/json", "api-key": self.settings.brevo_api_key},
                json=self.build_payload(to_email, to_name),
                timeout=SEND_TIMEOUT_SECONDS,
            )
        except requests.RequestException as e:
            raise MailDeliveryError(f"Brevo request failed: {e}") from e
        if not r.ok:
            raise MailDeliveryError(r.text or "Brevo send failed")
        try:
            data = r.json()
        except ValueError:
            data = {}
        return str((data or {}).get("messageId") or "sent")


def build_mailer(settings: Settings) -> Mailer:
    attachment = ResumeAttachment.load(settings.resume_path)
    if settings.email_provider == EMAIL_PROVIDER_BREVO:
        return BrevoMailer(settings, attachment)
    return SmtpMailer(settings, attachment)


def send_resume(mailer: Mailer, to_email: str, to_name: str) -> str:
    """Validate the recipient and send. Raises ValueError for a bad address."""
    email, name = normalize_recipient(to_email, to_name)
    if not is_valid_email(email):
        raise ValueError("Invalid recipient email")
    message_id = mailer.send(email, name)
    logger.info("Resume sent (message id %s)", message_id)
    return message_id
