from __future__ import annotations

# =========================================
# share_utils.py
# Florista - sharing the preview card
# =========================================
# Share port + an SMTP implementation that emails the card as an attachment.
# If sharing is unavailable or fails, callers fall back to a download.
#
# Configuration (Flask app.config or environment variables):
#   SMTP_HOST, SMTP_PORT, SMTP_USER, SMTP_PASS
#   SMTP_USE_TLS (true/false), SMTP_USE_SSL (true/false)
#   FROM_EMAIL (default: SMTP_USER)
#   BCC_EMAIL (optional)
# =========================================

import os
import re
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Optional, Protocol

SHARED = "shared"
DOWNLOAD = "download"

_ADDRESS = re.compile(r"[^\s@,;<>]+@[^\s@,;<>]+\.[^\s@,;<>]+\Z")


class ShareTarget(Protocol):
    def available(self) -> bool: ...

    def share(self, title: str, text: str, filename: str, data: bytes) -> None: ...


@dataclass(frozen=True)
class ShareOutcome:
    action: str
    error: Optional[str] = None

    @property
    def shared(self) -> bool:
        return self.action == SHARED


def _setting(app, key: str, default=None):
    # app.config wins over the environment
    if app is not None and key in app.config:
        return app.config[key]
    return os.getenv(key, default)


def _flag(val) -> bool:
    if isinstance(val, bool):
        return val
    return str(val or "").strip().lower() in {"1", "true", "yes", "y", "on"}


class EmailShareTarget:
    """Shares by emailing the card to `recipient`."""

    def __init__(self, recipient: str, app=None):
        self.recipient = (recipient or "").strip()
        self.host = _setting(app, "SMTP_HOST")
        self.port = int(_setting(app, "SMTP_PORT", 587))
        self.user = _setting(app, "SMTP_USER")
        self.password = _setting(app, "SMTP_PASS")
        self.use_tls = _flag(_setting(app, "SMTP_USE_TLS", True))
        self.use_ssl = _flag(_setting(app, "SMTP_USE_SSL", False))
        self.from_email = _setting(app, "FROM_EMAIL", self.user)
        self.bcc_email = _setting(app, "BCC_EMAIL", None)

    def available(self) -> bool:
        if not (self.host and self.from_email):
            return False
        # one address, no header injection
        return bool(_ADDRESS.match(self.recipient))

    def build_message(self, title: str, text: str, filename: str, data: bytes) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = title
        msg["From"] = self.from_email
        msg["To"] = self.recipient
        if self.bcc_email:
            msg["Bcc"] = self.bcc_email
        msg.set_content(text)
        msg.add_attachment(data, maintype="image", subtype="png", filename=filename)
        return msg

    def _connect(self) -> smtplib.SMTP:
        smtp_cls = smtplib.SMTP_SSL if self.use_ssl else smtplib.SMTP
        return smtp_cls(self.host, self.port)

    def share(self, title: str, text: str, filename: str, data: bytes) -> None:
        if not self.available():
            raise RuntimeError("Email sharing is not configured")
        msg = self.build_message(title, text, filename, data)
        with self._connect() as conn:
            if not self.use_ssl:
                conn.ehlo()
                if self.use_tls:
                    conn.starttls()
                    conn.ehlo()
            if self.user and self.password:
                conn.login(self.user, self.password)
            conn.send_message(msg)


def share_or_download(target: Optional[ShareTarget], title: str, text: str,
                      filename: str, data: bytes) -> ShareOutcome:
    """
    Tries the share target; any unavailability or failure means the caller
    should offer `data` as a download instead.
    """
    if target is None or not target.available():
        return ShareOutcome(DOWNLOAD)
    try:
        target.share(title=title, text=text, filename=filename, data=data)
    except (OSError, RuntimeError, ValueError) as e:
        # smtplib errors are OSError subclasses; bad header values are ValueError
        return ShareOutcome(DOWNLOAD, error=str(e))
    return ShareOutcome(SHARED)
