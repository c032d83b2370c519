"""Email transports: Resend HTTP API, SMTP, and a log-only demo sink.

Every sink reports failure through ``SendResult`` instead of raising, so a
bad send never breaks a notification pass.
"""
from __future__ import annotations

import smtplib
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import requests
from bs4 import BeautifulSoup

from gigscout.config import Settings, get_env
from gigscout.errors import EmailSendError
from gigscout.log import get_logger
from gigscout.models import EmailMessage, SendResult
from gigscout.retry import retry

log = get_logger(__name__)

RESEND_URL = "https://api.resend.com/emails"
_PLACEHOLDER_KEYS = {"", "your-resend-api-key"}
_BLOCK_TAGS = ["p", "div", "tr", "li", "h1", "h2", "h3", "h4", "h5", "h6"]


def html_to_text(html_body: str) -> str:
    """Plain-text alternative for multipart messages, one block per line."""
    soup = BeautifulSoup(html_body or "", "html.parser")
    for br in soup.find_all("br"):
        br.replace_with("\n")
    for tag in soup.find_all(_BLOCK_TAGS):
        tag.append("\n")
    lines = (" ".join(line.split()) for line in soup.get_text().splitlines())
    return "\n".join(line for line in lines if line)


class EmailSink(ABC):
    @abstractmethod
    def send(self, message: EmailMessage) -> SendResult:
        pass


class ResendSink(EmailSink):
    def __init__(self, api_key: str, *, url: str = RESEND_URL, timeout: float = 15) -> None:
        self.api_key = api_key
        self.url = url
        self.timeout = timeout

    def send(self, message: EmailMessage) -> SendResult:
        payload = {
            "from": message.from_addr,
            "to": message.to,
            "subject": message.subject,
            "html": message.html_body,
        }
        if message.reply_to:
            payload["reply_to"] = message.reply_to
        try:
            data = self._post(payload)
        except requests.RequestException as exc:
            log.error("Resend API error: %s", exc)
            return SendResult(success=False, error=str(exc)[:150])
        except EmailSendError as exc:
            log.error("Resend rejected email to %s: %s", message.to, exc)
            return SendResult(success=False, error=str(exc)[:150])

        log.info("Email sent to %s", message.to)
        return SendResult(success=True, provider_message_id=data.get("id"))

    def _post(self, payload: dict) -> dict:
        r = requests.post(
            self.url,
            json=payload,
            headers={"Authorization": f"Bearer {self.api_key}"},
            timeout=self.timeout,
        )
        try:
            data = r.json()
        except ValueError:
            data = {}
        if not r.ok:
            raise EmailSendError(data.get("message") or f"HTTP {r.status_code}")
        return data


@retry(max_attempts=3, base_delay=3.0, retryable=(smtplib.SMTPException, OSError))
def _smtp_send(
    host: str, port: int, user: str, password: str,
    from_addr: str, to_addr: str, msg: MIMEMultipart,
) -> None:
    with smtplib.SMTP(host, port) as server:
        server.starttls()
        server.login(user, password)
        server.sendmail(from_addr, [to_addr], msg.as_string())


class SmtpSink(EmailSink):
    def __init__(self, host: str, port: int, user: str, password: str) -> None:
        self.host = host
        self.port = port
        self.user = user
        self.password = password

    def send(self, message: EmailMessage) -> SendResult:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = message.subject
        msg["From"] = message.from_addr
        msg["To"] = message.to
        if message.reply_to:
            msg["Reply-To"] = message.reply_to
        msg.attach(MIMEText(html_to_text(message.html_body), "plain", "utf-8"))
        msg.attach(MIMEText(message.html_body, "html", "utf-8"))

        try:
            _smtp_send(self.host, self.port, self.user, self.password,
                       message.from_addr, message.to, msg)
        except Exception as e:
            log.error("Email failed: %s", e)
            return SendResult(success=False, error=str(e)[:150])
        log.info("Email sent to %s", message.to)
        return SendResult(success=True, provider_message_id=msg.get("Message-ID"))


class LogSink(EmailSink):
    """Demo mode: nothing leaves the process, the send is only logged."""

    def __init__(self) -> None:
        self.sent: list[EmailMessage] = []

    def send(self, message: EmailMessage) -> SendResult:
        self.sent.append(message)
        log.info(
            "EMAIL SENT (demo mode) to=%s subject=%r preview=%r",
            message.to, message.subject, message.html_body[:200],
        )
        stamp = int(datetime.now(timezone.utc).timestamp() * 1000)
        return SendResult(success=True, provider_message_id=f"demo_{stamp}", demo=True)


def build_sink(settings: Settings) -> EmailSink:
    api_key = get_env("RESEND_API_KEY")
    if api_key not in _PLACEHOLDER_KEYS:
        log.info("Email transport: Resend")
        return ResendSink(api_key, timeout=settings.http_timeout)

    host = get_env("SMTP_HOST")
    user = get_env("SMTP_USER")
    password = get_env("SMTP_PASSWORD")
    if host and user and password:
        try:
            port = int(get_env("SMTP_PORT", "587"))
        except ValueError:
            port = 587
        log.info("Email transport: SMTP %s:%d", host, port)
        return SmtpSink(host, port, user, password)

    log.info("No email transport configured, using demo mode (log only)")
    return LogSink()
