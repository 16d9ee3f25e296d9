from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass
from typing import List, Protocol

from .config import Settings

logger = logging.getLogger(__name__)


class MailError(Exception):
    """Raised when mail sending fails."""


class MailSender(Protocol):
    provider: str

    def send(self, from_addr: str, recipients: List[str], message: bytes) -> None: ...


@dataclass(frozen=True)
class MailConfig:
    hostname: str
    port: int
    username: str = ""
    password: str = ""
    timeout: float = 20.0


class SMTPMailer:
    provider = "smtp"

    def __init__(self, config: MailConfig, smtp_factory=smtplib.SMTP):
        self._config = config
        self._smtp_factory = smtp_factory

    def send(self, from_addr: str, recipients: List[str], message: bytes) -> None:
        cfg = self._config
        logger.info("Sending email to %s via %s:%s", ",".join(recipients), cfg.hostname, cfg.port)
        try:
            with self._smtp_factory(cfg.hostname, cfg.port, timeout=cfg.timeout) as smtp:
                smtp.ehlo()
                if smtp.has_extn("starttls"):
                    smtp.starttls()
                    smtp.ehlo()
                if cfg.username:
                    smtp.login(cfg.username, cfg.password)
                refused = smtp.sendmail(from_addr, recipients, message)
        except (smtplib.SMTPException, OSError) as exc:
            raise MailError(f"Failed to send email: {exc}") from exc
        if refused:
            logger.warning("Some recipients were refused: %s", sorted(refused))
        logger.info("Mail sent to %s recipient(s)", len(recipients) - len(refused))


def build_mailer(settings: Settings) -> MailSender:
    if not settings.email_hostname:
        raise MailError("No mail server configured: set EMAIL_HOSTNAME.")
    config = MailConfig(
        hostname=settings.email_hostname,
        port=settings.email_port,
        username=settings.email_username,
        password=settings.email_password,
    )
    return SMTPMailer(config)
