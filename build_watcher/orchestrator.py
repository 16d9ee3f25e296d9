from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional

from . import config
from .badge import render_badge, render_report
from .eligibility import check_badge, check_email
from .email_formatter import render_email
from .mailer import MailError, MailSender, build_mailer
from .metadata import TRIGGER_NAME, lookup
from .models import BuildEvent, RenderError
from .storage import BadgeStore, StorageError
from .utils import utc_now

logger = logging.getLogger(__name__)


@dataclass
class WatchResult:
    email_sent: bool = False
    badge_written: bool = False
    report_written: bool = False
    email_skip_reason: Optional[str] = None
    badge_skip_reason: Optional[str] = None
    errors: List[str] = field(default_factory=list)

    def is_success(self) -> bool:
        return not self.errors


def run(
    settings: config.Settings,
    event: BuildEvent,
    *,
    mailer_factory: Callable[[config.Settings], MailSender] = build_mailer,
    store_factory: Callable[[config.Settings], BadgeStore] = lambda s: BadgeStore(s.badge_bucket),
    now: Optional[datetime] = None,
) -> WatchResult:
    """
    Email a notification and write a badge for event as settings allow.

    The two steps are independent: a failure in one is logged and recorded in
    the result without stopping the other.
    """
    logger.info(
        "Got message about build %s (trigger %s %r) with status %s",
        event.id,
        event.trigger_id,
        lookup(event, TRIGGER_NAME),
        event.status,
    )
    result = WatchResult()
    _email_step(settings, event, result, mailer_factory, now)
    _badge_step(settings, event, result, store_factory)
    return result


def _email_step(
    settings: config.Settings,
    event: BuildEvent,
    result: WatchResult,
    mailer_factory: Callable[[config.Settings], MailSender],
    now: Optional[datetime],
) -> None:
    reason = check_email(settings, event)
    if reason:
        logger.info("Not sending email for build %s: %s", event.id, reason)
        result.email_skip_reason = reason
        return
    try:
        message = render_email(settings, event, now or utc_now())
        mailer = mailer_factory(settings)
        logger.info("Using mail provider=%s", mailer.provider)
        mailer.send(settings.email_from.addr_spec, settings.email_recipient_addrs(), message)
        result.email_sent = True
    except (RenderError, MailError) as exc:
        logger.exception("Failed sending email for build %s: %s", event.id, exc)
        result.errors.append(f"email: {exc}")


def _badge_step(
    settings: config.Settings,
    event: BuildEvent,
    result: WatchResult,
    store_factory: Callable[[config.Settings], BadgeStore],
) -> None:
    reason = check_badge(settings, event)
    if reason:
        logger.info("Not writing badge for build %s: %s", event.id, reason)
        result.badge_skip_reason = reason
        return
    try:
        svg = render_badge(event)
        report = render_report(event) if settings.badge_reports else None
        store = store_factory(settings)
        store.write_badge(event.trigger_id, svg)
        result.badge_written = True
        if report is not None:
            store.write_report(event.trigger_id, report)
            result.report_written = True
    except (RenderError, StorageError) as exc:
        logger.exception("Failed writing badge for build %s: %s", event.id, exc)
        result.errors.append(f"badge: {exc}")
