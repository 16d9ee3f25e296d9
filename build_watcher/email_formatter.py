from __future__ import annotations

import hashlib
from datetime import datetime, tzinfo
from email.message import EmailMessage, MIMEPart
from email.policy import SMTP
from email.utils import format_datetime
from html import escape
from typing import List, Optional, Tuple

from .config import TRIGGER_URL_PREFIX, Settings
from .metadata import BRANCH, COMMIT, REPO, TRIGGER_NAME, lookup
from .models import BuildEvent, RenderContext, RenderError
from .utils import build_duration, format_duration, or_epoch, utc_now

UNKNOWN_TRIGGER = "[unknown]"


def format_datetime_tz(dt: Optional[datetime], tz: tzinfo) -> str:
    # e.g. "Sat, 11 Dec 2021 14:42:31 -0500"
    return format_datetime(or_epoch(dt).astimezone(tz))


def build_email_subject(event: BuildEvent) -> str:
    trigger = lookup(event, TRIGGER_NAME) or event.trigger_id or UNKNOWN_TRIGGER
    return f"[{event.project_id}] {trigger} {event.status} (build {event.short_id()})"


def build_render_context(settings: Settings, event: BuildEvent) -> RenderContext:
    tz = settings.email_time_zone
    trigger_name = lookup(event, TRIGGER_NAME)
    return RenderContext(
        build_id=event.id,
        log_url=event.log_url,
        trigger_id=event.trigger_id,
        trigger_name=trigger_name,
        trigger_display=trigger_name or event.trigger_id,
        trigger_url=TRIGGER_URL_PREFIX + event.trigger_id,
        status=event.status,
        repo=lookup(event, REPO),
        commit=lookup(event, COMMIT),
        branch=lookup(event, BRANCH),
        start=format_datetime_tz(event.start_time, tz),
        end=format_datetime_tz(event.finish_time, tz),
        duration=format_duration(build_duration(event.start_time, event.finish_time)),
        subject=build_email_subject(event),
    )


def build_email_body(ctx: RenderContext) -> Tuple[str, str]:
    """Return the plain-text and HTML bodies for ctx."""
    # (label, value, optional, link)
    rows: List[Tuple[str, str, bool, str]] = [
        ("Build", ctx.build_id, False, ctx.log_url),
        ("Trigger", ctx.trigger_display if ctx.trigger_id else "", True, ctx.trigger_url),
        ("Status", ctx.status, False, ""),
        ("Repo", ctx.repo, True, ""),
        ("Commit", ctx.commit, True, ""),
        ("Branch", ctx.branch, True, ""),
        ("Start", ctx.start, False, ""),
        ("End", f"{ctx.end} ({ctx.duration})", False, ""),
    ]
    shown = [(label, value, link) for label, value, optional, link in rows if value or not optional]

    lines = [f"{label + ':':<10} {value}" for label, value, _ in shown]
    lines.append(f"{'Log:':<10} {ctx.log_url}")

    html_parts = [
        """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<style>
body {
  font-family: Arial, Helvetica, sans-serif;
}
table {
  border-spacing: 0;
}
td.left {
  font-weight: bold;
  padding-right: 1em;
}
</style>
</head>
<body>
<table>"""
    ]
    for label, value, link in shown:
        cell = escape(value)
        if link:
            cell = f'<a href="{escape(link)}">{cell}</a>'
        html_parts.append(f'  <tr><td class="left">{label}</td><td>{cell}</td></tr>')
    html_parts.append("</table>\n</body>\n</html>")

    return "\n".join(lines) + "\n", "\n".join(html_parts) + "\n"


def render_email(settings: Settings, event: BuildEvent, now: Optional[datetime] = None) -> bytes:
    """
    Render a multipart/alternative notification describing event.

    now is used for the Date header and defaults to the current time; the rest
    of the message depends only on settings and event.
    """
    if settings.email_from is None:
        raise RenderError("no from-address configured")

    ctx = build_render_context(settings, event)
    text_body, html_body = build_email_body(ctx)
    date = (now or utc_now()).astimezone(settings.email_time_zone)

    msg = EmailMessage(policy=SMTP)
    try:
        # Header values may come from free-text build metadata; CR or LF raises ValueError.
        msg["From"] = settings.email_from
        msg["To"] = ", ".join(settings.email_recipient_addrs())
        msg["Subject"] = ctx.subject
        msg["Date"] = format_datetime(date)
        msg["MIME-Version"] = "1.0"
        msg.make_alternative(boundary=_boundary(text_body, html_body))
        for subtype, body in (("plain", text_body), ("html", html_body)):
            part = MIMEPart(policy=SMTP)
            part.set_content(body, subtype=subtype, charset="utf-8", cte="8bit")
            part.replace_header("Content-Type", f"text/{subtype}; charset=UTF-8")
            msg.attach(part)
        return msg.as_bytes()
    except (ValueError, TypeError, LookupError) as exc:
        raise RenderError(f"assembling message: {exc}") from exc


def _boundary(*parts: str) -> str:
    digest = hashlib.sha256()
    for part in parts:
        digest.update(part.encode("utf-8"))
    return "build-watcher-" + digest.hexdigest()[:32]
