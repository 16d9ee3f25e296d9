from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from html import escape

from .models import FAILURE, INTERNAL_ERROR, SUCCESS, TIMEOUT, BuildEvent, RenderError
from .utils import build_duration, format_duration, or_epoch

BADGE_WIDTH = 90
BADGE_HEIGHT = 20

REPORT_TIME_FORMAT = "%Y-%m-%d %H:%M:%S UTC"


@dataclass(frozen=True)
class BadgeStyle:
    text: str
    fg: str  # "#rgb" or "#rrggbb"
    bg: str
    width: int  # pixels

    @property
    def center(self) -> int:
        return self.width // 2


# Width is filled in from the status segment.
BADGE_LEFT = BadgeStyle("build", "#fff", "#555", -1)

# Statuses missing from this table don't get badges.
BADGE_STYLES = {
    SUCCESS: BadgeStyle("success", "#fff", "#2da44e", 52),
    FAILURE: BadgeStyle("failure", "#fff", "#c62828", 52),
    INTERNAL_ERROR: BadgeStyle("error", "#000", "#ffeb3b", 52),
    TIMEOUT: BadgeStyle("timeout", "#fff", "#333", 52),
}

_BADGE_TEMPLATE = """<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}">
  <g font-family="DejaVu Sans,Verdana,Geneva,sans-serif" text-anchor="middle" font-size="10">
    <rect width="{width}" height="{height}" rx="3" fill="{left.bg}" />
    <text x="{left.center}" y="14" fill="{left.fg}">{left.text}</text>
    <g transform="translate({left.width},0)">
      <rect width="{right.width}" height="{height}" rx="3" fill="{right.bg}" />
      <path d="M0 0h4v{height}h-4z" fill="{right.bg}" />
      <text x="{right.center}" y="14" fill="{right.fg}">{right.text}</text>
    </g>
  </g>
</svg>
"""

# Only non-sensitive fields: reports are served from a public bucket.
_REPORT_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>Build {status}</title>
<style>
body {{
  font-family: Arial, Helvetica, sans-serif;
}}
table {{
  border-spacing: 0;
}}
td.left {{
  font-weight: bold;
  padding-right: 1em;
}}
</style>
</head>
<body>
<table>
  <tr><td class="left">Status</td><td>{status}</td></tr>
  <tr><td class="left">Start</td><td>{start}</td></tr>
  <tr><td class="left">End</td><td>{end}</td></tr>
  <tr><td class="left">Duration</td><td>{duration}</td></tr>
</table>
</body>
</html>
"""


def badge_style(status: str) -> BadgeStyle:
    try:
        return BADGE_STYLES[status]
    except KeyError:
        raise RenderError(f"no badge info defined for status {status!r}") from None


def render_badge(event: BuildEvent) -> bytes:
    """Render an SVG badge describing event's status."""
    right = badge_style(event.status)
    left = replace(BADGE_LEFT, width=BADGE_WIDTH - right.width)
    svg = _BADGE_TEMPLATE.format(width=BADGE_WIDTH, height=BADGE_HEIGHT, left=left, right=right)
    return svg.encode("utf-8")


def render_report(event: BuildEvent) -> bytes:
    """Render a minimal HTML page describing event's status and timing."""
    badge_style(event.status)
    html_doc = _REPORT_TEMPLATE.format(
        status=escape(event.status),
        start=_format_report_time(event.start_time),
        end=_format_report_time(event.finish_time),
        duration=format_duration(build_duration(event.start_time, event.finish_time)),
    )
    return html_doc.encode("utf-8")


def _format_report_time(dt: datetime | None) -> str:
    return or_epoch(dt).astimezone(timezone.utc).strftime(REPORT_TIME_FORMAT)
