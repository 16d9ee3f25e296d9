from __future__ import annotations

from fnmatch import fnmatchcase
from typing import Optional

from .badge import BADGE_STYLES
from .config import Settings
from .metadata import TRIGGER_NAME, lookup
from .models import BuildEvent


def check_email(settings: Settings, event: BuildEvent) -> Optional[str]:
    """
    Return None if a notification should be emailed for event, or the reason
    it shouldn't.
    """
    if not settings.email_hostname:
        return "EMAIL_HOSTNAME not set"
    if settings.email_port <= 0:
        return "EMAIL_PORT not set"
    if settings.email_from is None:
        return "EMAIL_FROM not set"
    if not settings.email_recipients:
        return "EMAIL_RECIPIENTS not set"

    if settings.email_trigger_ids or settings.email_trigger_names:
        name = lookup(event, TRIGGER_NAME)
        if not (
            event.trigger_id in settings.email_trigger_ids
            or name in settings.email_trigger_names
            or _glob_matches(settings.email_trigger_names, name)
        ):
            return (
                f"trigger {event.trigger_id} ({name!r}) not matched by "
                "EMAIL_BUILD_TRIGGER_IDS or EMAIL_BUILD_TRIGGER_NAMES"
            )

    if event.status not in settings.email_statuses:
        return f"status {event.status!r} not matched by EMAIL_BUILD_STATUSES"
    return None


def check_badge(settings: Settings, event: BuildEvent) -> Optional[str]:
    """Return None if a badge should be written for event, or the reason it shouldn't."""
    if not settings.badge_bucket:
        return "BADGE_BUCKET not set"
    if not event.trigger_id:
        return "build not started by a trigger"
    if event.status not in BADGE_STYLES:
        return f"non-badge status {event.status!r}"
    return None


def _glob_matches(patterns: frozenset[str], name: str) -> bool:
    return any(_match(pattern, name) for pattern in sorted(patterns))


def _match(pattern: str, name: str) -> bool:
    """Shell-style match where wildcards stop at "/" and a malformed pattern matches nothing."""
    pattern_parts = pattern.split("/")
    name_parts = name.split("/")
    if len(pattern_parts) != len(name_parts):
        return False
    if not all(_well_formed(p) for p in pattern_parts):
        return False
    return all(fnmatchcase(n, p) for n, p in zip(name_parts, pattern_parts))


def _well_formed(pattern: str) -> bool:
    # Every "[" must open a class closed by a later "]"; a leading "]" or "!]" is a member.
    i = 0
    while i < len(pattern):
        if pattern[i] != "[":
            i += 1
            continue
        j = i + 1
        if pattern.startswith("!", j):
            j += 1
        if pattern.startswith("]", j):
            j += 1
        end = pattern.find("]", j)
        if end < 0:
            return False
        i = end + 1
    return True
