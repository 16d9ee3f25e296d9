"""Developer tools for previewing badges, reports and notification emails."""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from datetime import timedelta
from pathlib import Path

from .badge import BADGE_STYLES, render_badge, render_report
from .config import Settings, parse_address
from .email_formatter import render_email
from .metadata import SubstitutionMetadata
from .models import FAILURE, SUCCESS, BuildEvent, RenderError
from .utils import utc_now

logger = logging.getLogger(__name__)


def _sample_build(status: str) -> BuildEvent:
    now = utc_now()
    return BuildEvent(
        id="12345-67890",
        project_id="project-id",
        trigger_id="trigger-id",
        status=status,
        log_url="https://www.example.org/",
        start_time=now - timedelta(minutes=3, seconds=41),
        finish_time=now,
        metadata=SubstitutionMetadata(
            {
                "BRANCH_NAME": "branch-name",
                "COMMIT_SHA": "commit-sha",
                "REPO_NAME": "repo-name",
                "TRIGGER_NAME": "trigger-name",
            }
        ),
    )


def _badge(args: argparse.Namespace) -> int:
    build = _sample_build(args.status)
    path = Path(args.output)
    try:
        path.write_bytes(render_badge(build))
        if args.report:
            # The report sits beside the image with an .html extension.
            path.with_suffix(".html").write_bytes(render_report(build))
    except (RenderError, OSError) as exc:
        logger.error("Failed writing badge: %s", exc)
        return 1
    return 0


def _email(args: argparse.Namespace) -> int:
    try:
        settings = replace(
            Settings(),
            email_from=parse_address(args.from_addr),
            email_recipients=(parse_address(args.to_addr),),
        )
    except ValueError as exc:
        logger.error("Bad email address: %s", exc)
        return 2
    try:
        message = render_email(settings, _sample_build(args.status))
    except RenderError as exc:
        logger.error("Failed building email: %s", exc)
        return 1
    # Pipe into e.g. "sendmail <to>" to deliver it.
    sys.stdout.buffer.write(message)
    sys.stdout.buffer.flush()
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Preview build-watcher output.")
    sub = parser.add_subparsers(dest="command", required=True)

    badge = sub.add_parser("badge", help="write an SVG badge image to a path")
    badge.add_argument("output")
    badge.add_argument("--status", default=SUCCESS, choices=sorted(BADGE_STYLES))
    badge.add_argument("--report", action="store_true", help="also write an .html report beside the image")
    badge.set_defaults(func=_badge)

    email = sub.add_parser("email", help="write an example notification message to stdout")
    email.add_argument("to_addr", metavar="to")
    email.add_argument("--from", dest="from_addr", required=True)
    email.add_argument("--status", default=FAILURE)
    email.set_defaults(func=_email)

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
