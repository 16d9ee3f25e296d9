from __future__ import annotations

import argparse
import logging
import sys
from typing import Any, Mapping, Optional

from build_watcher import config
from build_watcher.events import EventDecodeError, decode_build, decode_pubsub_message
from build_watcher.orchestrator import run


def watch_builds(event: Mapping[str, Any], context: Optional[Any] = None) -> None:
    """Cloud Function entry point for Pub/Sub messages published by Cloud Build."""
    try:
        settings = config.Settings.from_env()
    except config.ConfigError as exc:
        raise RuntimeError(f"failed loading config: {exc}") from exc
    build = decode_pubsub_message(event)
    run(settings, build)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Send notifications and badges for a Cloud Build build.")
    parser.add_argument("build_json", nargs="?", default="-", help="path to build JSON, or - for stdin")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )
    try:
        settings = config.Settings.from_env()
    except config.ConfigError as exc:
        logging.error("Bad configuration: %s", exc)
        sys.exit(1)

    try:
        if args.build_json == "-":
            data = sys.stdin.buffer.read()
        else:
            with open(args.build_json, "rb") as f:
                data = f.read()
        build = decode_build(data)
    except (OSError, EventDecodeError) as exc:
        logging.error("Failed reading build: %s", exc)
        sys.exit(1)

    result = run(settings, build)
    if not result.is_success():
        logging.error("Build %s handled with errors: %s", build.id, "; ".join(result.errors))
        sys.exit(1)


if __name__ == "__main__":
    main()
