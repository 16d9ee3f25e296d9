from __future__ import annotations

import base64
import binascii
import json
from datetime import datetime
from typing import Any, Mapping, Optional, Union

from .metadata import SubstitutionMetadata, metadata_from
from .models import STATUS_UNKNOWN, BuildEvent
from .utils import parse_timestamp


class EventDecodeError(ValueError):
    """Raised when an inbound build message can't be decoded."""


def decode_pubsub_message(message: Mapping[str, Any]) -> BuildEvent:
    """Decode a Pub/Sub message whose base64 "data" holds a Cloud Build resource."""
    data = message.get("data")
    if not data:
        raise EventDecodeError("Pub/Sub message has no data")
    try:
        raw = base64.b64decode(data, validate=True)
    except (binascii.Error, TypeError, ValueError) as exc:
        raise EventDecodeError(f"Pub/Sub data isn't base64: {exc}") from exc
    return decode_build(raw)


def decode_build(data: Union[bytes, str, Mapping[str, Any]]) -> BuildEvent:
    """
    Build a BuildEvent from a Cloud Build resource in its JSON form.

    Unknown fields are ignored and missing ones are left empty. Substitutions
    are used for metadata when present; otherwise tags are.
    """
    if isinstance(data, Mapping):
        raw = data
    else:
        try:
            raw = json.loads(data)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise EventDecodeError(f"Build data isn't JSON: {exc}") from exc
    if not isinstance(raw, Mapping):
        raise EventDecodeError("Build data isn't a JSON object")

    substitutions = raw.get("substitutions")
    tags = raw.get("tags")
    if isinstance(substitutions, Mapping) and substitutions:
        metadata = metadata_from({str(k): str(v) for k, v in substitutions.items()})
    elif isinstance(tags, list) and tags:
        metadata = metadata_from([str(t) for t in tags])
    else:
        metadata = SubstitutionMetadata()

    return BuildEvent(
        id=_str(raw, "id"),
        project_id=_str(raw, "projectId"),
        trigger_id=_str(raw, "buildTriggerId"),
        status=_str(raw, "status") or STATUS_UNKNOWN,
        log_url=_str(raw, "logUrl"),
        start_time=_timestamp(raw, "startTime"),
        finish_time=_timestamp(raw, "finishTime"),
        metadata=metadata,
    )


def _str(raw: Mapping[str, Any], key: str) -> str:
    value = raw.get(key)
    return "" if value is None else str(value)


def _timestamp(raw: Mapping[str, Any], key: str) -> Optional[datetime]:
    value = raw.get(key)
    if not value:
        return None
    try:
        return parse_timestamp(str(value))
    except ValueError as exc:
        raise EventDecodeError(f"bad {key}: {exc}") from exc
