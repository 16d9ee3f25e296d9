from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .metadata import Metadata, SubstitutionMetadata

# Cloud Build statuses
STATUS_UNKNOWN = "STATUS_UNKNOWN"
PENDING = "PENDING"
QUEUED = "QUEUED"
WORKING = "WORKING"
SUCCESS = "SUCCESS"
FAILURE = "FAILURE"
INTERNAL_ERROR = "INTERNAL_ERROR"
TIMEOUT = "TIMEOUT"
CANCELLED = "CANCELLED"
EXPIRED = "EXPIRED"


class RenderError(Exception):
    """Raised when a notification, badge or report can't be rendered."""


BUILD_STATUSES = frozenset(
    {
        STATUS_UNKNOWN,
        PENDING,
        QUEUED,
        WORKING,
        SUCCESS,
        FAILURE,
        INTERNAL_ERROR,
        TIMEOUT,
        CANCELLED,
        EXPIRED,
    }
)


@dataclass(frozen=True)
class BuildEvent:
    id: str = ""
    project_id: str = ""
    trigger_id: str = ""
    status: str = STATUS_UNKNOWN
    log_url: str = ""
    start_time: Optional[datetime] = None
    finish_time: Optional[datetime] = None
    metadata: Metadata = field(default_factory=SubstitutionMetadata)

    def short_id(self) -> str:
        return self.id.split("-")[0]


@dataclass(frozen=True)
class RenderContext:
    """Display fields shared by the text and HTML parts of a notification."""

    build_id: str
    log_url: str
    trigger_id: str
    trigger_name: str
    trigger_display: str
    trigger_url: str
    status: str
    repo: str
    commit: str
    branch: str
    start: str
    end: str
    duration: str
    subject: str
