"""
Lookup of named values attached to a build.

Builds carry extra data either as a substitution mapping
(``{"TRIGGER_NAME": "deploy"}``) or as a list of tags where the value is
encoded after a name prefix (``["trigger-name-deploy"]``). Callers ask for a
logical field and never care which shape the build uses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Mapping, Protocol, Tuple, Union

if TYPE_CHECKING:
    from .models import BuildEvent


@dataclass(frozen=True)
class MetadataField:
    substitution: str  # key in the substitution mapping
    tag: str  # tag prefix, without the trailing "-"


TRIGGER_NAME = MetadataField("TRIGGER_NAME", "trigger-name")
COMMIT = MetadataField("COMMIT_SHA", "commit")
BRANCH = MetadataField("BRANCH_NAME", "branch")
REPO = MetadataField("REPO_NAME", "repo")


class Metadata(Protocol):
    def get(self, name: MetadataField, default: str = "") -> str: ...


@dataclass(frozen=True)
class SubstitutionMetadata:
    values: Mapping[str, str] = field(default_factory=dict)

    def get(self, name: MetadataField, default: str = "") -> str:
        return self.values.get(name.substitution, default)


@dataclass(frozen=True)
class TagMetadata:
    # Tags must match ^[\w][\w.-]{0,127}$, so values can't contain arbitrary text.
    tags: Tuple[str, ...] = ()

    def get(self, name: MetadataField, default: str = "") -> str:
        prefix = name.tag + "-"
        for tag in self.tags:
            if tag.startswith(prefix):
                return tag[len(prefix):]
        return default


def metadata_from(carrier: Union[Mapping[str, str], Tuple[str, ...], list, None]) -> Metadata:
    if carrier is None:
        return SubstitutionMetadata()
    if isinstance(carrier, Mapping):
        return SubstitutionMetadata(dict(carrier))
    return TagMetadata(tuple(carrier))


def lookup(event: "BuildEvent", name: MetadataField, default: str = "") -> str:
    """Return the value of ``name`` attached to ``event``, or ``default``."""
    return event.metadata.get(name, default)
