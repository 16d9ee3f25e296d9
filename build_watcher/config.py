from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from email.errors import HeaderParseError
from email.headerregistry import Address
from email.policy import default as default_policy
from typing import Callable, List, Mapping, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .models import BUILD_STATUSES, FAILURE, INTERNAL_ERROR, TIMEOUT

# --------------------------------
# Settings

DEFAULT_EMAIL_PORT = "25"
DEFAULT_TIME_ZONE = "Etc/UTC"
DEFAULT_EMAIL_STATUSES = f"{FAILURE},{INTERNAL_ERROR},{TIMEOUT}"

# Cache directive applied to badge and report objects
BADGE_CACHE_CONTROL = "no-cache"

# Cloud Build console page for editing a trigger
TRIGGER_URL_PREFIX = "https://console.cloud.google.com/cloud-build/triggers/edit/"
# --------------------------------

_LIST_RE = re.compile(r"\s*,\s*")
_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class ConfigError(ValueError):
    """Raised when a setting cannot be parsed."""


def parse_address(value: str) -> Address:
    addresses = parse_address_list(value)
    if len(addresses) != 1:
        raise ValueError(f"expected one address, got {len(addresses)}")
    return addresses[0]


def parse_address_list(value: str) -> Tuple[Address, ...]:
    try:
        header = default_policy.header_factory("To", value)
    except (HeaderParseError, IndexError) as exc:
        raise ValueError(str(exc)) from exc
    if header.defects:
        raise ValueError(str(header.defects[0]))
    addresses = tuple(header.addresses)
    if not addresses:
        raise ValueError("no address")
    for addr in addresses:
        if not addr.username or not addr.domain:
            raise ValueError(f"missing local part or domain in {addr.addr_spec!r}")
    return addresses


@dataclass(frozen=True)
class Settings:
    email_hostname: str = ""
    email_port: int = 25
    email_username: str = ""
    email_password: str = ""
    email_from: Optional[Address] = None
    email_recipients: Tuple[Address, ...] = ()
    email_time_zone: ZoneInfo = field(default_factory=lambda: ZoneInfo(DEFAULT_TIME_ZONE))
    email_trigger_ids: frozenset[str] = frozenset()
    email_trigger_names: frozenset[str] = frozenset()
    email_statuses: frozenset[str] = frozenset({FAILURE, INTERNAL_ERROR, TIMEOUT})
    badge_bucket: str = ""
    badge_reports: bool = False

    def email_recipient_addrs(self) -> List[str]:
        return [addr.addr_spec for addr in self.email_recipients]

    @staticmethod
    def from_env() -> "Settings":
        return Settings.load(os.environ)

    @staticmethod
    def load(source: Mapping[str, str]) -> "Settings":
        """
        Build settings from NAME=value pairs (normally the environment).

        Primitive values are all parsed before the first failure among them is
        raised; malformed addresses, time zones and statuses raise immediately.
        """
        errors: List[str] = []

        def str_var(name: str, default: str = "") -> str:
            value = (source.get(name) or "").strip()
            return value or default

        def parsed_var(name: str, default: str, parse: Callable[[str], object]):
            raw = str_var(name, default)
            try:
                return parse(raw)
            except ValueError as exc:
                errors.append(f"bad {name}: {exc}")
                return None

        def list_var(name: str, default: str = "") -> frozenset[str]:
            raw = str_var(name, default)
            if not raw:
                return frozenset()
            return frozenset(_LIST_RE.split(raw))

        port = parsed_var("EMAIL_PORT", DEFAULT_EMAIL_PORT, int)
        badge_reports = parsed_var("BADGE_REPORTS", "false", _parse_bool)
        if errors:
            raise ConfigError(errors[0])

        email_from = None
        if raw_from := str_var("EMAIL_FROM"):
            try:
                email_from = parse_address(raw_from)
            except ValueError as exc:
                raise ConfigError(f"bad EMAIL_FROM: {exc}") from exc

        recipients: Tuple[Address, ...] = ()
        if raw_recipients := str_var("EMAIL_RECIPIENTS"):
            try:
                recipients = parse_address_list(raw_recipients)
            except ValueError as exc:
                raise ConfigError(f"bad EMAIL_RECIPIENTS: {exc}") from exc

        tz_name = str_var("EMAIL_TIME_ZONE", DEFAULT_TIME_ZONE)
        try:
            time_zone = ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ConfigError(f"bad EMAIL_TIME_ZONE: unknown time zone {tz_name!r}") from exc

        statuses = list_var("EMAIL_BUILD_STATUSES", DEFAULT_EMAIL_STATUSES)
        for status in sorted(statuses):
            if status not in BUILD_STATUSES:
                raise ConfigError(f"bad status {status!r} in EMAIL_BUILD_STATUSES")

        return Settings(
            email_hostname=str_var("EMAIL_HOSTNAME"),
            email_port=port,
            email_username=str_var("EMAIL_USERNAME"),
            email_password=str_var("EMAIL_PASSWORD"),
            email_from=email_from,
            email_recipients=recipients,
            email_time_zone=time_zone,
            email_trigger_ids=list_var("EMAIL_BUILD_TRIGGER_IDS"),
            email_trigger_names=list_var("EMAIL_BUILD_TRIGGER_NAMES"),
            email_statuses=statuses,
            badge_bucket=str_var("BADGE_BUCKET"),
            badge_reports=badge_reports,
        )


def _parse_bool(value: str) -> bool:
    lowered = value.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"invalid boolean {value!r}")
