"""Batch entry builder for Cloud Logging write requests."""

from __future__ import annotations

import datetime as _dt
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Sequence

from .config import OutputSettings
from .event import Event

LOG_NAME_PATTERN = "projects/{project}/logs/{log_name}"
RESOURCE_TYPE = "global"

SEVERITY_NAMES = frozenset(
    {
        "DEFAULT",
        "DEBUG",
        "INFO",
        "NOTICE",
        "WARNING",
        "ERROR",
        "CRITICAL",
        "ALERT",
        "EMERGENCY",
    }
)
_SEVERITY_ALIASES = {"WARN": "WARNING", "FATAL": "CRITICAL", "TRACE": "DEBUG"}


def _rfc3339(value: _dt.datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=_dt.timezone.utc)

    return value.isoformat().replace("+00:00", "Z")


def wire_severity(value: Any) -> Any:
    """Map a severity onto a LogSeverity name; numeric levels pass through."""

    if isinstance(value, int) and not isinstance(value, bool):
        return value

    name = str(value).strip().upper() if value is not None else ""
    name = _SEVERITY_ALIASES.get(name, name)

    return name if name in SEVERITY_NAMES else "DEFAULT"


def _to_wire(value: Any) -> Any:
    """Render datetimes as RFC 3339 strings; everything else passes through."""

    if isinstance(value, _dt.datetime):
        return _rfc3339(value)
    if isinstance(value, Mapping):
        return {key: _to_wire(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_wire(item) for item in value]

    return value


@dataclass(frozen=True)
class MonitoredResource:
    """The resource every entry of a request is attributed to."""

    project_id: str | None
    type: str = RESOURCE_TYPE

    def to_api_repr(self) -> Dict[str, Any]:
        return {"type": self.type, "labels": {"project_id": self.project_id or ""}}


@dataclass(frozen=True)
class LogEntry:
    """One outbound entry derived from a single event."""

    severity: str
    log_name: str
    timestamp: Any
    payload: Dict[str, Any]

    def to_api_repr(self) -> Dict[str, Any]:
        entry: Dict[str, Any] = {
            "logName": self.log_name,
            "severity": wire_severity(self.severity),
            "jsonPayload": _to_wire(self.payload),
        }

        if self.timestamp is not None:
            entry["timestamp"] = _to_wire(self.timestamp)

        return entry


@dataclass(frozen=True)
class WriteRequest:
    """Entries of one batch sharing a single resource descriptor."""

    entries: List[LogEntry]
    resource: MonitoredResource = field(default_factory=lambda: MonitoredResource(None))

    def __len__(self) -> int:
        return len(self.entries)

    def to_api_repr(self) -> Dict[str, Any]:
        return {
            "entries": [entry.to_api_repr() for entry in self.entries],
            "resource": self.resource.to_api_repr(),
        }


def filter_payload(
    payload: Mapping[str, Any],
    *,
    strip_at_fields: bool,
    strip_fields: Iterable[str] = (),
) -> Dict[str, Any]:
    """Drop top-level keys that start with ``@`` or appear in ``strip_fields``."""

    denied = frozenset(strip_fields)

    return {
        key: value
        for key, value in payload.items()
        if not (strip_at_fields and key.startswith("@")) and key not in denied
    }


def format_log_name(project_id: str | None, log_name: str) -> str:
    """Full resource name for a log; an unresolved project renders empty."""

    return LOG_NAME_PATTERN.format(project=project_id or "", log_name=log_name)


def build_entry(
    event: Event, settings: OutputSettings, project_id: str | None
) -> LogEntry:
    """Map one event onto a log entry."""

    if event.include(settings.severity_field):
        severity = event.get(settings.severity_field)
    else:
        severity = settings.default_severity

    log_name = event.sprintf(
        settings.log_name, timestamp_field=settings.timestamp_field
    )

    payload = event.to_dict()
    if settings.strips_fields:
        payload = filter_payload(
            payload,
            strip_at_fields=settings.strip_at_fields,
            strip_fields=settings.strip_fields,
        )

    return LogEntry(
        severity=severity,
        log_name=format_log_name(project_id, log_name),
        timestamp=event.get(settings.timestamp_field),
        payload=payload,
    )


def build_request(
    events: Sequence[Event], settings: OutputSettings, project_id: str | None
) -> WriteRequest:
    """Build one write request holding an entry per event, in input order."""

    return WriteRequest(
        entries=[build_entry(event, settings, project_id) for event in events],
        resource=MonitoredResource(project_id),
    )
