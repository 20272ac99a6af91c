"""Tests for the batch entry builder."""

from __future__ import annotations

import datetime as dt

import pytest

from gcl_output.entries import (
    LogEntry,
    MonitoredResource,
    build_entry,
    build_request,
    filter_payload,
    format_log_name,
    wire_severity,
)
from gcl_output.event import Event


EXAMPLE = {"@timestamp": "2023-01-01T00:00:00Z", "message": "hi", "severity": "ERROR"}


def test_example_event_maps_to_entry(settings):
    """The documented example produces the documented entry."""

    entry = build_entry(Event(EXAMPLE), settings, "p1")

    assert entry == LogEntry(
        severity="ERROR",
        log_name="projects/p1/logs/app-log",
        timestamp="2023-01-01T00:00:00Z",
        payload=EXAMPLE,
    )


def test_strip_at_fields_drops_at_prefixed_keys(settings):
    entry = build_entry(Event(EXAMPLE), settings.with_overrides(strip_at_fields=True), "p1")

    assert entry.payload == {"message": "hi", "severity": "ERROR"}
    assert entry.timestamp == "2023-01-01T00:00:00Z"


def test_strip_fields_drops_listed_keys_only(settings):
    event = Event({"a": 1, "b": 2, "c": 3, "@version": "1"})

    entry = build_entry(event, settings.with_overrides(strip_fields=("a", "b")), "p1")

    assert entry.payload == {"c": 3, "@version": "1"}


def test_both_filters_combine(settings):
    event = Event({"a": 1, "@meta": 2, "keep": 3})
    combined = settings.with_overrides(strip_at_fields=True, strip_fields=("a",))

    assert build_entry(event, combined, "p1").payload == {"keep": 3}


def test_filters_only_touch_top_level_keys():
    payload = {"nested": {"@inner": 1, "a": 2}}

    assert filter_payload(payload, strip_at_fields=True, strip_fields=("a",)) == payload


def test_source_event_is_not_mutated(settings):
    data = dict(EXAMPLE)
    event = Event(data)

    build_entry(event, settings.with_overrides(strip_at_fields=True), "p1")

    assert event.to_dict() == EXAMPLE
    assert data == EXAMPLE


def test_missing_severity_uses_default(settings):
    entry = build_entry(Event({"message": "hi"}), settings, "p1")

    assert entry.severity == "default"
    assert entry.timestamp is None


def test_custom_severity_and_timestamp_fields(settings):
    custom = settings.with_overrides(
        severity_field="level", timestamp_field="ts", default_severity="INFO"
    )

    entry = build_entry(Event({"level": "WARNING", "ts": "t0"}), custom, "p1")

    assert entry.severity == "WARNING"
    assert entry.timestamp == "t0"
    assert build_entry(Event({}), custom, "p1").severity == "INFO"


def test_log_name_interpolates_event_fields(settings):
    templated = settings.with_overrides(log_name="%{app}-log")

    entry = build_entry(Event({"app": "billing"}), templated, "p1")

    assert entry.log_name == "projects/p1/logs/billing-log"


def test_unresolved_project_renders_empty_segment():
    assert format_log_name(None, "app-log") == "projects//logs/app-log"


def test_request_preserves_order_and_count(settings):
    events = [Event({"message": str(index)}) for index in range(5)]

    request = build_request(events, settings, "p1")

    assert len(request) == 5
    assert [entry.payload["message"] for entry in request.entries] == ["0", "1", "2", "3", "4"]
    assert request.resource == MonitoredResource("p1")


def test_request_api_repr_shape(settings):
    request = build_request([Event(EXAMPLE), Event({"message": "no-ts"})], settings, "p1")

    body = request.to_api_repr()

    assert body["resource"] == {"type": "global", "labels": {"project_id": "p1"}}
    assert body["entries"][0] == {
        "logName": "projects/p1/logs/app-log",
        "severity": "ERROR",
        "timestamp": "2023-01-01T00:00:00Z",
        "jsonPayload": EXAMPLE,
    }
    assert "timestamp" not in body["entries"][1]
    assert body["entries"][1]["severity"] == "DEFAULT"


@pytest.mark.parametrize(
    "stamp",
    [
        dt.datetime(2023, 1, 1, tzinfo=dt.timezone.utc),
        dt.datetime(2023, 1, 1),
    ],
)
def test_api_repr_renders_datetimes_as_rfc3339(settings, stamp):
    entry = build_entry(Event({"@timestamp": stamp, "seen": [stamp]}), settings, "p1")

    wire = entry.to_api_repr()

    assert wire["timestamp"] == "2023-01-01T00:00:00Z"
    assert wire["jsonPayload"]["seen"] == ["2023-01-01T00:00:00Z"]
    assert entry.timestamp is stamp


@pytest.mark.parametrize(
    "severity, expected",
    [
        ("default", "DEFAULT"),
        ("error", "ERROR"),
        (" Info ", "INFO"),
        ("warn", "WARNING"),
        ("fatal", "CRITICAL"),
        ("verbose", "DEFAULT"),
        (None, "DEFAULT"),
        (500, 500),
    ],
)
def test_wire_severity_uses_log_severity_names(severity, expected):
    assert wire_severity(severity) == expected


def test_entry_keeps_event_severity_but_normalizes_wire_value(settings):
    entry = build_entry(Event({"severity": "error"}), settings, "p1")

    assert entry.severity == "error"
    assert entry.to_api_repr()["severity"] == "ERROR"


def test_log_name_date_uses_configured_timestamp_field(settings):
    custom = settings.with_overrides(log_name="app-%{+yyyy.MM.dd}", timestamp_field="ts")
    event = Event({"ts": "2024-03-04T05:06:07Z"})

    entry = build_entry(event, custom, "p1")

    assert entry.log_name == "projects/p1/logs/app-2024.03.04"
