"""Batched Google Cloud Logging output for log-processing pipelines."""

from __future__ import annotations

from .auth import LOGGING_WRITE_SCOPE, OutputContext, authorize
from .config import OutputSettings, load_settings, settings_from_options
from .entries import LogEntry, MonitoredResource, WriteRequest, build_entry, build_request
from .errors import (
    ConfigurationError,
    CredentialsError,
    GCLOutputError,
    OutputClosedError,
    OutputNotRegisteredError,
)
from .event import Event
from .metrics import get_metrics
from .output import StackdriverLoggingOutput

__all__ = [
    "LOGGING_WRITE_SCOPE",
    "OutputContext",
    "authorize",
    "OutputSettings",
    "load_settings",
    "settings_from_options",
    "LogEntry",
    "MonitoredResource",
    "WriteRequest",
    "build_entry",
    "build_request",
    "GCLOutputError",
    "ConfigurationError",
    "CredentialsError",
    "OutputClosedError",
    "OutputNotRegisteredError",
    "Event",
    "get_metrics",
    "StackdriverLoggingOutput",
]
