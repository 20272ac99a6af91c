"""Fixtures for Cloud Logging output unit tests."""

from __future__ import annotations

import logging
import threading
from typing import List

import pytest

from gcl_output.auth import OutputContext
from gcl_output.config import OutputSettings
from gcl_output.entries import WriteRequest
from gcl_output.metrics import reset_metrics
from gcl_output.output import StackdriverLoggingOutput


TEST_LOGGER_NAME = "tests.gcl_output"


class RecordingWriter:
    """Writer double that keeps every request it receives."""

    def __init__(self) -> None:
        self.requests: List[WriteRequest] = []
        self._lock = threading.Lock()

    def write(self, request: WriteRequest) -> int:
        with self._lock:
            self.requests.append(request)
        return len(request)


class FailingWriter:
    """Writer double that rejects every request."""

    def __init__(self, message: str = "403 Permission denied on logs.write") -> None:
        self.message = message
        self.calls = 0

    def write(self, request: WriteRequest) -> int:
        self.calls += 1
        raise RuntimeError(self.message)


def pytest_collection_modifyitems(config, items):  # pragma: no cover - Pytest hook
    """Tag every test in this directory with the `gcl_output` marker."""

    for item in items:
        item.add_marker(pytest.mark.gcl_output)


@pytest.fixture(autouse=True)
def _reset_output_metrics():
    """Reset output counters around each test."""

    reset_metrics()
    yield
    reset_metrics()


@pytest.fixture
def settings():
    """Settings matching the documented example configuration."""

    return OutputSettings(log_name="app-log", project_id="p1")


@pytest.fixture
def test_logger(caplog):
    """Logger standing in for the host logging facility, captured by caplog."""

    caplog.set_level(logging.DEBUG, logger=TEST_LOGGER_NAME)
    return logging.getLogger(TEST_LOGGER_NAME)


@pytest.fixture
def recording_writer():
    return RecordingWriter()


@pytest.fixture
def failing_writer():
    return FailingWriter()


def _make_output(settings, writer, log, project_id="p1"):
    def _authorizer(resolved_settings, log=None):
        return OutputContext(writer=writer, project_id=project_id)

    output = StackdriverLoggingOutput(settings, log=log, authorizer=_authorizer)
    output.register()
    return output


@pytest.fixture
def make_output(test_logger):
    """Factory for registered outputs wired to a writer double."""

    created: List[StackdriverLoggingOutput] = []

    def _factory(settings, writer, project_id="p1"):
        output = _make_output(settings, writer, test_logger, project_id)
        created.append(output)
        return output

    yield _factory

    for output in created:
        output.close()


@pytest.fixture
def output(make_output, settings, recording_writer):
    """Registered output writing into the recording writer."""

    return make_output(settings, recording_writer)
