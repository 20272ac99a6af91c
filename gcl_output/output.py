"""Cloud Logging output: turns event batches into asynchronous write calls."""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from functools import partial
from typing import Any, Callable, Optional, Sequence, Set

from .auth import OutputContext, authorize
from .config import OutputSettings
from .entries import WriteRequest, build_request
from .errors import OutputClosedError, OutputNotRegisteredError
from .event import Event
from .metrics import record_failure, record_write


logger = logging.getLogger(__name__)


class StackdriverLoggingOutput:
    """Sends each received batch of events to Cloud Logging as one write request.

    ``register`` resolves credentials and the project once; ``multi_receive``
    builds the request and hands it to a worker thread. Results are only
    logged: failed batches are not retried or buffered.
    """

    def __init__(
        self,
        settings: OutputSettings,
        *,
        log: Optional[logging.Logger] = None,
        authorizer: Callable[..., OutputContext] = authorize,
    ) -> None:
        self._settings = settings # Immutable output options
        self._logger = log or logger # Host logging facility
        self._authorizer = authorizer # Builds the output context at startup
        self._context: Optional[OutputContext] = None # Set by register()
        self._executor: Optional[ThreadPoolExecutor] = None # Runs write calls
        self._pending: Set[Future] = set() # In-flight submissions
        self._idle = threading.Condition() # Guards _pending
        self._closed = False

    def __enter__(self) -> "StackdriverLoggingOutput":
        self.register()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @property
    def settings(self) -> OutputSettings:
        return self._settings

    @property
    def context(self) -> Optional[OutputContext]:
        return self._context

    @property
    def project_id(self) -> Optional[str]:
        return self._context.project_id if self._context else None

    def register(self) -> OutputContext:
        """Resolve credentials and the project id; runs once per output."""

        if self._context is not None:
            return self._context

        self._context = self._authorizer(self._settings, log=self._logger)
        self._executor = ThreadPoolExecutor(
            max_workers=self._settings.workers,
            thread_name_prefix="gcl-output",
        )

        return self._context

    def multi_receive(self, events: Sequence[Event]) -> Optional[Future]:
        """Build one write request for ``events`` and submit it asynchronously.

        Returns the submission future, or ``None`` for an empty batch.
        """

        if not events:
            return None

        if self._closed:
            raise OutputClosedError("output is closed")
        if self._context is None or self._executor is None:
            raise OutputNotRegisteredError("register() must run before multi_receive()")

        request = build_request(events, self._settings, self._context.project_id)

        future = self._executor.submit(self._write, request)
        with self._idle:
            self._pending.add(future)
        future.add_done_callback(partial(self._on_done, len(request)))

        return future

    def flush(self, timeout: Optional[float] = None) -> bool:
        """Wait until every submitted batch has been logged; True when none remain."""

        with self._idle:
            return self._idle.wait_for(lambda: not self._pending, timeout=timeout)

    def close(self) -> None:
        """Flush outstanding submissions and stop the worker threads."""

        if self._closed:
            return

        self._closed = True
        self.flush()

        if self._executor is not None:
            self._executor.shutdown(wait=True)

    # --------------------- internal helpers ---------------------
    def _write(self, request: WriteRequest) -> tuple[int, float]:
        """Run the API call; returns the entry count and call duration."""

        assert self._context is not None

        start = time.perf_counter()
        written = self._context.writer.write(request)

        return written, (time.perf_counter() - start) * 1000.0

    def _on_done(self, entry_count: int, future: Future) -> None:
        try:
            self._report(entry_count, future)
        finally:
            with self._idle:
                self._pending.discard(future)
                self._idle.notify_all()

    def _report(self, entry_count: int, future: Future) -> None:
        if future.cancelled():
            record_failure(entry_count)
            self._logger.error(f"Write of {entry_count} entries was cancelled.")
            return

        error = future.exception()
        if error is not None:
            record_failure(entry_count)
            self._logger.error("Unable to write log entries to Cloud Logging.")
            self._logger.error(f"Received this error: {error}")
            return

        written, duration_ms = future.result()
        record_write(written, duration_ms)
        self._logger.debug(f"Wrote {written} entries successfully.")
