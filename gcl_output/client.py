"""Cloud Logging write client."""

from __future__ import annotations

import logging
import threading
from typing import Any, Optional

from google.cloud import logging as gcl_logging

from .entries import WriteRequest


logger = logging.getLogger(__name__)


class LoggingWriter:
    """Submits write requests through the Cloud Logging API."""

    def __init__(
        self,
        *,
        credentials: Any,
        project_id: Optional[str],
        client: Optional[Any] = None,
    ) -> None:
        self._credentials = credentials # Write-scoped credentials
        self._project_id = project_id # May be None when discovery failed
        self._client = client # Created on first write
        self._lock = threading.Lock()

    @property
    def client(self) -> Any:
        """The underlying ``google.cloud.logging.Client``."""

        with self._lock:
            if self._client is None:
                self._client = gcl_logging.Client(
                    project=self._project_id, credentials=self._credentials
                )
                logger.debug(f"Created Cloud Logging client for project {self._project_id}")

        return self._client

    def write(self, request: WriteRequest) -> int:
        """Write every entry of ``request`` in a single API call."""

        body = request.to_api_repr()

        self.client.logging_api.write_entries(
            body["entries"],
            resource=body["resource"],
            partial_success=False,
        )

        return len(request)
