"""Credential and project resolution performed once at output startup."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Callable, Optional

import google.auth
import requests
from google.auth.exceptions import DefaultCredentialsError
from google.oauth2 import service_account

from .client import LoggingWriter
from .config import OutputSettings
from .errors import CredentialsError


logger = logging.getLogger(__name__)

LOGGING_WRITE_SCOPE = "https://www.googleapis.com/auth/logging.write"

METADATA_HOST_ENV = "GCE_METADATA_HOST"
DEFAULT_METADATA_HOST = "169.254.169.254"
METADATA_HEADERS = {"Metadata-Flavor": "Google"}
PROJECT_ID_PATH = "computeMetadata/v1/project/project-id"

_PING_TIMEOUT_S = 0.5
_METADATA_TIMEOUT_S = 3.0


@dataclass(frozen=True)
class OutputContext:
    """Authorized writer plus the project every batch is written to."""

    writer: Any
    project_id: Optional[str]


def _metadata_root() -> str:
    host = os.getenv(METADATA_HOST_ENV) or DEFAULT_METADATA_HOST
    return f"http://{host}/"


def load_credentials(key_file: Optional[str] = None) -> Any:
    """Load write-scoped credentials from a key file or the ambient environment."""

    scopes = [LOGGING_WRITE_SCOPE]

    if key_file:
        try:
            return service_account.Credentials.from_service_account_file(
                key_file, scopes=scopes
            )
        except (OSError, ValueError) as exc:
            raise CredentialsError(
                f"Unable to load service account key file {key_file}: {exc}"
            ) from exc

    try:
        credentials, _ = google.auth.default(scopes=scopes)
    except DefaultCredentialsError as exc:
        raise CredentialsError(
            f"Unable to resolve application default credentials: {exc}"
        ) from exc

    return credentials


def on_gce(session: Optional[requests.Session] = None) -> bool:
    """Whether the process runs on a Google Cloud compute environment."""

    http = session or requests
    try:
        response = http.get(
            _metadata_root(), headers=METADATA_HEADERS, timeout=_PING_TIMEOUT_S
        )
    except requests.RequestException:
        return False

    return response.headers.get("Metadata-Flavor") == "Google"


def fetch_project_id(session: Optional[requests.Session] = None) -> Optional[str]:
    """Read the project id from the metadata server."""

    http = session or requests
    try:
        response = http.get(
            _metadata_root() + PROJECT_ID_PATH,
            headers=METADATA_HEADERS,
            timeout=_METADATA_TIMEOUT_S,
        )
        response.raise_for_status()
    except requests.RequestException as exc:
        logger.error(f"Unable to read the project ID from the metadata server: {exc}")
        return None

    return response.text.strip() or None


def resolve_project_id(
    configured: Optional[str],
    *,
    session: Optional[requests.Session] = None,
    log: Optional[logging.Logger] = None,
) -> Optional[str]:
    """Return the configured project id, or discover it on Google Cloud."""

    log = log or logger

    if configured:
        return configured

    if on_gce(session):
        project_id = fetch_project_id(session)
        if project_id:
            log.debug(f"Resolved project ID {project_id} from the metadata server")
        return project_id

    log.error(
        "Unable to detect the Google Cloud project ID to which logs should be written. "
        "Please ensure that you specify the `project_id` config parameter if not running "
        "on the Google Cloud Platform."
    )
    log.error("You will not be able to write logs to Google Cloud until this is resolved.")

    return None


def authorize(
    settings: OutputSettings,
    *,
    writer_factory: Callable[..., Any] = LoggingWriter,
    session: Optional[requests.Session] = None,
    log: Optional[logging.Logger] = None,
) -> OutputContext:
    """Establish credentials and the target project for the output's lifetime."""

    credentials = load_credentials(settings.key_file)
    project_id = resolve_project_id(settings.project_id, session=session, log=log)

    return OutputContext(
        writer=writer_factory(credentials=credentials, project_id=project_id),
        project_id=project_id,
    )
