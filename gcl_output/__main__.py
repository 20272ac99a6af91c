"""Ship newline-delimited JSON events to Cloud Logging.

    python -m gcl_output --log-name app-log --project-id my-project < events.ndjson
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import IO, Iterator, List, Mapping, Optional, Sequence

from .config import OutputSettings, load_settings
from .errors import GCLOutputError
from .event import Event
from .output import StackdriverLoggingOutput


logger = logging.getLogger("gcl_output")

_FLAG_ENV = {
    "log_name": "GCL_OUTPUT_LOG_NAME",
    "project_id": "GCL_OUTPUT_PROJECT_ID",
    "key_file": "GCL_OUTPUT_KEY_FILE",
    "severity_field": "GCL_OUTPUT_SEVERITY_FIELD",
    "timestamp_field": "GCL_OUTPUT_TIMESTAMP_FIELD",
    "default_severity": "GCL_OUTPUT_DEFAULT_SEVERITY",
    "strip_fields": "GCL_OUTPUT_STRIP_FIELDS",
    "workers": "GCL_OUTPUT_WORKERS",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gcl_output",
        description="Send NDJSON events to Google Cloud Logging in batches.",
    )
    parser.add_argument("--input", help="NDJSON file to read (default: stdin)")
    parser.add_argument("--batch-size", type=int, default=100)
    parser.add_argument("--log-name")
    parser.add_argument("--project-id")
    parser.add_argument("--key-file")
    parser.add_argument("--severity-field")
    parser.add_argument("--timestamp-field")
    parser.add_argument("--default-severity")
    parser.add_argument("--strip-fields", help="Comma-separated field names to drop")
    parser.add_argument("--strip-at-fields", action="store_true", default=None)
    parser.add_argument("--workers", type=int)
    parser.add_argument("--log-level", default="INFO")
    return parser


def settings_from_args(
    args: argparse.Namespace, env: Optional[Mapping[str, str]] = None
) -> OutputSettings:
    """Environment defaults overridden by any flag given on the command line."""

    merged = dict(os.environ if env is None else env)

    for attr, name in _FLAG_ENV.items():
        value = getattr(args, attr)
        if value is not None:
            merged[name] = str(value)

    if args.strip_at_fields:
        merged["GCL_OUTPUT_STRIP_AT_FIELDS"] = "true"

    return load_settings(merged)


def read_events(stream: IO[str], timestamp_field: str) -> Iterator[Event]:
    for number, line in enumerate(stream, start=1):
        line = line.strip()
        if not line:
            continue

        try:
            data = json.loads(line)
        except json.JSONDecodeError as exc:
            logger.warning(f"Skipping line {number}: invalid JSON ({exc})")
            continue

        if not isinstance(data, dict):
            logger.warning(f"Skipping line {number}: expected a JSON object")
            continue

        yield Event(data, timestamp_field=timestamp_field)


def ship(output: StackdriverLoggingOutput, events: Iterator[Event], batch_size: int) -> int:
    """Feed ``events`` to the output in batches; returns the number of batches."""

    batches = 0
    batch: List[Event] = []

    for event in events:
        batch.append(event)
        if len(batch) >= batch_size:
            output.multi_receive(batch)
            batches += 1
            batch = []

    if batch:
        output.multi_receive(batch)
        batches += 1

    return batches


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.batch_size < 1:
        logger.error("--batch-size must be at least 1")
        return 2

    try:
        settings = settings_from_args(args)
        output = StackdriverLoggingOutput(settings)
        output.register()
    except GCLOutputError as exc:
        logger.error(f"Startup failed: {exc}")
        return 1

    stream = open(args.input, encoding="utf-8") if args.input else sys.stdin
    try:
        batches = ship(output, read_events(stream, settings.timestamp_field), args.batch_size)
    finally:
        if stream is not sys.stdin:
            stream.close()
        output.close()

    logger.info(f"Submitted {batches} batch(es)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
