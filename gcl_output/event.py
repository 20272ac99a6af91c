"""Inbound event records and field-reference interpolation."""

from __future__ import annotations

import datetime as _dt
import json
import re
from typing import Any, Iterator, Mapping, MutableMapping

_MISSING = object()

_REFERENCE = re.compile(r"%\{([^}]+)\}")
_BRACKETED = re.compile(r"\[([^\]]+)\]")

# Joda-style tokens accepted by ``%{+FORMAT}``, longest first.
_JODA_TOKENS = (
    ("yyyy", "%Y"),
    ("YYYY", "%Y"),
    ("yy", "%y"),
    ("MMMM", "%B"),
    ("MMM", "%b"),
    ("MM", "%m"),
    ("dd", "%d"),
    ("HH", "%H"),
    ("mm", "%M"),
    ("ss", "%S"),
)


def _split_reference(reference: str) -> list[str]:
    """Split ``[a][b]`` into path segments; bare names are a single segment."""

    parts = _BRACKETED.findall(reference)
    if parts and "".join(f"[{part}]" for part in parts) == reference:
        return parts

    return [reference]


def _lookup(data: Any, path: list[str]) -> Any:
    current = data
    for segment in path:
        if isinstance(current, Mapping):
            if segment not in current:
                return _MISSING
            current = current[segment]
        elif isinstance(current, list):
            try:
                current = current[int(segment)]
            except (ValueError, IndexError):
                return _MISSING
        else:
            return _MISSING

    return current


def _coerce_timestamp(value: Any) -> _dt.datetime | None:
    if isinstance(value, _dt.datetime):
        return value if value.tzinfo else value.replace(tzinfo=_dt.timezone.utc)

    if isinstance(value, str):
        try:
            parsed = _dt.datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=_dt.timezone.utc)

    return None


def _joda_to_strftime(pattern: str) -> str:
    out: list[str] = []
    index = 0
    while index < len(pattern):
        for token, directive in _JODA_TOKENS:
            if pattern.startswith(token, index):
                out.append(directive)
                index += len(token)
                break
        else:
            char = pattern[index]
            out.append("%%" if char == "%" else char)
            index += 1

    return "".join(out)


def _render(value: Any) -> str:
    if isinstance(value, (Mapping, list)):
        return json.dumps(value, default=str, separators=(",", ":"))
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, _dt.datetime):
        return value.isoformat().replace("+00:00", "Z")
    if value is None:
        return ""

    return str(value)


class Event:
    """A single structured log event delivered by the pipeline.

    Field references follow the pipeline convention: a bare name addresses a
    top-level key and ``[outer][inner]`` walks nested mappings and lists.
    """

    def __init__(
        self,
        data: Mapping[str, Any] | None = None,
        *,
        timestamp_field: str = "@timestamp",
    ) -> None:
        self._data: MutableMapping[str, Any] = dict(data or {})
        self._timestamp_field = timestamp_field

    def __repr__(self) -> str:
        return f"Event({self._data!r})"

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, reference: object) -> bool:
        return isinstance(reference, str) and self.include(reference)

    def include(self, reference: str) -> bool:
        """Whether the referenced field exists (a ``None`` value still counts)."""

        return _lookup(self._data, _split_reference(reference)) is not _MISSING

    def get(self, reference: str, default: Any = None) -> Any:
        value = _lookup(self._data, _split_reference(reference))
        return default if value is _MISSING else value

    def to_dict(self) -> dict[str, Any]:
        """Return a shallow copy of the record, preserving key order."""

        return dict(self._data)

    def sprintf(self, template: str, *, timestamp_field: str | None = None) -> str:
        """Interpolate ``%{field}`` references; unknown references stay literal.

        ``%{+FORMAT}`` formats the event timestamp with a Joda-style pattern and
        ``%{+%s}`` renders it as epoch seconds. ``timestamp_field`` overrides the
        field the event was created with.
        """

        if "%{" not in template:
            return template

        stamp_field = timestamp_field or self._timestamp_field

        def replace(match: re.Match[str]) -> str:
            reference = match.group(1)

            if reference.startswith("+"):
                stamp = _coerce_timestamp(self.get(stamp_field))
                if stamp is None:
                    return match.group(0)
                if reference == "+%s":
                    return str(int(stamp.timestamp()))
                return stamp.astimezone(_dt.timezone.utc).strftime(
                    _joda_to_strftime(reference[1:])
                )

            value = _lookup(self._data, _split_reference(reference))
            if value is _MISSING:
                return match.group(0)

            return _render(value)

        return _REFERENCE.sub(replace, template)
