"""Header block (frontmatter) splitting, parsing and serialization."""

from __future__ import annotations

import re
import tomllib
from datetime import date, datetime
from typing import Any, Literal

import yaml

from inkwell.content.errors import InvalidDateFormat, MalformedDocument
from inkwell.content.models import Document

HeaderFormat = Literal["yaml", "toml"]

# Opening delimiter -> accepted closing delimiters
_DELIMITERS: dict[str, tuple[HeaderFormat, tuple[str, ...]]] = {
    "---": ("yaml", ("---", "...")),
    "+++": ("toml", ("+++",)),
}

_TOML_LINE_RE = re.compile(r"at line (\d+)")
_TOML_KEY_RE = re.compile(r"""^\s*["']?([^"'=\s]+)["']?\s*=\s*(.*?)\s*$""")


class _HeaderLoader(yaml.SafeLoader):
    """SafeLoader that keeps timestamps naming no real day as plain text."""


def _construct_timestamp(loader: _HeaderLoader, node: yaml.Node) -> Any:
    try:
        return loader.construct_yaml_timestamp(node)
    except ValueError:
        return loader.construct_scalar(node)


_HeaderLoader.add_constructor("tag:yaml.org,2002:timestamp", _construct_timestamp)


def split_header(content: str, document_id: str | None = None) -> tuple[str, str, HeaderFormat, int]:
    """Split raw file content into (header, body, format, body_line).

    Raises MalformedDocument when no header block opens the file or the
    block is never closed. A single blank line after the closing
    delimiter is treated as the separator and not part of the body.
    """
    content = content.lstrip("\ufeff").replace("\r\n", "\n")
    lines = content.split("\n")

    opener = lines[0].rstrip() if lines else ""
    if opener not in _DELIMITERS:
        raise MalformedDocument("no header block at start of file", document_id)
    fmt, closers = _DELIMITERS[opener]

    for idx in range(1, len(lines)):
        if lines[idx].rstrip() in closers:
            header = "\n".join(lines[1:idx])
            body_start = idx + 1
            if body_start < len(lines) and not lines[body_start].strip():
                body_start += 1
            body = "\n".join(lines[body_start:])
            return header, body, fmt, body_start + 1

    raise MalformedDocument(f"header block opened with {opener!r} is never closed", document_id)


def parse_header(header: str, fmt: HeaderFormat = "yaml", document_id: str | None = None) -> dict[str, Any]:
    """Parse header text into a mapping. Empty headers parse as {}."""
    if fmt == "toml":
        try:
            data = tomllib.loads(header)
        except tomllib.TOMLDecodeError as exc:
            if "Invalid date" in str(exc):
                raise _toml_date_error(header, exc, document_id) from exc
            raise MalformedDocument(f"TOML parse error: {exc}", document_id) from exc
    else:
        try:
            data = yaml.load(header, Loader=_HeaderLoader)
        except yaml.YAMLError as exc:
            raise MalformedDocument(f"YAML parse error: {exc}", document_id) from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise MalformedDocument(f"header is not a mapping, got {type(data).__name__}", document_id)
    return {str(k): v for k, v in data.items()}


def _toml_date_error(
    header: str, exc: tomllib.TOMLDecodeError, document_id: str | None
) -> InvalidDateFormat:
    # tomllib only reports the position; recover key and value from that line
    field, value = "date", ""
    match = _TOML_LINE_RE.search(str(exc))
    lines = header.split("\n")
    if match and 0 < int(match.group(1)) <= len(lines):
        kv = _TOML_KEY_RE.match(lines[int(match.group(1)) - 1])
        if kv:
            field, value = kv.group(1), kv.group(2)
    return InvalidDateFormat(value, document_id, field=field)


def header_fields(document: Document) -> dict[str, Any]:
    """The header mapping a document would be written with."""
    fields: dict[str, Any] = {
        "title": document.title,
        "date": document.publication_date,
        "draft": document.draft,
        "tags": sorted(document.tags),
    }
    for key, value in document.extra.items():
        if key not in fields:
            fields[key] = value
    return fields


def serialize_header(document: Document) -> str:
    """Dump a document's metadata back to YAML header text (no delimiters)."""
    return yaml.safe_dump(
        header_fields(document),
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
    ).rstrip("\n")


def render_document(document: Document) -> str:
    """Full file content: YAML header, blank separator line, body."""
    return f"---\n{serialize_header(document)}\n---\n\n{document.body}"


def coerce_date(value: Any) -> date | None:
    """Turn a header date value into a calendar date, or None if it isn't one."""
    # datetime is a date subclass; keep just the calendar part
    if isinstance(value, date):
        return date(value.year, value.month, value.day)
    if isinstance(value, str):
        text = value.strip()
        try:
            if len(text) == 10:
                return date.fromisoformat(text)
            # 2016-01-01T10:00:00Z / 2016-01-01 10:00:00+02:00
            return datetime.fromisoformat(text).date()
        except ValueError:
            return None
    return None
