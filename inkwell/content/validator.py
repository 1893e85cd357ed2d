"""Metadata validator: turns a raw header block into a typed Document."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from inkwell.content.errors import (
    BuildError,
    InvalidDateFormat,
    InvalidFieldType,
    MissingRequiredField,
)
from inkwell.content.frontmatter import coerce_date, parse_header
from inkwell.content.models import Document, RawDocument

logger = logging.getLogger(__name__)

# Fields with a typed slot on Document; everything else lands in Document.extra.
_TYPED_FIELDS = frozenset({"title", "date", "draft", "tags"})

# Accepted in place of `date` when `date` itself is absent.
_DATE_ALIASES = ("publishDate", "publishdate")


@dataclass
class ValidationResult:
    """Outcome of validating one raw document."""

    document: Document | None = None
    errors: list[BuildError] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return self.document is not None and not self.errors


def document_url(identifier: str, base_url: str = "/", slug: str | None = None) -> str:
    """Published URL for a document: pretty, trailing-slash paths under base_url."""
    parts = identifier.split("/")
    if slug:
        parts[-1] = slug.strip("/")
    if parts == ["index"]:
        return base_url
    return f"{base_url}{'/'.join(parts)}/"


class MetadataValidator:
    """Checks required header fields and applies defaults.

    All field problems of a single document are collected together so an
    author sees them in one pass.
    """

    def __init__(self, base_url: str = "/") -> None:
        self.base_url = base_url

    def validate(self, raw: RawDocument) -> ValidationResult:
        result = ValidationResult()
        doc_id = raw.identifier

        try:
            data = parse_header(raw.header, raw.header_format, doc_id)
        except BuildError as exc:
            result.errors.append(exc)
            return result

        title = self._title(data, doc_id, result.errors)
        published = self._date(data, doc_id, result.errors)
        draft = self._draft(data, doc_id, result.errors)
        tags = self._tags(data, doc_id, result.errors)
        slug = data.get("slug")
        if slug is not None and not isinstance(slug, str):
            result.errors.append(InvalidFieldType("slug", "string", doc_id))
            slug = None

        if result.errors:
            logger.debug("%s: %d header problem(s)", doc_id, len(result.errors))
            return result

        extra = {k: v for k, v in data.items() if k not in _TYPED_FIELDS}
        result.document = Document(
            identifier=doc_id,
            source_path=raw.source_path,
            title=title,
            publication_date=published,
            draft=draft,
            tags=frozenset(tags),
            extra=extra,
            url=document_url(doc_id, self.base_url, slug),
            body=raw.body,
            body_line=raw.body_line,
        )
        return result

    def parse(self, raw: RawDocument) -> Document:
        """Validate and return the Document, raising the first problem found."""
        result = self.validate(raw)
        if result.document is None:
            raise result.errors[0]
        return result.document

    # ------------------------------------------------------------------
    # Field checks
    # ------------------------------------------------------------------

    def _title(self, data: dict[str, Any], doc_id: str, errors: list[BuildError]) -> str:
        title = data.get("title")
        if title is None or (isinstance(title, str) and not title.strip()):
            errors.append(MissingRequiredField("title", doc_id))
            return ""
        if isinstance(title, bool) or not isinstance(title, (str, int, float)):
            errors.append(InvalidFieldType("title", "string", doc_id))
            return ""
        return str(title).strip()

    def _date(self, data: dict[str, Any], doc_id: str, errors: list[BuildError]) -> date:
        key = "date"
        if data.get(key) is None:
            key = next((alias for alias in _DATE_ALIASES if data.get(alias) is not None), "date")
        value = data.get(key)
        if value is None:
            errors.append(MissingRequiredField("date", doc_id))
            return date.min
        parsed = coerce_date(value)
        if parsed is None:
            errors.append(InvalidDateFormat(value, doc_id, field=key))
            return date.min
        return parsed

    def _draft(self, data: dict[str, Any], doc_id: str, errors: list[BuildError]) -> bool:
        value = data.get("draft")
        if value is None:
            return False
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in ("true", "false"):
            return value.strip().lower() == "true"
        errors.append(InvalidFieldType("draft", "boolean", doc_id))
        return False

    def _tags(self, data: dict[str, Any], doc_id: str, errors: list[BuildError]) -> list[str]:
        value = data.get("tags")
        if value is None:
            return []
        if isinstance(value, str):
            return [value.strip()] if value.strip() else []
        if not isinstance(value, list) or any(
            isinstance(t, (bool, list, dict)) or t is None for t in value
        ):
            errors.append(InvalidFieldType("tags", "list of strings", doc_id))
            return []
        return [str(t).strip() for t in value if str(t).strip()]
