"""Content subsystem: loading, header parsing and metadata validation."""

from inkwell.content.errors import (
    BuildError,
    BuildFailed,
    ConflictingDefinition,
    DanglingReference,
    InvalidDateFormat,
    InvalidFieldType,
    MalformedDocument,
    MissingRequiredField,
    UnreadableSource,
)
from inkwell.content.frontmatter import parse_header, render_document, serialize_header, split_header
from inkwell.content.loader import DocumentLoader, document_identifier
from inkwell.content.models import Document, RawDocument, SourceLocation
from inkwell.content.validator import MetadataValidator, ValidationResult

__all__ = [
    "BuildError",
    "BuildFailed",
    "ConflictingDefinition",
    "DanglingReference",
    "Document",
    "DocumentLoader",
    "InvalidDateFormat",
    "InvalidFieldType",
    "MalformedDocument",
    "MetadataValidator",
    "MissingRequiredField",
    "RawDocument",
    "SourceLocation",
    "UnreadableSource",
    "ValidationResult",
    "document_identifier",
    "parse_header",
    "render_document",
    "serialize_header",
    "split_header",
]
