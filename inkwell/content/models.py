"""Pydantic models for the content subsystem."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


@dataclass(frozen=True)
class RawDocument:
    """A content file split into header text and body text, nothing parsed yet."""

    identifier: str
    source_path: str  # relative to the content root, POSIX style
    header: str
    body: str
    header_format: Literal["yaml", "toml"] = "yaml"
    body_line: int = 1  # 1-based line number where the body starts


class SourceLocation(BaseModel):
    """Where in a source document a link was found."""

    model_config = ConfigDict(frozen=True)

    document_id: str
    line: int = Field(default=1, ge=1)
    column: int = Field(default=1, ge=1)

    def __str__(self) -> str:
        return f"{self.document_id}:{self.line}:{self.column}"


class Document(BaseModel):
    """A validated content document. The body stays opaque markdown."""

    model_config = ConfigDict(frozen=True)

    identifier: str = Field(min_length=1)
    source_path: str
    title: str = Field(min_length=1)
    publication_date: date
    draft: bool = False
    tags: frozenset[str] = Field(default_factory=frozenset)
    extra: dict[str, Any] = Field(default_factory=dict)
    url: str = ""
    body: str = ""
    body_line: int = 1

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("title cannot be empty or whitespace")
        return v

    @field_serializer("tags")
    def serialize_tags(self, tags: frozenset[str]) -> list[str]:
        return sorted(tags)

