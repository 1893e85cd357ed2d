from datetime import date
from typing import Literal

from pydantic import BaseModel, Field, field_validator


class ContentConfig(BaseModel):
    root: str = "content"
    extensions: list[str] = Field(default_factory=lambda: [".md", ".markdown"])
    talks_index: str | None = "talks.md"
    ignore_patterns: list[str] = Field(default_factory=lambda: [
        ".git", "node_modules", "__pycache__", ".venv",
    ])

    @field_validator("extensions")
    @classmethod
    def validate_extensions(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("at least one content extension is required")
        return [e if e.startswith(".") else f".{e}" for e in (x.lower() for x in v)]


class LinkConfig(BaseModel):
    base_url: str = "/"
    validation: Literal["strict", "warn", "off"] = "strict"
    check_local_targets: bool = False

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        return v if v.endswith("/") else f"{v}/"


class PublishConfig(BaseModel):
    as_of: date | None = None


class BuildConfig(BaseModel):
    content: ContentConfig = Field(default_factory=ContentConfig)
    links: LinkConfig = Field(default_factory=LinkConfig)
    publish: PublishConfig = Field(default_factory=PublishConfig)
    workers: int = Field(default=4, gt=0)
    log_level: Literal["debug", "info", "warn", "error"] = "info"
    log_format: Literal["text", "json"] = "text"
