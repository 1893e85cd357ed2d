"""Pydantic models for the talks index."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from inkwell.content.models import SourceLocation


class TalkEntry(BaseModel):
    """One talk: a title plus labelled links (slides, video, code...)."""

    model_config = ConfigDict(frozen=True)

    title: str = Field(min_length=1)
    year: int
    links: dict[str, str] = Field(default_factory=dict)
    source: SourceLocation | None = None


class TalkSection(BaseModel):
    model_config = ConfigDict(frozen=True)

    year: int
    entries: tuple[TalkEntry, ...] = ()


class TalkIndex(BaseModel):
    """Talks grouped by year, newest year first, source order within a year."""

    model_config = ConfigDict(frozen=True)

    identifier: str
    source_path: str
    title: str | None = None
    sections: tuple[TalkSection, ...] = ()

    def years(self) -> list[int]:
        return [s.year for s in self.sections]

    def entries(self) -> list[TalkEntry]:
        return [e for s in self.sections for e in s.entries]
