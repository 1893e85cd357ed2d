"""Publication set builder: filter drafts, order by date."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date

from pydantic import BaseModel, ConfigDict

from inkwell.content.models import Document


class PublicationSet(BaseModel):
    """Non-draft documents, newest first, ties broken by identifier."""

    model_config = ConfigDict(frozen=True)

    documents: tuple[Document, ...] = ()

    def __len__(self) -> int:
        return len(self.documents)

    def __contains__(self, identifier: object) -> bool:
        return any(d.identifier == identifier for d in self.documents)

    def identifiers(self) -> list[str]:
        return [d.identifier for d in self.documents]

    def get(self, identifier: str) -> Document | None:
        return next((d for d in self.documents if d.identifier == identifier), None)

    def by_tag(self, tag: str) -> list[Document]:
        return [d for d in self.documents if tag in d.tags]

    def tags(self) -> dict[str, int]:
        """Tag -> number of published documents carrying it, sorted by tag."""
        counts: dict[str, int] = {}
        for d in self.documents:
            for t in d.tags:
                counts[t] = counts.get(t, 0) + 1
        return dict(sorted(counts.items()))


def is_published(document: Document, as_of: date | None = None) -> bool:
    if document.draft:
        return False
    return as_of is None or document.publication_date <= as_of


def build_publication_set(documents: Iterable[Document], *, as_of: date | None = None) -> PublicationSet:
    """Pure function of its input: same documents in, same set out."""
    kept = sorted((d for d in documents if is_published(d, as_of)), key=lambda d: d.identifier)
    # stable sort keeps the identifier order among equal dates
    kept.sort(key=lambda d: d.publication_date, reverse=True)
    return PublicationSet(documents=tuple(kept))
