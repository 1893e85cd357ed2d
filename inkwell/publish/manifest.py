"""JSON manifest handed to the external renderer."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel, Field

from inkwell.content.models import Document
from inkwell.links.resolver import ResolvedLink
from inkwell.publish.pipeline import BuildResult
from inkwell.talks.models import TalkIndex

logger = logging.getLogger(__name__)


class Manifest(BaseModel):
    """Published documents in order, their resolved links, and the talks index."""

    documents: list[Document] = Field(default_factory=list)
    links: dict[str, list[ResolvedLink]] = Field(default_factory=dict)
    tags: dict[str, int] = Field(default_factory=dict)
    talks: TalkIndex | None = None

    @classmethod
    def from_result(cls, result: BuildResult) -> Manifest:
        published = result.publication_set.identifiers()
        keep = set(published)
        if result.talks is not None:
            keep.add(result.talks.identifier)
        return cls(
            documents=list(result.publication_set.documents),
            links={k: list(v) for k, v in result.links.items() if k in keep},
            tags=result.publication_set.tags(),
            talks=result.talks,
        )


def write_manifest(result: BuildResult, path: str | Path, *, dry_run: bool = False) -> Path:
    """Write the manifest JSON. Returns the path written (or that would be)."""
    dest = Path(path)
    if dry_run:
        logger.debug("dry-run: would write %s", dest)
        return dest
    dest.parent.mkdir(parents=True, exist_ok=True)
    dest.write_text(Manifest.from_result(result).model_dump_json(indent=2), encoding="utf-8")
    logger.info("wrote manifest %s", dest)
    return dest
