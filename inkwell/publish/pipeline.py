"""Build pipeline: load -> validate -> (join) -> resolve -> publish.

Per-file loading and validation run on a thread pool since no document
depends on another's header. Resolution needs the whole label and
document namespace, so it only starts once every parse task is done.
Problems from every stage are collected and raised together.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from inkwell.config.models import BuildConfig
from inkwell.content.errors import BuildError, BuildFailed, MalformedDocument, UnreadableSource
from inkwell.content.loader import DocumentLoader, document_identifier
from inkwell.content.models import Document
from inkwell.content.validator import MetadataValidator, document_url
from inkwell.links.resolver import ReferenceResolver, ResolvedLink
from inkwell.publish.builder import PublicationSet, build_publication_set
from inkwell.talks.models import TalkIndex
from inkwell.talks.parser import TalksParser

logger = logging.getLogger(__name__)


class BuildResult(BaseModel):
    """Everything one build run produces."""

    model_config = ConfigDict(frozen=True)

    publication_set: PublicationSet
    documents: tuple[Document, ...] = ()  # every valid document, drafts included
    links: dict[str, tuple[ResolvedLink, ...]] = Field(default_factory=dict)
    talks: TalkIndex | None = None


@dataclass
class _Parsed:
    source_path: str
    identifier: str
    document: Document | None = None
    errors: list[BuildError] = field(default_factory=list)


def _parse_one(loader: DocumentLoader, validator: MetadataValidator, path: Path) -> _Parsed:
    rel = loader.relative(path)
    parsed = _Parsed(source_path=rel, identifier=document_identifier(rel))
    try:
        raw = loader.load(path)
    except BuildError as exc:
        parsed.errors.append(exc)
        return parsed
    result = validator.validate(raw)
    parsed.document = result.document
    parsed.errors.extend(result.errors)
    return parsed


def parse_documents(config: BuildConfig, loader: DocumentLoader) -> list[_Parsed]:
    """Load and validate every content file, in source-path order."""
    paths = loader.discover()
    validator = MetadataValidator(config.links.base_url)

    if config.workers == 1 or len(paths) < 2:
        parsed = [_parse_one(loader, validator, p) for p in paths]
    else:
        with ThreadPoolExecutor(max_workers=config.workers) as pool:
            parsed = list(pool.map(lambda p: _parse_one(loader, validator, p), paths))

    # Distinct files can still collapse onto one identifier (foo.md + foo/index.md).
    seen: dict[str, str] = {}
    for item in parsed:
        first = seen.setdefault(item.identifier, item.source_path)
        if first != item.source_path:
            item.errors.append(MalformedDocument(
                f"{item.source_path} has the same identifier as {first}", item.identifier
            ))
            item.document = None
    return parsed


def run_build(config: BuildConfig, root: str | Path | None = None) -> BuildResult:
    """Run the whole pipeline over a content directory snapshot.

    Raises BuildFailed listing every problem found, or returns the result.
    """
    loader = DocumentLoader(config.content, root)
    try:
        parsed = parse_documents(config, loader)
    except UnreadableSource as exc:
        raise BuildFailed([exc]) from exc

    errors: list[BuildError] = [e for p in parsed for e in p.errors]
    documents = [p.document for p in parsed if p.document is not None]
    logger.info("parsed %d documents (%d with errors)", len(parsed), sum(1 for p in parsed if p.errors))

    talks_path = _talks_path(loader, parsed, errors)
    pages: dict[str, str] = {}
    if talks_path is not None:
        talks_id = document_identifier(loader.relative(talks_path))
        pages[talks_id] = document_url(talks_id, config.links.base_url)

    publication = build_publication_set(documents, as_of=config.publish.as_of)
    resolver = ReferenceResolver(
        config.links,
        documents,
        known_ids=[p.identifier for p in parsed],
        published_ids=publication.identifiers(),
        content_root=loader.root,
        pages=pages,
    )

    links: dict[str, tuple[ResolvedLink, ...]] = {}
    for doc in documents:
        resolved, problems = resolver.resolve_document(doc)
        links[doc.identifier] = tuple(resolved)
        errors.extend(problems)

    talks = None
    if talks_path is not None:
        talks = _build_talks(talks_path, loader, resolver, links, errors)

    if errors:
        logger.info("build failed with %d error(s)", len(errors))
        raise BuildFailed(errors)

    logger.info(
        "published %d of %d documents", len(publication), len(documents),
    )
    return BuildResult(
        publication_set=publication,
        documents=tuple(documents),
        links=links,
        talks=talks,
    )


def _talks_path(loader: DocumentLoader, parsed: list[_Parsed], errors: list[BuildError]) -> Path | None:
    """The talks index file, or None when there is none or it is unusable."""
    path = loader.talks_index_path
    if path is None:
        return None
    if not path.is_file():
        logger.info("no talks index at %s", path)
        return None
    rel = loader.relative(path)
    identifier = document_identifier(rel)
    for item in parsed:
        if item.identifier == identifier:
            errors.append(MalformedDocument(
                f"{rel} has the same identifier as {item.source_path}", identifier
            ))
            return None
    return path


def _build_talks(
    path: Path,
    loader: DocumentLoader,
    resolver: ReferenceResolver,
    links: dict[str, tuple[ResolvedLink, ...]],
    errors: list[BuildError],
) -> TalkIndex | None:
    try:
        content = loader.read(path)
    except UnreadableSource as exc:
        errors.append(exc)
        return None

    parser = TalksParser(resolver, loader.relative(path))
    index, talk_links, problems = parser.parse(content)
    links[index.identifier] = tuple(talk_links)
    errors.extend(problems)
    return index
