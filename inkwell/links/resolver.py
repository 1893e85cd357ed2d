"""Reference resolver: turns every link in a document into a final URL."""

from __future__ import annotations

import logging
import posixpath
from collections.abc import Iterable, Mapping
from pathlib import Path, PurePosixPath
from typing import Literal
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict

from inkwell.config.models import LinkConfig
from inkwell.content.errors import BuildError, ConflictingDefinition, DanglingReference
from inkwell.content.loader import document_identifier
from inkwell.content.models import Document, SourceLocation
from inkwell.links.markdown import LinkDefinition, LinkUse, scan_definitions, scan_links

logger = logging.getLogger(__name__)

_CONTENT_SUFFIXES = (".md", ".markdown")


class ResolvedLink(BaseModel):
    """A link found in a source document together with its published URL."""

    model_config = ConfigDict(frozen=True)

    source: SourceLocation
    kind: Literal["inline", "reference", "shortcode", "talk"]
    label: str | None = None
    target: str
    url: str


def collect_definitions(
    definitions: Iterable[LinkDefinition], document_id: str
) -> tuple[dict[str, str], list[BuildError]]:
    """Fold definitions into a label -> target map for one scope.

    Repeating a label with the same target is fine; a different target is
    a ConflictingDefinition and the first definition is kept.
    """
    table: dict[str, str] = {}
    errors: list[BuildError] = []
    for d in definitions:
        existing = table.get(d.label)
        if existing is None:
            table[d.label] = d.target
        elif existing != d.target:
            errors.append(ConflictingDefinition(d.label, document_id, (existing, d.target)))
    return table, errors


class ReferenceResolver:
    """Resolves link references against the full document namespace.

    Must only be constructed once every document has been validated:
    short-link tags and relative .md links may point at any of them.
    """

    def __init__(
        self,
        config: LinkConfig,
        documents: Iterable[Document],
        *,
        known_ids: Iterable[str] = (),
        published_ids: Iterable[str] | None = None,
        content_root: str | Path | None = None,
        pages: Mapping[str, str] | None = None,
    ) -> None:
        self.config = config
        self.documents: dict[str, Document] = {d.identifier: d for d in documents}
        # Identifiers of files that exist but failed validation: valid targets, unknown URL.
        self.broken_ids = set(known_ids) - set(self.documents)
        if published_ids is None:
            published_ids = (d.identifier for d in self.documents.values() if not d.draft)
        self.published_ids = set(published_ids)
        self.content_root = Path(content_root) if content_root is not None else None
        # Generated pages (the talks index): always published, URL fixed up front.
        self.pages: dict[str, str] = dict(pages or {})

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def resolve_document(self, document: Document) -> tuple[list[ResolvedLink], list[BuildError]]:
        """Resolve every link in a document body.

        Returns the resolved links and, in strict mode, the problems found.
        In warn mode problems are logged; in off mode they are dropped.
        """
        doc_id = document.identifier
        problems: list[BuildError] = []
        definitions, conflicts = collect_definitions(
            scan_definitions(document.body, document.body_line), doc_id
        )
        problems.extend(conflicts)

        links: list[ResolvedLink] = []
        for use in scan_links(document.body, document.body_line):
            try:
                link = self._resolve_use(use, document, definitions)
            except DanglingReference as exc:
                problems.append(exc)
                continue
            if link is not None:
                links.append(link)

        return links, self.report(problems)

    def resolve_target(
        self,
        target: str,
        *,
        source_path: str,
        document_id: str,
        own_url: str,
        published: bool = True,
    ) -> str | None:
        """Resolve a raw link target as seen from *source_path*.

        Returns None when the target is a document that exists but has no
        URL because it failed validation. Raises DanglingReference.
        """
        parts = urlsplit(target)
        if parts.scheme or parts.netloc:
            return target
        suffix = _suffix(parts.query, parts.fragment)
        if not parts.path:
            return f"{own_url}{suffix}" if suffix else own_url
        if parts.path.startswith("/"):
            return f"{self.config.base_url}{parts.path.lstrip('/')}{suffix}"

        directory = posixpath.dirname(source_path)
        joined = posixpath.normpath(posixpath.join(directory, parts.path))
        if joined == ".." or joined.startswith("../"):
            raise DanglingReference(target, document_id, "escapes the content root")

        if joined.lower().endswith(_CONTENT_SUFFIXES):
            identifier = document_identifier(joined)
            if identifier not in self.documents.keys() | self.broken_ids | self.pages.keys():
                raise DanglingReference(target, document_id, "no such document")
            return self.url_for(identifier, target, document_id, published=published, suffix=suffix)

        if self.config.check_local_targets and self.content_root is not None:
            if not (self.content_root / joined).exists():
                raise DanglingReference(target, document_id, "missing file")

        trailing = "/" if parts.path.endswith("/") and joined != "." else ""
        path = "" if joined == "." else joined
        return f"{self.config.base_url}{path}{trailing}{suffix}"

    def find_document(self, target: str, source_path: str, document_id: str) -> str:
        """Identifier named by a short-link tag target. Raises DanglingReference."""
        path = target.strip()
        candidates: list[str] = []
        if path.startswith("/"):
            candidates.append(path.lstrip("/"))
        else:
            directory = posixpath.dirname(source_path)
            if directory:
                candidates.append(posixpath.normpath(posixpath.join(directory, path)))
            candidates.append(posixpath.normpath(path))

        known = set(self.documents) | self.broken_ids | set(self.pages)
        for candidate in candidates:
            identifier = document_identifier(candidate)
            if identifier in known:
                return identifier
            if candidate in known:
                return candidate

        stem = PurePosixPath(path).stem if PurePosixPath(path).suffix else PurePosixPath(path).name
        matches = sorted(i for i in known if i.rsplit("/", 1)[-1] == stem)
        if len(matches) == 1:
            return matches[0]
        if matches:
            raise DanglingReference(target, document_id, f"ambiguous: {', '.join(matches)}")
        raise DanglingReference(target, document_id, "no such document")

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _resolve_use(
        self, use: LinkUse, document: Document, definitions: dict[str, str]
    ) -> ResolvedLink | None:
        doc_id = document.identifier
        published = doc_id in self.published_ids
        location = SourceLocation(document_id=doc_id, line=use.line, column=use.column)

        if use.kind == "shortcode":
            raw = use.target or ""
            path, _, fragment = raw.partition("#")
            identifier = self.find_document(path, document.source_path, doc_id)
            suffix = f"#{fragment}" if fragment else ""
            url = self.url_for(identifier, raw, doc_id, published=published, suffix=suffix)
            if url is None:
                return None
            return ResolvedLink(source=location, kind="shortcode", target=raw, url=url)

        if use.kind == "reference":
            label = use.label or ""
            target = definitions.get(label)
            if target is None:
                raise DanglingReference(label, doc_id)
        else:
            label = None
            target = use.target or ""

        url = self.resolve_target(
            target,
            source_path=document.source_path,
            document_id=doc_id,
            own_url=document.url,
            published=published,
        )
        if url is None:
            return None
        return ResolvedLink(source=location, kind=use.kind, label=label, target=target, url=url)

    def url_for(
        self, identifier: str, target: str, document_id: str, *, published: bool = True, suffix: str = ""
    ) -> str | None:
        """URL of a known document or page, None if the document failed validation."""
        if identifier in self.pages:
            return f"{self.pages[identifier]}{suffix}"
        if published and identifier not in self.published_ids and identifier not in self.broken_ids:
            raise DanglingReference(target, document_id, "target is not published")
        doc = self.documents.get(identifier)
        if doc is None:
            return None
        return f"{doc.url}{suffix}"

    def report(self, problems: list[BuildError]) -> list[BuildError]:
        """Apply the validation mode: keep, log, or drop reference problems."""
        if self.config.validation == "off" or not problems:
            return []
        if self.config.validation == "warn":
            for p in problems:
                logger.warning("%s", p)
            return []
        return problems


def _suffix(query: str, fragment: str) -> str:
    out = f"?{query}" if query else ""
    if fragment:
        out += f"#{fragment}"
    return out
