"""Talks index parser.

The talks index is one markdown file grouped by `## <year>` headings.
Each list item is a talk; its links become the talk's label -> URL map::

    ## 2016

    - **Hacking gdb for fun** - [slides][gdb], [video](https://youtu.be/x)

    [gdb]: slides/gdb.pdf

Reference definitions are scoped to their year section. Definitions
placed before the first year heading are shared by every section.
"""

from __future__ import annotations

import logging
import re
from collections import defaultdict

from inkwell.content.errors import BuildError, DanglingReference, MalformedDocument
from inkwell.content.frontmatter import parse_header, split_header
from inkwell.content.loader import document_identifier
from inkwell.content.models import SourceLocation
from inkwell.content.validator import document_url
from inkwell.links.markdown import LinkUse, mask_code, scan_definitions, scan_links
from inkwell.links.resolver import ReferenceResolver, ResolvedLink, collect_definitions
from inkwell.talks.models import TalkEntry, TalkIndex, TalkSection

logger = logging.getLogger(__name__)

_HEADING_RE = re.compile(r"^(?P<level>#{1,6})\s+(?P<text>.*?)\s*#*\s*$")
_ITEM_RE = re.compile(r"^ {0,3}[-*+]\s+")
_YEAR_RE = re.compile(r"^\d{4}$")
_BOLD_RE = re.compile(r"\*\*(?P<a>.+?)\*\*|__(?P<b>.+?)__")
_LINK_TEXT_RE = re.compile(r"!?\[([^\[\]]*)\](?:\([^)]*\)|\[[^\]]*\])?")
_TRAILING_SEP_RE = re.compile(r"[\s\-–—:,;|(*_]+$")
_LEADING_SEP_RE = re.compile(r"^[\s*_]+")

# Key used for a link whose text is the talk title itself.
PAGE_LABEL = "page"


class _Block:
    """Consecutive source lines starting at a 1-based line number."""

    def __init__(self, line: int) -> None:
        self.line = line
        self.lines: list[str] = []

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


class TalksParser:
    """Parses the talks index and resolves every talk link to a URL."""

    def __init__(self, resolver: ReferenceResolver, source_path: str = "talks.md") -> None:
        self.resolver = resolver
        self.source_path = source_path
        self.identifier = document_identifier(source_path)
        self.url = document_url(self.identifier, resolver.config.base_url)

    def parse(self, content: str) -> tuple[TalkIndex, list[ResolvedLink], list[BuildError]]:
        """Parse *content*. Returns the index, resolved links and all problems."""
        errors: list[BuildError] = []
        title, body, body_line = self._split(content, errors)

        preamble, sections, heading_title = self._sections(body, body_line, errors)
        shared, conflicts = collect_definitions(
            scan_definitions(preamble.text, preamble.line), self.identifier
        )
        reference_problems: list[BuildError] = list(conflicts)

        by_year: dict[int, list[TalkEntry]] = defaultdict(list)
        links: list[ResolvedLink] = []
        for year, block in sections:
            scoped, conflicts = collect_definitions(
                scan_definitions(block.text, block.line), self.identifier
            )
            reference_problems.extend(conflicts)
            definitions = {**shared, **scoped}
            for item in _items(block):
                entry = self._entry(item, year, definitions, links, reference_problems, errors)
                if entry is not None:
                    by_year[year].append(entry)

        errors.extend(self.resolver.report(reference_problems))
        index = TalkIndex(
            identifier=self.identifier,
            source_path=self.source_path,
            title=title or heading_title,
            sections=tuple(
                TalkSection(year=y, entries=tuple(by_year[y])) for y in sorted(by_year, reverse=True)
            ),
        )
        logger.debug(
            "talks index %s: %d talks in %d years",
            self.source_path, len(index.entries()), len(index.sections),
        )
        return index, links, errors

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _split(self, content: str, errors: list[BuildError]) -> tuple[str | None, str, int]:
        """Header is optional for the talks index."""
        stripped = content.lstrip("\ufeff")
        if not stripped.startswith(("---", "+++")):
            return None, stripped.replace("\r\n", "\n"), 1
        try:
            header, body, fmt, body_line = split_header(stripped, self.identifier)
            data = parse_header(header, fmt, self.identifier)
        except BuildError as exc:
            errors.append(exc)
            return None, "", 1
        title = data.get("title")
        return (str(title) if title else None), body, body_line

    def _sections(
        self, body: str, body_line: int, errors: list[BuildError]
    ) -> tuple[_Block, list[tuple[int, _Block]], str | None]:
        preamble = _Block(body_line)
        sections: list[tuple[int, _Block]] = []
        heading_title: str | None = None
        current: _Block | None = preamble

        masked = mask_code(body).split("\n")
        for idx, line in enumerate(body.split("\n")):
            lineno = body_line + idx
            m = _HEADING_RE.match(masked[idx])
            if m and len(m.group("level")) == 1 and heading_title is None:
                heading_title = m.group("text")
            elif m and len(m.group("level")) == 2:
                text = m.group("text")
                if not _YEAR_RE.match(text):
                    errors.append(MalformedDocument(
                        f"line {lineno}: talks section {text!r} is not a year", self.identifier
                    ))
                    current = None
                    continue
                current = _Block(lineno + 1)
                sections.append((int(text), current))
                continue
            if current is not None:
                current.lines.append(line)
        return preamble, sections, heading_title

    def _entry(
        self,
        item: _Block,
        year: int,
        definitions: dict[str, str],
        links: list[ResolvedLink],
        reference_problems: list[BuildError],
        errors: list[BuildError],
    ) -> TalkEntry | None:
        text = item.text
        uses = scan_links(text, item.line)
        title = _title(text, uses, item.line)
        location = SourceLocation(document_id=self.identifier, line=item.line)
        if not title:
            errors.append(MalformedDocument(f"line {item.line}: talk entry has no title", self.identifier))
            return None

        entry_links: dict[str, str] = {}
        for use in uses:
            try:
                resolved = self._resolve(use, definitions)
            except DanglingReference as exc:
                reference_problems.append(exc)
                continue
            if resolved is None:
                continue
            target, url = resolved
            key = _clean(_LINK_TEXT_RE.sub(r"\1", use.text)) or target
            if key == title:
                key = PAGE_LABEL
            if key in entry_links:
                logger.debug("%s:%d duplicate link label %r ignored", self.source_path, use.line, key)
                continue
            entry_links[key] = url
            links.append(ResolvedLink(
                source=SourceLocation(document_id=self.identifier, line=use.line, column=use.column),
                kind="talk",
                label=key,
                target=target,
                url=url,
            ))

        return TalkEntry(title=title, year=year, links=entry_links, source=location)

    def _resolve(self, use: LinkUse, definitions: dict[str, str]) -> tuple[str, str] | None:
        if use.kind == "shortcode":
            raw = use.target or ""
            path, _, fragment = raw.partition("#")
            identifier = self.resolver.find_document(path, self.source_path, self.identifier)
            url = self.resolver.url_for(
                identifier, raw, self.identifier, suffix=f"#{fragment}" if fragment else ""
            )
            return None if url is None else (raw, url)

        if use.kind == "reference":
            target = definitions.get(use.label or "")
            if target is None:
                raise DanglingReference(use.label or "", self.identifier)
        else:
            target = use.target or ""

        url = self.resolver.resolve_target(
            target, source_path=self.source_path, document_id=self.identifier, own_url=self.url
        )
        return None if url is None else (target, url)


def _items(block: _Block) -> list[_Block]:
    """List items in a section; indented lines continue the previous item."""
    items: list[_Block] = []
    current: _Block | None = None
    masked = mask_code(block.text).split("\n")
    for offset, line in enumerate(block.lines):
        marker = _ITEM_RE.match(masked[offset])
        if marker:
            current = _Block(block.line + offset)
            # blank the marker so link columns still match the source
            current.lines.append(" " * marker.end() + line[marker.end():])
            items.append(current)
        elif current is not None and masked[offset].strip() and line[:1].isspace():
            current.lines.append(line)
        else:
            current = None
    return items


def _title(text: str, uses: list[LinkUse], first_line: int) -> str:
    bold = _BOLD_RE.search(text)
    if bold:
        return _clean(_LINK_TEXT_RE.sub(r"\1", bold.group("a") or bold.group("b")))
    if uses:
        first = uses[0]
        lines = text.split("\n")
        offset = sum(len(ln) + 1 for ln in lines[: first.line - first_line]) + first.column - 1
        prefix = _clean(text[:offset])
        if prefix:
            return prefix
        return _clean(_LINK_TEXT_RE.sub(r"\1", first.text))
    return _clean(text.split("\n", 1)[0])


def _clean(text: str) -> str:
    text = " ".join(text.split())
    text = _TRAILING_SEP_RE.sub("", text)
    return _LEADING_SEP_RE.sub("", text)
