"""Document loader: enumerates content files and splits header from body."""

from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath

from inkwell.config.models import ContentConfig
from inkwell.content.errors import UnreadableSource
from inkwell.content.frontmatter import split_header
from inkwell.content.models import RawDocument

logger = logging.getLogger(__name__)


def document_identifier(source_path: str) -> str:
    """Derive the stable identifier for a content-root relative path.

    posts/2016-01-01-gdb.md -> posts/2016-01-01-gdb
    talks/index.md          -> talks
    index.md                -> index
    """
    rel = PurePosixPath(source_path)
    stem = rel.with_suffix("") if rel.suffix else rel
    if stem.name in ("index", "_index") and str(stem.parent) != ".":
        return str(stem.parent)
    if stem.name == "_index":
        return "index"
    return str(stem)


def _matches_any(path: Path, patterns: set[str]) -> bool:
    """Check whether any component of *path* matches one of *patterns*."""
    return any(part in patterns for part in path.parts)


class DocumentLoader:
    """Reads content files under a root directory.

    Only read I/O happens here; header text is left unparsed for the
    metadata validator.
    """

    def __init__(self, config: ContentConfig, root: str | Path | None = None) -> None:
        self.config = config
        self.root = Path(root if root is not None else config.root)

    @property
    def talks_index_path(self) -> Path | None:
        if not self.config.talks_index:
            return None
        return self.root / self.config.talks_index

    def discover(self) -> list[Path]:
        """Return content files under the root, sorted by relative path."""
        if not self.root.is_dir():
            raise UnreadableSource(str(self.root), NotADirectoryError("content root is not a directory"))

        ignore = set(self.config.ignore_patterns)
        extensions = set(self.config.extensions)
        talks = self.talks_index_path
        found: list[Path] = []
        try:
            for p in self.root.rglob("*"):
                rel = p.relative_to(self.root)
                if _matches_any(rel, ignore):
                    continue
                if not p.is_file() or p.suffix.lower() not in extensions:
                    continue
                if talks is not None and p == talks:
                    continue
                found.append(p)
        except OSError as exc:
            raise UnreadableSource(str(self.root), exc) from exc

        found.sort(key=lambda p: p.relative_to(self.root).as_posix())
        logger.debug("discovered %d content files under %s", len(found), self.root)
        return found

    def relative(self, path: Path) -> str:
        return path.relative_to(self.root).as_posix()

    def read(self, path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise UnreadableSource(self.relative(path), exc, document_identifier(self.relative(path))) from exc

    def load(self, path: Path) -> RawDocument:
        """Read one file and split it. Raises UnreadableSource or MalformedDocument."""
        rel = self.relative(path)
        identifier = document_identifier(rel)
        content = self.read(path)
        header, body, fmt, body_line = split_header(content, identifier)
        return RawDocument(
            identifier=identifier,
            source_path=rel,
            header=header,
            body=body,
            header_format=fmt,
            body_line=body_line,
        )
