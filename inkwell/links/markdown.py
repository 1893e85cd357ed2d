"""Markdown link scanning: reference definitions, link uses and short-link tags.

Only the link syntax is understood here; the rest of the markdown stays
opaque. Code blocks and code spans are blanked out before scanning so
examples inside them never count as references.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal

LinkKind = Literal["inline", "reference", "shortcode"]

_FENCE_RE = re.compile(r"^ {0,3}(`{3,}|~{3,})")

_CODE_SPAN_RE = re.compile(r"(?<!`)(`+)(?!`)((?:(?!\n[ \t]*\n).)+?)(?<!`)\1(?!`)", re.DOTALL)

_DEFINITION_RE = re.compile(
    r"^ {0,3}\[(?P<label>[^\]\n^][^\]\n]*)\]:[ \t]*"
    r"(?:<(?P<angle>[^>\n]*)>|(?P<target>\S+))"
    r"(?:[ \t]+(?:\"[^\"\n]*\"|'[^'\n]*'|\([^)\n]*\)))?[ \t]*$",
    re.MULTILINE,
)

_TEXT = r"(?P<text>(?:[^\[\]\n]|\[[^\[\]\n]*\])*)"

_INLINE_RE = re.compile(
    r"(?<!\\)!?\[" + _TEXT + r"\]\(\s*"
    r"(?P<target><[^>\n]*>|[^()\s]*(?:\([^()\s]*\)[^()\s]*)*)"
    r"(?:\s+(?:\"[^\"\n]*\"|'[^'\n]*'))?\s*\)"
)

_FULL_REF_RE = re.compile(r"(?<!\\)!?\[" + _TEXT + r"\]\[(?P<label>[^\[\]\n]*)\]")

_SHORTCUT_RE = re.compile(r"(?<![\\\]\w])!?\[(?P<label>[^\[\]\n]+)\](?![\[(:])")

_SHORTCODE_RE = re.compile(
    r"\{\{(?P<open>[<%])\s*(?:rel)?ref\s+(?:\"(?P<quoted>[^\"\n]*)\"|(?P<bare>[^\s>%]+))\s*[>%]\}\}"
)

_LIST_ITEM_RE = re.compile(r"^ {0,3}(?:[-*+]|\d{1,9}[.)])(?:[ \t]|$)")

_TASK_BOX_RE = re.compile(r"^\s*(?:[-*+]|\d+[.)])\s+$")


@dataclass(frozen=True)
class LinkDefinition:
    label: str  # normalized
    target: str
    line: int
    column: int


@dataclass(frozen=True)
class LinkUse:
    kind: LinkKind
    line: int
    column: int
    label: str | None = None  # normalized, reference links only
    target: str | None = None  # inline links and short-link tags
    text: str = ""


def normalize_label(label: str) -> str:
    """Case-fold and collapse whitespace, as markdown label matching does."""
    return " ".join(label.split()).casefold()


def mask_code(text: str) -> str:
    """Blank out fenced and indented code blocks and code spans, keeping offsets and newlines."""
    lines = text.split("\n")
    fence: str | None = None
    for idx, line in enumerate(lines):
        m = _FENCE_RE.match(line)
        if fence is None:
            if m:
                fence = m.group(1)
                lines[idx] = " " * len(line)
        else:
            closer = line.strip()
            # a closing fence repeats the opening character at least as many times, nothing else
            if m and set(closer) == {fence[0]} and len(closer) >= len(fence):
                fence = None
            lines[idx] = " " * len(line)
    _mask_indented(lines)
    masked = "\n".join(lines)
    return _CODE_SPAN_RE.sub(lambda m: _blank(m.group(0)), masked)


def _mask_indented(lines: list[str]) -> None:
    """Blank indented code blocks in place.

    A line indented by four spaces (or a tab) is code when it follows a
    blank line or another code line. Inside a list the same indentation
    continues the item instead, so list context is tracked until the next
    unindented line.
    """
    after_blank = True
    in_code = False
    in_list = False
    for idx, line in enumerate(lines):
        if not line.strip():
            after_blank = True
            continue
        if line.startswith(("    ", "\t")) and not in_list and (after_blank or in_code):
            lines[idx] = " " * len(line)
            in_code = True
        else:
            in_code = False
            if _LIST_ITEM_RE.match(line):
                in_list = True
            elif not line[0].isspace():
                in_list = False
        after_blank = False


def _blank(segment: str) -> str:
    return re.sub(r"[^\n]", " ", segment)


def _position(text: str, offset: int, start_line: int) -> tuple[int, int]:
    line = text.count("\n", 0, offset) + start_line
    column = offset - (text.rfind("\n", 0, offset) + 1) + 1
    return line, column


def _is_task_box(text: str, match: re.Match) -> bool:
    if match.group("label") not in (" ", "x", "X"):
        return False
    line_start = text.rfind("\n", 0, match.start()) + 1
    return bool(_TASK_BOX_RE.match(text[line_start:match.start()]))


def scan_definitions(text: str, start_line: int = 1) -> list[LinkDefinition]:
    """All `[label]: target` definitions, in source order."""
    masked = mask_code(text)
    defs: list[LinkDefinition] = []
    for m in _DEFINITION_RE.finditer(masked):
        line, column = _position(masked, m.start(), start_line)
        target = m.group("angle") if m.group("angle") is not None else m.group("target")
        defs.append(LinkDefinition(normalize_label(m.group("label")), target, line, column))
    return defs


def scan_links(text: str, start_line: int = 1) -> list[LinkUse]:
    """Every link use in *text*, ordered by position.

    Matched spans are blanked as they are consumed so each piece of
    syntax is counted once: short-link tags, definitions, inline links,
    full/collapsed references, then shortcut references.
    """
    masked = mask_code(text)
    uses: list[tuple[int, LinkUse]] = []

    def consume(pattern: re.Pattern, build) -> None:
        nonlocal masked
        spans: list[tuple[int, int]] = []
        for m in pattern.finditer(masked):
            use = build(m)
            if use is None:
                continue
            uses.append((m.start(), use))
            spans.append(m.span())
        for start, end in spans:
            masked = masked[:start] + _blank(masked[start:end]) + masked[end:]

    def shortcode(m: re.Match) -> LinkUse:
        line, column = _position(masked, m.start(), start_line)
        target = m.group("quoted") if m.group("quoted") is not None else m.group("bare")
        return LinkUse("shortcode", line, column, target=target.strip())

    def inline(m: re.Match) -> LinkUse | None:
        target = m.group("target")
        if target.startswith("<") and target.endswith(">"):
            target = target[1:-1]
        # empty once a short-link tag inside the parentheses was consumed
        if not target.strip():
            return None
        line, column = _position(masked, m.start(), start_line)
        return LinkUse("inline", line, column, target=target, text=m.group("text"))

    def full_ref(m: re.Match) -> LinkUse:
        line, column = _position(masked, m.start(), start_line)
        label = m.group("label") or m.group("text")
        return LinkUse("reference", line, column, label=normalize_label(label), text=m.group("text"))

    def shortcut(m: re.Match) -> LinkUse | None:
        label = m.group("label")
        if label.startswith("^") or not label.strip() or _is_task_box(masked, m):
            return None
        line, column = _position(masked, m.start(), start_line)
        return LinkUse("reference", line, column, label=normalize_label(label), text=label)

    consume(_SHORTCODE_RE, shortcode)
    # definitions are not uses
    masked = _DEFINITION_RE.sub(lambda m: _blank(m.group(0)), masked)
    consume(_INLINE_RE, inline)
    consume(_FULL_REF_RE, full_ref)
    consume(_SHORTCUT_RE, shortcut)

    uses.sort(key=lambda pair: pair[0])
    return [use for _, use in uses]
