"""Tests for link scanning and the reference resolver."""

from datetime import date

import pytest

from inkwell.config.models import LinkConfig
from inkwell.content.errors import ConflictingDefinition, DanglingReference
from inkwell.content.models import Document
from inkwell.content.validator import document_url
from inkwell.links.markdown import mask_code, normalize_label, scan_definitions, scan_links
from inkwell.links.resolver import ReferenceResolver, collect_definitions


def _doc(identifier: str, body: str = "", *, draft: bool = False, base_url: str = "/", **kw) -> Document:
    source_path = kw.pop("source_path", f"{identifier}.md")
    return Document(
        identifier=identifier,
        source_path=source_path,
        title=identifier.rsplit("/", 1)[-1],
        publication_date=kw.pop("publication_date", date(2016, 1, 1)),
        draft=draft,
        url=document_url(identifier, base_url),
        body=body,
        **kw,
    )


# ---------------------------------------------------------------------------
# markdown scanning
# ---------------------------------------------------------------------------


class TestNormalizeLabel:
    def test_case_and_whitespace(self):
        assert normalize_label("  Foo   Bar ") == "foo bar"

    def test_casefold(self):
        assert normalize_label("STRASSE") == normalize_label("straße")


class TestMaskCode:
    def test_fenced_block_blanked(self):
        text = "a\n```\n[foo]\n```\nb"
        masked = mask_code(text)
        assert "[foo]" not in masked
        assert masked.count("\n") == text.count("\n")
        assert len(masked) == len(text)

    def test_code_span_blanked(self):
        masked = mask_code("see `arr[i]` here")
        assert "[i]" not in masked
        assert masked.startswith("see ")
        assert masked.endswith(" here")

    def test_tilde_fence(self):
        assert "[x]" not in mask_code("~~~~\n[x]\n~~~~\n")

    def test_indented_block_blanked(self):
        text = "Code:\n\n    xs = [1, 2]\n\tys = [3]\n\nafter [a]"
        masked = mask_code(text)
        assert "[1, 2]" not in masked
        assert "[3]" not in masked
        assert masked.endswith("after [a]")
        assert len(masked) == len(text)

    def test_indented_line_continuing_paragraph_kept(self):
        assert "[foo]" in mask_code("some text\n    [foo] more text")

    def test_indented_list_continuation_kept(self):
        assert "[foo]" in mask_code("- item\n\n    see [foo]\n")


class TestScanDefinitions:
    def test_basic_definitions(self):
        defs = scan_definitions("text\n\n[Foo]: http://example.org\n[bar]: <slides/a b.pdf> \"Title\"\n")
        assert [(d.label, d.target) for d in defs] == [
            ("foo", "http://example.org"),
            ("bar", "slides/a b.pdf"),
        ]
        assert defs[0].line == 3

    def test_start_line_offset(self):
        defs = scan_definitions("[a]: x", start_line=10)
        assert defs[0].line == 10

    def test_footnote_definitions_ignored(self):
        assert scan_definitions("[^1]: A footnote.") == []

    def test_definitions_in_code_ignored(self):
        assert scan_definitions("```\n[a]: x\n```") == []


class TestScanLinks:
    def test_inline_link(self):
        (use,) = scan_links("read [the post](posts/a.md \"t\") now")
        assert use.kind == "inline"
        assert use.target == "posts/a.md"
        assert use.text == "the post"
        assert (use.line, use.column) == (1, 6)

    def test_inline_image_and_angle_target(self):
        (use,) = scan_links("![diagram](<img/a b.png>)")
        assert use.target == "img/a b.png"

    def test_parenthesized_url(self):
        (use,) = scan_links("[w](https://en.wikipedia.org/wiki/Mmap_(disambiguation))")
        assert use.target == "https://en.wikipedia.org/wiki/Mmap_(disambiguation)"

    def test_full_collapsed_and_shortcut_references(self):
        uses = scan_links("[text][Foo] and [Bar][] and [baz].")
        assert [(u.kind, u.label) for u in uses] == [
            ("reference", "foo"),
            ("reference", "bar"),
            ("reference", "baz"),
        ]

    def test_definition_lines_are_not_uses(self):
        assert scan_links("[foo]: http://example.org") == []

    def test_task_boxes_and_footnotes_ignored(self):
        assert scan_links("- [ ] todo\n- [x] done\n\nA claim[^1].") == []

    def test_subscripts_in_prose_ignored(self):
        assert scan_links("the value of buf[i] is read") == []

    def test_escaped_bracket_ignored(self):
        assert scan_links(r"literal \[foo] text") == []

    def test_links_in_code_ignored(self):
        assert scan_links("`[foo]` and\n```\n[bar](x)\n```\n") == []

    def test_links_in_indented_code_ignored(self):
        assert scan_links("Code:\n\n    xs = [1, 2]\n") == []

    def test_shortcode(self):
        (use,) = scan_links('see {{< ref "posts/gdb.md" >}} and more')
        assert use.kind == "shortcode"
        assert use.target == "posts/gdb.md"

    def test_relref_percent_shortcode_inside_link(self):
        uses = scan_links('[gdb]({{% relref "gdb" %}})')
        assert [u.kind for u in uses] == ["shortcode"]
        assert uses[0].target == "gdb"

    def test_positions_follow_start_line(self):
        uses = scan_links("x\n  [a](b)", start_line=5)
        assert (uses[0].line, uses[0].column) == (6, 3)

    def test_ordered_by_position(self):
        uses = scan_links("[z] then [y](u) then [x][]")
        assert [u.label or u.target for u in uses] == ["z", "u", "x"]


class TestCollectDefinitions:
    def test_identical_redefinition_allowed(self):
        table, errors = collect_definitions(scan_definitions("[a]: x\n[A]: x"), "doc")
        assert table == {"a": "x"}
        assert errors == []

    def test_conflicting_redefinition(self):
        table, errors = collect_definitions(scan_definitions("[a]: x\n[a]: y"), "doc")
        assert table == {"a": "x"}
        assert isinstance(errors[0], ConflictingDefinition)
        assert errors[0].targets == ("x", "y")


# ---------------------------------------------------------------------------
# ReferenceResolver.resolve_target
# ---------------------------------------------------------------------------


class TestResolveTarget:
    @pytest.fixture
    def resolver(self):
        base = "https://example.org/"
        docs = [
            _doc("posts/gdb", base_url=base),
            _doc("posts/mmap", base_url=base),
            _doc("posts/wip", draft=True, base_url=base),
        ]
        return ReferenceResolver(LinkConfig(base_url=base), docs)

    def _resolve(self, resolver, target, source_path="posts/gdb.md", published=True):
        return resolver.resolve_target(
            target,
            source_path=source_path,
            document_id="posts/gdb",
            own_url="https://example.org/posts/gdb/",
            published=published,
        )

    def test_absolute_url_passthrough(self, resolver):
        assert self._resolve(resolver, "http://other.org/x?y=1") == "http://other.org/x?y=1"

    def test_mailto_passthrough(self, resolver):
        assert self._resolve(resolver, "mailto:me@example.org") == "mailto:me@example.org"

    def test_protocol_relative_passthrough(self, resolver):
        assert self._resolve(resolver, "//cdn.example.org/a.js") == "//cdn.example.org/a.js"

    def test_fragment_only(self, resolver):
        assert self._resolve(resolver, "#setup") == "https://example.org/posts/gdb/#setup"

    def test_root_relative(self, resolver):
        assert self._resolve(resolver, "/slides/gdb.pdf") == "https://example.org/slides/gdb.pdf"

    def test_relative_asset_against_document_dir(self, resolver):
        assert self._resolve(resolver, "img/stack.png") == "https://example.org/posts/img/stack.png"

    def test_parent_relative_asset(self, resolver):
        assert self._resolve(resolver, "../slides/gdb.pdf") == "https://example.org/slides/gdb.pdf"

    def test_relative_document_link(self, resolver):
        assert self._resolve(resolver, "mmap.md#faults") == "https://example.org/posts/mmap/#faults"

    def test_missing_document_link(self, resolver):
        with pytest.raises(DanglingReference, match="no such document"):
            self._resolve(resolver, "nope.md")

    def test_escaping_root(self, resolver):
        with pytest.raises(DanglingReference, match="escapes"):
            self._resolve(resolver, "../../etc/passwd")

    def test_published_doc_cannot_link_to_draft(self, resolver):
        with pytest.raises(DanglingReference, match="not published"):
            self._resolve(resolver, "wip.md")

    def test_draft_may_link_to_draft(self, resolver):
        url = self._resolve(resolver, "wip.md", published=False)
        assert url == "https://example.org/posts/wip/"

    def test_broken_target_resolves_to_none(self):
        resolver = ReferenceResolver(LinkConfig(), [_doc("posts/gdb")], known_ids=["posts/broken"])
        assert resolver.resolve_target(
            "broken.md", source_path="posts/gdb.md", document_id="posts/gdb", own_url="/posts/gdb/"
        ) is None

    def test_check_local_targets(self, tmp_path):
        (tmp_path / "posts").mkdir()
        (tmp_path / "posts" / "here.png").write_bytes(b"png")
        resolver = ReferenceResolver(
            LinkConfig(check_local_targets=True), [_doc("posts/gdb")], content_root=tmp_path
        )
        kw = dict(source_path="posts/gdb.md", document_id="posts/gdb", own_url="/posts/gdb/")
        assert resolver.resolve_target("here.png", **kw) == "/posts/here.png"
        with pytest.raises(DanglingReference, match="missing file"):
            resolver.resolve_target("gone.png", **kw)

    def test_registered_page_resolves(self):
        resolver = ReferenceResolver(LinkConfig(), [_doc("posts/gdb")], pages={"talks": "/talks/"})
        kw = dict(source_path="posts/gdb.md", document_id="posts/gdb", own_url="/posts/gdb/")
        assert resolver.resolve_target("../talks.md", **kw) == "/talks/"
        assert resolver.resolve_target("../talks.md#2016", **kw) == "/talks/#2016"


# ---------------------------------------------------------------------------
# ReferenceResolver.find_document
# ---------------------------------------------------------------------------


class TestFindDocument:
    @pytest.fixture
    def resolver(self):
        docs = [_doc("posts/gdb"), _doc("notes/gdb"), _doc("posts/mmap"), _doc("about")]
        return ReferenceResolver(LinkConfig(), docs)

    def test_relative_to_document_dir(self, resolver):
        assert resolver.find_document("gdb.md", "posts/mmap.md", "posts/mmap") == "posts/gdb"

    def test_from_root(self, resolver):
        assert resolver.find_document("notes/gdb", "posts/mmap.md", "posts/mmap") == "notes/gdb"

    def test_root_absolute(self, resolver):
        assert resolver.find_document("/about.md", "posts/mmap.md", "posts/mmap") == "about"

    def test_unique_basename(self, resolver):
        assert resolver.find_document("mmap", "about.md", "about") == "posts/mmap"

    def test_ambiguous_basename(self, resolver):
        with pytest.raises(DanglingReference, match="ambiguous"):
            resolver.find_document("gdb", "about.md", "about")

    def test_unknown(self, resolver):
        with pytest.raises(DanglingReference) as exc_info:
            resolver.find_document("missing-post", "about.md", "about")
        assert exc_info.value.label == "missing-post"
        assert exc_info.value.document_id == "about"

    def test_registered_page(self):
        resolver = ReferenceResolver(LinkConfig(), [_doc("posts/gdb")], pages={"talks": "/talks/"})
        assert resolver.find_document("talks.md", "posts/gdb.md", "posts/gdb") == "talks"
        assert resolver.url_for("talks", "talks.md", "posts/gdb") == "/talks/"


# ---------------------------------------------------------------------------
# ReferenceResolver.resolve_document
# ---------------------------------------------------------------------------


class TestResolveDocument:
    def test_dangling_label_reported(self):
        doc = _doc("posts/a", "I mention [foo] without defining it.\n")
        links, errors = ReferenceResolver(LinkConfig(), [doc]).resolve_document(doc)
        assert links == []
        (err,) = errors
        assert isinstance(err, DanglingReference)
        assert err.label == "foo"
        assert err.document_id == "posts/a"

    def test_defined_label_resolved(self):
        doc = _doc("posts/a", "See [Foo].\n\n[foo]: http://example.org/foo\n")
        links, errors = ReferenceResolver(LinkConfig(), [doc]).resolve_document(doc)
        assert errors == []
        (link,) = links
        assert link.kind == "reference"
        assert link.label == "foo"
        assert link.url == "http://example.org/foo"
        assert link.source.document_id == "posts/a"

    def test_source_locations_use_body_line(self):
        doc = _doc("posts/a", "intro\n[x](http://e.org)\n", body_line=6)
        links, _ = ReferenceResolver(LinkConfig(), [doc]).resolve_document(doc)
        assert (links[0].source.line, links[0].source.column) == (7, 1)

    def test_shortcode_resolved(self):
        a = _doc("posts/a", 'Read {{< ref "b.md#part-2" >}}.\n')
        b = _doc("posts/b")
        links, errors = ReferenceResolver(LinkConfig(), [a, b]).resolve_document(a)
        assert errors == []
        assert links[0].kind == "shortcode"
        assert links[0].url == "/posts/b/#part-2"

    def test_shortcode_to_draft_from_published(self):
        a = _doc("posts/a", '{{< ref "b" >}}\n')
        b = _doc("posts/b", draft=True)
        _, errors = ReferenceResolver(LinkConfig(), [a, b]).resolve_document(a)
        assert errors[0].reason == "target is not published"

    def test_unpublished_by_date(self):
        a = _doc("posts/a", "[next](b.md)\n")
        b = _doc("posts/b", publication_date=date(2030, 1, 1))
        resolver = ReferenceResolver(LinkConfig(), [a, b], published_ids=["posts/a"])
        _, errors = resolver.resolve_document(a)
        assert len(errors) == 1

    def test_conflicting_definitions_reported(self):
        doc = _doc("posts/a", "[x]\n\n[x]: http://a\n[x]: http://b\n")
        _, errors = ReferenceResolver(LinkConfig(), [doc]).resolve_document(doc)
        assert [type(e) for e in errors] == [ConflictingDefinition]

    def test_warn_mode_logs_instead(self, caplog):
        doc = _doc("posts/a", "[foo]\n")
        resolver = ReferenceResolver(LinkConfig(validation="warn"), [doc])
        with caplog.at_level("WARNING", logger="inkwell"):
            links, errors = resolver.resolve_document(doc)
        assert errors == []
        assert "dangling reference [foo]" in caplog.text

    def test_off_mode_drops_problems(self):
        doc = _doc("posts/a", "[foo] and [ok](http://e.org)\n")
        links, errors = ReferenceResolver(LinkConfig(validation="off"), [doc]).resolve_document(doc)
        assert errors == []
        assert [l.url for l in links] == ["http://e.org"]
