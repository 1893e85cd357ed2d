"""Shared test fixtures for inkwell."""

from pathlib import Path

import pytest
import yaml

from inkwell.config.models import BuildConfig, ContentConfig


def write_doc(root: Path, rel: str, body: str = "Some text.\n", **fields) -> Path:
    """Write a markdown file with a YAML header built from *fields*."""
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    header = yaml.safe_dump(fields, default_flow_style=False, sort_keys=False)
    path.write_text(f"---\n{header}---\n\n{body}", encoding="utf-8")
    return path


TALKS_INDEX = """\
---
title: Talks
---

# Talks

[shared-video]: https://video.example.org/channel

## 2016

- **Hacking gdb for fun** - [slides][gdb-slides], [video](https://youtu.be/abc)
- **Counting lines with SIMD**: [slides][simd], [code](https://github.com/example/lc)

[gdb-slides]: slides/gdb.pdf
[simd]: slides/simd.pdf

## 2017

- [Memory-mapped I/O in practice](https://example.org/mmio) - [slides][mmio], [channel][shared-video]

[mmio]: /slides/mmio.pdf
"""


@pytest.fixture
def sample_config():
    return BuildConfig()


@pytest.fixture
def content_root(tmp_path):
    """A small blog: two posts, one draft, a talks index and a slide deck."""
    root = tmp_path / "content"
    write_doc(
        root, "posts/gdb-internals.md",
        body="How gdb works. See [mmap] and the [slides](../slides/gdb.pdf).\n\n"
             "[mmap]: mmap-io.md\n",
        title="gdb internals", date="2016-01-01", tags=["gdb", "debugging"],
    )
    write_doc(
        root, "posts/mmap-io.md",
        body="Mapping files. Back to [the gdb post]({{< ref \"gdb-internals.md\" >}}).\n",
        title="Memory-mapped I/O", date="2016-03-15", tags=["linux"],
    )
    write_doc(
        root, "posts/simd-wc.md",
        body="Unfinished.\n",
        title="SIMD line counting", date="2016-06-01", draft=True,
    )
    (root / "slides").mkdir(parents=True)
    (root / "slides" / "gdb.pdf").write_bytes(b"%PDF-1.4")
    (root / "talks.md").write_text(TALKS_INDEX, encoding="utf-8")
    return root


@pytest.fixture
def content_config(content_root):
    return BuildConfig(content=ContentConfig(root=str(content_root)), workers=2)


@pytest.fixture
def make_doc():
    """Factory fixture: make_doc(root, rel, body=..., **header_fields)."""
    return write_doc


@pytest.fixture
def talks_index():
    return TALKS_INDEX
