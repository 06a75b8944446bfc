from pathlib import Path, PurePosixPath

import pytest

from sitesync.content import (
    FileContentLoader,
    PageBuilder,
    SourceDocument,
    StylesheetBuilder,
    markdown_output_key,
    stylesheet_output_key,
)
from sitesync.extractors import MetadataParseError
from sitesync.html_utils import NoHeadTagError

PAGE = """---
tags:
  - go
  - build
created: 2024-01-02 10:00
---
# Title

See [the other page](other.md) and [docs](https://example.com/readme.md).
"""


def document(key="posts/2024/page.html", rel="posts/2024/page.md"):
    return SourceDocument(
        Path("/src") / rel, PurePosixPath(rel), key, "text/html"
    )


def test_output_keys():
    assert markdown_output_key(PurePosixPath("index.md")) == "index.html"
    assert markdown_output_key(PurePosixPath("a/b/Notes.MD")) == "a/b/Notes.html"
    assert markdown_output_key(PurePosixPath("a.md/readme.md")) == "a.md/readme.html"
    assert stylesheet_output_key(PurePosixPath("themes/dark.css")) == "css/themes/dark.css"


def test_loader_discovers_sorted_documents(tmp_path):
    (tmp_path / "b").mkdir()
    (tmp_path / "b" / "z.md").write_text("# Z", encoding="utf-8")
    (tmp_path / "a.md").write_text("# A", encoding="utf-8")
    (tmp_path / "upper.MD").write_text("# U", encoding="utf-8")
    (tmp_path / "notes.txt").write_text("skip", encoding="utf-8")
    (tmp_path / "dir.md").mkdir()

    docs = FileContentLoader(tmp_path).markdown_documents()
    assert [d.output_key for d in docs] == ["a.html", "b/z.html", "upper.html"]
    assert docs[1].relative_path == PurePosixPath("b/z.md")
    assert docs[1].content_type == "text/html"
    assert docs[1].read() == b"# Z"


def test_loader_missing_root(tmp_path):
    assert FileContentLoader(tmp_path / "missing").stylesheet_documents() == []


def test_page_builder_full_pipeline():
    artifact, front_matter = PageBuilder().build(
        document(), PAGE.encode("utf-8"), ["css/main.css", "css/a.css"]
    )
    html = artifact.content.decode("utf-8")

    assert artifact.key == "posts/2024/page.html"
    assert artifact.content_type == "text/html"
    assert front_matter.tags == ("go", "build")
    assert "tags:" not in html
    assert "created: 2024" not in html

    # stylesheets right after <head>, in sorted key order, relative to the page
    assert (
        '<head><link rel="stylesheet" href="../../css/a.css" />'
        '<link rel="stylesheet" href="../../css/main.css" />'
    ) in html

    # metadata header right after the title
    title_line = '<h1 id="title">Title</h1>\n'
    after_title = html.split(title_line, 1)[1]
    assert after_title.startswith('<p class="post-created-at">')
    assert '<li class="post-tag">go</li><li class="post-tag">build</li>' in after_title

    assert '<a href="other.html">' in html
    assert '<a href="https://example.com/readme.md">' in html


def test_page_builder_root_page_relative_path():
    doc = document(key="index.html", rel="index.md")
    artifact, _ = PageBuilder().build(doc, b"# Home\n", ["css/main.css"])
    assert '<link rel="stylesheet" href="css/main.css" />' in artifact.content.decode()


def test_page_builder_without_front_matter_or_heading():
    artifact, front_matter = PageBuilder().build(document(), b"Just text.\n")
    html = artifact.content.decode()
    assert not front_matter.found
    assert "post-created-at" not in html
    assert "<link" not in html


def test_page_builder_bad_created_line():
    with pytest.raises(MetadataParseError):
        PageBuilder().build(document(), b"---\ncreated: 02/01/2024\n---\n# T\n")


class HeadlessRenderer:
    def render(self, body, source_path=None):
        return f"<html><body>{body}</body></html>"


def test_page_builder_requires_head_for_stylesheets():
    builder = PageBuilder(renderer=HeadlessRenderer())
    with pytest.raises(NoHeadTagError):
        builder.build(document(), b"# T\n", ["css/main.css"])
    # without stylesheets nothing needs the head tag
    artifact, _ = builder.build(document(), b"# T\n")
    assert artifact.content == b"<html><body># T\n</body></html>"


def test_stylesheet_builder():
    doc = SourceDocument(
        Path("/css/main.css"), PurePosixPath("main.css"), "css/main.css", "text/css"
    )
    artifact = StylesheetBuilder().build(doc, b"body {\n  color: red;\n}\n")
    assert artifact.key == "css/main.css"
    assert artifact.content_type == "text/css"
    assert b"color:red" in artifact.content
