from __future__ import annotations

import pytest

from rawsite.content import (
    UNTITLED,
    extract_body,
    extract_tags,
    extract_title,
    parse_fragment,
    read_fragment,
    replace_tags_comment,
    sanitize_tag,
    tag_filename,
)
from rawsite.errors import ParseSkip


@pytest.mark.parametrize("raw", ["", None, "<body><p>No heading</p></body>", "<h2>Not a title</h2>"])
def test_missing_title_defaults(raw):
    assert parse_fragment(raw).title == UNTITLED == "Untitled Post"


def test_title_is_verbatim():
    assert extract_title("<h1>Fish &amp; <em>Chips</em></h1>") == "Fish &amp; <em>Chips</em>"


def test_first_title_wins():
    assert extract_title("<h1>One</h1><h1>Two</h1>") == "One"


@pytest.mark.parametrize("raw", ["<!--RawTags:-->", "<!--RawTags:   -->", "<p>no marker</p>", "<!--RawTags: , ,-->"])
def test_blank_tags(raw):
    assert extract_tags(raw) == ()


def test_tags_are_trimmed():
    assert extract_tags("<!--RawTags:tag1, tag2 , tag3-->") == ("tag1", "tag2", "tag3")


def test_tags_keep_order_and_case():
    assert extract_tags("<!--RawTags:Zeta,alpha,Alpha,alpha-->") == ("Zeta", "alpha", "Alpha")


def test_tags_marker_is_non_greedy():
    raw = "<!--RawTags:a,b--><!-- other -->"
    assert extract_tags(raw) == ("a", "b")


def test_body_spans_lines_and_keeps_markers():
    raw = "<h1>T</h1>\n<body>\n<p>one</p>\n<p>two</p>\n<!--RawTags:a-->\n</body>"
    body = extract_body(raw)
    assert "<p>one</p>\n<p>two</p>" in body
    assert "<!--RawTags:a-->" in body


def test_missing_body():
    assert extract_body("<p>loose</p>") == ""


def test_parse_fragment_defaults():
    fragment = parse_fragment(None)
    assert fragment.title == UNTITLED
    assert fragment.tags == ()
    assert fragment.body == ""
    assert fragment.raw_content == ""


def test_replace_existing_tags_comment():
    raw = "<body><p>x</p><!--RawTags:old--></body>"
    updated = replace_tags_comment(raw, ["new", "tags"])
    assert "<!--RawTags:new,tags-->" in updated
    assert "old" not in updated


def test_replace_tags_comment_inserts_before_body_close():
    updated = replace_tags_comment("<body><p>x</p></body>", ["a"])
    assert updated == "<body><p>x</p><!--RawTags:a-->\n</body>"
    assert extract_tags(updated) == ("a",)


def test_sanitized_tag_filename():
    assert sanitize_tag("C++ tips") == "C___tips"
    assert tag_filename("y") == "tag_y.html"


def test_unreadable_fragment(tmp_path):
    path = tmp_path / "bad.htmraw"
    path.write_bytes(b"\xff\xfe\xfa")
    with pytest.raises(ParseSkip):
        read_fragment(path)
