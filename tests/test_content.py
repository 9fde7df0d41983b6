from datetime import date

import pytest

from quire.content import md_to_html, read_document
from quire.errors import ReadError
from quire.extractors import FrontMatter, extract_title_and_front_matter, parse_front_matter
from quire.renderers import split_heading_attrs

METADATA = '<!--metadata\ndate = 2023-03-24\nshortname = "title"\nslug = " hey there "\n-->'
TEST_MD = f"{METADATA}\n# Title\n"


def test_md_to_html_extracts_title_and_front_matter():
    doc = md_to_html(TEST_MD)
    assert doc.title == "Title"
    assert doc.front_matter == FrontMatter(
        date=date(2023, 3, 24), slug=" hey there ", shortname="title"
    )
    # The metadata comment stays in the output, untouched.
    assert doc.html.startswith(METADATA)
    assert doc.html.endswith("<h1>Title</h1>\n")


def test_md_to_html_is_deterministic():
    text = TEST_MD + "\nSome *text* with a footnote[^1].\n\n[^1]: The note.\n"
    assert md_to_html(text) == md_to_html(text)


def test_title_is_first_level_one_heading():
    text = "## Intro\n\nText.\n\n# First\n\n# Second\n"
    assert md_to_html(text).title == "First"
    assert md_to_html("No heading here.\n").title == ""


def test_title_flattens_inline_markup():
    assert md_to_html("# Hello *big* `world`\n").title == "Hello big world"


def test_absent_front_matter():
    doc = md_to_html("# Plain\n\n<!-- just a comment -->\n")
    assert doc.front_matter is None
    assert doc.title == "Plain"


def test_malformed_front_matter_is_ignored():
    doc = md_to_html("<!--metadata\ndate = = nope\n-->\n\n# Broken\n")
    assert doc.front_matter is None
    assert doc.title == "Broken"
    assert "<h1>Broken</h1>" in doc.html


def test_front_matter_with_wrong_types_is_ignored():
    assert parse_front_matter("<!--metadata\nslug = 3\n-->") is None
    assert parse_front_matter('<!--metadata\ndate = "yesterday"\n-->') is None


def test_front_matter_needs_terminator_and_opening_line():
    assert parse_front_matter("<!--metadata\ndate = 2023-03-24\n") is None
    assert parse_front_matter("<!-- metadata\ndate = 2023-03-24\n-->") is None


def test_front_matter_keeps_unknown_keys_and_datetimes():
    fm = parse_front_matter("<!--metadata\ndate = 2023-03-24T10:00:00\nauthor = \"me\"\n-->")
    assert fm.date == date(2023, 3, 24)
    assert fm.extra == {"author": "me"}
    assert fm.slug is None and fm.shortname is None


def test_only_first_metadata_block_counts():
    text = "<!--metadata\nslug = \"one\"\n-->\n\n# T\n\n<!--metadata\nslug = \"two\"\n-->\n"
    _, fm = extract_title_and_front_matter(text)
    assert fm.slug == "one"


def test_heading_attributes_are_rendered_and_stripped_from_title():
    doc = md_to_html("# Welcome {#intro .lead .wide data-x=1}\n")
    assert doc.title == "Welcome"
    assert "<h1 id=\"intro\" data-x=\"1\" class=\"lead wide\">Welcome</h1>" in doc.html


def test_split_heading_attrs_leaves_plain_braces_alone():
    assert split_heading_attrs("Sets {}") == ("Sets {}", {})
    assert split_heading_attrs("Code {x}") == ("Code {x}", {})
    assert split_heading_attrs("Title {#a}") == ("Title", {"id": "a"})


def test_extensions_render():
    html = md_to_html("~~gone~~ and a note[^n].\n\n[^n]: Here.\n").html
    assert "<del>gone</del>" in html
    assert "footnote" in html


def test_code_blocks_are_highlighted():
    html = md_to_html("```python\nx = 1\n```\n").html
    assert 'class="highlight"' in html

    plain = md_to_html("```nosuchlang\n<tag>\n```\n").html
    assert '<code class="language-nosuchlang">&lt;tag&gt;' in plain


def test_read_document(tmp_path):
    path = tmp_path / "page.md"
    path.write_text("# Page\n", encoding="utf-8")
    assert read_document(path).title == "Page"

    with pytest.raises(ReadError) as info:
        read_document(tmp_path / "missing.md")
    assert info.value.source_path == tmp_path / "missing.md"
    assert isinstance(info.value.__cause__, FileNotFoundError)


def test_read_document_rejects_invalid_utf8(tmp_path):
    path = tmp_path / "bad.md"
    path.write_bytes(b"# \xff\xfe\n")
    with pytest.raises(ReadError):
        read_document(path)


def test_heading_attribute_keys_are_validated():
    assert split_heading_attrs('T {x"y=1 onclick=alert(1) data-k=v}') == ("T", {"data-k": "v"})
    assert split_heading_attrs('T {x"y=1}') == ('T {x"y=1}', {})

    html = md_to_html("# Safe {ONCLICK=x}\n").html
    assert html.startswith("<h1>Safe {")
    assert "onclick" not in html.lower().split(">", 1)[0]
