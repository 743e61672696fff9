"""
Tests for XPathExtractor on XML and HTML documents.
"""

import pytest

from record_extractor.exceptions import DocumentError, InvalidExpressionError
from record_extractor.result import NotFound
from record_extractor.xpath_extractor import XPathExtractor, extract, split_accessor

XML = """<?xml version="1.0" encoding="UTF-8"?>
<anime-list>
  <anime id="1">
    <title lang="en">Death Note</title>
    <episodes>37</episodes>
    <link href="https://example.org/anime/1"/>
    <synopsis>A <b>shinigami</b> drops a notebook.</synopsis>
  </anime>
  <anime id="2">
    <title>Monster</title>
    <episodes>74</episodes>
  </anime>
</anime-list>
"""


@pytest.fixture
def extractor():
    return XPathExtractor()


class TestSplitAccessor:

    @pytest.mark.parametrize("selector, expected", [
        ("//anime/title/text()", ("//anime/title", "text()")),
        ("//anime/link/@href", ("//anime/link", "@href")),
        ("//script/node()", ("//script", "node()")),
        ("//anime/title", ("//anime/title", "")),
        ("//a[@href='http://x/y']", ("//a[@href='http://x/y']", "")),
        ("@id", ("", "@id")),
        ("//div[a/@href]", ("//div[a/@href]", "")),
        ("//div[a/@href]/@id", ("//div[a/@href]", "@id")),
        ("count(//anime)", ("count(//anime)", "")),
    ])
    def test_split(self, selector, expected):
        assert split_accessor(selector) == expected


class TestExtraction:

    def test_text(self, extractor):
        result = extractor.extract(XML, {"titles": "//anime/title/text()"})

        assert result["titles"] == ["Death Note", "Monster"]

    def test_text_includes_descendants(self, extractor):
        result = extractor.extract(XML, {"synopsis": "//synopsis/text()"})

        assert result.string("synopsis") == "A shinigami drops a notebook."

    def test_own_text_without_accessor(self, extractor):
        result = extractor.extract(XML, {"synopsis": "//synopsis"})

        assert result["synopsis"] == ["A", "drops a notebook."]

    def test_attribute(self, extractor):
        result = extractor.extract(XML, {"ids": "//anime/@id", "lang": "//title/@lang"})

        assert result["ids"] == ["1", "2"]
        assert result["lang"] == ["en"]

    def test_predicate(self, extractor):
        result = extractor.extract(XML, {"episodes": "//anime[@id='2']/episodes/text()"})

        assert result.int("episodes") == 74

    def test_not_found(self, extractor):
        assert extractor.extract(XML, {"result": "//studio/text()"}).not_found("result") is True

    def test_scalar_xpath_result(self, extractor):
        assert extractor.extract(XML, {"count": "count(//anime)"}).int("count") == 2

    @pytest.mark.parametrize("raw", ["", "   "])
    def test_blank_content(self, extractor, raw):
        assert extractor.extract(raw, {"result": "//anime"}) == {"result": NotFound}

    def test_empty_selection(self, extractor):
        assert len(extractor.extract(XML, {})) == 0

    def test_invalid_xpath(self, extractor):
        with pytest.raises(InvalidExpressionError):
            extractor.extract(XML, {"result": "//anime[@id='1'"})

    def test_malformed_xml(self, extractor):
        with pytest.raises(DocumentError):
            extractor.extract("<anime><title>unclosed</anime>", {"result": "//title"})


class TestHtml:

    def test_lenient_html(self):
        html = "<html><body><div class='a'><p>one<p>two</div></body></html>"

        result = XPathExtractor(html=True).extract(html, {"paragraphs": "//div[@class='a']/p/text()"})

        assert result["paragraphs"] == ["one", "two"]


def test_convenience_function():
    assert extract(XML, {"first": "//anime[1]/title/text()"}).string("first") == "Death Note"


class TestNamespaces:

    ATOM = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom" xmlns:media="http://search.yahoo.com/mrss/">
  <entry>
    <title>Death Note</title>
    <link rel="alternate" href="https://example.org/anime/1"/>
    <media:thumbnail url="https://cdn.example.org/1.jpg"/>
  </entry>
</feed>
"""

    def test_default_namespace_is_ignored(self, extractor):
        result = extractor.extract(self.ATOM, {"title": "//entry/title/text()", "link": "//entry/link/@href"})

        assert result.string("title") == "Death Note"
        assert result.string("link") == "https://example.org/anime/1"

    def test_prefixed_element_by_local_name(self, extractor):
        result = extractor.extract(self.ATOM, {"thumbnail": "//entry/thumbnail/@url"})

        assert result.string("thumbnail") == "https://cdn.example.org/1.jpg"


def test_slash_inside_predicate():
    xml = "<list><div id='a'><a href='/1'/>linked</div><div id='b'>plain</div></list>"

    result = extract(xml, {"ids": "//div[a/@href]/@id", "text": "//div[a/@href]"})

    assert result["ids"] == ["a"]
    assert result["text"] == ["linked"]
