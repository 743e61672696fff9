"""
Tests for TreeQueryExtractor against a small anime detail page.
"""

from concurrent.futures import ThreadPoolExecutor

import pytest
from pydantic import ValidationError

from record_extractor.exceptions import InvalidExpressionError
from record_extractor.result import NotFound
from record_extractor.schemas import ExtractorSettings
from record_extractor.tree_extractor import TreeQueryExtractor, extract

HTML = """<!DOCTYPE html>
<html lang="en">
<head>
  <title>Death Note</title>
  <script type="application/ld+json">  {"name": "Death Note"}  </script>
</head>
<body>
  <h1 class="anime title">Death Note</h1>
  <div class="info">
    <span itemprop="numberOfEpisodes">37</span>
    <span class="tag" itemprop="genre">Mystery</span>
    <span class="tag" itemprop="genre">Thriller</span>
    <img itemprop="image" src="https://cdn.example.org/1.jpg">
  </div>
  <table id="eplist">
    <tr class="type"><th>Type</th><td class="value">TV Series</td></tr>
    <tr class="season"><th>Season</th><td class="value">Fall 2006</td></tr>
  </table>
  <ul class="links">
    <li><a href="/anime/1">First</a></li>
    <li><a href="/anime/2">Second</a></li>
    <li><a>No link</a></li>
  </ul>
  <p class="synopsis">A <b>shinigami</b>   drops a notebook.<!-- hidden --></p>
</body>
</html>
"""


@pytest.fixture
def extractor():
    return TreeQueryExtractor()


class TestSelection:

    def test_not_found_if_nothing_matches(self, extractor):
        result = extractor.extract(HTML, {"result": "//unknown"})

        assert result.not_found("result") is True
        assert result["result"] is NotFound

    def test_every_key_is_present(self, extractor):
        result = extractor.extract(HTML, {"title": "//h1/text()", "missing": "//video/@src"})

        assert set(result) == {"title", "missing"}
        assert result.not_found("missing") is True

    def test_empty_selection(self, extractor):
        assert len(extractor.extract(HTML, {})) == 0

    def test_invalid_selector_fails_the_call(self, extractor):
        with pytest.raises(InvalidExpressionError):
            extractor.extract(HTML, {"ok": "//h1/text()", "broken": "//div/@href/span"})

    def test_single_match_is_still_a_list(self, extractor):
        result = extractor.extract(HTML, {"title": "//h1[contains(@class, 'anime')]/text()"})

        assert result["title"] == ["Death Note"]
        assert result.string("title") == "Death Note"


class TestAccessors:

    def test_text(self, extractor):
        result = extractor.extract(HTML, {"tags": "//span[@itemprop='genre']/text()"})

        assert result.list_not_null("tags", str) == ["Mystery", "Thriller"]

    def test_text_includes_descendants(self, extractor):
        result = extractor.extract(HTML, {"synopsis": "//p[@class='synopsis']/text()"})

        assert result.string("synopsis") == "A shinigami drops a notebook."

    def test_own_text_without_accessor(self, extractor):
        result = extractor.extract(HTML, {"synopsis": "//p[@class='synopsis']"})

        assert result["synopsis"] == ["A", "drops a notebook."]

    def test_attribute(self, extractor):
        result = extractor.extract(HTML, {"image": "//img[contains(@itemprop, 'image')]/@src"})

        assert result.string("image") == "https://cdn.example.org/1.jpg"

    def test_attribute_keeps_multi_valued_attributes_whole(self, extractor):
        result = extractor.extract(HTML, {"classes": "//h1/@class"})

        assert result["classes"] == ["anime title"]

    def test_attribute_skips_elements_without_it(self, extractor):
        result = extractor.extract(HTML, {"links": "//ul[@class='links']/li/a/@href"})

        assert result["links"] == ["/anime/1", "/anime/2"]

    def test_attribute_missing_on_all_matches(self, extractor):
        result = extractor.extract(HTML, {"links": "//h1/@href"})

        assert result["links"] == []
        assert result.not_found("links") is False

    def test_node(self, extractor):
        result = extractor.extract(HTML, {"json": "//script[@type='application/ld+json']/node()"})

        assert result["json"] == ['{"name": "Death Note"}']

    def test_int_from_text(self, extractor):
        result = extractor.extract(HTML, {"episodes": "//span[contains(@itemprop, 'numberOfEpisodes')]/text()"})

        assert result.int("episodes") == 37


class TestAxes:

    def test_direct_children(self, extractor):
        result = extractor.extract(HTML, {"spans": "//div[@class='info']/span"})

        assert result["spans"] == ["37", "Mystery", "Thriller"]

    def test_following_sibling(self, extractor):
        selector = "//div[@class='info']/span[@itemprop='numberOfEpisodes']/following-sibling::span/text()"

        result = extractor.extract(HTML, {"tags": selector})

        assert result["tags"] == ["Mystery", "Thriller"]

    def test_descendant_steps_with_text_filter_and_sibling(self, extractor):
        selector = "//tr[contains(@class, 'type')]//th[contains(text(), 'Type')]/following-sibling::*/text()"

        result = extractor.extract(HTML, {"type": selector})

        assert result.string("type") == "TV Series"

    def test_implicit_tbody(self, extractor):
        selector = "//table[@id='eplist']/tbody/tr[@class='season']/td/text()"

        result = extractor.extract(HTML, {"season": selector})

        assert result.string("season") == "Fall 2006"

    def test_bare_accessor_after_descendant_step(self, extractor):
        result = extractor.extract(HTML, {"classes": "//ul//@class"})

        assert result["classes"] == ["links"]

    def test_bare_accessor_reads_from_document_root(self, extractor):
        result = extractor.extract(HTML, {"lang": "@lang"})

        assert result["lang"] == ["en"]


DETAILS = """<html><body>
<div class="details">
  <div class="row"><div>Format</div> TV </div>
  <div class="row"><div>Episodes</div><span>37</span></div>
  <div class="row"><div>Season</div><a href="/season/fall-2006">Fall 2006</a></div>
  <div class="row"><div>Tags</div>
    <ul>
      <li><a data-target="tagChip">Mystery</a></li>
      <li><a data-target="tagChip">Thriller</a></li>
      <li><a>Other</a></li>
    </ul>
  </div>
</div>
</body></html>
"""


class TestParentStep:

    def test_parent_then_child(self, extractor):
        raw = "<div><div>Format</div><span>TV</span></div>"

        result = extractor.extract(raw, {"type": "//div[contains(text(), 'Format')]/../span/text()"})

        assert result["type"] == ["TV"]

    def test_own_text_of_parent(self, extractor):
        result = extractor.extract(DETAILS, {"type": "//div[contains(text(), 'Format')]/.."})

        assert result.string("type") == "TV"

    def test_full_text_of_parent(self, extractor):
        result = extractor.extract(DETAILS, {"type": "//div[contains(text(), 'Format')]/../text()"})

        assert result.string("type") == "Format TV"

    def test_parent_then_accessor_on_child(self, extractor):
        result = extractor.extract(DETAILS, {
            "season": "//div[contains(text(), 'Season')]/../a/text()",
            "link": "//div[contains(text(), 'Season')]/../a/@href",
            "episodes": "//div[contains(text(), 'Episodes')]/../span/text()",
        })

        assert result.string("season") == "Fall 2006"
        assert result.string("link") == "/season/fall-2006"
        assert result.int("episodes") == 37

    def test_parent_then_descendant_step(self, extractor):
        selector = "//div[contains(text(), 'Tags')]/..//a[@data-target='tagChip']/text()"

        result = extractor.extract(DETAILS, {"tags": selector})

        assert result["tags"] == ["Mystery", "Thriller"]

    def test_step_after_parent_only_matches_children(self, extractor):
        result = extractor.extract(DETAILS, {"tags": "//div[contains(text(), 'Tags')]/../a/text()"})

        assert result["tags"] is NotFound

    def test_shared_parent_is_read_once(self, extractor):
        result = extractor.extract(DETAILS, {"class": "//div[@class='row']/../@class"})

        assert result["class"] == ["details"]


class TestIndexFilter:

    def test_index_counts_from_zero(self, extractor):
        result = extractor.extract(HTML, {
            "first": "//table[@id='eplist']/tbody/tr[0]/th/text()",
            "second": "//table[@id='eplist']/tbody/tr[1]/td/text()",
        })

        assert result.string("first") == "Type"
        assert result.string("second") == "Fall 2006"

    def test_index_with_attribute_filter(self, extractor):
        result = extractor.extract(HTML, {"last": "//ul[@class='links']/li[2]/a"})

        assert result.string("last") == "No link"

    def test_index_out_of_range(self, extractor):
        assert extractor.extract(HTML, {"result": "//ul/li[3]"}).not_found("result") is True


class TestSettings:

    def test_whitespace_kept_when_not_collapsing(self):
        extractor = TreeQueryExtractor(ExtractorSettings(collapse_whitespace=False))

        result = extractor.extract("<p>a\n  b</p>", {"text": "//p"})

        assert result["text"] == ["a\n  b"]

    def test_xml_parser(self):
        xml = "<feed><entry><title>A</title></entry><entry><title>B</title></entry></feed>"
        extractor = TreeQueryExtractor(ExtractorSettings(parser="lxml-xml"))

        result = extractor.extract(xml, {"titles": "//entry/title/text()"})

        assert result["titles"] == ["A", "B"]

    def test_unknown_parser_is_rejected(self):
        with pytest.raises(ValidationError):
            ExtractorSettings(parser="regex")


class TestConcurrency:

    def test_independent_calls_in_parallel(self):
        extractor = TreeQueryExtractor()
        pages = [f"<html><body><h1>Title {i}</h1></body></html>" for i in range(20)]

        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(lambda page: extractor.extract(page, {"title": "//h1/text()"}), pages))

        assert [result.string("title") for result in results] == [f"Title {i}" for i in range(20)]


def test_convenience_function():
    assert extract(HTML, {"title": "//title/text()"}).string("title") == "Death Note"
