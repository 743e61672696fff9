"""
Tree-query extractor for HTML and XML documents.

Each selector is cut into descendant steps (split_descendants), each step is
rendered to a CSS selector and run with BeautifulSoup.select() inside the
elements matched by the previous step. The terminating accessor of the last
step decides what is read from the final elements:

  (none)   own text nodes of each element
  text()   full text of each element
  node()   raw data of <script>/<style> elements
  @attr    attribute value of each element that has it

A ".." step climbs to the parent of every element matched so far.

Input:  raw HTML/XML string + {output key: selector}
Output: ExtractionResult, NotFound where nothing matched, else a list of strings
"""

import re
from typing import Any, Iterable, Optional

import soupsieve
from bs4 import BeautifulSoup, FeatureNotFound
from bs4.element import CData, NavigableString, PreformattedString, Tag

from .base import DataExtractor, Selection
from .exceptions import DocumentError, InvalidExpressionError
from .logger import get_module_logger
from .path_expression import NODE_ACCESSOR, PARENT_STEP, TEXT_ACCESSOR, PathExpression, split_descendants
from .result import ExtractionResult, NotFound
from .schemas import ExtractorSettings

logger = get_module_logger("tree_extractor")

# Elements whose content is raw data rather than text
DATA_TAGS = ("script", "style")

WHITESPACE_PATTERN = re.compile(r"\s+")


def _is_text(node) -> bool:
    """Text node that contributes to visible text (no comments, doctypes or script data)."""
    if not isinstance(node, NavigableString):
        return False
    # CData is preformatted but still text, comments and declarations are not
    if isinstance(node, PreformattedString) and not isinstance(node, CData):
        return False
    return node.parent is None or node.parent.name not in DATA_TAGS


def _unique(elements: Iterable[Optional[Tag]]) -> list[Tag]:
    """Drop duplicates (by Python object id) and None, keeping first-seen order."""
    unique = []
    seen = set()
    for element in elements:
        if element is not None and id(element) not in seen:
            unique.append(element)
            seen.add(id(element))
    return unique


class TreeQueryExtractor(DataExtractor):
    """Extracts values from HTML/XML using path expressions."""

    def __init__(self, settings: Optional[ExtractorSettings] = None):
        self.settings = settings or ExtractorSettings()

    def extract(self, raw_content: str, selection: Selection) -> ExtractionResult:
        """
        Extract values from an HTML/XML document.

        Args:
            raw_content: HTML or XML string
            selection: Output key → path expression

        Returns:
            ExtractionResult with one entry per selection key

        Raises:
            InvalidExpressionError: If a selector is malformed
            DocumentError: If the configured parser is unavailable
        """
        # Parse all selectors before touching the document so a typo fails fast
        queries = {key: split_descendants(selector) for key, selector in selection.items()}

        if not queries:
            return ExtractionResult()

        try:
            document = BeautifulSoup(raw_content, self.settings.parser, multi_valued_attributes=None)
        except FeatureNotFound as e:
            raise DocumentError(
                f"Parser [{self.settings.parser}] is not available: {e}",
                details={"parser": self.settings.parser}
            ) from e

        result = {}
        for key, steps in queries.items():
            result[key] = self._evaluate(document, steps)
            logger.debug(f"[{key}] {' // '.join(step.render() for step in steps)} -> {result[key]!r}")

        found = sum(1 for value in result.values() if value is not NotFound)
        logger.info(f"Extracted {found}/{len(result)} keys")
        return ExtractionResult(result)

    def _evaluate(self, document: BeautifulSoup, steps: list[PathExpression]) -> Any:
        last = steps[-1]

        # A bare accessor as last step reads from the elements of the step before
        if last.is_terminating_child():
            element_steps = steps[:-1]
            accessor = last.accessor
        else:
            element_steps = steps
            accessor = last.terminating_child

        if element_steps:
            elements = [document]
            for step in element_steps:
                elements = self._select(elements, step)
                if not elements:
                    return NotFound
        else:
            elements = document.find_all(True, recursive=False) or [document]

        return self._read(elements, accessor)

    def _select(self, context: Iterable[Tag], step: PathExpression) -> list[Tag]:
        """Run one step inside every context element, dropping duplicates."""
        elements = list(context)
        for css in step.to_soupsieve_chain():
            if css == PARENT_STEP:
                elements = _unique(el.parent for el in elements)
            else:
                elements = self._select_css(elements, css, step)
            if not elements:
                break
        return elements

    @staticmethod
    def _select_css(context: list[Tag], css: str, step: PathExpression) -> list[Tag]:
        matches = []
        for element in context:
            try:
                matches.extend(element.select(css))
            except soupsieve.SelectorSyntaxError as e:
                raise InvalidExpressionError(
                    f"Path expression [{step.path}] rendered to unusable selector [{css}]: {e}",
                    expression=step.path
                ) from e
        return _unique(matches)

    def _normalize(self, text: str) -> str:
        if self.settings.collapse_whitespace:
            text = WHITESPACE_PATTERN.sub(" ", text)
        return str(text).strip()

    def _read(self, elements: list[Tag], accessor: str) -> list[str]:
        if accessor == TEXT_ACCESSOR:
            texts = (self._normalize("".join(s for s in el.descendants if _is_text(s))) for el in elements)
            return [text for text in texts if text]

        if accessor == NODE_ACCESSOR:
            return [
                "".join(str(child) for child in el.children if isinstance(child, NavigableString)).strip()
                for el in elements
                if el.name in DATA_TAGS
            ]

        if accessor.startswith("@"):
            attribute = accessor[1:]
            return [str(el.get(attribute)) for el in elements if el.has_attr(attribute)]

        # No accessor: the element's own text nodes
        values = []
        for el in elements:
            for child in el.children:
                if _is_text(child):
                    text = self._normalize(child)
                    if text:
                        values.append(text)
        return values


def extract(raw_content: str, selection: Selection, settings: Optional[ExtractorSettings] = None) -> ExtractionResult:
    """Convenience function to extract values from HTML/XML."""
    return TreeQueryExtractor(settings).extract(raw_content, selection)
