"""
XPath extractor for XML (and optionally HTML) documents, backed by lxml.

Selectors are real XPath. A trailing @attr, text() or node() step is cut off
and decides what is read from the matched elements, the rest is evaluated
with lxml:

  //item/title/text()   → full text of every <title> inside an <item>
  //link/@href          → href of every <link> that has one
  //item/guid           → own text nodes of every <guid>

XML namespaces are stripped after parsing, elements are selected by local name.
"""

import re
from typing import Any

from lxml import etree

from .base import DataExtractor, Selection
from .exceptions import DocumentError, InvalidExpressionError
from .logger import get_module_logger
from .path_expression import NODE_ACCESSOR, QUOTES, TEXT_ACCESSOR
from .result import ExtractionResult, NotFound

logger = get_module_logger("xpath_extractor")

WHITESPACE_PATTERN = re.compile(r"\s+")


def split_accessor(selector: str) -> tuple[str, str]:
    """
    Split an XPath selector into (element expression, accessor).

    The accessor is the last step if it is @attr, text() or node(), otherwise
    empty. Slashes inside quoted values, predicates and function arguments
    are not step separators.
    """
    quote = None
    depth = 0
    last_slash = -1
    for index, char in enumerate(selector):
        if quote:
            if char == quote:
                quote = None
        elif char in QUOTES:
            quote = char
        elif char in "[(":
            depth += 1
        elif char in "])":
            depth -= 1
        elif char == "/" and depth == 0:
            last_slash = index

    last_step = selector[last_slash + 1:].strip()
    if last_step.startswith("@") or last_step in (TEXT_ACCESSOR, NODE_ACCESSOR):
        return selector[:last_slash + 1].rstrip("/"), last_step
    return selector, ""


def _strip_namespaces(root):
    """
    Reduce every element name to its local name.

    Feeds declare a default namespace (Atom, RSS 1.0) which would otherwise
    hide every element from unprefixed XPath. Prefixed elements (dc:creator)
    are selected by local name (creator) afterwards.
    """
    for el in root.iter():
        # comments and processing instructions have no string tag
        if isinstance(el.tag, str):
            el.tag = etree.QName(el).localname
    etree.cleanup_namespaces(root)
    return root


class XPathExtractor(DataExtractor):
    """Extracts values from XML/HTML using XPath expressions."""

    def __init__(self, html: bool = False):
        # html=True parses with lxml's lenient HTML parser instead of strict XML
        self.html = html

    def _parse(self, raw_content: str):
        try:
            if self.html:
                return etree.HTML(raw_content)
            parser = etree.XMLParser(resolve_entities=False, no_network=True)
            # bytes so documents with an encoding declaration are accepted
            root = etree.fromstring(raw_content.encode("utf-8"), parser=parser)
        except etree.XMLSyntaxError as e:
            raise DocumentError(f"Unable to parse XML: {e}", details={"line": e.lineno}) from e
        return _strip_namespaces(root)

    def extract(self, raw_content: str, selection: Selection) -> ExtractionResult:
        """
        Extract values from an XML/HTML document.

        Blank raw content yields NotFound for every key without parsing.

        Raises:
            InvalidExpressionError: If a selector is not valid XPath
            DocumentError: If the document cannot be parsed
        """
        if not selection:
            return ExtractionResult()

        if not raw_content.strip():
            logger.warning("Raw content is blank, every key is NotFound")
            return ExtractionResult({key: NotFound for key in selection})

        root = self._parse(raw_content)
        if root is None:
            return ExtractionResult({key: NotFound for key in selection})

        result = {}
        for key, selector in selection.items():
            expression, accessor = split_accessor(selector)
            result[key] = self._read(self._evaluate(root, selector, expression), accessor)
            logger.debug(f"[{key}] {selector} -> {result[key]!r}")

        logger.info(f"Extracted {len(result)} keys via XPath")
        return ExtractionResult(result)

    def _evaluate(self, root, selector: str, expression: str) -> list:
        if not expression:
            return [root]
        try:
            matches = root.xpath(expression)
        except etree.XPathError as e:
            raise InvalidExpressionError(
                f"Invalid XPath [{selector}]: {e}",
                expression=selector
            ) from e
        # Functions like count() return a scalar rather than a node-set
        if not isinstance(matches, list):
            return [matches]
        return matches

    @staticmethod
    def _normalize(text: str) -> str:
        return WHITESPACE_PATTERN.sub(" ", str(text)).strip()

    def _read(self, matches: list, accessor: str) -> Any:
        if not matches:
            return NotFound

        elements = [match for match in matches if isinstance(match, etree._Element)]
        # Anything XPath already reduced to a value (string(), count()) is kept as is
        values = [
            self._normalize(match) if isinstance(match, str) else match
            for match in matches
            if not isinstance(match, etree._Element)
        ]

        if accessor == TEXT_ACCESSOR:
            texts = (self._normalize(el.xpath("string()")) for el in elements)
            values.extend(text for text in texts if text)
        elif accessor == NODE_ACCESSOR:
            values.extend(self._normalize(el.xpath("string()")) for el in elements)
        elif accessor.startswith("@"):
            attribute = accessor[1:]
            values.extend(str(el.get(attribute)) for el in elements if el.get(attribute) is not None)
        else:
            for el in elements:
                texts = (self._normalize(text) for text in el.xpath("text()"))
                values.extend(text for text in texts if text)

        return values


def extract(raw_content: str, selection: Selection, html: bool = False) -> ExtractionResult:
    """Convenience function to extract values with XPath."""
    return XPathExtractor(html=html).extract(raw_content, selection)
