"""
JSON extractor using a restricted JSONPath syntax.

Supported selectors are rooted at "$" and chain member and index steps:

  $.title                  member by name
  $.data['main-title']     member by quoted name (names with dots, dashes, spaces)
  $.episodes[1]            array index, negative counts from the end

Integers stay int and numbers with a fractional part stay float, so the
ExtractionResult accessors can tell them apart.
"""

import json
from typing import Any, Union

from .base import DataExtractor, Selection
from .exceptions import DocumentError, InvalidExpressionError
from .logger import get_module_logger
from .path_expression import QUOTES
from .result import ExtractionResult, NotFound

logger = get_module_logger("json_extractor")

ROOT = "$"
NAME_TERMINATORS = ".["

PathStep = Union[str, int]


def parse_json_path(path: str) -> list[PathStep]:
    """
    Parse a selector into member names (str) and array indices (int).

    Raises:
        InvalidExpressionError: If the selector is outside the supported syntax.
    """
    text = path.strip()

    def fail(reason: str, position: int):
        raise InvalidExpressionError(
            f"Invalid JSON path [{path}]: {reason} at position {position}.",
            expression=path,
            details={"position": position}
        )

    if not text.startswith(ROOT):
        fail(f"must start with '{ROOT}'", 0)

    steps: list[PathStep] = []
    pos = len(ROOT)

    while pos < len(text):
        char = text[pos]

        if char == ".":
            start = pos + 1
            end = start
            while end < len(text) and text[end] not in NAME_TERMINATORS:
                end += 1
            name = text[start:end].strip()
            if not name:
                fail("expected a member name", start)
            steps.append(name)
            pos = end

        elif char == "[":
            pos += 1
            if pos < len(text) and text[pos] in QUOTES:
                quote = text[pos]
                end = text.find(quote, pos + 1)
                if end == -1:
                    fail("unterminated string", pos)
                steps.append(text[pos + 1:end])
                pos = end + 1
            else:
                end = text.find("]", pos)
                if end == -1:
                    fail("expected ']'", pos)
                try:
                    steps.append(int(text[pos:end].strip()))
                except ValueError:
                    fail(f"unsupported index [{text[pos:end]}]", pos)
                pos = end
            if pos >= len(text) or text[pos] != "]":
                fail("expected ']'", pos)
            pos += 1

        else:
            fail(f"unexpected '{char}'", pos)

    return steps


def resolve(document: Any, steps: list[PathStep]) -> Any:
    """Walk the parsed document along steps, NotFound if any step is missing."""
    node = document
    for step in steps:
        if isinstance(step, str):
            if not isinstance(node, dict) or step not in node:
                return NotFound
            node = node[step]
        else:
            if not isinstance(node, list) or not -len(node) <= step < len(node):
                return NotFound
            node = node[step]

    # JSON null means there is nothing to extract
    return NotFound if node is None else node


class JsonPathExtractor(DataExtractor):
    """Extracts values from JSON documents."""

    def extract(self, raw_content: str, selection: Selection) -> ExtractionResult:
        """
        Extract values from a JSON document.

        Blank raw content yields NotFound for every key without parsing.

        Raises:
            InvalidExpressionError: If a selector is malformed
            DocumentError: If raw_content is not valid JSON
        """
        paths = {key: parse_json_path(selector) for key, selector in selection.items()}

        if not raw_content or not raw_content.strip():
            logger.debug("Raw content is blank, every key is NotFound")
            return ExtractionResult({key: NotFound for key in paths})

        if not paths:
            return ExtractionResult()

        try:
            document = json.loads(raw_content)
        except json.JSONDecodeError as e:
            raise DocumentError(
                f"Unable to parse JSON: {e.msg}",
                details={"line": e.lineno, "column": e.colno}
            ) from e

        result = {key: resolve(document, steps) for key, steps in paths.items()}
        for key, value in result.items():
            logger.debug(f"[{key}] {selection[key]} -> {value!r}")

        return ExtractionResult(result)


def extract(raw_content: str, selection: Selection) -> ExtractionResult:
    """Convenience function to extract values from JSON."""
    return JsonPathExtractor().extract(raw_content, selection)
