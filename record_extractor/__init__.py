"""
Record Extractor

Shared extraction toolkit for site-specific scrapers. A scraper supplies
{output key: selector} and gets back a uniform ExtractionResult.
- PathExpression:     constrained XPath-like grammar rendered to CSS selectors
- TreeQueryExtractor: HTML/XML through BeautifulSoup
- XPathExtractor:     XML through lxml XPath
- JsonPathExtractor:  JSON through a restricted JSONPath
- BatchPathExtractor: any of the above over a file or a directory

Public API surface:
  Extractors   — TreeQueryExtractor, XPathExtractor, JsonPathExtractor, BatchPathExtractor
  Interfaces   — DataExtractor, PathDataExtractor
  Results      — ExtractionResult, NotFound, NotFoundType
  Expressions  — PathExpression, split_descendants
  Settings     — ExtractorSettings, BatchSettings
  Error types  — ExtractorError and subclasses
"""

# --- Selector grammar ---
from .path_expression import PathExpression, split_descendants

# --- Results ---
from .result import ExtractionResult, NotFound, NotFoundType

# --- Extractors ---
from .base import DataExtractor, PathDataExtractor
from .tree_extractor import TreeQueryExtractor
from .xpath_extractor import XPathExtractor
from .json_extractor import JsonPathExtractor
from .batch_extractor import BatchPathExtractor

# --- Settings ---
from .schemas import ExtractorSettings, BatchSettings

# --- Exceptions (callers should catch these for error handling) ---
from .exceptions import (
    ExtractorError,
    InvalidExpressionError,
    PathNotFoundError,
    DocumentError,
    UnknownKeyError,
    CoercionError,
    TypeMismatchError,
)

__version__ = "0.1.0"
__all__ = [
    "PathExpression",
    "split_descendants",
    "ExtractionResult",
    "NotFound",
    "NotFoundType",
    "DataExtractor",
    "PathDataExtractor",
    "TreeQueryExtractor",
    "XPathExtractor",
    "JsonPathExtractor",
    "BatchPathExtractor",
    "ExtractorSettings",
    "BatchSettings",
    "ExtractorError",
    "InvalidExpressionError",
    "PathNotFoundError",
    "DocumentError",
    "UnknownKeyError",
    "CoercionError",
    "TypeMismatchError",
]
