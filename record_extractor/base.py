"""
Extractor capability interfaces.

DataExtractor:     raw document text + selection → ExtractionResult
PathDataExtractor: file or directory + selection → one ExtractionResult per file

A selection maps output keys (chosen by the scraper) to selector strings in
the syntax of the concrete extractor.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Mapping, Union

from .result import ExtractionResult

OutputKey = str
Selector = str
Selection = Mapping[OutputKey, Selector]


class DataExtractor(ABC):
    """Extracts named values from one raw document."""

    @abstractmethod
    def extract(self, raw_content: str, selection: Selection) -> ExtractionResult:
        """
        Evaluate every selector against raw_content.

        Returns:
            ExtractionResult holding every key of selection
        """
        pass


class PathDataExtractor(ABC):
    """Applies a DataExtractor to files on disk."""

    @abstractmethod
    def extract(self, path: Union[str, Path], selection: Selection) -> list[ExtractionResult]:
        pass
