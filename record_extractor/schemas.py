"""
Pydantic settings models for the extractors.

ExtractorSettings: how raw HTML/XML is parsed and how text is normalized
BatchSettings:     how BatchPathExtractor reads files and sizes its pools
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Parser names BeautifulSoup accepts for the tree extractor
SUPPORTED_PARSERS = ("html5lib", "html.parser", "lxml", "lxml-xml", "xml")


class ExtractorSettings(BaseModel):
    """Parsing options shared by the document extractors."""
    model_config = ConfigDict(frozen=True)

    parser: str = "html5lib"            # BeautifulSoup tree builder
    collapse_whitespace: bool = True    # Merge runs of whitespace into single spaces

    @field_validator("parser")
    @classmethod
    def _known_parser(cls, value: str) -> str:
        if value not in SUPPORTED_PARSERS:
            raise ValueError(f"Unsupported parser [{value}], expected one of {SUPPORTED_PARSERS}")
        return value


class BatchSettings(BaseModel):
    """Options for reading files in batch extraction."""
    model_config = ConfigDict(frozen=True)

    encoding: str = "utf-8"
    # Blocking reads and CPU-bound extraction use separate pools so a slow
    # disk cannot starve the extraction work
    io_workers: int = Field(default=8, ge=1)
    cpu_workers: int = Field(default=4, ge=1)
