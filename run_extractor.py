#!/usr/bin/env python3
"""
CLI script to run an extractor over a file or a directory.

Selectors are passed as key=selector pairs; the output is a JSON array with
one object per processed file.

  python run_extractor.py page.html -s title="//h1/text()" -s image="//img/@src"
  python run_extractor.py dumps/ --format json --suffix json -s id='$.id'
"""

import argparse
import json
import os
import sys
from pathlib import Path

from dotenv import load_dotenv
load_dotenv()

from record_extractor.batch_extractor import BatchPathExtractor
from record_extractor.exceptions import ExtractorError
from record_extractor.json_extractor import JsonPathExtractor
from record_extractor.logger import setup_logger
from record_extractor.schemas import ExtractorSettings
from record_extractor.tree_extractor import TreeQueryExtractor
from record_extractor.xpath_extractor import XPathExtractor

# Default file suffix per format, used when --suffix isn't given
DEFAULT_SUFFIXES = {"html": "html", "xml": "xml", "json": "json"}


def parse_selection(pairs: list[str]) -> dict[str, str]:
    """Turn ["key=selector", ...] into a selection map."""
    selection = {}
    for pair in pairs:
        key, separator, selector = pair.partition("=")
        if not separator or not key.strip():
            raise argparse.ArgumentTypeError(f"Expected key=selector but got [{pair}]")
        selection[key.strip()] = selector
    return selection


def build_extractor(output_format: str, parser: str):
    if output_format == "json":
        return JsonPathExtractor()
    if output_format == "xml":
        return XPathExtractor()
    return TreeQueryExtractor(ExtractorSettings(parser=parser))


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Extract named values from HTML, XML or JSON files")
    parser.add_argument("path", help="File or directory to process")
    parser.add_argument("--selector", "-s", action="append", default=[], required=True,
                        help="Output key and selector as key=selector (repeatable)")
    parser.add_argument("--format", "-f", choices=sorted(DEFAULT_SUFFIXES), default="html",
                        help="Document format (default: html)")
    parser.add_argument("--suffix", help="File suffix to process in directories (default: format name)")
    parser.add_argument("--parser", default="html5lib", help="BeautifulSoup parser for html (default: html5lib)")
    parser.add_argument("--output", "-o", help="Output JSON file")
    parser.add_argument("--log-level", default=os.getenv("RECORD_EXTRACTOR_LOG_LEVEL", "WARNING"),
                        help="Log level (default: $RECORD_EXTRACTOR_LOG_LEVEL or WARNING)")
    args = parser.parse_args(argv)

    setup_logger(level=args.log_level.upper())

    try:
        selection = parse_selection(args.selector)
    except argparse.ArgumentTypeError as e:
        parser.error(str(e))

    extractor = BatchPathExtractor(
        build_extractor(args.format, args.parser),
        file_suffix=args.suffix or DEFAULT_SUFFIXES[args.format]
    )

    try:
        results = extractor.extract(args.path, selection)
    except ExtractorError as e:
        print(json.dumps(e.to_response(), indent=2, default=str), file=sys.stderr)
        return 1

    # ensure_ascii=False preserves unicode characters in the JSON
    output = json.dumps([result.to_dict() for result in results], indent=2, ensure_ascii=False)

    if args.output:
        Path(args.output).write_text(output, encoding="utf-8")
        print(f"Saved {len(results)} results to: {args.output}")
    else:
        print(output)

    return 0


if __name__ == "__main__":
    sys.exit(main())
