"""
Batch extraction over files on disk.

BatchPathExtractor wraps any DataExtractor and applies it to a single file or
to every file with a given suffix directly inside a directory. Reading files
is blocking I/O and runs on its own thread pool, separate from the pool that
runs the extraction itself.
"""

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Optional, Union

from .base import DataExtractor, PathDataExtractor, Selection
from .exceptions import PathNotFoundError
from .logger import get_module_logger
from .result import ExtractionResult
from .schemas import BatchSettings

logger = get_module_logger("batch_extractor")


class BatchPathExtractor(PathDataExtractor):
    """Applies a DataExtractor to one file or a directory of files."""

    def __init__(
        self,
        data_extractor: DataExtractor,
        file_suffix: str,
        settings: Optional[BatchSettings] = None
    ):
        """
        Args:
            data_extractor: Extractor applied to each file's text
            file_suffix: Suffix of files to process in directories, without the dot
                         (case-sensitive, e.g. "html")
            settings: Encoding and pool sizes
        """
        self.data_extractor = data_extractor
        self.file_suffix = file_suffix.lstrip(".")
        self.settings = settings or BatchSettings()

    def extract(self, path: Union[str, Path], selection: Selection) -> list[ExtractionResult]:
        """
        Extract from a file or from all matching files in a directory.

        Cross-file order of the results is unspecified.

        Returns:
            One ExtractionResult per processed file

        Raises:
            PathNotFoundError: If path doesn't exist
            Any error of the wrapped extractor; a single bad file fails the batch
        """
        path = Path(path)

        if path.is_file():
            logger.info(f"Extracting single file: {path}")
            return [self.data_extractor.extract(self._read(path), selection)]

        if path.is_dir():
            return self._extract_directory(path, selection)

        raise PathNotFoundError(path)

    def _matches(self, file: Path) -> bool:
        return file.is_file() and file.name.endswith(f".{self.file_suffix}")

    def _read(self, file: Path) -> str:
        return file.read_text(encoding=self.settings.encoding)

    def _extract_directory(self, directory: Path, selection: Selection) -> list[ExtractionResult]:
        files = [entry for entry in directory.iterdir() if self._matches(entry)]
        logger.info(f"Extracting {len(files)} *.{self.file_suffix} files in {directory}")

        if not files:
            return []

        with ThreadPoolExecutor(max_workers=self.settings.io_workers) as io_pool, \
                ThreadPoolExecutor(max_workers=self.settings.cpu_workers) as cpu_pool:
            reads = [io_pool.submit(self._read, file) for file in files]
            jobs = [cpu_pool.submit(self.data_extractor.extract, read.result(), selection) for read in reads]
            # result() re-raises the first failing file's exception
            results = [job.result() for job in jobs]

        logger.info(f"Extracted {len(results)} results from {directory}")
        return results
