"""
File Processor Module

Runs an uploaded file through extraction and batch validation.
"""

import logging
import time
from typing import Optional, Tuple

from .artifacts import ArtifactStore
from .config import BATCH_CHUNK_SIZE, BATCH_DELAY_MS
from .extractor import EmailExtractor
from .models import BatchResult, ExtractionResult, FileInfo, ProcessingStats
from .spreadsheet import generate_results_workbook
from .validator import EmailValidator

logger = logging.getLogger(__name__)


class FileProcessor:
    """
    Orchestrates extraction and validation of an uploaded file.

    Args:
        extractor: Pulls candidate emails out of the file
        validator: Validates the candidates in paced chunks
        artifact_store: Receives the generated results workbook, if any
        chunk_size: Emails validated concurrently per chunk
        delay_ms: Pause between chunks
    """

    def __init__(self, extractor: EmailExtractor, validator: EmailValidator,
                 artifact_store: Optional[ArtifactStore] = None,
                 chunk_size: int = BATCH_CHUNK_SIZE, delay_ms: int = BATCH_DELAY_MS):
        self.extractor = extractor
        self.validator = validator
        self.artifact_store = artifact_store
        self.chunk_size = chunk_size
        self.delay_ms = delay_ms

    def process_file(self, filename: str, mime_type: str, data: bytes) -> Tuple[ExtractionResult, FileInfo]:
        """
        Validate the upload and extract its candidate emails.

        Raises:
            FileTooLargeError, UnsupportedFormatError, ExtractionFailedError,
            EmptyExtractionError
        """
        self.extractor.check_size(len(data))
        file_type = self.extractor.detect_file_type(filename, mime_type)
        extraction = self.extractor.extract(data, file_type)

        logger.info(
            f"Extracted {len(extraction.emails)} emails from {filename!r} "
            f"(matches={extraction.total_extracted}, "
            f"duplicates={extraction.duplicates_removed}, truncated={extraction.truncated})"
        )
        file_info = FileInfo(name=filename, size=len(data), type=file_type, mime_type=mime_type or '')
        return extraction, file_info

    async def process_and_validate(self, filename: str, mime_type: str, data: bytes,
                                   generate_excel: bool = False) -> BatchResult:
        """
        Extract and validate every email in an uploaded file.

        Args:
            filename: Uploaded file name
            mime_type: Declared content type
            data: Raw file bytes
            generate_excel: Store a results workbook and report its download id

        Returns:
            BatchResult with per-email results and processing statistics
        """
        started_at = time.time()
        extraction, file_info = self.process_file(filename, mime_type, data)

        results = await self.validator.validate_batch(
            extraction.emails,
            max_concurrent=self.chunk_size,
            delay_ms=self.delay_ms,
        )

        download_id = None
        if generate_excel and self.artifact_store is not None:
            download_id = self.artifact_store.create(generate_results_workbook(results))

        completed_at = time.time()
        return BatchResult.from_results(
            results,
            file_info=file_info,
            processing_stats=ProcessingStats(
                started_at=started_at,
                completed_at=completed_at,
                elapsed_ms=int((completed_at - started_at) * 1000),
                truncated=extraction.truncated,
            ),
            download_id=download_id,
        )
