"""
Spreadsheet Module

Builds the downloadable workbook summarizing a batch validation.
"""

import io
from datetime import datetime, timezone
from typing import Iterable, Optional

from openpyxl import Workbook

from .models import ValidationResult

HEADERS = ('Email', 'Status')
COLUMN_WIDTHS = {'A': 40, 'B': 15}


def generate_results_workbook(results: Iterable[ValidationResult],
                              sheet_name: str = 'Validation Results') -> bytes:
    """
    Generate an xlsx workbook listing each email with Valid/Invalid status.

    Args:
        results: Validation results in display order
        sheet_name: Title of the single worksheet

    Returns:
        The workbook serialized as xlsx bytes
    """
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = sheet_name

    sheet.append(HEADERS)
    for result in results:
        sheet.append((result.email, 'Valid' if result.valid else 'Invalid'))

    for column, width in COLUMN_WIDTHS.items():
        sheet.column_dimensions[column].width = width

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def generate_filename(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"validation-results-{now.strftime('%Y-%m-%dT%H-%M-%S')}.xlsx"
