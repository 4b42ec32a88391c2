# utils/file_handler.py

"""
File handling utilities
"""

import io
from pathlib import Path
from typing import Optional, Sequence

from openpyxl import Workbook

from insightscout.core.exceptions import UnsupportedFileError
from insightscout.models.research import NOT_FOUND, CompanyResult

XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

ALLOWED_CONTENT_TYPES = {
    ".xlsx": {XLSX_CONTENT_TYPE},
    # Browsers on Windows report CSV uploads as the legacy Excel type
    ".csv": {"text/csv", "application/csv", "application/vnd.ms-excel"},
}

EXPORT_COLUMNS = [
    ("Company Name", 30),
    ("Founder Name", 25),
    ("Role", 15),
    ("LinkedIn URL", 50),
    ("Email", 35),
    ("Phone", 20),
    ("Status", 12),
]


def _human_size(num_bytes: int) -> str:
    if num_bytes >= 1024 * 1024:
        return f"{num_bytes / (1024 * 1024):g}MB"
    return f"{num_bytes} byte"


def validate_upload(filename: Optional[str], content_type: Optional[str], size: int, max_bytes: int):
    """Reject uploads that are not .xlsx/.csv or exceed the size cap"""
    if not filename:
        raise UnsupportedFileError("No file uploaded")

    extension = Path(filename).suffix.lower()
    if extension not in ALLOWED_CONTENT_TYPES:
        raise UnsupportedFileError("Invalid file extension. Only .xlsx and .csv files are allowed")

    mime = (content_type or "").split(";")[0].strip().lower()
    if mime not in ALLOWED_CONTENT_TYPES[extension]:
        raise UnsupportedFileError("Only Excel (.xlsx) and CSV files are allowed")

    if size == 0:
        raise UnsupportedFileError("Uploaded file is empty")
    if size > max_bytes:
        raise UnsupportedFileError(f"File exceeds the {_human_size(max_bytes)} size limit")


def build_results_workbook(results: Sequence[CompanyResult]) -> bytes:
    """One row per founder; companies without founders still get a row"""
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Companies"
    sheet.append([title for title, _ in EXPORT_COLUMNS])

    for result in results:
        founders = result.founders_data
        if not founders:
            sheet.append([result.company_name, NOT_FOUND, NOT_FOUND, NOT_FOUND,
                          NOT_FOUND, NOT_FOUND, result.status.value])
            continue
        for founder in founders:
            sheet.append([
                result.company_name,
                founder.name,
                founder.role,
                founder.linkedin_url,
                founder.email,
                founder.phone,
                result.status.value
            ])

    for index, (_, width) in enumerate(EXPORT_COLUMNS):
        sheet.column_dimensions[chr(ord("A") + index)].width = width

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()
