# utils/company_loader.py

"""
Company list loading from uploaded spreadsheets
"""

import io
import csv
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from openpyxl import load_workbook

from insightscout.core.exceptions import UnsupportedFileError

logger = logging.getLogger(__name__)

COMPANY_COLUMNS = [
    "company",
    "company name",
    "company_name",
    "name",
    "organization",
    "business",
]

_IGNORED_VALUES = {"", "undefined", "none"}


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return None if text.lower() in _IGNORED_VALUES else text


def _company_from_row(row: Dict[str, Any]) -> Optional[str]:
    normalized = {str(key).strip().lower(): value for key, value in row.items() if key is not None}
    for column in COMPANY_COLUMNS:
        name = _text(normalized.get(column))
        if name:
            return name

    # Fall back to the first column
    if row:
        return _text(next(iter(row.values())))
    return None


def companies_from_rows(rows: Iterable[Dict[str, Any]]) -> List[str]:
    """Company names from header-keyed rows, in row order"""
    companies = []
    for row in rows:
        name = _company_from_row(row)
        if name:
            companies.append(name)
    return companies


def _rows_from_csv(content: bytes) -> List[Dict[str, Any]]:
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise UnsupportedFileError("CSV file must be UTF-8 encoded") from e

    reader = csv.DictReader(io.StringIO(text))
    if not reader.fieldnames:
        return []
    return [row for row in reader if any((v or "").strip() for v in row.values() if isinstance(v, str))]


def _rows_from_xlsx(content: bytes) -> List[Dict[str, Any]]:
    try:
        workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except Exception as e:
        raise UnsupportedFileError(f"Could not read Excel file: {e}") from e

    try:
        sheet = workbook.worksheets[0]
        values = sheet.iter_rows(values_only=True)
        header = next(values, None)
        if not header:
            return []

        columns = [str(cell).strip() if cell is not None else f"column_{i}" for i, cell in enumerate(header)]
        rows = []
        for record in values:
            if record is None or all(cell is None for cell in record):
                continue
            rows.append(dict(zip(columns, record)))
        return rows
    finally:
        workbook.close()


def load_companies(filename: str, content: bytes) -> List[str]:
    """Ordered company names from an .xlsx or .csv upload"""
    extension = Path(filename or "").suffix.lower()
    logger.info(f"Reading company list from '{filename}'")

    if extension == ".xlsx":
        rows = _rows_from_xlsx(content)
    elif extension == ".csv":
        rows = _rows_from_csv(content)
    else:
        raise UnsupportedFileError("Unsupported file format")

    companies = companies_from_rows(rows)
    logger.info(f"Found {len(companies)} companies in '{filename}'")
    return companies
