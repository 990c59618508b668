"""
CSV parsing for bulk member import.

Uses the standard CSV grammar, so quoted fields may contain commas,
quotes and line breaks.
"""

import csv
import io
import logging
import re

from app.services.member_import.errors import ValidationError
from app.services.member_import.records import MemberImportRecord

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ["organization", "school", "member_name", "submission_url"]

_WHITESPACE = re.compile(r"\s+")


def normalize_header(header: str) -> str:
    """Lower-case a header cell and collapse internal whitespace to underscores."""
    return _WHITESPACE.sub("_", header.strip().lower())


def parse_csv(csv_content: str | bytes) -> tuple[list[str], list[dict[str, str]]]:
    """
    Split raw CSV text into normalized headers and records.

    Rows whose value count does not match the header are dropped without
    error. Blank rows are ignored.

    Returns:
        (headers, records) where each record maps header -> trimmed value
    """
    if isinstance(csv_content, bytes):
        # Try UTF-8 first, then fall back to latin-1
        try:
            csv_content = csv_content.decode("utf-8")
        except UnicodeDecodeError:
            csv_content = csv_content.decode("latin-1")

    csv_content = csv_content.lstrip("\ufeff")
    reader = csv.reader(io.StringIO(csv_content))

    headers: list[str] = []
    for row in reader:
        if any(cell.strip() for cell in row):
            headers = [normalize_header(cell) for cell in row]
            break

    if not headers:
        return [], []

    records = []
    dropped = 0
    for row in reader:
        if not any(cell.strip() for cell in row):
            continue
        if len(row) != len(headers):
            dropped += 1
            continue
        records.append({header: value.strip() for header, value in zip(headers, row)})

    if dropped:
        logger.debug(f"CSV parse: dropped {dropped} rows with mismatched column count")

    return headers, records


def parse_member_csv(csv_content: str | bytes) -> list[MemberImportRecord]:
    """
    Parse a member import CSV into import records.

    Raises:
        ValidationError: If there is no data row or a required column is missing
    """
    headers, records = parse_csv(csv_content)

    if not headers or not records:
        raise ValidationError("CSV must have at least a header and one data row")

    missing = [column for column in REQUIRED_COLUMNS if column not in headers]
    if missing:
        raise ValidationError(f"Missing required columns: {', '.join(missing)}")

    logger.info(f"CSV parse: {len(records)} member rows, columns {headers}")

    return [
        MemberImportRecord(
            organization_name=row["organization"],
            school_name=row["school"],
            member_name=row["member_name"],
            submission_url=row["submission_url"],
        )
        for row in records
    ]
