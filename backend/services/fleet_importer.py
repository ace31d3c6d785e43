"""Fleet roster importer - maps spreadsheet rows onto FleetEntry."""

from typing import Dict, List, Optional, Sequence
import io
import logging
import re

import pandas as pd
from pydantic import BaseModel

from config import settings
from schemas import FleetEntry, UNKNOWN_OWNER

logger = logging.getLogger(__name__)

# A row is the header once any cell looks like one of the known roster columns
HEADER_PATTERN = re.compile(r"tag|patente|dominio|responsable|dueño|plate|owner", re.IGNORECASE)

PLATE_PATTERN = re.compile(r"patente|dominio|plate", re.IGNORECASE)
OWNER_PATTERN = re.compile(r"responsable|dueño|titular|owner", re.IGNORECASE)
TAG_PATTERN = re.compile(r"tag|dispositivo|device", re.IGNORECASE)
UNIT_PATTERN = re.compile(r"equipo|interno|unit", re.IGNORECASE)

MIN_PLATE_LENGTH = 3
MIN_TAG_LENGTH = 4


class FleetImportError(Exception):
    """Raised when a roster spreadsheet cannot be read or has no header row."""


class ColumnMapping(BaseModel):
    """Column index per roster field (-1 when the column is absent)."""
    plate: int = -1
    owner: int = -1
    tag: int = -1
    unit_code: int = -1


def read_roster_rows(content: bytes, filename: str) -> List[list]:
    """Read every sheet of an .xlsx/.xls/.csv file into one list of raw rows."""
    try:
        if filename.lower().endswith(".csv"):
            frames = [pd.read_csv(io.BytesIO(content), header=None, dtype=str, keep_default_na=False)]
        else:
            sheets = pd.read_excel(io.BytesIO(content), sheet_name=None, header=None, dtype=str)
            frames = list(sheets.values())
    except Exception as e:
        raise FleetImportError(f"Could not read spreadsheet '{filename}': {e}") from e

    rows = []
    for frame in frames:
        rows.extend(frame.fillna("").values.tolist())
    return rows


def _cell(row: Sequence, index: int) -> str:
    if index < 0 or index >= len(row) or row[index] is None:
        return ""
    return str(row[index]).strip()


def _clean_identifier(value: str) -> str:
    return re.sub(r"[^A-Z0-9]", "", value.upper())


def find_header_row(rows: List[Sequence], max_scan: int = 100) -> int:
    """Index of the first row that looks like a roster header, or -1."""
    for i, row in enumerate(rows[:max_scan]):
        if any(HEADER_PATTERN.search(str(cell or "")) for cell in row):
            return i
    return -1


def guess_columns(headers: Sequence) -> ColumnMapping:
    """Guess which column holds each roster field from the header texts."""
    labels = [str(cell or "").lower() for cell in headers]

    def first(pattern: re.Pattern) -> int:
        return next((i for i, label in enumerate(labels) if pattern.search(label)), -1)

    return ColumnMapping(
        plate=first(PLATE_PATTERN),
        owner=first(OWNER_PATTERN),
        tag=first(TAG_PATTERN),
        unit_code=first(UNIT_PATTERN),
    )


def map_row(row: Sequence, mapping: ColumnMapping) -> Optional[FleetEntry]:
    """Build a FleetEntry from one data row, or None if it has no usable identifier."""
    plate = _clean_identifier(_cell(row, mapping.plate))
    tag = _clean_identifier(_cell(row, mapping.tag))

    if len(plate) < MIN_PLATE_LENGTH and len(tag) < MIN_TAG_LENGTH:
        return None

    return FleetEntry(
        plate=plate,
        owner=_cell(row, mapping.owner) or UNKNOWN_OWNER,
        tag=tag or None,
        unit_code=_cell(row, mapping.unit_code) or None,
    )


def build_roster(rows: List[Sequence], max_scan: Optional[int] = None) -> List[FleetEntry]:
    """
    Turn raw spreadsheet rows into a deduplicated roster.

    Rows are keyed by plate (or by tag when the plate is missing). A later
    duplicate only fills fields the first occurrence left empty.

    Raises:
        FleetImportError: no header row found
    """
    header_index = find_header_row(rows, max_scan or settings.fleet_header_scan_rows)
    if header_index == -1:
        raise FleetImportError("No roster columns (plate, tag, owner) found in the file")

    mapping = guess_columns(rows[header_index])
    roster: Dict[str, FleetEntry] = {}

    for row in rows[header_index + 1:]:
        entry = map_row(row, mapping)
        if entry is None:
            continue

        key = entry.plate or f"TAG_{entry.tag}"
        existing = roster.get(key)
        if existing is None:
            roster[key] = entry
            continue

        if not existing.tag and entry.tag:
            existing.tag = entry.tag
        if not existing.unit_code and entry.unit_code:
            existing.unit_code = entry.unit_code
        if (not existing.owner or existing.owner == UNKNOWN_OWNER) and entry.owner != UNKNOWN_OWNER:
            existing.owner = entry.owner

    logger.info(f"Roster built: {len(roster)} unique entries from {len(rows) - header_index - 1} rows")
    return list(roster.values())
