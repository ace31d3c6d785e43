"""
Fleet reconciliation - links extracted toll/freight records to the fleet roster.

Matching precedence for each record (first match wins, roster order):
1. Tag: normalized tags overlap as substrings in either direction
   (toll operators truncate or pad device ids differently).
2. Plate: normalized plates are exactly equal.

Identifiers of 4 characters or fewer after normalization never match.
"""

from typing import Iterable, List, Optional
import logging
import re

from schemas import ExtractedRecord, FleetEntry, ReconciliationSummary, UNKNOWN_OWNER

logger = logging.getLogger(__name__)

MIN_IDENTIFIER_LENGTH = 4

_STRIP_PATTERN = re.compile(r"[\s\-\u2010-\u2015]+")


def normalize(value: Optional[str]) -> str:
    """Strip whitespace, hyphens and dashes and upper-case: 'ab-123 cd' -> 'AB123CD'."""
    if not value:
        return ""
    return _STRIP_PATTERN.sub("", str(value)).upper()


def _is_usable(normalized: str) -> bool:
    return len(normalized) > MIN_IDENTIFIER_LENGTH


def _match_by_tag(record_tag: str, fleet: List[FleetEntry]) -> Optional[FleetEntry]:
    for entry in fleet:
        fleet_tag = normalize(entry.tag)
        if fleet_tag and (fleet_tag in record_tag or record_tag in fleet_tag):
            return entry
    return None


def _match_by_plate(record_plate: str, fleet: List[FleetEntry]) -> Optional[FleetEntry]:
    for entry in fleet:
        if normalize(entry.plate) == record_plate:
            return entry
    return None


def find_fleet_match(record: ExtractedRecord, fleet: List[FleetEntry]) -> Optional[FleetEntry]:
    """Return the first roster entry matching the record by tag, then by plate."""
    record_tag = normalize(record.tag)
    if _is_usable(record_tag):
        match = _match_by_tag(record_tag, fleet)
        if match is not None:
            return match

    record_plate = normalize(record.plate)
    if _is_usable(record_plate):
        return _match_by_plate(record_plate, fleet)

    return None


def _unverified(record: ExtractedRecord) -> ExtractedRecord:
    return record.model_copy(update={
        "is_verified": False,
        "unit_code": "",
        "registered_owner": None,
    })


def _apply_match(record: ExtractedRecord, match: FleetEntry) -> ExtractedRecord:
    owner = match.owner if match.owner and match.owner != UNKNOWN_OWNER else record.owner
    return record.model_copy(update={
        "plate": match.plate or record.plate,
        "owner": owner,
        "unit_code": match.unit_code or "",
        "tag": match.tag or record.tag,
        "registered_owner": match.owner or UNKNOWN_OWNER,
        "is_verified": True,
    })


def reconcile(records: Iterable[ExtractedRecord], fleet: Iterable[FleetEntry]) -> List[ExtractedRecord]:
    """
    Annotate every record against the roster, from scratch.

    Inputs are not mutated; a new list of new record objects is returned.
    A record that cannot be matched (or fails to) comes back unverified.
    """
    roster = list(fleet)
    reconciled = []

    for record in records:
        try:
            match = find_fleet_match(record, roster)
        except Exception as e:
            logger.warning(f"Could not reconcile record {getattr(record, 'id', '?')}: {e}")
            match = None

        if match is None:
            reconciled.append(_unverified(record))
        else:
            reconciled.append(_apply_match(record, match))

    return reconciled


def summarize(records: Iterable[ExtractedRecord]) -> ReconciliationSummary:
    """Count verified vs unverified records."""
    total = 0
    verified = 0
    for record in records:
        total += 1
        if record.is_verified:
            verified += 1
    return ReconciliationSummary(total=total, verified=verified, unverified=total - verified)
