"""Precomputed free-text search index for records and expenses."""

from typing import Any, Iterable, List, Optional, TypeVar
import unicodedata

T = TypeVar("T")

SEARCHABLE_FIELDS = (
    "plate",
    "owner",
    "tag",
    "concept",
    "unit_code",
    "date",
    "source_file_name",
)


def normalize_search_text(text: Optional[str]) -> str:
    """Lower-case and strip diacritics: 'José Núñez' -> 'jose nunez'."""
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFD", text.lower())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def _field(entity: Any, name: str) -> Any:
    if isinstance(entity, dict):
        return entity.get(name)
    return getattr(entity, name, None)


def build_search_index(entity: Any) -> str:
    """
    Build the search string stored next to an entity.

    Accepts a pydantic model, ORM row or plain dict. Missing or empty
    fields are skipped.
    """
    values = [_field(entity, name) for name in SEARCHABLE_FIELDS]
    joined = " ".join(str(v) for v in values if v)
    return normalize_search_text(joined)


def filter_by_query(entities: Iterable[T], query: Optional[str]) -> List[T]:
    """Keep entities whose search index contains the folded query."""
    needle = normalize_search_text((query or "").strip())
    if not needle:
        return list(entities)

    matches = []
    for entity in entities:
        index = _field(entity, "search_index")
        if index is None:
            # Rows written before the index existed
            index = build_search_index(entity)
        if needle in index:
            matches.append(entity)
    return matches
