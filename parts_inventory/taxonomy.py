"""Category and brand label lists."""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Iterable, List

if TYPE_CHECKING:
    from .inventory import Document


def _taxonomy_key(value: str) -> str:
    return value.casefold()


def _clean_label(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def normalize(values: Iterable[Any]) -> List[str]:
    """Trim, drop blanks and case-insensitive duplicates, then sort.

    The casing of the first occurrence wins. Running the result through
    ``normalize`` again returns it unchanged.
    """

    seen: Dict[str, str] = {}
    for raw in values or ():
        label = _clean_label(raw)
        if not label:
            continue
        key = _taxonomy_key(label)
        if key not in seen:
            seen[key] = label
    return sorted(seen.values(), key=lambda label: (_taxonomy_key(label), label))


def push_if_absent(values: List[str], value: Any) -> bool:
    """Append ``value`` unless a case-insensitive match is already present."""

    label = _clean_label(value)
    if not label:
        return False
    key = _taxonomy_key(label)
    if any(_taxonomy_key(_clean_label(existing)) == key for existing in values):
        return False
    values.append(label)
    return True


def normalize_document_taxonomies(document: "Document") -> None:
    document.categories = normalize(document.categories)
    document.brands = normalize(document.brands)


__all__ = ["normalize", "normalize_document_taxonomies", "push_if_absent"]
