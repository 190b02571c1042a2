"""
Entity and query identifiers.

Raw identifiers look like ``<namespace>:<percent-escaped title>``, for example
``enwiki:Green%20sea%20turtle``. Passage mention lists store entities in
canonical form (``green_sea_turtle``), so every comparison between free-text
mentions and structured identifiers goes through canonicalize().
"""

import re
from typing import Iterable, List, Optional, Sequence, Tuple
from urllib.parse import unquote

KNOWN_NAMESPACES: Tuple[str, ...] = ("enwiki", "dbpedia", "wikidata", "tqa")

COMPOSITE_SEPARATOR = "+"

_WHITESPACE = re.compile(r"\s+")


def strip_namespace(identifier: str, namespaces: Sequence[str] = KNOWN_NAMESPACES) -> str:
    """
    Remove a leading ``<namespace>:`` prefix.

    Only prefixes listed in ``namespaces`` are removed, including stacked
    ones (``tqa:enwiki:Foo``). A title that itself contains a colon
    therefore survives repeated stripping.
    """
    head, sep, tail = identifier.partition(":")
    while sep and head.lower() in namespaces:
        identifier = tail
        head, sep, tail = identifier.partition(":")
    return identifier


def canonicalize(entity_id: str, namespaces: Sequence[str] = KNOWN_NAMESPACES) -> str:
    """
    Canonical join key for an entity.

    Args:
        entity_id: Raw (``enwiki:Foo%20Bar``) or already canonical (``foo_bar``) ID
        namespaces: Namespace prefixes to strip

    Returns:
        Namespace-stripped, ``%20`` -> ``_``, lowercased identifier
    """
    return strip_namespace(entity_id, namespaces).replace("%20", "_").lower()


def canonicalize_all(entity_ids: Iterable[str],
                     namespaces: Sequence[str] = KNOWN_NAMESPACES) -> List[str]:
    return [canonicalize(e, namespaces) for e in entity_ids]


def entity_name(entity_id: str) -> str:
    """Human-readable entity name used when an entity is tokenized as query text."""
    return canonicalize(entity_id).replace("_", " ")


def query_text(query_id: str, namespaces: Sequence[str] = KNOWN_NAMESPACES) -> str:
    """
    Display text of a query ID: namespace-stripped, unescaped, lowercased.

    ``enwiki:Green%20sea%20turtle/Diet`` -> ``green sea turtle/diet``
    """
    return unquote(strip_namespace(query_id, namespaces)).lower()


def parse_mentions(raw: Optional[str]) -> List[str]:
    """Split a stored mention field on whitespace, dropping empty tokens."""
    if not raw:
        return []
    return [token for token in _WHITESPACE.split(raw) if token]


def composite_query_id(query_id: str, entity_id: str) -> str:
    """Query ID used for per-entity output lines (``<queryID>+<entityID>``)."""
    return f"{query_id}{COMPOSITE_SEPARATOR}{entity_id}"


def split_composite_id(composite_id: str) -> Tuple[str, str]:
    """
    Inverse of composite_query_id().

    Query IDs never contain ``+`` but percent-escaped entity titles may, so
    the split happens at the first separator.
    """
    query_id, sep, entity_id = composite_id.partition(COMPOSITE_SEPARATOR)
    if not sep:
        raise ValueError(f"Not a composite query ID: {composite_id!r}")
    return query_id, entity_id
