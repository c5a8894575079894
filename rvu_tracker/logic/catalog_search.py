"""Ranked search over the reference catalog."""

import logging
from typing import List

from ..core.config import SEARCH_RESULT_LIMIT
from ..data.models import ProcedureCode
from .catalog import ReferenceCatalog

logger = logging.getLogger(__name__)

EXACT_MATCH = 0
PREFIX_MATCH = 1
OTHER_MATCH = 2


def _match_tier(code_lower: str, query_lower: str) -> int:
    if code_lower == query_lower:
        return EXACT_MATCH
    if code_lower.startswith(query_lower):
        return PREFIX_MATCH
    return OTHER_MATCH


def search(catalog: ReferenceCatalog, query: str, limit: int = SEARCH_RESULT_LIMIT) -> List[ProcedureCode]:
    """Search codes by HCPCS code or description.

    Matches are case-insensitive substrings of either field. Exact code
    matches come first, then code prefix matches, then everything else;
    ties are ordered by code.

    Args:
        catalog: Loaded reference catalog
        query: Search text. An empty query returns no results.
        limit: Maximum number of results

    Returns:
        Ranked list of ProcedureCode
    """
    if not query or limit <= 0:
        return []
    if not catalog.is_loaded:
        logger.debug("Search requested before catalog was loaded")
        return []

    query_lower = query.lower()
    ranked = []
    for entry in catalog.codes:
        code_lower = entry.code.lower()
        if query_lower in code_lower or query_lower in entry.description.lower():
            ranked.append((_match_tier(code_lower, query_lower), code_lower, entry.code, entry))

    ranked.sort(key=lambda item: item[:3])
    return [item[3] for item in ranked[:limit]]


__all__ = ['search', 'EXACT_MATCH', 'PREFIX_MATCH', 'OTHER_MATCH']
