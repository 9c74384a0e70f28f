import re
import time
from typing import TYPE_CHECKING, Final

from logly import logger

from .catalog_types import SearchResult
from .metadata_store import MetadataStore
from .natural_order import natural_key

if TYPE_CHECKING:
    from pkgcatalog.backends.registry import BackendRegistry

# Tier offsets: exact = +0, prefix = +1, contains = +2.
NAME_TIER_BASE: Final[int] = 0
SUMMARY_TIER_BASE: Final[int] = 3


def compile_query(text: str) -> re.Pattern[str] | None:
    """Turns raw user text into a case-insensitive literal matcher.

    Returns:
        The compiled pattern, or None for empty text or if compilation fails.
    """
    if not text:
        return None

    pattern = re.escape(text)
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error as e:
        logger.warning(f"Failed to compile search pattern {pattern!r}: {e}")
        return None


def _tier(match: re.Match[str], text: str, base: int) -> int:
    if match.start() == 0:
        if match.end() == len(text):
            return base
        return base + 1
    return base + 2


def match_weight(pattern: re.Pattern[str], name: str, summary: str) -> int | None:
    """Scores one component against the pattern; lower is more relevant.

    Returns:
        0/1/2 for an exact/prefix/inner match in the name, 3/4/5 for the same in
        the summary when the name does not match, or None for no match.
    """
    match = pattern.search(name)
    if match is not None:
        return _tier(match, name, NAME_TIER_BASE)

    match = pattern.search(summary)
    if match is not None:
        return _tier(match, summary, SUMMARY_TIER_BASE)
    return None


def _sort_key(result: SearchResult):
    return (result.weight, natural_key(result.name), result.collection_id, result.id)


def search(
    store: MetadataStore,
    pattern: re.Pattern[str],
    locale: str,
    registry: "BackendRegistry | None" = None,
) -> list[SearchResult]:
    """Scans every component of every collection and ranks the matches.

    Args:
        store: Metadata store to scan.
        pattern: Matcher produced by `compile_query`.
        locale: Locale used to pick translated names and summaries.
        registry: Optional registry used to tag results with their owning backend.

    Returns:
        Matches ordered by weight, then natural name order. May be empty.
    """
    start = time.perf_counter()
    results: list[SearchResult] = []

    for collection_id, collection in store.collections():
        backend_name = registry.owner_of(collection) if registry is not None else ""
        for component in collection.components:
            name = component.name.resolve(locale)
            summary = component.summary.resolve(locale) if component.summary else ""

            weight = match_weight(pattern, name, summary)
            if weight is None:
                continue

            results.append(
                SearchResult(
                    backend_name=backend_name,
                    id=component.id,
                    collection_id=collection_id,
                    name=name,
                    summary=summary,
                    icon=store.icon(collection.origin, component),
                    collection=collection,
                    weight=weight,
                )
            )

    results.sort(key=_sort_key)
    elapsed = time.perf_counter() - start
    logger.info(f"Searched {pattern.pattern!r}: {len(results)} results in {elapsed:.3f}s")
    return results
