"""Session state for visits and favorites.

Repositories own the in-memory collections for the signed-in session. The
remote gateway is the source of truth; the cache store holds a copy that
is shown optimistically while a refresh is in flight.
"""

import logging
import threading
from dataclasses import replace
from typing import Callable, Iterable, List, Optional

from ..core.config import CACHE_FRESHNESS_SECONDS, FAVORITES_CACHE_KEY, VISITS_CACHE_KEY
from ..core.errors import AuthExpiredError, DecodingError, GatewayError
from .cache_store import CacheStore
from .gateway import RemoteDataGateway
from .models import Favorite, Visit, VisitDraft

logger = logging.getLogger(__name__)


def move_items(items: List, source_indices: Iterable[int], destination: int) -> List:
    """Move the items at source_indices so they sit before position destination.

    destination is expressed in the coordinates of the original list, the
    same convention as a drag-and-drop list move.
    """
    sources = sorted({i for i in source_indices if 0 <= i < len(items)})
    if not sources:
        return list(items)
    moving = [items[i] for i in sources]
    remaining = [item for i, item in enumerate(items) if i not in sources]
    insert_at = destination - sum(1 for i in sources if i < destination)
    insert_at = max(0, min(insert_at, len(remaining)))
    return remaining[:insert_at] + moving + remaining[insert_at:]


class _SessionRepository:
    """Shared loading guard, error capture and fetch generation tracking."""

    cache_key = ""

    def __init__(self, gateway: RemoteDataGateway, cache: CacheStore,
                 on_auth_expired: Optional[Callable[[], None]] = None):
        self.gateway = gateway
        self.cache = cache
        self.on_auth_expired = on_auth_expired
        self.is_loading = False
        self.last_error: Optional[GatewayError] = None
        self.error_message: Optional[str] = None
        self._lock = threading.Lock()
        self._generation = 0

    def _begin_load(self) -> Optional[int]:
        """Claim the loading flag. Returns the fetch generation, or None if already loading."""
        with self._lock:
            if self.is_loading:
                return None
            self.is_loading = True
            self._generation += 1
            return self._generation

    def _end_load(self):
        with self._lock:
            self.is_loading = False

    def _is_current(self, generation: int) -> bool:
        with self._lock:
            return generation == self._generation

    def _invalidate(self):
        """Make any fetch still in flight discard its result."""
        with self._lock:
            self._generation += 1

    def _record_error(self, error: GatewayError, context: str = None):
        self.last_error = error
        self.error_message = f"{context}: {error}" if context else str(error)
        logger.error(f"{type(self).__name__}: {self.error_message}")
        if isinstance(error, AuthExpiredError) and self.on_auth_expired is not None:
            self.on_auth_expired()

    def _clear_error(self):
        self.last_error = None
        self.error_message = None


# =============================================================================
# Visits
# =============================================================================

class VisitRepository(_SessionRepository):
    """Fetches visits, enriches them with catalog RVU values and caches them."""

    cache_key = VISITS_CACHE_KEY

    def __init__(self, gateway: RemoteDataGateway, catalog, cache: CacheStore,
                 on_auth_expired: Optional[Callable[[], None]] = None,
                 freshness_seconds: float = CACHE_FRESHNESS_SECONDS):
        super().__init__(gateway, cache, on_auth_expired)
        self.catalog = catalog
        self.freshness_seconds = freshness_seconds
        self.visits: List[Visit] = []

    def _enrich(self, visits: List[Visit]) -> List[Visit]:
        # Deferred: rvu_tracker.logic imports this package
        from ..logic.enrichment import enrich_visits

        self.catalog.load()
        return enrich_visits(visits, self.catalog)

    def _decode_cached(self, payload) -> Optional[List[Visit]]:
        if payload is None:
            return None
        try:
            if not isinstance(payload, list):
                raise DecodingError("cached visits must be a list")
            return [Visit.from_dict(item) for item in payload]
        except DecodingError as e:
            logger.warning(f"Dropping unreadable visits cache: {e}")
            self.cache.delete(self.cache_key)
            return None

    def _save_cache(self):
        self.cache.save(self.cache_key, [visit.to_dict() for visit in self.visits])

    def restore_cached(self) -> bool:
        """Show cached visits (even stale ones) while a refresh is pending."""
        cached = self._decode_cached(self.cache.load(self.cache_key))
        if cached is None:
            return False
        self.visits = self._enrich(cached)
        logger.info(f"Restored {len(self.visits)} visits from cache")
        return True

    def refresh(self, force: bool = False) -> bool:
        """Load visits, preferring a fresh cache entry unless force is set.

        Returns:
            True if visits were updated. False when another load is already
            running, when the result was superseded, or on a gateway error
            (see last_error).
        """
        generation = self._begin_load()
        if generation is None:
            logger.debug("Visit refresh already in progress, ignoring")
            return False

        try:
            self._clear_error()
            if not force:
                cached = self._decode_cached(self.cache.load_fresh(self.cache_key, self.freshness_seconds))
                if cached is not None:
                    return self._apply(generation, self._enrich(cached), save=False)

            fresh = self.gateway.fetch_visits()
            return self._apply(generation, self._enrich(fresh), save=True)
        except GatewayError as e:
            self._record_error(e)
            return False
        finally:
            self._end_load()

    def _apply(self, generation: int, visits: List[Visit], save: bool) -> bool:
        if not self._is_current(generation):
            logger.info("Discarding superseded visit fetch result")
            return False
        self.visits = visits
        if save:
            self._save_cache()
        return True

    def create_visit(self, draft: VisitDraft) -> Visit:
        try:
            created = self.gateway.create_visit(draft)
        except GatewayError as e:
            self._record_error(e, "Failed to save visit")
            raise
        # Fetches already in flight predate this write
        self._invalidate()
        visit = self._enrich([created])[0]
        self.visits.append(visit)
        self._save_cache()
        logger.info(f"Created visit {visit.id} on {visit.date}")
        return visit

    def update_visit(self, visit_id: str, draft: VisitDraft) -> Visit:
        try:
            updated = self.gateway.update_visit(visit_id, draft)
        except GatewayError as e:
            self._record_error(e, "Failed to update visit")
            raise
        self._invalidate()
        visit = self._enrich([updated])[0]
        self.visits = [visit if v.id == visit_id else v for v in self.visits]
        if all(v.id != visit_id for v in self.visits):
            self.visits.append(visit)
        self._save_cache()
        return visit

    def delete_visit(self, visit_id: str) -> bool:
        """Remove a visit optimistically; on failure reload from the server."""
        self.visits = [v for v in self.visits if v.id != visit_id]
        try:
            self.gateway.delete_visit(visit_id)
        except GatewayError as e:
            self.refresh(force=True)
            self._record_error(e, "Failed to delete visit")
            return False
        self._save_cache()
        return True

    def clear(self):
        """Forget everything for this session (sign-out)."""
        self._invalidate()
        self.visits = []
        self._clear_error()
        self.cache.delete(self.cache_key)


# =============================================================================
# Favorites
# =============================================================================

class FavoriteRepository(_SessionRepository):
    """Favorite HCPCS codes in user-defined display order."""

    cache_key = FAVORITES_CACHE_KEY

    def __init__(self, gateway: RemoteDataGateway, cache: CacheStore,
                 on_auth_expired: Optional[Callable[[], None]] = None):
        super().__init__(gateway, cache, on_auth_expired)
        self.favorites: List[Favorite] = []
        self._load_from_cache()

    def _load_from_cache(self):
        payload = self.cache.load(self.cache_key)
        if payload is None:
            return
        try:
            if not isinstance(payload, list):
                raise DecodingError("cached favorites must be a list")
            self.favorites = [Favorite.from_dict(item) for item in payload]
        except DecodingError as e:
            logger.warning(f"Dropping unreadable favorites cache: {e}")
            self.cache.delete(self.cache_key)
            self.favorites = []

    def _save_cache(self):
        self.cache.save(self.cache_key, [favorite.to_dict() for favorite in self.favorites])

    # =========================================================================
    # Queries
    # =========================================================================

    def is_favorited(self, code: str) -> bool:
        return any(f.code == code for f in self.favorites)

    def get_favorite(self, code: str) -> Optional[Favorite]:
        return next((f for f in self.favorites if f.code == code), None)

    @property
    def codes(self) -> List[str]:
        return [f.code for f in self.favorites]

    # =========================================================================
    # Loading and edits
    # =========================================================================

    def refresh(self) -> bool:
        generation = self._begin_load()
        if generation is None:
            logger.debug("Favorites refresh already in progress, ignoring")
            return False
        try:
            self._clear_error()
            favorites = self.gateway.fetch_favorites()
            if not self._is_current(generation):
                logger.info("Discarding superseded favorites fetch result")
                return False
            self.favorites = sorted(favorites, key=lambda f: f.sort_order)
            self._save_cache()
            return True
        except GatewayError as e:
            self._record_error(e)
            return False
        finally:
            self._end_load()

    def add(self, code: str) -> bool:
        if self.is_favorited(code):
            return True
        try:
            favorite = self.gateway.create_favorite(code)
        except GatewayError as e:
            self._record_error(e, "Failed to add favorite")
            return False
        self.favorites.append(favorite)
        self._save_cache()
        return True

    def remove(self, code: str) -> bool:
        self.favorites = [f for f in self.favorites if f.code != code]
        try:
            self.gateway.delete_favorite(code)
        except GatewayError as e:
            self.refresh()
            self._record_error(e, "Failed to remove favorite")
            return False
        self._save_cache()
        return True

    def toggle(self, code: str) -> bool:
        if self.is_favorited(code):
            return self.remove(code)
        return self.add(code)

    def remove_at(self, indices: Iterable[int]) -> bool:
        codes = [self.favorites[i].code for i in sorted(set(indices)) if 0 <= i < len(self.favorites)]
        results = [self.remove(code) for code in codes]
        return all(results)

    def move(self, source_indices: Iterable[int], destination: int) -> bool:
        """Reorder locally, then push the new sort order to the server."""
        moved = move_items(self.favorites, source_indices, destination)
        self.favorites = [replace(f, sort_order=index) for index, f in enumerate(moved)]
        try:
            self.gateway.reorder_favorites(self.codes)
        except GatewayError as e:
            self.refresh()
            self._record_error(e, "Failed to sync order")
            return False
        self._save_cache()
        return True

    def clear(self):
        self._invalidate()
        self.favorites = []
        self._clear_error()
        self.cache.delete(self.cache_key)


__all__ = ['VisitRepository', 'FavoriteRepository', 'move_items']
