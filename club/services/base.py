"""Shared plumbing for the cached resource services."""
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from api_client import ApiClient

from ..errors import ValidationError
from ..notifications import Notifier
from ..query_cache import MINUTE, Key, QueryCache
from ..validators import validate


class ResourceService:
    """Base class binding one REST resource to the query cache.

    Sub-classes set :attr:`resource` (the cache key root, e.g. ``'games'``)
    and :attr:`label` (used in notifications, e.g. ``'Game'``).  Reads go
    through :meth:`_query`; writes go through :meth:`_mutate`, which
    invalidates the listed keys and notifies on success.
    """

    resource = ''
    label = ''
    schema: Optional[Dict] = None
    LIST_STALE_TIME = 5 * MINUTE
    ITEM_STALE_TIME = 0.0

    def __init__(self, client: ApiClient, cache: QueryCache,
                 notifier: Optional[Notifier] = None) -> None:
        self._client = client
        self._cache = cache
        self._notifier = notifier or Notifier()
        self._log = logging.getLogger(f'gameclub.service.{self.resource or "base"}')

    # ------------------------------------------------------------------
    # Helpers for sub-classes
    # ------------------------------------------------------------------

    def _query(self, key: Key, fetcher: Callable[[], Any], stale_time: float) -> Any:
        return self._cache.fetch(key, fetcher, stale_time)

    def _mutate(self, action: Callable[[], Any], invalidate: Iterable[Key],
                success: str) -> Any:
        """Run *action*, then invalidate *invalidate* and notify *success*.

        An :class:`~club.errors.ApiError` from *action* was already reported
        by the client; it propagates and nothing is invalidated.
        """
        result = action()
        for key in invalidate:
            self._cache.invalidate(key)
        self._notifier.success(success)
        return result

    def _clean(self, data: Dict, partial: bool = False) -> Dict:
        if self.schema is None:
            return dict(data)
        try:
            return validate(self.schema, data, partial=partial)
        except ValidationError as exc:
            self._notifier.error(exc.message)
            raise

    # ------------------------------------------------------------------
    # Generic CRUD (games, products, members)
    # ------------------------------------------------------------------

    def _list(self, fetcher: Callable[[], List[Dict]]) -> List[Dict]:
        return self._query((self.resource,), fetcher, self.LIST_STALE_TIME)

    def _get(self, item_id: Optional[str], fetcher: Callable[[str], Dict]) -> Optional[Dict]:
        if not item_id:
            return None
        return self._query((self.resource, item_id), lambda: fetcher(item_id),
                           self.ITEM_STALE_TIME)

    def _create(self, data: Dict, creator: Callable[[Dict], Dict]) -> Dict:
        payload = self._clean(data)
        return self._mutate(
            lambda: creator(payload),
            invalidate=[(self.resource,)],
            success=f'{self.label} created successfully',
        )

    def _update(self, item_id: str, changes: Dict,
                updater: Callable[[str, Dict], Dict]) -> Dict:
        payload = self._clean(changes, partial=True)
        return self._mutate(
            lambda: updater(item_id, payload),
            invalidate=[(self.resource,), (self.resource, item_id)],
            success=f'{self.label} updated successfully',
        )

    def _delete(self, item_id: str, deleter: Callable[[str], None]) -> None:
        self._mutate(
            lambda: deleter(item_id),
            invalidate=[(self.resource,)],
            success=f'{self.label} deleted successfully',
        )
