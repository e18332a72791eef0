import logging
from typing import Any, Awaitable, Callable, Hashable, Set

logger = logging.getLogger(__name__)


class InFlightRegistry:
    """Ids currently being prefetched; collapses concurrent prefetches of one id.

    Process-local and not persisted. Direct enrichment calls bypass it.
    """

    def __init__(self):
        self._active: Set[Hashable] = set()

    def __contains__(self, entity_id: Hashable) -> bool:
        return entity_id in self._active

    def __len__(self) -> int:
        return len(self._active)

    @property
    def active(self) -> Set[Hashable]:
        return set(self._active)

    async def guard(
        self,
        entity_id: Hashable,
        work: Callable[[], Awaitable[Any]],
        eligible: bool = True,
    ) -> bool:
        """
        Run work() unless entity_id is already in flight or not eligible.

        Returns:
            True if this call ran the work (whatever its outcome)
        """
        # Check and add must stay free of awaits between them
        if not eligible or entity_id in self._active:
            logger.debug(f"Prefetch skipped for {entity_id}")
            return False
        self._active.add(entity_id)

        try:
            await work()
        except Exception as e:
            logger.warning(f"Prefetch failed for {entity_id}: {e}")
        finally:
            self._active.discard(entity_id)
        return True
