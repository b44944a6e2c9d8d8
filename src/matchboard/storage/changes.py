"""Change notifications between viewing contexts sharing one store."""

import asyncio
from collections.abc import Callable, Collection

from matchboard.common.logging import get_logger
from matchboard.storage.database import Database
from matchboard.storage.models import ChangeEvent

logger = get_logger(__name__)

ChangeSubscriber = Callable[[ChangeEvent], None]


class ChangeFeed:
    """Publish/subscribe channel over the store's change log.

    A feed belongs to one viewing context (``origin``) and reports writes
    made by every other context. Delivery is at-least-once: the cursor only
    moves past an event once all subscribers handled it, so a failing
    subscriber sees the event again on the next dispatch. Events are never
    delivered from inside the writer's call.
    """

    def __init__(
        self,
        db: Database,
        origin: str,
        keys: Collection[str] | None = None,
    ):
        """Initialize feed positioned at the latest existing change.

        Args:
            db: Shared store database.
            origin: Name of the owning context; its own writes are skipped.
            keys: Only report changes to these keys (all keys if None).
        """
        self.db = db
        self.origin = origin
        self.keys = frozenset(keys) if keys is not None else None
        self._cursor = db.latest_change_id()
        self._subscribers: list[ChangeSubscriber] = []

    @property
    def cursor(self) -> int:
        """Id of the last change consumed."""
        return self._cursor

    def subscribe(self, subscriber: ChangeSubscriber) -> Callable[[], None]:
        """Register a subscriber.

        Returns:
            Function removing the subscriber again.
        """
        self._subscribers.append(subscriber)

        def unsubscribe() -> None:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

        return unsubscribe

    def _is_relevant(self, event: ChangeEvent) -> bool:
        if event.origin == self.origin:
            return False
        return self.keys is None or event.key in self.keys

    def poll(self) -> list[ChangeEvent]:
        """Consume and return pending changes without dispatching them."""
        batch = self.db.changes_since(self._cursor)
        if batch:
            self._cursor = batch[-1].change_id
        return [event for event in batch if self._is_relevant(event)]

    def dispatch(self) -> int:
        """Deliver pending changes to subscribers.

        Returns:
            Number of events delivered.
        """
        delivered = 0
        # Own writes and filtered keys are consumed silently
        for event in self.db.changes_since(self._cursor):
            if self._is_relevant(event):
                for subscriber in list(self._subscribers):
                    subscriber(event)
                delivered += 1
            self._cursor = event.change_id
        if delivered:
            logger.debug("changes_dispatched", count=delivered, cursor=self._cursor)
        return delivered

    async def watch(
        self,
        interval_seconds: float = 1.0,
        stop: asyncio.Event | None = None,
    ) -> None:
        """Dispatch changes periodically until ``stop`` is set or cancelled."""
        logger.info("change_watch_started", origin=self.origin, interval=interval_seconds)
        while stop is None or not stop.is_set():
            try:
                self.dispatch()
            except Exception as e:
                logger.exception("change_dispatch_failed", error=str(e))
            if stop is None:
                await asyncio.sleep(interval_seconds)
                continue
            try:
                await asyncio.wait_for(stop.wait(), timeout=interval_seconds)
            except TimeoutError:
                pass
        logger.info("change_watch_stopped", origin=self.origin)
