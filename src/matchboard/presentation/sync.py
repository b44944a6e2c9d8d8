"""Keeps a viewing context's matches in step with the store and remote feed."""

import asyncio
import uuid
from collections.abc import Callable
from datetime import datetime, timedelta

from matchboard.catalog.clubs import ClubRegistry
from matchboard.common.config import AppConfig
from matchboard.common.logging import get_logger
from matchboard.common.time_utils import utc_now
from matchboard.presentation.models import MatchRecord
from matchboard.presentation.reconcile import Reconciler
from matchboard.presentation.remote import PresentationApiClient
from matchboard.presentation.store import PresentationStore
from matchboard.storage.changes import ChangeFeed
from matchboard.storage.database import Database
from matchboard.storage.models import ChangeEvent

logger = get_logger(__name__)

MatchesListener = Callable[[list[MatchRecord]], None]


class PresentationSync:
    """Control flow of one viewing context.

    On start the collection is read from the store. Remote refreshes merge
    a non-empty fetch into the current stored collection and save the result;
    changes written by other contexts trigger a reload. Listeners are called
    with the new collection after every reload or refresh.
    """

    def __init__(
        self,
        store: PresentationStore,
        client: PresentationApiClient,
        reconciler: Reconciler,
        feed: ChangeFeed | None = None,
        change_retention: timedelta = timedelta(days=1),
    ):
        """Initialize sync service.

        Args:
            store: Durable store of this context.
            client: Remote feed client.
            reconciler: Merge policy.
            feed: Change feed delivering other contexts' writes.
            change_retention: Age after which change records are pruned.
        """
        self.store = store
        self.client = client
        self.reconciler = reconciler
        self.feed = feed
        self.change_retention = change_retention
        self._matches: list[MatchRecord] = []
        self._listeners: list[MatchesListener] = []
        if feed is not None:
            feed.subscribe(self.handle_change)

    @classmethod
    def from_config(cls, config: AppConfig, db: Database) -> "PresentationSync":
        """Wire a sync service from configuration.

        The club registry is built here once and shared by every component.
        Each instance writes under its own origin, so two processes started
        with the same ``context_name`` still see each other's changes;
        ``context_name`` only tags log lines.
        """
        registry = ClubRegistry.build()
        origin = f"{config.sync.context_name}:{uuid.uuid4().hex}"
        store = PresentationStore(db, registry, config.storage, origin=origin)
        feed = ChangeFeed(
            db,
            origin=origin,
            keys={config.storage.matches_key, config.storage.index_key},
        )
        return cls(
            store=store,
            client=PresentationApiClient(config.presentation_api),
            reconciler=Reconciler(registry),
            feed=feed,
            change_retention=timedelta(seconds=config.sync.change_retention_seconds),
        )

    @property
    def matches(self) -> list[MatchRecord]:
        """Working collection as of the last reload or refresh."""
        return list(self._matches)

    def add_listener(self, listener: MatchesListener) -> None:
        self._listeners.append(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self.matches)

    def reload(self) -> list[MatchRecord]:
        """Re-read the collection from the store."""
        self._matches = self.store.load()
        self._notify()
        return self.matches

    async def refresh(self, date: str | None = None) -> bool:
        """Fetch the remote snapshot and merge it in.

        An empty fetch means "no update": nothing is written. The store calls
        are blocking sqlite operations run on the event loop thread; they are
        short single-row reads and writes.

        Returns:
            True if a merged collection was saved.
        """
        remote = await self.client.fetch_matches(date)
        if not remote:
            logger.info("presentation_no_update", date=date)
            return False

        # Merge against the stored state, which another context may have changed
        existing = self.store.load()
        merged = self.reconciler.merge(existing, remote)
        self.store.save(merged)
        self._matches = merged
        self._notify()
        logger.info(
            "presentation_refreshed",
            remote_count=len(remote),
            total_count=len(merged),
        )
        return True

    def handle_change(self, event: ChangeEvent) -> bool:
        """React to another context's write.

        Returns:
            True if the collection was reloaded.
        """
        if event.key != self.store.matches_key:
            return False
        logger.debug("presentation_change_received", origin=event.origin)
        self.reload()
        return True

    def prune_changes(self, now: datetime | None = None) -> int:
        """Drop change records older than the retention window."""
        cutoff = (now or utc_now()) - self.change_retention
        return self.store.db.prune_changes(cutoff)

    async def _refresh_loop(self, interval_seconds: float, stop: asyncio.Event) -> None:
        while not stop.is_set():
            try:
                await self.refresh()
                self.prune_changes()
            except Exception as e:
                logger.exception("presentation_refresh_failed", error=str(e))
            try:
                await asyncio.wait_for(stop.wait(), timeout=interval_seconds)
            except TimeoutError:
                pass

    async def run(
        self,
        refresh_interval_seconds: float,
        poll_interval_seconds: float,
        stop: asyncio.Event | None = None,
    ) -> None:
        """Run periodic refreshes and change watching until ``stop`` is set."""
        stop = stop or asyncio.Event()
        self.reload()
        tasks = [asyncio.create_task(self._refresh_loop(refresh_interval_seconds, stop))]
        if self.feed is not None:
            tasks.append(asyncio.create_task(self.feed.watch(poll_interval_seconds, stop)))
        try:
            await asyncio.gather(*tasks)
        finally:
            for task in tasks:
                task.cancel()
            await self.client.aclose()
