"""Tests for the per-context sync service."""

import asyncio
from datetime import UTC, datetime, timedelta
from pathlib import Path

import httpx
import pytest

from matchboard.catalog.clubs import ClubRegistry
from matchboard.common.config import AppConfig, PresentationApiConfig, StorageConfig
from matchboard.presentation.models import MatchRecord
from matchboard.presentation.reconcile import Reconciler
from matchboard.presentation.remote import PresentationApiClient
from matchboard.presentation.store import PresentationStore
from matchboard.presentation.sync import PresentationSync
from matchboard.presentation.validation import sanitize_collection
from matchboard.storage.changes import ChangeFeed
from matchboard.storage.database import Database
from matchboard.storage.models import ChangeEvent

REMOTE_MATCHES = [
    {
        "id": 1,
        "home_team": "Arsenal",
        "away_team": "Chelsea",
        "league_id": "english-premier-league",
        "kickoff_at": "2025-01-01T18:00:00Z",
        "home_probability": 55,
    },
]


def feed_handler(matches: list[dict]):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"ok": True, "matches": matches})

    return handler


def make_sync(
    db: Database,
    registry: ClubRegistry,
    origin: str = "kiosk",
    matches: list[dict] | None = None,
) -> PresentationSync:
    storage = StorageConfig()
    store = PresentationStore(db, registry, storage, origin=origin)
    client = PresentationApiClient(
        PresentationApiConfig(base_url="https://feed.example.test"),
        transport=httpx.MockTransport(feed_handler(matches or [])),
    )
    feed = ChangeFeed(db, origin=origin, keys={storage.matches_key, storage.index_key})
    return PresentationSync(store, client, Reconciler(registry), feed=feed)


def event(key: str, origin: str = "admin") -> ChangeEvent:
    return ChangeEvent(change_id=1, key=key, origin=origin, changed_at=datetime.now(UTC))


class TestRefresh:
    """Tests for merging a remote fetch."""

    @pytest.mark.asyncio
    async def test_refresh_merges_and_saves(self, db: Database, registry: ClubRegistry):
        sync = make_sync(db, registry, matches=REMOTE_MATCHES)
        rendered: list[list[MatchRecord]] = []
        sync.add_listener(rendered.append)

        updated = await sync.refresh("2025-01-01")

        assert updated is True
        ids = [m.id for m in sync.matches]
        assert ids == ["match-1", "default-1", "default-2", "default-3"]
        assert sync.matches[0].home_probability == 55
        assert [m.id for m in sync.store.load()] == ids
        assert [m.id for m in rendered[-1]] == ids
        await sync.client.aclose()

    @pytest.mark.asyncio
    async def test_empty_fetch_writes_nothing(self, db: Database, registry: ClubRegistry):
        sync = make_sync(db, registry, matches=[])
        sync.reload()
        before = db.latest_change_id()

        updated = await sync.refresh("2025-01-01")

        assert updated is False
        assert db.latest_change_id() == before
        await sync.client.aclose()

    @pytest.mark.asyncio
    async def test_refresh_merges_against_stored_state(
        self, db: Database, registry: ClubRegistry, stored_match
    ):
        sync = make_sync(db, registry, matches=REMOTE_MATCHES)
        sync.reload()
        # Another context replaced the collection after our last reload
        defaults = sync.store.load()
        operator = sanitize_collection([stored_match(id="operator-1")], registry)
        PresentationStore(db, registry, origin="admin").save([defaults[0], *operator])

        await sync.refresh("2025-01-01")

        assert [m.id for m in sync.matches] == ["match-1", "default-1", "operator-1"]
        await sync.client.aclose()

    @pytest.mark.asyncio
    async def test_repeated_refresh_is_stable(self, db: Database, registry: ClubRegistry):
        sync = make_sync(db, registry, matches=REMOTE_MATCHES)

        await sync.refresh("2025-01-01")
        first = sync.matches
        await sync.refresh("2025-01-01")

        assert sync.matches == first
        await sync.client.aclose()


class TestChangeHandling:
    """Tests for reacting to other contexts' writes."""

    def test_matches_change_reloads(self, db: Database, registry: ClubRegistry):
        sync = make_sync(db, registry)
        calls: list[int] = []
        sync.add_listener(lambda matches: calls.append(len(matches)))

        assert sync.handle_change(event("presentation.matches")) is True
        assert calls == [3]

    def test_other_key_ignored(self, db: Database, registry: ClubRegistry):
        sync = make_sync(db, registry)
        calls: list[int] = []
        sync.add_listener(lambda matches: calls.append(len(matches)))

        assert sync.handle_change(event("presentation.current_index")) is False
        assert calls == []

    def test_cross_context_delivery(self, db: Database, temp_dir: Path, registry: ClubRegistry):
        kiosk = make_sync(db, registry, origin="kiosk")
        kiosk.reload()

        with Database(temp_dir / "test.db") as admin_db:
            admin = PresentationStore(admin_db, registry, origin="admin")
            admin.save(admin.load()[:2])

            delivered = kiosk.feed.dispatch()

        assert delivered >= 1
        assert [m.id for m in kiosk.matches] == ["default-1", "default-2"]

    def test_own_writes_not_delivered(self, db: Database, registry: ClubRegistry):
        sync = make_sync(db, registry, origin="kiosk")
        sync.store.save(sync.reload()[:1])

        assert sync.feed.dispatch() == 0


class TestRun:
    """Tests for the long-running loop."""

    @pytest.mark.asyncio
    async def test_run_refreshes_until_stopped(self, db: Database, registry: ClubRegistry):
        sync = make_sync(db, registry, matches=REMOTE_MATCHES)
        stop = asyncio.Event()

        task = asyncio.create_task(
            sync.run(refresh_interval_seconds=60, poll_interval_seconds=0.01, stop=stop)
        )
        for _ in range(100):
            if sync.matches and sync.matches[0].id == "match-1":
                break
            await asyncio.sleep(0.01)
        stop.set()
        await asyncio.wait_for(task, timeout=2)

        assert sync.matches[0].id == "match-1"
        assert sync.client._client is None

    @pytest.mark.asyncio
    async def test_run_picks_up_other_context(
        self, db: Database, temp_dir: Path, registry: ClubRegistry
    ):
        sync = make_sync(db, registry)
        stop = asyncio.Event()
        task = asyncio.create_task(
            sync.run(refresh_interval_seconds=60, poll_interval_seconds=0.01, stop=stop)
        )
        await asyncio.sleep(0.02)

        with Database(temp_dir / "test.db") as admin_db:
            admin = PresentationStore(admin_db, registry, origin="admin")
            admin.save(admin.load()[:1])

        for _ in range(100):
            if len(sync.matches) == 1:
                break
            await asyncio.sleep(0.01)
        stop.set()
        await asyncio.wait_for(task, timeout=2)

        assert [m.id for m in sync.matches] == ["default-1"]


class TestFromConfig:
    """Tests for wiring from configuration."""

    def test_from_config(self, config: AppConfig, db: Database):
        sync = PresentationSync.from_config(config, db)

        assert sync.store.origin.startswith("test-kiosk:")
        assert sync.feed.origin == sync.store.origin
        assert sync.feed is not None
        assert sync.feed.keys == {"presentation.matches", "presentation.current_index"}
        assert sync.client.config.is_configured


    def test_same_config_contexts_see_each_other(self, config: AppConfig, db: Database):
        kiosk = PresentationSync.from_config(config, db)
        operator = PresentationSync.from_config(config, db)
        kiosk.reload()

        operator.store.save(operator.store.load()[:1])

        assert kiosk.store.origin != operator.store.origin
        assert kiosk.feed.dispatch() == 1
        assert [m.id for m in kiosk.matches] == ["default-1"]

    def test_retention_from_config(self, config: AppConfig, db: Database):
        sync = PresentationSync.from_config(config, db)

        assert sync.change_retention == timedelta(seconds=config.sync.change_retention_seconds)


class TestPruneChanges:
    """Tests for change log retention."""

    def test_prunes_only_old_changes(self, db: Database, registry: ClubRegistry):
        sync = make_sync(db, registry)
        sync.reload()

        assert sync.prune_changes() == 0
        assert db.changes_since(0)

        removed = sync.prune_changes(now=datetime.now(UTC) + timedelta(days=2))

        assert removed >= 2
        assert db.changes_since(0) == []
        assert [m.id for m in sync.store.load()] == ["default-1", "default-2", "default-3"]

    @pytest.mark.asyncio
    async def test_refresh_loop_prunes(self, db: Database, registry: ClubRegistry):
        sync = make_sync(db, registry, matches=REMOTE_MATCHES)
        sync.change_retention = timedelta(seconds=-5)
        stop = asyncio.Event()

        task = asyncio.create_task(
            sync.run(refresh_interval_seconds=60, poll_interval_seconds=0.01, stop=stop)
        )
        for _ in range(100):
            if sync.matches and sync.matches[0].id == "match-1" and not db.changes_since(0):
                break
            await asyncio.sleep(0.01)
        stop.set()
        await asyncio.wait_for(task, timeout=2)

        assert db.changes_since(0) == []
