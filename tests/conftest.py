"""
Pytest configuration and shared fixtures.

Provides an in-memory remote store, a sample project config, a history
store over a temporary directory, and a project layout on disk.
"""

from datetime import datetime, timedelta
from pathlib import Path

import pytest

from themesafe.core.config import ProjectConfig, save_config
from themesafe.core.history import HistoryStore
from themesafe.core.store import Item, NotFoundError, RemoteItemRef, StoreError, TargetInfo
from themesafe.core.store.models import TargetRole

LIVE_ID = 1001
DEV_ID = 2002


# ==============================================================================
# Fake remote store
# ==============================================================================


class FakeRemoteStore:
    """
    In-memory stand-in for the remote store.

    Records every write as ``(method, target_id, key)`` in ``writes`` and
    lets tests inject per-key failures and role changes.
    """

    def __init__(self) -> None:
        self.targets: dict[int, TargetInfo] = {}
        self.items: dict[int, dict[str, Item]] = {}
        self.writes: list[tuple[str, int, str]] = []
        self.put_errors: dict[str, StoreError] = {}
        self.get_errors: dict[str, StoreError] = {}
        self.delete_errors: dict[str, StoreError] = {}
        self.list_error: StoreError | None = None
        self.info_error: StoreError | None = None

    # -- setup helpers -------------------------------------------------

    def add_target(self, target_id: int, name: str, raw_role: str) -> None:
        self.targets[target_id] = TargetInfo(
            id=target_id,
            name=name,
            role=TargetRole.from_wire(raw_role),
            raw_role=raw_role,
        )
        self.items.setdefault(target_id, {})

    def set_role(self, target_id: int, raw_role: str) -> None:
        info = self.targets[target_id]
        self.add_target(target_id, info.name, raw_role)

    def seed(self, target_id: int, files: dict[str, str | bytes]) -> None:
        for key, content in files.items():
            self.items[target_id][key] = Item(key=key, content=content)

    def contents(self, target_id: int) -> dict[str, str | bytes]:
        return {key: item.content for key, item in self.items[target_id].items()}

    def writes_to(self, target_id: int) -> list[tuple[str, int, str]]:
        return [write for write in self.writes if write[1] == target_id]

    # -- RemoteStore protocol ------------------------------------------

    def get_target_info(self, target_id: int) -> TargetInfo:
        if self.info_error is not None:
            raise self.info_error
        if target_id not in self.targets:
            raise NotFoundError(f"Target {target_id} not found")
        return self.targets[target_id]

    def list_items(self, target_id: int) -> list[RemoteItemRef]:
        if self.list_error is not None:
            raise self.list_error
        return [RemoteItemRef(key=key) for key in sorted(self.items[target_id])]

    def get_item(self, target_id: int, key: str) -> Item:
        if key in self.get_errors:
            raise self.get_errors[key]
        try:
            return self.items[target_id][key]
        except KeyError:
            raise NotFoundError(f"Item {key} not found") from None

    def put_item(self, target_id: int, item: Item) -> None:
        self.writes.append(("put", target_id, item.key))
        if item.key in self.put_errors:
            raise self.put_errors[item.key]
        self.items[target_id][item.key] = item

    def delete_item(self, target_id: int, key: str) -> None:
        self.writes.append(("delete", target_id, key))
        if key in self.delete_errors:
            raise self.delete_errors[key]
        if key not in self.items[target_id]:
            raise NotFoundError(f"Item {key} not found")
        del self.items[target_id][key]


class StepClock:
    """Clock that advances one second per call, so label names never collide."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 6, 10, 14, 15, 0)

    def __call__(self) -> datetime:
        current = self.now
        self.now += timedelta(seconds=1)
        return current


# ==============================================================================
# Fixtures
# ==============================================================================


@pytest.fixture
def config() -> ProjectConfig:
    """Provide a sample project config (live 1001, dev 2002)."""
    return ProjectConfig(
        store="test-shop",
        access_token="shpat_test",
        protected_target_id=LIVE_ID,
        protected_target_name="Live",
        mutable_target_id=DEV_ID,
        mutable_target_name="Dev",
        request_interval=0.0,
    )


@pytest.fixture
def store() -> FakeRemoteStore:
    """Provide a fake store with a live ('main') and a dev ('unpublished') target."""
    fake = FakeRemoteStore()
    fake.add_target(LIVE_ID, "Live", "main")
    fake.add_target(DEV_ID, "Dev", "unpublished")
    return fake


@pytest.fixture
def history(tmp_path: Path) -> HistoryStore:
    """Provide an initialized, empty history store."""
    repo = HistoryStore(tmp_path / "theme")
    repo.initialize()
    return repo


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def project_dir(tmp_path: Path, config: ProjectConfig) -> Path:
    """
    Provide a project directory with a saved config.

    Creates:
    - .themesafe/config.json
    """
    project = tmp_path / "project"
    project.mkdir()
    save_config(config, project / ".themesafe" / "config.json")
    return project
