"""
Shared setup for CLI commands: logging, workspace discovery and the
collaborators every service needs.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from dataclasses import dataclass

from themesafe.core.config import ProjectConfig, load_config
from themesafe.core.history import HistoryStore
from themesafe.core.store import RemoteStore, RemoteStoreClient
from themesafe.core.workspace import Workspace


def setup_logging(debug: bool = False) -> None:
    """
    Configure logging for all commands.

    Args:
        debug: If True, enable DEBUG level logging
    """
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def open_store(config: ProjectConfig) -> AbstractContextManager[RemoteStore]:
    """Open the remote store for ``config``. Tests replace this."""
    return RemoteStoreClient.from_config(config)


@dataclass
class Session:
    """Everything a mutating command needs, bound to one project."""

    workspace: Workspace
    config: ProjectConfig
    store: RemoteStore
    history: HistoryStore


def local_history() -> HistoryStore:
    """History of the current project, for commands that stay offline."""
    return HistoryStore(Workspace.discover().theme_dir)


@contextmanager
def open_session() -> Iterator[Session]:
    """
    Load the project config and open the store for one command.

    Raises:
        ConfigNotFoundError: If no .themesafe/config.json is found
        ConfigError: If the config is invalid
    """
    workspace = Workspace.discover()
    config = load_config(workspace.config_path)
    with open_store(config) as store:
        yield Session(
            workspace=workspace,
            config=config,
            store=store,
            history=HistoryStore(workspace.theme_dir),
        )
