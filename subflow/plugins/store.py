"""
Plugin stores and the plugin loader.

The loader only reads. Authorization has already happened by the time it
runs, and definitions are never cached here: each invocation gets a fresh
snapshot from the store.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, Optional, Protocol

from sqlalchemy.engine import Engine
from sqlmodel import Session
from starlette.concurrency import run_in_threadpool

from subflow.plugins.models import PluginRecord
from subflow.workflows.engine.definitions import PluginDefinition
from subflow.workflows.engine.errors import PluginNotFoundError

logger = logging.getLogger(__name__)


class PluginStore(Protocol):
    async def get(self, plugin_id: str) -> Optional[PluginDefinition]:
        ...


class InMemoryPluginStore:
    """Plugin store backed by a dict. Useful for tests and embedded engines."""

    def __init__(self, plugins: Iterable[PluginDefinition] = ()):
        self.plugins: Dict[str, PluginDefinition] = {}
        for plugin in plugins:
            self.add(plugin)

    def add(self, plugin: PluginDefinition) -> None:
        self.plugins[plugin.id] = plugin

    def remove(self, plugin_id: str) -> None:
        self.plugins.pop(plugin_id, None)

    async def get(self, plugin_id: str) -> Optional[PluginDefinition]:
        return self.plugins.get(plugin_id)


class SQLModelPluginStore:
    """Plugin store backed by the ``plugin`` table."""

    def __init__(self, engine: Optional[Engine] = None):
        if engine is None:
            from subflow.database import engine as db_engine
            engine = db_engine
        self.engine = engine

    def save(self, plugin: PluginDefinition) -> PluginRecord:
        """Insert or replace a plugin definition."""
        with Session(self.engine) as session:
            record = session.get(PluginRecord, plugin.id)
            fresh = PluginRecord.from_definition(plugin)
            if record:
                record.team_id = fresh.team_id
                record.name = fresh.name
                record.avatar = fresh.avatar
                record.nodes = fresh.nodes
                record.edges = fresh.edges
                record.updated_at = datetime.now(timezone.utc)
            else:
                record = fresh
            session.add(record)
            session.commit()
            session.refresh(record)
            return record

    def delete(self, plugin_id: str) -> bool:
        with Session(self.engine) as session:
            record = session.get(PluginRecord, plugin_id)
            if not record:
                return False
            session.delete(record)
            session.commit()
            return True

    def _load(self, plugin_id: str) -> Optional[PluginDefinition]:
        with Session(self.engine) as session:
            record = session.get(PluginRecord, plugin_id)
            return record.to_definition() if record else None

    async def get(self, plugin_id: str) -> Optional[PluginDefinition]:
        # Session work is blocking, keep it off the event loop
        return await run_in_threadpool(self._load, plugin_id)


async def get_plugin_runtime_by_id(store: PluginStore, plugin_id: str) -> PluginDefinition:
    """
    Load the stored graph of a plugin.

    Raises:
        PluginNotFoundError: nothing is stored under ``plugin_id``
    """
    plugin = await store.get(plugin_id)
    if plugin is None:
        raise PluginNotFoundError(f"Plugin {plugin_id} not found", plugin_id=plugin_id)

    logger.debug(f"Loaded plugin {plugin.name} ({plugin_id}): {len(plugin.nodes)} nodes, {len(plugin.edges)} edges")
    return plugin
