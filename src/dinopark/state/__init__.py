"""State/store layer.

This package owns the persisted agents, zones and maintenance history,
and the last-writer-wins rules every store applies when merging an
inbound update into them.
"""

from dinopark.state.base import EntityStore
from dinopark.state.sqlite import SqliteEntityStore
from dinopark.state.store import MemoryEntityStore

__all__ = ["EntityStore", "MemoryEntityStore", "SqliteEntityStore"]
