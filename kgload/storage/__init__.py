"""Graph store interface and implementations for the bulk loader."""

from kgload.storage.interfaces import (
    EndpointMatch,
    GraphStoreInterface,
    InsertResult,
    StoreSetupError,
)
from kgload.storage.memory import InMemoryGraphStore

__all__ = [
    "EndpointMatch",
    "GraphStoreInterface",
    "InsertResult",
    "StoreSetupError",
    "InMemoryGraphStore",
]
