"""Graph store interface used by the upload engine."""

from abc import ABC, abstractmethod
from typing import Any, Mapping

from pydantic import BaseModel

from kgload.schema import EntityType


class StoreSetupError(RuntimeError):
    """The store is unreachable or misconfigured. Fatal for the whole run."""


class EndpointMatch(BaseModel):
    """Locates the node(s) at one end of an edge by an attribute value.

    Attributes:
        attribute: Node attribute to match, normally the node type's identity attribute.
        value: Value the attribute must equal.
        label: Optional node label restricting the match.
    """

    model_config = {"frozen": True}

    attribute: str
    value: str
    label: str | None = None


class InsertResult(BaseModel):
    """Records returned by the store for one insert. Empty means nothing was created."""

    model_config = {"frozen": True}

    records: tuple[dict[str, Any], ...] = ()

    @property
    def count(self) -> int:
        return len(self.records)


class GraphStoreInterface(ABC):
    """Abstract interface for the remote graph store.

    Implementations are handed to the upload engine already bound to their
    database. Every method is one independent round-trip; the engine imposes
    no batching or pooling on top of them.
    """

    @abstractmethod
    async def verify(self) -> None:
        """Check the store is reachable.

        Raises:
            StoreSetupError: If it is not.
        """

    @abstractmethod
    async def query_existing_identities(self, entity_type: EntityType) -> list[str]:
        """Return every internal identity currently stored for an entity type."""

    @abstractmethod
    async def insert_node(self, label: str, properties: Mapping[str, str]) -> InsertResult:
        """Create one node with the given label and properties."""

    @abstractmethod
    async def insert_edge(
        self,
        label: str,
        source: EndpointMatch,
        destination: EndpointMatch,
        properties: Mapping[str, str],
    ) -> InsertResult:
        """Create a directed edge from the nodes matched by `source` to those matched by `destination`.

        When either end matches no node, nothing is created and the result is empty.
        """

    async def close(self) -> None:
        """Release any connection held by the store."""
