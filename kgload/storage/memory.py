"""In-memory graph store for testing and dry runs.

Nodes and edges are kept in plain lists of property dictionaries. This is
suitable for:

- **Unit testing**: fast, isolated tests without a database server
- **Dry runs**: checking a schema and its data files end to end before
  pointing the loader at a real store

Edge endpoint matching is an O(n) scan over all nodes, and nothing is
persisted when the process exits.
"""

from typing import Any, Mapping

from kgload.identity import EDGE_IDENTITY_PROPERTY, NODE_IDENTITY_PROPERTY
from kgload.schema import EntityType
from kgload.storage.interfaces import EndpointMatch, GraphStoreInterface, InsertResult


class InMemoryGraphStore(GraphStoreInterface):
    """Dictionary-backed graph store.

    Each node is stored as ``{"label": ..., "properties": {...}}`` and each
    edge as ``{"label": ..., "source": i, "destination": j, "properties": {...}}``
    where ``i`` and ``j`` index into `nodes`.

    Example:
        ```python
        store = InMemoryGraphStore()
        await store.insert_node("Person", {"id": "1", "NodeId_Internal": "Person1"})
        await store.query_existing_identities(person_type)  # ["Person1"]
        ```
    """

    def __init__(self) -> None:
        self.nodes: list[dict[str, Any]] = []
        self.edges: list[dict[str, Any]] = []

    async def verify(self) -> None:
        return None

    async def query_existing_identities(self, entity_type: EntityType) -> list[str]:
        """Returns the stored identities of all nodes or edges carrying the type's label.

        Edge types are looked up by their edge label.
        """
        if entity_type.is_edge:
            label = entity_type.edge_label  # type: ignore[attr-defined]
            items, key = self.edges, EDGE_IDENTITY_PROPERTY
        else:
            label = entity_type.name
            items, key = self.nodes, NODE_IDENTITY_PROPERTY
        return [
            item["properties"][key]
            for item in items
            if item["label"] == label and key in item["properties"]
        ]

    async def insert_node(self, label: str, properties: Mapping[str, str]) -> InsertResult:
        node = {"label": label, "properties": dict(properties)}
        self.nodes.append(node)
        return InsertResult(records=(dict(node["properties"]),))

    async def insert_edge(
        self,
        label: str,
        source: EndpointMatch,
        destination: EndpointMatch,
        properties: Mapping[str, str],
    ) -> InsertResult:
        """Creates one edge per matching (source, destination) node pair."""
        sources = self._match(source)
        destinations = self._match(destination)
        created: list[dict[str, Any]] = []
        for i in sources:
            for j in destinations:
                edge = {"label": label, "source": i, "destination": j, "properties": dict(properties)}
                self.edges.append(edge)
                created.append(dict(edge["properties"]))
        return InsertResult(records=tuple(created))

    def _match(self, match: EndpointMatch) -> list[int]:
        return [
            i
            for i, node in enumerate(self.nodes)
            if (match.label is None or node["label"] == match.label)
            and node["properties"].get(match.attribute) == match.value
        ]

    def nodes_with_label(self, label: str) -> list[dict[str, str]]:
        return [node["properties"] for node in self.nodes if node["label"] == label]

    def edges_with_label(self, label: str) -> list[dict[str, Any]]:
        return [edge for edge in self.edges if edge["label"] == label]
