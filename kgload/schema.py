"""Entity model for the graph bulk loader.

This module defines the in-memory description of the graph being uploaded:

- `EntityType`: shared fields of every node or edge type (name, data
  directory, positional attribute layout, primary attributes)
- `NodeType`: adds the identity attribute other entities use to locate a node
- `EdgeType`: adds the source and destination node type references
- `GraphSchema`: the node and edge mappings, validated as a whole

All models are frozen Pydantic models. They are built once from configuration
(see `kgload.config`) and stay read-only for the whole run.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, model_validator


class EntityType(BaseModel):
    """Common description of a node type or an edge type.

    The order of `attributes` matches the positional layout of the tabular
    data files: the value at position ``i`` of a record belongs to
    ``attributes[i]``.

    Attributes:
        name: Unique name of the entity type, also the prefix of every
            internal identity computed for it.
        data_directory: Directory holding the data files for this type. Every
            regular file directly inside it is read.
        attributes: Field names in positional order.
        primary_attributes: Attributes whose values make up the internal
            identity. Must be a non-empty subset of `attributes`.
    """

    model_config = {"frozen": True}

    name: str = Field(min_length=1)
    data_directory: Path
    attributes: tuple[str, ...] = Field(min_length=1)
    primary_attributes: frozenset[str] = Field(min_length=1)

    @model_validator(mode="after")
    def primary_attributes_are_declared(self) -> "EntityType":
        unknown = self.primary_attributes - set(self.attributes)
        if unknown:
            raise ValueError(f"{self.name}: primary attributes {sorted(unknown)} are not declared attributes")
        if len(set(self.attributes)) != len(self.attributes):
            raise ValueError(f"{self.name}: attribute names must be unique")
        return self

    @property
    def is_edge(self) -> bool:
        return False

    def primary_positions(self) -> tuple[int, ...]:
        """Positions of the primary attributes, in attribute declaration order."""
        return tuple(i for i, attribute in enumerate(self.attributes) if attribute in self.primary_attributes)

    def position_of(self, attribute: str) -> int | None:
        """Return the positional index of an attribute, or None if not declared."""
        try:
            return self.attributes.index(attribute)
        except ValueError:
            return None


class NodeType(EntityType):
    """A node type. `identity_attribute` is what edges match against."""

    identity_attribute: str = Field(min_length=1)

    @model_validator(mode="after")
    def identity_attribute_is_declared(self) -> "NodeType":
        if self.identity_attribute not in self.attributes:
            raise ValueError(f"{self.name}: identity attribute {self.identity_attribute!r} is not a declared attribute")
        return self


class EdgeType(EntityType):
    """An edge type connecting two declared node types.

    The edge's data files must carry, among their attributes, the identity
    attribute of both endpoint node types; those values locate the nodes to
    connect.
    """

    source_type_name: str = Field(min_length=1)
    destination_type_name: str = Field(min_length=1)
    label: str | None = None

    @property
    def is_edge(self) -> bool:
        return True

    @property
    def edge_label(self) -> str:
        """Label the edge is stored under. Defaults to the edge type name."""
        return self.label or self.name


class GraphSchema(BaseModel):
    """Node and edge types of one upload, keyed by name."""

    model_config = {"frozen": True}

    nodes: dict[str, NodeType] = Field(default_factory=dict)
    edges: dict[str, EdgeType] = Field(default_factory=dict)

    @model_validator(mode="after")
    def references_are_consistent(self) -> "GraphSchema":
        for key, node in self.nodes.items():
            if key != node.name:
                raise ValueError(f"node registered as {key!r} is named {node.name!r}")
        for key, edge in self.edges.items():
            if key != edge.name:
                raise ValueError(f"edge registered as {key!r} is named {edge.name!r}")
            for endpoint in (edge.source_type_name, edge.destination_type_name):
                if endpoint not in self.nodes:
                    raise ValueError(f"{edge.name}: endpoint {endpoint!r} is not a declared node type")
        return self

    @classmethod
    def from_types(cls, nodes: list[NodeType], edges: list[EdgeType]) -> "GraphSchema":
        """Build a schema from lists of types, rejecting duplicate names."""
        node_map: dict[str, NodeType] = {}
        for node in nodes:
            if node.name in node_map:
                raise ValueError(f"duplicate node type name {node.name!r}")
            node_map[node.name] = node
        edge_map: dict[str, EdgeType] = {}
        for edge in edges:
            if edge.name in edge_map:
                raise ValueError(f"duplicate edge type name {edge.name!r}")
            edge_map[edge.name] = edge
        return cls(nodes=node_map, edges=edge_map)

    def source_of(self, edge: EdgeType) -> NodeType:
        return self.nodes[edge.source_type_name]

    def destination_of(self, edge: EdgeType) -> NodeType:
        return self.nodes[edge.destination_type_name]
