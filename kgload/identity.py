"""Identity resolution for node and edge records.

The internal identity of a record is the entity type name followed by the
record's primary attribute values, concatenated in attribute declaration
order with no separator. It is stored on every inserted node or edge
(`NodeId_Internal` / `EdgeId_Internal`) and is what the existence index
compares against.

Because nothing separates the values, distinct value tuples can produce the
same identity: primary values ``("1", "23")`` and ``("12", "3")`` of the same
type both yield ``"<name>123"``. Identities already stored by earlier runs
were computed this way, so the format is kept as-is.
"""

from kgload.records import Record
from kgload.schema import EdgeType, EntityType, NodeType

NODE_IDENTITY_PROPERTY = "NodeId_Internal"
EDGE_IDENTITY_PROPERTY = "EdgeId_Internal"


class RecordError(ValueError):
    """A record cannot be mapped onto its entity type's attribute layout."""


def identity_property(entity_type: EntityType) -> str:
    """Name of the stored property holding the internal identity."""
    return EDGE_IDENTITY_PROPERTY if entity_type.is_edge else NODE_IDENTITY_PROPERTY


def _check_length(entity_type: EntityType, record: Record) -> None:
    if len(record.values) < len(entity_type.attributes):
        raise RecordError(
            f"expected {len(entity_type.attributes)} fields, got {len(record.values)}"
        )


def record_properties(entity_type: EntityType, record: Record) -> dict[str, str]:
    """Map each declared attribute to its positional value, in declared order.

    Extra trailing values are ignored.

    Raises:
        RecordError: If the record has fewer values than declared attributes.
    """
    _check_length(entity_type, record)
    return {attribute: record.values[i] for i, attribute in enumerate(entity_type.attributes)}


def compute_identity(entity_type: EntityType, record: Record) -> str:
    """Return the internal identity of a record.

    Raises:
        RecordError: If the record has fewer values than declared attributes.
    """
    _check_length(entity_type, record)
    return entity_type.name + "".join(record.values[i] for i in entity_type.primary_positions())


def resolve_endpoint_key(node_type: NodeType, edge_type: EdgeType, record: Record) -> str:
    """Return the value an edge record holds for an endpoint's identity attribute.

    The value is looked up at the position the node's `identity_attribute`
    occupies in the edge's own attribute layout, and is later matched
    against that attribute on stored nodes.

    Raises:
        RecordError: If the edge type does not declare the attribute, or the
            record is too short.
    """
    position = edge_type.position_of(node_type.identity_attribute)
    if position is None:
        raise RecordError(
            f"edge {edge_type.name} has no attribute {node_type.identity_attribute!r} "
            f"to locate {node_type.name} nodes"
        )
    _check_length(edge_type, record)
    return record.values[position]
