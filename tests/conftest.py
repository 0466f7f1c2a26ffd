"""Test fixtures and instrumented graph stores.

This module provides:
- Helpers writing tab-delimited data files into a temporary directory
- Factory functions for node and edge types with sensible defaults
- Graph store doubles built on `InMemoryGraphStore`:
    - `RecordingGraphStore` logs every call with a monotonic sequence number
    - `RejectingGraphStore` accepts every request but creates nothing
- Pytest fixtures wiring these together for executor and uploader tests
"""

import asyncio
from pathlib import Path
from typing import Any, Mapping

import pytest

from kgload.progress import ErrorSink, ProgressCounters
from kgload.schema import EdgeType, EntityType, GraphSchema, NodeType
from kgload.storage.interfaces import EndpointMatch, InsertResult
from kgload.storage.memory import InMemoryGraphStore


def write_rows(directory: Path, filename: str, rows: list[list[str]], separator: str = "\t") -> Path:
    """Write rows as delimited lines into `directory/filename`, creating the directory."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / filename
    path.write_text("".join(separator.join(row) + "\n" for row in rows), encoding="utf-8")
    return path


def make_node_type(
    name: str,
    data_directory: Path,
    attributes: tuple[str, ...] = ("id", "name"),
    primary: tuple[str, ...] = ("id",),
    identity_attribute: str = "id",
) -> NodeType:
    """Factory for NodeType instances; defaults to an (id, name) layout keyed on id."""
    return NodeType(
        name=name,
        data_directory=data_directory,
        attributes=attributes,
        primary_attributes=frozenset(primary),
        identity_attribute=identity_attribute,
    )


def make_edge_type(
    name: str,
    data_directory: Path,
    source: str,
    destination: str,
    attributes: tuple[str, ...] = ("id", "friendId", "since"),
    primary: tuple[str, ...] = ("id", "friendId"),
    label: str | None = None,
) -> EdgeType:
    """Factory for EdgeType instances."""
    return EdgeType(
        name=name,
        data_directory=data_directory,
        attributes=attributes,
        primary_attributes=frozenset(primary),
        source_type_name=source,
        destination_type_name=destination,
        label=label,
    )


class RecordingGraphStore(InMemoryGraphStore):
    """In-memory store that records each call in order.

    `calls` holds ``(sequence, method, label, phase)`` tuples where phase is
    "start" or "end". `delay` makes every round-trip yield to the event loop
    so concurrent uploads actually interleave.
    """

    def __init__(self, delay: float = 0.0) -> None:
        super().__init__()
        self.delay = delay
        self.calls: list[tuple[int, str, str, str]] = []
        self._sequence = 0

    def _log(self, method: str, label: str, phase: str) -> None:
        self._sequence += 1
        self.calls.append((self._sequence, method, label, phase))

    async def query_existing_identities(self, entity_type: EntityType) -> list[str]:
        self._log("query", entity_type.name, "start")
        await asyncio.sleep(self.delay)
        result = await super().query_existing_identities(entity_type)
        self._log("query", entity_type.name, "end")
        return result

    async def insert_node(self, label: str, properties: Mapping[str, str]) -> InsertResult:
        self._log("insert_node", label, "start")
        await asyncio.sleep(self.delay)
        result = await super().insert_node(label, properties)
        self._log("insert_node", label, "end")
        return result

    async def insert_edge(
        self,
        label: str,
        source: EndpointMatch,
        destination: EndpointMatch,
        properties: Mapping[str, str],
    ) -> InsertResult:
        self._log("insert_edge", label, "start")
        await asyncio.sleep(self.delay)
        result = await super().insert_edge(label, source, destination, properties)
        self._log("insert_edge", label, "end")
        return result

    def calls_to(self, method: str, phase: str = "start") -> list[tuple[int, str, str, str]]:
        return [call for call in self.calls if call[1] == method and call[3] == phase]


class RejectingGraphStore(InMemoryGraphStore):
    """Store that answers every insert with zero created records."""

    def __init__(self) -> None:
        super().__init__()
        self.insert_attempts: list[tuple[str, dict[str, Any]]] = []

    async def insert_node(self, label: str, properties: Mapping[str, str]) -> InsertResult:
        self.insert_attempts.append((label, dict(properties)))
        return InsertResult()

    async def insert_edge(self, label, source, destination, properties) -> InsertResult:
        self.insert_attempts.append((label, dict(properties)))
        return InsertResult()


@pytest.fixture
def store() -> InMemoryGraphStore:
    """Provide a fresh in-memory graph store.

    Each test receives an empty store, ensuring test isolation.
    """
    return InMemoryGraphStore()


@pytest.fixture
def counters() -> ProgressCounters:
    """Provide silent progress counters (no live status line)."""
    return ProgressCounters(kind="node")


@pytest.fixture
def errors() -> ErrorSink:
    """Provide an empty error sink."""
    return ErrorSink()


@pytest.fixture
def person_type(tmp_path: Path) -> NodeType:
    """Person{attributes: [id, name], primary: [id]} reading from tmp_path/person."""
    return make_node_type("Person", tmp_path / "person")


@pytest.fixture
def knows_type(tmp_path: Path) -> EdgeType:
    """Knows{source: Person, destination: Person} keyed on (id, friendId).

    Both endpoints are Person nodes located through Person's identity
    attribute ``id``, so both resolve to the edge's ``id`` column.
    """
    return make_edge_type("Knows", tmp_path / "knows", source="Person", destination="Person")


@pytest.fixture
def friendship_schema(tmp_path: Path) -> GraphSchema:
    """Two node types and one edge type whose endpoints both resolve.

    - Person{id, name} keyed on id
    - City{code, title} keyed on code
    - LivesIn{id, code, since} from Person (via id) to City (via code)
    """
    person = make_node_type("Person", tmp_path / "person")
    city = make_node_type("City", tmp_path / "city", attributes=("code", "title"), primary=("code",), identity_attribute="code")
    lives_in = make_edge_type(
        "LivesIn",
        tmp_path / "lives_in",
        source="Person",
        destination="City",
        attributes=("id", "code", "since"),
        primary=("id", "code"),
    )
    return GraphSchema.from_types([person, city], [lives_in])
