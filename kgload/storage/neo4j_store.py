"""Neo4j-backed graph store.

Talks to Neo4j through the official async driver. Labels, relationship types
and property keys cannot be passed as query parameters, so they are
backtick-quoted into the query text; every value travels as a parameter.
"""

import logging
from typing import Any, Mapping

from neo4j import AsyncDriver, AsyncGraphDatabase
from neo4j.exceptions import AuthError, DriverError, Neo4jError, ServiceUnavailable

from kgload.identity import EDGE_IDENTITY_PROPERTY, NODE_IDENTITY_PROPERTY
from kgload.schema import EntityType
from kgload.storage.interfaces import EndpointMatch, GraphStoreInterface, InsertResult, StoreSetupError

logger = logging.getLogger(__name__)


def quote_identifier(name: str) -> str:
    """Backtick-quote a label, relationship type or property key for Cypher."""
    if not name:
        raise ValueError("identifier must not be empty")
    return "`" + name.replace("`", "``") + "`"


def _match_pattern(variable: str, match: EndpointMatch, parameter: str) -> str:
    label = f":{quote_identifier(match.label)}" if match.label else ""
    return f"({variable}{label} {{{quote_identifier(match.attribute)}: ${parameter}}})"


class Neo4jGraphStore(GraphStoreInterface):
    """Graph store backed by a Neo4j database.

    Example:
        ```python
        store = Neo4jGraphStore.connect("neo4j://localhost:7687", "neo4j", "secret")
        await store.verify()
        try:
            ...
        finally:
            await store.close()
        ```
    """

    def __init__(self, driver: AsyncDriver, database: str | None = None):
        self._driver = driver
        self._database = database

    @classmethod
    def connect(
        cls,
        uri: str,
        username: str | None = None,
        password: str | None = None,
        database: str | None = None,
    ) -> "Neo4jGraphStore":
        auth = (username, password) if username is not None else None
        try:
            driver = AsyncGraphDatabase.driver(uri, auth=auth)
        except (DriverError, ValueError) as e:
            raise StoreSetupError(f"cannot create Neo4j driver for {uri}: {e}") from e
        return cls(driver, database=database)

    async def verify(self) -> None:
        try:
            await self._driver.verify_connectivity()
        except (AuthError, ServiceUnavailable, DriverError, Neo4jError) as e:
            raise StoreSetupError(f"Neo4j is not reachable: {e}") from e
        # verify_connectivity() does not touch the configured database
        try:
            await self._run("RETURN 1 AS ok", {})
        except (DriverError, Neo4jError) as e:
            raise StoreSetupError(f"Neo4j database {self._database or 'default'!r} is not usable: {e}") from e
        logger.info("Verified Neo4j connectivity (database=%s)", self._database or "default")

    async def close(self) -> None:
        await self._driver.close()

    async def _run(self, query: str, parameters: Mapping[str, Any]) -> list[dict[str, Any]]:
        async with self._driver.session(database=self._database) as session:
            result = await session.run(query, dict(parameters))
            return await result.data()

    async def query_existing_identities(self, entity_type: EntityType) -> list[str]:
        if entity_type.is_edge:
            key = quote_identifier(EDGE_IDENTITY_PROPERTY)
            label = quote_identifier(entity_type.edge_label)  # type: ignore[attr-defined]
            query = f"MATCH ()-[r:{label}]->() WHERE r.{key} IS NOT NULL RETURN r.{key} AS identity"
        else:
            key = quote_identifier(NODE_IDENTITY_PROPERTY)
            label = quote_identifier(entity_type.name)
            query = f"MATCH (n:{label}) WHERE n.{key} IS NOT NULL RETURN n.{key} AS identity"
        rows = await self._run(query, {})
        return [row["identity"] for row in rows]

    async def insert_node(self, label: str, properties: Mapping[str, str]) -> InsertResult:
        query = f"CREATE (n:{quote_identifier(label)}) SET n = $props RETURN n"
        rows = await self._run(query, {"props": dict(properties)})
        return InsertResult(records=tuple(row["n"] for row in rows))

    async def insert_edge(
        self,
        label: str,
        source: EndpointMatch,
        destination: EndpointMatch,
        properties: Mapping[str, str],
    ) -> InsertResult:
        query = (
            f"MATCH {_match_pattern('a', source, 'source_value')} "
            f"MATCH {_match_pattern('b', destination, 'destination_value')} "
            f"CREATE (a)-[r:{quote_identifier(label)}]->(b) SET r = $props RETURN r"
        )
        rows = await self._run(
            query,
            {"source_value": source.value, "destination_value": destination.value, "props": dict(properties)},
        )
        return InsertResult(records=tuple(_relationship_properties(row["r"]) for row in rows))


def _relationship_properties(value: Any) -> dict[str, Any]:
    # result.data() renders relationships as (start, type, end) tuples
    if isinstance(value, dict):
        return value
    if isinstance(value, (tuple, list)) and len(value) == 3:
        return {"start": value[0], "type": value[1], "end": value[2]}
    return {"value": value}
