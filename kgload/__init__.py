"""Graph bulk loader - upload node and edge data files into a graph store.

Node and edge types are described declaratively (see `kgload.config`). Each
type's tab-delimited data files are read record by record, every record gets
a deterministic internal identity, records already in the store are skipped,
and the rest are inserted. Node types are uploaded first, several at a time;
edge types follow once every node type has finished.

The Neo4j store lives in `kgload.storage.neo4j_store` and is only imported
when used, so that the rest of the package works without the driver:

    # This does NOT import neo4j:
    from kgload import GraphUploader, InMemoryGraphStore

    # This does:
    from kgload.storage.neo4j_store import Neo4jGraphStore
"""

from kgload.config import ConfigError, load_graph_schema, load_settings
from kgload.existence import ExistenceIndex
from kgload.identity import RecordError, compute_identity, resolve_endpoint_key
from kgload.ingest import GraphUploader, PhaseResult, UploadReport
from kgload.progress import ErrorSink, ProgressCounters
from kgload.records import Record, RecordProfile, TabularRecordReader
from kgload.scheduler import BoundedUploadScheduler
from kgload.schema import EdgeType, EntityType, GraphSchema, NodeType
from kgload.storage import EndpointMatch, GraphStoreInterface, InMemoryGraphStore, InsertResult, StoreSetupError
from kgload.upload import EntityUploadSummary, OutcomeStatus, UploadExecutor, UploadOutcome

__all__ = [
    "BoundedUploadScheduler",
    "ConfigError",
    "EdgeType",
    "EndpointMatch",
    "EntityType",
    "EntityUploadSummary",
    "ErrorSink",
    "ExistenceIndex",
    "GraphSchema",
    "GraphStoreInterface",
    "GraphUploader",
    "InMemoryGraphStore",
    "InsertResult",
    "NodeType",
    "OutcomeStatus",
    "PhaseResult",
    "ProgressCounters",
    "Record",
    "RecordError",
    "RecordProfile",
    "StoreSetupError",
    "TabularRecordReader",
    "UploadExecutor",
    "UploadOutcome",
    "UploadReport",
    "compute_identity",
    "load_graph_schema",
    "load_settings",
    "resolve_endpoint_key",
]

__version__ = "0.1.0"
