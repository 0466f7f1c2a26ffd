"""Per-type and per-record upload logic.

`UploadExecutor.upload_entity_type()` uploads every record of one node or
edge type:

1. Build the `ExistenceIndex` for the type (one store query)
2. For each data file, in name order, and each line of it:
    a. map positional values onto the declared attributes
    b. compute the internal identity (and, for edges, the endpoint keys)
    c. skip the record if the identity is already known
    d. otherwise insert it, treating an empty store response as a failure
3. Tally the outcomes into an `EntityUploadSummary`

`upload_record()` never raises. Whatever goes wrong with a record is
returned as a failed `UploadOutcome`, and the caller turns it into an error
sink entry. One bad record never stops the file or the type.
"""

import json
import logging
from enum import Enum

from pydantic import BaseModel, Field

from kgload.existence import ExistenceIndex
from kgload.identity import compute_identity, identity_property, record_properties, resolve_endpoint_key
from kgload.progress import ErrorSink, ProgressCounters
from kgload.records import Record, TabularRecordReader
from kgload.schema import EdgeType, EntityType, GraphSchema
from kgload.storage.interfaces import EndpointMatch, GraphStoreInterface, InsertResult

logger = logging.getLogger(__name__)


class OutcomeStatus(str, Enum):
    """What happened to one record."""

    INSERTED = "inserted"
    ALREADY_EXISTS = "already_exists"
    FAILED = "failed"


class UploadOutcome(BaseModel):
    """Result of uploading one record.

    Attributes:
        status: Inserted, already present, or failed.
        identity: Internal identity of the record, when it could be computed.
        reason: Failure detail; None unless `status` is FAILED.
        values: Raw field values of the record, kept for the error log.
    """

    model_config = {"frozen": True}

    status: OutcomeStatus
    identity: str | None = None
    reason: str | None = None
    values: tuple[str, ...] = ()

    @classmethod
    def inserted(cls, identity: str) -> "UploadOutcome":
        return cls(status=OutcomeStatus.INSERTED, identity=identity)

    @classmethod
    def already_exists(cls, identity: str) -> "UploadOutcome":
        return cls(status=OutcomeStatus.ALREADY_EXISTS, identity=identity)

    @classmethod
    def failed(cls, reason: str, values: tuple[str, ...], identity: str | None = None) -> "UploadOutcome":
        return cls(status=OutcomeStatus.FAILED, identity=identity, reason=reason, values=values)


class EntityUploadSummary(BaseModel):
    """Tallies for the upload of one entity type.

    `error` is set when the type as a whole could not be processed (for
    example its data directory is missing or the existence query failed).
    Record-level failures only show up in `failed`.
    """

    model_config = {"frozen": True}

    entity_name: str
    is_edge: bool = False
    files_read: int = Field(0, ge=0)
    records_read: int = Field(0, ge=0)
    inserted: int = Field(0, ge=0)
    existing: int = Field(0, ge=0)
    failed: int = Field(0, ge=0)
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


def format_failure(entity_name: str, reason: str, values: tuple[str, ...], record: Record | None = None) -> str:
    """Render one error log line: entity name, failure detail, location and raw values."""
    location = ""
    if record is not None and record.source is not None:
        location = f" [{record.source.name}:{record.line_number}]"
    return f"{entity_name} ({reason}){location} : {json.dumps(list(values), ensure_ascii=False)}"


class UploadExecutor:
    """Uploads the records of node and edge types into a graph store.

    The counters and error sink are shared with every other executor call of
    the run; the existence index is private to each `upload_entity_type()`
    call.
    """

    def __init__(
        self,
        store: GraphStoreInterface,
        schema: GraphSchema,
        counters: ProgressCounters,
        errors: ErrorSink,
        reader: TabularRecordReader | None = None,
    ):
        self.store = store
        self.schema = schema
        self.counters = counters
        self.errors = errors
        self.reader = reader or TabularRecordReader()

    async def upload_entity_type(self, entity_type: EntityType) -> EntityUploadSummary:
        """Upload every record of one entity type.

        Raises:
            FileNotFoundError: If the type's data directory does not exist.
            Exception: Whatever the store raises while building the existence index.
        """
        logger.info("Uploading %s %s", "edge" if entity_type.is_edge else "node", entity_type.name)
        index = await ExistenceIndex.build(self.store, entity_type)
        logger.debug("%s: %d identities already stored", entity_type.name, len(index))

        files = self.reader.list_files(entity_type.data_directory)
        records_read = inserted = existing = failed = 0
        for path in files:
            try:
                for record in self.reader.read_file(path):
                    records_read += 1
                    outcome = await self.upload_record(entity_type, record, index)
                    if outcome.status == OutcomeStatus.INSERTED:
                        inserted += 1
                        self.counters.record_inserted()
                    elif outcome.status == OutcomeStatus.ALREADY_EXISTS:
                        existing += 1
                        self.counters.record_existing()
                    else:
                        failed += 1
                        logger.debug("%s: record failed: %s", entity_type.name, outcome.reason)
                        self.errors.append(
                            format_failure(entity_type.name, outcome.reason or "", outcome.values, record)
                        )
            except (OSError, UnicodeDecodeError) as e:
                failed += 1
                logger.warning("%s: cannot read %s: %s", entity_type.name, path, e)
                self.errors.append(f"{entity_type.name} (cannot read {path}: {e}) : []")

        logger.info(
            "Finished %s: %d inserted, %d existing, %d failed",
            entity_type.name,
            inserted,
            existing,
            failed,
        )
        return EntityUploadSummary(
            entity_name=entity_type.name,
            is_edge=entity_type.is_edge,
            files_read=len(files),
            records_read=records_read,
            inserted=inserted,
            existing=existing,
            failed=failed,
        )

    async def upload_record(self, entity_type: EntityType, record: Record, index: ExistenceIndex) -> UploadOutcome:
        """Upload one record, unless its identity is already in `index`.

        On success the identity is added to `index`. Never raises.
        """
        identity: str | None = None
        try:
            properties = record_properties(entity_type, record)
            identity = compute_identity(entity_type, record)
            if isinstance(entity_type, EdgeType):
                source, destination = self._endpoints(entity_type, record)

            if index.contains(identity):
                return UploadOutcome.already_exists(identity)

            properties[identity_property(entity_type)] = identity
            if isinstance(entity_type, EdgeType):
                result = await self.store.insert_edge(entity_type.edge_label, source, destination, properties)
                kind = "edge"
            else:
                result = await self.store.insert_node(entity_type.name, properties)
                kind = "node"

            if not _created(result):
                return UploadOutcome.failed(f"could not insert {kind}", record.values, identity)
            index.add(identity)
            return UploadOutcome.inserted(identity)
        except Exception as e:  # pylint: disable=broad-except
            return UploadOutcome.failed(f"{type(e).__name__}: {e}", record.values, identity)

    def _endpoints(self, edge_type: EdgeType, record: Record) -> tuple[EndpointMatch, EndpointMatch]:
        source_type = self.schema.source_of(edge_type)
        destination_type = self.schema.destination_of(edge_type)
        source = EndpointMatch(
            attribute=source_type.identity_attribute,
            value=resolve_endpoint_key(source_type, edge_type, record),
            label=source_type.name,
        )
        destination = EndpointMatch(
            attribute=destination_type.identity_attribute,
            value=resolve_endpoint_key(destination_type, edge_type, record),
            label=destination_type.name,
        )
        return source, destination


def _created(result: InsertResult | None) -> bool:
    return result is not None and result.count > 0
