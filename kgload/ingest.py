"""Two-phase graph upload orchestrator.

This module provides the `GraphUploader` class, which runs a complete upload
of a `GraphSchema` into a graph store:

**Phase 1 - Nodes:**
    Every node type is uploaded, at most `max_concurrency` types at a time.

**Phase 2 - Edges:**
    Starts only once every node type has finished, successfully or not,
    because edge inserts locate their endpoints among the stored nodes.

Each phase has its own `ProgressCounters`; both phases share one
`ErrorSink`, which is written to the error log when the run ends. Neither a
failed record nor a failed entity type stops the run.

Example usage:
    ```python
    uploader = GraphUploader(
        graph=load_graph_schema(Path("graph.json")),
        store=store,
        max_concurrency=4,
        error_log_path=Path("errors.log"),
    )
    report = await uploader.run()
    print(report.summary_text())
    ```
"""

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from kgload.logging import setup_logging
from kgload.progress import ErrorSink, ProgressCounters
from kgload.records import TabularRecordReader
from kgload.scheduler import BoundedUploadScheduler
from kgload.schema import GraphSchema
from kgload.storage.interfaces import GraphStoreInterface
from kgload.upload import EntityUploadSummary, UploadExecutor


class PhaseResult(BaseModel):
    """Totals of one upload phase (nodes or edges)."""

    model_config = {"frozen": True}

    kind: str
    inserted: int = 0
    existing: int = 0
    failed: int = 0
    summaries: tuple[EntityUploadSummary, ...] = ()

    @property
    def failed_types(self) -> tuple[str, ...]:
        return tuple(s.entity_name for s in self.summaries if not s.succeeded)


class UploadReport(BaseModel):
    """Result of a full upload run.

    Attributes:
        nodes: Node phase totals.
        edges: Edge phase totals.
        error_count: Number of messages written to the error log.
        error_log_path: Where the error log was written, or None if not written.
    """

    model_config = {"frozen": True}

    nodes: PhaseResult
    edges: PhaseResult
    error_count: int = Field(0, ge=0)
    error_log_path: Path | None = None

    @property
    def inserted(self) -> int:
        return self.nodes.inserted + self.edges.inserted

    @property
    def existing(self) -> int:
        return self.nodes.existing + self.edges.existing

    def summary_text(self) -> str:
        lines = [
            f"Uploaded {self.nodes.inserted} nodes and found {self.nodes.existing} existing nodes",
            f"Uploaded {self.edges.inserted} edges and found {self.edges.existing} existing edges",
        ]
        if self.error_count == 0:
            lines.append("Graph uploaded!")
        else:
            where = f" Please check the log file {self.error_log_path}." if self.error_log_path else ""
            lines.append(f"Graph uploaded! But there were {self.error_count} errors.{where}")
        return "\n".join(lines)


class GraphUploader(BaseModel):
    """Uploads all node types, then all edge types, of a schema into a store.

    Attributes:
        graph: Node and edge types to upload.
        store: Graph store, already connected.
        max_concurrency: Maximum number of entity types uploaded at once.
        error_log_path: File the error sink is flushed to; None keeps errors in memory only.
        reader: Reader used for the data files.
        progress_stream: Optional stream for the live status line.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    graph: GraphSchema
    store: GraphStoreInterface
    max_concurrency: int = Field(4, ge=1)
    error_log_path: Path | None = None
    reader: TabularRecordReader = Field(default_factory=TabularRecordReader)
    progress_stream: Any = None
    errors: ErrorSink = Field(default_factory=ErrorSink)

    async def run(self) -> UploadReport:
        """Run both phases, flush the error log and return the report."""
        logger = setup_logging(name="kgload.ingest")
        scheduler = BoundedUploadScheduler(self.max_concurrency)

        logger.info("Starting node upload (%d types)", len(self.graph.nodes))
        nodes = await self._run_phase(scheduler, "node", list(self.graph.nodes.values()))
        logger.info("Uploaded nodes")

        logger.info("Starting edge upload (%d types)", len(self.graph.edges))
        edges = await self._run_phase(scheduler, "edge", list(self.graph.edges.values()))
        logger.info("Uploaded edges")

        error_log_path = None
        if self.error_log_path is not None:
            try:
                error_log_path = self.errors.flush(self.error_log_path)
            except OSError as e:
                logger.error("Cannot write error log %s: %s", self.error_log_path, e)
                for message in self.errors.messages():
                    logger.error(message)
        report = UploadReport(
            nodes=nodes,
            edges=edges,
            error_count=len(self.errors),
            error_log_path=error_log_path,
        )
        logger.debug(report)
        return report

    async def _run_phase(self, scheduler: BoundedUploadScheduler, kind: str, entity_types: list) -> PhaseResult:
        counters = ProgressCounters(kind=kind, stream=self.progress_stream)
        executor = UploadExecutor(self.store, self.graph, counters, self.errors, reader=self.reader)
        summaries = await scheduler.run_all(entity_types, executor.upload_entity_type)
        if entity_types:
            counters.finish()
        for summary in summaries:
            if summary.error is not None:
                self.errors.append(f"{summary.entity_name} ({summary.error}) : []")
        return PhaseResult(
            kind=kind,
            inserted=counters.inserted,
            existing=counters.existing,
            failed=sum(s.failed for s in summaries),
            summaries=tuple(summaries),
        )
