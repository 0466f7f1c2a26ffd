"""Bounded-concurrency scheduling of per-type uploads.

Entity types, not records, are the unit of parallelism: each type is
uploaded by one task from start to finish, and at most `max_concurrency`
such tasks run at once. `run_all()` returns only when every task has
finished, which is what separates the node phase from the edge phase.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Sequence

from kgload.schema import EntityType
from kgload.upload import EntityUploadSummary

logger = logging.getLogger(__name__)

UploadOne = Callable[[EntityType], Awaitable[EntityUploadSummary]]


class BoundedUploadScheduler:
    """Runs one upload task per entity type, at most `max_concurrency` at a time.

    A task that raises does not cancel its siblings. Its exception is logged
    and turned into a summary whose `error` is set.

    Example:
        ```python
        scheduler = BoundedUploadScheduler(max_concurrency=4)
        summaries = await scheduler.run_all(schema.nodes.values(), executor.upload_entity_type)
        ```
    """

    def __init__(self, max_concurrency: int):
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {max_concurrency}")
        self.max_concurrency = max_concurrency

    async def run_all(self, entity_types: Sequence[EntityType], upload_one: UploadOne) -> list[EntityUploadSummary]:
        """Upload every entity type and return their summaries in input order."""
        entity_types = list(entity_types)
        if not entity_types:
            return []
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def upload_with_limit(entity_type: EntityType) -> EntityUploadSummary:
            async with semaphore:
                try:
                    return await upload_one(entity_type)
                except Exception as e:  # pylint: disable=broad-except
                    logger.exception("Upload of %s failed", entity_type.name)
                    return EntityUploadSummary(
                        entity_name=entity_type.name,
                        is_edge=entity_type.is_edge,
                        error=f"{type(e).__name__}: {e}",
                    )

        return list(await asyncio.gather(*[upload_with_limit(entity_type) for entity_type in entity_types]))
