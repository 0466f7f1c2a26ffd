"""Per-type snapshot of identities already present in the store."""

from typing import Iterable

from kgload.schema import EntityType
from kgload.storage.interfaces import GraphStoreInterface


class ExistenceIndex:
    """Set of internal identities known to exist for one entity type.

    Seeded once from the store when the type's upload starts and grown as
    inserts succeed, so a record repeated later in the same run is caught as
    well. Owned by the single task uploading the type; not synchronized.
    """

    def __init__(self, entity_name: str, identities: Iterable[str] = ()):
        self.entity_name = entity_name
        self._identities: set[str] = set(identities)

    @classmethod
    async def build(cls, store: GraphStoreInterface, entity_type: EntityType) -> "ExistenceIndex":
        """Query the store once for every identity stored for `entity_type`."""
        identities = await store.query_existing_identities(entity_type)
        return cls(entity_type.name, identities)

    def contains(self, identity: str) -> bool:
        return identity in self._identities

    def add(self, identity: str) -> None:
        self._identities.add(identity)

    def __contains__(self, identity: object) -> bool:
        return identity in self._identities

    def __len__(self) -> int:
        return len(self._identities)
