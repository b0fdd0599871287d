"""
Variety Store - Record table and hash index kept in step.

    id   -> Variety     primary table
    hash -> id          uniqueness index

Both maps are private. Every insert writes both, and nothing outside
this class can touch either one, so a hash is never indexed without its
record. The store does no locking of its own; SeedRegistry serializes
all access.
"""

from __future__ import annotations

from typing import Iterator

from .errors import SnapshotError
from .varieties import Variety


class VarietyStore:
    """Co-maintained id and hash indexes for varieties."""

    def __init__(self) -> None:
        self._by_id: dict[int, Variety] = {}
        self._by_hash: dict[bytes, int] = {}

    def __len__(self) -> int:
        return len(self._by_id)

    def __iter__(self) -> Iterator[tuple[int, Variety]]:
        return iter(sorted(self._by_id.items()))

    def get(self, variety_id: int) -> Variety | None:
        return self._by_id.get(variety_id)

    def id_for_hash(self, seed_hash: bytes) -> int | None:
        """Id registered under seed_hash. Anything but bytes is never present."""
        if not isinstance(seed_hash, (bytes, bytearray)):
            return None
        return self._by_hash.get(bytes(seed_hash))

    def contains_hash(self, seed_hash: bytes) -> bool:
        return self.id_for_hash(seed_hash) is not None

    def insert(self, variety_id: int, variety: Variety) -> None:
        """
        Add a new record under both indexes.

        Raises:
            KeyError: if the id or hash is already present
        """
        key = bytes(variety.hash)
        if variety_id in self._by_id:
            raise KeyError(f"variety id {variety_id} already present")
        if key in self._by_hash:
            raise KeyError(f"variety hash {key.hex()} already present")
        self._by_id[variety_id] = variety
        self._by_hash[key] = variety_id

    def replace(self, variety_id: int, variety: Variety) -> None:
        """
        Swap in a new version of an existing record.

        The hash is immutable, so the hash index is left alone.

        Raises:
            KeyError: if the id is unknown or the hash differs
        """
        current = self._by_id[variety_id]
        if current.hash != variety.hash:
            raise KeyError(f"variety {variety_id} hash cannot change")
        self._by_id[variety_id] = variety

    @classmethod
    def from_records(cls, records: dict[int, Variety]) -> VarietyStore:
        """
        Rebuild a store from id -> record pairs, checking the id space.

        Raises:
            SnapshotError: if ids are not 0..n-1 or a hash repeats
        """
        store = cls()
        expected = set(range(len(records)))
        if set(records) != expected:
            raise SnapshotError("variety ids are not a gapless sequence from 0")
        for variety_id in sorted(records):
            try:
                store.insert(variety_id, records[variety_id])
            except KeyError as e:
                raise SnapshotError(str(e), variety_id=variety_id) from e
        return store
