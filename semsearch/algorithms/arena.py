"""Dense slot storage shared by every index.

Vectors live in one growable float32 matrix. External string identifiers are mapped
to integer slots once, so graph adjacency and hash buckets can hold plain ints.
Removed slots are recycled by later inserts.
"""
from __future__ import annotations

from typing import Dict, Iterator, List, Optional

import numpy as np


class VectorArena:
    """Slot-addressed vector store with an id -> slot side mapping."""

    def __init__(self, dimension: Optional[int] = None, initial_capacity: int = 64) -> None:
        self.dimension = dimension
        self._initial_capacity = max(int(initial_capacity), 1)
        self._matrix: Optional[np.ndarray] = None
        self._active = np.zeros(0, dtype=bool)
        self._slot_to_id: List[Optional[str]] = []
        self._id_to_slot: Dict[str, int] = {}
        self._free_slots: List[int] = []
        if dimension is not None:
            self._allocate(self._initial_capacity)

    def _allocate(self, capacity: int) -> None:
        matrix = np.zeros((capacity, self.dimension), dtype=np.float32)
        active = np.zeros(capacity, dtype=bool)
        if self._matrix is not None:
            used = len(self._slot_to_id)
            matrix[:used] = self._matrix[:used]
            active[:used] = self._active[:used]
        self._matrix = matrix
        self._active = active

    def accepts(self, vector: np.ndarray) -> bool:
        """True if the vector is non-empty and matches the arena dimension (or the arena has none yet)."""
        if vector.shape[0] == 0:
            return False
        return self.dimension is None or vector.shape[0] == self.dimension

    def put(self, entity_id: str, vector: np.ndarray) -> int:
        """
        Store a vector under an id, reusing its slot if the id already exists.

        The caller must check ``accepts`` first.

        Returns:
            The slot holding the vector
        """
        if self.dimension is None:
            self.dimension = int(vector.shape[0])
            self._allocate(self._initial_capacity)

        slot = self._id_to_slot.get(entity_id)
        if slot is None:
            if self._free_slots:
                slot = self._free_slots.pop()
                self._slot_to_id[slot] = entity_id
            else:
                slot = len(self._slot_to_id)
                if slot >= self._matrix.shape[0]:
                    self._allocate(self._matrix.shape[0] * 2)
                self._slot_to_id.append(entity_id)
            self._id_to_slot[entity_id] = slot

        self._matrix[slot] = vector
        self._active[slot] = True
        return slot

    def pop(self, entity_id: str) -> Optional[np.ndarray]:
        """Free the slot held by an id and return a copy of its vector."""
        slot = self._id_to_slot.pop(entity_id, None)
        if slot is None:
            return None
        vector = self._matrix[slot].copy()
        self._active[slot] = False
        self._slot_to_id[slot] = None
        self._free_slots.append(slot)
        return vector

    def clear(self, keep_dimension: bool = False) -> None:
        if not keep_dimension:
            self.dimension = None
        self._matrix = None
        self._active = np.zeros(0, dtype=bool)
        self._slot_to_id = []
        self._id_to_slot = {}
        self._free_slots = []
        if self.dimension is not None:
            self._allocate(self._initial_capacity)

    def slot_of(self, entity_id: str) -> Optional[int]:
        return self._id_to_slot.get(entity_id)

    def id_of(self, slot: int) -> str:
        entity_id = self._slot_to_id[slot]
        if entity_id is None:
            raise KeyError(f"Slot {slot} is not in use")
        return entity_id

    def vector(self, slot: int) -> np.ndarray:
        return self._matrix[slot]

    def get(self, entity_id: str) -> Optional[np.ndarray]:
        slot = self._id_to_slot.get(entity_id)
        return None if slot is None else self._matrix[slot].copy()

    def active_slots(self) -> np.ndarray:
        """Slots currently holding a vector, in ascending order."""
        return np.flatnonzero(self._active[: len(self._slot_to_id)])

    def rows(self, slots: np.ndarray) -> np.ndarray:
        if self._matrix is None:
            return np.zeros((0, self.dimension or 0), dtype=np.float32)
        return self._matrix[slots]

    def ids(self) -> List[str]:
        return list(self._id_to_slot)

    def nbytes(self) -> int:
        return 0 if self._matrix is None else int(self._matrix.nbytes)

    def __len__(self) -> int:
        return len(self._id_to_slot)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._id_to_slot

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._id_to_slot))
