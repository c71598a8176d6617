"""
Trajectory recorders - remembering the decisions of one episode

Two interchangeable strategies with the same capability set (append,
truncate, for_each, destroy) and different cost profiles:

- Block: dense visit counts indexed by state * action_count + action, plus
  an arena log of offsets for ordering. Appending is two array writes;
  reading back for learning scans every cell of the table.
- Chain: singly linked list grown at the front. Appending allocates one
  link; learning walks only the recorded links; destroying releases each
  link explicitly.

Learning from either must leave identical weights. Each cell's affine update
is independent of every other cell, so only the number of visits per cell
matters, not the order in which different cells are visited.
"""

from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, Protocol
import logging

import numpy as np

from .brain import WeightTable
from .errors import OwnershipError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrajectoryEntry:
    """One recorded decision. The mask is a snapshot kept for inspection only."""
    state: int
    action: int
    mask: Optional[np.ndarray] = None


class Trajectory(Protocol):
    """Capability shared by Block and Chain"""

    table: WeightTable

    def append(self, state: int, action: int, mask=None) -> None: ...

    def truncate(self, keep_last: int) -> int: ...

    def for_each(self, fn: Callable[[TrajectoryEntry], None]) -> None: ...

    def clear(self) -> None: ...

    def destroy(self) -> None: ...

    def __iter__(self) -> Iterator[TrajectoryEntry]: ...

    def __len__(self) -> int: ...


def _snapshot_mask(table: WeightTable, mask) -> Optional[np.ndarray]:
    mask = table.check_mask(mask)
    if mask is None:
        return None
    snapshot = mask.copy()
    snapshot.flags.writeable = False
    return snapshot


class Block:
    """
    Array-backed recorder.

    ``counts`` is sized like the table (state_count * action_count) and holds
    how many live entries hit each cell. ``_arena`` lists the flat offsets in
    append order so truncation can drop the oldest entries.
    """

    kind = 'block'

    def __init__(self, table: WeightTable):
        table._attach(self)
        self.table = table
        self.counts: Optional[np.ndarray] = np.zeros(
            table.state_count * table.action_count, dtype=np.int64)
        self._arena: List[int] = []
        self._masks: List[Optional[np.ndarray]] = []
        self._head = 0  # arena index of the oldest live entry
        self.total_count = 0

    def _require_live(self) -> np.ndarray:
        if self.counts is None:
            raise OwnershipError("Block trajectory has been destroyed")
        return self.counts

    def append(self, state: int, action: int, mask=None):
        counts = self._require_live()
        state = self.table.check_state(state)
        action = self.table.check_action(action)
        snapshot = _snapshot_mask(self.table, mask)

        offset = state * self.table.action_count + action
        counts[offset] += 1
        self._arena.append(offset)
        self._masks.append(snapshot)
        self.total_count += 1

    def truncate(self, keep_last: int) -> int:
        """Keep only the keep_last most recent entries; return how many were dropped"""
        counts = self._require_live()
        if keep_last < 0:
            raise ValueError(f"keep_last must be >= 0, got {keep_last}")
        dropped = len(self) - keep_last
        if dropped <= 0:
            return 0

        stop = self._head + dropped
        for i in range(self._head, stop):
            counts[self._arena[i]] -= 1
            self._masks[i] = None
        self._head = stop
        self._compact()
        return dropped

    def _compact(self):
        # Release dropped arena slots once they make up half the log
        if self._head and self._head * 2 >= len(self._arena):
            del self._arena[:self._head]
            del self._masks[:self._head]
            self._head = 0

    def __len__(self) -> int:
        if self.counts is None:
            return 0
        return len(self._arena) - self._head

    def __iter__(self) -> Iterator[TrajectoryEntry]:
        """
        Yield entries in cell order (state-major), each cell repeated once
        per visit. This is the full-table scan the block layout implies.
        """
        counts = self._require_live()
        action_count = self.table.action_count
        masks_by_offset = {}
        for i in range(self._head, len(self._arena)):
            masks_by_offset.setdefault(self._arena[i], []).append(self._masks[i])

        for offset in np.flatnonzero(counts):
            offset = int(offset)
            state, action = divmod(offset, action_count)
            for mask in masks_by_offset[offset]:
                yield TrajectoryEntry(state, action, mask)

    def entries(self) -> List[TrajectoryEntry]:
        """Entries oldest-first in the order they were appended"""
        self._require_live()
        action_count = self.table.action_count
        result = []
        for i in range(self._head, len(self._arena)):
            state, action = divmod(self._arena[i], action_count)
            result.append(TrajectoryEntry(state, action, self._masks[i]))
        return result

    def for_each(self, fn: Callable[[TrajectoryEntry], None]):
        for entry in self:
            fn(entry)

    def visit_counts(self) -> np.ndarray:
        """Visit counts shaped like the table"""
        counts = self._require_live()
        return counts.reshape(self.table.state_count, self.table.action_count).copy()

    def clear(self):
        """Drop every entry but keep the block usable"""
        counts = self._require_live()
        counts[:] = 0
        self._arena.clear()
        self._masks.clear()
        self._head = 0

    def destroy(self):
        self._require_live()
        self.counts = None
        self._arena = []
        self._masks = []
        self._head = 0
        self.table._detach(self)

    @property
    def destroyed(self) -> bool:
        return self.counts is None

    def __repr__(self) -> str:
        return f"Block(entries={len(self)}, total_count={self.total_count})"


class _Link:
    """One chain element"""
    __slots__ = ('state', 'action', 'mask', 'next')

    def __init__(self, state: int, action: int,
                 mask: Optional[np.ndarray], next_link: Optional['_Link']):
        self.state = state
        self.action = action
        self.mask = mask
        self.next = next_link


class Chain:
    """
    Linked-list recorder, most recent decision at the front.

    Every link is owned by the chain; truncate and destroy unlink each
    released element exactly once.
    """

    kind = 'chain'

    def __init__(self, table: WeightTable):
        table._attach(self)
        self.table = table
        self._front: Optional[_Link] = None
        self._length = 0
        self._alive = True
        self.total_count = 0

    def _require_live(self):
        if not self._alive:
            raise OwnershipError("Chain trajectory has been destroyed")

    def append(self, state: int, action: int, mask=None):
        self._require_live()
        state = self.table.check_state(state)
        action = self.table.check_action(action)
        snapshot = _snapshot_mask(self.table, mask)

        self._front = _Link(state, action, snapshot, self._front)
        self._length += 1
        self.total_count += 1

    def truncate(self, keep_last: int) -> int:
        """Keep only the keep_last most recent links; return how many were released"""
        self._require_live()
        if keep_last < 0:
            raise ValueError(f"keep_last must be >= 0, got {keep_last}")
        if self._length <= keep_last:
            return 0

        if keep_last == 0:
            cut = self._front
            self._front = None
        else:
            last_kept = self._front
            for _ in range(keep_last - 1):
                last_kept = last_kept.next
            cut = last_kept.next
            last_kept.next = None

        dropped = self._release(cut)
        self._length -= dropped
        return dropped

    @staticmethod
    def _release(link: Optional[_Link]) -> int:
        released = 0
        while link is not None:
            following = link.next
            link.next = None
            link.mask = None
            link = following
            released += 1
        return released

    def __len__(self) -> int:
        return self._length

    def __iter__(self) -> Iterator[TrajectoryEntry]:
        """Yield entries most-recent-first"""
        self._require_live()
        link = self._front
        while link is not None:
            yield TrajectoryEntry(link.state, link.action, link.mask)
            link = link.next

    def entries(self) -> List[TrajectoryEntry]:
        """Entries oldest-first in the order they were appended"""
        return list(reversed(list(self)))

    def for_each(self, fn: Callable[[TrajectoryEntry], None]):
        for entry in self:
            fn(entry)

    def visit_counts(self) -> np.ndarray:
        """Visit counts shaped like the table"""
        self._require_live()
        counts = np.zeros(self.table.shape, dtype=np.int64)
        for entry in self:
            counts[entry.state, entry.action] += 1
        return counts

    def clear(self):
        """Release every link but keep the chain usable"""
        self._require_live()
        self._release(self._front)
        self._front = None
        self._length = 0

    def destroy(self):
        self._require_live()
        released = self._release(self._front)
        self._front = None
        self._length = 0
        self._alive = False
        self.table._detach(self)
        logger.debug(f"Chain destroyed, released {released} links")

    @property
    def destroyed(self) -> bool:
        return not self._alive

    def __repr__(self) -> str:
        return f"Chain(entries={self._length}, total_count={self.total_count})"


RECORDERS = {
    'block': Block,
    'chain': Chain,
}


def create_trajectory(table: WeightTable, kind: str = 'chain') -> Trajectory:
    """Create an empty recorder bound to one table"""
    recorder = RECORDERS.get(kind)
    if recorder is None:
        raise ValueError(f"Unknown recorder: {kind}. Options: {list(RECORDERS.keys())}")
    return recorder(table)
