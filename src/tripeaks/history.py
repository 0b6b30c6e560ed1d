"""
history.py - undo records and the bounded undo history.

A record is an immutable snapshot of one reversible transition. It stores
world positions and absolute face-up/z-order values taken before the move, so
undo never has to ask anything else where a card used to be.
"""

import logging
import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Deque, Iterator, List, Optional, Union

from tripeaks.common import Card, CardSnapshot, Point, as_point
from tripeaks.errors import NothingToUndo

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 10


class UndoKind(Enum):
    CARD_MOVE = "card_move"
    STACK_OPERATION = "stack_operation"
    CARD_FLIP = "card_flip"


@dataclass(frozen=True)
class _Transfer:
    source: CardSnapshot
    target: CardSnapshot
    source_world_position: Point
    target_world_position: Point
    source_z_order: int
    source_was_face_up: bool
    target_was_face_up: bool
    score_delta: int = 0
    timestamp: float = field(default_factory=time.time, compare=False)

    @classmethod
    def capture(cls, source: Card, target: Card, score_delta: int = 0):
        """Build a record from the live cards. Call before mutating either card."""
        return cls(
            source=source.snapshot(),
            target=target.snapshot(),
            source_world_position=as_point(source.position),
            target_world_position=as_point(target.position),
            source_z_order=source.z_order,
            source_was_face_up=source.face_up,
            target_was_face_up=target.face_up,
            score_delta=score_delta,
        )


@dataclass(frozen=True)
class CardMove(_Transfer):
    """A playfield card was played onto the current card."""
    kind: ClassVar[UndoKind] = UndoKind.CARD_MOVE

    def describe(self) -> str:
        return f"Playfield {self.source.label()} onto {self.target.label()}"


@dataclass(frozen=True)
class StackOperation(_Transfer):
    """The draw pile top was played onto the current card."""
    kind: ClassVar[UndoKind] = UndoKind.STACK_OPERATION

    def describe(self) -> str:
        return f"Draw {self.source.label()} onto {self.target.label()}"


@dataclass(frozen=True)
class CardFlip:
    card: CardSnapshot
    previous_face_up: bool
    timestamp: float = field(default_factory=time.time, compare=False)
    kind: ClassVar[UndoKind] = UndoKind.CARD_FLIP
    score_delta: ClassVar[int] = 0

    def describe(self) -> str:
        return f"Flip {self.card.label()} {'down' if self.previous_face_up else 'up'}"


UndoRecord = Union[CardMove, StackOperation, CardFlip]


class UndoHistory:
    """
    Stack of undo records that keeps only the most recent ``capacity``
    entries. Pushing past capacity silently drops the oldest record.
    A capacity of 0 keeps nothing, which disables undo.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 0:
            raise ValueError(f"capacity must be >= 0, got {capacity}")
        self._records: Deque[UndoRecord] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._records.maxlen or 0

    @property
    def enabled(self) -> bool:
        return self.capacity > 0

    def push(self, record: UndoRecord) -> Optional[UndoRecord]:
        """Append ``record``. Returns the record evicted to make room, if any."""
        if not self.enabled:
            return None
        evicted = self._records[0] if len(self._records) == self.capacity else None
        self._records.append(record)
        if evicted is not None:
            logger.debug("Undo history full (%d); dropped oldest: %s", self.capacity, evicted.describe())
        logger.debug("Recorded undo: %s (total %d)", record.describe(), len(self._records))
        return evicted

    def pop(self) -> UndoRecord:
        if not self._records:
            raise NothingToUndo()
        return self._records.pop()

    def peek(self) -> Optional[UndoRecord]:
        return self._records[-1] if self._records else None

    def can_undo(self) -> bool:
        return bool(self._records)

    def clear(self):
        self._records.clear()
        logger.debug("Cleared undo history")

    def set_capacity(self, capacity: int):
        """Change the depth, keeping the most recent records that still fit."""
        if capacity < 0:
            raise ValueError(f"capacity must be >= 0, got {capacity}")
        self._records = deque(self._records, maxlen=capacity)

    def summary(self) -> List[str]:
        return [f"{i}. {r.describe()}" for i, r in enumerate(self._records, start=1)]

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[UndoRecord]:
        return iter(self._records)
