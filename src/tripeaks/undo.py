"""
undo.py - reversing the most recent move.

``UndoEngine.undo`` checks the newest record against the state, then pops it
and restores the model in one synchronous step. Only after that does it hand
back a ReverseDescription, so a view can animate the inverse move while the
model is already consistent for the next request.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import pygame

from tripeaks.common import Point, Zone, as_point
from tripeaks.errors import ConsistencyViolation, NothingToUndo
from tripeaks.history import CardFlip, CardMove, StackOperation, UndoHistory, UndoKind, UndoRecord
from tripeaks.state import GameState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReverseDescription:
    """What the view has to animate to show an undo. Cards are referenced by id only."""
    kind: UndoKind
    card_id: int
    from_position: Point
    to_position: Point
    z_order: int
    face_up: bool
    destination: Zone
    restored_current_id: Optional[int] = None
    restored_current_face_up: Optional[bool] = None
    score_delta: int = 0


class UndoEngine:
    def __init__(self, state: GameState, history: UndoHistory):
        self.state = state
        self.history = history

    def can_undo(self) -> bool:
        return self.history.can_undo()

    def last_record(self) -> Optional[UndoRecord]:
        return self.history.peek()

    def undo(self) -> ReverseDescription:
        record = self.history.peek()
        if record is None:
            raise NothingToUndo()
        try:
            self._validate(record)
        except ConsistencyViolation:
            logger.error("Refusing to undo %s; state: %r", record.describe(), self.state)
            raise
        self.history.pop()

        if isinstance(record, CardMove):
            description = self._undo_transfer(record, Zone.PLAYFIELD)
        elif isinstance(record, StackOperation):
            description = self._undo_transfer(record, Zone.DRAW_PILE)
        else:
            description = self._undo_flip(record)

        self.state.score -= record.score_delta
        self.state.move_count = max(0, self.state.move_count - 1)
        logger.debug("Undid %s (%d left)", record.describe(), len(self.history))
        return description

    # ---------- Checks ----------
    def _validate(self, record: UndoRecord):
        history = self.state.current_history
        if isinstance(record, (CardMove, StackOperation)):
            if not history or history[-1].id != record.source.id:
                top = history[-1].id if history else None
                raise ConsistencyViolation(
                    f"expected card {record.source.id} on top of the current history, found {top}")
            if len(history) < 2 or history[-2].id != record.target.id:
                below = history[-2].id if len(history) >= 2 else None
                raise ConsistencyViolation(
                    f"expected card {record.target.id} under the current card, found {below}")
        elif isinstance(record, CardFlip):
            if self.state.find_card(record.card.id) is None:
                raise ConsistencyViolation(f"flipped card {record.card.id} is no longer in play")
        else:
            raise ConsistencyViolation(f"unknown undo record {record!r}")

    # ---------- Reversal ----------
    def _undo_transfer(self, record, destination: Zone) -> ReverseDescription:
        card = self.state.pop_current()
        from_position = as_point(card.position)

        restored = self.state.current_card
        restored.face_up = record.target_was_face_up

        card.position = pygame.math.Vector2(record.source_world_position)
        card.z_order = record.source_z_order
        card.face_up = record.source_was_face_up
        if destination is Zone.PLAYFIELD:
            self.state.add_playfield_card(card)
        else:
            self.state.push_draw_pile(card)

        return ReverseDescription(
            kind=record.kind,
            card_id=card.id,
            from_position=from_position,
            to_position=record.source_world_position,
            z_order=record.source_z_order,
            face_up=record.source_was_face_up,
            destination=destination,
            restored_current_id=restored.id,
            restored_current_face_up=restored.face_up,
            score_delta=-record.score_delta,
        )

    def _undo_flip(self, record: CardFlip) -> ReverseDescription:
        card = self.state.find_card(record.card.id)
        card.face_up = record.previous_face_up
        position = as_point(card.position)
        current = self.state.current_card
        return ReverseDescription(
            kind=record.kind,
            card_id=card.id,
            from_position=position,
            to_position=position,
            z_order=card.z_order,
            face_up=card.face_up,
            destination=self.state.locate(card.id),
            restored_current_id=current.id if current else None,
            restored_current_face_up=current.face_up if current else None,
        )
