"""
moves.py - forward moves.

Every entry point checks all of its preconditions before touching the state,
so a rejected move leaves the GameState exactly as it was. The undo record is
captured from the live cards before any of them change.
"""

import logging
from typing import List, Optional

import pygame

from tripeaks.common import Card
from tripeaks.config import RulesConfig
from tripeaks.errors import CardNotFound, EmptyDrawPile, NoCurrentCard, NoMatch
from tripeaks.history import CardFlip, CardMove, StackOperation, UndoHistory
from tripeaks.state import GameState

logger = logging.getLogger(__name__)


def initial_deal(state: GameState) -> Optional[Card]:
    """
    Turn the draw pile top into the first current card. Not undoable, and a
    no-op (returns None) once there is a current card or nothing to deal.
    """
    if state.current_history or not state.draw_pile:
        return None
    card = state.pop_draw_pile()
    card.face_up = True
    card.position = pygame.math.Vector2(state.current_position)
    card.z_order = 0
    state.push_current(card)
    logger.debug("Initial deal: %r", card)
    return card


class MoveEngine:
    """
    Applies forward moves to a GameState and records them in an UndoHistory.

    Each move returns its record so a caller can animate it. With undo
    disabled (history capacity 0) the record is still built and returned for
    that purpose, but the history never keeps it.
    """

    def __init__(self, state: GameState, history: UndoHistory, rules: Optional[RulesConfig] = None):
        self.state = state
        self.history = history
        self.rules = rules or RulesConfig()
        self._matches = self.rules.matcher()

    def score_for_move(self, source: Card, target: Card) -> int:
        """Score change for playing ``source`` onto ``target``. No scoring rule yet."""
        return 0

    # ---------- Moves ----------
    def apply_playfield_move(self, card_id: int) -> CardMove:
        card = self.state.get_playfield_card(card_id)
        if card is None:
            raise CardNotFound(card_id)
        current = self.state.current_card
        if current is None:
            raise NoCurrentCard()
        if not self._matches(card.rank, current.rank):
            raise NoMatch(card_id, card.rank, current.rank)

        record = CardMove.capture(card, current, self.score_for_move(card, current))
        self.history.push(record)

        self.state.remove_playfield_card(card_id)
        self._place_on_current(card)
        self._count(record.score_delta)
        logger.debug("Played %r from playfield onto %r", card, current)
        return record

    def apply_stack_draw(self) -> StackOperation:
        card = self.state.top_of_draw_pile()
        if card is None:
            raise EmptyDrawPile()
        current = self.state.current_card
        if current is None:
            raise NoCurrentCard()

        record = StackOperation.capture(card, current, self.score_for_move(card, current))
        self.history.push(record)

        self.state.pop_draw_pile()
        self._place_on_current(card)
        self._count(record.score_delta)
        logger.debug("Drew %r onto %r", card, current)
        return record

    def apply_flip(self) -> CardFlip:
        """Turn the draw pile top over without moving it."""
        card = self.state.top_of_draw_pile()
        if card is None:
            raise EmptyDrawPile()
        record = CardFlip(card=card.snapshot(), previous_face_up=card.face_up)
        self.history.push(record)
        card.face_up = not card.face_up
        self._count(0)
        logger.debug("Flipped draw pile top %r", card)
        return record

    def _place_on_current(self, card: Card):
        card.face_up = True
        card.position = pygame.math.Vector2(self.state.current_position)
        card.z_order = len(self.state.current_history)
        self.state.push_current(card)

    def _count(self, score_delta: int):
        self.state.move_count += 1
        self.state.score += score_delta

    # ---------- Hints ----------
    def matchable_cards(self) -> List[Card]:
        current = self.state.current_card
        if current is None:
            return []
        cards = [c for c in self.state.playfield.values()
                 if c.face_up and self._matches(c.rank, current.rank)]
        return sorted(cards, key=lambda c: c.id)

    def has_matchable_cards(self) -> bool:
        current = self.state.current_card
        if current is None:
            return False
        return any(c.face_up and self._matches(c.rank, current.rank) for c in self.state.playfield.values())
