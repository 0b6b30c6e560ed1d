"""
state.py - the card containers for one level.

GameState holds three containers and every card is in exactly one of them:

- playfield: face-up cards waiting to be cleared, keyed by card id
- draw_pile: reserve cards, top is the last element
- current_history: cards played so far, the last one is the current card

Only the move and undo engines should mutate a GameState. Everyone else
reads ``snapshot()``.
"""

from typing import Dict, Iterator, List, NamedTuple, Optional, Sequence, Tuple

import pygame

from tripeaks.common import Card, CardSnapshot, Zone
from tripeaks.errors import CardNotFound, ConsistencyViolation, EmptyDrawPile, NoCurrentCard


class StateSnapshot(NamedTuple):
    playfield: Tuple[CardSnapshot, ...]  # sorted by id
    draw_pile: Tuple[CardSnapshot, ...]  # bottom first
    current_history: Tuple[CardSnapshot, ...]  # oldest first
    score: int
    move_count: int


class GameState:
    def __init__(self, current_position: Sequence[float] = (0, 0),
                 draw_pile_position: Sequence[float] = (0, 0)):
        self.playfield: Dict[int, Card] = {}
        self.draw_pile: List[Card] = []
        self.current_history: List[Card] = []
        self.score: int = 0
        self.move_count: int = 0
        self.current_position = pygame.math.Vector2(current_position)
        self.draw_pile_position = pygame.math.Vector2(draw_pile_position)

    # ---------- Playfield ----------
    def add_playfield_card(self, card: Card):
        self._ensure_absent(card.id)
        self.playfield[card.id] = card

    def get_playfield_card(self, card_id: int) -> Optional[Card]:
        return self.playfield.get(card_id)

    def remove_playfield_card(self, card_id: int) -> Card:
        try:
            return self.playfield.pop(card_id)
        except KeyError:
            raise CardNotFound(card_id) from None

    # ---------- Draw pile ----------
    def push_draw_pile(self, card: Card):
        self._ensure_absent(card.id)
        self.draw_pile.append(card)

    def top_of_draw_pile(self) -> Optional[Card]:
        return self.draw_pile[-1] if self.draw_pile else None

    def pop_draw_pile(self) -> Card:
        if not self.draw_pile:
            raise EmptyDrawPile()
        return self.draw_pile.pop()

    # ---------- Current card ----------
    @property
    def current_card(self) -> Optional[Card]:
        return self.current_history[-1] if self.current_history else None

    def push_current(self, card: Card):
        self._ensure_absent(card.id)
        self.current_history.append(card)

    def pop_current(self) -> Card:
        if not self.current_history:
            raise NoCurrentCard()
        return self.current_history.pop()

    # ---------- Lookup ----------
    def locate(self, card_id: int) -> Optional[Zone]:
        if card_id in self.playfield:
            return Zone.PLAYFIELD
        if any(c.id == card_id for c in self.draw_pile):
            return Zone.DRAW_PILE
        if any(c.id == card_id for c in self.current_history):
            return Zone.CURRENT
        return None

    def find_card(self, card_id: int) -> Optional[Card]:
        for c in self.iter_cards():
            if c.id == card_id:
                return c
        return None

    def iter_cards(self) -> Iterator[Card]:
        yield from self.playfield.values()
        yield from self.draw_pile
        yield from self.current_history

    def is_cleared(self) -> bool:
        return not self.playfield

    # ---------- Checks ----------
    def _ensure_absent(self, card_id: int):
        zone = self.locate(card_id)
        if zone is not None:
            raise ConsistencyViolation(f"card {card_id} is already in {zone.value}")

    def check_invariants(self):
        """Raise ConsistencyViolation if a card id shows up in more than one place."""
        seen: Dict[int, str] = {}
        containers = (
            ("playfield", list(self.playfield.values())),
            ("draw_pile", self.draw_pile),
            ("current", self.current_history),
        )
        for name, cards in containers:
            for c in cards:
                if c.id in seen:
                    raise ConsistencyViolation(f"card {c.id} is in both {seen[c.id]} and {name}")
                seen[c.id] = name
        for card_id, c in self.playfield.items():
            if card_id != c.id:
                raise ConsistencyViolation(f"playfield key {card_id} holds card {c.id}")
        if self.move_count < 0:
            raise ConsistencyViolation(f"negative move count {self.move_count}")

    def snapshot(self) -> StateSnapshot:
        return StateSnapshot(
            playfield=tuple(sorted((c.snapshot() for c in self.playfield.values()), key=lambda s: s.id)),
            draw_pile=tuple(c.snapshot() for c in self.draw_pile),
            current_history=tuple(c.snapshot() for c in self.current_history),
            score=self.score,
            move_count=self.move_count,
        )

    def __repr__(self):
        return (f"GameState(playfield={len(self.playfield)}, draw_pile={len(self.draw_pile)}, "
                f"current={self.current_card!r}, moves={self.move_count}, score={self.score})")
