"""
levels.py - level descriptions and building a GameState from them.

Level files use this JSON layout (CardFace is zero-based, Ace = 0):

    {"LevelId": 1, "LevelName": "...",
     "Playfield": [{"CardFace": 12, "CardSuit": 0, "Position": {"x": 250, "y": 1000}}, ...],
     "Stack": [{"CardFace": 2, "CardSuit": 0}, ...]}

``tripeaks_level`` deals a classic three-peak layout from a shuffled deck.
"""

import json
import logging
import random
from dataclasses import dataclass, replace
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from tripeaks.common import MAX_RANK, MIN_RANK, CardIdAllocator, Point, Suit
from tripeaks.config import RulesConfig, get_nested
from tripeaks.errors import LevelConfigError
from tripeaks.moves import initial_deal
from tripeaks.state import GameState

logger = logging.getLogger(__name__)

# Layout constants for generated levels
CARD_W, CARD_H = 100, 140
CARD_GAP_X = 18
CARD_GAP_Y = 26
TOP_Y = 110
CENTER_X = 640
OVERLAP_Y = int(CARD_H * 0.48)
ROW_SIZES = [3, 6, 9, 10]

_PILES_Y = TOP_Y + 3 * OVERLAP_Y + CARD_H + CARD_GAP_Y
_PILES_LEFT_X = CENTER_X - (2 * CARD_W + CARD_GAP_X) // 2
DEFAULT_DRAW_PILE_POSITION: Point = (float(_PILES_LEFT_X), float(_PILES_Y))
DEFAULT_CURRENT_POSITION: Point = (float(_PILES_LEFT_X + CARD_W + CARD_GAP_X), float(_PILES_Y))


@dataclass(frozen=True)
class CardConfig:
    rank: int
    suit: Suit
    position: Point = (0.0, 0.0)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CardConfig":
        if not isinstance(data, Mapping):
            raise LevelConfigError(f"card entry must be an object, got {data!r}")
        face = data.get("CardFace")
        suit = data.get("CardSuit")
        if not isinstance(face, int) or not isinstance(suit, int):
            raise LevelConfigError(f"card needs integer CardFace and CardSuit: {dict(data)!r}")
        x = get_nested(data, ["Position", "x"], 0.0)
        y = get_nested(data, ["Position", "y"], 0.0)
        try:
            return cls(rank=face + 1, suit=Suit(suit), position=(float(x), float(y)))
        except (TypeError, ValueError) as exc:
            raise LevelConfigError(f"bad card entry {dict(data)!r}: {exc}") from None

    def to_dict(self):
        return {
            "CardFace": self.rank - 1,
            "CardSuit": int(self.suit),
            "Position": {"x": self.position[0], "y": self.position[1]},
        }


@dataclass(frozen=True)
class LevelConfig:
    level_id: int = 1
    name: str = ""
    playfield: Tuple[CardConfig, ...] = ()
    draw_pile: Tuple[CardConfig, ...] = ()  # last entry is the top
    current_position: Point = DEFAULT_CURRENT_POSITION
    draw_pile_position: Point = DEFAULT_DRAW_PILE_POSITION

    def validate(self):
        if not self.playfield:
            raise LevelConfigError(f"level {self.level_id} has no playfield cards")
        if not self.draw_pile:
            raise LevelConfigError(f"level {self.level_id} has no draw pile cards")
        for where, cards in (("playfield", self.playfield), ("draw pile", self.draw_pile)):
            for i, c in enumerate(cards):
                if not MIN_RANK <= c.rank <= MAX_RANK:
                    raise LevelConfigError(f"{where} card {i} has rank {c.rank}")
                if c.suit not in tuple(Suit):
                    raise LevelConfigError(f"{where} card {i} has suit {c.suit}")

    def summary(self):
        return (f"Level {self.level_id}: '{self.name}' - Playfield: {len(self.playfield)} cards, "
                f"Stack: {len(self.draw_pile)} cards")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LevelConfig":
        playfield = data.get("Playfield", [])
        stack = data.get("Stack", [])
        if not isinstance(playfield, list) or not isinstance(stack, list):
            raise LevelConfigError("Playfield and Stack must be lists")
        kwargs = {}
        for key, name in (("CurrentPosition", "current_position"), ("StackPosition", "draw_pile_position")):
            pos = data.get(key)
            if isinstance(pos, Mapping):
                try:
                    kwargs[name] = (float(pos.get("x", 0.0)), float(pos.get("y", 0.0)))
                except (TypeError, ValueError):
                    raise LevelConfigError(f"bad {key} {dict(pos)!r}") from None
        try:
            level_id = int(data.get("LevelId", 1))
        except (TypeError, ValueError):
            raise LevelConfigError(f"bad LevelId {data.get('LevelId')!r}") from None
        return cls(
            level_id=level_id,
            name=str(data.get("LevelName", "")),
            playfield=tuple(CardConfig.from_dict(c) for c in playfield),
            draw_pile=tuple(CardConfig.from_dict(c) for c in stack),
            **kwargs,
        )

    def to_dict(self):
        return {
            "LevelId": self.level_id,
            "LevelName": self.name,
            "Playfield": [c.to_dict() for c in self.playfield],
            "Stack": [c.to_dict() for c in self.draw_pile],
            "CurrentPosition": {"x": self.current_position[0], "y": self.current_position[1]},
            "StackPosition": {"x": self.draw_pile_position[0], "y": self.draw_pile_position[1]},
        }


def load_level(path: str) -> LevelConfig:
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except ValueError as exc:
            raise LevelConfigError(f"{path} is not valid JSON: {exc}") from None
    if not isinstance(data, dict):
        raise LevelConfigError(f"{path} does not hold a level object")
    level = LevelConfig.from_dict(data)
    level.validate()
    logger.debug("Loaded %s from %s", level.summary(), path)
    return level


# ---------- Generated layouts ----------
def pos_for(r: int, i: int) -> Point:
    """Position cards using a group-based TriPeaks layout:
    - Row 3 (bottom): 10 cards at slots 0..9
    - Row 2: 9 cards at half-slots 0.5..8.5
    - Row 1: 6 cards grouped as (2,2,2) at slots [1,2], [4,5], [7,8]
    - Row 0 (top): 3 cards at slots 1.5, 4.5, 7.5
    """
    step_x = CARD_W + CARD_GAP_X
    bottom_w = 10 * CARD_W + 9 * CARD_GAP_X
    left_base = CENTER_X - bottom_w // 2

    if r == 3:
        s = float(i)
    elif r == 2:
        s = i + 0.5
    elif r == 1:
        s = 1.0 + 3.0 * (i // 2) + (i % 2)
    else:
        s = 1.5 + 3.0 * i

    return float(int(left_base + s * step_x)), float(TOP_Y + r * OVERLAP_Y)


def make_deck(rng: Optional[random.Random] = None, shuffle=True) -> List[Tuple[int, Suit]]:
    deck = [(rank, suit) for suit in Suit for rank in range(MIN_RANK, MAX_RANK + 1)]
    if shuffle:
        (rng or random).shuffle(deck)
    return deck


def tripeaks_level(rng: Optional[random.Random] = None, level_id: int = 1) -> LevelConfig:
    """Deal 28 cards into the three peaks; the other 24 form the draw pile."""
    deck = make_deck(rng)
    k = 0
    playfield = []
    for r, n in enumerate(ROW_SIZES):
        for i in range(n):
            rank, suit = deck[k]
            k += 1
            playfield.append(CardConfig(rank, suit, pos_for(r, i)))
    stack = [CardConfig(rank, suit, DEFAULT_DRAW_PILE_POSITION) for rank, suit in deck[k:]]
    return LevelConfig(level_id=level_id, name="TriPeaks", playfield=tuple(playfield), draw_pile=tuple(stack))


# ---------- State generation ----------
def _shuffled_faces(cards: Sequence[CardConfig], rng: random.Random) -> Tuple[CardConfig, ...]:
    faces = [(c.rank, c.suit) for c in cards]
    rng.shuffle(faces)
    return tuple(replace(c, rank=rank, suit=suit) for c, (rank, suit) in zip(cards, faces))


def deal_level(level: LevelConfig, rng: Optional[random.Random] = None) -> LevelConfig:
    """
    Shuffle which faces sit in which slot, keeping the slots themselves. The
    result is a concrete deal that can be replayed exactly on restart.
    """
    rng = rng or random.Random()
    return replace(
        level,
        playfield=_shuffled_faces(level.playfield, rng),
        draw_pile=_shuffled_faces(level.draw_pile, rng),
    )


def generate_state(level: LevelConfig, rules: Optional[RulesConfig] = None,
                   allocator: Optional[CardIdAllocator] = None) -> GameState:
    """
    Create every card of ``level`` exactly once and perform the initial deal.
    Playfield cards are face-up, draw pile cards face-down at the pile slot.
    """
    rules = rules or RulesConfig()
    level.validate()
    allocator = allocator or CardIdAllocator(rules.starting_card_id)
    state = GameState(level.current_position, level.draw_pile_position)

    for z, cfg in enumerate(level.playfield):
        state.add_playfield_card(allocator.create(cfg.rank, cfg.suit, cfg.position, face_up=True, z_order=z))
    for z, cfg in enumerate(level.draw_pile):
        state.push_draw_pile(allocator.create(cfg.rank, cfg.suit, state.draw_pile_position, face_up=False, z_order=z))

    initial_deal(state)
    logger.debug("Generated %s -> %r", level.summary(), state)
    return state
