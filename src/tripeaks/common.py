# common.py - shared card model for the TriPeaks engine
from enum import Enum, IntEnum
from typing import NamedTuple, Sequence, Tuple, Union

import pygame

Point = Tuple[float, float]

MIN_RANK, MAX_RANK = 1, 13


class Suit(IntEnum):
    CLUBS = 0
    DIAMONDS = 1
    HEARTS = 2
    SPADES = 3


SUITS = {Suit.CLUBS: "♣", Suit.DIAMONDS: "♦", Suit.HEARTS: "♥", Suit.SPADES: "♠"}
RANK_TO_TEXT = {1: "A", 11: "J", 12: "Q", 13: "K"}
for _r in range(2, 11):
    RANK_TO_TEXT[_r] = str(_r)


def card_label(rank: int, suit: Union[Suit, int]) -> str:
    return f"{RANK_TO_TEXT[rank]}{SUITS[Suit(suit)]}"


class Zone(Enum):
    """Container a card can live in."""
    PLAYFIELD = "playfield"
    DRAW_PILE = "draw_pile"
    CURRENT = "current"


def as_point(vec: Sequence[float]) -> Point:
    """Freeze a vector (or any x/y pair) into a plain tuple."""
    return (float(vec[0]), float(vec[1]))


# ---------- Cards ----------
class CardSnapshot(NamedTuple):
    id: int
    rank: int
    suit: Suit
    position: Point
    face_up: bool
    z_order: int

    def label(self):
        return card_label(self.rank, self.suit)


class Card:
    """
    A single card. ``id`` is fixed for the card's whole life; everything else
    changes as the card moves between containers.
    """
    __slots__ = ("_id", "suit", "rank", "position", "face_up", "z_order")

    def __init__(self, card_id: int, rank: int, suit: Union[Suit, int],
                 position: Sequence[float] = (0, 0), face_up: bool = False, z_order: int = 0):
        if not MIN_RANK <= rank <= MAX_RANK:
            raise ValueError(f"rank must be in {MIN_RANK}..{MAX_RANK}, got {rank}")
        self._id = card_id
        self.rank = rank
        self.suit = Suit(suit)
        self.position = pygame.math.Vector2(position)
        self.face_up = face_up
        self.z_order = z_order

    @property
    def id(self) -> int:
        return self._id

    def snapshot(self) -> CardSnapshot:
        return CardSnapshot(
            id=self._id,
            rank=self.rank,
            suit=self.suit,
            position=as_point(self.position),
            face_up=self.face_up,
            z_order=self.z_order,
        )

    def __repr__(self):
        return f"{card_label(self.rank, self.suit)}#{self._id}{'↑' if self.face_up else '↓'}"


class CardIdAllocator:
    """Hands out card ids. An id is never issued twice by the same allocator."""

    def __init__(self, start: int = 1000):
        self._next = start

    def allocate(self) -> int:
        card_id = self._next
        self._next += 1
        return card_id

    def create(self, rank: int, suit: Union[Suit, int], position: Sequence[float] = (0, 0),
               face_up: bool = False, z_order: int = 0) -> Card:
        return Card(self.allocate(), rank, suit, position, face_up=face_up, z_order=z_order)
