"""
game.py - one level's worth of play.

GameSession owns the GameState and UndoHistory for a level and is the only
thing a UI layer should talk to. Rejected moves come back as ``None`` so a
click on an unplayable card is simply a no-op; consistency violations are
bugs and propagate.
"""

import logging
import random
from enum import Enum
from typing import List, Optional

from tripeaks.config import RulesConfig
from tripeaks.errors import MoveRejected
from tripeaks.history import CardMove, StackOperation, UndoHistory, UndoRecord
from tripeaks.levels import LevelConfig, deal_level, generate_state
from tripeaks.moves import MoveEngine
from tripeaks.state import GameState, StateSnapshot
from tripeaks.undo import ReverseDescription, UndoEngine

logger = logging.getLogger(__name__)


class GameStatus(Enum):
    PLAYING = "playing"
    WON = "won"
    STUCK = "stuck"


class GameSession:
    def __init__(self, level: LevelConfig, rules: Optional[RulesConfig] = None,
                 rng: Optional[random.Random] = None):
        self.rules = rules or RulesConfig()
        self._rng = rng or random.Random()
        self.new_level(level)

    # ---------- Deal / Restart ----------
    def new_level(self, level: LevelConfig):
        level.validate()
        self.level = level
        self._dealt = deal_level(level, self._rng) if self.rules.shuffle_on_load else level
        self._start()

    def restart(self):
        """Replay the current deal from the beginning."""
        self._start()

    def _start(self):
        self.state: GameState = generate_state(self._dealt, self.rules)
        self.history = UndoHistory(self.rules.undo_capacity)
        self.moves = MoveEngine(self.state, self.history, self.rules)
        self.undo_engine = UndoEngine(self.state, self.history)
        logger.info("Started %s (%s)", self._dealt.summary(), self.rules.summary())

    # ---------- Actions ----------
    def play_card(self, card_id: int) -> Optional[CardMove]:
        try:
            return self.moves.apply_playfield_move(card_id)
        except MoveRejected as exc:
            logger.debug("Move rejected: %s", exc)
            return None

    def draw(self) -> Optional[StackOperation]:
        try:
            return self.moves.apply_stack_draw()
        except MoveRejected as exc:
            logger.debug("Draw rejected: %s", exc)
            return None

    def undo(self) -> Optional[ReverseDescription]:
        try:
            return self.undo_engine.undo()
        except MoveRejected as exc:
            logger.debug("Undo rejected: %s", exc)
            return None

    def can_undo(self) -> bool:
        return self.undo_engine.can_undo()

    def last_move(self) -> Optional[UndoRecord]:
        return self.undo_engine.last_record()

    def undo_summary(self) -> List[str]:
        return self.history.summary()

    # ---------- Queries ----------
    def hint(self) -> Optional[int]:
        """Id of a playfield card that can be played right now."""
        cards = self.moves.matchable_cards()
        return cards[0].id if cards else None

    @property
    def status(self) -> GameStatus:
        if self.state.is_cleared():
            return GameStatus.WON
        if not self.state.draw_pile and not self.moves.has_matchable_cards():
            return GameStatus.STUCK
        return GameStatus.PLAYING

    def snapshot(self) -> StateSnapshot:
        return self.state.snapshot()
