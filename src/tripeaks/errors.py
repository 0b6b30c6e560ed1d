"""
errors.py - exceptions raised by the TriPeaks engine.

MoveRejected and its subclasses are ordinary outcomes: the request did not
apply and the game state is untouched. ConsistencyViolation means the model
and the undo history disagree, which only a bug can cause.
"""


class GameError(Exception):
    """Base class for engine errors."""


class MoveRejected(GameError):
    """A move or undo request whose preconditions did not hold."""


class CardNotFound(MoveRejected):
    def __init__(self, card_id):
        super().__init__(f"card {card_id} is not on the playfield")
        self.card_id = card_id


class NoCurrentCard(MoveRejected):
    def __init__(self):
        super().__init__("there is no current card to match against")


class NoMatch(MoveRejected):
    def __init__(self, card_id, rank, current_rank):
        super().__init__(f"card {card_id} (rank {rank}) does not match current rank {current_rank}")
        self.card_id = card_id
        self.rank = rank
        self.current_rank = current_rank


class EmptyDrawPile(MoveRejected):
    def __init__(self):
        super().__init__("the draw pile is empty")


class NothingToUndo(MoveRejected):
    def __init__(self):
        super().__init__("nothing to undo")


class ConsistencyViolation(GameError):
    """The model no longer matches what an undo record expects."""


class ConfigError(ValueError):
    """Invalid rules configuration."""


class LevelConfigError(ConfigError):
    """Invalid level description."""
