import logging
import random
from typing import Sequence

import pytest

from tripeaks.common import Suit, Zone
from tripeaks.config import RulesConfig
from tripeaks.errors import ConsistencyViolation, MoveRejected, NothingToUndo
from tripeaks.history import UndoHistory, UndoKind
from tripeaks.levels import CardConfig, LevelConfig, generate_state, tripeaks_level
from tripeaks.moves import MoveEngine
from tripeaks.undo import UndoEngine

RULES = RulesConfig(starting_card_id=1)


def _level(playfield: Sequence[int], stack: Sequence[int]) -> LevelConfig:
    return LevelConfig(
        playfield=tuple(CardConfig(r, Suit.CLUBS, (90.0 * i, 40.0)) for i, r in enumerate(playfield)),
        draw_pile=tuple(CardConfig(r, Suit.DIAMONDS) for r in stack),
        current_position=(640.0, 480.0),
        draw_pile_position=(500.0, 480.0),
    )


def _engines(playfield, stack, capacity=10):
    state = generate_state(_level(playfield, stack), RULES)
    history = UndoHistory(capacity)
    return MoveEngine(state, history, RULES), UndoEngine(state, history), state


def test_undo_playfield_move_restores_card() -> None:
    moves, undo, state = _engines([5, 7], [6])
    before = state.snapshot()
    moves.apply_playfield_move(2)

    description = undo.undo()

    assert state.snapshot() == before
    assert description.kind is UndoKind.CARD_MOVE
    assert description.card_id == 2
    assert description.destination is Zone.PLAYFIELD
    assert description.from_position == (640.0, 480.0)
    assert description.to_position == (90.0, 40.0)
    assert description.z_order == 1
    assert description.face_up is True
    assert description.restored_current_id == 3
    assert description.restored_current_face_up is True
    assert state.locate(2) is Zone.PLAYFIELD


def test_undo_stack_draw_puts_card_back_on_top() -> None:
    moves, undo, state = _engines([1], [3, 8, 11])
    before = state.snapshot()
    moves.apply_stack_draw()

    description = undo.undo()

    assert state.snapshot() == before
    assert description.destination is Zone.DRAW_PILE
    assert description.card_id == 3
    assert description.face_up is False
    assert description.to_position == (500.0, 480.0)
    assert state.draw_pile[-1].id == 3
    assert state.current_card.id == 4


def test_undo_restores_target_face_state() -> None:
    moves, undo, state = _engines([5], [6])
    state.current_card.face_up = False
    moves.apply_playfield_move(1)
    state.current_history[0].face_up = True

    undo.undo()
    assert state.current_card.face_up is False


def test_undo_flip() -> None:
    moves, undo, state = _engines([1], [3, 8])
    before = state.snapshot()
    moves.apply_flip()

    description = undo.undo()

    assert state.snapshot() == before
    assert description.kind is UndoKind.CARD_FLIP
    assert description.destination is Zone.DRAW_PILE
    assert description.from_position == description.to_position


def test_nothing_to_undo() -> None:
    _, undo, state = _engines([5], [6])
    before = state.snapshot()
    with pytest.raises(NothingToUndo):
        undo.undo()
    assert state.snapshot() == before


def test_capacity_one_keeps_only_latest_move() -> None:
    moves, undo, state = _engines([5, 4], [6], capacity=1)
    moves.apply_playfield_move(1)
    second = moves.apply_playfield_move(2)
    assert list(undo.history) == [second]

    undo.undo()
    assert [c.id for c in state.current_history] == [3, 1]
    assert 2 in state.playfield
    assert 1 not in state.playfield
    assert state.move_count == 1

    with pytest.raises(NothingToUndo):
        undo.undo()


def test_move_count_never_goes_negative() -> None:
    moves, undo, state = _engines([5], [6])
    moves.apply_playfield_move(1)
    state.move_count = 0
    undo.undo()
    assert state.move_count == 0


def test_score_delta_is_reversed() -> None:
    class Scored(MoveEngine):
        def score_for_move(self, source, target):
            return 7

    state = generate_state(_level([5], [6]), RULES)
    history = UndoHistory()
    Scored(state, history, RULES).apply_playfield_move(1)
    assert state.score == 7
    description = UndoEngine(state, history).undo()
    assert state.score == 0
    assert description.score_delta == -7


def test_mismatched_history_is_a_consistency_violation(caplog) -> None:
    moves, undo, state = _engines([5, 7], [6])
    moves.apply_playfield_move(2)
    # corrupt the model behind the engine's back
    stray = state.current_history.pop()
    state.add_playfield_card(stray)
    before = state.snapshot()

    with caplog.at_level(logging.ERROR, logger="tripeaks.undo"):
        with pytest.raises(ConsistencyViolation):
            undo.undo()
    assert state.snapshot() == before
    assert len(undo.history) == 1
    errors = [r for r in caplog.records if r.name == "tripeaks.undo" and r.levelno == logging.ERROR]
    assert len(errors) == 1


def test_replaced_card_under_current_is_a_consistency_violation(caplog) -> None:
    moves, undo, state = _engines([5, 7], [6])
    moves.apply_playfield_move(2)
    # keep the played card on top but swap the one it was played onto
    played = state.pop_current()
    state.pop_current()
    state.push_current(state.remove_playfield_card(1))
    state.push_current(played)
    before = state.snapshot()

    with caplog.at_level(logging.ERROR, logger="tripeaks.undo"):
        with pytest.raises(ConsistencyViolation, match="under the current card"):
            undo.undo()
    assert state.snapshot() == before
    assert len(undo.history) == 1
    errors = [r for r in caplog.records if r.name == "tripeaks.undo" and r.levelno == logging.ERROR]
    assert len(errors) == 1


def test_consistency_violation_is_not_a_rejected_move() -> None:
    assert not issubclass(ConsistencyViolation, MoveRejected)


def _random_play(moves: MoveEngine, rng: random.Random, steps: int) -> int:
    done = 0
    for _ in range(steps):
        choices = [c.id for c in moves.matchable_cards()]
        if choices and rng.random() < 0.7:
            moves.apply_playfield_move(rng.choice(choices))
        elif moves.state.draw_pile:
            moves.apply_stack_draw()
        else:
            break
        moves.state.check_invariants()
        done += 1
    return done


@pytest.mark.parametrize("seed", [1, 7, 42, 2024])
def test_moves_then_undos_round_trip(seed: int) -> None:
    rng = random.Random(seed)
    state = generate_state(tripeaks_level(rng), RULES)
    history = UndoHistory(capacity=60)
    moves, undo = MoveEngine(state, history, RULES), UndoEngine(state, history)
    before = state.snapshot()

    done = _random_play(moves, rng, 40)
    assert done > 0

    for _ in range(done):
        undo.undo()
        state.check_invariants()

    assert state.snapshot() == before
    assert not undo.can_undo()


def test_partial_undo_returns_to_intermediate_state() -> None:
    rng = random.Random(5)
    state = generate_state(tripeaks_level(rng), RULES)
    history = UndoHistory(capacity=20)
    moves, undo = MoveEngine(state, history, RULES), UndoEngine(state, history)

    first = _random_play(moves, rng, 3)
    middle = state.snapshot()
    second = _random_play(moves, rng, 4)
    for _ in range(second):
        undo.undo()
    assert first > 0
    assert state.snapshot() == middle
