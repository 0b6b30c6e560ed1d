from typing import Sequence, Tuple

import pytest

from tripeaks.common import Suit, Zone
from tripeaks.config import RulesConfig
from tripeaks.errors import CardNotFound, EmptyDrawPile, NoCurrentCard, NoMatch
from tripeaks.history import UndoHistory, UndoKind
from tripeaks.levels import CardConfig, LevelConfig, generate_state
from tripeaks.moves import MoveEngine, initial_deal
from tripeaks.state import GameState

RULES = RulesConfig(starting_card_id=1)


def _level(playfield: Sequence[int], stack: Sequence[int]) -> LevelConfig:
    return LevelConfig(
        playfield=tuple(CardConfig(r, Suit.SPADES, (100.0 * i, 50.0)) for i, r in enumerate(playfield)),
        draw_pile=tuple(CardConfig(r, Suit.HEARTS) for r in stack),
        current_position=(600.0, 500.0),
        draw_pile_position=(400.0, 500.0),
    )


def _engine(playfield: Sequence[int], stack: Sequence[int], capacity: int = 10) -> Tuple[MoveEngine, GameState]:
    state = generate_state(_level(playfield, stack), RULES)
    return MoveEngine(state, UndoHistory(capacity), RULES), state


def test_initial_deal_turns_pile_top_into_current() -> None:
    _, state = _engine([1], [4, 9])
    assert [c.id for c in state.current_history] == [3]
    current = state.current_card
    assert current.rank == 9
    assert current.face_up
    assert tuple(current.position) == (600.0, 500.0)
    assert [c.id for c in state.draw_pile] == [2]


def test_initial_deal_only_happens_once() -> None:
    _, state = _engine([1], [4, 9])
    before = state.snapshot()
    assert initial_deal(state) is None
    assert state.snapshot() == before


def test_initial_deal_with_nothing_to_deal() -> None:
    state = GameState()
    assert initial_deal(state) is None
    assert state.current_card is None


def test_playfield_move_scenario() -> None:
    engine, state = _engine([1], [4])
    assert [c.id for c in state.current_history] == [2]

    before = state.snapshot()
    with pytest.raises(NoMatch):
        engine.apply_playfield_move(1)
    assert state.snapshot() == before
    assert len(engine.history) == 0

    state.current_card.rank = 2
    record = engine.apply_playfield_move(1)

    assert not state.playfield
    assert [c.id for c in state.current_history] == [2, 1]
    assert state.move_count == 1
    assert state.score == 0
    assert record.kind is UndoKind.CARD_MOVE
    assert engine.history.peek() is record


def test_playfield_move_record_holds_pre_move_state() -> None:
    engine, state = _engine([5, 7], [6])
    record = engine.apply_playfield_move(2)

    assert record.source.id == 2
    assert record.target.id == 3
    assert record.source_world_position == (100.0, 50.0)
    assert record.target_world_position == (600.0, 500.0)
    assert record.source_z_order == 1
    assert record.source_was_face_up is True
    assert record.target_was_face_up is True

    moved = state.current_card
    assert moved.id == 2
    assert tuple(moved.position) == (600.0, 500.0)
    assert moved.z_order == 1
    assert state.locate(2) is Zone.CURRENT


def test_playfield_move_unknown_card() -> None:
    engine, state = _engine([5], [6])
    before = state.snapshot()
    with pytest.raises(CardNotFound):
        engine.apply_playfield_move(99)
    # the current card is not on the playfield either
    with pytest.raises(CardNotFound):
        engine.apply_playfield_move(2)
    assert state.snapshot() == before


def test_playfield_move_without_current_card() -> None:
    state = GameState()
    state.add_playfield_card(generate_state(_level([5], [6]), RULES).playfield[1])
    engine = MoveEngine(state, UndoHistory(), RULES)
    with pytest.raises(NoCurrentCard):
        engine.apply_playfield_move(1)
    assert 1 in state.playfield


def test_stack_draw_moves_top_onto_current() -> None:
    engine, state = _engine([1], [3, 8, 11])
    record = engine.apply_stack_draw()

    assert record.kind is UndoKind.STACK_OPERATION
    assert record.source.id == 3
    assert record.source_z_order == 1
    assert record.source_was_face_up is False
    assert [c.id for c in state.current_history] == [4, 3]
    assert state.current_card.face_up
    assert [c.id for c in state.draw_pile] == [2]
    assert state.move_count == 1


def test_stack_draw_on_empty_pile() -> None:
    engine, state = _engine([1], [3])
    history_before = list(state.current_history)
    with pytest.raises(EmptyDrawPile):
        engine.apply_stack_draw()
    assert state.current_history == history_before
    assert state.move_count == 0
    assert len(engine.history) == 0


def test_stack_draw_without_current_card() -> None:
    state = GameState()
    generated = generate_state(_level([1], [3, 4]), RULES)
    state.push_draw_pile(generated.draw_pile[0])
    engine = MoveEngine(state, UndoHistory(), RULES)
    with pytest.raises(NoCurrentCard):
        engine.apply_stack_draw()
    assert len(state.draw_pile) == 1


def test_disabled_undo_still_returns_record() -> None:
    engine, state = _engine([5], [4, 6], capacity=0)
    record = engine.apply_playfield_move(1)
    assert record.source.id == 1
    assert len(engine.history) == 0
    assert state.move_count == 1

    draw = engine.apply_stack_draw()
    assert draw.source.rank == 4
    assert list(engine.history) == []
    assert not engine.history.can_undo()
    assert state.move_count == 2


def test_flip_draw_pile_top() -> None:
    engine, state = _engine([1], [3, 8])
    record = engine.apply_flip()
    assert record.kind is UndoKind.CARD_FLIP
    assert record.previous_face_up is False
    assert state.draw_pile[-1].face_up is True
    assert state.move_count == 1


def test_matchable_cards_and_hint_rule() -> None:
    engine, state = _engine([2, 13, 5, 12], [1])
    assert [c.rank for c in engine.matchable_cards()] == [2, 13]
    assert engine.has_matchable_cards()

    strict = MoveEngine(state, UndoHistory(), RulesConfig(allow_cyclic_matching=False))
    assert [c.rank for c in strict.matchable_cards()] == [2]


def test_no_matchable_cards_without_current() -> None:
    engine = MoveEngine(GameState(), UndoHistory(), RULES)
    assert engine.matchable_cards() == []
    assert not engine.has_matchable_cards()


def test_score_hook_is_applied() -> None:
    class Scored(MoveEngine):
        def score_for_move(self, source, target):
            return 10

    state = generate_state(_level([5], [6]), RULES)
    engine = Scored(state, UndoHistory(), RULES)
    record = engine.apply_playfield_move(1)
    assert record.score_delta == 10
    assert state.score == 10
