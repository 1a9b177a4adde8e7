"""动作类型测试"""
import pytest

from core.actions import Action, ActionType, CardSource, SourceType


class TestCardSource:
    """CardSource 测试"""

    def test_constructors(self):
        assert CardSource.hand(2) == CardSource(SourceType.HAND, 2)
        assert CardSource.stock() == CardSource(SourceType.STOCK, None)
        assert CardSource.discard(3).kind == SourceType.DISCARD

    def test_str(self):
        assert str(CardSource.stock()) == "stock"
        assert str(CardSource.hand(1)) == "hand[1]"
        assert str(CardSource.discard(0)) == "discard[0]"


class TestAction:
    """Action 测试"""

    def test_play(self):
        action = Action.play(CardSource.hand(0), 3)
        assert action.action_type == ActionType.PLAY
        assert action.is_play
        assert action.build_pile == 3
        assert action.hand_index is None

    def test_discard(self):
        action = Action.discard(4, 1)
        assert action.is_discard
        assert action.hand_index == 4
        assert action.discard_pile == 1
        assert action.source is None

    def test_end_turn(self):
        action = Action.end_turn()
        assert action.is_end_turn
        assert not action.is_play
        assert not action.is_discard

    def test_equality_and_hash(self):
        a = Action.play(CardSource.stock(), 2)
        b = Action.play(CardSource.stock(), 2)
        assert a == b
        assert len({a, b, Action.end_turn()}) == 2

    def test_frozen(self):
        action = Action.discard(0, 0)
        with pytest.raises(AttributeError):
            action.hand_index = 1

    def test_str(self):
        assert str(Action.play(CardSource.discard(1), 0)) == "Play(discard[1] -> build[0])"
        assert str(Action.discard(2, 3)) == "Discard(hand[2] -> discard[3])"
        assert str(Action.end_turn()) == "EndTurn"
