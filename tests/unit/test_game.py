"""对局编排器测试"""
import copy

import pytest

from core.cards import Card, WILD
from core.actions import Action, CardSource
from core.errors import (
    GameError,
    InvalidActionError,
    InvalidPlayerError,
    NotPlayersTurnError,
    GameOverError,
    InvalidConfigurationError,
    DiscardIndexError,
    HandIndexError,
    MustDiscardError,
    CardMismatchError,
)
from core.game import Game, GameConfig, DEFAULT_SEED
from core.state import GameStatus, TurnPhase
from env.observation import get_action_encoder
from evaluation.agents import RandomAgent


def _play_hand(game, pile=0):
    game.apply_action(game.current_player, Action.play(CardSource.hand(0), pile))


class TestSetup:
    """开局测试"""

    def test_two_players(self):
        game = Game(GameConfig(num_players=2))
        view = game.state_view(0)

        assert [p.stock_count for p in view.players] == [30, 30]
        assert len(view.hand) == 5
        assert view.players[1].hand_size == 0
        assert view.draw_pile_count == 162 - 60 - 5
        assert view.recycle_pile_count == 0
        assert view.current_player == 0
        assert view.status == GameStatus.ONGOING
        assert view.phase == TurnPhase.AWAITING_ACTION
        assert all(p.next_value == 1 and p.cards == () for p in view.build_piles)
        assert game.turn_count == 0
        assert game.total_cards() == 162

    def test_six_players(self):
        game = Game(GameConfig(num_players=6))
        view = game.state_view(0)
        assert [p.stock_count for p in view.players] == [20] * 6
        assert view.draw_pile_count == 162 - 120 - 5

    def test_stock_size_override(self):
        game = Game.builder(3).with_seed(5).with_stock_size(5).build()
        view = game.state_view(2)
        assert [p.stock_count for p in view.players] == [5, 5, 5]
        assert view.draw_pile_count == 162 - 15 - 5

    def test_stock_top_visible(self, make_game, ordered_hand):
        game = make_game([[Card(7)], [Card(9)]], ordered_hand, stock_size=2)
        view = game.state_view(1)
        assert view.players[0].stock_top == Card(7)
        assert view.players[1].stock_top == Card(9)
        assert game.state_view(0).hand == tuple(Card(v) for v in range(1, 6))

    def test_default_seed(self):
        assert GameConfig(num_players=2).seed == DEFAULT_SEED


class TestConfigErrors:
    """配置错误测试"""

    @pytest.mark.parametrize("players", [1, 7])
    def test_player_count(self, players):
        with pytest.raises(InvalidConfigurationError):
            Game(GameConfig(num_players=players))

    def test_builder_validates_player_count(self):
        with pytest.raises(InvalidConfigurationError):
            Game.builder(8)

    def test_non_positive_stock(self):
        with pytest.raises(InvalidConfigurationError):
            Game(GameConfig(num_players=2, stock_size=0))

    def test_negative_seed(self):
        with pytest.raises(InvalidConfigurationError):
            Game(GameConfig(num_players=2, seed=-1))

    def test_deck_too_small(self):
        with pytest.raises(InvalidConfigurationError):
            Game(GameConfig(num_players=2, deck=[Card(1)] * 10))

    def test_config_from_dict(self):
        config = GameConfig.from_dict({"num_players": 3, "seed": 11, "unknown": 1})
        assert config.num_players == 3
        assert config.seed == 11


class TestBuildPileCycle:
    """建牌堆完成与回收测试"""

    def test_completion_recycle_and_reshuffle(self, make_game):
        game = make_game([[Card(7)], [Card(7)]], [WILD] * 15, stock_size=3)
        total = game.total_cards()

        for _ in range(11):
            _play_hand(game)
            assert game.total_cards() == total
        view = game.state_view(0)
        assert len(view.build_piles[0].cards) == 11
        assert view.build_piles[0].next_value == 12

        _play_hand(game)
        view = game.state_view(0)
        assert view.build_piles[0].cards == ()
        assert view.build_piles[0].next_value == 1
        assert view.recycle_pile_count == 12
        assert view.draw_pile_count == 0
        assert len(view.hand) == 3

        # 下一名玩家补牌时回收堆被洗入摸牌堆
        game.apply_action(0, Action.discard(0, 0))
        view = game.state_view(1)
        assert view.current_player == 1
        assert len(view.hand) == 5
        assert view.recycle_pile_count == 0
        assert view.draw_pile_count == 7
        assert game.total_cards() == total


class TestHandRefill:
    """手牌补充测试"""

    def test_refill_after_emptying_hand(self, make_game, ordered_hand):
        draw = [Card(9)] * 5 + ordered_hand
        game = make_game([[Card(12)], [Card(12)]], draw, stock_size=2)

        for _ in range(4):
            _play_hand(game)
        assert game.state_view(0).hand == (Card(5),)

        _play_hand(game)
        view = game.state_view(0)
        assert view.hand == (Card(9),) * 5
        assert view.draw_pile_count == 0
        assert view.current_player == 0

    def test_partial_refill_when_supply_runs_out(self, make_game, ordered_hand):
        draw = [Card(9)] * 2 + ordered_hand
        game = make_game([[Card(12)], [Card(12)]], draw, stock_size=2)
        for _ in range(5):
            _play_hand(game)
        assert game.state_view(0).hand == (Card(9), Card(9))

    def test_no_refill_after_stock_play(self, make_game, ordered_hand):
        draw = [Card(9)] * 5 + ordered_hand
        game = make_game([[Card(1), Card(2)], [Card(12)]], draw, stock_size=3)
        game.apply_action(0, Action.play(CardSource.stock(), 0))
        view = game.state_view(0)
        assert len(view.hand) == 5
        assert view.draw_pile_count == 5
        assert view.players[0].stock_top == Card(2)

    def test_turn_start_refill(self, make_game, ordered_hand):
        draw = [Card(9)] * 5 + ordered_hand
        game = make_game([[Card(12)], [Card(12)]], draw, stock_size=2)
        game.apply_action(0, Action.discard(4, 2))
        view = game.state_view(1)
        assert len(view.hand) == 5
        assert view.players[0].discard_tops[2] == Card(5)
        assert view.players[0].hand_size == 4


class TestWin:
    """获胜测试"""

    def test_emptying_stock_wins_immediately(self, make_game, ordered_hand):
        game = make_game([[Card(1)], [Card(12)]], ordered_hand, stock_size=1)
        game.apply_action(0, Action.play(CardSource.stock(), 2))

        assert game.is_finished
        assert game.status == GameStatus.FINISHED
        assert game.winner == 0
        view = game.state_view(1)
        assert view.players[0].has_won
        assert view.phase == TurnPhase.GAME_OVER
        assert len(game.state_view(0).hand) == 5
        assert game.legal_actions(0) == []
        assert game.legal_actions(1) == []

    def test_actions_after_win_rejected(self, make_game, ordered_hand):
        game = make_game([[Card(1)], [Card(12)]], ordered_hand, stock_size=1)
        game.apply_action(0, Action.play(CardSource.stock(), 0))
        with pytest.raises(GameOverError):
            game.apply_action(0, Action.discard(0, 0))
        with pytest.raises(GameOverError):
            game.apply_action(1, Action.end_turn())


class TestStalemate:
    """僵局测试"""

    def test_stalled_turns_end_in_draw(self, make_game, ordered_hand):
        game = make_game([[Card(12)], [Card(12)]], ordered_hand, stock_size=1)
        for _ in range(5):
            _play_hand(game)

        assert game.state_view(0).hand == ()
        assert game.legal_actions(0) == [Action.end_turn()]
        game.apply_action(0, Action.end_turn())
        assert game.status == GameStatus.ONGOING

        assert game.legal_actions(1) == [Action.end_turn()]
        game.apply_action(1, Action.end_turn())
        assert game.status == GameStatus.ONGOING

        game.apply_action(0, Action.end_turn())
        assert game.status == GameStatus.DRAW
        assert game.winner is None
        assert game.state_view(0).phase == TurnPhase.GAME_OVER
        assert game.turn_count == 3
        assert game.legal_actions(game.current_player) == []
        with pytest.raises(GameOverError):
            game.apply_action(game.current_player, Action.end_turn())

    def test_end_turn_with_cards_rejected(self, make_game, ordered_hand):
        game = make_game([[Card(12)], [Card(12)]], ordered_hand, stock_size=1)
        with pytest.raises(MustDiscardError):
            game.apply_action(0, Action.end_turn())


class TestErrors:
    """错误处理测试"""

    def test_invalid_player(self):
        game = Game(GameConfig(num_players=2))
        with pytest.raises(InvalidPlayerError):
            game.state_view(2)
        with pytest.raises(InvalidPlayerError):
            game.legal_actions(-1)
        with pytest.raises(InvalidPlayerError):
            game.apply_action(5, Action.end_turn())

    def test_not_players_turn(self):
        game = Game(GameConfig(num_players=2))
        with pytest.raises(NotPlayersTurnError):
            game.legal_actions(1)
        with pytest.raises(NotPlayersTurnError):
            game.apply_action(1, Action.discard(0, 0))

    def test_error_hierarchy(self):
        assert issubclass(InvalidActionError, GameError)
        assert issubclass(CardMismatchError, InvalidActionError)
        assert not issubclass(NotPlayersTurnError, InvalidActionError)

    def test_discard_pile_checked_before_hand_index(self, make_game, ordered_hand):
        game = make_game([[Card(12)], [Card(12)]], ordered_hand, stock_size=1)
        with pytest.raises(DiscardIndexError):
            game.apply_action(0, Action.discard(9, 4))
        with pytest.raises(HandIndexError):
            game.apply_action(0, Action.discard(5, 0))

    def test_rejected_action_leaves_state_unchanged(self, make_game, ordered_hand):
        game = make_game([[Card(12)], [Card(12)]], ordered_hand, stock_size=1)
        before = game.state_view(0)
        with pytest.raises(CardMismatchError):
            game.apply_action(0, Action.play(CardSource.hand(1), 0))
        assert game.state_view(0) == before
        assert game.current_player == 0


def _drive(game, agent, steps):
    """用智能体推进若干步，返回每步前的快照"""
    views = []
    for _ in range(steps):
        if game.is_finished:
            break
        current = game.current_player
        view = game.state_view(current)
        views.append(view)
        game.apply_action(current, agent.select_action(view, game.legal_actions(current)))
    return views


class TestInvariants:
    """不变量测试"""

    def test_card_conservation(self):
        game = Game(GameConfig(num_players=3, seed=2024))
        agent = RandomAgent(seed=1)
        for _ in range(3000):
            if game.is_finished:
                break
            current = game.current_player
            action = agent.select_action(game.state_view(current), game.legal_actions(current))
            game.apply_action(current, action)
            assert game.total_cards() == 162

    def test_legality_exclusivity(self):
        """合法动作必定成功，其余布局内动作必定被拒绝"""
        encoder = get_action_encoder()
        game = Game(GameConfig(num_players=2, seed=77))
        agent = RandomAgent(seed=3)

        for _ in range(25):
            if game.is_finished:
                break
            current = game.current_player
            legal = game.legal_actions(current)
            legal_set = set(legal)
            for idx in range(encoder.num_actions):
                action = encoder.decode(idx)
                trial = copy.deepcopy(game)
                if action in legal_set:
                    trial.apply_action(current, action)
                else:
                    with pytest.raises(InvalidActionError):
                        trial.apply_action(current, action)
            game.apply_action(current, agent.select_action(game.state_view(current), legal))

    def test_view_hides_other_hands(self, make_game, ordered_hand):
        game = make_game([[Card(12)], [Card(12)]], [Card(8)] * 5 + ordered_hand, stock_size=1)
        game.apply_action(0, Action.discard(0, 0))
        view = game.state_view(0)
        assert view.players[1].hand_size == 5
        assert len(view.hand) == 4
        assert game.state_view(1).hand == (Card(8),) * 5

    def test_determinism(self):
        game_a = Game(GameConfig(num_players=3, seed=123))
        game_b = Game(GameConfig(num_players=3, seed=123))
        views_a = _drive(game_a, RandomAgent(seed=9), 200)
        views_b = _drive(game_b, RandomAgent(seed=9), 200)
        assert views_a == views_b

    def test_different_seeds_differ(self):
        view_a = Game(GameConfig(num_players=2, seed=1)).state_view(0)
        view_b = Game(GameConfig(num_players=2, seed=2)).state_view(0)
        assert (view_a.hand, view_a.players) != (view_b.hand, view_b.players)
