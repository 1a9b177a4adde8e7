"""状态与动作编码测试"""
import pytest
import numpy as np

from core.cards import Card
from core.actions import Action, CardSource
from core.game import Game, GameConfig
from env.observation import (
    STATE_FEATURES,
    MAX_ACTIONS,
    END_TURN_INDEX,
    MASK_NEGATIVE,
    STOCK_PLAY_OFFSET,
    DISCARD_PLAY_OFFSET,
    DISCARD_OFFSET,
    StateEncoder,
    ActionEncoder,
    get_action_encoder,
)


class TestActionEncoder:
    """ActionEncoder 测试"""

    def test_layout(self):
        assert MAX_ACTIONS == 61
        assert STOCK_PLAY_OFFSET == 20
        assert DISCARD_PLAY_OFFSET == 24
        assert DISCARD_OFFSET == 40
        assert END_TURN_INDEX == 60
        assert ActionEncoder().num_actions == MAX_ACTIONS

    def test_encode_each_kind(self):
        encoder = ActionEncoder()
        assert encoder.encode(Action.play(CardSource.hand(2), 3)) == 11
        assert encoder.encode(Action.play(CardSource.stock(), 1)) == 21
        assert encoder.encode(Action.play(CardSource.discard(3), 2)) == 38
        assert encoder.encode(Action.discard(4, 1)) == 57
        assert encoder.encode(Action.end_turn()) == END_TURN_INDEX

    def test_decode_is_inverse(self):
        encoder = ActionEncoder()
        decoded = [encoder.decode(i) for i in range(MAX_ACTIONS)]
        assert len(set(decoded)) == MAX_ACTIONS
        assert [encoder.encode(a) for a in decoded] == list(range(MAX_ACTIONS))

    def test_out_of_layout(self):
        encoder = ActionEncoder()
        assert encoder.encode(Action.play(CardSource.hand(5), 0)) == -1
        assert encoder.encode(Action.play(CardSource.stock(), 4)) == -1
        assert encoder.encode(Action.discard(0, 4)) == -1
        assert encoder.decode(-1) is None
        assert encoder.decode(MAX_ACTIONS) is None

    def test_masks(self):
        encoder = ActionEncoder()
        legal = [Action.play(CardSource.stock(), 0), Action.discard(0, 0)]

        mask = encoder.build_legal_mask(legal)
        assert mask.shape == (MAX_ACTIONS,)
        assert mask.sum() == 2
        assert mask[STOCK_PLAY_OFFSET] == 1 and mask[DISCARD_OFFSET] == 1

        logit_mask = encoder.build_logit_mask(legal)
        assert logit_mask[STOCK_PLAY_OFFSET] == 0.0
        assert logit_mask[END_TURN_INDEX] == MASK_NEGATIVE
        assert (logit_mask == 0.0).sum() == 2

    def test_targets_split_mass(self):
        encoder = ActionEncoder()
        target = encoder.targets_from_indices([3, 7, -1, 99])
        assert target.sum() == pytest.approx(1.0)
        assert target[3] == pytest.approx(0.5)
        assert encoder.targets_from_indices([]).sum() == 0.0

    def test_singleton(self):
        assert get_action_encoder() is get_action_encoder()


class TestStateEncoder:
    """StateEncoder 测试"""

    def test_shape_and_range(self):
        assert STATE_FEATURES == 98
        game = Game(GameConfig(num_players=4, seed=8))
        features = StateEncoder.encode(game.state_view(0))

        assert features.shape == (STATE_FEATURES,)
        assert features.dtype == np.float32
        assert features.min() >= 0.0
        assert features.max() <= 1.0

    def test_hand_histogram(self, make_game, ordered_hand):
        game = make_game([[Card(7)], [Card(9)]], ordered_hand, stock_size=2)
        features = StateEncoder.encode(game.state_view(0))
        hand = features[11:24]
        assert np.allclose(hand[:5], 0.2)
        assert hand[5:].sum() == 0.0

    def test_fresh_build_piles(self):
        game = Game(GameConfig(num_players=2))
        features = StateEncoder.encode(game.state_view(0))
        assert np.allclose(features[0:8:2], 1 / 12)
        assert features[1:8:2].sum() == 0.0

    def test_unused_seats_are_zero(self):
        game = Game(GameConfig(num_players=2))
        features = StateEncoder.encode(game.state_view(0))
        assert features[-12:].sum() == 0.0
        assert features[80] == pytest.approx(1.0)  # 0 号座位库存满

    def test_discard_depth_clipped(self):
        game = Game(GameConfig(num_players=2, seed=31, stock_size=1))
        for _ in range(3):
            game.apply_action(game.current_player, Action.discard(0, 0))
        view = game.state_view(0)
        assert view.me.discard_counts[0] == 2

        features = StateEncoder.encode(view)
        assert features[24 + 13] == 1.0

    def test_perspective_changes_encoding(self, make_game):
        game = make_game([[Card(7)], [Card(9)]], [Card(8)] * 5 + [Card(3)] * 5, stock_size=2)
        game.apply_action(0, Action.discard(0, 0))
        a = StateEncoder.encode(game.state_view(0))
        b = StateEncoder.encode(game.state_view(1))
        assert not np.array_equal(a, b)

    def test_batch(self):
        game = Game(GameConfig(num_players=3))
        views = [game.state_view(i) for i in range(3)]
        batch = StateEncoder.encode_batch(views)
        assert batch.shape == (3, STATE_FEATURES)
        assert StateEncoder.encode_batch([]).shape == (0, STATE_FEATURES)
