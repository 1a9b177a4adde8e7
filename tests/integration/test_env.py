"""环境层测试"""
import pytest
import numpy as np

from core.actions import Action
from env.observation import STATE_FEATURES, MAX_ACTIONS, END_TURN_INDEX


class TestSkipBoEnv:
    """SkipBoEnv 测试"""

    def test_reset(self):
        from env import SkipBoEnv

        env = SkipBoEnv(num_players=2, seed=11)
        obs, info = env.reset()

        assert obs.shape == (STATE_FEATURES,)
        assert obs.dtype == np.float32
        assert env.observation_space.contains(obs)
        assert env.action_space.n == MAX_ACTIONS
        assert info["current_player"] == 0
        assert info["status"] == "ongoing"
        assert info["turn_count"] == 0
        assert len(info["legal_actions"]) > 0

    def test_mask_matches_indices(self):
        from env import SkipBoEnv

        env = SkipBoEnv(num_players=3)
        _, info = env.reset(seed=5)

        mask = info["legal_action_mask"]
        assert mask.shape == (MAX_ACTIONS,)
        assert sorted(np.flatnonzero(mask).tolist()) == sorted(info["legal_action_indices"])
        assert mask[END_TURN_INDEX] == 0

    def test_seeded_reset_is_reproducible(self):
        from env import SkipBoEnv

        env = SkipBoEnv()
        obs_a, _ = env.reset(seed=77)
        obs_b, _ = env.reset(seed=77)
        assert np.array_equal(obs_a, obs_b)

    def test_step_legal(self):
        from env import SkipBoEnv

        env = SkipBoEnv(num_players=2, seed=3)
        _, info = env.reset()
        index = info["legal_action_indices"][0]

        obs, reward, terminated, truncated, info = env.step(index)
        assert obs.shape == (STATE_FEATURES,)
        assert reward == 0.0
        assert not terminated and not truncated
        assert info["acting_player"] == 0
        assert "error" not in info

    def test_step_accepts_action_object(self):
        from env import SkipBoEnv

        env = SkipBoEnv(num_players=2, seed=3)
        _, info = env.reset()
        _, _, _, _, info = env.step(info["legal_actions"][-1])
        assert "error" not in info

    def test_step_illegal(self):
        from env import SkipBoEnv

        env = SkipBoEnv(num_players=2, seed=3, invalid_action_penalty=0.5)
        obs_before, _ = env.reset()

        # 手牌非空时不能结束回合
        obs, reward, terminated, truncated, info = env.step(END_TURN_INDEX)
        assert reward == -0.5
        assert not terminated and not truncated
        assert "error" in info
        assert np.array_equal(obs, obs_before)
        assert info["current_player"] == 0

    def test_step_errors(self):
        from env import SkipBoEnv

        env = SkipBoEnv()
        with pytest.raises(RuntimeError):
            env.step(0)

        env.reset(seed=1)
        with pytest.raises(ValueError):
            env.step(999)
        with pytest.raises(ValueError):
            env.step("play")

    def test_reset_options(self):
        from env import SkipBoEnv

        env = SkipBoEnv(num_players=2)
        env.reset(seed=2, options={"num_players": 3, "stock_size": 4})
        view = env.current_view()
        assert len(view.players) == 3
        assert all(p.stock_count == 4 for p in view.players)

    def test_full_game(self):
        from env import SkipBoEnv

        env = SkipBoEnv(num_players=2, stock_size=3, seed=21)
        env.reset()

        terminated = False
        steps = 0
        while not terminated and steps < 20000:
            action = env.sample_action()
            _, _, terminated, _, info = env.step(action)
            assert "error" not in info
            steps += 1

        assert terminated
        assert info["status"] in ("finished", "draw")
        assert env.sample_action() is None
        with pytest.raises(RuntimeError):
            env.step(0)

    def test_render(self):
        from env import SkipBoEnv

        env = SkipBoEnv(render_mode="ansi", seed=4)
        env.reset()
        text = env.render()
        assert text.startswith("Game status: Ongoing")
        assert SkipBoEnv().render() is None

    def test_make_env(self):
        from env import make_env, SkipBoEnv

        env = make_env("SkipBo-v0", num_players=4)
        assert isinstance(env, SkipBoEnv)
        assert env.num_players == 4
        with pytest.raises(ValueError):
            make_env("Phase10-v0")


class TestRewards:
    """奖励测试"""

    def test_sparse_and_score(self, make_game):
        from core.cards import Card
        from core.actions import CardSource
        from env.reward import create_reward_calculator

        game = make_game([[Card(1), Card(2)], [Card(5), Card(6)]], [Card(9)] * 5, stock_size=2)
        before = game.state_view(0)
        game.apply_action(0, Action.play(CardSource.stock(), 0))
        game.apply_action(0, Action.play(CardSource.stock(), 0))
        after = game.state_view(0)
        assert after.winner == 0

        sparse = create_reward_calculator("sparse")
        assert sparse.compute(after, before, 0) == 1.0
        assert sparse.compute(after, before, 1) == -1.0

        score = create_reward_calculator("score", score_scale=1.0)
        assert score.compute(after, before, 0) == 25 + 5 * 2
        assert score.compute(after, before, 1) == -(25 + 5 * 2)

    def test_shaped(self, make_game):
        from core.cards import Card
        from core.actions import CardSource
        from env.reward import create_reward_calculator

        game = make_game([[Card(1), Card(2), Card(3)], [Card(5)]], [Card(9)] * 5, stock_size=3)
        before = game.state_view(0)
        game.apply_action(0, Action.play(CardSource.stock(), 0))
        shaped = create_reward_calculator("shaped", stock_card_bonus=0.1)
        assert shaped.compute(game.state_view(0), before, 0) == pytest.approx(0.1)
        assert shaped.compute(game.state_view(0), None, 0) == 0.0

    def test_reward_config_from_dict(self):
        from env.reward import RewardConfig, RewardType

        config = RewardConfig.from_dict({"reward_type": "score", "score_scale": 0.5})
        assert config.reward_type == RewardType.SCORE
        assert config.score_scale == 0.5


class TestWrappers:
    """环境包装器测试"""

    def test_self_play_returns_control(self):
        from env import SkipBoEnv, SelfPlayWrapper
        from evaluation import RuleBasedAgent

        env = SelfPlayWrapper(SkipBoEnv(num_players=3, seed=8), RuleBasedAgent(), controlled_player=1)
        _, info = env.reset()
        assert info["current_player"] == 1

        for _ in range(30):
            index = info["legal_action_indices"][0]
            _, _, terminated, _, info = env.step(index)
            if terminated:
                break
            assert info["current_player"] == 1

    def test_self_play_full_game_with_statistics(self):
        from env import SkipBoEnv, wrap_env
        from evaluation import RuleBasedAgent

        agent = RuleBasedAgent()
        env = wrap_env(
            SkipBoEnv(num_players=2, stock_size=3, seed=6),
            self_play=True,
            opponent_policy=RuleBasedAgent(),
        )
        obs, info = env.reset()

        terminated = False
        steps = 0
        while not terminated and steps < 5000:
            view = env.unwrapped.current_view()
            action = agent.select_action(view, info["legal_actions"])
            obs, reward, terminated, truncated, info = env.step(action)
            steps += 1

        assert terminated
        episode = info["episode"]
        assert episode["l"] == steps
        assert episode["invalid"] == 0
        assert episode["status"] in ("finished", "draw")
        if episode["status"] == "finished":
            assert reward in (1.0, -1.0)

    def test_time_limit(self):
        from env import SkipBoEnv, TimeLimit

        env = TimeLimit(SkipBoEnv(num_players=2, seed=9), max_steps=3)
        _, info = env.reset()
        truncated = False
        for step in range(3):
            _, _, terminated, truncated, info = env.step(info["legal_action_indices"][0])
            if step < 2:
                assert not truncated
        assert truncated and not terminated

    def test_statistics_count_invalid(self):
        from env import SkipBoEnv, wrap_env

        env = wrap_env(SkipBoEnv(num_players=2, seed=9), time_limit=2)
        env.reset()
        _, _, _, _, info = env.step(END_TURN_INDEX)
        _, _, _, truncated, info = env.step(END_TURN_INDEX)
        assert truncated
        assert info["episode"]["invalid"] == 2
        assert info["episode"]["r"] == -2.0
