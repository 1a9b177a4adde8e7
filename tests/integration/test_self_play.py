"""采集-训练-评估流程测试"""
import numpy as np
import pytest
import torch

from core.game import GameConfig


@pytest.fixture(scope="module")
def trained_model():
    from models import build_model, ModelSpec
    from training import PolicyTrainer, TrainConfig, RolloutConfig, collect_dataset

    torch.manual_seed(0)
    dataset = collect_dataset(RolloutConfig(
        num_players=2, num_games=3, stock_size=3, max_turns=80, seed=12,
    ))
    assert len(dataset) > 0

    train, validation = dataset.split(0.2, np.random.default_rng(0))
    trainer = PolicyTrainer(
        build_model(ModelSpec(hidden_dim=32)),
        TrainConfig(num_epochs=3, batch_size=32, device="cpu"),
    )
    history = trainer.fit(train, validation)
    assert len(history) == 3
    return trainer.model


class TestPipeline:
    """端到端流程测试"""

    def test_model_agent_plays_legal_game(self, trained_model):
        from evaluation import ModelAgent, RuleBasedAgent, play_game

        agents = [ModelAgent(trained_model, name="model"), RuleBasedAgent()]
        result = play_game(agents, GameConfig(num_players=2, seed=3, stock_size=3), max_turns=300)

        assert result.agents == ("model", "rule")
        assert result.steps > 0
        assert result.truncated or result.status.is_terminal

    def test_sampling_agent_is_reproducible(self, trained_model):
        from evaluation import ModelAgent, RandomAgent, play_game

        config = GameConfig(num_players=2, seed=44, stock_size=3)
        results = [
            play_game(
                [ModelAgent(trained_model, deterministic=False), RandomAgent()],
                config,
                max_turns=200,
                seed_agents=True,
            )
            for _ in range(2)
        ]
        assert results[0].steps == results[1].steps
        assert results[0].winner == results[1].winner

    def test_evaluator(self, trained_model):
        from evaluation import Evaluator, ModelAgent

        evaluator = Evaluator(num_players=2, max_turns=200, stock_size=3)
        result = evaluator.evaluate(ModelAgent(trained_model), n_games=4)

        assert result.games_played == 4
        assert 0.0 <= result.win_rate <= 1.0
        assert set(result.seat_win_rates) == {0, 1}

    def test_checkpoint_feeds_agent_factory(self, trained_model, tmp_path):
        from models import save_model
        from evaluation import create_agent, ModelAgent

        path = str(tmp_path / "policy.pt")
        save_model(trained_model, path)

        agent = create_agent(f"model:{path}:sample", index=1, seed=5)
        assert isinstance(agent, ModelAgent)
        assert not agent.deterministic
        assert agent.name == "model_1"

    def test_env_with_model_opponent(self, trained_model):
        from env import SkipBoEnv, SelfPlayWrapper
        from evaluation import ModelAgent

        env = SelfPlayWrapper(
            SkipBoEnv(num_players=2, stock_size=3, seed=10),
            ModelAgent(trained_model),
        )
        _, info = env.reset()
        for _ in range(50):
            _, _, terminated, _, info = env.step(info["legal_action_indices"][0])
            if terminated:
                break
            assert info["current_player"] == 0
