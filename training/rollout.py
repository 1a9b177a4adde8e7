"""
数据采集

由示范智能体自博弈生成模仿学习样本
"""
from typing import List, Optional
from dataclasses import dataclass
import logging

import numpy as np

from core.actions import Action
from core.game import Game, GameConfig
from core.state import GameStateView
from env.observation import StateEncoder, get_action_encoder
from evaluation.agents import Agent, RandomAgent, RuleBasedAgent, derive_agent_seed

from .buffer import PolicyDataset, PolicySample
from .config import RolloutConfig

logger = logging.getLogger(__name__)


@dataclass
class _PendingSample:
    player: int
    state: np.ndarray
    mask: np.ndarray
    target: np.ndarray


def build_demonstrator_agents(config: RolloutConfig, game_seed: int) -> List[Agent]:
    """为每个座位创建示范智能体"""
    if config.demonstrator == "rule":
        return [RuleBasedAgent(name=f"rule_{i}") for i in range(config.num_players)]
    return [
        RandomAgent(seed=derive_agent_seed(game_seed, i), name=f"random_{i}")
        for i in range(config.num_players)
    ]


def select_demonstrator_action(
    agent: Agent,
    view: GameStateView,
    legal_actions: List[Action],
    rng: np.random.Generator,
    epsilon: float,
) -> Action:
    """以 epsilon 概率随机探索，否则采用示范动作"""
    if rng.random() < epsilon:
        return legal_actions[int(rng.integers(len(legal_actions)))]
    return agent.select_action(view, legal_actions)


def outcome_weight(config: RolloutConfig, winner: Optional[int], player: int) -> float:
    """按对局结果为玩家的样本赋权"""
    if winner is None:
        weight = config.draw_weight
    elif winner == player:
        weight = config.winner_weight
    else:
        weight = config.runner_weight
    return max(weight, 0.0)


def collect_dataset(
    config: Optional[RolloutConfig] = None,
    agents: Optional[List[Agent]] = None,
    log_interval: int = 50,
) -> PolicyDataset:
    """
    采集数据集

    Args:
        config: 采集配置
        agents: 自定义示范智能体 (每个座位一个)，默认按 config.demonstrator 创建
        log_interval: 进度日志间隔 (局)

    Returns:
        PolicyDataset，每个决策一条样本，目标为示范动作
    """
    config = config or RolloutConfig()
    if agents is not None and len(agents) != config.num_players:
        raise ValueError(f"expected {config.num_players} agents, received {len(agents)}")

    rng = np.random.default_rng(config.seed)
    encoder = get_action_encoder()
    dataset = PolicyDataset()

    for game_idx in range(config.num_games):
        game_seed = int(rng.integers(0, 2**63 - 1))
        game = Game(GameConfig(
            num_players=config.num_players,
            seed=game_seed,
            stock_size=config.stock_size,
        ))
        demonstrators = agents
        if demonstrators is None:
            demonstrators = build_demonstrator_agents(config, game_seed)
        for agent in demonstrators:
            agent.reset()

        trajectory: List[_PendingSample] = []
        while not game.is_finished:
            if config.max_turns is not None and game.turn_count >= config.max_turns:
                break
            current = game.current_player
            view = game.state_view(current)
            legal_actions = game.legal_actions(current)
            action = select_demonstrator_action(
                demonstrators[current], view, legal_actions, rng, config.epsilon
            )
            trajectory.append(_PendingSample(
                player=current,
                state=StateEncoder.encode(view),
                mask=encoder.build_logit_mask(legal_actions),
                target=encoder.targets_from_indices([encoder.encode(action)]),
            ))
            game.apply_action(current, action)

        winner = game.winner
        for pending in trajectory:
            dataset.push(PolicySample(
                state=pending.state,
                mask=pending.mask,
                target=pending.target,
                weight=outcome_weight(config, winner, pending.player),
            ))

        if log_interval > 0 and (game_idx + 1) % log_interval == 0:
            logger.info(
                f"Collected games: {game_idx + 1}/{config.num_games} "
                f"(dataset size: {len(dataset)})"
            )

    return dataset
