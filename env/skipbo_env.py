"""
Skip-Bo Gymnasium 环境

遵循标准 Gymnasium API，所有座位轮流由调用方控制
"""
from typing import Dict, Any, Tuple, Optional, List, Union
import logging

import numpy as np
import gymnasium as gym
from gymnasium import spaces

from core.actions import Action
from core.errors import InvalidActionError
from core.game import Game, GameConfig
from core.state import GameStateView

from .observation import StateEncoder, STATE_FEATURES, get_action_encoder
from .reward import RewardCalculator, RewardConfig, RewardType
from .render import render_state

logger = logging.getLogger(__name__)


class SkipBoEnv(gym.Env):
    """
    Skip-Bo Gymnasium 环境

    观测始终是当前行动玩家视角的编码；奖励属于执行动作的玩家

    API:
    - reset() -> observation, info
    - step(action) -> observation, reward, terminated, truncated, info
    """

    metadata = {
        "render_modes": ["human", "ansi"],
        "name": "SkipBo-v0",
    }

    def __init__(
        self,
        num_players: int = 2,
        render_mode: Optional[str] = None,
        reward_type: str = "sparse",
        stock_size: Optional[int] = None,
        seed: Optional[int] = None,
        invalid_action_penalty: float = 1.0,
    ):
        """
        Args:
            num_players: 玩家人数 (2-6)
            render_mode: 渲染模式 ("human", "ansi", None)
            reward_type: 奖励类型 ("sparse", "shaped", "score")
            stock_size: 覆盖默认库存牌张数
            seed: 对局种子，None 时由 np_random 生成
            invalid_action_penalty: 非法动作的惩罚
        """
        super().__init__()

        self.render_mode = render_mode
        self.num_players = num_players
        self.stock_size = stock_size
        self.invalid_action_penalty = invalid_action_penalty
        self._seed = seed

        self._encoder = StateEncoder()
        self._reward_calculator = RewardCalculator(
            RewardConfig(reward_type=RewardType(reward_type))
        )
        self._action_encoder = get_action_encoder()

        self._game: Optional[Game] = None

        self.action_space = spaces.Discrete(self._action_encoder.num_actions)
        self.observation_space = spaces.Box(0, 1, shape=(STATE_FEATURES,), dtype=np.float32)

    def reset(
        self,
        *,
        seed: Optional[int] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> Tuple[np.ndarray, Dict[str, Any]]:
        """
        重置环境

        Args:
            seed: 对局种子
            options: 额外选项 (支持 "num_players", "stock_size")

        Returns:
            (observation, info) 元组
        """
        super().reset(seed=seed)
        options = options or {}

        game_seed = seed if seed is not None else self._seed
        if game_seed is None:
            game_seed = int(self.np_random.integers(0, 2**63 - 1))

        config = GameConfig(
            num_players=options.get("num_players", self.num_players),
            seed=game_seed,
            stock_size=options.get("stock_size", self.stock_size),
        )
        self._game = Game(config)
        logger.debug(f"Environment reset with seed {game_seed:#x}")

        obs = self._build_observation()
        info = self._build_info()

        if self.render_mode == "human":
            self.render()

        return obs, info

    def step(
        self,
        action: Union[int, Action],
    ) -> Tuple[np.ndarray, float, bool, bool, Dict[str, Any]]:
        """
        执行当前玩家的动作

        Args:
            action: 动作索引或 Action 对象

        Returns:
            (observation, reward, terminated, truncated, info) 元组
        """
        if self._game is None:
            raise RuntimeError("Environment not reset. Call reset() first.")
        if self._game.is_finished:
            raise RuntimeError("Episode is over. Call reset() to start a new game.")

        actor = self._game.current_player
        prev_view = self._game.state_view(actor)
        concrete_action = self._decode_action(action)

        try:
            self._game.apply_action(actor, concrete_action)
        except InvalidActionError as e:
            # 非法动作：给予惩罚并保持状态
            obs = self._build_observation()
            info = self._build_info()
            info["error"] = str(e)
            return obs, -self.invalid_action_penalty, False, False, info

        reward = self._reward_calculator.compute(
            self._game.state_view(actor), prev_view, actor
        )
        obs = self._build_observation()
        terminated = self._game.is_finished
        truncated = False
        info = self._build_info()
        info["acting_player"] = actor

        if self.render_mode == "human":
            self.render()

        return obs, reward, terminated, truncated, info

    def _decode_action(self, action: Union[int, Action]) -> Action:
        """解码动作"""
        if isinstance(action, Action):
            return action
        if isinstance(action, (int, np.integer)):
            decoded = self._action_encoder.decode(int(action))
            if decoded is None:
                raise ValueError(
                    f"Invalid action index: {action}. "
                    f"Valid range: 0-{self._action_encoder.num_actions - 1}"
                )
            return decoded
        raise ValueError(f"Invalid action type: {type(action)}")

    def _build_observation(self) -> np.ndarray:
        """构建当前玩家视角的观测"""
        return self._encoder.encode(self.current_view())

    def _build_info(self) -> Dict[str, Any]:
        """构建 info 字典"""
        game = self._game
        legal_actions = self.get_legal_actions()

        info = {
            "current_player": game.current_player,
            "status": game.status.value,
            "turn_count": game.turn_count,
            "legal_actions": legal_actions,
            "legal_action_mask": self._action_encoder.build_legal_mask(legal_actions),
            "legal_action_indices": self._action_encoder.get_legal_action_indices(
                legal_actions
            ),
        }

        if game.is_finished:
            info["winner"] = game.winner

        return info

    def current_view(self, player: Optional[int] = None) -> GameStateView:
        """获取快照，默认当前玩家视角"""
        if self._game is None:
            raise RuntimeError("Environment not reset. Call reset() first.")
        if player is None:
            player = self._game.current_player
        return self._game.state_view(player)

    def render(self) -> Optional[str]:
        """渲染环境"""
        if self.render_mode not in ("ansi", "human") or self._game is None:
            return None
        output = render_state(self.current_view())
        if self.render_mode == "human":
            print(output)
        return output

    def close(self):
        """关闭环境"""
        self._game = None

    @property
    def game(self) -> Optional[Game]:
        """当前对局 (用于调试与包装器)"""
        return self._game

    def get_legal_actions(self) -> List[Action]:
        """获取当前合法动作"""
        if self._game is None or self._game.is_finished:
            return []
        return self._game.legal_actions(self._game.current_player)

    def sample_action(self) -> Optional[Action]:
        """随机采样一个合法动作"""
        legal_actions = self.get_legal_actions()
        if not legal_actions:
            return None
        idx = int(self.np_random.integers(len(legal_actions)))
        return legal_actions[idx]


def make_env(
    env_id: str = "SkipBo-v0",
    **kwargs
) -> SkipBoEnv:
    """
    工厂函数：创建环境

    Args:
        env_id: 环境 ID
        **kwargs: 环境参数

    Returns:
        SkipBoEnv 实例
    """
    if env_id != SkipBoEnv.metadata["name"]:
        raise ValueError(f"Unknown environment id: {env_id}")
    return SkipBoEnv(**kwargs)
