"""
Skip-Bo 环境包装器

代打对手座位、步数截断与整局统计
"""
from typing import Dict, Tuple, Optional, Callable, List

import numpy as np
import gymnasium as gym
from gymnasium import Wrapper

from core.actions import Action
from core.state import GameStateView


OpponentPolicy = Callable[[GameStateView, List[Action]], Action]


class SelfPlayWrapper(Wrapper):
    """
    单座位视角包装器

    调用方只操作 controlled_player，其他座位的整个回合由 opponent_policy 自动走完
    """

    def __init__(
        self,
        env: gym.Env,
        opponent_policy: Optional[OpponentPolicy] = None,
        controlled_player: int = 0,
    ):
        """
        Args:
            env: 基础环境 (SkipBoEnv)
            opponent_policy: 对手策略 (view, legal_actions) -> Action，
                也可以传入带 select_action 方法的 Agent
            controlled_player: 控制的座位
        """
        super().__init__(env)
        if opponent_policy is not None and hasattr(opponent_policy, "select_action"):
            opponent_policy = opponent_policy.select_action
        self.opponent_policy = opponent_policy or self._random_policy
        self.controlled_player = controlled_player

    def _random_policy(self, view: GameStateView, legal_actions: List[Action]) -> Action:
        """未指定对手策略时均匀选择合法动作"""
        idx = int(self.env.unwrapped.np_random.integers(len(legal_actions)))
        return legal_actions[idx]

    def _play_opponents(self, obs, info) -> Tuple[np.ndarray, bool, Dict]:
        base = self.env.unwrapped
        terminated = base.game.is_finished
        while not terminated and info.get("current_player") != self.controlled_player:
            view = base.current_view()
            action = self.opponent_policy(view, info["legal_actions"])
            obs, _, terminated, _, info = self.env.step(action)
            if "error" in info:
                raise RuntimeError(f"Opponent policy chose an illegal action: {info['error']}")
        return obs, terminated, info

    def reset(self, **kwargs) -> Tuple[np.ndarray, Dict]:
        obs, info = self.env.reset(**kwargs)
        obs, _, info = self._play_opponents(obs, info)
        return obs, info

    def step(self, action) -> Tuple[np.ndarray, float, bool, bool, Dict]:
        # 受控座位的动作
        obs, reward, terminated, truncated, info = self.env.step(action)

        if terminated or "error" in info:
            return obs, reward, terminated, truncated, info

        # 轮到其他座位时一直代打到受控座位或终局
        if info.get("current_player") != self.controlled_player:
            obs, terminated, info = self._play_opponents(obs, info)
            if terminated:
                reward = self._compute_final_reward()

        return obs, reward, terminated, truncated, info

    def _compute_final_reward(self) -> float:
        """计算我方终局奖励"""
        base = self.env.unwrapped
        view = base.current_view(self.controlled_player)
        return base._reward_calculator.compute(view, None, self.controlled_player)


class TimeLimit(Wrapper):
    """
    步数截断包装器

    累计 max_steps 次 step 后把 truncated 置为 True (已终局时除外)
    """

    def __init__(self, env: gym.Env, max_steps: int = 2000):
        super().__init__(env)
        self.max_steps = max_steps
        self._step_count = 0

    def reset(self, **kwargs) -> Tuple[np.ndarray, Dict]:
        self._step_count = 0
        return self.env.reset(**kwargs)

    def step(self, action) -> Tuple[np.ndarray, float, bool, bool, Dict]:
        obs, reward, terminated, truncated, info = self.env.step(action)
        self._step_count += 1

        if self._step_count >= self.max_steps and not terminated:
            truncated = True

        return obs, reward, terminated, truncated, info


class RecordEpisodeStatistics(Wrapper):
    """
    整局统计：终局或截断时在 info["episode"] 写入累计奖励、步数、非法动作数、回合数与结果
    """

    def __init__(self, env: gym.Env):
        super().__init__(env)
        self._episode_reward = 0.0
        self._episode_length = 0
        self._invalid_actions = 0

    def reset(self, **kwargs) -> Tuple[np.ndarray, Dict]:
        obs, info = self.env.reset(**kwargs)
        self._episode_reward = 0.0
        self._episode_length = 0
        self._invalid_actions = 0
        return obs, info

    def step(self, action) -> Tuple[np.ndarray, float, bool, bool, Dict]:
        obs, reward, terminated, truncated, info = self.env.step(action)

        self._episode_reward += reward
        self._episode_length += 1
        if "error" in info:
            self._invalid_actions += 1

        if terminated or truncated:
            info["episode"] = {
                "r": self._episode_reward,
                "l": self._episode_length,
                "invalid": self._invalid_actions,
                "turns": info.get("turn_count", 0),
                "winner": info.get("winner"),
                "status": info.get("status"),
            }

        return obs, reward, terminated, truncated, info


def wrap_env(
    env: gym.Env,
    record_stats: bool = True,
    time_limit: Optional[int] = None,
    self_play: bool = False,
    opponent_policy: Optional[OpponentPolicy] = None,
    controlled_player: int = 0,
) -> gym.Env:
    """
    按 SelfPlayWrapper -> TimeLimit -> RecordEpisodeStatistics 的顺序包装

    Args:
        env: SkipBoEnv 或已包装的环境
        record_stats: 是否写入 info["episode"]
        time_limit: 截断前允许的 step 次数，None 表示不截断
        self_play: 是否由对手策略代打其他座位
        opponent_policy: 对手策略
        controlled_player: 自博弈时控制的座位

    Returns:
        最外层包装器
    """
    if self_play:
        env = SelfPlayWrapper(env, opponent_policy, controlled_player)

    if time_limit is not None:
        env = TimeLimit(env, max_steps=time_limit)

    if record_stats:
        env = RecordEpisodeStatistics(env)

    return env
