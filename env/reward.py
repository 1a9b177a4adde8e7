"""
Skip-Bo 奖励

奖励按 player 参数计算 (环境中为执行动作的玩家):
- sparse: 只在终局给出胜负奖励
- shaped: sparse 之外，库存牌每减少一张加 stock_card_bonus
- score: 按 winner_points 缩放的零和终局得分
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from core.state import GameStateView, GameStatus


class RewardType(Enum):
    """奖励模式"""
    SPARSE = "sparse"
    SHAPED = "shaped"
    SCORE = "score"


@dataclass
class RewardConfig:
    """奖励参数，可由 from_dict 从配置文件读取"""
    reward_type: RewardType = RewardType.SPARSE
    win_reward: float = 1.0
    lose_reward: float = -1.0
    draw_reward: float = 0.0
    stock_card_bonus: float = 0.05   # 每打出一张库存牌
    score_scale: float = 0.01        # SCORE 模式下得分的缩放

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'RewardConfig':
        valid_keys = cls.__dataclass_fields__.keys()
        filtered = {k: v for k, v in d.items() if k in valid_keys}
        if isinstance(filtered.get("reward_type"), str):
            filtered["reward_type"] = RewardType(filtered["reward_type"])
        return cls(**filtered)


class RewardCalculator:
    """
    按 RewardConfig 把前后两个快照换算成奖励

    对局进行中 sparse 与 score 模式恒为 0
    """

    def __init__(self, config: Optional[RewardConfig] = None):
        self.config = config or RewardConfig()

    def compute(
        self,
        state: GameStateView,
        prev_state: Optional[GameStateView] = None,
        player: Optional[int] = None,
    ) -> float:
        """
        计算 player 在 state 上获得的奖励

        Args:
            state: 当前快照
            prev_state: 前一快照 (用于 shaped 奖励)
            player: 计算奖励的玩家，默认快照视角玩家

        Returns:
            标量奖励
        """
        if player is None:
            player = state.self_player

        if self.config.reward_type == RewardType.SPARSE:
            return self._sparse_reward(state, player)
        elif self.config.reward_type == RewardType.SHAPED:
            return self._shaped_reward(state, prev_state, player)
        elif self.config.reward_type == RewardType.SCORE:
            return self._score_reward(state, player)
        else:
            return 0.0

    def _sparse_reward(self, state: GameStateView, player: int) -> float:
        """
        终局胜负奖励

        Returns:
            胜利: win_reward, 失败: lose_reward, 僵局: draw_reward, 其他: 0
        """
        if state.status == GameStatus.ONGOING:
            return 0.0
        if state.status == GameStatus.DRAW:
            return self.config.draw_reward
        if state.winner == player:
            return self.config.win_reward
        return self.config.lose_reward

    def _shaped_reward(
        self,
        state: GameStateView,
        prev_state: Optional[GameStateView],
        player: int,
    ) -> float:
        """过程奖励：终局奖励 + 库存牌减少"""
        reward = self._sparse_reward(state, player)
        if prev_state is not None:
            played = prev_state.players[player].stock_count - state.players[player].stock_count
            if played > 0:
                reward += played * self.config.stock_card_bonus
        return reward

    def _score_reward(self, state: GameStateView, player: int) -> float:
        """
        计分奖励

        获胜者得 winner_points，其他玩家得其相反数；僵局为 draw_reward
        """
        from evaluation.scoring import winner_points

        if state.status == GameStatus.ONGOING:
            return 0.0
        if state.status == GameStatus.DRAW:
            return self.config.draw_reward
        points = winner_points(state, state.winner) * self.config.score_scale
        return points if state.winner == player else -points


def create_reward_calculator(
    reward_type: str = "sparse",
    **kwargs
) -> RewardCalculator:
    """
    按模式名创建 RewardCalculator

    Args:
        reward_type: 奖励类型 ("sparse", "shaped", "score")
        **kwargs: RewardConfig 的其余字段

    Returns:
        RewardCalculator
    """
    config = RewardConfig(
        reward_type=RewardType(reward_type),
        **kwargs
    )
    return RewardCalculator(config)
