"""
观察与动作编码

将游戏快照转换为神经网络可用的特征表示，
并在 Action 与固定索引之间相互转换
"""
from typing import List, Optional

import numpy as np

from core.cards import (
    Card,
    CARD_BUCKETS,
    MAX_CARD_VALUE,
    HAND_SIZE,
    DISCARD_PILE_COUNT,
    BUILD_PILE_COUNT,
    MAX_PLAYERS,
    card_bucket,
)
from core.actions import Action, ActionType, CardSource, SourceType
from core.state import GameStateView


# 特征维度
BUILD_FEATURES = BUILD_PILE_COUNT * 2               # 每堆: 下一值, 长度
SELF_FEATURES = 3                                   # 库存张数, 库存顶, 是否获胜
HAND_FEATURES = CARD_BUCKETS                        # 手牌桶直方图
DISCARD_FEATURES = DISCARD_PILE_COUNT * (CARD_BUCKETS + 1)  # 堆顶 one-hot + 深度
PLAYER_FEATURES = MAX_PLAYERS * 3                   # 每座位: 库存张数, 手牌数, 是否获胜
STATE_FEATURES = (
    BUILD_FEATURES + SELF_FEATURES + HAND_FEATURES + DISCARD_FEATURES + PLAYER_FEATURES
)

# 动作索引布局
HAND_PLAY_ACTIONS = HAND_SIZE * BUILD_PILE_COUNT
STOCK_PLAY_ACTIONS = BUILD_PILE_COUNT
DISCARD_PLAY_ACTIONS = DISCARD_PILE_COUNT * BUILD_PILE_COUNT
DISCARD_ACTIONS = HAND_SIZE * DISCARD_PILE_COUNT

HAND_PLAY_OFFSET = 0
STOCK_PLAY_OFFSET = HAND_PLAY_OFFSET + HAND_PLAY_ACTIONS
DISCARD_PLAY_OFFSET = STOCK_PLAY_OFFSET + STOCK_PLAY_ACTIONS
DISCARD_OFFSET = DISCARD_PLAY_OFFSET + DISCARD_PLAY_ACTIONS
END_TURN_INDEX = DISCARD_OFFSET + DISCARD_ACTIONS
MAX_ACTIONS = END_TURN_INDEX + 1

# 非法动作的 logit 偏置
MASK_NEGATIVE = -1.0e9


def _normalize(value: int, maximum: int) -> float:
    if maximum <= 0:
        return 0.0
    return value / maximum


def _card_scalar(card: Optional[Card]) -> float:
    if card is None:
        return 0.0
    return card_bucket(card) / (CARD_BUCKETS - 1)


class StateEncoder:
    """
    快照编码器

    特征组成 (共 STATE_FEATURES 维):
    - 建牌堆: 下一值、长度 (归一化到 MAX_CARD_VALUE)
    - 自己: 库存剩余比例、库存顶、是否获胜
    - 手牌: 各桶占比
    - 自己的弃牌堆: 堆顶 one-hot + 深度 (截断到 1)
    - 每个座位 (最多 6 人): 库存比例、手牌比例、是否获胜
    """

    @staticmethod
    def encode(state: GameStateView) -> np.ndarray:
        """
        编码快照

        Args:
            state: 视角玩家的快照

        Returns:
            (STATE_FEATURES,) float32 数组
        """
        out = np.zeros(STATE_FEATURES, dtype=np.float32)
        settings = state.settings
        offset = 0

        for pile in state.build_piles:
            out[offset] = _normalize(pile.next_value, MAX_CARD_VALUE)
            out[offset + 1] = _normalize(len(pile.cards), MAX_CARD_VALUE)
            offset += 2

        me = state.me
        out[offset] = _normalize(me.stock_count, settings.stock_size)
        out[offset + 1] = _card_scalar(me.stock_top)
        out[offset + 2] = 1.0 if me.has_won else 0.0
        offset += SELF_FEATURES

        if state.hand:
            for card in state.hand:
                out[offset + card_bucket(card)] += 1.0
            out[offset:offset + HAND_FEATURES] /= len(state.hand)
        offset += HAND_FEATURES

        for discard_index in range(DISCARD_PILE_COUNT):
            top = me.discard_tops[discard_index]
            if top is not None:
                out[offset + card_bucket(top)] = 1.0
            out[offset + CARD_BUCKETS] = min(
                1.0, _normalize(me.discard_counts[discard_index], settings.stock_size)
            )
            offset += CARD_BUCKETS + 1

        for seat in range(MAX_PLAYERS):
            if seat < len(state.players):
                player = state.players[seat]
                hand_size = len(state.hand) if player.id == state.self_player else player.hand_size
                out[offset] = _normalize(player.stock_count, settings.stock_size)
                out[offset + 1] = _normalize(hand_size, settings.hand_size)
                out[offset + 2] = 1.0 if player.has_won else 0.0
            offset += 3

        assert offset == STATE_FEATURES
        return out

    @staticmethod
    def encode_batch(states: List[GameStateView]) -> np.ndarray:
        """批量编码为 (N, STATE_FEATURES)"""
        if not states:
            return np.zeros((0, STATE_FEATURES), dtype=np.float32)
        return np.stack([StateEncoder.encode(s) for s in states])


class ActionEncoder:
    """
    动作编码器

    固定布局:
    - 手牌出牌: hand_index * BUILD_PILE_COUNT + pile
    - 库存出牌: pile
    - 弃牌堆出牌: discard_index * BUILD_PILE_COUNT + pile
    - 弃牌: hand_index * DISCARD_PILE_COUNT + discard_pile
    - 结束回合
    """

    @property
    def num_actions(self) -> int:
        """动作空间大小"""
        return MAX_ACTIONS

    def encode(self, action: Action) -> int:
        """
        将 Action 编码为索引

        Returns:
            动作索引，超出布局返回 -1
        """
        if action.action_type == ActionType.END_TURN:
            return END_TURN_INDEX

        if action.action_type == ActionType.DISCARD:
            if not (0 <= action.hand_index < HAND_SIZE
                    and 0 <= action.discard_pile < DISCARD_PILE_COUNT):
                return -1
            return DISCARD_OFFSET + action.hand_index * DISCARD_PILE_COUNT + action.discard_pile

        pile = action.build_pile
        if pile is None or not 0 <= pile < BUILD_PILE_COUNT or action.source is None:
            return -1
        source = action.source
        if source.kind == SourceType.HAND:
            if not 0 <= source.index < HAND_SIZE:
                return -1
            return HAND_PLAY_OFFSET + source.index * BUILD_PILE_COUNT + pile
        if source.kind == SourceType.STOCK:
            return STOCK_PLAY_OFFSET + pile
        if not 0 <= source.index < DISCARD_PILE_COUNT:
            return -1
        return DISCARD_PLAY_OFFSET + source.index * BUILD_PILE_COUNT + pile

    def decode(self, idx: int) -> Optional[Action]:
        """
        将索引解码为 Action

        Returns:
            Action 对象，越界返回 None
        """
        if idx < 0 or idx >= MAX_ACTIONS:
            return None
        if idx < STOCK_PLAY_OFFSET:
            relative = idx - HAND_PLAY_OFFSET
            return Action.play(
                CardSource.hand(relative // BUILD_PILE_COUNT),
                relative % BUILD_PILE_COUNT,
            )
        if idx < DISCARD_PLAY_OFFSET:
            return Action.play(CardSource.stock(), idx - STOCK_PLAY_OFFSET)
        if idx < DISCARD_OFFSET:
            relative = idx - DISCARD_PLAY_OFFSET
            return Action.play(
                CardSource.discard(relative // BUILD_PILE_COUNT),
                relative % BUILD_PILE_COUNT,
            )
        if idx < END_TURN_INDEX:
            relative = idx - DISCARD_OFFSET
            return Action.discard(relative // DISCARD_PILE_COUNT, relative % DISCARD_PILE_COUNT)
        return Action.end_turn()

    def get_legal_action_indices(self, legal_actions: List[Action]) -> List[int]:
        """获取合法动作的索引列表"""
        indices = []
        for action in legal_actions:
            idx = self.encode(action)
            if idx >= 0:
                indices.append(idx)
        return indices

    def build_legal_mask(self, legal_actions: List[Action]) -> np.ndarray:
        """
        构建合法动作掩码

        Returns:
            (num_actions,) 数组，合法为 1
        """
        mask = np.zeros(MAX_ACTIONS, dtype=np.float32)
        for idx in self.get_legal_action_indices(legal_actions):
            mask[idx] = 1
        return mask

    def build_logit_mask(self, legal_actions: List[Action]) -> np.ndarray:
        """
        构建加性 logit 掩码

        Returns:
            (num_actions,) 数组，合法为 0，非法为 MASK_NEGATIVE
        """
        mask = np.full(MAX_ACTIONS, MASK_NEGATIVE, dtype=np.float32)
        for idx in self.get_legal_action_indices(legal_actions):
            mask[idx] = 0.0
        return mask

    def targets_from_indices(self, indices: List[int]) -> np.ndarray:
        """多个目标动作平分概率质量"""
        target = np.zeros(MAX_ACTIONS, dtype=np.float32)
        valid = [i for i in indices if 0 <= i < MAX_ACTIONS]
        if not valid:
            return target
        weight = 1.0 / len(valid)
        for idx in valid:
            target[idx] += weight
        return target


# 全局单例
_action_encoder: Optional[ActionEncoder] = None


def get_action_encoder() -> ActionEncoder:
    """获取全局动作编码器"""
    global _action_encoder
    if _action_encoder is None:
        _action_encoder = ActionEncoder()
    return _action_encoder
