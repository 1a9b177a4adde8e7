"""
随机源与牌库管理

引擎唯一的随机性来源是 Game 持有的种子化 RandomSource，
只在初始洗牌和回收堆重洗时消耗
"""
import logging
from typing import List, Optional

import numpy as np

from .cards import Card

logger = logging.getLogger(__name__)


class RandomSource:
    """随机源接口，可替换为其他确定性生成器"""

    def next_u64(self) -> int:
        """返回一个 64 位无符号随机整数"""
        raise NotImplementedError

    def shuffle(self, items: List) -> None:
        """原地打乱列表"""
        raise NotImplementedError


class GameRng(RandomSource):
    """
    基于 numpy Generator (PCG64) 的随机源

    同一种子产生完全相同的序列
    """

    def __init__(self, seed: int):
        if seed < 0:
            raise ValueError(f"Seed must be non-negative, got {seed}")
        self.seed = seed
        self._generator = np.random.default_rng(seed)

    def next_u64(self) -> int:
        return int(self._generator.integers(0, 2**64 - 1, dtype=np.uint64, endpoint=True))

    def shuffle(self, items: List) -> None:
        order = self._generator.permutation(len(items))
        items[:] = [items[i] for i in order]


class DeckManager:
    """
    摸牌堆与回收堆

    摸牌堆耗尽时用回收堆重洗补充，牌只在各区域间流动，不会被销毁
    """

    def __init__(self, draw_pile: List[Card], rng: RandomSource):
        self.draw_pile: List[Card] = list(draw_pile)
        self.recycle_pile: List[Card] = []
        self._rng = rng
        self.reshuffle_count = 0

    def draw_card(self) -> Optional[Card]:
        """
        摸一张牌

        Returns:
            牌；摸牌堆与回收堆都为空时返回 None
        """
        if self.draw_pile:
            return self.draw_pile.pop()
        if not self.recycle_pile:
            return None
        self._reshuffle_recycle()
        return self.draw_pile.pop()

    def recycle(self, cards: List[Card]):
        """完成的建牌堆进入回收堆"""
        self.recycle_pile.extend(cards)

    def _reshuffle_recycle(self):
        """回收堆洗牌后整体并入摸牌堆"""
        self._rng.shuffle(self.recycle_pile)
        self.draw_pile.extend(self.recycle_pile)
        self.recycle_pile = []
        self.reshuffle_count += 1
        logger.debug(
            f"Reshuffled recycle pile into draw pile ({len(self.draw_pile)} cards)"
        )

    @property
    def draw_count(self) -> int:
        return len(self.draw_pile)

    @property
    def recycle_count(self) -> int:
        return len(self.recycle_pile)

    @property
    def is_exhausted(self) -> bool:
        """摸牌堆与回收堆都为空"""
        return not self.draw_pile and not self.recycle_pile
