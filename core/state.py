"""
游戏设置、状态枚举与只读快照

快照全部使用 frozen dataclass + tuple:
- 可哈希
- 调用方无法修改引擎内部状态
- 易于序列化
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from .cards import (
    Card,
    HAND_SIZE,
    DISCARD_PILE_COUNT,
    BUILD_PILE_COUNT,
    MIN_PLAYERS,
    MAX_PLAYERS,
)
from .errors import InvalidConfigurationError


# 库存牌默认张数 (<=4 人 30 张，5-6 人 20 张)
SMALL_TABLE_STOCK_SIZE = 30
LARGE_TABLE_STOCK_SIZE = 20
SMALL_TABLE_MAX_PLAYERS = 4


class GameStatus(Enum):
    """对局状态"""
    ONGOING = "ongoing"
    FINISHED = "finished"  # 有玩家获胜
    DRAW = "draw"          # 僵局，无人获胜

    @property
    def is_terminal(self) -> bool:
        return self != GameStatus.ONGOING


class TurnPhase(Enum):
    """回合阶段 (与 GameStatus 同步)"""
    AWAITING_ACTION = "awaiting_action"
    GAME_OVER = "game_over"


def default_stock_size(num_players: int) -> int:
    """根据玩家人数返回默认库存牌张数"""
    if num_players <= SMALL_TABLE_MAX_PLAYERS:
        return SMALL_TABLE_STOCK_SIZE
    return LARGE_TABLE_STOCK_SIZE


@dataclass(frozen=True)
class GameSettings:
    """
    对局固定参数

    Attributes:
        num_players: 玩家人数 (2-6)
        stock_size: 每名玩家的库存牌张数
        hand_size: 手牌上限
        discard_piles: 每名玩家的弃牌堆数
        build_piles: 公共建牌堆数
    """
    num_players: int
    stock_size: int
    hand_size: int = HAND_SIZE
    discard_piles: int = DISCARD_PILE_COUNT
    build_piles: int = BUILD_PILE_COUNT

    @classmethod
    def for_players(cls, num_players: int) -> 'GameSettings':
        """
        按人数创建默认设置

        Raises:
            InvalidConfigurationError: 人数不在 2-6 之间
        """
        if not MIN_PLAYERS <= num_players <= MAX_PLAYERS:
            raise InvalidConfigurationError(
                f"players must be between {MIN_PLAYERS} and {MAX_PLAYERS}"
            )
        return cls(num_players=num_players, stock_size=default_stock_size(num_players))


@dataclass(frozen=True)
class BuildPileView:
    """建牌堆公开信息"""
    cards: Tuple[Card, ...] = ()
    next_value: int = 1


@dataclass(frozen=True)
class PlayerPublicState:
    """
    所有玩家都可见的玩家信息

    Attributes:
        id: 玩家索引
        stock_count: 库存牌剩余张数
        stock_top: 库存牌堆顶 (明牌)
        discard_tops: 各弃牌堆顶
        discard_counts: 各弃牌堆张数
        hand_size: 手牌张数 (不含内容)
        is_current: 是否当前行动玩家
        has_won: 是否已获胜
    """
    id: int
    stock_count: int
    stock_top: Optional[Card]
    discard_tops: Tuple[Optional[Card], ...]
    discard_counts: Tuple[int, ...]
    hand_size: int
    is_current: bool
    has_won: bool


@dataclass(frozen=True)
class GameStateView:
    """
    面向智能体的游戏快照

    只有 self_player 的手牌内容可见，其他玩家仅暴露手牌张数；
    摸牌堆与回收堆只暴露张数
    """
    settings: GameSettings
    phase: TurnPhase
    status: GameStatus
    winner: Optional[int]
    self_player: int
    current_player: int
    draw_pile_count: int
    recycle_pile_count: int
    build_piles: Tuple[BuildPileView, ...]
    players: Tuple[PlayerPublicState, ...]
    hand: Tuple[Card, ...] = field(default_factory=tuple)

    @property
    def me(self) -> PlayerPublicState:
        """视角玩家的公开信息"""
        return self.players[self.self_player]

    @property
    def is_finished(self) -> bool:
        return self.status.is_terminal

    def opponents(self) -> Tuple[PlayerPublicState, ...]:
        return tuple(p for p in self.players if p.id != self.self_player)
