"""
动作类型定义

Skip-Bo 回合内只有三种动作:
- PLAY: 从手牌/库存牌/弃牌堆打出一张牌到建牌堆
- DISCARD: 将一张手牌放到弃牌堆 (结束回合)
- END_TURN: 手牌为空时结束回合
"""
from enum import Enum, IntEnum
from dataclasses import dataclass
from typing import Optional


class SourceType(Enum):
    """出牌来源"""
    HAND = "hand"        # 手牌 (按索引)
    STOCK = "stock"      # 库存牌堆顶
    DISCARD = "discard"  # 弃牌堆顶 (按索引)


@dataclass(frozen=True, slots=True)
class CardSource:
    """
    出牌来源

    Attributes:
        kind: 来源类型
        index: 手牌索引或弃牌堆索引，库存牌为 None
    """
    kind: SourceType
    index: Optional[int] = None

    @classmethod
    def hand(cls, index: int) -> 'CardSource':
        return cls(SourceType.HAND, index)

    @classmethod
    def stock(cls) -> 'CardSource':
        return cls(SourceType.STOCK)

    @classmethod
    def discard(cls, index: int) -> 'CardSource':
        return cls(SourceType.DISCARD, index)

    def __str__(self) -> str:
        if self.kind == SourceType.STOCK:
            return "stock"
        return f"{self.kind.value}[{self.index}]"


class ActionType(IntEnum):
    """动作类型"""
    PLAY = 0
    DISCARD = 1
    END_TURN = 2


@dataclass(frozen=True, slots=True)
class Action:
    """
    不可变动作表示

    通过 play / discard / end_turn 构造，字段按动作类型取用:
    - PLAY: source, build_pile
    - DISCARD: hand_index, discard_pile
    - END_TURN: 无

    手牌索引在移除后会前移，同一回合内不要复用过期的索引
    """
    action_type: ActionType
    source: Optional[CardSource] = None
    build_pile: Optional[int] = None
    hand_index: Optional[int] = None
    discard_pile: Optional[int] = None

    @classmethod
    def play(cls, source: CardSource, build_pile: int) -> 'Action':
        """创建出牌动作"""
        return cls(ActionType.PLAY, source=source, build_pile=build_pile)

    @classmethod
    def discard(cls, hand_index: int, discard_pile: int) -> 'Action':
        """创建弃牌动作"""
        return cls(ActionType.DISCARD, hand_index=hand_index, discard_pile=discard_pile)

    @classmethod
    def end_turn(cls) -> 'Action':
        """创建结束回合动作"""
        return cls(ActionType.END_TURN)

    @property
    def is_play(self) -> bool:
        return self.action_type == ActionType.PLAY

    @property
    def is_discard(self) -> bool:
        return self.action_type == ActionType.DISCARD

    @property
    def is_end_turn(self) -> bool:
        return self.action_type == ActionType.END_TURN

    def __str__(self) -> str:
        if self.is_play:
            return f"Play({self.source} -> build[{self.build_pile}])"
        if self.is_discard:
            return f"Discard(hand[{self.hand_index}] -> discard[{self.discard_pile}])"
        return "EndTurn"
