"""
建牌堆与玩家私有状态

两者都是被动数据容器，只由 Game 修改
"""
from typing import List, Optional, Tuple

from .cards import Card, MAX_CARD_VALUE, DISCARD_PILE_COUNT
from .state import BuildPileView


class BuildPile:
    """
    公共建牌堆

    按 1..12 顺序接牌；满 12 张后由 Game 立即清空到回收堆，
    因此外部观察到的长度总在 [0, 11]
    """

    def __init__(self):
        self.cards: List[Card] = []

    def next_value(self) -> int:
        """下一张需要的牌面值，同时决定合法性与是否完成"""
        return (len(self.cards) % MAX_CARD_VALUE) + 1

    def push(self, card: Card):
        """放入一张牌 (调用方负责校验合法性)"""
        self.cards.append(card)

    def is_complete(self) -> bool:
        return len(self.cards) == MAX_CARD_VALUE

    def take_cards(self) -> List[Card]:
        """取走全部牌并重置"""
        cards, self.cards = self.cards, []
        return cards

    def as_view(self) -> BuildPileView:
        return BuildPileView(cards=tuple(self.cards), next_value=self.next_value())

    def __len__(self) -> int:
        return len(self.cards)


class PlayerState:
    """
    玩家私有状态

    Attributes:
        stock: 库存牌 (末尾为堆顶，只减不增)
        hand: 手牌 (按索引移除，后续索引前移)
        discard_piles: 弃牌堆 (末尾为堆顶)
        has_won: 是否获胜 (只会被设置一次)
    """

    def __init__(self, stock: List[Card], discard_pile_count: int = DISCARD_PILE_COUNT):
        self.stock: List[Card] = list(stock)
        self.hand: List[Card] = []
        self.discard_piles: List[List[Card]] = [[] for _ in range(discard_pile_count)]
        self.has_won = False

    @property
    def stock_top(self) -> Optional[Card]:
        return self.stock[-1] if self.stock else None

    def discard_top(self, index: int) -> Optional[Card]:
        if not 0 <= index < len(self.discard_piles):
            return None
        pile = self.discard_piles[index]
        return pile[-1] if pile else None

    def discard_tops(self) -> Tuple[Optional[Card], ...]:
        return tuple(self.discard_top(i) for i in range(len(self.discard_piles)))

    def discard_counts(self) -> Tuple[int, ...]:
        return tuple(len(pile) for pile in self.discard_piles)

    def card_count(self) -> int:
        """该玩家持有的全部牌数 (库存 + 手牌 + 弃牌堆)"""
        return len(self.stock) + len(self.hand) + sum(self.discard_counts())
