"""
牌的定义与编码

Skip-Bo 使用 162 张牌：
- 1-12 各 12 张
- Skip-Bo 万能牌 18 张
"""
from dataclasses import dataclass
from typing import List, Optional, Tuple


# 牌面范围
MIN_CARD_VALUE = 1
MAX_CARD_VALUE = 12

# 牌组构成
COPIES_PER_VALUE = 12
WILD_COUNT = 18
DECK_SIZE = COPIES_PER_VALUE * MAX_CARD_VALUE + WILD_COUNT

# 固定的桌面规格
HAND_SIZE = 5
DISCARD_PILE_COUNT = 4
BUILD_PILE_COUNT = 4
MIN_PLAYERS = 2
MAX_PLAYERS = 6

# 万能牌的显示字符
WILD_STR = "SB"

# 编码桶数: 1-12 + 万能牌
CARD_BUCKETS = MAX_CARD_VALUE + 1


@dataclass(frozen=True, slots=True)
class Card:
    """
    不可变牌表示

    Attributes:
        value: 牌面值 1-12，None 表示 Skip-Bo 万能牌
    """
    value: Optional[int] = None

    @classmethod
    def number(cls, value: int) -> 'Card':
        """创建数字牌"""
        if not MIN_CARD_VALUE <= value <= MAX_CARD_VALUE:
            raise ValueError(
                f"Card value must be between {MIN_CARD_VALUE} and {MAX_CARD_VALUE}, got {value}"
            )
        return cls(value=value)

    @classmethod
    def wild(cls) -> 'Card':
        """创建万能牌"""
        return cls(value=None)

    @property
    def is_wild(self) -> bool:
        return self.value is None

    def matches(self, required: int) -> bool:
        """
        检查该牌能否满足建牌堆要求的值

        数字牌必须严格相等，万能牌可充当任意值
        """
        if self.value is None:
            return MIN_CARD_VALUE <= required <= MAX_CARD_VALUE
        return self.value == required

    def __str__(self) -> str:
        return card_to_str(self)


WILD = Card.wild()


def full_deck() -> List[Card]:
    """构建未洗牌的完整 162 张牌组 (顺序固定)"""
    deck = []
    for _ in range(COPIES_PER_VALUE):
        for value in range(MIN_CARD_VALUE, MAX_CARD_VALUE + 1):
            deck.append(Card(value))
    deck.extend([WILD] * WILD_COUNT)
    return deck


def card_bucket(card: Card) -> int:
    """牌到编码桶的映射: 数字牌 0-11，万能牌 12"""
    if card.is_wild:
        return CARD_BUCKETS - 1
    return card.value - 1


def card_to_str(card: Card) -> str:
    """牌转显示字符串"""
    return WILD_STR if card.is_wild else str(card.value)


def str_to_card(s: str) -> Card:
    """显示字符串转牌，如 "7" 或 "SB" """
    token = s.strip().upper()
    if token in (WILD_STR, "W", "*"):
        return WILD
    try:
        return Card.number(int(token))
    except ValueError:
        raise ValueError(f"Invalid card string: {s!r}") from None


def cards_to_str(cards: List[Card]) -> str:
    """牌列表转可读字符串，如 "1 2 SB 4" """
    return " ".join(card_to_str(c) for c in cards)


def str_to_cards(s: str) -> List[Card]:
    """空白分隔的字符串转牌列表"""
    return [str_to_card(token) for token in s.split()]


def deck_composition(cards: List[Card]) -> Tuple[int, ...]:
    """
    统计牌组中各桶的数量

    Returns:
        长度为 CARD_BUCKETS 的元组，最后一位为万能牌数量
    """
    counts = [0] * CARD_BUCKETS
    for card in cards:
        counts[card_bucket(card)] += 1
    return tuple(counts)
