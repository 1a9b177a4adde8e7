"""
规则引擎 - 合法动作枚举与出牌校验

所有方法都是纯函数，无状态
"""
from typing import List, Optional, Sequence, Tuple

from .cards import Card
from .actions import Action, CardSource, SourceType
from .errors import (
    HandIndexError,
    DiscardIndexError,
    BuildPileIndexError,
    NoCardAvailableError,
    CardMismatchError,
)
from .piles import BuildPile, PlayerState


class RuleEngine:
    """
    Skip-Bo 规则引擎

    合法动作只做机械枚举，不做任何策略性剪枝
    """

    @staticmethod
    def required_values(build_piles: Sequence[BuildPile]) -> Tuple[int, ...]:
        """各建牌堆当前需要的牌面值"""
        return tuple(pile.next_value() for pile in build_piles)

    @staticmethod
    def matching_piles(card: Optional[Card], required: Sequence[int]) -> List[int]:
        """
        返回该牌可以打到的建牌堆索引

        Args:
            card: 待出的牌，None 表示来源为空
            required: 各建牌堆需要的值

        Returns:
            建牌堆索引列表
        """
        if card is None:
            return []
        return [idx for idx, value in enumerate(required) if card.matches(value)]

    @staticmethod
    def generate_plays(player: PlayerState, build_piles: Sequence[BuildPile]) -> List[Action]:
        """
        生成所有出牌动作

        顺序: 手牌 (按索引) -> 库存牌 -> 弃牌堆 (按索引)
        """
        required = RuleEngine.required_values(build_piles)
        actions = []

        for hand_index, card in enumerate(player.hand):
            for pile in RuleEngine.matching_piles(card, required):
                actions.append(Action.play(CardSource.hand(hand_index), pile))

        for pile in RuleEngine.matching_piles(player.stock_top, required):
            actions.append(Action.play(CardSource.stock(), pile))

        for discard_index in range(len(player.discard_piles)):
            top = player.discard_top(discard_index)
            for pile in RuleEngine.matching_piles(top, required):
                actions.append(Action.play(CardSource.discard(discard_index), pile))

        return actions

    @staticmethod
    def generate_actions(player: PlayerState, build_piles: Sequence[BuildPile]) -> List[Action]:
        """
        生成当前玩家的全部合法动作

        - 所有可行的出牌
        - 手牌非空: 全部 (弃牌堆 × 手牌索引) 弃牌组合，弃牌永远合法
        - 手牌为空: 只有 END_TURN
        """
        actions = RuleEngine.generate_plays(player, build_piles)

        if player.hand:
            for discard_pile in range(len(player.discard_piles)):
                for hand_index in range(len(player.hand)):
                    actions.append(Action.discard(hand_index, discard_pile))
        else:
            actions.append(Action.end_turn())

        return actions

    @staticmethod
    def has_play(player: PlayerState, build_piles: Sequence[BuildPile]) -> bool:
        """是否存在至少一个出牌动作"""
        return bool(RuleEngine.generate_plays(player, build_piles))

    @staticmethod
    def peek_source(player: PlayerState, source: CardSource) -> Card:
        """
        查看来源的牌 (不移除)

        Raises:
            HandIndexError / DiscardIndexError / NoCardAvailableError
        """
        if source.kind == SourceType.HAND:
            if source.index is None or not 0 <= source.index < len(player.hand):
                raise HandIndexError(source.index)
            return player.hand[source.index]

        if source.kind == SourceType.STOCK:
            if not player.stock:
                raise NoCardAvailableError()
            return player.stock[-1]

        if source.index is None or not 0 <= source.index < len(player.discard_piles):
            raise DiscardIndexError(source.index)
        top = player.discard_top(source.index)
        if top is None:
            raise NoCardAvailableError()
        return top

    @staticmethod
    def take_from_source(player: PlayerState, source: CardSource) -> Card:
        """从来源移除一张牌 (调用前应已通过 peek_source 校验)"""
        if source.kind == SourceType.HAND:
            return player.hand.pop(source.index)
        if source.kind == SourceType.STOCK:
            return player.stock.pop()
        return player.discard_piles[source.index].pop()

    @staticmethod
    def validate_play(
        player: PlayerState,
        build_piles: Sequence[BuildPile],
        source: CardSource,
        build_pile: Optional[int],
    ) -> Card:
        """
        校验出牌动作

        Returns:
            将被打出的牌

        Raises:
            BuildPileIndexError / HandIndexError / DiscardIndexError /
            NoCardAvailableError / CardMismatchError
        """
        if build_pile is None or not 0 <= build_pile < len(build_piles):
            raise BuildPileIndexError(build_pile)
        required = build_piles[build_pile].next_value()
        card = RuleEngine.peek_source(player, source)
        if not card.matches(required):
            raise CardMismatchError(required)
        return card
