"""
对局编排器

Game 是唯一的状态修改者:
- 合法动作枚举
- 动作执行与回合推进
- 胜负与僵局判定
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import logging

from .cards import Card, full_deck
from .actions import Action, ActionType, CardSource, SourceType
from .errors import (
    InvalidPlayerError,
    NotPlayersTurnError,
    GameOverError,
    InvalidConfigurationError,
    DiscardIndexError,
    HandIndexError,
    NoCardAvailableError,
    MustDiscardError,
    EmptyHandError,
)
from .state import GameSettings, GameStatus, TurnPhase, GameStateView, PlayerPublicState
from .piles import BuildPile, PlayerState
from .deck import DeckManager, GameRng, RandomSource
from .rules import RuleEngine

logger = logging.getLogger(__name__)


DEFAULT_SEED = 0x5EED_5EED_5EED_5EED


@dataclass
class GameConfig:
    """
    对局配置

    Attributes:
        num_players: 玩家人数 (2-6)
        seed: 随机种子 (缺省为固定常量，保证可复现)
        stock_size: 覆盖默认库存牌张数
        deck: 预置牌组 (末尾先发，测试用)，提供时不洗牌
    """
    num_players: int
    seed: int = DEFAULT_SEED
    stock_size: Optional[int] = None
    deck: Optional[List[Card]] = field(default=None, repr=False)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'GameConfig':
        valid_keys = cls.__dataclass_fields__.keys()
        filtered = {k: v for k, v in d.items() if k in valid_keys}
        return cls(**filtered)


class GameBuilder:
    """
    对局构建器

    支持注入固定牌组，用于确定性测试和数据生成
    """

    def __init__(self, num_players: int):
        GameSettings.for_players(num_players)
        self.config = GameConfig(num_players=num_players)

    def with_seed(self, seed: int) -> 'GameBuilder':
        self.config.seed = seed
        return self

    def with_deck(self, deck: List[Card]) -> 'GameBuilder':
        self.config.deck = list(deck)
        return self

    def with_stock_size(self, stock_size: int) -> 'GameBuilder':
        """覆盖默认库存牌张数 (默认: <=4 人 30 张，否则 20 张)"""
        self.config.stock_size = stock_size
        return self

    def build(self) -> 'Game':
        return Game(self.config)


class Game:
    """
    Skip-Bo 对局

    调用流程: legal_actions(player) -> apply_action(player, action) -> state_view(player)

    僵局规则: 一个回合以 END_TURN 结束、期间没有任何牌移动、玩家无牌可出、
    且摸牌堆与回收堆都为空，记为停滞回合；连续 num_players 个停滞回合后判为 DRAW
    """

    def __init__(self, config: GameConfig, rng: Optional[RandomSource] = None):
        settings = GameSettings.for_players(config.num_players)
        if config.stock_size is not None:
            if config.stock_size <= 0:
                raise InvalidConfigurationError("stock size must be positive")
            settings = GameSettings(
                num_players=settings.num_players,
                stock_size=config.stock_size,
            )
        if config.seed is None or config.seed < 0:
            raise InvalidConfigurationError("seed must be a non-negative integer")

        self._settings = settings
        self._seed = config.seed
        self._rng = rng if rng is not None else GameRng(config.seed)

        if config.deck is not None:
            deck = list(config.deck)
        else:
            deck = full_deck()
            self._rng.shuffle(deck)
        self._total_cards = len(deck)

        required_stock_cards = settings.stock_size * settings.num_players
        if len(deck) < required_stock_cards:
            raise InvalidConfigurationError(
                "deck does not contain enough cards to deal stocks"
            )

        self._players: List[PlayerState] = []
        for _ in range(settings.num_players):
            stock = [deck.pop() for _ in range(settings.stock_size)]
            self._players.append(PlayerState(stock, settings.discard_piles))

        self._build_piles = [BuildPile() for _ in range(settings.build_piles)]
        self._deck = DeckManager(deck, self._rng)

        self._status = GameStatus.ONGOING
        self._phase = TurnPhase.AWAITING_ACTION
        self._winner: Optional[int] = None
        self._current_player = 0
        self._turn_count = 0
        self._cards_moved_this_turn = False
        self._stalled_turns = 0

        logger.debug(
            f"New game: {settings.num_players} players, stock {settings.stock_size}, "
            f"draw pile {self._deck.draw_count}, seed {config.seed:#x}"
        )
        self._begin_turn()

    @classmethod
    def builder(cls, num_players: int) -> GameBuilder:
        return GameBuilder(num_players)

    # ------------------------------------------------------------------
    # 只读访问
    # ------------------------------------------------------------------

    @property
    def settings(self) -> GameSettings:
        return self._settings

    @property
    def status(self) -> GameStatus:
        return self._status

    @property
    def turn_phase(self) -> TurnPhase:
        return self._phase

    @property
    def current_player(self) -> int:
        return self._current_player

    @property
    def winner(self) -> Optional[int]:
        return self._winner

    @property
    def seed(self) -> int:
        return self._seed

    @property
    def turn_count(self) -> int:
        """已结束的回合数"""
        return self._turn_count

    @property
    def is_finished(self) -> bool:
        return self._status.is_terminal

    def total_cards(self) -> int:
        """所有区域的牌数之和 (应恒等于初始牌组大小)"""
        return (
            self._deck.draw_count
            + self._deck.recycle_count
            + sum(player.card_count() for player in self._players)
            + sum(len(pile) for pile in self._build_piles)
        )

    @property
    def deck_size(self) -> int:
        return self._total_cards

    def state_view(self, perspective: int) -> GameStateView:
        """
        构建指定玩家视角的快照

        Raises:
            InvalidPlayerError: 视角玩家不存在
        """
        self._check_player(perspective)
        players = tuple(
            PlayerPublicState(
                id=idx,
                stock_count=len(player.stock),
                stock_top=player.stock_top,
                discard_tops=player.discard_tops(),
                discard_counts=player.discard_counts(),
                hand_size=len(player.hand),
                is_current=idx == self._current_player,
                has_won=player.has_won,
            )
            for idx, player in enumerate(self._players)
        )
        return GameStateView(
            settings=self._settings,
            phase=self._phase,
            status=self._status,
            winner=self._winner,
            self_player=perspective,
            current_player=self._current_player,
            draw_pile_count=self._deck.draw_count,
            recycle_pile_count=self._deck.recycle_count,
            build_piles=tuple(pile.as_view() for pile in self._build_piles),
            players=players,
            hand=tuple(self._players[perspective].hand),
        )

    # ------------------------------------------------------------------
    # 动作
    # ------------------------------------------------------------------

    def legal_actions(self, player: int) -> List[Action]:
        """
        获取玩家的合法动作

        Returns:
            动作列表；对局结束后为空

        Raises:
            InvalidPlayerError / NotPlayersTurnError
        """
        self._check_player(player)
        if self.is_finished:
            return []
        if player != self._current_player:
            raise NotPlayersTurnError(player)
        return RuleEngine.generate_actions(self._players[player], self._build_piles)

    def apply_action(self, player: int, action: Action):
        """
        执行动作

        动作会被独立重新校验，不要求来自 legal_actions 的返回值

        Raises:
            InvalidPlayerError / GameOverError / NotPlayersTurnError / InvalidActionError
        """
        self._check_player(player)
        if self.is_finished:
            raise GameOverError()
        if player != self._current_player:
            raise NotPlayersTurnError(player)

        if action.action_type == ActionType.PLAY:
            self._play_card(action.source, action.build_pile)
        elif action.action_type == ActionType.DISCARD:
            self._discard_card(action.hand_index, action.discard_pile)
            self._advance_turn()
        elif action.action_type == ActionType.END_TURN:
            if self._players[player].hand:
                raise MustDiscardError()
            self._advance_turn(ended_by_end_turn=True)
        else:
            raise ValueError(f"Unknown action type: {action.action_type}")

    # ------------------------------------------------------------------
    # 内部实现
    # ------------------------------------------------------------------

    def _check_player(self, player: int):
        if not isinstance(player, int) or not 0 <= player < len(self._players):
            raise InvalidPlayerError(player)

    def _refill_hand(self, player: PlayerState):
        """补满手牌，供应耗尽时允许手牌不足"""
        while len(player.hand) < self._settings.hand_size:
            card = self._deck.draw_card()
            if card is None:
                break
            player.hand.append(card)

    def _begin_turn(self):
        if self.is_finished:
            self._phase = TurnPhase.GAME_OVER
            return
        self._phase = TurnPhase.AWAITING_ACTION
        self._cards_moved_this_turn = False
        self._refill_hand(self._players[self._current_player])

    def _advance_turn(self, ended_by_end_turn: bool = False):
        self._turn_count += 1
        if ended_by_end_turn and self._is_stalled_turn():
            self._stalled_turns += 1
        else:
            self._stalled_turns = 0

        if self._stalled_turns >= self._settings.num_players:
            self._status = GameStatus.DRAW
            self._phase = TurnPhase.GAME_OVER
            logger.debug(
                f"Stalemate after {self._stalled_turns} stalled turns, game is a draw"
            )
            return

        self._current_player = (self._current_player + 1) % len(self._players)
        self._begin_turn()

    def _is_stalled_turn(self) -> bool:
        player = self._players[self._current_player]
        return (
            not self._cards_moved_this_turn
            and self._deck.is_exhausted
            and not RuleEngine.has_play(player, self._build_piles)
        )

    def _play_card(self, source: Optional[CardSource], build_pile: Optional[int]):
        if source is None:
            raise NoCardAvailableError()
        player_idx = self._current_player
        player = self._players[player_idx]

        RuleEngine.validate_play(player, self._build_piles, source, build_pile)
        card = RuleEngine.take_from_source(player, source)

        pile = self._build_piles[build_pile]
        pile.push(card)
        self._cards_moved_this_turn = True

        if pile.is_complete():
            self._deck.recycle(pile.take_cards())
            logger.debug(f"Build pile {build_pile} completed and moved to recycle pile")

        # 库存牌打空立即获胜，与手牌状态无关
        if not player.stock:
            player.has_won = True
            self._winner = player_idx
            self._status = GameStatus.FINISHED
            self._phase = TurnPhase.GAME_OVER
            logger.debug(f"Player {player_idx} emptied their stock and wins")
            return

        if source.kind == SourceType.HAND and not player.hand:
            self._refill_hand(player)

    def _discard_card(self, hand_index: Optional[int], discard_pile: Optional[int]):
        player = self._players[self._current_player]
        if discard_pile is None or not 0 <= discard_pile < len(player.discard_piles):
            raise DiscardIndexError(discard_pile)
        if not player.hand:
            raise EmptyHandError()
        if hand_index is None or not 0 <= hand_index < len(player.hand):
            raise HandIndexError(hand_index)
        card = player.hand.pop(hand_index)
        player.discard_piles[discard_pile].append(card)
        self._cards_moved_this_turn = True
