"""
Core Layer - 纯游戏逻辑 (无 ML 依赖)

Modules:
    cards: 牌定义与牌组
    actions: 动作类型
    errors: 引擎错误
    state: 设置、状态与只读快照
    piles: 建牌堆与玩家状态
    deck: 随机源与牌库管理
    rules: 规则引擎
    game: 对局编排器
"""
from .cards import (
    Card,
    WILD,
    MIN_CARD_VALUE,
    MAX_CARD_VALUE,
    COPIES_PER_VALUE,
    WILD_COUNT,
    DECK_SIZE,
    HAND_SIZE,
    DISCARD_PILE_COUNT,
    BUILD_PILE_COUNT,
    MIN_PLAYERS,
    MAX_PLAYERS,
    CARD_BUCKETS,
    full_deck,
    card_bucket,
    card_to_str,
    str_to_card,
    cards_to_str,
    str_to_cards,
    deck_composition,
)

from .actions import (
    SourceType,
    CardSource,
    ActionType,
    Action,
)

from .errors import (
    GameError,
    InvalidPlayerError,
    NotPlayersTurnError,
    GameOverError,
    InvalidConfigurationError,
    InvalidActionError,
    HandIndexError,
    DiscardIndexError,
    BuildPileIndexError,
    NoCardAvailableError,
    CardMismatchError,
    MustDiscardError,
    EmptyHandError,
)

from .state import (
    GameSettings,
    GameStatus,
    TurnPhase,
    BuildPileView,
    PlayerPublicState,
    GameStateView,
)

from .piles import BuildPile, PlayerState
from .deck import RandomSource, GameRng, DeckManager
from .rules import RuleEngine
from .game import DEFAULT_SEED, GameConfig, GameBuilder, Game

__all__ = [
    # cards
    "Card",
    "WILD",
    "MIN_CARD_VALUE",
    "MAX_CARD_VALUE",
    "COPIES_PER_VALUE",
    "WILD_COUNT",
    "DECK_SIZE",
    "HAND_SIZE",
    "DISCARD_PILE_COUNT",
    "BUILD_PILE_COUNT",
    "MIN_PLAYERS",
    "MAX_PLAYERS",
    "CARD_BUCKETS",
    "full_deck",
    "card_bucket",
    "card_to_str",
    "str_to_card",
    "cards_to_str",
    "str_to_cards",
    "deck_composition",
    # actions
    "SourceType",
    "CardSource",
    "ActionType",
    "Action",
    # errors
    "GameError",
    "InvalidPlayerError",
    "NotPlayersTurnError",
    "GameOverError",
    "InvalidConfigurationError",
    "InvalidActionError",
    "HandIndexError",
    "DiscardIndexError",
    "BuildPileIndexError",
    "NoCardAvailableError",
    "CardMismatchError",
    "MustDiscardError",
    "EmptyHandError",
    # state
    "GameSettings",
    "GameStatus",
    "TurnPhase",
    "BuildPileView",
    "PlayerPublicState",
    "GameStateView",
    # piles / deck / rules
    "BuildPile",
    "PlayerState",
    "RandomSource",
    "GameRng",
    "DeckManager",
    "RuleEngine",
    # game
    "DEFAULT_SEED",
    "GameConfig",
    "GameBuilder",
    "Game",
]
