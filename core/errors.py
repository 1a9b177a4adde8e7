"""
引擎错误类型

两级结构:
- GameError: 玩家/回合/终局/配置错误
- InvalidActionError: 动作本身不合法 (GameError 子类)
"""
from typing import Optional


class GameError(Exception):
    """游戏引擎错误基类"""


class InvalidPlayerError(GameError):
    def __init__(self, player: int):
        self.player = player
        super().__init__(f"player index {player} is out of range")


class NotPlayersTurnError(GameError):
    def __init__(self, player: Optional[int] = None):
        self.player = player
        super().__init__("not the specified player's turn")


class GameOverError(GameError):
    def __init__(self):
        super().__init__("game is already over")


class InvalidConfigurationError(GameError):
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"invalid configuration: {reason}")


class InvalidActionError(GameError):
    """非法动作基类"""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"invalid action: {detail}")


class HandIndexError(InvalidActionError):
    def __init__(self, index: int):
        self.index = index
        super().__init__(f"hand index {index} is out of range")


class DiscardIndexError(InvalidActionError):
    def __init__(self, index: int):
        self.index = index
        super().__init__(f"discard pile index {index} is out of range")


class BuildPileIndexError(InvalidActionError):
    def __init__(self, index: int):
        self.index = index
        super().__init__(f"build pile index {index} is out of range")


class NoCardAvailableError(InvalidActionError):
    def __init__(self):
        super().__init__("no card available in the selected source")


class CardMismatchError(InvalidActionError):
    def __init__(self, required: int):
        self.required = required
        super().__init__(f"card does not match required value {required}")


class MustDiscardError(InvalidActionError):
    def __init__(self):
        super().__init__("player must discard before ending turn")


class EmptyHandError(InvalidActionError):
    def __init__(self):
        super().__init__("player cannot discard because hand is empty")
