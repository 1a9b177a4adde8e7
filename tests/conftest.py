"""测试公共夹具"""
import pytest

from core.cards import Card, WILD
from core.game import Game, GameConfig


def stacked_deck(stocks, draw, stock_size, filler=None):
    """
    构造预置牌组

    Args:
        stocks: 每名玩家库存牌的顶部若干张，stocks[i][0] 为堆顶
        draw: 摸牌堆，末尾先摸
        stock_size: 每名玩家库存张数，不足部分用 filler 补齐
    """
    filler = filler or Card(12)
    deck = list(draw)
    for prefix in reversed(stocks):
        deck.extend(list(prefix) + [filler] * (stock_size - len(prefix)))
    return deck


@pytest.fixture
def make_game():
    """按预置库存与摸牌序列创建对局"""

    def _make(stocks, draw, stock_size=None):
        stock_size = stock_size or max(len(s) for s in stocks)
        deck = stacked_deck(stocks, draw, stock_size)
        return Game(GameConfig(
            num_players=len(stocks),
            stock_size=stock_size,
            deck=deck,
        ))

    return _make


@pytest.fixture
def ordered_hand():
    """摸牌序列，使 0 号玩家起手为 1 2 3 4 5"""
    return [Card(5), Card(4), Card(3), Card(2), Card(1)]


@pytest.fixture
def wild():
    return WILD
