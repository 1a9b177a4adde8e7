"""
终局计分
"""
from typing import Optional

from core.state import GameStateView

WIN_BASE_POINTS = 25
POINTS_PER_OPPONENT_CARD = 5


def winner_points(state: GameStateView, winner: Optional[int]) -> int:
    """
    获胜者得分: 25 + 5 × 对手库存牌剩余张数之和

    Args:
        state: 终局快照 (任意视角)
        winner: 获胜玩家，None 表示无人获胜

    Returns:
        得分；无获胜者时为 0
    """
    if winner is None:
        return 0
    remaining = sum(p.stock_count for p in state.players if p.id != winner)
    return WIN_BASE_POINTS + POINTS_PER_OPPONENT_CARD * remaining
