"""
文本渲染

供命令行模拟与人类玩家使用的快照/动作描述
"""
from typing import List, Optional

from core.cards import Card, card_to_str
from core.actions import Action, ActionType, SourceType
from core.state import GameStateView, GameStatus


def _fmt(card: Optional[Card]) -> str:
    return card_to_str(card) if card is not None else "--"


def _status_text(state: GameStateView) -> str:
    if state.status == GameStatus.FINISHED:
        return f"Finished (winner: Player {state.winner})"
    if state.status == GameStatus.DRAW:
        return "Finished (draw)"
    return "Ongoing"


def render_state(
    state: GameStateView,
    show_build_sequences: bool = True,
    show_discard_sizes: bool = True,
) -> str:
    """
    渲染快照为多行文本

    Args:
        state: 视角玩家的快照
        show_build_sequences: 是否显示建牌堆中的牌序
        show_discard_sizes: 是否显示弃牌堆张数

    Returns:
        文本 (以换行结尾)
    """
    you = " (You)" if state.current_player == state.self_player else ""
    lines: List[str] = [
        f"Game status: {_status_text(state)}",
        f"Phase: {state.phase.value}",
        f"Current player: {state.current_player}{you}",
        f"Draw pile: {state.draw_pile_count}  |  Recycle pile: {state.recycle_pile_count}",
        "Build piles:",
    ]

    for idx, pile in enumerate(state.build_piles):
        if show_build_sequences and pile.cards:
            sequence = "[" + " ".join(card_to_str(c) for c in pile.cards) + "]"
        else:
            sequence = "[-]"
        lines.append(f"  [{idx}] next {pile.next_value}  {sequence}")

    lines.append("Players:")
    for player in state.players:
        label = " (You)" if player.id == state.self_player else ""
        current = " <- current" if player.is_current else ""
        lines.append(
            f"  Player {player.id}{label} - stock {player.stock_count} "
            f"(top: {_fmt(player.stock_top)}){current}"
        )

        parts = []
        for idx, top in enumerate(player.discard_tops):
            if show_discard_sizes:
                parts.append(f"{idx}:{_fmt(top)} ({player.discard_counts[idx]})")
            else:
                parts.append(f"{idx}:{_fmt(top)}")
        lines.append(f"    Discards: {'  '.join(parts)}")

        if player.id == state.self_player:
            if state.hand:
                hand = "  ".join(f"{i}:{card_to_str(c)}" for i, c in enumerate(state.hand))
                lines.append(f"    Hand: {hand}")
            else:
                lines.append("    Hand: (empty)")
        else:
            lines.append(f"    Hand size: {player.hand_size}")

    return "\n".join(lines) + "\n"


def describe_action(state: GameStateView, action: Action, include_details: bool = True) -> str:
    """
    描述动作

    Args:
        state: 执行前的快照 (用于查找牌面)
        action: 动作
        include_details: 是否附带牌面与建牌堆需求值

    Returns:
        单行描述
    """
    if action.action_type == ActionType.END_TURN:
        return "End turn"

    if action.action_type == ActionType.DISCARD:
        idx = action.hand_index
        if include_details:
            card = state.hand[idx] if idx is not None and 0 <= idx < len(state.hand) else None
            return f"Discard hand[{idx}] {_fmt(card)} to pile {action.discard_pile}"
        return f"Discard hand[{idx}] to pile {action.discard_pile}"

    source = action.source
    me = state.me
    if source.kind == SourceType.HAND:
        desc = f"hand[{source.index}]"
        if include_details and 0 <= source.index < len(state.hand):
            desc += f" {card_to_str(state.hand[source.index])}"
    elif source.kind == SourceType.STOCK:
        if me.stock_top is None:
            desc = "stock (empty)"
        elif include_details:
            desc = f"stock top {card_to_str(me.stock_top)}"
        else:
            desc = "stock top"
    else:
        desc = f"discard[{source.index}]"
        if include_details:
            top = None
            if 0 <= source.index < len(me.discard_tops):
                top = me.discard_tops[source.index]
            desc += f" {_fmt(top)}"

    if not include_details:
        return f"Play {desc} to build pile {action.build_pile}"
    needs = 0
    if 0 <= action.build_pile < len(state.build_piles):
        needs = state.build_piles[action.build_pile].next_value
    return f"Play {desc} to build pile {action.build_pile} (needs {needs})"
