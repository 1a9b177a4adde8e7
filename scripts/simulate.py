#!/usr/bin/env python3
"""
对局模拟脚本

Usage:
    python scripts/simulate.py                      # 人类 vs 随机
    python scripts/simulate.py rule random --visualize
    python scripts/simulate.py random:7 rule model:checkpoints/best.pt --seed 42
"""
import argparse
import logging
import sys
from pathlib import Path

# 添加项目根目录到路径
ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT))

from core import Game, GameError, MIN_PLAYERS, MAX_PLAYERS
from env import render_state, describe_action
from evaluation import create_agent, HumanQuit

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)

DEFAULT_SEED = 0xDEC0_1DED_5EED_F00D


def parse_args():
    parser = argparse.ArgumentParser(
        description="Skip-Bo Simulation",
        epilog=(
            "Bot entries (2-6 total): human[:name], random[:seed], rule, "
            "model:<path>[:sample]. Defaults to one human and one random bot."
        ),
    )
    parser.add_argument("bots", nargs="*", default=["human", "random"], help="Bot specs, one per seat")
    parser.add_argument("--seed", type=lambda s: int(s, 0), default=DEFAULT_SEED, help="Deck shuffle seed")
    parser.add_argument("--max-turns", type=int, default=None, help="Stop after this many turns")
    parser.add_argument("--stock-size", type=int, default=None, help="Override stock size per player")
    parser.add_argument("--visualize", action="store_true", help="Show state and chosen action each step")
    parser.add_argument("--device", type=str, default="cpu", help="Device for model bots")
    return parser.parse_args()


def run(args) -> int:
    """运行一局模拟，返回进程退出码"""
    num_players = len(args.bots)
    if not MIN_PLAYERS <= num_players <= MAX_PLAYERS:
        logger.error(
            f"expected between {MIN_PLAYERS} and {MAX_PLAYERS} players, received {num_players}"
        )
        return 1

    builder = Game.builder(num_players).with_seed(args.seed)
    if args.stock_size is not None:
        builder = builder.with_stock_size(args.stock_size)
    game = builder.build()

    agents = [
        create_agent(spec, index, args.seed, device=args.device)
        for index, spec in enumerate(args.bots)
    ]

    print(f"Starting Skip-Bo simulation with {num_players} players.\n")
    while not game.is_finished:
        if args.max_turns is not None and game.turn_count >= args.max_turns:
            print(f"Max turn limit {args.max_turns} reached. Stopping simulation.")
            break
        current = game.current_player
        view = game.state_view(current)
        legal_actions = game.legal_actions(current)
        if args.visualize:
            print(render_state(view))
        action = agents[current].select_action(view, legal_actions)
        if args.visualize:
            print(f"Chosen action: {describe_action(view, action)}\n")
        game.apply_action(current, action)

    if game.winner is not None:
        print(f"Game finished. Winner: Player {game.winner}.")
    elif game.is_finished:
        print("Game ended in a draw.")
    else:
        print("Simulation stopped before completion.")
    return 0


def main():
    args = parse_args()
    try:
        code = run(args)
    except HumanQuit as e:
        print(f"{e} left the game.")
        code = 0
    except (GameError, ValueError, FileNotFoundError) as e:
        logger.error(f"Error: {e}")
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()
