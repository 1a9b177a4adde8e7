#!/usr/bin/env python3
"""
评估脚本

Usage:
    python scripts/evaluate.py rule random --games 200
    python scripts/evaluate.py model:checkpoints/policy.pt rule random --stock-size 10
    python scripts/evaluate.py rule random model:checkpoints/policy.pt --tournament --workers 4
"""
import argparse
import logging
import sys
from collections import defaultdict
from pathlib import Path
from typing import Dict, List
import json

# 添加项目根目录到路径
ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT))

import numpy as np

from core import GameConfig, GameError, MIN_PLAYERS, MAX_PLAYERS
from evaluation import (
    Agent,
    ParallelArena,
    create_agent,
    play_game,
)
from evaluation.agents import U64_MASK

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)

DEFAULT_SEED = 0xC0FFEE << 32 | 0x5EED
SEATING_SALT = 0x9E37_79B9


def parse_args():
    parser = argparse.ArgumentParser(description="Skip-Bo Evaluation")

    parser.add_argument("bots", nargs="+", help="Bot specs: rule, random[:seed], model:<path>")

    # 模式
    parser.add_argument("--tournament", action="store_true",
                        help="Round robin over every ordered pairing instead of full-table games")

    # 评估参数
    parser.add_argument("--games", type=int, default=200, help="Number of games (per pairing in tournament mode)")
    parser.add_argument("--seed", type=lambda s: int(s, 0), default=DEFAULT_SEED, help="Base seed")
    parser.add_argument("--max-turns", type=int, default=2000, help="Turn cap per game")
    parser.add_argument("--stock-size", type=int, default=None, help="Override stock size")
    parser.add_argument("--workers", type=int, default=1, help="Parallel workers (tournament mode)")

    # 其他
    parser.add_argument("--device", type=str, default="cpu", help="Device for model bots")
    parser.add_argument("--output", type=str, help="Output file for results")
    parser.add_argument("--verbose", action="store_true", help="Verbose output")

    return parser.parse_args()


def build_agents(specs: List[str], seed: int, device: str) -> List[Agent]:
    """按规格创建智能体，禁止人类玩家"""
    if any(spec.lower().startswith("human") for spec in specs):
        raise ValueError("human players are not supported in evaluation runs")
    return [create_agent(spec, index, seed, device=device) for index, spec in enumerate(specs)]


def run_winrate(args, agents: List[Agent]) -> Dict[str, Dict[str, float]]:
    """
    全员同桌对局，每局随机排座

    Returns:
        按智能体名称汇总的统计
    """
    num_players = len(agents)
    stats = {agent.name: defaultdict(float) for agent in agents}
    unfinished = 0

    for game_idx in range(args.games):
        seating_rng = np.random.default_rng((args.seed ^ SEATING_SALT ^ game_idx) & U64_MASK)
        order = seating_rng.permutation(num_players)
        seated = [agents[i] for i in order]

        config = GameConfig(
            num_players=num_players,
            seed=(args.seed + game_idx) & U64_MASK,
            stock_size=args.stock_size,
        )
        result = play_game(seated, config, args.max_turns, seed_agents=True)

        for agent in seated:
            stats[agent.name]["seats"] += 1
        if result.winner is None:
            unfinished += 1
        else:
            winner_stats = stats[result.winner_name]
            winner_stats["wins"] += 1
            winner_stats["points"] += result.points

        if args.verbose and (game_idx + 1) % 10 == 0:
            logger.info(f"Game {game_idx + 1}/{args.games} done")

    summary = {}
    for name, s in stats.items():
        seats = s["seats"]
        summary[name] = {
            "wins": int(s["wins"]),
            "seats": int(seats),
            "win_rate": s["wins"] / seats if seats > 0 else 0.0,
            "avg_points": s["points"] / seats if seats > 0 else 0.0,
            "total_points": int(s["points"]),
        }

    ranking = sorted(summary.items(), key=lambda item: (-item[1]["win_rate"], item[0]))
    logger.info("=" * 50)
    logger.info("Win rates (per-seat) with scoring")
    logger.info("=" * 50)
    for name, s in ranking:
        logger.info(
            f"  {name:<12}  {s['wins']}/{s['seats']}  ({s['win_rate']:.2%})  "
            f"avg pts: {s['avg_points']:>6.2f}  total pts: {s['total_points']}"
        )
    if unfinished > 0:
        logger.info(f"Note: {unfinished} game(s) ended without a winner (draws or timeouts).")
    logger.info("=" * 50)

    return summary


def run_tournament(args, agents: List[Agent]):
    """两两循环赛"""
    logger.info(f"Running tournament with {len(agents)} agents")
    arena = ParallelArena(
        n_workers=args.workers,
        base_seed=args.seed,
        max_turns=args.max_turns,
        stock_size=args.stock_size,
    )
    result = arena.round_robin(agents, games_per_match=args.games)

    logger.info("=" * 50)
    logger.info("Tournament Results")
    logger.info("=" * 50)
    ranking = result.get_ranking()
    for i, (name, win_rate) in enumerate(ranking):
        logger.info(
            f"{i+1}. {name}: {win_rate:.2%} "
            f"(avg pts {result.standings[name]['avg_points']:.2f})"
        )
    logger.info("=" * 50)

    return {
        "rankings": ranking,
        "total_games": result.total_games,
        "standings": result.standings,
    }


def main():
    args = parse_args()

    if not MIN_PLAYERS <= len(args.bots) <= MAX_PLAYERS and not args.tournament:
        logger.error(
            f"expected between {MIN_PLAYERS} and {MAX_PLAYERS} players, received {len(args.bots)}"
        )
        sys.exit(1)

    try:
        agents = build_agents(args.bots, args.seed, args.device)
        if args.tournament:
            output = run_tournament(args, agents)
        else:
            output = run_winrate(args, agents)
    except (GameError, ValueError, FileNotFoundError) as e:
        logger.error(f"Error: {e}")
        sys.exit(1)

    if args.output:
        with open(args.output, "w") as f:
            json.dump(output, f, indent=2)
        logger.info(f"Results saved to {args.output}")


if __name__ == "__main__":
    main()
