"""
评估器

评估智能体对固定对手的表现
"""
from typing import Dict, List, Optional
from dataclasses import dataclass, field
import logging

from core.game import GameConfig, DEFAULT_SEED
from core.state import GameSettings

from .agents import Agent, RandomAgent, U64_MASK
from .arena import play_game

logger = logging.getLogger(__name__)


@dataclass
class EvalResult:
    """评估结果"""
    win_rate: float
    avg_points: float
    avg_turns: float
    games_played: int
    wins: int = 0
    draws: int = 0
    truncated: int = 0
    seat_win_rates: Dict[int, float] = field(default_factory=dict)

    @property
    def draw_rate(self) -> float:
        return self.draws / self.games_played if self.games_played > 0 else 0.0

    def __repr__(self) -> str:
        return (
            f"EvalResult(win_rate={self.win_rate:.2%}, "
            f"avg_points={self.avg_points:.2f}, "
            f"games={self.games_played})"
        )


class Evaluator:
    """
    评估器

    被评估智能体按对局序号轮换座位，其余座位按顺序由对手填充
    """

    def __init__(
        self,
        num_players: int = 2,
        base_seed: int = DEFAULT_SEED,
        max_turns: Optional[int] = None,
        stock_size: Optional[int] = None,
    ):
        GameSettings.for_players(num_players)
        self.num_players = num_players
        self.base_seed = base_seed
        self.max_turns = max_turns
        self.stock_size = stock_size

    def evaluate(
        self,
        agent: Agent,
        opponents: Optional[List[Agent]] = None,
        n_games: int = 100,
        verbose: bool = False,
    ) -> EvalResult:
        """
        评估智能体

        Args:
            agent: 待评估智能体
            opponents: 对手列表 (num_players - 1 个)，默认随机智能体
            n_games: 游戏数量
            verbose: 是否输出进度

        Returns:
            评估结果
        """
        if opponents is None:
            opponents = [RandomAgent(name=f"random_{i}") for i in range(self.num_players - 1)]
        if len(opponents) != self.num_players - 1:
            raise ValueError(
                f"expected {self.num_players - 1} opponents, received {len(opponents)}"
            )

        wins = 0
        draws = 0
        truncated = 0
        total_points = 0
        total_turns = 0
        seat_games = [0] * self.num_players
        seat_wins = [0] * self.num_players

        for game_idx in range(n_games):
            seat = game_idx % self.num_players
            agents = list(opponents)
            agents.insert(seat, agent)

            config = GameConfig(
                num_players=self.num_players,
                seed=(self.base_seed + game_idx) & U64_MASK,
                stock_size=self.stock_size,
            )
            result = play_game(agents, config, self.max_turns, seed_agents=True)

            seat_games[seat] += 1
            total_turns += result.turns
            if result.winner == seat:
                wins += 1
                seat_wins[seat] += 1
                total_points += result.points
            elif result.winner is None:
                draws += 1
            if result.truncated:
                truncated += 1

            if verbose and (game_idx + 1) % 10 == 0:
                logger.info(f"Game {game_idx + 1}/{n_games}, Win rate: {wins/(game_idx+1):.2%}")

        return EvalResult(
            win_rate=wins / n_games if n_games > 0 else 0.0,
            avg_points=total_points / n_games if n_games > 0 else 0.0,
            avg_turns=total_turns / n_games if n_games > 0 else 0.0,
            games_played=n_games,
            wins=wins,
            draws=draws,
            truncated=truncated,
            seat_win_rates={
                s: seat_wins[s] / seat_games[s]
                for s in range(self.num_players) if seat_games[s] > 0
            },
        )

    def compare(
        self,
        agent1: Agent,
        agent2: Agent,
        n_games: int = 100,
    ) -> Dict[str, float]:
        """
        两名智能体对战，交替先手

        Args:
            agent1: 智能体1
            agent2: 智能体2
            n_games: 游戏数量

        Returns:
            对比结果
        """
        agent1_wins = 0
        agent2_wins = 0

        for game_idx in range(n_games):
            agent1_first = game_idx % 2 == 0
            agents = [agent1, agent2] if agent1_first else [agent2, agent1]
            config = GameConfig(
                num_players=2,
                seed=(self.base_seed + game_idx) & U64_MASK,
                stock_size=self.stock_size,
            )
            result = play_game(agents, config, self.max_turns, seed_agents=True)
            if result.winner is None:
                continue
            if (result.winner == 0) == agent1_first:
                agent1_wins += 1
            else:
                agent2_wins += 1

        return {
            "agent1_wins": agent1_wins,
            "agent2_wins": agent2_wins,
            "draws": n_games - agent1_wins - agent2_wins,
            "agent1_win_rate": agent1_wins / n_games if n_games > 0 else 0.0,
            "agent2_win_rate": agent2_wins / n_games if n_games > 0 else 0.0,
        }
