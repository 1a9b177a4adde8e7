"""
对战竞技场

组织多智能体对战
"""
from typing import Dict, List, Optional, Tuple
from dataclasses import dataclass, field
from collections import defaultdict
from itertools import permutations
import copy
import logging
from concurrent.futures import ThreadPoolExecutor

from core.game import Game, GameConfig, DEFAULT_SEED
from core.state import GameStatus
from core.cards import MIN_PLAYERS, MAX_PLAYERS

from .agents import Agent, derive_agent_seed, U64_MASK
from .scoring import winner_points

logger = logging.getLogger(__name__)


@dataclass
class MatchResult:
    """对局结果"""
    agents: Tuple[str, ...]          # 按座位排列的智能体名称
    seed: int
    status: GameStatus
    winner: Optional[int]            # 获胜座位
    turns: int                       # 完成的回合数
    steps: int                       # 执行的动作数
    points: int                      # 获胜者得分
    stock_counts: Tuple[int, ...] = field(default_factory=tuple)
    truncated: bool = False          # 达到回合上限被截断

    @property
    def is_draw(self) -> bool:
        return self.winner is None

    @property
    def winner_name(self) -> Optional[str]:
        if self.winner is None:
            return None
        return self.agents[self.winner]


def play_game(
    agents: List[Agent],
    config: GameConfig,
    max_turns: Optional[int] = None,
    seed_agents: bool = False,
) -> MatchResult:
    """
    进行一局完整对局

    Args:
        agents: 按座位排列的智能体，数量必须等于 config.num_players
        config: 对局配置
        max_turns: 回合上限，达到后截断 (无获胜者)
        seed_agents: 是否用对局种子为每个座位重新播种

    Returns:
        对局结果
    """
    if len(agents) != config.num_players:
        raise ValueError(
            f"expected {config.num_players} agents, received {len(agents)}"
        )

    game = Game(config)
    for seat, agent in enumerate(agents):
        agent.reset(derive_agent_seed(config.seed, seat) if seed_agents else None)

    steps = 0
    truncated = False
    while not game.is_finished:
        if max_turns is not None and game.turn_count >= max_turns:
            truncated = True
            break
        current = game.current_player
        view = game.state_view(current)
        legal_actions = game.legal_actions(current)
        action = agents[current].select_action(view, legal_actions)
        game.apply_action(current, action)
        steps += 1

    final_view = game.state_view(0)
    result = MatchResult(
        agents=tuple(agent.name for agent in agents),
        seed=config.seed,
        status=game.status,
        winner=game.winner,
        turns=game.turn_count,
        steps=steps,
        points=winner_points(final_view, game.winner),
        stock_counts=tuple(p.stock_count for p in final_view.players),
        truncated=truncated,
    )
    logger.debug(
        f"Game seed={config.seed:#x} finished: status={result.status.value}, "
        f"winner={result.winner_name}, turns={result.turns}"
    )
    return result


@dataclass
class TournamentResult:
    """锦标赛结果"""
    standings: Dict[str, Dict[str, float]]
    total_games: int
    matches: List[MatchResult]

    def get_ranking(self) -> List[Tuple[str, float]]:
        """获取排名"""
        return sorted(
            [(name, stats["win_rate"]) for name, stats in self.standings.items()],
            key=lambda x: x[1],
            reverse=True,
        )

    def __repr__(self) -> str:
        ranking = self.get_ranking()
        lines = [f"Tournament Results ({self.total_games} games):"]
        for i, (name, win_rate) in enumerate(ranking):
            lines.append(f"  {i+1}. {name}: {win_rate:.2%}")
        return "\n".join(lines)


def _tally(standings: Dict[str, Dict[str, float]], result: MatchResult):
    for seat, name in enumerate(result.agents):
        stats = standings[name]
        stats["games"] += 1
        if result.winner == seat:
            stats["wins"] += 1
            stats["points"] += result.points
        elif result.winner is None:
            stats["draws"] += 1


def _finalize(standings: Dict[str, Dict[str, float]]) -> Dict[str, Dict[str, float]]:
    for stats in standings.values():
        games = stats["games"]
        stats["win_rate"] = stats["wins"] / games if games > 0 else 0.0
        stats["avg_points"] = stats["points"] / games if games > 0 else 0.0
    return {name: dict(stats) for name, stats in standings.items()}


class Arena:
    """
    对战竞技场

    组织智能体之间的对战；第 i 局的种子为 base_seed + i
    """

    def __init__(
        self,
        base_seed: int = DEFAULT_SEED,
        max_turns: Optional[int] = None,
        stock_size: Optional[int] = None,
    ):
        self.base_seed = base_seed
        self.max_turns = max_turns
        self.stock_size = stock_size

    def _config(self, num_players: int, game_idx: int) -> GameConfig:
        return GameConfig(
            num_players=num_players,
            seed=(self.base_seed + game_idx) & U64_MASK,
            stock_size=self.stock_size,
        )

    def play_match(
        self,
        agents: List[Agent],
        n_games: int = 1,
        first_game: int = 0,
    ) -> List[MatchResult]:
        """
        进行对局

        Args:
            agents: 按座位排列的智能体 (2-6 个)
            n_games: 对局数
            first_game: 起始对局序号 (决定种子)

        Returns:
            对局结果列表
        """
        if not MIN_PLAYERS <= len(agents) <= MAX_PLAYERS:
            raise ValueError(f"expected 2-6 agents, received {len(agents)}")

        results = []
        for game_idx in range(first_game, first_game + n_games):
            config = self._config(len(agents), game_idx)
            results.append(play_game(agents, config, self.max_turns, seed_agents=True))
        return results

    def round_robin(
        self,
        agents: List[Agent],
        games_per_match: int = 10,
        seats: int = 2,
    ) -> TournamentResult:
        """
        循环赛

        每个有序座位组合都对战，覆盖座位轮换

        Args:
            agents: 智能体列表 (名称需唯一)
            games_per_match: 每场比赛的对局数
            seats: 每局人数

        Returns:
            锦标赛结果
        """
        if len(agents) < seats:
            raise ValueError(f"need at least {seats} agents for a {seats}-seat round robin")
        names = [agent.name for agent in agents]
        if len(set(names)) != len(names):
            raise ValueError("agent names must be unique")

        standings = {name: defaultdict(float) for name in names}
        all_matches = []

        first_game = 0
        for perm in permutations(range(len(agents)), seats):
            match_agents = [agents[i] for i in perm]
            results = self.play_match(match_agents, games_per_match, first_game=first_game)
            first_game += games_per_match
            all_matches.extend(results)
            for result in results:
                _tally(standings, result)

        return TournamentResult(
            standings=_finalize(standings),
            total_games=len(all_matches),
            matches=all_matches,
        )


class ParallelArena(Arena):
    """
    并行对战竞技场

    使用多线程加速对战；每局使用智能体的独立副本，
    结果按对局序号排列，与串行 Arena 一致
    """

    def __init__(self, n_workers: int = 4, **kwargs):
        super().__init__(**kwargs)
        self.n_workers = n_workers

    def _play_single_match(self, agents: List[Agent], game_idx: int) -> MatchResult:
        """单场对局"""
        local_agents = [copy.deepcopy(agent) for agent in agents]
        config = self._config(len(agents), game_idx)
        return play_game(local_agents, config, self.max_turns, seed_agents=True)

    def play_match(
        self,
        agents: List[Agent],
        n_games: int = 1,
        first_game: int = 0,
    ) -> List[MatchResult]:
        """并行对局"""
        if n_games <= 1 or self.n_workers <= 1:
            return super().play_match(agents, n_games, first_game)
        if not MIN_PLAYERS <= len(agents) <= MAX_PLAYERS:
            raise ValueError(f"expected 2-6 agents, received {len(agents)}")

        with ThreadPoolExecutor(max_workers=self.n_workers) as executor:
            futures = [
                executor.submit(self._play_single_match, agents, game_idx)
                for game_idx in range(first_game, first_game + n_games)
            ]
            return [future.result() for future in futures]
