"""
Evaluation Layer - 评估框架

Modules:
    agents: 智能体
    scoring: 终局计分
    arena: 对局与对战竞技场
    evaluator: 评估器
"""
from .agents import (
    Agent,
    RandomAgent,
    RuleBasedAgent,
    ModelAgent,
    HumanAgent,
    HumanQuit,
    derive_agent_seed,
    create_agent,
)
from .scoring import winner_points
from .arena import (
    MatchResult,
    TournamentResult,
    play_game,
    Arena,
    ParallelArena,
)
from .evaluator import (
    EvalResult,
    Evaluator,
)

__all__ = [
    # agents
    "Agent",
    "RandomAgent",
    "RuleBasedAgent",
    "ModelAgent",
    "HumanAgent",
    "HumanQuit",
    "derive_agent_seed",
    "create_agent",
    # scoring
    "winner_points",
    # arena
    "MatchResult",
    "TournamentResult",
    "play_game",
    "Arena",
    "ParallelArena",
    # evaluator
    "EvalResult",
    "Evaluator",
]
