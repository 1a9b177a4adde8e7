"""
Environment Layer - Gymnasium 兼容环境

Modules:
    skipbo_env: 主环境类
    observation: 状态与动作编码
    reward: 奖励函数
    wrappers: 环境包装器
    render: 文本渲染
"""
from .skipbo_env import (
    SkipBoEnv,
    make_env,
)

from .observation import (
    STATE_FEATURES,
    MAX_ACTIONS,
    END_TURN_INDEX,
    MASK_NEGATIVE,
    StateEncoder,
    ActionEncoder,
    get_action_encoder,
)

from .reward import (
    RewardType,
    RewardConfig,
    RewardCalculator,
    create_reward_calculator,
)

from .wrappers import (
    SelfPlayWrapper,
    TimeLimit,
    RecordEpisodeStatistics,
    wrap_env,
)

from .render import render_state, describe_action

__all__ = [
    # env
    "SkipBoEnv",
    "make_env",
    # observation
    "STATE_FEATURES",
    "MAX_ACTIONS",
    "END_TURN_INDEX",
    "MASK_NEGATIVE",
    "StateEncoder",
    "ActionEncoder",
    "get_action_encoder",
    # reward
    "RewardType",
    "RewardConfig",
    "RewardCalculator",
    "create_reward_calculator",
    # wrappers
    "SelfPlayWrapper",
    "TimeLimit",
    "RecordEpisodeStatistics",
    "wrap_env",
    # render
    "render_state",
    "describe_action",
]
