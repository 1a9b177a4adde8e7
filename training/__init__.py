"""
Training Layer - 模仿学习框架

Modules:
    config: 训练与采集配置
    buffer: 样本与数据集
    rollout: 示范数据采集
    trainer: 训练循环与检查点
"""
from .config import (
    TrainConfig,
    RolloutConfig,
)
from .buffer import (
    MIN_SAMPLE_WEIGHT,
    PolicySample,
    PolicyDataset,
    clamp_weight,
)
from .rollout import (
    build_demonstrator_agents,
    select_demonstrator_action,
    outcome_weight,
    collect_dataset,
)
from .trainer import (
    EpochMetrics,
    Callback,
    CheckpointCallback,
    EarlyStoppingCallback,
    PolicyTrainer,
)
from models.policy import save_model, load_model

__all__ = [
    # config
    "TrainConfig",
    "RolloutConfig",
    # buffer
    "MIN_SAMPLE_WEIGHT",
    "PolicySample",
    "PolicyDataset",
    "clamp_weight",
    # rollout
    "build_demonstrator_agents",
    "select_demonstrator_action",
    "outcome_weight",
    "collect_dataset",
    # trainer
    "EpochMetrics",
    "Callback",
    "CheckpointCallback",
    "EarlyStoppingCallback",
    "PolicyTrainer",
    "save_model",
    "load_model",
]
