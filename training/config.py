"""
训练配置

定义训练相关的超参数和配置
"""
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional


@dataclass
class TrainConfig:
    """
    训练配置

    Attributes:
        learning_rate: 学习率 (Adam)
        weight_decay: 权重衰减
        batch_size: 批次大小
        num_epochs: 训练轮数
        validation_split: 验证集比例 (0 - 0.9)
        max_grad_norm: 梯度裁剪阈值，None 表示不裁剪
        patience: 早停耐心值，None 表示不早停
        seed: 打乱与划分使用的种子
        device: 训练设备
    """
    # 优化器参数
    learning_rate: float = 1e-3
    weight_decay: float = 0.0

    # 批次设置
    batch_size: int = 64
    num_epochs: int = 20

    # 数据划分
    validation_split: float = 0.1

    # 梯度裁剪
    max_grad_norm: Optional[float] = None

    # 早停
    patience: Optional[int] = None

    seed: int = 0xA11C_E5EE_DF00

    # 设备
    device: str = "auto"

    def __post_init__(self):
        if self.batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {self.batch_size}")
        if self.learning_rate <= 0:
            raise ValueError(f"learning_rate must be positive, got {self.learning_rate}")

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'TrainConfig':
        valid_keys = cls.__dataclass_fields__.keys()
        filtered = {k: v for k, v in d.items() if k in valid_keys}
        return cls(**filtered)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class RolloutConfig:
    """
    数据采集配置

    Attributes:
        num_players: 每局人数
        num_games: 采集的对局数
        demonstrator: 示范策略 ("rule" 或 "random")
        epsilon: 探索概率，以该概率改为随机合法动作
        winner_weight: 获胜者动作的样本权重
        runner_weight: 非获胜者动作的样本权重
        draw_weight: 无人获胜时的样本权重
        max_turns: 每局回合上限
        stock_size: 覆盖默认库存牌张数
        seed: 采集种子
    """
    num_players: int = 4
    num_games: int = 512
    demonstrator: str = "rule"
    epsilon: float = 0.05
    winner_weight: float = 2.0
    runner_weight: float = 1.0
    draw_weight: float = 1.0
    max_turns: Optional[int] = None
    stock_size: Optional[int] = None
    seed: int = 0xA11C_E5EE_DF00

    def __post_init__(self):
        if self.demonstrator not in ("rule", "random"):
            raise ValueError(f"Unknown demonstrator: {self.demonstrator}")
        if not 0.0 <= self.epsilon <= 1.0:
            raise ValueError(f"epsilon must be within [0, 1], got {self.epsilon}")

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'RolloutConfig':
        valid_keys = cls.__dataclass_fields__.keys()
        filtered = {k: v for k, v in d.items() if k in valid_keys}
        return cls(**filtered)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
