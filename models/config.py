"""
模型配置

定义模型规格和超参数
"""
from dataclasses import dataclass, asdict
from typing import Dict, Any

from env.observation import STATE_FEATURES, MAX_ACTIONS


@dataclass
class ModelSpec:
    """
    模型规格配置

    Attributes:
        input_dim: 状态特征维度
        hidden_dim: 隐藏层维度
        num_layers: 隐藏层层数
        action_dim: 动作空间维度
        dropout: Dropout 概率
    """
    input_dim: int = STATE_FEATURES
    hidden_dim: int = 128
    num_layers: int = 2
    action_dim: int = MAX_ACTIONS
    dropout: float = 0.0

    def __post_init__(self):
        if self.num_layers <= 0:
            raise ValueError(f"num_layers must be positive, got {self.num_layers}")
        if self.hidden_dim <= 0:
            raise ValueError(f"hidden_dim must be positive, got {self.hidden_dim}")

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'ModelSpec':
        """从字典创建配置"""
        valid_keys = cls.__dataclass_fields__.keys()
        filtered = {k: v for k, v in d.items() if k in valid_keys}
        return cls(**filtered)

    @classmethod
    def from_string(cls, text: str) -> 'ModelSpec':
        """
        解析 "128" 或 "128x3" 形式的规格 (隐藏层维度 x 层数)

        Raises:
            ValueError: 格式非法
        """
        text = text.strip()
        if not text:
            return cls()
        hidden, _, depth = text.partition("x")
        try:
            hidden_dim = int(hidden)
            num_layers = int(depth) if depth else cls.num_layers
        except ValueError:
            raise ValueError(f"invalid model spec '{text}'") from None
        return cls(hidden_dim=hidden_dim, num_layers=num_layers)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return asdict(self)


# 预定义配置
POLICY_SMALL = ModelSpec(hidden_dim=64, num_layers=2)
POLICY_BASE = ModelSpec()
POLICY_LARGE = ModelSpec(hidden_dim=256, num_layers=3)
