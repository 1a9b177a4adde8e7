"""
策略网络

MLP: 状态特征 -> 动作 logits
"""
from typing import Any, Dict, Optional
from pathlib import Path
import logging

import torch
import torch.nn as nn

from .config import ModelSpec

logger = logging.getLogger(__name__)


class PolicyNetwork(nn.Module):
    """
    策略网络

    num_layers 个 (Linear + ReLU + Dropout) 隐藏层，最后一层线性输出动作 logits
    """

    def __init__(self, spec: Optional[ModelSpec] = None):
        super().__init__()
        self.spec = spec or ModelSpec()

        layers = []
        in_dim = self.spec.input_dim
        for _ in range(self.spec.num_layers):
            layers.extend([
                nn.Linear(in_dim, self.spec.hidden_dim),
                nn.ReLU(inplace=True),
                nn.Dropout(self.spec.dropout),
            ])
            in_dim = self.spec.hidden_dim
        self.stack = nn.Sequential(*layers)
        self.output = nn.Linear(in_dim, self.spec.action_dim)

    def forward(
        self,
        x: torch.Tensor,
        mask: Optional[torch.Tensor] = None,
    ) -> torch.Tensor:
        """
        Args:
            x: (batch, input_dim) 状态特征
            mask: (batch, action_dim) 加性掩码，合法为 0，非法为大负数

        Returns:
            logits: (batch, action_dim)
        """
        logits = self.output(self.stack(x))
        if mask is not None:
            logits = logits + mask
        return logits

    def num_parameters(self) -> int:
        return sum(p.numel() for p in self.parameters())


def build_model(spec: Optional[ModelSpec] = None) -> PolicyNetwork:
    """
    根据配置构建模型

    Args:
        spec: 模型规格配置

    Returns:
        PolicyNetwork 实例
    """
    model = PolicyNetwork(spec)
    logger.debug(
        f"Built policy network: {model.spec.num_layers}x{model.spec.hidden_dim}, "
        f"{model.num_parameters()} parameters"
    )
    return model


def save_model(
    model: nn.Module,
    path: str,
    metadata: Optional[Dict[str, Any]] = None,
    optimizer_state: Optional[Dict[str, Any]] = None,
    **extra: Any,
):
    """
    保存模型检查点

    只保存权重与模型规格，不保存任何对局状态
    """
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    spec = getattr(model, "spec", None)
    checkpoint = {
        "model_state_dict": model.state_dict(),
        "spec": spec.to_dict() if spec is not None else None,
        "metadata": metadata or {},
    }
    if optimizer_state is not None:
        checkpoint["optimizer_state_dict"] = optimizer_state
    checkpoint.update(extra)
    torch.save(checkpoint, path)


def load_model(path: str, device: str = "cpu") -> PolicyNetwork:
    """
    从检查点重建策略网络

    Raises:
        FileNotFoundError: 文件不存在
    """
    if not Path(path).exists():
        raise FileNotFoundError(f"Checkpoint not found: {path}")
    checkpoint = torch.load(path, map_location=torch.device(device))
    spec_dict = checkpoint.get("spec")
    spec = ModelSpec.from_dict(spec_dict) if spec_dict else ModelSpec()
    model = build_model(spec)
    model.load_state_dict(checkpoint["model_state_dict"])
    model.to(torch.device(device))
    model.eval()
    return model
