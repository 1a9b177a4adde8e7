"""
Model Layer - 神经网络模型

Modules:
    config: 模型配置
    policy: 策略网络
"""
from .config import ModelSpec, POLICY_SMALL, POLICY_BASE, POLICY_LARGE
from .policy import PolicyNetwork, build_model, save_model, load_model

__all__ = [
    # config
    "ModelSpec",
    "POLICY_SMALL",
    "POLICY_BASE",
    "POLICY_LARGE",
    # policy
    "PolicyNetwork",
    "build_model",
    "save_model",
    "load_model",
]
