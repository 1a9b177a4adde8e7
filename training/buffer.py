"""
模仿学习数据集

存储 (状态, 掩码, 目标分布, 权重) 样本
"""
from typing import Iterable, Iterator, List, Optional, Tuple
from dataclasses import dataclass
import math

import numpy as np
import torch

from core.actions import Action
from core.state import GameStateView
from env.observation import StateEncoder, get_action_encoder

# 样本权重下限
MIN_SAMPLE_WEIGHT = 1.0e-8
# 验证集比例上限
MAX_VALIDATION_FRACTION = 0.9


def clamp_weight(weight: float) -> float:
    """非有限值或过小的权重截断到 MIN_SAMPLE_WEIGHT"""
    if not math.isfinite(weight):
        return MIN_SAMPLE_WEIGHT
    return max(weight, MIN_SAMPLE_WEIGHT)


@dataclass
class PolicySample:
    """
    单个训练样本

    Attributes:
        state: (STATE_FEATURES,) 状态特征
        mask: (MAX_ACTIONS,) 加性 logit 掩码
        target: (MAX_ACTIONS,) 目标动作分布
        weight: 样本权重
    """
    state: np.ndarray
    mask: np.ndarray
    target: np.ndarray
    weight: float = 1.0

    def __post_init__(self):
        self.weight = clamp_weight(float(self.weight))

    @classmethod
    def from_transition(
        cls,
        view: GameStateView,
        legal_actions: List[Action],
        chosen_actions: List[Action],
        weight: float = 1.0,
    ) -> 'PolicySample':
        """
        由一次决策构造样本

        Args:
            view: 决策时的快照
            legal_actions: 当时的合法动作
            chosen_actions: 目标动作 (多个时平分概率)
            weight: 样本权重
        """
        encoder = get_action_encoder()
        indices = [encoder.encode(a) for a in chosen_actions]
        return cls(
            state=StateEncoder.encode(view),
            mask=encoder.build_logit_mask(legal_actions),
            target=encoder.targets_from_indices(indices),
            weight=weight,
        )


class PolicyDataset:
    """
    样本集合

    支持打乱、分批、训练/验证划分和张量化
    """

    def __init__(self, samples: Optional[Iterable[PolicySample]] = None):
        self.samples: List[PolicySample] = []
        if samples is not None:
            self.extend(samples)

    def __len__(self) -> int:
        return len(self.samples)

    def __iter__(self) -> Iterator[PolicySample]:
        return iter(self.samples)

    @property
    def is_empty(self) -> bool:
        return not self.samples

    def total_weight(self) -> float:
        return float(sum(s.weight for s in self.samples))

    def push(self, sample: PolicySample):
        """添加样本，丢弃权重非正或非有限的样本"""
        if math.isfinite(sample.weight) and sample.weight > 0:
            self.samples.append(sample)

    def extend(self, samples: Iterable[PolicySample]):
        for sample in samples:
            self.push(sample)

    def shuffle(self, rng: np.random.Generator):
        order = rng.permutation(len(self.samples))
        self.samples = [self.samples[i] for i in order]

    def batches(self, batch_size: int) -> Iterator[List[PolicySample]]:
        """按顺序分批，batch_size 至少为 1"""
        size = max(1, batch_size)
        for start in range(0, len(self.samples), size):
            yield self.samples[start:start + size]

    def split(
        self,
        validation_fraction: float,
        rng: np.random.Generator,
    ) -> Tuple['PolicyDataset', 'PolicyDataset']:
        """
        划分训练集与验证集

        比例截断到 [0, 0.9]；样本数不少于 2 且比例为正时，
        两个集合都至少包含 1 个样本

        Returns:
            (train, validation)
        """
        if len(self.samples) < 2 or validation_fraction <= 0.0:
            return PolicyDataset(self.samples), PolicyDataset()

        fraction = min(max(validation_fraction, 0.0), MAX_VALIDATION_FRACTION)
        shuffled = PolicyDataset(self.samples)
        shuffled.shuffle(rng)

        total = len(shuffled)
        validation_size = int(round(total * fraction))
        validation_size = min(max(validation_size, 1), total - 1)
        split_index = total - validation_size
        return (
            PolicyDataset(shuffled.samples[:split_index]),
            PolicyDataset(shuffled.samples[split_index:]),
        )

    @staticmethod
    def to_tensors(
        samples: List[PolicySample],
        device: Optional[torch.device] = None,
    ) -> Tuple[torch.Tensor, torch.Tensor, torch.Tensor, torch.Tensor]:
        """
        转换为张量批次

        Returns:
            (states, masks, targets, weights)，weights 形状为 (batch,)
        """
        if not samples:
            raise ValueError("cannot build a batch from an empty sample list")
        states = torch.from_numpy(np.stack([s.state for s in samples]).astype(np.float32))
        masks = torch.from_numpy(np.stack([s.mask for s in samples]).astype(np.float32))
        targets = torch.from_numpy(np.stack([s.target for s in samples]).astype(np.float32))
        weights = torch.tensor([s.weight for s in samples], dtype=torch.float32)
        if device is not None:
            states, masks = states.to(device), masks.to(device)
            targets, weights = targets.to(device), weights.to(device)
        return states, masks, targets, weights
