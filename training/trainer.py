"""
训练器

带掩码、带权重的交叉熵模仿学习
"""
from typing import Any, Dict, List, Optional, Tuple
from dataclasses import dataclass
from pathlib import Path
import time
import logging

import numpy as np
import torch
import torch.nn as nn
import torch.nn.functional as F

from models.policy import save_model

from .config import TrainConfig
from .buffer import PolicyDataset

logger = logging.getLogger(__name__)


@dataclass
class EpochMetrics:
    """每轮训练统计"""
    epoch: int
    train_loss: float
    validation_loss: Optional[float]
    batches: int
    samples: int
    lr: float = 0.0
    duration: float = 0.0


class Callback:
    """回调基类"""

    def on_train_start(self, trainer: "PolicyTrainer"):
        pass

    def on_train_end(self, trainer: "PolicyTrainer"):
        pass

    def on_epoch_end(self, trainer: "PolicyTrainer", metrics: EpochMetrics):
        pass


def _monitored_loss(metrics: EpochMetrics) -> float:
    if metrics.validation_loss is not None:
        return metrics.validation_loss
    return metrics.train_loss


class CheckpointCallback(Callback):
    """
    检查点回调

    每 save_freq 轮保存一次；save_best 时额外维护 best.pt (按验证损失，无验证集时按训练损失)
    """

    def __init__(self, save_dir: str, save_freq: int = 1, save_best: bool = True):
        self.save_dir = Path(save_dir)
        self.save_dir.mkdir(parents=True, exist_ok=True)
        self.save_freq = save_freq
        self.save_best = save_best
        self.best_loss = float('inf')
        self.best_path: Optional[Path] = None

    def on_epoch_end(self, trainer: "PolicyTrainer", metrics: EpochMetrics):
        if self.save_freq > 0 and metrics.epoch % self.save_freq == 0:
            path = self.save_dir / f"checkpoint_{metrics.epoch}.pt"
            trainer.save(str(path))
            logger.info(f"Saved checkpoint to {path}")

        loss = _monitored_loss(metrics)
        if self.save_best and loss < self.best_loss:
            self.best_loss = loss
            self.best_path = self.save_dir / "best.pt"
            trainer.save(str(self.best_path))
            logger.info(f"New best loss {loss:.4f} at epoch {metrics.epoch}")


class EarlyStoppingCallback(Callback):
    """早停回调：监控损失连续 patience 轮没有改善时停止"""

    def __init__(self, patience: int = 5, min_delta: float = 0.0):
        self.patience = patience
        self.min_delta = min_delta
        self.best_loss = float('inf')
        self.wait = 0

    def on_train_start(self, trainer: "PolicyTrainer"):
        self.best_loss = float('inf')
        self.wait = 0

    def on_epoch_end(self, trainer: "PolicyTrainer", metrics: EpochMetrics):
        loss = _monitored_loss(metrics)
        if loss < self.best_loss - self.min_delta:
            self.best_loss = loss
            self.wait = 0
        else:
            self.wait += 1
            if self.wait >= self.patience:
                logger.info(f"Early stopping triggered at epoch {metrics.epoch}")
                trainer.should_stop = True


class PolicyTrainer:
    """
    策略网络训练器

    损失: 对每个样本计算 -Σ target · log_softmax(logits + mask)，
    再按样本权重加权平均
    """

    def __init__(
        self,
        model: nn.Module,
        config: Optional[TrainConfig] = None,
        callbacks: Optional[List[Callback]] = None,
    ):
        self.config = config or TrainConfig()
        self.callbacks = callbacks or []

        # 设备
        if self.config.device == "auto":
            self.device = torch.device("cuda" if torch.cuda.is_available() else "cpu")
        else:
            self.device = torch.device(self.config.device)

        self.model = model.to(self.device)
        self.optimizer = torch.optim.Adam(
            self.model.parameters(),
            lr=self.config.learning_rate,
            weight_decay=self.config.weight_decay,
        )
        self._rng = np.random.default_rng(self.config.seed)

        self.global_step = 0
        self.should_stop = False

    def loss_components(
        self,
        states: torch.Tensor,
        masks: torch.Tensor,
        targets: torch.Tensor,
        weights: torch.Tensor,
    ) -> Tuple[torch.Tensor, torch.Tensor]:
        """
        计算加权损失和与权重和

        Returns:
            (loss_sum, weight_sum)
        """
        logits = self.model(states, masks)
        log_probs = F.log_softmax(logits, dim=-1)
        cross_entropy = -(targets * log_probs).sum(dim=-1)
        return (cross_entropy * weights).sum(), weights.sum()

    def train_step(self, samples) -> float:
        """
        单步更新

        Args:
            samples: 一批 PolicySample

        Returns:
            该批次的加权平均损失
        """
        self.model.train()
        states, masks, targets, weights = PolicyDataset.to_tensors(samples, self.device)
        loss_sum, weight_sum = self.loss_components(states, masks, targets, weights)
        loss = loss_sum / weight_sum

        self.optimizer.zero_grad()
        loss.backward()
        if self.config.max_grad_norm is not None:
            nn.utils.clip_grad_norm_(self.model.parameters(), self.config.max_grad_norm)
        self.optimizer.step()
        self.global_step += 1

        return loss.item()

    def evaluate(self, dataset: PolicyDataset, batch_size: Optional[int] = None) -> float:
        """
        计算数据集上的加权平均损失 (不更新参数)

        Returns:
            损失；空数据集返回 0
        """
        if dataset.is_empty:
            return 0.0
        batch_size = batch_size or self.config.batch_size

        self.model.eval()
        total_loss = 0.0
        total_weight = 0.0
        with torch.no_grad():
            for chunk in dataset.batches(batch_size):
                tensors = PolicyDataset.to_tensors(chunk, self.device)
                loss_sum, weight_sum = self.loss_components(*tensors)
                total_loss += loss_sum.item()
                total_weight += weight_sum.item()
        return total_loss / total_weight if total_weight > 0 else 0.0

    def fit(
        self,
        train: PolicyDataset,
        validation: Optional[PolicyDataset] = None,
        num_epochs: Optional[int] = None,
    ) -> List[EpochMetrics]:
        """
        训练

        Args:
            train: 训练集 (每轮原地打乱)
            validation: 验证集
            num_epochs: 覆盖配置中的轮数

        Returns:
            每轮统计
        """
        num_epochs = self.config.num_epochs if num_epochs is None else num_epochs
        self.should_stop = False

        for callback in self.callbacks:
            callback.on_train_start(self)

        history = []
        for epoch in range(1, num_epochs + 1):
            start = time.time()
            train.shuffle(self._rng)

            weighted_loss = 0.0
            weight_sum = 0.0
            batches = 0
            samples = 0
            for chunk in train.batches(self.config.batch_size):
                batch_weight = sum(s.weight for s in chunk)
                if batch_weight <= 0:
                    continue
                loss = self.train_step(chunk)
                weighted_loss += loss * batch_weight
                weight_sum += batch_weight
                batches += 1
                samples += len(chunk)

            validation_loss = None
            if validation is not None and not validation.is_empty:
                validation_loss = self.evaluate(validation)

            metrics = EpochMetrics(
                epoch=epoch,
                train_loss=weighted_loss / weight_sum if weight_sum > 0 else 0.0,
                validation_loss=validation_loss,
                batches=batches,
                samples=samples,
                lr=self.optimizer.param_groups[0]["lr"],
                duration=time.time() - start,
            )
            history.append(metrics)

            val_text = f"{validation_loss:.4f}" if validation_loss is not None else "-"
            logger.info(
                f"Epoch {epoch}/{num_epochs} | "
                f"Train loss {metrics.train_loss:.4f} | "
                f"Val loss {val_text} | "
                f"Samples {samples} | "
                f"Time {metrics.duration:.1f}s"
            )

            for callback in self.callbacks:
                callback.on_epoch_end(self, metrics)
            if self.should_stop:
                break

        for callback in self.callbacks:
            callback.on_train_end(self)

        return history

    def save(self, path: str, metadata: Optional[Dict[str, Any]] = None):
        """保存模型与优化器"""
        save_model(
            self.model,
            path,
            metadata=metadata,
            optimizer_state=self.optimizer.state_dict(),
            global_step=self.global_step,
            config=self.config.to_dict(),
        )

    def load(self, path: str):
        """加载模型与优化器"""
        checkpoint = torch.load(path, map_location=self.device)
        self.model.load_state_dict(checkpoint["model_state_dict"])
        if "optimizer_state_dict" in checkpoint:
            self.optimizer.load_state_dict(checkpoint["optimizer_state_dict"])
        self.global_step = checkpoint.get("global_step", 0)
