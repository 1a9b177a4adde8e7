#!/usr/bin/env python3
"""
训练脚本

采集示范对局 -> 划分训练/验证集 -> 模仿学习 -> 保存模型

Usage:
    python scripts/train.py --games 512 --epochs 20
    python scripts/train.py --config configs/imitation.json --output checkpoints/policy.pt
    python scripts/train.py --demonstrator random --players 2 --hidden-dim 256 --num-layers 3
"""
import argparse
import logging
import sys
from pathlib import Path
import json

# 添加项目根目录到路径
ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT))

import numpy as np
import torch

from models import build_model, ModelSpec
from training import (
    TrainConfig,
    RolloutConfig,
    PolicyTrainer,
    CheckpointCallback,
    EarlyStoppingCallback,
    collect_dataset,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)


def parse_args():
    parser = argparse.ArgumentParser(description="Skip-Bo Imitation Training")

    parser.add_argument("--config", type=str, default=None,
                        help="JSON file with 'model', 'train' and 'rollout' sections")

    # 采集参数
    parser.add_argument("--games", type=int, default=None, help="Number of demonstration games")
    parser.add_argument("--players", type=int, default=None, help="Players per game")
    parser.add_argument("--demonstrator", type=str, default=None, choices=["rule", "random"],
                        help="Demonstration policy")
    parser.add_argument("--epsilon", type=float, default=None, help="Exploration probability")
    parser.add_argument("--max-turns", type=int, default=None, help="Turn cap per game")
    parser.add_argument("--stock-size", type=int, default=None, help="Override stock size")

    # 训练参数
    parser.add_argument("--epochs", type=int, default=None, help="Training epochs")
    parser.add_argument("--batch-size", type=int, default=None, help="Batch size")
    parser.add_argument("--lr", type=float, default=None, help="Learning rate")
    parser.add_argument("--validation-split", type=float, default=None, help="Validation fraction")
    parser.add_argument("--patience", type=int, default=None, help="Early stopping patience")

    # 模型参数
    parser.add_argument("--hidden-dim", type=int, default=None, help="Hidden dimension")
    parser.add_argument("--num-layers", type=int, default=None, help="Number of hidden layers")

    # 保存
    parser.add_argument("--output", type=str, default="checkpoints/policy.pt", help="Final model path")
    parser.add_argument("--save-dir", type=str, default=None, help="Directory for per-epoch checkpoints")

    # 其他
    parser.add_argument("--device", type=str, default=None, help="Device (auto/cpu/cuda)")
    parser.add_argument("--seed", type=lambda s: int(s, 0), default=None, help="Random seed")

    return parser.parse_args()


def load_config_file(path: str) -> dict:
    """读取 JSON 配置文件"""
    with open(path) as f:
        return json.load(f)


def _override(section: dict, key: str, value):
    if value is not None:
        section[key] = value


def build_configs(args):
    """合并配置文件与命令行参数，命令行优先"""
    raw = load_config_file(args.config) if args.config else {}
    model_dict = dict(raw.get("model", {}))
    train_dict = dict(raw.get("train", {}))
    rollout_dict = dict(raw.get("rollout", {}))

    _override(model_dict, "hidden_dim", args.hidden_dim)
    _override(model_dict, "num_layers", args.num_layers)

    _override(train_dict, "num_epochs", args.epochs)
    _override(train_dict, "batch_size", args.batch_size)
    _override(train_dict, "learning_rate", args.lr)
    _override(train_dict, "validation_split", args.validation_split)
    _override(train_dict, "patience", args.patience)
    _override(train_dict, "device", args.device)
    _override(train_dict, "seed", args.seed)

    _override(rollout_dict, "num_games", args.games)
    _override(rollout_dict, "num_players", args.players)
    _override(rollout_dict, "demonstrator", args.demonstrator)
    _override(rollout_dict, "epsilon", args.epsilon)
    _override(rollout_dict, "max_turns", args.max_turns)
    _override(rollout_dict, "stock_size", args.stock_size)
    _override(rollout_dict, "seed", args.seed)

    return (
        ModelSpec.from_dict(model_dict),
        TrainConfig.from_dict(train_dict),
        RolloutConfig.from_dict(rollout_dict),
    )


def main():
    args = parse_args()
    spec, train_config, rollout_config = build_configs(args)

    logger.info("=" * 50)
    logger.info("Skip-Bo Imitation Training")
    logger.info("=" * 50)
    logger.info(f"Demonstrator: {rollout_config.demonstrator}, games: {rollout_config.num_games}, "
                f"players: {rollout_config.num_players}")
    logger.info(f"Model: {spec.num_layers}x{spec.hidden_dim}")
    logger.info(f"Epochs: {train_config.num_epochs}, lr: {train_config.learning_rate}")
    logger.info("=" * 50)

    torch.manual_seed(train_config.seed & 0xFFFF_FFFF)

    # 采集
    dataset = collect_dataset(rollout_config)
    if dataset.is_empty:
        logger.error("No samples collected; nothing to train on")
        sys.exit(1)

    train_set, validation_set = dataset.split(
        train_config.validation_split,
        np.random.default_rng(train_config.seed),
    )
    logger.info(f"Samples: {len(train_set)} train / {len(validation_set)} validation")

    # 回调
    callbacks = []
    if args.save_dir:
        callbacks.append(CheckpointCallback(args.save_dir))
    if train_config.patience is not None:
        callbacks.append(EarlyStoppingCallback(patience=train_config.patience))

    # 训练
    model = build_model(spec)
    trainer = PolicyTrainer(model, train_config, callbacks=callbacks)
    history = trainer.fit(train_set, validation_set)

    # 保存最终模型
    trainer.save(args.output, metadata={
        "rollout": rollout_config.to_dict(),
        "epochs_run": len(history),
        "samples": len(dataset),
    })
    logger.info(f"Final model saved to {args.output}")

    if history:
        last = history[-1]
        logger.info("=" * 50)
        logger.info("Training completed!")
        logger.info(f"Final train loss: {last.train_loss:.4f}")
        if last.validation_loss is not None:
            logger.info(f"Final validation loss: {last.validation_loss:.4f}")
        logger.info("=" * 50)


if __name__ == "__main__":
    main()
