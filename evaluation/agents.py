"""
智能体

所有智能体只通过快照 (GameStateView) 和合法动作列表做决策，
永远不会接触到对局内部状态
"""
from typing import Callable, Dict, List, Optional
import logging

import numpy as np
import torch
import torch.nn as nn

from core.cards import Card, MAX_CARD_VALUE
from core.actions import Action, ActionType, CardSource, SourceType
from core.state import GameStateView
from env.observation import StateEncoder, get_action_encoder
from env.render import render_state, describe_action
from models.policy import load_model

logger = logging.getLogger(__name__)

# 由对局种子派生各座位种子
SEAT_SEED_MULTIPLIER = 0x9E37_79B9
U64_MASK = (1 << 64) - 1


def derive_agent_seed(seed: int, index: int) -> int:
    """为第 index 个座位派生独立种子"""
    return (seed ^ ((index + 1) * SEAT_SEED_MULTIPLIER)) & U64_MASK


class HumanQuit(Exception):
    """人类玩家主动退出"""


class Agent:
    """智能体基类"""

    def __init__(self, name: str = "agent"):
        self.name = name

    def select_action(self, view: GameStateView, legal_actions: List[Action]) -> Action:
        """
        选择动作

        Args:
            view: 当前玩家视角的快照
            legal_actions: 合法动作 (非空)

        Returns:
            legal_actions 中的一个动作
        """
        raise NotImplementedError

    def reset(self, seed: Optional[int] = None):
        """新对局开始前调用；seed 非空时重新播种"""
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


def _require_actions(legal_actions: List[Action]):
    if not legal_actions:
        raise ValueError("at least one legal action must be available")


class RandomAgent(Agent):
    """随机智能体：从合法动作中均匀采样"""

    def __init__(self, seed: Optional[int] = None, name: str = "random"):
        super().__init__(name)
        self.seed = seed
        self._rng = np.random.default_rng(seed)

    def select_action(self, view: GameStateView, legal_actions: List[Action]) -> Action:
        _require_actions(legal_actions)
        idx = int(self._rng.integers(len(legal_actions)))
        return legal_actions[idx]

    def reset(self, seed: Optional[int] = None):
        if seed is not None:
            self._rng = np.random.default_rng(seed)


class RuleBasedAgent(Agent):
    """
    规则智能体

    对每个合法动作打分，取最高分 (同分取靠前的动作):
    - 出牌: 库存 > 弃牌堆 > 手牌，偏好高点数、已推进较多的建牌堆、
      即将完成的建牌堆，万能牌略有加成
    - 弃牌: 同点数叠放加分，弃牌堆越深扣分越多
    - 结束回合: 大幅扣分
    """

    SOURCE_BONUS = {
        SourceType.STOCK: 10_000,
        SourceType.DISCARD: 4_000,
        SourceType.HAND: 2_000,
    }
    VALUE_WEIGHT = 60
    PROGRESS_WEIGHT = 40
    CLOSENESS_WEIGHT = 25
    COMPLETION_BONUS = 1_000
    WILD_BONUS = 300

    DISCARD_BASE = 1_000
    DUPLICATE_BONUS = 600
    DISCARD_PRIORITY_WEIGHT = 12
    DEPTH_PENALTY = 20
    HAND_INDEX_PENALTY = 10

    END_TURN_SCORE = -5_000
    UNKNOWN_SCORE = -(1 << 30)

    def __init__(self, name: str = "rule"):
        super().__init__(name)

    @staticmethod
    def card_priority(card: Card) -> int:
        """万能牌优先级最高"""
        return MAX_CARD_VALUE + 1 if card.is_wild else card.value

    @staticmethod
    def _source_card(view: GameStateView, source: CardSource) -> Optional[Card]:
        me = view.me
        if source.kind == SourceType.HAND:
            if 0 <= source.index < len(view.hand):
                return view.hand[source.index]
            return None
        if source.kind == SourceType.STOCK:
            return me.stock_top
        if 0 <= source.index < len(me.discard_tops):
            return me.discard_tops[source.index]
        return None

    def score_play(self, view: GameStateView, source: CardSource, build_pile: int) -> int:
        if not 0 <= build_pile < len(view.build_piles):
            return self.UNKNOWN_SCORE
        card = self._source_card(view, source)
        if card is None:
            return self.UNKNOWN_SCORE
        pile = view.build_piles[build_pile]
        score = self.SOURCE_BONUS[source.kind]
        score += self.card_priority(card) * self.VALUE_WEIGHT
        score += len(pile.cards) * self.PROGRESS_WEIGHT
        score += pile.next_value * self.CLOSENESS_WEIGHT
        if pile.next_value == MAX_CARD_VALUE:
            score += self.COMPLETION_BONUS
        if card.is_wild:
            score += self.WILD_BONUS
        return score

    def score_discard(self, view: GameStateView, hand_index: int, discard_pile: int) -> int:
        if not 0 <= hand_index < len(view.hand):
            return self.UNKNOWN_SCORE
        card = view.hand[hand_index]
        me = view.me
        top = me.discard_tops[discard_pile] if 0 <= discard_pile < len(me.discard_tops) else None
        depth = me.discard_counts[discard_pile] if 0 <= discard_pile < len(me.discard_counts) else 0
        score = self.DISCARD_BASE
        if top == card:
            score += self.DUPLICATE_BONUS
        score += self.card_priority(card) * self.DISCARD_PRIORITY_WEIGHT
        score -= depth * self.DEPTH_PENALTY
        score -= hand_index * self.HAND_INDEX_PENALTY
        return score

    def score_action(self, view: GameStateView, action: Action) -> int:
        if action.action_type == ActionType.PLAY:
            return self.score_play(view, action.source, action.build_pile)
        if action.action_type == ActionType.DISCARD:
            return self.score_discard(view, action.hand_index, action.discard_pile)
        return self.END_TURN_SCORE

    def select_action(self, view: GameStateView, legal_actions: List[Action]) -> Action:
        _require_actions(legal_actions)
        return max(legal_actions, key=lambda a: self.score_action(view, a))


class ModelAgent(Agent):
    """模型智能体：对合法动作做掩码后贪婪选择或采样"""

    def __init__(
        self,
        model: nn.Module,
        device: str = "cpu",
        deterministic: bool = True,
        name: str = "model",
        seed: Optional[int] = None,
    ):
        super().__init__(name)
        self.model = model
        self.device = torch.device(device)
        self.deterministic = deterministic
        self.model.to(self.device)
        self.model.eval()
        self._encoder = StateEncoder()
        self._action_encoder = get_action_encoder()
        self._generator = torch.Generator()
        if seed is not None:
            self._generator.manual_seed(seed)

    def action_logits(self, view: GameStateView, legal_actions: List[Action]) -> torch.Tensor:
        """返回掩码后的 logits，形状 (num_actions,)"""
        state = torch.from_numpy(self._encoder.encode(view)).unsqueeze(0).to(self.device)
        mask = torch.from_numpy(
            self._action_encoder.build_logit_mask(legal_actions)
        ).unsqueeze(0).to(self.device)
        with torch.no_grad():
            logits = self.model(state, mask)
        return logits[0].cpu()

    def select_action(self, view: GameStateView, legal_actions: List[Action]) -> Action:
        _require_actions(legal_actions)
        by_index: Dict[int, Action] = {}
        for action in legal_actions:
            idx = self._action_encoder.encode(action)
            if idx >= 0:
                by_index.setdefault(idx, action)
        if not by_index:
            return legal_actions[0]

        logits = self.action_logits(view, legal_actions)
        if self.deterministic:
            choice = int(logits.argmax().item())
        else:
            probs = torch.softmax(logits, dim=-1)
            choice = int(torch.multinomial(probs, 1, generator=self._generator).item())

        if choice not in by_index:
            logger.warning(f"Model selected unmapped action index {choice}, falling back")
            return next(iter(by_index.values()))
        return by_index[choice]

    def reset(self, seed: Optional[int] = None):
        if seed is not None:
            self._generator.manual_seed(seed)


class HumanAgent(Agent):
    """
    人类玩家

    通过 input_fn 读取动作序号，通过 output_fn 输出局面；
    输入 q/quit 抛出 HumanQuit
    """

    def __init__(
        self,
        name: str = "Human",
        input_fn: Callable[[str], str] = input,
        output_fn: Callable[[str], None] = print,
    ):
        super().__init__(name)
        self.input_fn = input_fn
        self.output_fn = output_fn

    def select_action(self, view: GameStateView, legal_actions: List[Action]) -> Action:
        _require_actions(legal_actions)
        while True:
            self.output_fn(f"\n=== {self.name}'s turn (player {view.self_player}) ===")
            self.output_fn(render_state(view))
            self.output_fn("Available actions:")
            for index, action in enumerate(legal_actions):
                self.output_fn(f"  [{index}] {describe_action(view, action)}")
            self.output_fn("Type the action index, 'help' or 'q' to quit.")

            text = self.input_fn("Selection: ").strip()
            if text.lower() in ("q", "quit"):
                raise HumanQuit(self.name)
            if text.lower() == "help":
                self.output_fn("Enter the numeric index listed next to the action you wish to perform.")
                continue
            try:
                choice = int(text)
            except ValueError:
                self.output_fn(f"Invalid input: '{text}'. Please enter a number.")
                continue
            if 0 <= choice < len(legal_actions):
                action = legal_actions[choice]
                self.output_fn(f"You selected: {describe_action(view, action)}")
                return action
            self.output_fn("Index out of range. Please choose a valid option.")


def create_agent(spec: str, index: int, seed: int, device: str = "cpu") -> Agent:
    """
    按命令行规格创建智能体

    支持:
    - human[:name]
    - random[:seed]  (缺省种子由对局种子与座位派生)
    - rule / heuristic
    - model:<path>[:sample]

    Raises:
        ValueError: 无法识别的规格
    """
    head, _, rest = spec.partition(":")
    kind = head.strip().lower()

    if kind == "human":
        name = rest.strip() or f"Human {index}"
        return HumanAgent(name=name)

    if kind == "random":
        agent_seed = derive_agent_seed(seed, index)
        if rest.strip():
            try:
                agent_seed = int(rest.strip(), 0)
            except ValueError:
                raise ValueError(f"invalid seed in bot spec '{spec}'") from None
        return RandomAgent(seed=agent_seed, name=f"random_{index}")

    if kind in ("rule", "heuristic"):
        return RuleBasedAgent(name=f"rule_{index}")

    if kind == "model":
        path, _, mode = rest.rpartition(":")
        if not path or mode.lower() not in ("sample", "greedy"):
            path, mode = rest, "greedy"
        if not path:
            raise ValueError(f"model bot spec requires a checkpoint path: '{spec}'")
        model = load_model(path, device=device)
        return ModelAgent(
            model,
            device=device,
            deterministic=mode.lower() != "sample",
            name=f"model_{index}",
            seed=derive_agent_seed(seed, index),
        )

    raise ValueError(f"unrecognized bot spec: {spec}")
