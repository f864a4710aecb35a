"""
Task payloads and single-task execution. execute_task is the error boundary:
whatever happens inside a task comes back as that task's result.
"""

from __future__ import annotations
import itertools
import logging
import traceback
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Union

from quant_engine.core.errors import EngineError
from quant_engine.core.types import Candle, Task, TaskKind, TaskResult, TaskStatus
from quant_engine.rl.config import RLConfig
from quant_engine.rl.trainer import DQNTrainer
from quant_engine.sandbox.runner import ExecutionSandbox

logger = logging.getLogger("quant_engine.dispatch.tasks")

_task_seq = itertools.count(1)


@dataclass
class StrategyPayload:
    code: str
    candles: List[Union[Candle, dict]]
    params: dict = field(default_factory=dict)
    max_lookback: Optional[int] = None

    @classmethod
    def from_dict(cls, data: dict) -> "StrategyPayload":
        return cls(
            code=data.get("code") or "",
            candles=list(data.get("candles") or []),
            params=dict(data.get("params") or {}),
            max_lookback=data.get("maxLookback", data.get("max_lookback")),
        )


@dataclass
class TrainingPayload:
    candles: List[Union[Candle, dict]]
    rl_config: RLConfig = field(default_factory=RLConfig)
    custom_env_code: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "TrainingPayload":
        conf = data.get("rlConfig", data.get("rl_config"))
        return cls(
            candles=list(data.get("candles") or []),
            rl_config=conf if isinstance(conf, RLConfig) else RLConfig.from_dict(conf),
            custom_env_code=data.get("customEnvCode", data.get("custom_env_code")),
        )


def strategy_task(
    code: str,
    candles: List[Union[Candle, dict]],
    params: Optional[dict] = None,
    max_lookback: Optional[int] = None,
    task_id: Optional[str] = None,
) -> Task:
    return Task(
        id=task_id or f"run-{next(_task_seq)}",
        kind=TaskKind.RUN_STRATEGY,
        payload=StrategyPayload(code, list(candles), dict(params or {}), max_lookback),
    )


def training_task(
    candles: List[Union[Candle, dict]],
    rl_config: Optional[RLConfig] = None,
    custom_env_code: Optional[str] = None,
    on_episode: Optional[Callable[[dict], None]] = None,
    task_id: Optional[str] = None,
) -> Task:
    return Task(
        id=task_id or f"train-{next(_task_seq)}",
        kind=TaskKind.TRAIN_RL,
        payload=TrainingPayload(list(candles), rl_config or RLConfig(), custom_env_code),
        on_episode=on_episode,
    )


def task_from_dict(data: dict, on_episode: Optional[Callable[[dict], None]] = None) -> Task:
    """Build a Task from a wire request ({kind, code?, candles, params?, ...})."""
    kind = TaskKind(data["kind"])
    payload: Any
    if kind == TaskKind.RUN_STRATEGY:
        payload = StrategyPayload.from_dict(data)
    else:
        payload = TrainingPayload.from_dict(data)
    prefix = "run" if kind == TaskKind.RUN_STRATEGY else "train"
    return Task(id=data.get("id") or f"{prefix}-{next(_task_seq)}", kind=kind, payload=payload, on_episode=on_episode)


def _run_strategy(task: Task) -> TaskResult:
    p: StrategyPayload = task.payload
    result = ExecutionSandbox(p.code, p.candles, p.params, p.max_lookback).run()
    if not result.ok:
        return TaskResult(task.id, task.kind, TaskStatus.FAILED, error=result.error)
    return TaskResult(task.id, task.kind, TaskStatus.DONE, signals=result.signals)


def _run_training(task: Task) -> TaskResult:
    p: TrainingPayload = task.payload
    on_episode = task.on_episode

    def report(payload: dict) -> None:
        if on_episode is None:
            return
        try:
            on_episode(payload)
        except Exception:
            logger.exception("Episode callback failed for task %s", task.id)

    training = DQNTrainer(p.candles, p.rl_config, p.custom_env_code, on_progress=report).train()
    return TaskResult(task.id, task.kind, TaskStatus.DONE, training=training)


def execute_task(task: Task) -> TaskResult:
    """Run one task to completion. Never raises."""
    task.status = TaskStatus.RUNNING
    try:
        if task.kind == TaskKind.RUN_STRATEGY:
            result = _run_strategy(task)
        elif task.kind == TaskKind.TRAIN_RL:
            result = _run_training(task)
        else:
            raise ValueError(f"Unsupported task kind: {task.kind}")
    except EngineError as e:
        result = TaskResult(task.id, task.kind, TaskStatus.FAILED, error=e.trace or traceback.format_exc())
    except (Exception, SystemExit):
        result = TaskResult(task.id, task.kind, TaskStatus.FAILED, error=traceback.format_exc())
    task.status = result.status
    if result.status == TaskStatus.FAILED:
        logger.warning("Task %s (%s) failed", task.id, task.kind.value)
    return result
