"""Dispatch: parallel execution of strategy runs and training jobs."""

from quant_engine.dispatch.dispatcher import TaskDispatcher, submit
from quant_engine.dispatch.tasks import (
    StrategyPayload,
    TrainingPayload,
    execute_task,
    strategy_task,
    task_from_dict,
    training_task,
)

__all__ = [
    "TaskDispatcher",
    "submit",
    "StrategyPayload",
    "TrainingPayload",
    "execute_task",
    "strategy_task",
    "task_from_dict",
    "training_task",
]
