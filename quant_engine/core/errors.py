"""
Engine error taxonomy. Every error is contained within one task and surfaced as
that task's error result; the trace text is what the caller sees.
"""

from __future__ import annotations
import traceback
from typing import Optional


class EngineError(Exception):
    """Base for task-level failures. `trace` holds the formatted traceback."""

    def __init__(self, message: str, trace: Optional[str] = None):
        super().__init__(message)
        self.trace = trace

    def __str__(self) -> str:
        return self.trace or super().__str__()

    @classmethod
    def from_current(cls, message: str) -> "EngineError":
        """Build from inside an `except` block, capturing the active traceback."""
        return cls(message, trace=traceback.format_exc())


class LoadError(EngineError):
    """User code failed to compile or execute at load time."""


class ResolutionError(EngineError):
    """No usable strategy entry point in the loaded namespace."""


class StrategyRuntimeError(EngineError):
    """Exception raised during replay, on_start, or an environment step."""


class EnvironmentLoadError(EngineError):
    """Custom RL environment could not be loaded. Never surfaced: the trainer falls back."""
