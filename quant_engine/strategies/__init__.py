"""Strategies: optional base class and starter templates."""

from quant_engine.strategies.base import BaseStrategy
from quant_engine.strategies.templates import StrategyTemplate, TEMPLATES, get_template

__all__ = ["BaseStrategy", "StrategyTemplate", "TEMPLATES", "get_template"]
