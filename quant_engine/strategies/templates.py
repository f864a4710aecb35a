"""Starter strategy sources, in the shapes the sandbox accepts."""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class StrategyTemplate:
    id: str
    name: str
    description: str
    code: str


BLANK = StrategyTemplate(
    id="blank",
    name="Blank strategy",
    description="Empty class-form strategy; fill in on_tick.",
    code="\n".join([
        "class MyStrategy:",
        "    def __init__(self):",
        "        self.position = 0",
        "",
        "    def on_tick(self, candles):",
        "        if len(candles) < 20:",
        "            return",
        "        c = candles[-1]",
        "        return",
    ]),
)

SMA_CROSS = StrategyTemplate(
    id="sma_cross",
    name="SMA cross",
    description="Function-form fast/slow SMA crossover, always in the market after the first cross.",
    code="\n".join([
        "position = 0",
        "",
        "def on_tick(candles, ctx):",
        "    global position",
        "    fast_n = int(params.get('fast', 5))",
        "    slow_n = int(params.get('slow', 20))",
        "    if len(candles) < slow_n + 1:",
        "        return",
        "    closes = [c.close for c in candles]",
        "    fast = ctx.sma(closes, fast_n)",
        "    slow = ctx.sma(closes, slow_n)",
        "    if fast[-1] > slow[-1] and position <= 0:",
        "        ctx.order('BUY', 1 if position == 0 else 2, reason='sma cross up')",
        "        position = 1",
        "    elif fast[-1] < slow[-1] and position >= 0:",
        "        ctx.order('SELL', 1 if position == 0 else 2, reason='sma cross down')",
        "        position = -1",
    ]),
)

TEMPLATES: Dict[str, StrategyTemplate] = {t.id: t for t in (BLANK, SMA_CROSS)}


def get_template(template_id: str) -> StrategyTemplate:
    try:
        return TEMPLATES[template_id]
    except KeyError:
        raise KeyError(f"Unknown strategy template: {template_id} (have: {', '.join(sorted(TEMPLATES))})") from None
