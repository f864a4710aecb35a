#!/usr/bin/env python3
"""
Quant Engine CLI: run | batch | train
Usage:
  python main.py run strategy.py candles.json [--params '{"fast": 5}'] [--backtest]
  python main.py run --template sma_cross candles.csv --backtest
  python main.py batch strategy.py candles.json --param-sets sets.json [--pool 4]
  python main.py train candles.json [--env env.py] [--episodes 50] [--out policy.py]
"""

from __future__ import annotations
import argparse
import dataclasses
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

# Project root
ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from quant_engine.analytics.metrics import summarize
from quant_engine.backtesting.engine import BacktestEngine
from quant_engine.core.config import Config, load_config
from quant_engine.core.logger import setup_logging
from quant_engine.core.sanitize import to_json
from quant_engine.core.types import TaskResult
from quant_engine.data import load_candles
from quant_engine.dispatch.dispatcher import TaskDispatcher
from quant_engine.dispatch.tasks import strategy_task
from quant_engine.rl.trainer import train_agent
from quant_engine.sandbox.runner import run_strategy
from quant_engine.strategies.templates import get_template
from quant_engine.utils.telegram import batch_summary, send_telegram

logger = logging.getLogger("quant_engine")


def _read_code(path: Optional[Path], template: Optional[str]) -> str:
    if template:
        return get_template(template).code
    if path is None:
        raise SystemExit("Need a strategy file or --template")
    return path.read_text(encoding="utf-8")


def _parse_params(raw: Optional[str]) -> dict:
    if not raw:
        return {}
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise SystemExit("--params must be a JSON object")
    return data


def _write_or_print(payload, out: Optional[Path]) -> None:
    text = to_json(payload, indent=2)
    if out:
        out.write_text(text, encoding="utf-8")
        logger.info("Wrote %s", out)
    else:
        print(text)


def _print_backtest(config: Config, signals, candles) -> None:
    engine = BacktestEngine(config.cost_config(), config.initial_capital)
    result = engine.run(signals, candles)
    print("\n--- Ledger Summary ---")
    for line in summarize(result.metrics):
        print(line)
    print(f"Final position: {result.position.size} @ {result.position.avg_price:.2f}")


def cmd_run(args: argparse.Namespace, config: Config) -> int:
    code = _read_code(args.strategy, args.template)
    candles = load_candles(args.candles)
    max_lookback = args.max_lookback or config.max_lookback
    result = run_strategy(code, candles, _parse_params(args.params), max_lookback)
    if not result.ok:
        logger.error("Strategy failed")
        print(result.error, file=sys.stderr)
        return 1
    logger.info("Strategy produced %d signals", len(result.signals))
    _write_or_print(result.to_wire(), args.output)
    if args.backtest:
        _print_backtest(config, result.signals, candles)
    return 0


def cmd_batch(args: argparse.Namespace, config: Config) -> int:
    code = _read_code(args.strategy, args.template)
    candles = load_candles(args.candles)
    param_sets = json.loads(args.param_sets.read_text(encoding="utf-8"))
    if not isinstance(param_sets, list):
        raise SystemExit("--param-sets must hold a JSON list of objects")
    max_lookback = args.max_lookback or config.max_lookback
    tasks = [strategy_task(code, candles, p, max_lookback) for p in param_sets]

    def on_progress(done: int, total: int) -> None:
        logger.info("Progress %d/%d", done, total)

    results = TaskDispatcher(args.pool or config.pool_size).submit(tasks, on_progress=on_progress)
    payload = [dict(r.to_dict(), id=r.task_id, status=r.status.value, params=p) for r, p in zip(results, param_sets)]
    _write_or_print(payload, args.output)
    _report_batch(config, results)
    return 0 if all(r.ok for r in results) else 1


def _report_batch(config: Config, results: List[TaskResult]) -> None:
    text = batch_summary(results)
    logger.info(text)
    send_telegram(text, config.telegram_bot_token, config.telegram_chat_id)


def cmd_train(args: argparse.Namespace, config: Config) -> int:
    candles = load_candles(args.candles)
    rl = config.rl_config()
    if args.episodes:
        rl = dataclasses.replace(rl, episodes=args.episodes)
    env_code = args.env.read_text(encoding="utf-8") if args.env else None

    def on_progress(p: dict) -> None:
        logger.info(
            "Episode %d reward=%.2f epsilon=%.3f win_rate=%.2f",
            p["episode"], p["totalReward"], p["epsilon"], p["winRate"],
        )

    result = train_agent(candles, rl, env_code, on_progress)
    if args.out:
        args.out.write_text(result.exported_policy_code, encoding="utf-8")
        logger.info("Exported policy to %s", args.out)
    _write_or_print({"history": result.to_dict()["history"]}, args.output)
    last = result.history[-1] if result.history else None
    if last is not None:
        send_telegram(
            f"Training finished | episodes={rl.episodes} | last reward={last.total_reward:.2f}",
            config.telegram_bot_token,
            config.telegram_chat_id,
        )
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Quant Engine CLI")
    parser.add_argument("--config", type=Path, default=None, help="Path to config.yaml")
    sub = parser.add_subparsers(dest="mode", required=True)

    def add_strategy_args(p: argparse.ArgumentParser) -> None:
        p.add_argument("strategy", type=Path, nargs="?", default=None, help="Strategy source file")
        p.add_argument("candles", type=Path, help="Candle file (.json or .csv)")
        p.add_argument("--template", default=None, help="Use a built-in template instead of a file")
        p.add_argument("--max-lookback", type=int, default=None)
        p.add_argument("--output", type=Path, default=None, help="Write JSON result here")

    run_p = sub.add_parser("run", help="Run one strategy over a candle file")
    add_strategy_args(run_p)
    run_p.add_argument("--params", default=None, help="Strategy params as a JSON object")
    run_p.add_argument("--backtest", action="store_true", help="Print a ledger summary of the signals")

    batch_p = sub.add_parser("batch", help="Run one strategy for many parameter sets in parallel")
    add_strategy_args(batch_p)
    batch_p.add_argument("--param-sets", type=Path, required=True, help="JSON list of param objects")
    batch_p.add_argument("--pool", type=int, default=None, help="Worker count")

    train_p = sub.add_parser("train", help="Train a DQN agent and export a policy strategy")
    train_p.add_argument("candles", type=Path, help="Candle file (.json or .csv)")
    train_p.add_argument("--env", type=Path, default=None, help="Custom environment source file")
    train_p.add_argument("--episodes", type=int, default=None)
    train_p.add_argument("--out", type=Path, default=None, help="Write exported policy code here")
    train_p.add_argument("--output", type=Path, default=None, help="Write training history JSON here")

    args = parser.parse_args()
    config = load_config(args.config, ROOT)
    setup_logging(config.log_level, config.log_dir, config.log_file)
    if args.mode == "run":
        return cmd_run(args, config)
    if args.mode == "batch":
        return cmd_batch(args, config)
    return cmd_train(args, config)


if __name__ == "__main__":
    sys.exit(main())
