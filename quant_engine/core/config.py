"""
Load configuration from config.yaml and .env. Environment values win over the file.
"""

from __future__ import annotations
import os
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

import yaml
from dotenv import load_dotenv

if TYPE_CHECKING:
    from quant_engine.ledger.trade_ledger import CostConfig
    from quant_engine.rl.config import RLConfig


def _env_path(project_root: Optional[Path] = None) -> Path:
    root = project_root or Path(__file__).resolve().parents[2]
    return root / ".env"


def load_dotenv_if_exists(project_root: Optional[Path] = None) -> None:
    """Load .env from project root if present."""
    path = _env_path(project_root)
    if path.exists():
        load_dotenv(path)


def load_config(config_path: Optional[Path] = None, project_root: Optional[Path] = None) -> "Config":
    """Load config.yaml and overlay with env. Returns Config."""
    load_dotenv_if_exists(project_root)
    root = project_root or Path(__file__).resolve().parents[2]
    path = config_path or root / "config.yaml"
    data: dict[str, Any] = {}
    if path.exists():
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

    def env(key: str, default: str = "") -> str:
        return os.getenv(key, default).strip()

    def env_bool(key: str, default: bool = False) -> bool:
        return os.getenv(key, str(default)).lower() in ("true", "1", "yes")

    def env_int(key: str, default: int = 0) -> int:
        try:
            return int(os.getenv(key, str(default)))
        except ValueError:
            return default

    def env_float(key: str, default: float = 0.0) -> float:
        try:
            return float(os.getenv(key, str(default)))
        except ValueError:
            return default

    costs = data.get("costs", {})
    backtest = data.get("backtest", {})
    dispatcher = data.get("dispatcher", {})
    rl = data.get("rl", {})
    telegram = data.get("telegram", {})
    logging_ = data.get("logging", {})

    seed = env("RL_SEED", "" if rl.get("seed") is None else str(rl.get("seed")))

    return Config(
        # Costs (TXF defaults: 1 point = 200, 50 per lot per side, 1 point slippage)
        point_value=env_float("POINT_VALUE", costs.get("point_value", 200.0)),
        tax_rate=env_float("TAX_RATE", costs.get("tax_rate", 0.00002)),
        commission=env_float("COMMISSION", costs.get("commission", 50.0)),
        slippage=env_float("SLIPPAGE", costs.get("slippage", 1.0)),
        use_slippage=env_bool("USE_SLIPPAGE", costs.get("use_slippage", True)),
        # Backtest
        initial_capital=env_float("INITIAL_CAPITAL", backtest.get("initial_capital", 1_000_000.0)),
        max_lookback=env_int("MAX_LOOKBACK", backtest.get("max_lookback", 600)),
        # Dispatcher
        pool_size=env_int("POOL_SIZE", dispatcher.get("pool_size", 2)),
        # RL
        rl_episodes=env_int("RL_EPISODES", rl.get("episodes", 100)),
        rl_learning_rate=env_float("RL_LEARNING_RATE", rl.get("learning_rate", 0.001)),
        rl_discount_factor=env_float("RL_DISCOUNT_FACTOR", rl.get("discount_factor", 0.95)),
        rl_epsilon_decay=env_float("RL_EPSILON_DECAY", rl.get("epsilon_decay", 0.99)),
        rl_batch_size=env_int("RL_BATCH_SIZE", rl.get("batch_size", 32)),
        rl_hidden_layer_size=env_int("RL_HIDDEN_LAYER_SIZE", rl.get("hidden_layer_size", 24)),
        rl_seed=int(seed) if seed.lstrip("-").isdigit() else None,
        # Telegram
        telegram_bot_token=env("TELEGRAM_BOT_TOKEN", telegram.get("bot_token", "")),
        telegram_chat_id=env("TELEGRAM_CHAT_ID", telegram.get("chat_id", "")),
        # Logging
        log_level=env("LOG_LEVEL", logging_.get("level", "INFO")),
        log_dir=Path(logging_.get("log_dir", "logs")),
        log_file=logging_.get("log_file", "quant_engine.log"),
    )


class Config:
    """Unified configuration. Immutable after load."""

    __slots__ = (
        "point_value", "tax_rate", "commission", "slippage", "use_slippage",
        "initial_capital", "max_lookback",
        "pool_size",
        "rl_episodes", "rl_learning_rate", "rl_discount_factor", "rl_epsilon_decay",
        "rl_batch_size", "rl_hidden_layer_size", "rl_seed",
        "telegram_bot_token", "telegram_chat_id",
        "log_level", "log_dir", "log_file",
    )

    def __init__(
        self,
        point_value: float = 200.0,
        tax_rate: float = 0.00002,
        commission: float = 50.0,
        slippage: float = 1.0,
        use_slippage: bool = True,
        initial_capital: float = 1_000_000.0,
        max_lookback: int = 600,
        pool_size: int = 2,
        rl_episodes: int = 100,
        rl_learning_rate: float = 0.001,
        rl_discount_factor: float = 0.95,
        rl_epsilon_decay: float = 0.99,
        rl_batch_size: int = 32,
        rl_hidden_layer_size: int = 24,
        rl_seed: Optional[int] = None,
        telegram_bot_token: str = "",
        telegram_chat_id: str = "",
        log_level: str = "INFO",
        log_dir: Path = None,
        log_file: str = "quant_engine.log",
    ):
        self.point_value = point_value
        self.tax_rate = tax_rate
        self.commission = commission
        self.slippage = slippage
        self.use_slippage = use_slippage
        self.initial_capital = initial_capital
        self.max_lookback = max_lookback
        self.pool_size = max(1, pool_size)
        self.rl_episodes = rl_episodes
        self.rl_learning_rate = rl_learning_rate
        self.rl_discount_factor = rl_discount_factor
        self.rl_epsilon_decay = rl_epsilon_decay
        self.rl_batch_size = rl_batch_size
        self.rl_hidden_layer_size = rl_hidden_layer_size
        self.rl_seed = rl_seed
        self.telegram_bot_token = telegram_bot_token
        self.telegram_chat_id = telegram_chat_id
        self.log_level = log_level
        self.log_dir = Path(log_dir) if log_dir else Path("logs")
        self.log_file = log_file

    def cost_config(self) -> "CostConfig":
        from quant_engine.ledger.trade_ledger import CostConfig

        return CostConfig(
            point_value=self.point_value,
            tax_rate=self.tax_rate,
            commission=self.commission,
            slippage=self.slippage,
            use_slippage=self.use_slippage,
        )

    def rl_config(self) -> "RLConfig":
        from quant_engine.rl.config import RLConfig

        return RLConfig(
            episodes=self.rl_episodes,
            learning_rate=self.rl_learning_rate,
            discount_factor=self.rl_discount_factor,
            epsilon_decay=self.rl_epsilon_decay,
            batch_size=self.rl_batch_size,
            hidden_layer_size=self.rl_hidden_layer_size,
            seed=self.rl_seed,
        )
