"""
Candle file loading. JSON (a list of candle objects, or {"candles": [...]})
and CSV (time, open, high, low, close, volume columns) are supported.
"""

from __future__ import annotations
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

import pandas as pd

logger = logging.getLogger("quant_engine.data")

OHLCV = ["open", "high", "low", "close", "volume"]


def _normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    df = df.rename(columns={c: str(c).strip().lower() for c in df.columns})
    if "time" not in df.columns:
        for alt in ("timestamp", "date", "datetime", "open_time"):
            if alt in df.columns:
                df = df.rename(columns={alt: "time"})
                break
    missing = [c for c in ["time", "close"] if c not in df.columns]
    if missing:
        raise ValueError(f"Candle data missing columns: {missing}")
    for col in OHLCV:
        if col not in df.columns:
            df[col] = df["close"] if col != "volume" else 0.0
        df[col] = pd.to_numeric(df[col], errors="coerce")
    return df.dropna(subset=["close"]).reset_index(drop=True)


def frame_to_candles(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """DataFrame with time + OHLCV columns -> list of candle dicts."""
    df = _normalize_columns(df)
    out: List[Dict[str, Any]] = []
    for row in df.itertuples(index=False):
        t = row.time
        if isinstance(t, pd.Timestamp):
            t = t.isoformat()
        elif hasattr(t, "item"):
            t = t.item()
        out.append({
            "time": t,
            "open": float(row.open),
            "high": float(row.high),
            "low": float(row.low),
            "close": float(row.close),
            "volume": float(row.volume),
        })
    return out


def load_candles(path: Union[str, Path]) -> List[Dict[str, Any]]:
    """Load candles from a .json or .csv file. Order book data is kept for JSON input."""
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == ".json":
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if isinstance(data, dict):
            data = data.get("candles", [])
        if not isinstance(data, list):
            raise ValueError(f"{path}: expected a list of candles")
        candles = [c for c in data if isinstance(c, dict) and "close" in c]
    elif suffix == ".csv":
        candles = frame_to_candles(pd.read_csv(path))
    else:
        raise ValueError(f"Unsupported candle file type: {path.suffix}")
    logger.info("Loaded %d candles from %s", len(candles), path.name)
    return candles
