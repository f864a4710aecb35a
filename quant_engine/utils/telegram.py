"""Telegram notifications. Never log token or chat_id."""

from __future__ import annotations
import logging
from typing import Iterable

import requests

from quant_engine.core.types import TaskResult, TaskStatus

logger = logging.getLogger("quant_engine.utils.telegram")


def send_telegram(text: str, bot_token: str = "", chat_id: str = "") -> bool:
    """Send message to Telegram. Returns True on success; False when not configured or on failure."""
    if not bot_token or not chat_id:
        logger.debug("Telegram not configured, skipping message (len=%d)", len(text))
        return False
    try:
        url = f"https://api.telegram.org/bot{bot_token}/sendMessage"
        r = requests.post(url, json={"chat_id": chat_id, "text": text}, timeout=10)
        if r.status_code != 200:
            logger.warning("Telegram send failed: %s %s", r.status_code, r.text[:200])
            return False
        return True
    except requests.RequestException as e:
        logger.exception("Telegram error: %s", e)
        return False


def batch_summary(results: Iterable[TaskResult]) -> str:
    """One-message summary of a dispatched batch."""
    results = list(results)
    counts = {s: 0 for s in TaskStatus}
    for r in results:
        counts[r.status] += 1
    signals = sum(len(r.signals) for r in results if r.signals)
    parts = [f"Batch finished: {len(results)} tasks"]
    for status in (TaskStatus.DONE, TaskStatus.FAILED, TaskStatus.SKIPPED):
        if counts[status]:
            parts.append(f"{status.value.lower()}={counts[status]}")
    parts.append(f"signals={signals}")
    return " | ".join(parts)
