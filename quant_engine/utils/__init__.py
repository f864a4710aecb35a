"""Utilities: notifications."""

from quant_engine.utils.telegram import batch_summary, send_telegram

__all__ = ["batch_summary", "send_telegram"]
