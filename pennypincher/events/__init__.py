"""Ledger event logging package."""

from pennypincher.events.logger import LedgerEventLogger, get_logger

__all__ = ["LedgerEventLogger", "get_logger"]
