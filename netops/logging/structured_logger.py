"""
Structured Logger
----------------
Provides structured logging for dispatch, purchase and trade events with context.
"""

from __future__ import annotations

import json
import logging
import traceback
from datetime import datetime, timezone
from typing import Dict, Any, Optional
from pathlib import Path


class StructuredLogger:
    """
    Structured logger for side-effecting host calls.

    Logs events in JSON format with consistent structure:
    {
        "timestamp": "ISO8601",
        "level": "INFO|WARNING|ERROR|CRITICAL",
        "event_type": "dispatch|purchase|trade|error|system",
        "message": "Human readable message",
        "context": {...}
    }
    """

    def __init__(
        self,
        name: str = "StructuredLogger",
        log_file: Optional[Path] = None,
        console: bool = False,
    ):
        self.name = name
        self.logger = logging.getLogger(name)
        self.log_file = log_file
        self.console = console

        if self.log_file:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(self.log_file, encoding="utf-8")
            file_handler.setLevel(logging.INFO)
            self.logger.addHandler(file_handler)

        if self.console:
            console_handler = logging.StreamHandler()
            console_handler.setLevel(logging.INFO)
            formatter = logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
            )
            console_handler.setFormatter(formatter)
            self.logger.addHandler(console_handler)

        if self.logger.level == logging.NOTSET:
            self.logger.setLevel(logging.INFO)

    def _log_structured(
        self,
        level: str,
        event_type: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        exc_info: Optional[Exception] = None,
    ) -> Dict[str, Any]:
        """Internal method to log structured event. Returns the entry."""
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level.upper(),
            "event_type": event_type,
            "message": message,
            "context": context or {},
        }

        if exc_info:
            log_entry["exception"] = {
                "type": type(exc_info).__name__,
                "message": str(exc_info),
                "traceback": "".join(
                    traceback.format_exception(type(exc_info), exc_info, exc_info.__traceback__)
                ),
            }

        json_str = json.dumps(log_entry, default=str)

        log_method = getattr(self.logger, level.lower(), self.logger.info)
        log_method(json_str)
        return log_entry

    def log_dispatch(
        self,
        message: str,
        host: str,
        action: str,
        target: str,
        units: int,
        pid: Optional[int] = None,
        ok: bool = True,
        **kwargs,
    ) -> Dict[str, Any]:
        """Log a worker dispatch."""
        context = {
            "host": host,
            "action": action,
            "target": target,
            "units": int(units),
            "pid": pid,
            "ok": ok,
            **kwargs,
        }
        return self._log_structured("INFO" if ok else "WARNING", "dispatch", message, context)

    def log_purchase(
        self,
        message: str,
        item: str,
        cost: float,
        ok: bool = True,
        **kwargs,
    ) -> Dict[str, Any]:
        """Log a server or augmentation purchase."""
        context = {
            "item": item,
            "cost": float(cost),
            "ok": ok,
            **kwargs,
        }
        return self._log_structured("INFO" if ok else "WARNING", "purchase", message, context)

    def log_trade(
        self,
        message: str,
        symbol: str,
        side: str,
        shares: float,
        price: Optional[float] = None,
        **kwargs,
    ) -> Dict[str, Any]:
        """Log trade event."""
        context = {
            "symbol": symbol,
            "side": side,
            "shares": float(shares),
            "price": float(price) if price is not None else None,
            **kwargs,
        }
        return self._log_structured("INFO", "trade", message, context)

    def log_error(
        self,
        message: str,
        error: Optional[Exception] = None,
        **kwargs,
    ) -> Dict[str, Any]:
        """Log error event."""
        context = kwargs.copy()
        return self._log_structured("ERROR", "error", message, context, exc_info=error)

    def log_system(
        self,
        message: str,
        component: Optional[str] = None,
        **kwargs,
    ) -> Dict[str, Any]:
        """Log system event."""
        context = {
            "component": component,
            **kwargs,
        }
        return self._log_structured("INFO", "system", message, context)
