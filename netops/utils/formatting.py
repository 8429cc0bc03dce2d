"""
Text formatting helpers shared by every dashboard.

Everything here returns plain strings; printing is left to the runners.
"""

from __future__ import annotations

import math

import numpy as np

COLORS = {
    "red": "\u001b[31m",
    "green": "\u001b[32m",
    "yellow": "\u001b[33m",
    "blue": "\u001b[34m",
    "magenta": "\u001b[35m",
    "cyan": "\u001b[36m",
    "white": "\u001b[37m",
    "dim": "\u001b[2m",
    "gray": "\u001b[30m",
    "bold": "\u001b[1m",
    "reset": "\u001b[0m",
}


class C:
    RED = COLORS["red"]
    GREEN = COLORS["green"]
    YELLOW = COLORS["yellow"]
    BLUE = COLORS["blue"]
    MAGENTA = COLORS["magenta"]
    CYAN = COLORS["cyan"]
    WHITE = COLORS["white"]
    DIM = COLORS["dim"]
    BOLD = COLORS["bold"]
    RESET = COLORS["reset"]


_SUFFIXES = ((1e15, "q"), (1e12, "t"), (1e9, "b"), (1e6, "m"), (1e3, "k"))


def format_num(n: float) -> str:
    """Format a number with SI-ish suffixes (k, m, b, t, q)."""
    if n is None or not math.isfinite(n):
        return "-"
    sign = "-" if n < 0 else ""
    a = abs(n)
    for scale, suffix in _SUFFIXES:
        if a >= scale:
            return f"{sign}{a / scale:.2f}{suffix}"
    return f"{sign}{a:.0f}"


def format_ram(gb: float) -> str:
    if gb is None or not math.isfinite(gb):
        return "-"
    if gb >= 1024:
        return f"{gb / 1024:.0f}TB"
    if gb >= 1:
        return f"{gb:.0f}GB"
    if gb > 0:
        return f"{gb * 1024:.0f}MB"
    return "0GB"


def format_percent(x: float, digits: int = 1) -> str:
    return f"{x * 100:.{digits}f}%"


def format_time(seconds: float) -> str:
    """Human readable duration, '???' for negative or non-finite input."""
    if seconds is None or not math.isfinite(seconds) or seconds < 0:
        return "???"
    if seconds < 60:
        return f"{seconds:.0f}s"
    if seconds < 3600:
        return f"{int(seconds // 60)}m {int(seconds % 60)}s"
    if seconds < 86400:
        return f"{int(seconds // 3600)}h {int((seconds % 3600) // 60)}m"
    return f"{int(seconds // 86400)}d {int((seconds % 86400) // 3600)}h"


def format_ms(ms: float) -> str:
    return format_time(ms / 1000.0)


def make_bar(percent: float, width: int, fill_color: str = C.GREEN) -> str:
    """Progress bar like "[████░░░░]"; percent is clamped to [0, 1]."""
    p = float(np.clip(percent, 0.0, 1.0)) if math.isfinite(percent) else 0.0
    filled = int(round(p * width))
    empty = width - filled
    return f"[{fill_color}{'█' * filled}{C.RESET}{C.DIM}{'░' * empty}{C.RESET}]"


def make_timing_bar(progress: float, width: int, remaining_ms: float) -> str:
    bar = make_bar(progress, width, C.CYAN)
    time_str = format_ms(remaining_ms) if remaining_ms > 0 else "done"
    return f"{bar} {time_str}"


def pad(s, n: int) -> str:
    """Left-align into exactly n characters, truncating when longer."""
    s = str(s)
    return s[:n] if len(s) >= n else s.ljust(n)
