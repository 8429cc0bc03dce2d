import time


def now_ms() -> float:
    return time.time() * 1000.0


def stamp_ms() -> int:
    """Integer millisecond stamp; makes otherwise identical worker args unique."""
    return int(now_ms())
