# SPDX-License-Identifier: MIT
from __future__ import annotations

from enum import Enum
from typing import Dict


class Action(str, Enum):
    """What a target needs next. Values are the worker verbs."""
    SUPPRESS = "weaken"
    REPLENISH = "grow"
    HARVEST = "hack"


WORKER_SCRIPTS: Dict[Action, str] = {
    Action.SUPPRESS: "/workers/weaken.js",
    Action.REPLENISH: "/workers/grow.js",
    Action.HARVEST: "/workers/hack.js",
}

SHARE_SCRIPT = "/workers/share.js"


def worker_script(action: Action) -> str:
    try:
        return WORKER_SCRIPTS[Action(action)]
    except (KeyError, ValueError):
        raise ValueError(f"Unknown action: {action!r}")


def action_for_script(filename: str):
    """Reverse lookup used when reading the process table; None if not a worker."""
    name = "/" + filename.lstrip("/")
    for action, script in WORKER_SCRIPTS.items():
        if script == name:
            return action
    return None


def classify_action(
    current_security: float,
    min_security: float,
    money_available: float,
    money_max: float,
    security_buffer: float,
    money_threshold: float,
) -> Action:
    """
    Fixed priority: security above the floor plus buffer is always weakened
    first, then money below the threshold is grown, otherwise hack.
    """
    if current_security > min_security + security_buffer:
        return Action.SUPPRESS
    if money_available < money_max * money_threshold:
        return Action.REPLENISH
    return Action.HARVEST
