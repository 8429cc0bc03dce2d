# SPDX-License-Identifier: MIT
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Sequence

from netops.allocation.allocator import Target

log = logging.getLogger("TargetScorer")


@dataclass
class ScorerConfig:
    max_targets: int = 100
    excluded_prefixes: Sequence[str] = ("pserv-",)
    excluded_hosts: Sequence[str] = ("home",)


def is_eligible(candidate: Any, hacking_level: int, cfg: ScorerConfig) -> bool:
    if not candidate.has_admin_rights:
        return False
    if candidate.required_hacking_skill > hacking_level:
        return False
    if candidate.money_max <= 0:
        return False
    name = candidate.hostname
    if name in cfg.excluded_hosts:
        return False
    if any(name.startswith(p) for p in cfg.excluded_prefixes):
        return False
    return True


def score_target(money_max: float, hack_time: float, min_difficulty: float) -> float:
    """Money per ms of hacking, discounted by the security floor."""
    if hack_time <= 0 or min_difficulty <= 0:
        return 0.0
    return money_max / hack_time / min_difficulty


def rank_targets(
    candidates: Iterable[Any],
    host,
    cfg: Optional[ScorerConfig] = None,
) -> List[Target]:
    """
    Eligible candidates as Targets, best score first, at most ``max_targets``.

    ``host`` provides ``hacking_level()`` and ``estimate_harvest_time()``.
    Sorting is stable so equal scores keep their discovery order.
    """
    cfg = cfg or ScorerConfig()
    level = host.hacking_level()

    targets: List[Target] = []
    for c in candidates:
        if not is_eligible(c, level, cfg):
            continue
        hack_time = host.estimate_harvest_time(c.hostname)
        value = score_target(c.money_max, hack_time, c.min_difficulty)
        targets.append(
            Target(
                hostname=c.hostname,
                money_available=c.money_available,
                money_max=c.money_max,
                hack_difficulty=c.hack_difficulty,
                min_difficulty=c.min_difficulty,
                value=value,
            )
        )

    targets.sort(key=lambda t: t.value, reverse=True)
    ranked = targets[: max(0, int(cfg.max_targets))]
    log.debug("rank_targets: %d eligible, keeping %d", len(targets), len(ranked))
    return ranked


def find_best_target(candidates: Iterable[Any], host, cfg: Optional[ScorerConfig] = None) -> Optional[str]:
    ranked = rank_targets(candidates, host, cfg)
    if not ranked or ranked[0].value <= 0:
        return None
    return ranked[0].hostname
