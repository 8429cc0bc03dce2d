# SPDX-License-Identifier: MIT
from __future__ import annotations

import logging
import math

from netops.allocation.actions import Action
from netops.allocation.allocator import Target

log = logging.getLogger("DemandEstimator")

# Security removed by one weaken unit.
WEAKEN_SECURITY_PER_UNIT = 0.05


class DemandEstimator:
    """
    Units needed to finish a target's action this cycle.

    Growth and hack analysis come from the host (``estimate_replenish_units``
    and ``estimate_harvest_fraction``); only the weaken arithmetic is local.
    """

    def __init__(self, host, harvest_fraction: float = 0.25) -> None:
        self.host = host
        self.harvest_fraction = float(harvest_fraction)

    def estimate(self, target: Target, action: Action) -> int:
        if action == Action.SUPPRESS:
            return self.suppress_units(target.hack_difficulty, target.min_difficulty)
        if action == Action.REPLENISH:
            return self.replenish_units(target)
        if action == Action.HARVEST:
            return self.harvest_units(target)
        raise ValueError(f"Unknown action: {action!r}")

    @staticmethod
    def suppress_units(current_security: float, min_security: float) -> int:
        delta = max(0.0, current_security - min_security)
        # round() strips float noise such as 0.1 / 0.05 == 2.0000000000000004
        return int(math.ceil(round(delta / WEAKEN_SECURITY_PER_UNIT, 9)))

    def replenish_units(self, target: Target) -> int:
        multiplier = target.money_max / max(target.money_available, 1.0)
        units = self.host.estimate_replenish_units(target.hostname, multiplier)
        if units is None or not math.isfinite(units) or units < 0:
            log.warning("growth analysis for %s returned %r; using 1", target.hostname, units)
            return 1
        return int(math.ceil(units))

    def harvest_units(self, target: Target) -> int:
        per_unit = self.host.estimate_harvest_fraction(target.hostname)
        if not per_unit or per_unit <= 0 or not math.isfinite(per_unit):
            return 1
        return max(1, int(math.floor(self.harvest_fraction / per_unit)))
