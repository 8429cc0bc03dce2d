# SPDX-License-Identifier: MIT
"""
Greedy multi-target RAM allocator.

Spreads the capacity inventory across ranked targets so every target gets
the units it needs this cycle, in rank order, and parks any leftover RAM on
the best target.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from typing import Dict, List, Mapping, Optional

from netops.allocation.actions import Action
from netops.allocation.capacity import WorkerHost

log = logging.getLogger("Allocator")


@dataclass(frozen=True)
class Assignment:
    host: str
    target: str
    action: Action
    units: int


@dataclass
class Target:
    hostname: str
    money_available: float
    money_max: float
    hack_difficulty: float
    min_difficulty: float
    value: float = 0.0
    action: Optional[Action] = None
    demand: int = 0
    assigned: int = 0
    assignments: List[Assignment] = field(default_factory=list)

    @property
    def saturated(self) -> bool:
        return self.assigned >= self.demand

    @property
    def remaining(self) -> int:
        return max(0, self.demand - self.assigned)


@dataclass
class AllocationPlan:
    targets: List[Target]
    assignments: List[Assignment]
    overflow_units: int = 0
    hosts_used: int = 0

    @property
    def total_units(self) -> int:
        return sum(a.units for a in self.assignments)

    @property
    def unsaturated(self) -> List[Target]:
        return [t for t in self.targets if not t.saturated]

    def units_by_host(self) -> Dict[str, int]:
        out: Dict[str, int] = {}
        for a in self.assignments:
            out[a.host] = out.get(a.host, 0) + a.units
        return out


def _assign(target: Target, host: WorkerHost, units: int, cost: float) -> None:
    """Book ``units`` of ``target`` on ``host``; same-host repeats are merged."""
    if target.assignments and target.assignments[-1].host == host.hostname:
        last = target.assignments[-1]
        target.assignments[-1] = replace(last, units=last.units + units)
    else:
        target.assignments.append(
            Assignment(host=host.hostname, target=target.hostname, action=target.action, units=units)
        )
    target.assigned += units
    host.available_ram -= units * cost


def allocate(
    capacity: List[WorkerHost],
    targets: List[Target],
    unit_costs: Mapping[Action, float],
) -> AllocationPlan:
    """
    Distribute ``capacity`` (largest host first) over ``targets`` (best first).

    Targets must already carry an action and a demand. ``available_ram`` on
    the capacity entries is consumed in place.
    """
    costs: Dict[str, float] = {}
    for t in targets:
        if t.action is None:
            raise ValueError(f"Target {t.hostname} has no action assigned")
        cost = unit_costs.get(t.action)
        if cost is None or cost <= 0:
            raise ValueError(f"No positive unit cost for action {t.action!r}")
        costs[t.hostname] = float(cost)

    plan = AllocationPlan(targets=targets, assignments=[])
    if not targets or not capacity:
        return plan

    servers = capacity
    idx = 0
    all_saturated = False

    while idx < len(servers) and not all_saturated:
        all_saturated = True

        for t in targets:
            if idx >= len(servers):
                break
            if t.saturated:
                continue

            all_saturated = False
            srv = servers[idx]
            cost = costs[t.hostname]
            can_run = math.floor(srv.available_ram / cost)

            if can_run > 0:
                units = min(can_run, t.remaining)
                _assign(t, srv, units, cost)

                if srv.available_ram < cost:
                    idx += 1
                    # Next host: start again from the best unsaturated target.
                    break

        # A host too small for every unsaturated target cannot make progress.
        if idx < len(servers):
            unsaturated = [t for t in targets if not t.saturated]
            if unsaturated:
                smallest = min(costs[t.hostname] for t in unsaturated)
                if servers[idx].available_ram < smallest:
                    idx += 1

    if idx < len(servers):
        best = targets[0]
        cost = costs[best.hostname]
        while idx < len(servers):
            srv = servers[idx]
            can_run = math.floor(srv.available_ram / cost)
            if can_run > 0:
                _assign(best, srv, can_run, cost)
                plan.overflow_units += can_run
            idx += 1
        log.debug("Overflow: %d extra units -> %s", plan.overflow_units, best.hostname)

    for t in targets:
        plan.assignments.extend(t.assignments)
    plan.hosts_used = len({a.host for a in plan.assignments})
    return plan
