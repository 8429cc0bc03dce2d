# SPDX-License-Identifier: MIT
"""
Distributed multi-target hacker.

One cycle: snapshot RAM, rank targets, decide weaken/grow/hack per target,
size each action, spread RAM with the greedy allocator, dispatch, sleep
until the quickest dispatched action lands. Nothing carries over between
cycles.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional, Set

from netops.allocation.actions import Action, WORKER_SCRIPTS, classify_action
from netops.allocation.allocator import AllocationPlan, Assignment, Target, allocate
from netops.allocation.capacity import build_capacity_inventory, total_free_ram
from netops.allocation.demand import DemandEstimator
from netops.allocation.target_scorer import ScorerConfig, rank_targets
from netops.logging.structured_logger import StructuredLogger
from netops.utils.formatting import C, format_ms, format_num, format_ram
from netops.utils.time_utils import stamp_ms

log = logging.getLogger("DistributedHacker")

ACTION_COLORS = {
    Action.HARVEST: C.GREEN,
    Action.REPLENISH: C.YELLOW,
    Action.SUPPRESS: C.BLUE,
}


@dataclass
class HackerConfig:
    home_reserve: float = 32.0        # GB kept free on home
    money_threshold: float = 0.80     # fraction of max money before hacking
    security_buffer: float = 5.0      # allowed security above minimum
    hack_percent: float = 0.25        # fraction of money to steal per cycle
    max_targets: int = 100
    loop_delay_ms: float = 200.0
    min_wait_ms: float = 1000.0
    max_wait_ms: float = 30000.0
    retry_delay_ms: float = 5000.0
    primary_host: str = "home"
    target_override: str = ""
    dry_run: bool = False


@dataclass
class CycleReport:
    status: str
    plan: Optional[AllocationPlan] = None
    dispatched: List[Assignment] = field(default_factory=list)
    failures: List[Assignment] = field(default_factory=list)
    total_ram: float = 0.0
    wait_ms: float = 0.0
    lines: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == "ok"


class DistributedHacker:
    def __init__(
        self,
        host,
        cfg: Optional[HackerConfig] = None,
        events: Optional[StructuredLogger] = None,
        scorer: Optional[ScorerConfig] = None,
    ) -> None:
        self.host = host
        self.cfg = cfg or HackerConfig()
        self.scorer = scorer or ScorerConfig()
        self.events = events or StructuredLogger("HackerEvents")
        self.estimator = DemandEstimator(host, harvest_fraction=self.cfg.hack_percent)
        self.log = logging.getLogger("DistributedHacker")
        self.log.info(
            "DistributedHacker initialized: home_reserve=%.1f money_threshold=%.2f "
            "security_buffer=%.1f hack_percent=%.2f max_targets=%d dry_run=%s",
            self.cfg.home_reserve,
            self.cfg.money_threshold,
            self.cfg.security_buffer,
            self.cfg.hack_percent,
            self.cfg.max_targets,
            self.cfg.dry_run,
        )

    # --------------------------------------------------
    def _select_targets(self) -> List[Target]:
        candidates = self.host.list_candidate_targets()
        if self.cfg.target_override:
            candidates = [c for c in candidates if c.hostname == self.cfg.target_override]
            # An explicit override skips the naming exclusions but not the basic checks.
            scorer_cfg = ScorerConfig(max_targets=1, excluded_prefixes=(), excluded_hosts=())
        else:
            scorer_cfg = ScorerConfig(
                max_targets=self.cfg.max_targets,
                excluded_prefixes=tuple(self.scorer.excluded_prefixes),
                excluded_hosts=tuple(self.scorer.excluded_hosts),
            )
        return rank_targets(candidates, self.host, scorer_cfg)

    def _plan(self, targets: List[Target]) -> None:
        for t in targets:
            t.action = classify_action(
                t.hack_difficulty,
                t.min_difficulty,
                t.money_available,
                t.money_max,
                self.cfg.security_buffer,
                self.cfg.money_threshold,
            )
            t.demand = self.estimator.estimate(t, t.action)

    def _deploy(self, hostnames: List[str]) -> None:
        scripts = list(WORKER_SCRIPTS.values())
        for h in hostnames:
            if h == self.cfg.primary_host:
                continue
            if not self.host.copy_files(scripts, h):
                self.log.warning("Could not copy worker scripts to %s", h)

    def _dispatch(self, plan: AllocationPlan, report: CycleReport) -> None:
        stamp = stamp_ms()
        for a in plan.assignments:
            pid = self.host.dispatch(a.host, a.action, a.target, a.units, 0, stamp)
            if pid:
                report.dispatched.append(a)
                self.events.log_dispatch(
                    "dispatched", host=a.host, action=a.action.value, target=a.target,
                    units=a.units, pid=pid,
                )
            else:
                report.failures.append(a)
                self.log.warning(
                    "Dispatch failed: %s x%d on %s -> %s", a.action.value, a.units, a.host, a.target
                )
                self.events.log_dispatch(
                    "dispatch failed", host=a.host, action=a.action.value, target=a.target,
                    units=a.units, ok=False,
                )

    def compute_wait_ms(self, targets: List[Target], launched: Optional[Set[str]] = None) -> float:
        """Shortest action time among launched targets, clamped to [min_wait, max_wait]."""
        shortest: Optional[float] = None
        for t in targets:
            if t.assigned <= 0:
                continue
            if launched is not None and t.hostname not in launched:
                continue
            wait = self.host.action_time(t.hostname, t.action)
            shortest = wait if shortest is None else min(shortest, wait)
        if shortest is None:
            shortest = self.cfg.max_wait_ms
        return max(min(shortest, self.cfg.max_wait_ms), self.cfg.min_wait_ms)

    # --------------------------------------------------
    def run_once(self) -> CycleReport:
        lines = [
            f"{C.CYAN}{'═' * 40}{C.RESET}",
            f"{C.CYAN}  DISTRIBUTED HACKER - {datetime.now():%H:%M:%S}{C.RESET}",
            f"{C.CYAN}{'═' * 40}{C.RESET}",
        ]

        inventory = build_capacity_inventory(
            self.host.list_controlled_hosts(),
            primary_host=self.cfg.primary_host,
            primary_reserve=self.cfg.home_reserve,
        )
        total_ram = total_free_ram(inventory)
        lines.append(f"{C.WHITE}Total RAM: {format_ram(total_ram)} across {len(inventory)} servers{C.RESET}")

        if not inventory:
            self.log.info("No free RAM on any controlled host; retrying.")
            lines.append(f"{C.RED}ERROR: No free RAM on any server!{C.RESET}")
            return CycleReport(status="no_capacity", lines=lines, wait_ms=self.cfg.retry_delay_ms)

        self._deploy([w.hostname for w in inventory])

        targets = self._select_targets()
        if not targets:
            self.log.info("No eligible targets; retrying.")
            lines.append(f"{C.RED}ERROR: No valid targets found!{C.RESET}")
            return CycleReport(
                status="no_targets", lines=lines, total_ram=total_ram, wait_ms=self.cfg.retry_delay_ms
            )

        self._plan(targets)
        unit_costs = {action: self.host.unit_cost(action) for action in {t.action for t in targets}}
        plan = allocate(inventory, targets, unit_costs)

        report = CycleReport(status="ok", plan=plan, total_ram=total_ram)
        if not self.cfg.dry_run:
            self._dispatch(plan, report)

        launched = None if self.cfg.dry_run else {a.target for a in report.dispatched}
        report.wait_ms = self.compute_wait_ms(targets, launched) + self.cfg.loop_delay_ms
        lines.extend(self.render(plan, report))
        report.lines = lines

        self.log.info(
            "Cycle: %d units over %d targets | %d dispatched, %d failed | wait=%.0fms",
            plan.total_units,
            sum(1 for t in targets if t.assigned > 0),
            len(report.dispatched),
            len(report.failures),
            report.wait_ms,
        )
        return report

    def render(self, plan: AllocationPlan, report: CycleReport) -> List[str]:
        lines = ["", f"{C.WHITE}Target Assignments:{C.RESET}"]
        for t in plan.targets:
            if t.assigned == 0:
                continue
            color = ACTION_COLORS[t.action]
            mark = f"{C.GREEN}✓{C.RESET}" if t.saturated else f"{C.YELLOW}~{C.RESET}"
            lines.append(
                f"  {color}{t.action.value.upper():<6}{C.RESET} → {C.CYAN}{t.hostname:<15}{C.RESET} | "
                f"{mark} {t.assigned:>10,} threads | "
                f"${format_num(t.money_available)}/{format_num(t.money_max)} | "
                f"Sec {t.hack_difficulty:.1f}/{t.min_difficulty:.1f}"
            )
        active = sum(1 for t in plan.targets if t.assigned > 0)
        lines.append("")
        lines.append(f"{C.MAGENTA}Summary: {plan.total_units:,} threads across {active} targets{C.RESET}")
        if report.failures:
            lines.append(f"{C.RED}{len(report.failures)} dispatches failed{C.RESET}")
        if self.cfg.dry_run:
            lines.append(f"{C.YELLOW}DRY RUN - nothing dispatched{C.RESET}")
        lines.append(f"{C.WHITE}Waiting {format_ms(report.wait_ms)}...{C.RESET}")
        return lines

    def run_forever(
        self,
        cycles: Optional[int] = None,
        sleep: Callable[[float], None] = time.sleep,
        out: Callable[[str], None] = print,
    ) -> List[CycleReport]:
        """Loop until ``cycles`` is reached (forever when None)."""
        reports: List[CycleReport] = []
        n = 0
        while cycles is None or n < cycles:
            report = self.run_once()
            for line in report.lines:
                out(line)
            if cycles is not None:
                reports.append(report)
            n += 1
            if cycles is not None and n >= cycles:
                break
            sleep(report.wait_ms / 1000.0)
        return reports
