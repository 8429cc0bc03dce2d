# SPDX-License-Identifier: MIT
"""
Faction reputation tracking: pick the next augmentation to grind for,
pick the work type, smooth the reputation gain rate and estimate the ETA.
"""
from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from netops.purchasing.aug_planner import (
    NEUROFLUX,
    PurchaseItem,
    affordable_prefix,
    collect_unlocked_augmentations,
    plan_purchases,
)
from netops.utils.formatting import C, format_num, format_time, make_bar

log = logging.getLogger("RepManager")

SMOOTHING_KEEP = 0.7
SMOOTHING_NEW = 0.3


class RateTracker:
    """
    Exponentially smoothed rate of change of a value, per key.

    A new sample only contributes when it belongs to the same key as the
    previous one and the previous value was positive; switching keys resets
    the smoothed rate.
    """

    def __init__(self) -> None:
        self.key: Optional[str] = None
        self.prev_value: float = 0.0
        self.prev_time: float = 0.0
        self.rate: float = 0.0

    def update(self, key: str, value: float, now: float) -> float:
        if key != self.key:
            self.rate = 0.0
        elif self.prev_value > 0:
            dt = now - self.prev_time
            if dt > 0:
                self.rate = self.rate * SMOOTHING_KEEP + ((value - self.prev_value) / dt) * SMOOTHING_NEW
        self.key = key
        self.prev_value = value
        self.prev_time = now
        return self.rate


@dataclass
class FactionSummary:
    name: str
    rep: float
    favor: float
    available: List[PurchaseItem] = field(default_factory=list)  # by rep requirement


@dataclass
class NextTarget:
    aug: PurchaseItem
    faction: FactionSummary
    rep_gap: float


def analyze_factions(api) -> List[FactionSummary]:
    owned = set(api.owned_augmentations(True))
    out: List[FactionSummary] = []
    for faction in api.joined_factions():
        items = []
        for aug in api.augmentations_from_faction(faction):
            if aug in owned or aug == NEUROFLUX:
                continue
            prereqs = list(api.augmentation_prereqs(aug) or [])
            if any(p not in owned for p in prereqs):
                continue
            items.append(PurchaseItem(
                name=aug, faction=faction, base_price=float(api.augmentation_price(aug)),
                rep_req=float(api.augmentation_rep_req(aug)), prereqs=prereqs,
            ))
        items.sort(key=lambda i: i.rep_req)
        out.append(FactionSummary(
            name=faction, rep=float(api.faction_rep(faction)),
            favor=float(api.faction_favor(faction)), available=items,
        ))
    return out


def find_next_augmentation(factions: List[FactionSummary]) -> Optional[NextTarget]:
    """Augmentation with the smallest positive reputation gap; ties keep the first seen."""
    best: Optional[NextTarget] = None
    for f in factions:
        for aug in f.available:
            gap = aug.rep_req - f.rep
            if gap > 0 and (best is None or gap < best.rep_gap):
                best = NextTarget(aug=aug, faction=f, rep_gap=gap)
    return best


def select_best_work_type(skills) -> str:
    combat = (skills.strength + skills.defense + skills.dexterity + skills.agility) / 4
    if skills.hacking > combat and skills.hacking > skills.charisma:
        return "hacking"
    return "field"


def estimate_eta(rep_needed: float, rate: float) -> float:
    """Seconds until ``rep_needed`` more reputation; 0 when done, inf when not progressing."""
    if rep_needed <= 0:
        return 0.0
    if rate <= 0:
        return math.inf
    return rep_needed / rate


@dataclass
class RepConfig:
    faction: str = ""
    no_work: bool = False
    interval_ms: float = 2000.0
    reserve: float = 0.0


@dataclass
class RepReport:
    target: Optional[NextTarget] = None
    rate: float = 0.0
    eta_seconds: float = math.inf
    work_started: bool = False
    work_type: str = ""
    lines: List[str] = field(default_factory=list)


class RepManager:
    def __init__(
        self,
        api,
        cfg: Optional[RepConfig] = None,
        tracker: Optional[RateTracker] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.api = api
        self.cfg = cfg or RepConfig()
        self.tracker = tracker or RateTracker()
        self.clock = clock
        self.log = logging.getLogger("RepManager")

    def _choose_target(self, factions: List[FactionSummary]) -> Optional[NextTarget]:
        target = find_next_augmentation(factions)
        if self.cfg.faction:
            forced = next((f for f in factions if f.name == self.cfg.faction), None)
            if forced is not None and forced.available:
                aug = forced.available[0]
                target = NextTarget(aug=aug, faction=forced, rep_gap=aug.rep_req - forced.rep)
            elif forced is None:
                self.log.warning("Faction %s not joined; using auto-selection", self.cfg.faction)
        return target

    def _ensure_work(self, target: NextTarget, report: RepReport) -> None:
        if self.cfg.no_work or target.aug.rep_req <= target.faction.rep:
            return
        best = select_best_work_type(self.api.skills())
        report.work_type = best
        work = self.api.current_work()
        working_here = work is not None and work.type == "FACTION" and work.faction_name == target.faction.name
        if working_here and work.faction_work_type == best:
            return
        if self.api.work_for_faction(target.faction.name, best):
            report.work_started = True
            self.log.info("Working for %s (%s)", target.faction.name, best)
        else:
            self.log.warning("Could not start %s work for %s", best, target.faction.name)

    def run_once(self) -> RepReport:
        report = RepReport()
        factions = analyze_factions(self.api)
        target = self._choose_target(factions)
        report.target = target
        if target is None:
            report.lines = self.render(report, factions)
            return report

        report.rate = self.tracker.update(target.faction.name, target.faction.rep, self.clock())
        report.eta_seconds = estimate_eta(target.aug.rep_req - target.faction.rep, report.rate)
        self._ensure_work(target, report)
        report.lines = self.render(report, factions)
        return report

    def render(self, report: RepReport, factions: List[FactionSummary]) -> List[str]:
        money = float(self.api.money())
        owned = self.api.owned_augmentations(True)
        installed = set(self.api.owned_augmentations(False))
        pending = [a for a in owned if a not in installed]
        lines = [
            f"{C.WHITE}AUTO REPUTATION MANAGER{C.RESET}  {C.DIM}|{C.RESET}  {C.GREEN}${format_num(money)}{C.RESET}"
            f"  {C.DIM}|{C.RESET}  {C.YELLOW}{len(pending)}{C.RESET} {C.DIM}pending augs{C.RESET}",
        ]
        target = report.target
        if target is None:
            lines.append("")
            lines.append(f"{C.YELLOW}No faction with available augmentations found.{C.RESET}")
            lines.append(f"{C.DIM}Join a faction or complete more requirements.{C.RESET}")
            return lines

        f, aug = target.faction, target.aug
        work = self.api.current_work()
        if work is not None and work.type == "FACTION" and work.faction_name == f.name:
            status = f"{C.GREEN}{work.faction_work_type}{C.RESET}"
        elif work is not None and work.type == "FACTION":
            status = f"{C.YELLOW}working for {work.faction_name}{C.RESET}"
        elif work is not None:
            status = f"{C.YELLOW}{work.type.lower()}{C.RESET}"
        else:
            status = f"{C.DIM}not working{C.RESET}"
        lines.append("")
        lines.append(
            f"{C.CYAN}CURRENT FOCUS{C.RESET}: {C.WHITE}{f.name}{C.RESET}  {status}  "
            f"{C.DIM}(favor: {f.favor:.0f}/{self.api.favor_to_donate():.0f}){C.RESET}"
        )

        progress = min(1.0, f.rep / aug.rep_req) if aug.rep_req > 0 else 1.0
        needed = max(0.0, aug.rep_req - f.rep)
        can_afford = money - self.cfg.reserve >= aug.base_price
        lines.append("")
        lines.append(f"{C.CYAN}  NEXT UNLOCK{C.RESET}:  {C.YELLOW}{aug.name}{C.RESET}")
        lines.append(f"{make_bar(progress, 40, C.GREEN if progress >= 1 else C.CYAN)} {progress * 100:.1f}%")
        rep_line = f"{C.DIM}{format_num(f.rep)} / {format_num(aug.rep_req)} rep{C.RESET}"
        if needed > 0:
            rep_line += f"  {C.DIM}(need {format_num(needed)} more){C.RESET}"
        lines.append(rep_line)

        if needed <= 0:
            eta = f"{C.GREEN}✓ rep unlocked{C.RESET}"
        elif report.rate > 0:
            eta = f"ETA: {C.CYAN}{format_time(report.eta_seconds)}{C.RESET} {C.DIM}@ {format_num(report.rate)}/s{C.RESET}"
        else:
            eta = f"{C.DIM}ETA: calculating...{C.RESET}"
        cost = (f"{C.GREEN}✓ ${format_num(aug.base_price)}{C.RESET}" if can_afford
                else f"{C.RED}✗ ${format_num(aug.base_price)}{C.RESET}")
        lines.append(f"{eta}  {C.DIM}|{C.RESET}  {cost}")

        plan = plan_purchases(collect_unlocked_augmentations(self.api))
        lines.append("")
        if not plan:
            lines.append(f"{C.CYAN}PURCHASE ORDER{C.RESET}  {C.DIM}no augmentations unlocked yet{C.RESET}")
        else:
            affordable = affordable_prefix(plan, money - self.cfg.reserve)
            total = sum(p.adjusted_cost for p in plan)
            lines.append(
                f"{C.CYAN}PURCHASE ORDER{C.RESET}  {C.DIM}{len(plan)} unlocked, "
                f"{C.GREEN}{len(affordable)} affordable{C.RESET}{C.DIM}, ${format_num(total)} total{C.RESET}"
            )
            running = 0.0
            for i, p in enumerate(plan[:12], 1):
                running += p.adjusted_cost
                color = C.GREEN if i <= len(affordable) else C.DIM
                lines.append(
                    f"{color}{i:>2}{C.RESET}  {p.name[:34]:<34} {C.DIM}${format_num(p.item.base_price):>10}{C.RESET} -> "
                    f"{color}{format_num(p.adjusted_cost):>10}{C.RESET}    {color}${format_num(running):>10}{C.RESET}"
                )
            if len(plan) > 12:
                lines.append(f"{C.DIM}    ... +{len(plan) - 12} more{C.RESET}")

        hints = []
        for other in factions:
            if other.name == f.name:
                continue
            nxt = next((a for a in other.available if a.rep_req > other.rep), None)
            if nxt is not None:
                hints.append((nxt.rep_req - other.rep, other.name, nxt.name))
        hints.sort(key=lambda h: h[0])
        if hints:
            lines.append("")
            lines.append(f"{C.CYAN}SWITCH TO{C.RESET}")
            for gap, fname, aname in hints[:4]:
                lines.append(f"  {C.WHITE}{fname:<18}{C.RESET} {C.YELLOW}{aname[:26]:<26}{C.RESET} {C.DIM}({format_num(gap)} rep){C.RESET}")
            if len(hints) > 4:
                lines.append(f"  {C.DIM}+{len(hints) - 4} more factions{C.RESET}")
        return lines
