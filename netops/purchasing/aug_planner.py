# SPDX-License-Identifier: MIT
"""
Augmentation purchase planning.

Every purchase multiplies the price of the next one, so buying the most
expensive items first minimizes the total. Planning is a pure sort plus a
running-total scan; ``AugmentationBuyer`` wires it to a FactionAPI.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from netops.utils.formatting import C, format_num

log = logging.getLogger("AugPlanner")

AUG_COST_MULT = 1.9
NEUROFLUX = "NeuroFlux Governor"


@dataclass
class PurchaseItem:
    name: str
    faction: str
    base_price: float
    rep_req: float = 0.0
    prereqs: List[str] = field(default_factory=list)


@dataclass
class PlannedPurchase:
    item: PurchaseItem
    adjusted_cost: float
    multiplier: float
    running_total: float = 0.0

    @property
    def name(self) -> str:
        return self.item.name

    @property
    def faction(self) -> str:
        return self.item.faction


def plan_purchases(items: Sequence[PurchaseItem], cost_multiplier: float = AUG_COST_MULT) -> List[PlannedPurchase]:
    """Most expensive first; the k-th purchase costs round(base * multiplier**k)."""
    ordered = sorted(items, key=lambda i: i.base_price, reverse=True)
    plan: List[PlannedPurchase] = []
    multiplier = 1.0
    for item in ordered:
        plan.append(PlannedPurchase(item=item, adjusted_cost=round(item.base_price * multiplier), multiplier=multiplier))
        multiplier *= cost_multiplier
    return plan


def affordable_prefix(plan: Sequence[PlannedPurchase], budget: float) -> List[PlannedPurchase]:
    """Longest prefix of ``plan`` whose cumulative cost fits in ``budget``."""
    out: List[PlannedPurchase] = []
    running = 0.0
    for p in plan:
        running += p.adjusted_cost
        if running > budget:
            break
        p.running_total = running
        out.append(p)
    return out


def collect_unlocked_augmentations(api) -> List[PurchaseItem]:
    """
    Augmentations purchasable right now across all joined factions: not owned
    (installed or queued), not NeuroFlux Governor, prerequisites owned and
    enough faction reputation. An augmentation offered by several factions
    appears once, under the first faction that can sell it.
    """
    owned = set(api.owned_augmentations(True))
    seen = set()
    items: List[PurchaseItem] = []
    for faction in api.joined_factions():
        rep = api.faction_rep(faction)
        candidates = []
        for aug in api.augmentations_from_faction(faction):
            if aug in owned or aug == NEUROFLUX or aug in seen:
                continue
            prereqs = list(api.augmentation_prereqs(aug) or [])
            if any(p not in owned for p in prereqs):
                continue
            rep_req = float(api.augmentation_rep_req(aug))
            if rep < rep_req:
                continue
            candidates.append(PurchaseItem(
                name=aug, faction=faction, base_price=float(api.augmentation_price(aug)),
                rep_req=rep_req, prereqs=prereqs,
            ))
        for item in sorted(candidates, key=lambda i: i.rep_req):
            seen.add(item.name)
            items.append(item)
    log.debug("collect_unlocked_augmentations: %d items", len(items))
    return items


@dataclass
class BuyReport:
    plan: List[PlannedPurchase]
    affordable: List[PlannedPurchase]
    budget: float
    confirmed: bool
    purchased: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    spent: float = 0.0
    lines: List[str] = field(default_factory=list)


class AugmentationBuyer:
    def __init__(self, api, cost_multiplier: float = AUG_COST_MULT, events=None) -> None:
        self.api = api
        self.cost_multiplier = cost_multiplier
        self.events = events
        self.log = logging.getLogger("AugmentationBuyer")

    def run(self, confirm: bool = False, reserve: float = 0.0) -> BuyReport:
        budget = float(self.api.money()) - float(reserve)
        plan = plan_purchases(collect_unlocked_augmentations(self.api), self.cost_multiplier)
        affordable = affordable_prefix(plan, budget)
        report = BuyReport(plan=plan, affordable=affordable, budget=budget, confirmed=confirm)

        if confirm:
            for p in affordable:
                ok = self.api.purchase_augmentation(p.faction, p.name)
                if ok:
                    report.purchased.append(p.name)
                    report.spent += p.adjusted_cost
                    self.log.info("Purchased %s from %s for %.0f", p.name, p.faction, p.adjusted_cost)
                else:
                    report.failed.append(p.name)
                    self.log.warning("Failed to purchase %s from %s", p.name, p.faction)
                if self.events is not None:
                    self.events.log_purchase(
                        "augmentation", item=p.name, cost=p.adjusted_cost, ok=ok, faction=p.faction,
                    )

        report.lines = render_report(report)
        return report


def render_report(report: BuyReport) -> List[str]:
    lines: List[str] = []
    if not report.plan:
        lines.append(f"{C.YELLOW}No augmentations unlocked for purchase.{C.RESET}")
        lines.append(f"{C.DIM}Earn more reputation to unlock augmentations first.{C.RESET}")
        return lines

    title = "AUGMENTATION PURCHASE" + ("" if report.confirmed else " (DRY RUN)")
    lines += [
        f"{C.CYAN}{'═' * 70}{C.RESET}",
        f"{' ' * 20}{C.WHITE}{title}{C.RESET}",
        f"{C.CYAN}{'═' * 70}{C.RESET}",
        f"{C.DIM}Available: ${format_num(report.budget)} | Unlocked: {len(report.plan)} augs | "
        f"Affordable: {len(report.affordable)} augs{C.RESET}",
        "",
    ]
    if not report.affordable:
        lines.append(f"{C.YELLOW}Cannot afford any augmentations.{C.RESET}")
        lines.append(f"{C.DIM}Most expensive unlocked aug costs ${format_num(report.plan[0].adjusted_cost)}{C.RESET}")
        return lines

    lines.append(f"{C.DIM}{'#':>2} {'Augmentation':<35} {'Faction':<18} {'Cost':>12}{C.RESET}")
    lines.append(f"{C.DIM}{'─' * 70}{C.RESET}")
    for i, p in enumerate(report.affordable, 1):
        lines.append(
            f"{C.GREEN}{i:>2}{C.RESET} {C.WHITE}{p.name[:35]:<35}{C.RESET} "
            f"{C.CYAN}{p.faction[:18]:<18}{C.RESET} {C.GREEN}${format_num(p.adjusted_cost):>11}{C.RESET}"
        )
    lines.append(f"{C.DIM}{'─' * 70}{C.RESET}")
    lines.append(
        f"{C.WHITE}Total: {C.GREEN}${format_num(report.affordable[-1].running_total)}{C.RESET} "
        f"for {C.GREEN}{len(report.affordable)}{C.RESET} augmentations"
    )
    remaining = len(report.plan) - len(report.affordable)
    if remaining > 0:
        lines.append(f"{C.YELLOW}{remaining} more aug{'s' if remaining > 1 else ''} unlocked but not affordable{C.RESET}")
    lines.append("")

    if not report.confirmed:
        lines.append(f"{C.YELLOW}DRY RUN - No purchases made.{C.RESET}")
        lines.append(f"{C.DIM}Run with --confirm to actually purchase these augmentations.{C.RESET}")
        return lines

    for name in report.purchased:
        lines.append(f"{C.GREEN}✓{C.RESET} Purchased {C.WHITE}{name}{C.RESET}")
    for name in report.failed:
        lines.append(f"{C.RED}✗{C.RESET} Failed to purchase {name} - may need prereqs or price changed")
    lines.append(
        f"{C.WHITE}Purchased {C.GREEN}{len(report.purchased)}{C.RESET}/{len(report.affordable)} "
        f"augmentations for ~${format_num(report.spent)}"
    )
    return lines


def total_cost(plan: Iterable[PlannedPurchase]) -> float:
    return sum(p.adjusted_cost for p in plan)
