# SPDX-License-Identifier: MIT
"""
Purchased-server manager: fill empty slots with the largest affordable
server, then keep upgrading the smallest one until the money runs out.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from netops.utils.formatting import C, format_num, format_ram
from netops.utils.time_utils import stamp_ms

log = logging.getLogger("ServerManager")


@dataclass
class ServerConfig:
    prefix: str = "pserv"
    min_ram: float = 8.0
    reserve: float = 0.0
    interval_ms: float = 10000.0


@dataclass
class ServerCycleReport:
    bought: List[str] = field(default_factory=list)
    upgraded: List[str] = field(default_factory=list)
    waiting: str = ""
    all_maxed: bool = False
    lines: List[str] = field(default_factory=list)


def best_affordable_ram(api, budget: float, min_ram: float, max_ram: float) -> float:
    """Largest power-of-two step from ``min_ram`` whose price fits; 0 if none."""
    if min_ram <= 0:
        raise ValueError(f"min_ram must be positive, got {min_ram}")
    best = 0.0
    ram = min_ram
    while ram <= max_ram:
        if api.purchased_server_cost(ram) <= budget:
            best = ram
        else:
            break
        ram *= 2
    return best


def best_affordable_upgrade(api, hostname: str, budget: float, current_ram: float, max_ram: float) -> float:
    """Largest doubling of ``current_ram`` we can upgrade to; ``current_ram`` if none."""
    if current_ram <= 0:
        return current_ram
    best = current_ram
    ram = current_ram * 2
    while ram <= max_ram:
        if api.upgrade_cost(hostname, ram) <= budget:
            best = ram
        else:
            break
        ram *= 2
    return best


def _default_namer(prefix: str) -> str:
    return f"{prefix}-{format(stamp_ms(), 'x')}"


class ServerManager:
    def __init__(
        self,
        api,
        cfg: Optional[ServerConfig] = None,
        events=None,
        namer: Callable[[str], str] = _default_namer,
    ) -> None:
        self.api = api
        self.cfg = cfg or ServerConfig()
        self.events = events
        self.namer = namer
        self.max_ram = float(api.purchased_server_max_ram())
        self.cap = int(api.purchased_server_limit())
        self.log = logging.getLogger("ServerManager")
        self.log.info(
            "ServerManager: prefix=%s min_ram=%s reserve=%s cap=%d max_ram=%s",
            self.cfg.prefix, self.cfg.min_ram, self.cfg.reserve, self.cap, self.max_ram,
        )

    def _budget(self) -> float:
        return float(self.api.money()) - self.cfg.reserve

    def _fill_slots(self, report: ServerCycleReport) -> None:
        while len(self.api.purchased_servers()) < self.cap:
            ram = best_affordable_ram(self.api, self._budget(), self.cfg.min_ram, self.max_ram)
            if ram <= 0:
                needed = self.api.purchased_server_cost(self.cfg.min_ram)
                report.waiting = f"Need {format_num(needed)} for {format_ram(self.cfg.min_ram)} server"
                return
            cost = self.api.purchased_server_cost(ram)
            name = self.api.purchase_server(self.namer(self.cfg.prefix), ram)
            if self.events is not None:
                self.events.log_purchase("server", item=name or self.cfg.prefix, cost=cost, ok=bool(name), ram=ram)
            if not name:
                self.log.warning("Could not purchase a %s server", format_ram(ram))
                return
            self.log.info("Bought %s @ %s for %s", name, format_ram(ram), format_num(cost))
            report.bought.append(name)

    def _smallest(self):
        servers = self.api.purchased_servers()
        if not servers:
            return None, 0.0
        best = min(servers, key=lambda h: self.api.server_max_ram(h))
        return best, float(self.api.server_max_ram(best))

    def _upgrade_smallest(self, report: ServerCycleReport) -> None:
        while True:
            hostname, ram = self._smallest()
            if hostname is None:
                return
            if ram >= self.max_ram:
                report.all_maxed = True
                return
            target = best_affordable_upgrade(self.api, hostname, self._budget(), ram, self.max_ram)
            if target <= ram:
                needed = self.api.upgrade_cost(hostname, ram * 2)
                report.waiting = (
                    f"Need {format_num(needed)} to upgrade {hostname} "
                    f"({format_ram(ram)} -> {format_ram(ram * 2)})"
                )
                return
            cost = self.api.upgrade_cost(hostname, target)
            ok = self.api.upgrade_server(hostname, target)
            if self.events is not None:
                self.events.log_purchase("upgrade", item=hostname, cost=cost, ok=ok, ram=target)
            if not ok:
                self.log.warning("Could not upgrade %s to %s", hostname, format_ram(target))
                return
            self.log.info("Upgraded %s %s -> %s for %s", hostname, format_ram(ram), format_ram(target), format_num(cost))
            report.upgraded.append(hostname)

    def run_once(self) -> ServerCycleReport:
        report = ServerCycleReport()
        self._fill_slots(report)
        if len(self.api.purchased_servers()) >= self.cap:
            self._upgrade_smallest(report)
        report.lines = self.render(report)
        return report

    def render(self, report: ServerCycleReport) -> List[str]:
        servers = self.api.purchased_servers()
        rams = [self.api.server_max_ram(h) for h in servers]
        lines = [f"{C.CYAN}═══ Auto Server Manager ═══{C.RESET}"]
        for name in report.bought:
            lines.append(f"{C.GREEN}BOUGHT: {name} @ {format_ram(self.api.server_max_ram(name))}{C.RESET}")
        for name in report.upgraded:
            lines.append(f"{C.GREEN}UPGRADED: {name}{C.RESET}")
        if report.all_maxed:
            lines.append(f"{C.GREEN}ALL MAXED: Every server at {format_ram(self.max_ram)}!{C.RESET}")
        elif report.waiting:
            lines.append(f"{C.YELLOW}WAITING: {report.waiting}{C.RESET}")
        lines.append(f"{C.DIM}───────────────────────────────{C.RESET}")
        lines.append(f"Servers: {len(servers)}/{self.cap}")
        lines.append(f"Total RAM: {format_ram(sum(rams))}")
        if rams:
            lines.append(f"Range: {format_ram(min(rams))} - {format_ram(max(rams))}")
        lines.append(f"{C.DIM}This cycle: {len(report.bought)} bought, {len(report.upgraded)} upgraded{C.RESET}")
        return lines
