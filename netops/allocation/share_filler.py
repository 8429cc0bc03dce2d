# SPDX-License-Identifier: MIT
"""
Fill spare RAM with share() units to boost faction reputation gain.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from netops.allocation.actions import SHARE_SCRIPT
from netops.allocation.capacity import build_capacity_inventory
from netops.network.discovery import get_all_servers
from netops.utils.formatting import C, format_ram

log = logging.getLogger("ShareFiller")


@dataclass
class ShareConfig:
    min_free: float = 4.0          # GB left free on every non-home host
    home_reserve: float = 32.0
    interval_ms: float = 10000.0
    primary_host: str = "home"


@dataclass
class ShareReport:
    launched: int = 0
    hosts_used: int = 0
    total_threads: int = 0
    share_power: float = 1.0
    threads_by_host: Dict[str, int] = field(default_factory=dict)
    lines: List[str] = field(default_factory=list)

    def top_hosts(self, n: int = 5) -> List[Tuple[str, int]]:
        return sorted(self.threads_by_host.items(), key=lambda kv: kv[1], reverse=True)[:n]


class ShareFiller:
    def __init__(self, host, cfg: Optional[ShareConfig] = None) -> None:
        self.host = host
        self.cfg = cfg or ShareConfig()
        self.share_ram = float(host.script_ram(SHARE_SCRIPT))
        if self.share_ram <= 0:
            raise RuntimeError(f"Could not find {SHARE_SCRIPT}")

    def deploy(self) -> None:
        for h in self.host.list_controlled_hosts():
            if h.hostname != self.cfg.primary_host:
                self.host.copy_files([SHARE_SCRIPT], h.hostname)

    def _running_share_threads(self) -> Dict[str, int]:
        out: Dict[str, int] = {}
        for hostname in get_all_servers(self.host):
            threads = sum(p.threads for p in self.host.ps(hostname) if p.filename == SHARE_SCRIPT)
            if threads > 0:
                out[hostname] = threads
        return out

    def run_once(self, stamp: int = 0) -> ShareReport:
        report = ShareReport()
        inventory = build_capacity_inventory(
            self.host.list_controlled_hosts(),
            primary_host=self.cfg.primary_host,
            primary_reserve=self.cfg.home_reserve,
            other_reserve=self.cfg.min_free,
        )

        for w in inventory:
            can_run = math.floor(w.available_ram / self.share_ram)
            if can_run <= 0:
                continue
            pid = self.host.run_script(SHARE_SCRIPT, w.hostname, can_run, stamp)
            if pid:
                report.launched += can_run
                report.hosts_used += 1
            else:
                log.warning("Could not start %d share threads on %s", can_run, w.hostname)

        report.threads_by_host = self._running_share_threads()
        report.total_threads = sum(report.threads_by_host.values())
        report.share_power = self.host.share_power()
        report.lines = self.render(report)
        log.info(
            "Share cycle: launched=%d on %d hosts | total=%d | power=%.3f",
            report.launched, report.hosts_used, report.total_threads, report.share_power,
        )
        return report

    def render(self, report: ShareReport) -> List[str]:
        lines = [
            f"{C.CYAN}═══ Auto Share Manager ═══{C.RESET}",
            f"{C.DIM}Share RAM: {format_ram(self.share_ram)} | Min free: {format_ram(self.cfg.min_free)} | "
            f"Home reserve: {format_ram(self.cfg.home_reserve)}{C.RESET}",
            "",
            f"{C.WHITE}Active Share Threads: {C.GREEN}{report.total_threads:,}{C.RESET}",
            f"{C.WHITE}Share Power: {C.GREEN}{report.share_power:.3f}x{C.RESET} reputation gain",
            f"{C.WHITE}Launched this cycle: {C.YELLOW}{report.launched:,}{C.RESET} on {report.hosts_used} servers",
        ]
        top = report.top_hosts()
        if top:
            lines.append("")
            lines.append(f"{C.DIM}Top servers by share threads:{C.RESET}")
            for hostname, threads in top:
                lines.append(f"  {C.DIM}{hostname:<20}{C.RESET} {threads:,} threads")
        lines.append("")
        lines.append(f"{C.DIM}Next check in {self.cfg.interval_ms / 1000:.0f}s...{C.RESET}")
        return lines
