# SPDX-License-Identifier: MIT
"""
Network dashboard: RAM usage, running worker jobs per target, expected
hack income and the busiest hosts.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

import pandas as pd

from netops.allocation.actions import Action, action_for_script
from netops.network.discovery import get_all_servers
from netops.reputation.rep_tracker import RateTracker
from netops.utils.formatting import C, format_num, format_ram, format_time, make_bar

log = logging.getLogger("Dashboard")

JOB_COLUMNS = ["host", "target", "action", "threads"]
ACTION_COLUMNS = [Action.HARVEST.value, Action.REPLENISH.value, Action.SUPPRESS.value]
SECURITY_ALERT = 5.0
MONEY_READY = 0.8


@dataclass
class RamStats:
    total: float = 0.0
    used: float = 0.0
    active_servers: int = 0
    total_servers: int = 0

    @property
    def fraction(self) -> float:
        return self.used / self.total if self.total > 0 else 0.0


def ram_stats(api) -> RamStats:
    stats = RamStats()
    for hostname in get_all_servers(api):
        s = api.get_server(hostname)
        if not s.has_admin_rights or s.max_ram == 0:
            continue
        stats.total_servers += 1
        stats.total += s.max_ram
        stats.used += s.ram_used
        if s.ram_used > 0:
            stats.active_servers += 1
    return stats


def collect_jobs(api) -> pd.DataFrame:
    """One row per running worker process that names a target."""
    rows = []
    for hostname in get_all_servers(api):
        for p in api.ps(hostname):
            action = action_for_script(p.filename)
            if action is None or not p.args or not p.args[0]:
                continue
            rows.append({"host": hostname, "target": str(p.args[0]), "action": action.value, "threads": int(p.threads)})
    return pd.DataFrame(rows, columns=JOB_COLUMNS)


def jobs_by_target(jobs: pd.DataFrame) -> pd.DataFrame:
    """Threads per target and action, busiest target first."""
    if jobs.empty:
        return pd.DataFrame(columns=ACTION_COLUMNS + ["total"])
    table = jobs.pivot_table(index="target", columns="action", values="threads", aggfunc="sum", fill_value=0)
    table = table.reindex(columns=ACTION_COLUMNS, fill_value=0).astype(int)
    table["total"] = table.sum(axis=1)
    return table.sort_values("total", ascending=False, kind="mergesort")


def busiest_hosts(api, n: int = 5) -> List[tuple]:
    counts = []
    for hostname in get_all_servers(api):
        threads = sum(p.threads for p in api.ps(hostname) if "/workers/" in p.filename)
        if threads > 0:
            counts.append((hostname, threads))
    counts.sort(key=lambda kv: kv[1], reverse=True)
    return counts[:n]


def target_status(server) -> tuple:
    """(label, color) for a target: security alert, then money, then ready."""
    sec_diff = server.hack_difficulty - server.min_difficulty
    if sec_diff > SECURITY_ALERT:
        return f"Sec +{sec_diff:.0f}", C.RED
    if server.money_available < server.money_max * MONEY_READY:
        pct = server.money_available / server.money_max * 100 if server.money_max > 0 else 0.0
        return f"{pct:.0f}% $", C.YELLOW
    return "Ready", C.GREEN


def expected_money(api, table: pd.DataFrame) -> float:
    """Money the running hack threads should bring in when they land."""
    total = 0.0
    if table.empty:
        return total
    for target, hack_threads in table[Action.HARVEST.value].items():
        if hack_threads <= 0:
            continue
        s = api.get_server(target)
        fraction = min(api.hack_analyze(target) * hack_threads, 1.0)
        total += s.money_available * fraction * api.hack_chance(target)
    return total


@dataclass
class DashboardSnapshot:
    ram: RamStats
    jobs: pd.DataFrame
    expected: float
    busiest: List[tuple]
    money: float
    money_rate: float
    uptime_s: float
    lines: List[str] = field(default_factory=list)


class Dashboard:
    def __init__(self, api, money_fn: Optional[Callable[[], float]] = None, clock: Callable[[], float] = time.time) -> None:
        self.api = api
        self.money_fn = money_fn or (lambda: 0.0)
        self.clock = clock
        self.start = clock()
        self.rate = RateTracker()

    def snapshot(self) -> DashboardSnapshot:
        money = float(self.money_fn())
        now = self.clock()
        table = jobs_by_target(collect_jobs(self.api))
        snap = DashboardSnapshot(
            ram=ram_stats(self.api),
            jobs=table,
            expected=expected_money(self.api, table),
            busiest=busiest_hosts(self.api),
            money=money,
            money_rate=self.rate.update("money", money, now),
            uptime_s=now - self.start,
        )
        snap.lines = self.render(snap)
        return snap

    def render(self, snap: DashboardSnapshot) -> List[str]:
        rate_color = C.GREEN if snap.money_rate >= 0 else C.RED
        lines = [
            f"{C.CYAN}╔{'═' * 52}╗{C.RESET}",
            f"{C.CYAN}║{C.RESET}          {C.WHITE}NETWORK DASHBOARD{C.RESET}{' ' * 25}{C.CYAN}║{C.RESET}",
            f"{C.CYAN}╚{'═' * 52}╝{C.RESET}",
            f"{C.DIM}Uptime: {format_time(snap.uptime_s)} | Money: {format_num(snap.money)} "
            f"({rate_color}{'+' if snap.money_rate >= 0 else ''}{format_num(snap.money_rate)}{C.RESET}{C.DIM}/s){C.RESET}",
            "",
            f"{C.WHITE}RAM Usage:{C.RESET} {make_bar(snap.ram.fraction, 20)} {snap.ram.fraction * 100:.1f}% "
            f"({format_ram(snap.ram.used)}/{format_ram(snap.ram.total)})",
            f"{C.DIM}Servers: {snap.ram.active_servers}/{snap.ram.total_servers} active{C.RESET}",
            "",
            f"{C.WHITE}Active Targets:{C.RESET}",
        ]

        table = snap.jobs
        if table.empty:
            lines.append(f"  {C.YELLOW}No hacking activity detected{C.RESET}")
        else:
            lines.append(f"  {C.DIM}{'Target':<16} {'Hack':>10} {'Grow':>10} {'Weaken':>10} {'Status':>10}{C.RESET}")
            lines.append(f"  {C.DIM}{'─' * 60}{C.RESET}")
            for target, row in table.iterrows():
                label, color = target_status(self.api.get_server(target))
                h, g, w = (int(row[c]) for c in ACTION_COLUMNS)
                lines.append(
                    f"  {C.CYAN}{target:<16}{C.RESET} "
                    f"{C.GREEN if h else C.DIM}{h:>10,}{C.RESET} "
                    f"{C.YELLOW if g else C.DIM}{g:>10,}{C.RESET} "
                    f"{C.BLUE if w else C.DIM}{w:>10,}{C.RESET} "
                    f"{color}{label:>10}{C.RESET}"
                )
            sums = table[ACTION_COLUMNS].sum()
            total = int(sums.sum())
            lines.append(f"  {C.DIM}{'─' * 60}{C.RESET}")
            lines.append(
                f"  {C.WHITE}{'TOTAL':<16}{C.RESET} {C.GREEN}{int(sums.iloc[0]):>10,}{C.RESET} "
                f"{C.YELLOW}{int(sums.iloc[1]):>10,}{C.RESET} {C.BLUE}{int(sums.iloc[2]):>10,}{C.RESET}"
            )
            lines.append("")
            lines.append(f"{C.MAGENTA}Total Threads: {total:,} | Expecting: {C.GREEN}${format_num(snap.expected)}{C.RESET}")

        if snap.busiest:
            top = snap.busiest[0][1] or 1
            lines.append("")
            lines.append(f"{C.WHITE}Busiest Servers:{C.RESET}")
            for hostname, threads in snap.busiest:
                lines.append(f"  {C.DIM}{hostname:<20}{C.RESET} {make_bar(threads / top, 10)} {threads:,} threads")
        return lines
