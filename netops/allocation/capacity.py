# SPDX-License-Identifier: MIT
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List


@dataclass
class WorkerHost:
    hostname: str
    max_ram: float
    ram_used: float = 0.0
    reserved: float = 0.0
    # Working balance for one allocation pass; set by build_capacity_inventory.
    available_ram: float = 0.0

    @property
    def free_ram(self) -> float:
        return self.max_ram - self.ram_used - self.reserved


def reserve_for(hostname: str, primary_host: str, primary_reserve: float, other_reserve: float) -> float:
    return primary_reserve if hostname == primary_host else other_reserve


def build_capacity_inventory(
    hosts: Iterable[WorkerHost],
    *,
    primary_host: str = "home",
    primary_reserve: float = 32.0,
    other_reserve: float = 0.0,
) -> List[WorkerHost]:
    """
    Snapshot of hosts with positive free RAM, largest first.

    Returns fresh WorkerHost copies; the inputs are not modified.
    """
    inventory: List[WorkerHost] = []
    for h in hosts:
        if h.max_ram <= 0:
            continue
        reserved = reserve_for(h.hostname, primary_host, primary_reserve, other_reserve)
        snap = WorkerHost(
            hostname=h.hostname,
            max_ram=float(h.max_ram),
            ram_used=float(h.ram_used),
            reserved=float(reserved),
        )
        free = snap.free_ram
        if free > 0:
            snap.available_ram = free
            inventory.append(snap)

    inventory.sort(key=lambda w: w.available_ram, reverse=True)
    return inventory


def total_free_ram(inventory: Iterable[WorkerHost]) -> float:
    return sum(w.available_ram for w in inventory)
