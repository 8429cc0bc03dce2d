# SPDX-License-Identifier: MIT
"""
Host collaborator interfaces.

Every tool talks to the simulated world through these ABCs. Concrete
implementations wrap the real host object or the in-memory world in
``netops.host.sim_host``.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from netops.allocation.actions import Action, worker_script
from netops.allocation.capacity import WorkerHost
from netops.network.discovery import get_all_servers

log = logging.getLogger("HostAPI")

HOME = "home"


@dataclass
class ServerSnapshot:
    hostname: str
    has_admin_rights: bool = False
    max_ram: float = 0.0
    ram_used: float = 0.0
    money_available: float = 0.0
    money_max: float = 0.0
    hack_difficulty: float = 1.0
    min_difficulty: float = 1.0
    required_hacking_skill: int = 1
    num_open_ports_required: int = 0
    server_growth: float = 0.0
    purchased_by_player: bool = False
    backdoor_installed: bool = False

    @property
    def ram_free(self) -> float:
        return max(0.0, self.max_ram - self.ram_used)


@dataclass
class ProcessInfo:
    pid: int
    filename: str
    threads: int
    args: Tuple = ()


@dataclass
class PlayerSkills:
    hacking: int = 1
    strength: int = 1
    defense: int = 1
    dexterity: int = 1
    agility: int = 1
    charisma: int = 1


@dataclass
class StockPosition:
    shares_long: int = 0
    avg_long_price: float = 0.0
    shares_short: int = 0
    avg_short_price: float = 0.0


@dataclass
class WorkInfo:
    type: str
    faction_name: Optional[str] = None
    faction_work_type: Optional[str] = None


@dataclass
class CandidateTarget:
    """Observed state of a hackable server, as handed to the scorer."""
    hostname: str
    money_available: float
    money_max: float
    hack_difficulty: float
    min_difficulty: float
    required_hacking_skill: int
    has_admin_rights: bool = True
    extra: Dict[str, float] = field(default_factory=dict)


class HostAPI(ABC):
    """Network, process and analysis surface of the host."""

    # ---- primitives ----
    @abstractmethod
    def scan(self, hostname: str) -> List[str]:
        ...

    @abstractmethod
    def get_server(self, hostname: str) -> ServerSnapshot:
        ...

    @abstractmethod
    def hacking_level(self) -> int:
        ...

    @abstractmethod
    def action_time(self, hostname: str, action: Action) -> float:
        """Milliseconds one unit of ``action`` takes against ``hostname``."""
        ...

    @abstractmethod
    def growth_analyze(self, hostname: str, multiplier: float) -> float:
        ...

    @abstractmethod
    def hack_analyze(self, hostname: str) -> float:
        """Fraction of current money one hack unit steals."""
        ...

    @abstractmethod
    def hack_chance(self, hostname: str) -> float:
        ...

    @abstractmethod
    def script_ram(self, script: str) -> float:
        ...

    @abstractmethod
    def run_script(self, script: str, hostname: str, threads: int, *args) -> int:
        """Start ``script`` on ``hostname``; returns a pid, 0 on failure."""
        ...

    @abstractmethod
    def copy_files(self, files: Sequence[str], destination: str, source: str = HOME) -> bool:
        ...

    @abstractmethod
    def ps(self, hostname: str) -> List[ProcessInfo]:
        ...

    @abstractmethod
    def share_power(self) -> float:
        ...

    # ---- collaborator surface used by the allocator ----
    def list_controlled_hosts(self) -> List[WorkerHost]:
        hosts = []
        for hostname in get_all_servers(self):
            srv = self.get_server(hostname)
            if not srv.has_admin_rights or srv.max_ram <= 0:
                continue
            hosts.append(WorkerHost(hostname=hostname, max_ram=srv.max_ram, ram_used=srv.ram_used))
        return hosts

    def list_candidate_targets(self) -> List[CandidateTarget]:
        out = []
        for hostname in get_all_servers(self):
            srv = self.get_server(hostname)
            out.append(
                CandidateTarget(
                    hostname=hostname,
                    money_available=srv.money_available,
                    money_max=srv.money_max,
                    hack_difficulty=srv.hack_difficulty,
                    min_difficulty=srv.min_difficulty,
                    required_hacking_skill=srv.required_hacking_skill,
                    has_admin_rights=srv.has_admin_rights,
                )
            )
        return out

    def estimate_harvest_time(self, hostname: str) -> float:
        return self.action_time(hostname, Action.HARVEST)

    def estimate_replenish_units(self, hostname: str, multiplier: float) -> float:
        return self.growth_analyze(hostname, multiplier)

    def estimate_harvest_fraction(self, hostname: str) -> float:
        return self.hack_analyze(hostname)

    def unit_cost(self, action: Action) -> float:
        return self.script_ram(worker_script(action))

    def dispatch(self, hostname: str, action: Action, target: str, units: int, *args) -> int:
        return self.run_script(worker_script(action), hostname, units, target, *args)


class ServerShopAPI(ABC):
    """Purchased-server management."""

    @abstractmethod
    def money(self) -> float:
        ...

    @abstractmethod
    def purchased_servers(self) -> List[str]:
        ...

    @abstractmethod
    def purchased_server_limit(self) -> int:
        ...

    @abstractmethod
    def purchased_server_max_ram(self) -> float:
        ...

    @abstractmethod
    def purchased_server_cost(self, ram: float) -> float:
        ...

    @abstractmethod
    def upgrade_cost(self, hostname: str, ram: float) -> float:
        ...

    @abstractmethod
    def purchase_server(self, hostname: str, ram: float) -> str:
        """Returns the new hostname, empty string on failure."""
        ...

    @abstractmethod
    def upgrade_server(self, hostname: str, ram: float) -> bool:
        ...

    @abstractmethod
    def server_max_ram(self, hostname: str) -> float:
        ...


class StockAPI(ABC):
    """Stock exchange surface (requires market data access)."""

    @abstractmethod
    def symbols(self) -> List[str]:
        ...

    @abstractmethod
    def ask_price(self, sym: str) -> float:
        ...

    @abstractmethod
    def bid_price(self, sym: str) -> float:
        ...

    @abstractmethod
    def volatility(self, sym: str) -> float:
        ...

    @abstractmethod
    def forecast(self, sym: str) -> float:
        ...

    @abstractmethod
    def max_shares(self, sym: str) -> int:
        ...

    @abstractmethod
    def position(self, sym: str) -> StockPosition:
        ...

    @abstractmethod
    def commission(self) -> float:
        ...

    @abstractmethod
    def money(self) -> float:
        ...

    @abstractmethod
    def buy_stock(self, sym: str, shares: int) -> float:
        """Returns the fill price, 0 on failure."""
        ...

    @abstractmethod
    def sell_stock(self, sym: str, shares: int) -> float:
        ...

    def buy_short(self, sym: str, shares: int) -> float:
        return 0.0

    def sell_short(self, sym: str, shares: int) -> float:
        return 0.0


class FactionAPI(ABC):
    """Faction, augmentation and work surface."""

    @abstractmethod
    def money(self) -> float:
        ...

    @abstractmethod
    def skills(self) -> PlayerSkills:
        ...

    @abstractmethod
    def joined_factions(self) -> List[str]:
        ...

    @abstractmethod
    def owned_augmentations(self, include_purchased: bool = True) -> List[str]:
        ...

    @abstractmethod
    def augmentations_from_faction(self, faction: str) -> List[str]:
        ...

    @abstractmethod
    def faction_rep(self, faction: str) -> float:
        ...

    @abstractmethod
    def faction_favor(self, faction: str) -> float:
        ...

    @abstractmethod
    def augmentation_rep_req(self, aug: str) -> float:
        ...

    @abstractmethod
    def augmentation_price(self, aug: str) -> float:
        ...

    @abstractmethod
    def augmentation_prereqs(self, aug: str) -> List[str]:
        ...

    @abstractmethod
    def purchase_augmentation(self, faction: str, aug: str) -> bool:
        ...

    @abstractmethod
    def current_work(self) -> Optional[WorkInfo]:
        ...

    @abstractmethod
    def work_for_faction(self, faction: str, work_type: str) -> bool:
        ...

    def favor_to_donate(self) -> float:
        return 150.0
