# SPDX-License-Identifier: MIT
"""
In-memory world backed by a YAML snapshot.

Mimics the host surface closely enough for dry-runs, demos and tests but
never simulates the passage of time: processes stay in the table until
``kill_all`` and prices only move when a test sets them.
"""
from __future__ import annotations

import copy
import logging
import math
from dataclasses import dataclass, field
from itertools import count
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Set

import yaml

from netops.allocation.actions import Action
from netops.host.api import (
    FactionAPI,
    HOME,
    HostAPI,
    PlayerSkills,
    ProcessInfo,
    ServerShopAPI,
    ServerSnapshot,
    StockAPI,
    StockPosition,
    WorkInfo,
)

log = logging.getLogger("InMemoryHost")

# Game ratios between the three worker durations.
GROW_TIME_FACTOR = 3.2
WEAKEN_TIME_FACTOR = 4.0

DEFAULT_SCRIPT_RAM = {
    "/workers/hack.js": 1.70,
    "/workers/grow.js": 1.75,
    "/workers/weaken.js": 1.75,
    "/workers/share.js": 4.00,
}


@dataclass
class SimPlayer:
    money: float = 0.0
    skills: PlayerSkills = field(default_factory=PlayerSkills)
    work: Optional[WorkInfo] = None


@dataclass
class ServerAnalysis:
    hack_time: float = 1000.0
    hack_fraction: float = 0.002
    growth_per_thread: float = 1.0025
    hack_chance: float = 1.0


class InMemoryHost(HostAPI, ServerShopAPI):
    def __init__(
        self,
        servers: Dict[str, ServerSnapshot],
        links: Dict[str, Set[str]],
        player: Optional[SimPlayer] = None,
        analysis: Optional[Dict[str, ServerAnalysis]] = None,
        script_ram: Optional[Dict[str, float]] = None,
        files: Optional[Dict[str, Set[str]]] = None,
        server_limit: int = 25,
        server_max_ram: float = 2 ** 20,
        cost_per_gb: float = 55000.0,
        share_power_per_thread: float = 0.0001,
    ) -> None:
        self.servers = servers
        self.links = links
        self.player = player or SimPlayer()
        self.analysis = analysis or {}
        self.scripts = dict(DEFAULT_SCRIPT_RAM if script_ram is None else script_ram)
        self.files: Dict[str, Set[str]] = files if files is not None else {}
        self.files.setdefault(HOME, set()).update(self.scripts)
        self.processes: Dict[str, List[ProcessInfo]] = {}
        self.server_limit = int(server_limit)
        self.server_max_ram_gb = float(server_max_ram)
        self.cost_per_gb = float(cost_per_gb)
        self.share_power_per_thread = float(share_power_per_thread)
        self._pids = count(1)

    # ---- HostAPI ----
    def scan(self, hostname: str) -> List[str]:
        return sorted(self.links.get(hostname, ()))

    def get_server(self, hostname: str) -> ServerSnapshot:
        if hostname not in self.servers:
            raise KeyError(f"Unknown server: {hostname}")
        return copy.copy(self.servers[hostname])

    def hacking_level(self) -> int:
        return int(self.player.skills.hacking)

    def _analysis(self, hostname: str) -> ServerAnalysis:
        return self.analysis.get(hostname) or ServerAnalysis()

    def action_time(self, hostname: str, action: Action) -> float:
        base = self._analysis(hostname).hack_time
        if action == Action.HARVEST:
            return base
        if action == Action.REPLENISH:
            return base * GROW_TIME_FACTOR
        if action == Action.SUPPRESS:
            return base * WEAKEN_TIME_FACTOR
        raise ValueError(f"Unknown action: {action!r}")

    def growth_analyze(self, hostname: str, multiplier: float) -> float:
        if multiplier <= 1:
            return 0.0
        rate = self._analysis(hostname).growth_per_thread
        if rate <= 1:
            return math.inf
        return math.log(multiplier) / math.log(rate)

    def hack_analyze(self, hostname: str) -> float:
        return self._analysis(hostname).hack_fraction

    def hack_chance(self, hostname: str) -> float:
        return self._analysis(hostname).hack_chance

    def script_ram(self, script: str) -> float:
        return float(self.scripts.get(script, 0.0))

    def run_script(self, script: str, hostname: str, threads: int, *args) -> int:
        srv = self.servers.get(hostname)
        if srv is None or not srv.has_admin_rights:
            return 0
        if threads < 1 or script not in self.files.get(hostname, set()):
            return 0
        need = self.script_ram(script) * threads
        if need <= 0 or srv.ram_used + need > srv.max_ram + 1e-9:
            return 0
        srv.ram_used += need
        pid = next(self._pids)
        self.processes.setdefault(hostname, []).append(
            ProcessInfo(pid=pid, filename=script, threads=int(threads), args=tuple(args))
        )
        return pid

    def copy_files(self, files: Sequence[str], destination: str, source: str = HOME) -> bool:
        if destination not in self.servers:
            return False
        available = self.files.get(source, set())
        if any(f not in available for f in files):
            return False
        self.files.setdefault(destination, set()).update(files)
        return True

    def ps(self, hostname: str) -> List[ProcessInfo]:
        return list(self.processes.get(hostname, ()))

    def kill_all(self, hostname: str) -> int:
        procs = self.processes.pop(hostname, [])
        srv = self.servers.get(hostname)
        if srv is not None:
            for p in procs:
                srv.ram_used = max(0.0, srv.ram_used - self.script_ram(p.filename) * p.threads)
        return len(procs)

    def share_power(self) -> float:
        threads = sum(
            p.threads for procs in self.processes.values() for p in procs if p.filename.endswith("share.js")
        )
        return 1.0 + threads * self.share_power_per_thread

    # ---- ServerShopAPI ----
    def money(self) -> float:
        return self.player.money

    def purchased_servers(self) -> List[str]:
        return sorted(h for h, s in self.servers.items() if s.purchased_by_player and h != HOME)

    def purchased_server_limit(self) -> int:
        return self.server_limit

    def purchased_server_max_ram(self) -> float:
        return self.server_max_ram_gb

    @staticmethod
    def _valid_ram(ram: float) -> bool:
        r = int(ram)
        return r == ram and r >= 1 and (r & (r - 1)) == 0

    def purchased_server_cost(self, ram: float) -> float:
        if not self._valid_ram(ram) or ram > self.server_max_ram_gb:
            return math.inf
        return ram * self.cost_per_gb

    def upgrade_cost(self, hostname: str, ram: float) -> float:
        srv = self.servers.get(hostname)
        if srv is None or not srv.purchased_by_player or ram <= srv.max_ram:
            return math.inf
        return self.purchased_server_cost(ram) - self.purchased_server_cost(srv.max_ram)

    def purchase_server(self, hostname: str, ram: float) -> str:
        cost = self.purchased_server_cost(ram)
        if len(self.purchased_servers()) >= self.server_limit or cost > self.player.money:
            return ""
        name = hostname
        n = 0
        while name in self.servers:
            n += 1
            name = f"{hostname}-{n}"
        self.player.money -= cost
        self.servers[name] = ServerSnapshot(
            hostname=name, has_admin_rights=True, max_ram=float(ram), purchased_by_player=True,
        )
        self.links.setdefault(HOME, set()).add(name)
        self.links.setdefault(name, set()).add(HOME)
        return name

    def upgrade_server(self, hostname: str, ram: float) -> bool:
        cost = self.upgrade_cost(hostname, ram)
        if cost > self.player.money:
            return False
        self.player.money -= cost
        self.servers[hostname].max_ram = float(ram)
        return True

    def server_max_ram(self, hostname: str) -> float:
        return self.servers[hostname].max_ram


@dataclass
class SimStock:
    ask: float
    bid: float
    volatility: float
    forecast: float
    max_shares: int
    position: StockPosition = field(default_factory=StockPosition)


class InMemoryMarket(StockAPI):
    def __init__(self, stocks: Dict[str, SimStock], player: SimPlayer, commission: float = 100000.0) -> None:
        self.stocks = stocks
        self.player = player
        self._commission = float(commission)

    def symbols(self) -> List[str]:
        return list(self.stocks)

    def ask_price(self, sym: str) -> float:
        return self.stocks[sym].ask

    def bid_price(self, sym: str) -> float:
        return self.stocks[sym].bid

    def volatility(self, sym: str) -> float:
        return self.stocks[sym].volatility

    def forecast(self, sym: str) -> float:
        return self.stocks[sym].forecast

    def max_shares(self, sym: str) -> int:
        return self.stocks[sym].max_shares

    def position(self, sym: str) -> StockPosition:
        return copy.copy(self.stocks[sym].position)

    def commission(self) -> float:
        return self._commission

    def money(self) -> float:
        return self.player.money

    def buy_stock(self, sym: str, shares: int) -> float:
        s = self.stocks.get(sym)
        if s is None or shares <= 0:
            return 0.0
        held = s.position.shares_long + s.position.shares_short
        cost = shares * s.ask + self._commission
        if cost > self.player.money or held + shares > s.max_shares:
            return 0.0
        self.player.money -= cost
        pos = s.position
        total = pos.shares_long + shares
        pos.avg_long_price = (pos.avg_long_price * pos.shares_long + s.ask * shares) / total
        pos.shares_long = total
        return s.ask

    def sell_stock(self, sym: str, shares: int) -> float:
        s = self.stocks.get(sym)
        if s is None or shares <= 0 or s.position.shares_long < shares:
            return 0.0
        self.player.money += shares * s.bid - self._commission
        s.position.shares_long -= shares
        if s.position.shares_long == 0:
            s.position.avg_long_price = 0.0
        return s.bid


@dataclass
class SimAugmentation:
    rep_req: float
    price: float
    prereqs: List[str] = field(default_factory=list)


@dataclass
class SimFaction:
    rep: float = 0.0
    favor: float = 0.0
    augmentations: List[str] = field(default_factory=list)


class InMemoryFactions(FactionAPI):
    def __init__(
        self,
        factions: Dict[str, SimFaction],
        augmentations: Dict[str, SimAugmentation],
        player: SimPlayer,
        installed: Optional[List[str]] = None,
        purchased: Optional[List[str]] = None,
        cost_multiplier: float = 1.9,
    ) -> None:
        self.factions = factions
        self.augs = augmentations
        self.player = player
        self.installed = list(installed or [])
        self.purchased = list(purchased or [])
        self.cost_multiplier = float(cost_multiplier)

    def money(self) -> float:
        return self.player.money

    def skills(self) -> PlayerSkills:
        return self.player.skills

    def joined_factions(self) -> List[str]:
        return list(self.factions)

    def owned_augmentations(self, include_purchased: bool = True) -> List[str]:
        return self.installed + (self.purchased if include_purchased else [])

    def augmentations_from_faction(self, faction: str) -> List[str]:
        return list(self.factions[faction].augmentations)

    def faction_rep(self, faction: str) -> float:
        return self.factions[faction].rep

    def faction_favor(self, faction: str) -> float:
        return self.factions[faction].favor

    def augmentation_rep_req(self, aug: str) -> float:
        return self.augs[aug].rep_req

    def augmentation_price(self, aug: str) -> float:
        # Every queued purchase raises the price of the next one.
        return self.augs[aug].price * (self.cost_multiplier ** len(self.purchased))

    def augmentation_prereqs(self, aug: str) -> List[str]:
        return list(self.augs[aug].prereqs)

    def purchase_augmentation(self, faction: str, aug: str) -> bool:
        if faction not in self.factions or aug not in self.factions[faction].augmentations:
            return False
        if aug in self.owned_augmentations(True):
            return False
        if any(p not in self.owned_augmentations(True) for p in self.augs[aug].prereqs):
            return False
        if self.factions[faction].rep < self.augs[aug].rep_req:
            return False
        price = self.augmentation_price(aug)
        if price > self.player.money:
            return False
        self.player.money -= price
        self.purchased.append(aug)
        return True

    def current_work(self) -> Optional[WorkInfo]:
        return self.player.work

    def work_for_faction(self, faction: str, work_type: str) -> bool:
        if faction not in self.factions:
            return False
        self.player.work = WorkInfo(type="FACTION", faction_name=faction, faction_work_type=work_type)
        return True


@dataclass
class World:
    host: InMemoryHost
    market: InMemoryMarket
    factions: InMemoryFactions
    player: SimPlayer


def _server_from_raw(name: str, raw: Dict[str, Any]) -> ServerSnapshot:
    security = float(raw.get("security", raw.get("min_security", 1.0)))
    return ServerSnapshot(
        hostname=name,
        has_admin_rights=bool(raw.get("admin", False)),
        max_ram=float(raw.get("max_ram", 0.0)),
        ram_used=float(raw.get("ram_used", 0.0)),
        money_available=float(raw.get("money_available", raw.get("money_max", 0.0))),
        money_max=float(raw.get("money_max", 0.0)),
        hack_difficulty=security,
        min_difficulty=float(raw.get("min_security", security)),
        required_hacking_skill=int(raw.get("required_hacking", 1)),
        num_open_ports_required=int(raw.get("ports", 0)),
        server_growth=float(raw.get("growth", 0.0)),
        purchased_by_player=bool(raw.get("purchased", False)),
        backdoor_installed=bool(raw.get("backdoor", False)),
    )


def build_world(data: Dict[str, Any]) -> World:
    """Build the in-memory host, market and factions from a parsed snapshot."""
    praw = data.get("player", {}) or {}
    skills = PlayerSkills(**{k: int(v) for k, v in (praw.get("skills", {}) or {}).items()})
    if "hacking" in praw:
        skills.hacking = int(praw["hacking"])
    player = SimPlayer(money=float(praw.get("money", 0.0)), skills=skills)

    servers: Dict[str, ServerSnapshot] = {}
    links: Dict[str, Set[str]] = {}
    analysis: Dict[str, ServerAnalysis] = {}
    files: Dict[str, Set[str]] = {}
    for name, raw in (data.get("servers", {}) or {}).items():
        raw = raw or {}
        servers[name] = _server_from_raw(name, raw)
        links.setdefault(name, set())
        for n in raw.get("links", []) or []:
            links[name].add(n)
            links.setdefault(n, set()).add(name)
        analysis[name] = ServerAnalysis(
            hack_time=float(raw.get("hack_time", 1000.0)),
            hack_fraction=float(raw.get("hack_fraction", 0.002)),
            growth_per_thread=float(raw.get("growth_per_thread", 1.0025)),
            hack_chance=float(raw.get("hack_chance", 1.0)),
        )
        if raw.get("files"):
            files[name] = set(raw["files"])
    if HOME not in servers:
        servers[HOME] = ServerSnapshot(hostname=HOME, has_admin_rights=True, max_ram=8.0, purchased_by_player=True)
        links.setdefault(HOME, set())

    shop = data.get("purchased_servers", {}) or {}
    host = InMemoryHost(
        servers=servers,
        links=links,
        player=player,
        analysis=analysis,
        script_ram=data.get("scripts"),
        files=files,
        server_limit=int(shop.get("limit", 25)),
        server_max_ram=float(shop.get("max_ram", 2 ** 20)),
        cost_per_gb=float(shop.get("cost_per_gb", 55000.0)),
    )

    sraw = data.get("stocks", {}) or {}
    stocks: Dict[str, SimStock] = {}
    for sym, s in (sraw.get("symbols", {}) or {}).items():
        long_ = s.get("long", [0, 0.0])
        short = s.get("short", [0, 0.0])
        stocks[sym] = SimStock(
            ask=float(s["ask"]),
            bid=float(s["bid"]),
            volatility=float(s.get("volatility", 0.0)),
            forecast=float(s.get("forecast", 0.5)),
            max_shares=int(s.get("max_shares", 0)),
            position=StockPosition(
                shares_long=int(long_[0]), avg_long_price=float(long_[1]),
                shares_short=int(short[0]), avg_short_price=float(short[1]),
            ),
        )
    market = InMemoryMarket(stocks, player, commission=float(sraw.get("commission", 100000.0)))

    fraw = data.get("factions", {}) or {}
    factions = {
        name: SimFaction(
            rep=float(f.get("rep", 0.0)),
            favor=float(f.get("favor", 0.0)),
            augmentations=list(f.get("augmentations", []) or []),
        )
        for name, f in (fraw.get("joined", {}) or {}).items()
    }
    augs = {
        name: SimAugmentation(
            rep_req=float(a.get("rep_req", 0.0)),
            price=float(a.get("price", 0.0)),
            prereqs=list(a.get("prereqs", []) or []),
        )
        for name, a in (fraw.get("augmentations", {}) or {}).items()
    }
    fapi = InMemoryFactions(
        factions,
        augs,
        player,
        installed=fraw.get("installed"),
        purchased=fraw.get("purchased"),
    )
    return World(host=host, market=market, factions=fapi, player=player)


def load_world(path: str) -> World:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"World snapshot not found: {path}")
    with p.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    log.info("Loaded world snapshot %s (%d servers)", path, len(data.get("servers", {}) or {}))
    return build_world(data)
