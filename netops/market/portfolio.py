# SPDX-License-Identifier: MIT
"""
Portfolio management on top of the stock analyzer.

Each market tick: exit positions that stopped meeting the criteria, then
enter the best-ranked new positions with the cash left. Trades go through a
TradeExecutor that is either simulated (paper book kept in SimulationState)
or live against the host's StockAPI.
"""
from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from netops.market.stock_analyzer import RankingConfig, StockAnalysis, by_interest, rank_stocks
from netops.utils.formatting import C, format_num, format_percent

log = logging.getLogger("PortfolioManager")

LONG = "long"
SHORT = "short"


@dataclass
class PortfolioConfig:
    max_portfolio_percent: float = 0.8     # share of cash that may be invested
    max_positions_long: int = 4
    max_positions_short: int = 4
    max_shares_per_stock: float = 0.25     # share of a stock's float we may hold
    long_forecast_min: float = 0.55
    short_forecast_max: float = 0.45
    min_expected_return: float = 0.0005
    long_exit_forecast: float = 0.50
    short_exit_forecast: float = 0.50
    opportunity_cost_threshold: float = 0.002
    opportunity_cost_forecast: float = 0.53
    min_profit_to_sell: float = 0.02
    stop_loss: float = -0.10
    simulation_starting_cash: float = 100_000_000_000.0
    can_short: bool = False

    def ranking(self) -> RankingConfig:
        return RankingConfig(
            long_forecast_min=self.long_forecast_min,
            short_forecast_max=self.short_forecast_max,
            min_expected_return=self.min_expected_return,
        )


@dataclass
class SimPosition:
    shares: int
    avg_price: float
    type: str


@dataclass
class TradeResult:
    success: bool
    price: float = 0.0
    cost: float = 0.0
    gain: float = 0.0
    profit: Optional[float] = None
    reason: str = ""


@dataclass
class TradeAction:
    action: str
    sym: str
    shares: int
    result: TradeResult

    @property
    def profit(self) -> Optional[float]:
        return self.result.profit


@dataclass
class SimulationState:
    cash: float
    starting_cash: float
    positions: Dict[str, SimPosition] = field(default_factory=dict)
    total_commissions: float = 0.0
    trades: List[dict] = field(default_factory=list)
    start_time: float = field(default_factory=time.time)

    @classmethod
    def create(cls, starting_cash: float) -> "SimulationState":
        return cls(cash=float(starting_cash), starting_cash=float(starting_cash))

    def portfolio_value(self, api) -> float:
        value = self.cash
        for sym, pos in self.positions.items():
            price = (api.ask_price(sym) + api.bid_price(sym)) / 2.0
            if pos.type == LONG:
                value += pos.shares * price
            else:
                value += pos.shares * pos.avg_price + pos.shares * (pos.avg_price - price)
        return value

    def pnl(self, api) -> float:
        return self.portfolio_value(api) - self.starting_cash

    def count(self, kind: str) -> int:
        return sum(1 for p in self.positions.values() if p.type == kind)


class TradeExecutor:
    """Buy/sell entry points, simulated or live depending on ``simulation``."""

    def __init__(self, api, simulation: bool, sim_state: Optional[SimulationState] = None, can_short: bool = False):
        if simulation and sim_state is None:
            raise ValueError("simulation mode needs a SimulationState")
        self.api = api
        self.simulation = simulation
        self.sim = sim_state
        self.can_short = can_short
        self.commission = float(api.commission())

    # ---- simulated book ----
    def _record(self, action: str, sym: str, shares: int, price: float, **extra) -> None:
        self.sim.trades.append({"time": time.time(), "action": action, "sym": sym,
                                "shares": shares, "price": price, **extra})

    def _sim_open(self, sym: str, shares: int, price: float, kind: str, action: str) -> TradeResult:
        cost = shares * price + self.commission
        if cost > self.sim.cash:
            return TradeResult(False, reason="Insufficient funds")
        self.sim.cash -= cost
        self.sim.total_commissions += self.commission
        pos = self.sim.positions.get(sym)
        if pos is not None and pos.type == kind:
            total = pos.shares + shares
            pos.avg_price = (pos.avg_price * pos.shares + price * shares) / total
            pos.shares = total
        else:
            self.sim.positions[sym] = SimPosition(shares=shares, avg_price=price, type=kind)
        self._record(action, sym, shares, price, cost=cost)
        return TradeResult(True, price=price, cost=cost)

    def _sim_close(self, sym: str, shares: int, price: float, kind: str, action: str) -> TradeResult:
        pos = self.sim.positions.get(sym)
        if pos is None or pos.type != kind or pos.shares < shares:
            return TradeResult(False, reason="Insufficient shares")
        if kind == LONG:
            profit = shares * (price - pos.avg_price) - self.commission
            gain = shares * price - self.commission
        else:
            profit = shares * (pos.avg_price - price) - self.commission
            gain = shares * pos.avg_price + profit
        self.sim.cash += gain
        self.sim.total_commissions += self.commission
        pos.shares -= shares
        if pos.shares == 0:
            del self.sim.positions[sym]
        self._record(action, sym, shares, price, gain=gain, profit=profit)
        return TradeResult(True, price=price, gain=gain, profit=profit)

    # ---- public ----
    def buy_long(self, sym: str, shares: int) -> TradeResult:
        if self.simulation:
            return self._sim_open(sym, shares, self.api.ask_price(sym), LONG, "BUY_LONG")
        price = self.api.buy_stock(sym, shares)
        if not price:
            return TradeResult(False, reason="Trade failed")
        return TradeResult(True, price=price, cost=shares * price + self.commission)

    def sell_long(self, sym: str, shares: int, avg_price: Optional[float] = None) -> TradeResult:
        if self.simulation:
            return self._sim_close(sym, shares, self.api.bid_price(sym), LONG, "SELL_LONG")
        price = self.api.sell_stock(sym, shares)
        if not price:
            return TradeResult(False, reason="Trade failed")
        gain = shares * price - self.commission
        profit = shares * (price - avg_price) - self.commission if avg_price is not None else None
        return TradeResult(True, price=price, gain=gain, profit=profit)

    def buy_short(self, sym: str, shares: int) -> TradeResult:
        if self.simulation:
            return self._sim_open(sym, shares, self.api.bid_price(sym), SHORT, "BUY_SHORT")
        if not self.can_short:
            return TradeResult(False, reason="Can not short")
        price = self.api.buy_short(sym, shares)
        if not price:
            return TradeResult(False, reason="Trade failed")
        return TradeResult(True, price=price, cost=shares * price + self.commission)

    def sell_short(self, sym: str, shares: int, avg_price: Optional[float] = None) -> TradeResult:
        if self.simulation:
            return self._sim_close(sym, shares, self.api.ask_price(sym), SHORT, "SELL_SHORT")
        if not self.can_short:
            return TradeResult(False, reason="Can not short")
        price = self.api.sell_short(sym, shares)
        if not price:
            return TradeResult(False, reason="Trade failed")
        profit = shares * (avg_price - price) - self.commission if avg_price is not None else None
        return TradeResult(True, price=price, gain=shares * price - self.commission, profit=profit)


class PortfolioManager:
    def __init__(self, api, executor: TradeExecutor, cfg: Optional[PortfolioConfig] = None, events=None) -> None:
        self.api = api
        self.executor = executor
        self.cfg = cfg or PortfolioConfig()
        self.events = events
        self.realized_pnl = 0.0
        self.log = logging.getLogger("PortfolioManager")

    @property
    def simulation(self) -> bool:
        return self.executor.simulation

    def _cash(self) -> float:
        return self.executor.sim.cash if self.simulation else float(self.api.money())

    def _holding(self, a: StockAnalysis, kind: str):
        """(shares, avg price) held for ``a.sym`` on the given side."""
        if self.simulation:
            pos = self.executor.sim.positions.get(a.sym)
            if pos is not None and pos.type == kind:
                return pos.shares, pos.avg_price
            return 0, 0.0
        if kind == LONG:
            return a.shares_long, a.avg_long_price
        return a.shares_short, a.avg_short_price

    def _note(self, actions: List[TradeAction], kind: str, sym: str, shares: int, result: TradeResult) -> None:
        actions.append(TradeAction(kind, sym, shares, result))
        if result.profit is not None and kind.startswith("SELL"):
            self.realized_pnl += result.profit
        if self.events is not None:
            self.events.log_trade(kind, symbol=sym, side=kind, shares=shares, price=result.price,
                                  profit=result.profit, simulation=self.simulation)
        self.log.info("%s %s x%d @ %.2f", kind, sym, shares, result.price)

    def _exits(self, analyses: Sequence[StockAnalysis], longs: List[StockAnalysis], actions: List[TradeAction]) -> set:
        cfg = self.cfg
        closed = set()
        best_ev = longs[0].expected_return if longs else 0.0

        for a in analyses:
            shares, avg = self._holding(a, LONG)
            if shares > 0 and avg > 0:
                profit_pct = (a.bid_price - avg) / avg
                should_exit = a.forecast < cfg.long_exit_forecast
                has_profit = profit_pct >= cfg.min_profit_to_sell
                better = best_ev > a.expected_return + cfg.opportunity_cost_threshold
                if better and a.forecast < cfg.opportunity_cost_forecast:
                    should_exit = True
                if should_exit and (has_profit or profit_pct < cfg.stop_loss or better):
                    result = self.executor.sell_long(a.sym, shares, avg)
                    if result.success:
                        self._note(actions, "SELL_LONG", a.sym, shares, result)
                        closed.add((a.sym, LONG))

            shares, avg = self._holding(a, SHORT)
            if shares > 0 and avg > 0:
                profit_pct = (avg - a.ask_price) / avg
                should_exit = a.forecast > cfg.short_exit_forecast
                has_profit = profit_pct >= cfg.min_profit_to_sell
                if should_exit and (has_profit or profit_pct < cfg.stop_loss):
                    result = self.executor.sell_short(a.sym, shares, avg)
                    if result.success:
                        self._note(actions, "SELL_SHORT", a.sym, shares, result)
                        closed.add((a.sym, SHORT))
        return closed

    def _open_count(self, analyses: Sequence[StockAnalysis], kind: str, closed: set) -> int:
        if self.simulation:
            return self.executor.sim.count(kind)
        n = 0
        for a in analyses:
            shares = a.shares_long if kind == LONG else a.shares_short
            if shares > 0 and (a.sym, kind) not in closed:
                n += 1
        return n

    def _entries(self, candidates, analyses, kind: str, closed: set, actions: List[TradeAction]) -> None:
        cfg = self.cfg
        commission = self.executor.commission
        limit = cfg.max_positions_long if kind == LONG else cfg.max_positions_short
        held = self._open_count(analyses, kind, closed)
        investable = self._cash() * cfg.max_portfolio_percent

        for c in candidates:
            if held >= limit:
                break
            shares_held, _ = self._holding(c, kind)
            if shares_held > 0 and (c.sym, kind) not in closed:
                continue

            price = c.ask_price if kind == LONG else c.bid_price
            if price <= 0:
                continue
            max_affordable = math.floor((investable - commission) / price)
            max_allowed = math.floor(c.max_shares * cfg.max_shares_per_stock)
            shares = min(max_affordable, max_allowed)

            if shares > 0 and shares * price > commission * 2:
                result = self.executor.buy_long(c.sym, shares) if kind == LONG else self.executor.buy_short(c.sym, shares)
                if result.success:
                    self._note(actions, "BUY_LONG" if kind == LONG else "BUY_SHORT", c.sym, shares, result)
                    held += 1
                    investable = self._cash() * cfg.max_portfolio_percent
                else:
                    self.log.warning("Could not open %s %s x%d: %s", kind, c.sym, shares, result.reason)

    def step(self, analyses: Sequence[StockAnalysis]) -> List[TradeAction]:
        longs, shorts = rank_stocks(analyses, self.cfg.ranking())
        actions: List[TradeAction] = []

        closed = self._exits(analyses, longs, actions)
        self._entries(longs, analyses, LONG, closed, actions)
        if self.cfg.can_short:
            self._entries(shorts, analyses, SHORT, closed, actions)
        return actions

    def liquidate(self) -> List[TradeAction]:
        actions: List[TradeAction] = []
        for sym in self.api.symbols():
            if self.simulation:
                pos = self.executor.sim.positions.get(sym)
                if pos is None:
                    continue
                result = (self.executor.sell_long(sym, pos.shares) if pos.type == LONG
                          else self.executor.sell_short(sym, pos.shares))
                kind = "SELL_LONG" if pos.type == LONG else "SELL_SHORT"
                shares = pos.shares
                if result.success:
                    self._note(actions, kind, sym, shares, result)
                else:
                    self.log.warning("Liquidation of %s failed: %s", sym, result.reason)
                continue
            p = self.api.position(sym)
            if p.shares_long > 0:
                result = self.executor.sell_long(sym, p.shares_long, p.avg_long_price)
                if result.success:
                    self._note(actions, "SELL_LONG", sym, p.shares_long, result)
                else:
                    self.log.warning("Liquidation of %s LONG failed: %s", sym, result.reason)
            if p.shares_short > 0:
                result = self.executor.sell_short(sym, p.shares_short, p.avg_short_price)
                if result.success:
                    self._note(actions, "SELL_SHORT", sym, p.shares_short, result)
                else:
                    self.log.warning("Liquidation of %s SHORT failed: %s", sym, result.reason)
        return actions

    def live_portfolio_value(self, analyses: Sequence[StockAnalysis]) -> float:
        value = float(self.api.money())
        for a in analyses:
            value += a.shares_long * a.bid_price
            if a.shares_short > 0:
                value += a.shares_short * (2 * a.avg_short_price - a.ask_price)
        return value


def render_dashboard(
    manager: PortfolioManager,
    analyses: Sequence[StockAnalysis],
    actions: Sequence[TradeAction],
    session_start_value: Optional[float] = None,
) -> List[str]:
    api = manager.api
    sim = manager.executor.sim if manager.simulation else None
    mode = f"{C.YELLOW}SIMULATION{C.RESET}" if sim else f"{C.GREEN}LIVE{C.RESET}"
    lines = [
        f"{C.CYAN}{'═' * 64}{C.RESET}",
        f"{C.CYAN}  STOCK TRADER [{mode}{C.CYAN}] - {datetime.now():%H:%M:%S}{C.RESET}",
        f"{C.CYAN}{'═' * 64}{C.RESET}",
        f"{C.DIM}Commission:{C.RESET} {C.YELLOW}${format_num(manager.executor.commission)}{C.RESET}",
    ]

    if sim:
        cash = sim.cash
        value = sim.portfolio_value(api)
        pnl = sim.pnl(api)
    else:
        cash = float(api.money())
        value = manager.live_portfolio_value(analyses)
        pnl = value - (session_start_value if session_start_value is not None else value)

    realized = manager.realized_pnl
    pnl_color = C.GREEN if pnl >= 0 else C.RED
    real_color = C.GREEN if realized >= 0 else C.RED
    lines.append(f"{C.DIM}Cash:{C.RESET} {C.WHITE}${format_num(cash)}{C.RESET}  "
                 f"{C.DIM}Portfolio:{C.RESET} {C.WHITE}${format_num(value)}{C.RESET}")
    lines.append(f"{C.DIM}Unrealized:{C.RESET} {pnl_color}{'+' if pnl >= 0 else ''}${format_num(pnl)}{C.RESET}  "
                 f"{C.DIM}Realized:{C.RESET} {real_color}{'+' if realized >= 0 else ''}${format_num(realized)}{C.RESET}")
    lines.append("")

    if actions:
        lines.append(f"{C.MAGENTA}Recent Actions:{C.RESET}")
        for a in list(actions)[-3:]:
            color = C.GREEN if "BUY" in a.action else C.YELLOW
            lines.append(f"  {color}{a.action}{C.RESET} {a.sym} x{format_num(a.shares)}")
        lines.append("")

    lines.append(f"  {C.DIM}{'SYM':<6}{'PRICE':<10}{'VOL':<7}{'FCST':<7}{'EV':<9}{'RANGE':<20}{'SIGNAL':<8}{'POS':<12}{C.RESET}")
    lines.append(f"  {C.DIM}{'─' * 75}{C.RESET}")
    for a in by_interest(analyses):
        fcst_color = C.GREEN if a.forecast > 0.55 else C.RED if a.forecast < 0.45 else C.WHITE
        ev_color = C.GREEN if a.expected_return > 0 else C.RED if a.expected_return < 0 else C.WHITE
        sig_color = C.GREEN if a.signal == "LONG" else C.RED if a.signal == "SHORT" else C.DIM
        ev_str = ("+" if a.expected_return >= 0 else "") + format_percent(a.expected_return, 2)
        range_str = f"${format_num(a.min_price)}-${format_num(a.max_price)}"

        pos_str = ""
        if sim and a.sym in sim.positions:
            p = sim.positions[a.sym]
            pos_color = C.GREEN if p.type == LONG else C.RED
            pos_str = f"{pos_color}{p.type[0].upper()}:{format_num(p.shares)}{C.RESET}"
        elif a.shares_long > 0:
            pos_str = f"{C.GREEN}L:{format_num(a.shares_long)}{C.RESET}"
        elif a.shares_short > 0:
            pos_str = f"{C.RED}S:{format_num(a.shares_short)}{C.RESET}"

        lines.append(
            f"  {C.WHITE}{a.sym:<6}{C.YELLOW}{'$' + format_num(a.price):<10}{C.WHITE}"
            f"{format_percent(a.volatility, 1):<7}{fcst_color}{format_percent(a.forecast, 0):<7}{C.RESET}"
            f"{ev_color}{ev_str:<9}{C.RESET}{range_str:<20}{sig_color}{a.signal:<8}{C.RESET}{pos_str}"
        )

    if sim:
        lines.append("")
        lines.append(f"{C.DIM}Simulation: {len(sim.trades)} trades | ${format_num(sim.total_commissions)} in fees{C.RESET}")
    return lines
