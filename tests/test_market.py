"""
Tests for stock analysis, ranking and the portfolio manager
"""

import unittest

from netops.host.sim_host import SimStock, build_world
from netops.market.portfolio import (
    PortfolioConfig,
    PortfolioManager,
    SimulationState,
    TradeExecutor,
    render_dashboard,
)
from netops.market.stock_analyzer import analyze_market, analyze_stock, by_interest, expected_return, rank_stocks


def _market(symbols, money=10_000.0, commission=10.0):
    world = build_world({
        "player": {"money": money},
        "stocks": {"commission": commission, "symbols": symbols},
    })
    return world.market


class TestStockAnalyzer(unittest.TestCase):
    """Test cases for analyze_stock() and rank_stocks()."""

    def test_expected_return(self):
        """EV = volatility * (2 * forecast - 1)."""
        self.assertAlmostEqual(expected_return(0.02, 0.6), 0.004)
        self.assertAlmostEqual(expected_return(0.02, 0.4), -0.004)
        self.assertEqual(expected_return(0.02, 0.5), 0.0)

    def test_analyze_stock(self):
        """Mid price, spread, signal, confidence and 1-sigma range."""
        market = _market({"AAA": {"ask": 101, "bid": 99, "volatility": 0.02, "forecast": 0.6, "max_shares": 1000}})
        a = analyze_stock(market, "AAA")
        self.assertEqual(a.price, 100.0)
        self.assertEqual(a.spread, 2.0)
        self.assertEqual(a.signal, "LONG")
        self.assertAlmostEqual(a.confidence, 0.2)
        self.assertAlmostEqual(a.min_price, 98.0)
        self.assertAlmostEqual(a.max_price, 102.0)
        self.assertAlmostEqual(a.risk_adjusted_return, 0.2)

    def test_low_volatility_has_no_risk_adjusted_return(self):
        """Volatility at or below 0.1% gives a zero risk-adjusted return."""
        market = _market({"LOW": {"ask": 10, "bid": 10, "volatility": 0.001, "forecast": 0.9, "max_shares": 10}})
        self.assertEqual(analyze_stock(market, "LOW").risk_adjusted_return, 0.0)

    def test_rank_stocks(self):
        """Longs best EV first, shorts most negative first, weak signals dropped."""
        market = _market({
            "L1": {"ask": 10, "bid": 10, "volatility": 0.01, "forecast": 0.60, "max_shares": 10},
            "L2": {"ask": 10, "bid": 10, "volatility": 0.03, "forecast": 0.60, "max_shares": 10},
            "S1": {"ask": 10, "bid": 10, "volatility": 0.02, "forecast": 0.40, "max_shares": 10},
            "MEH": {"ask": 10, "bid": 10, "volatility": 0.02, "forecast": 0.52, "max_shares": 10},
            "TINY": {"ask": 10, "bid": 10, "volatility": 0.0001, "forecast": 0.70, "max_shares": 10},
        })
        analyses = analyze_market(market)
        longs, shorts = rank_stocks(analyses)
        self.assertEqual([a.sym for a in longs], ["L2", "L1"])
        self.assertEqual([a.sym for a in shorts], ["S1"])
        self.assertEqual(by_interest(analyses)[0].sym, "L2")

    def test_rank_empty(self):
        """No stocks, no candidates."""
        self.assertEqual(rank_stocks([]), ([], []))


class TestPortfolioSimulation(unittest.TestCase):
    """Test cases for PortfolioManager against the paper book."""

    def setUp(self):
        self.market = _market({
            "GOOD": {"ask": 100, "bid": 98, "volatility": 0.02, "forecast": 0.65, "max_shares": 1000},
            "BAD": {"ask": 50, "bid": 49, "volatility": 0.02, "forecast": 0.40, "max_shares": 1000},
        })
        self.cfg = PortfolioConfig(simulation_starting_cash=10_000.0)
        self.sim = SimulationState.create(self.cfg.simulation_starting_cash)
        self.executor = TradeExecutor(self.market, simulation=True, sim_state=self.sim)
        self.manager = PortfolioManager(self.market, self.executor, self.cfg)

    def _step(self):
        return self.manager.step(analyze_market(self.market))

    def test_entry_sizing(self):
        """Entry size = min(investable cash / ask, max share fraction); shorts stay off."""
        actions = self._step()
        self.assertEqual([(a.action, a.sym, a.shares) for a in actions], [("BUY_LONG", "GOOD", 79)])
        self.assertAlmostEqual(self.sim.cash, 10_000 - 79 * 100 - 10)
        self.assertEqual(self.sim.positions["GOOD"].shares, 79)

    def test_max_share_fraction(self):
        """A stock's float caps the position."""
        self.market.stocks["GOOD"].max_shares = 100
        actions = self._step()
        self.assertEqual(actions[0].shares, 25)

    def test_exit_on_forecast_with_profit(self):
        """Forecast below the exit line plus enough profit closes the long."""
        self._step()
        self.market.stocks["GOOD"].forecast = 0.45
        self.market.stocks["GOOD"].bid = 110
        actions = self._step()
        self.assertEqual([(a.action, a.sym) for a in actions], [("SELL_LONG", "GOOD")])
        self.assertAlmostEqual(actions[0].profit, 79 * 10 - 10)
        self.assertAlmostEqual(self.manager.realized_pnl, 780.0)
        self.assertNotIn("GOOD", self.sim.positions)

    def test_hold_small_loss_then_stop_loss(self):
        """A small loss is held; a loss past the stop closes the position."""
        self._step()
        self.market.stocks["GOOD"].forecast = 0.48
        self.market.stocks["GOOD"].bid = 95
        self.assertEqual(self._step(), [])
        self.market.stocks["GOOD"].bid = 85
        actions = self._step()
        self.assertEqual([(a.action, a.sym) for a in actions], [("SELL_LONG", "GOOD")])
        self.assertLess(actions[0].profit, 0)

    def test_opportunity_cost_rotation(self):
        """A clearly better stock replaces a weak holding even without profit."""
        self._step()
        self.market.stocks["GOOD"].forecast = 0.52
        self.market.stocks["BEST"] = SimStock(
            ask=20, bid=20, volatility=0.05, forecast=0.70, max_shares=10_000,
        )
        actions = self._step()
        self.assertEqual([(a.action, a.sym) for a in actions], [("SELL_LONG", "GOOD"), ("BUY_LONG", "BEST")])

    def test_max_positions(self):
        """No more than max_positions_long open longs."""
        self.cfg.max_positions_long = 1
        self.market.stocks["BAD"].forecast = 0.60
        actions = self._step()
        self.assertEqual(len(actions), 1)

    def test_shorts_when_enabled(self):
        """With shorting on, strong negative forecasts are shorted at the bid."""
        self.cfg.can_short = True
        actions = self._step()
        kinds = {(a.action, a.sym) for a in actions}
        self.assertIn(("BUY_SHORT", "BAD"), kinds)
        self.assertEqual(self.sim.positions["BAD"].type, "short")

    def test_liquidate_and_dashboard(self):
        """Liquidation empties the book; the dashboard renders in simulation mode."""
        actions = self._step()
        self.assertTrue(any("SIMULATION" in line for line in render_dashboard(self.manager, analyze_market(self.market), actions)))
        sold = self.manager.liquidate()
        self.assertEqual([(a.action, a.sym) for a in sold], [("SELL_LONG", "GOOD")])
        self.assertEqual(self.sim.positions, {})


class TestPortfolioLive(unittest.TestCase):
    """Test cases for PortfolioManager against the market API."""

    def setUp(self):
        self.market = _market({
            "GOOD": {"ask": 100, "bid": 98, "volatility": 0.02, "forecast": 0.65, "max_shares": 1000},
        })
        self.executor = TradeExecutor(self.market, simulation=False)
        self.manager = PortfolioManager(self.market, self.executor, PortfolioConfig(can_short=True))

    def test_live_buy_uses_market(self):
        """Live entries hit the market and move the player's money."""
        actions = self.manager.step(analyze_market(self.market))
        self.assertEqual([(a.action, a.shares) for a in actions], [("BUY_LONG", 79)])
        self.assertEqual(self.market.position("GOOD").shares_long, 79)
        self.assertAlmostEqual(self.market.money(), 10_000 - 7910)

    def test_live_held_position_not_rebought(self):
        """A held symbol is skipped on the next tick."""
        self.manager.step(analyze_market(self.market))
        self.assertEqual(self.manager.step(analyze_market(self.market)), [])

    def test_live_short_refused(self):
        """Shorting fails cleanly when the account cannot short."""
        executor = TradeExecutor(self.market, simulation=False, can_short=False)
        result = executor.buy_short("GOOD", 1)
        self.assertFalse(result.success)
        self.assertEqual(result.reason, "Can not short")

    def test_simulation_needs_state(self):
        """Simulation mode without a SimulationState is a configuration error."""
        with self.assertRaises(ValueError):
            TradeExecutor(self.market, simulation=True)


if __name__ == "__main__":
    unittest.main()
