# runner/stock_trader.py
# Expected-value stock trader. Paper-trades unless --live or NETOPS_MODE=LIVE.

import logging

from configs.config import PORTFOLIO, STOCK_TRADER
from netops.market.portfolio import (
    PortfolioConfig,
    PortfolioManager,
    SimulationState,
    TradeExecutor,
    render_dashboard,
)
from netops.market.stock_analyzer import analyze_market
from netops.utils.config import tool_config
from runner.common import add_loop_args, base_parser, bootstrap, loop
from tools.env_loader import is_dry_run

log = logging.getLogger("StockTraderRunner")


def main() -> None:
    parser = base_parser("Expected-value stock trader")
    parser.add_argument("--live", action="store_true", help="Trade against the market instead of paper.")
    parser.add_argument("--liquidate", action="store_true", help="Sell every position and exit.")
    add_loop_args(parser)
    args = parser.parse_args()

    ctx = bootstrap(args, "TradeEvents")
    cfg = tool_config(PortfolioConfig, ctx.app, "portfolio", PORTFOLIO, env_prefix="NETOPS_PORTFOLIO_")
    opts = {**STOCK_TRADER, **ctx.app.section("stock_trader")}
    live = args.live or bool(opts["live"]) or not is_dry_run()
    interval = args.interval if args.interval is not None else float(opts["tick_ms"])

    market = ctx.world.market
    sim = None if live else SimulationState.create(cfg.simulation_starting_cash)
    executor = TradeExecutor(market, simulation=not live, sim_state=sim, can_short=cfg.can_short)
    manager = PortfolioManager(market, executor, cfg, events=ctx.events)
    log.info("Stock trader starting in %s mode", "LIVE" if live else "SIMULATION")

    if args.liquidate:
        for a in manager.liquidate():
            print(f"{a.action} {a.sym} x{a.shares}")
        return

    start_value = manager.live_portfolio_value(analyze_market(market)) if live else None
    history = []

    def tick():
        analyses = analyze_market(market)
        history.extend(manager.step(analyses))
        return render_dashboard(manager, analyses, history, session_start_value=start_value)

    loop(tick, args.cycles, interval, clear=args.cycles != 1)


if __name__ == "__main__":
    main()
