# runner/dashboard.py
# Read-only view of all worker activity across the network.

import logging

from configs.config import DASHBOARD
from netops.monitor.dashboard import Dashboard
from runner.common import add_loop_args, base_parser, bootstrap, loop

log = logging.getLogger("DashboardRunner")


def main() -> None:
    parser = base_parser("Network dashboard")
    add_loop_args(parser)
    args = parser.parse_args()

    ctx = bootstrap(args, "DashboardEvents")
    opts = {**DASHBOARD, **ctx.app.section("dashboard")}
    interval = args.interval if args.interval is not None else float(opts["refresh_ms"])

    dash = Dashboard(ctx.world.host, money_fn=ctx.world.host.money)
    loop(lambda: dash.snapshot().lines, args.cycles, interval, clear=args.cycles != 1)


if __name__ == "__main__":
    main()
