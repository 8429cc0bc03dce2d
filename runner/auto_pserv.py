# runner/auto_pserv.py
# Buy purchased servers until every slot is full, then upgrade the smallest.

import logging

from configs.config import SERVERS
from netops.purchasing.server_planner import ServerConfig, ServerManager
from netops.utils.config import tool_config
from runner.common import add_loop_args, base_parser, bootstrap, loop

log = logging.getLogger("AutoPservRunner")


def main() -> None:
    parser = base_parser("Auto purchase and upgrade servers")
    parser.add_argument("--prefix", default=None, help="Hostname prefix for new servers.")
    parser.add_argument("--min-ram", type=float, default=None, help="Smallest server worth buying (GB).")
    parser.add_argument("--reserve", type=float, default=None, help="Money to keep in reserve.")
    add_loop_args(parser)
    args = parser.parse_args()

    ctx = bootstrap(args, "ServerEvents")
    cfg = tool_config(ServerConfig, ctx.app, "servers", SERVERS, env_prefix="NETOPS_SERVERS_")
    if args.prefix:
        cfg.prefix = args.prefix
    if args.min_ram is not None:
        cfg.min_ram = args.min_ram
    if args.reserve is not None:
        cfg.reserve = args.reserve
    if args.interval is not None:
        cfg.interval_ms = args.interval

    manager = ServerManager(ctx.world.host, cfg, events=ctx.events)
    loop(lambda: manager.run_once().lines, args.cycles, cfg.interval_ms, clear=args.cycles != 1)


if __name__ == "__main__":
    main()
