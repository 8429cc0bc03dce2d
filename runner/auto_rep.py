# runner/auto_rep.py
# Reputation dashboard; works for the faction with the nearest unlock.

import logging

from configs.config import REPUTATION
from netops.reputation.rep_tracker import RepConfig, RepManager
from netops.utils.config import tool_config
from runner.common import add_loop_args, base_parser, bootstrap, loop

log = logging.getLogger("AutoRepRunner")


def main() -> None:
    parser = base_parser("Auto reputation manager")
    parser.add_argument("--faction", default=None, help="Grind this faction instead of auto-selecting.")
    parser.add_argument("--no-work", action="store_true", help="Dashboard only, do not start work.")
    parser.add_argument("--reserve", type=float, default=None, help="Money not counted as affordable.")
    add_loop_args(parser)
    args = parser.parse_args()

    ctx = bootstrap(args, "RepEvents")
    cfg = tool_config(RepConfig, ctx.app, "reputation", REPUTATION, env_prefix="NETOPS_REP_")
    if args.faction:
        cfg.faction = args.faction
    if args.no_work:
        cfg.no_work = True
    if args.reserve is not None:
        cfg.reserve = args.reserve
    if args.interval is not None:
        cfg.interval_ms = args.interval

    manager = RepManager(ctx.world.factions, cfg)
    loop(lambda: manager.run_once().lines, args.cycles, cfg.interval_ms, clear=args.cycles != 1)


if __name__ == "__main__":
    main()
