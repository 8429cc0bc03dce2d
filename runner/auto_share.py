# runner/auto_share.py
# Fill spare RAM with share threads.

import logging

from configs.config import SHARE
from netops.allocation.share_filler import ShareConfig, ShareFiller
from netops.utils.config import tool_config
from runner.common import add_loop_args, base_parser, bootstrap, loop

log = logging.getLogger("AutoShareRunner")


def main() -> None:
    parser = base_parser("Auto share manager")
    parser.add_argument("--min-free", type=float, default=None, help="GB left free on every other host.")
    parser.add_argument("--home-reserve", type=float, default=None, help="GB kept free on home.")
    add_loop_args(parser)
    args = parser.parse_args()

    ctx = bootstrap(args, "ShareEvents")
    cfg = tool_config(ShareConfig, ctx.app, "share", SHARE, env_prefix="NETOPS_SHARE_")
    if args.min_free is not None:
        cfg.min_free = args.min_free
    if args.home_reserve is not None:
        cfg.home_reserve = args.home_reserve
    if args.interval is not None:
        cfg.interval_ms = args.interval

    filler = ShareFiller(ctx.world.host, cfg)
    filler.deploy()
    loop(lambda: filler.run_once().lines, args.cycles, cfg.interval_ms, clear=args.cycles != 1)


if __name__ == "__main__":
    main()
