# runner/distributed_hack.py
# Distributed multi-target hacker: one allocation cycle per wait interval.

import logging
import sys
from dataclasses import asdict

from configs.config import HACKER, SCORER
from netops.allocation.cycle import DistributedHacker, HackerConfig
from netops.allocation.target_scorer import ScorerConfig
from netops.utils.config import tool_config
from netops.utils.config_validator import validate_hacker_config
from runner.common import base_parser, bootstrap

log = logging.getLogger("DistributedHackRunner")


def build_config(app, args) -> HackerConfig:
    cfg = tool_config(HackerConfig, app, "hacker", HACKER, env_prefix="NETOPS_HACKER_")
    if args.target:
        cfg.target_override = args.target
    if args.dry_run:
        cfg.dry_run = True
    if args.home_reserve is not None:
        cfg.home_reserve = args.home_reserve
    validate_hacker_config(asdict(cfg))
    return cfg


def main() -> None:
    parser = base_parser("Distributed multi-target hacker")
    parser.add_argument("--target", default="", help="Only work this server.")
    parser.add_argument("--dry-run", action="store_true", help="Plan and print, dispatch nothing.")
    parser.add_argument("--home-reserve", type=float, default=None, help="GB to keep free on home.")
    parser.add_argument("--cycles", type=int, default=1, help="Cycles to run; 0 loops forever.")
    args = parser.parse_args()

    ctx = bootstrap(args, "HackerEvents")
    cfg = build_config(ctx.app, args)
    scorer = tool_config(ScorerConfig, ctx.app, "scorer", SCORER)

    hacker = DistributedHacker(ctx.world.host, cfg, events=ctx.events, scorer=scorer)
    log.info("=== Distributed hacker starting (cycles=%s) ===", args.cycles or "forever")
    hacker.run_forever(
        cycles=args.cycles if args.cycles > 0 else None,
        out=print,
    )
    log.info("=== Distributed hacker finished ===")
    sys.exit(0)


if __name__ == "__main__":
    main()
