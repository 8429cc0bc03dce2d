# runner/nmap.py
# Network map with sorting and filtering.

import logging

from configs.config import NETWORK_MAP
from netops.network.network_map import network_map, render_map
from runner.common import base_parser, bootstrap

log = logging.getLogger("NetworkMapRunner")


def main() -> None:
    parser = base_parser("Network map")
    parser.add_argument("--start", default=None, help="Host to scan from.")
    parser.add_argument("--depth", type=int, default=None, help="Max depth; -1 for unlimited.")
    parser.add_argument("--sort", default=None, help='e.g. "ramFree,!moneyMax,host" ("!" = descending).')
    parser.add_argument("--where", default=None, help='e.g. "rooted,reqHack<=200,!p".')
    parser.add_argument("--limit", type=int, default=None, help="Show at most N rows; 0 for all.")
    args = parser.parse_args()

    ctx = bootstrap(args, "NetworkMapEvents")
    opts = {**NETWORK_MAP, **ctx.app.section("network_map")}
    start = args.start or opts["start"]
    sort = args.sort or opts["sort"]

    df = network_map(
        ctx.world.host,
        start=start,
        max_depth=int(args.depth if args.depth is not None else opts["max_depth"]),
        sort=sort,
        where=args.where if args.where is not None else opts["where"],
        limit=int(args.limit if args.limit is not None else opts["limit"]),
    )
    for line in render_map(df, start=start, sort=sort):
        print(line)


if __name__ == "__main__":
    main()
