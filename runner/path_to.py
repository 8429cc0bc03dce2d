# runner/path_to.py
# Print the hop path (and a connect one-liner) from home to a server.

import logging
import sys

from netops.network.discovery import connect_commands, discover_with_depth, path_to
from runner.common import base_parser, bootstrap

log = logging.getLogger("PathToRunner")


def main() -> None:
    parser = base_parser("Path from home to a server")
    parser.add_argument("target", help="Destination hostname.")
    parser.add_argument("--start", default="home", help="Host to start from.")
    args = parser.parse_args()

    ctx = bootstrap(args, "PathToEvents")
    disc = discover_with_depth(ctx.world.host, args.start)
    if args.target not in disc.parent_by_host:
        log.error("Server %s is not reachable from %s", args.target, args.start)
        sys.exit(1)

    print(path_to(disc.parent_by_host, args.target, include_start=True))
    print(connect_commands(disc.parent_by_host, args.target))


if __name__ == "__main__":
    main()
