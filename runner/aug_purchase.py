# runner/aug_purchase.py
# Buy every unlocked augmentation, most expensive first. Dry run unless --confirm.

import logging

from configs.config import AUGMENTATIONS
from netops.purchasing.aug_planner import AugmentationBuyer
from runner.common import base_parser, bootstrap

log = logging.getLogger("AugPurchaseRunner")


def main() -> None:
    parser = base_parser("Augmentation purchase")
    parser.add_argument("--confirm", action="store_true", help="Actually purchase (default is a dry run).")
    parser.add_argument("--reserve", type=float, default=None, help="Money to keep in reserve.")
    args = parser.parse_args()

    ctx = bootstrap(args, "PurchaseEvents")
    opts = {**AUGMENTATIONS, **ctx.app.section("augmentations")}
    reserve = args.reserve if args.reserve is not None else float(opts["reserve"])

    buyer = AugmentationBuyer(ctx.world.factions, float(opts["cost_multiplier"]), events=ctx.events)
    report = buyer.run(confirm=args.confirm, reserve=reserve)
    for line in report.lines:
        print(line)


if __name__ == "__main__":
    main()
