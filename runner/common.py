# runner/common.py
# Shared bootstrap for the runner entrypoints: CLI flags, logging, config, world.

import argparse
import logging
import time
from pathlib import Path
from typing import Callable, Optional

from configs.config import DEFAULT_WORLD, EVENTS_LOG
from netops.host.sim_host import World, load_world
from netops.logging.structured_logger import StructuredLogger
from netops.utils.config import AppConfig
from netops.utils.config_validator import validate_startup_config
from netops.utils.log_utils import setup_runner_logging
from tools.env_loader import ensure_env_loaded, resolve_world

log = logging.getLogger("Runner")

CLEAR = "\u001b[2J\u001b[H"


def base_parser(description: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument(
        "--world",
        "-w",
        default=None,
        help="World snapshot YAML (defaults to NETOPS_WORLD, then the config's 'world').",
    )
    parser.add_argument(
        "--config",
        "-c",
        default=None,
        help="Tool config YAML (defaults to NETOPS_CONFIG or configs/netops.yaml).",
    )
    parser.add_argument("--log-level", default=None, help="Overrides LOG_LEVEL.")
    return parser


def add_loop_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--interval", type=float, default=None, help="Refresh interval in ms.")
    parser.add_argument(
        "--cycles",
        type=int,
        default=1,
        help="Number of cycles to run; 0 loops forever.",
    )


class RunContext:
    def __init__(self, app: AppConfig, world: World, events: StructuredLogger) -> None:
        self.app = app
        self.world = world
        self.events = events


def bootstrap(args: argparse.Namespace, events_name: str) -> RunContext:
    ensure_env_loaded()
    setup_runner_logging(args.log_level)
    validate_startup_config()

    app = AppConfig.load(args.config)
    world_path = resolve_world(args.world, app.y("world", DEFAULT_WORLD))
    world = load_world(world_path)

    events_file = app.y("logging.events_file", EVENTS_LOG)
    events = StructuredLogger(events_name, log_file=Path(events_file) if events_file else None)
    events.log_system("startup", component=events_name, world=world_path)
    return RunContext(app=app, world=world, events=events)


def loop(
    step: Callable[[], list],
    cycles: int,
    interval_ms: float,
    sleep: Callable[[float], None] = time.sleep,
    clear: bool = False,
    wait_ms: Optional[Callable[[], float]] = None,
) -> None:
    """Run ``step`` and print its lines ``cycles`` times (forever when 0)."""
    n = 0
    while cycles <= 0 or n < cycles:
        lines = step()
        if clear:
            print(CLEAR, end="")
        for line in lines:
            print(line)
        n += 1
        if cycles > 0 and n >= cycles:
            break
        sleep((wait_ms() if wait_ms else interval_ms) / 1000.0)
