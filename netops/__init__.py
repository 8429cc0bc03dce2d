# netops/__init__.py
"""
netops package initializer
- Automatically loads .env on any import of the netops.* namespace.
- Logs a one-time startup line with the active world snapshot and mode.
"""

import os
from pathlib import Path
from dotenv import load_dotenv
import logging

logger = logging.getLogger("NetOpsEnv")

__version__ = "0.4.0"


def _auto_env_load():
    env_path = Path(__file__).resolve().parent.parent / ".env"

    if env_path.exists() and not os.getenv("NETOPS_ENV_LOADED"):
        load_dotenv(dotenv_path=env_path, override=False)
        os.environ["NETOPS_ENV_LOADED"] = "1"

    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(logging.WARNING)

    world = os.getenv("NETOPS_WORLD") or ""
    mode = (os.getenv("NETOPS_MODE") or "DRY_RUN").upper()
    if mode not in ("DRY_RUN", "LIVE"):
        logger.warning("Unknown NETOPS_MODE=%r; falling back to DRY_RUN.", mode)
        os.environ["NETOPS_MODE"] = "DRY_RUN"
    elif world:
        logger.info("env loaded -> Mode=%s | World=%s", mode, world)


_auto_env_load()
