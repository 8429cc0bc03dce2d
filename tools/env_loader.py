# tools/env_loader.py
import os
import logging
from dotenv import load_dotenv
from pathlib import Path
from typing import Optional, Dict, Any

logger = logging.getLogger(__name__)

VALID_MODES = ("DRY_RUN", "LIVE")


def ensure_env_loaded(path: str = ".env") -> None:
    """Force-load environment variables from .env file."""
    if not os.getenv("NETOPS_ENV_LOADED"):
        env_path = Path(path).resolve()
        if env_path.exists():
            load_dotenv(dotenv_path=env_path, override=True)
            os.environ["NETOPS_ENV_LOADED"] = "1"
            logger.info("Loaded environment variables from %s", env_path)
        else:
            logger.debug("Environment file not found at %s", env_path)


def resolve_world(cli_value: Optional[str] = None, default: Optional[str] = None) -> str:
    """--world wins, then NETOPS_WORLD, then the given default."""
    ensure_env_loaded()
    world = (cli_value or os.getenv("NETOPS_WORLD", "").strip() or default or "").strip()
    if not world:
        raise RuntimeError("No world snapshot given. Pass --world or set NETOPS_WORLD.")
    return world


def is_dry_run(cli_flag: bool = False) -> bool:
    """Dry-run when the flag is set or NETOPS_MODE is not LIVE."""
    ensure_env_loaded()
    if cli_flag:
        return True
    return os.getenv("NETOPS_MODE", "DRY_RUN").strip().upper() != "LIVE"


def validate_mode(fail_fast: bool = True) -> Dict[str, Any]:
    """
    Validate NETOPS_MODE.

    Returns:
        Dict with validation results:
        {
            "valid": bool,
            "mode": str,
        }

    Raises:
        RuntimeError: If fail_fast=True and the mode is unknown
    """
    ensure_env_loaded()
    mode = os.getenv("NETOPS_MODE", "DRY_RUN").strip().upper()
    result = {"valid": mode in VALID_MODES, "mode": mode}
    if not result["valid"]:
        error_msg = f"Unknown NETOPS_MODE={mode!r}. Expected one of {', '.join(VALID_MODES)}."
        logger.error(error_msg)
        if fail_fast:
            raise RuntimeError(error_msg)
    return result
