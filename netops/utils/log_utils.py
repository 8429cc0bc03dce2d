import logging, os


def setup_runner_logging(level: str = None) -> None:
    """basicConfig for runner entrypoints; LOG_LEVEL wins over the default."""
    lvl = (level or os.getenv("LOG_LEVEL") or "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, lvl, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
