"""
Logging package for structured event logging.
"""
from netops.logging.structured_logger import StructuredLogger

__all__ = ["StructuredLogger"]
