"""
Utility module for the Noxera API
"""

from .custom_logger import get_logger, set_log_level, setup_logger
from .identifiers import generate_id
from .timeutils import utcnow

__all__ = [
    "generate_id",
    "get_logger",
    "set_log_level",
    "setup_logger",
    "utcnow",
]
