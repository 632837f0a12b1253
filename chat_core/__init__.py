"""Knowledge retrieval and response composition core for a support chatbot."""

from .config import get_log_level
from .utils import setup_logging

__all__ = ["setup_logging", "get_log_level"]
