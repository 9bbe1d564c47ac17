"""
Utility modules for the answer review pipeline.
"""

from .logger import get_logger, get_logs_dir, setup_logger

__all__ = ["setup_logger", "get_logger", "get_logs_dir"]
