"""
Core utilities and configuration for MUSE.

This package provides core functionality including logging configuration,
error types, database setup, and other shared utilities.
"""

from muse_ai.core.logging_config import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
