"""
Core utilities and configuration for PromptAtrium.

This package provides core functionality including logging configuration,
error types, database setup, and other shared utilities.
"""

from promptatrium.core.logging_config import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
