"""Shared utilities for the screening analytics system."""

from .config_loader import load_config, get_nested_config, merge_config
from .session_database import ScreeningDatabase

__all__ = [
    'load_config',
    'get_nested_config',
    'merge_config',
    'ScreeningDatabase',
]
