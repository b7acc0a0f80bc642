"""Utility modules for the benchmark."""

from .config import Config, Settings, validate_settings

__all__ = ['Config', 'Settings', 'validate_settings']
