"""
Configuration for the water level engine.
"""

from .config import Settings, settings

__all__ = ['Settings', 'settings']
