"""
Configuration management for the LTTP Randomizer Generator.
"""

from .settings import (
    load_settings,
    save_settings,
    get_default_settings,
    load_favorites,
    save_favorites,
    toggle_favorite,
    Settings,
)

__all__ = [
    'load_settings',
    'save_settings',
    'get_default_settings',
    'load_favorites',
    'save_favorites',
    'toggle_favorite',
    'Settings',
]
