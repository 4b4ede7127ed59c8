"""
Settings management for the LTTP Randomizer Generator.
Handles loading, saving, and managing application settings.
"""

import json
import os
import traceback
from dataclasses import dataclass, field, asdict
from typing import Dict, Any, List, Optional, Set

from constants import CONFIG_FILE


@dataclass
class Settings:
    """Application settings with default values."""

    rom_path: str = ""
    output_dir: str = ""
    esde_mode: bool = False  # Write into lttpr/ and update gamelist.xml
    # Empty = default sprite; may also be a random-pick sentinel
    sprite_path: str = ""
    # Last used seed options (RandomizerSettings.to_dict())
    randomizer: Dict[str, Any] = field(default_factory=dict)
    # Last used cosmetics (CosmeticSelection.to_dict())
    customization: Dict[str, Any] = field(default_factory=dict)
    sprite_favorites: List[str] = field(default_factory=list)
    user_presets: List[Dict[str, Any]] = field(default_factory=list)

    def __post_init__(self):
        """Set default paths if not specified."""
        if not self.output_dir:
            self.output_dir = _get_default_output_dir()

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        """Create Settings from dictionary."""
        # Filter out unknown keys
        valid_keys = {f.name for f in cls.__dataclass_fields__.values()}
        filtered_data = {k: v for k, v in data.items() if k in valid_keys}
        return cls(**filtered_data)


def _get_default_output_dir() -> str:
    """Get the default output directory."""
    return os.path.join(os.path.expanduser("~"), "Documents", "roms")


def get_default_settings() -> Dict[str, Any]:
    """Get default settings as a dictionary."""
    return Settings().to_dict()


def load_settings(config_file: Optional[str] = None) -> Dict[str, Any]:
    """
    Load settings from config file.

    Args:
        config_file: Override for the config path (defaults to CONFIG_FILE)

    Returns:
        Dictionary of settings with defaults for missing values
    """
    config_file = config_file or CONFIG_FILE
    default_settings = get_default_settings()

    try:
        if os.path.exists(config_file):
            with open(config_file, "r") as f:
                loaded_settings = json.load(f)
                # Merge with defaults to handle new settings
                default_settings.update(loaded_settings)
        else:
            # Create config file with defaults
            save_settings(default_settings, config_file)
    except (OSError, ValueError) as e:
        from utils.logging import log_error

        log_error(
            "Failed to load settings, using defaults",
            type(e).__name__,
            traceback.format_exc(),
        )

    return default_settings


def save_settings(settings_to_save: Dict[str, Any], config_file: Optional[str] = None) -> bool:
    """
    Save settings to config file.

    Args:
        settings_to_save: Dictionary of settings to save
        config_file: Override for the config path (defaults to CONFIG_FILE)

    Returns:
        True if successful, False otherwise
    """
    config_file = config_file or CONFIG_FILE
    try:
        # Create directory if it doesn't exist
        config_dir = os.path.dirname(config_file)
        if config_dir:
            os.makedirs(config_dir, exist_ok=True)

        with open(config_file, "w") as f:
            json.dump(settings_to_save, f, indent=2)
        return True
    except (OSError, TypeError) as e:
        from utils.logging import log_error

        log_error("Failed to save settings", type(e).__name__, traceback.format_exc())
        return False


# ---- Sprite Favorites ---- #


def load_favorites(config_file: Optional[str] = None) -> Set[str]:
    """Return the set of favorite sprite names."""
    return set(load_settings(config_file).get("sprite_favorites") or [])


def save_favorites(favorites: Set[str], config_file: Optional[str] = None) -> bool:
    """Persist the favorite sprite names."""
    settings = load_settings(config_file)
    settings["sprite_favorites"] = sorted(favorites)
    return save_settings(settings, config_file)


def toggle_favorite(name: str, config_file: Optional[str] = None) -> bool:
    """Star or unstar a sprite. Returns True if it is now a favorite."""
    favorites = load_favorites(config_file)
    if name in favorites:
        favorites.discard(name)
        is_favorite = False
    else:
        favorites.add(name)
        is_favorite = True
    save_favorites(favorites, config_file)
    return is_favorite
