"""
Seed presets: the built-in set plus user presets stored in the settings file.
"""

from typing import List, Optional

from config.settings import load_settings, save_settings
from services.alttpr_api.models import (
    EnemizerSettings,
    RandomizerPreset,
    RandomizerSettings,
)


BUILT_IN_PRESETS: List[RandomizerPreset] = [
    RandomizerPreset("Quick Run", RandomizerSettings(
        goal="fast_ganon", item_placement="basic",
    )),
    RandomizerPreset("Casual Boots", RandomizerSettings(
        item_placement="basic", pseudoboots=True,
    )),
    RandomizerPreset("Keysanity", RandomizerSettings(
        item_placement="advanced", dungeon_items="full",
    )),
    RandomizerPreset("All Mix", RandomizerSettings(
        item_placement="advanced", dungeon_items="full",
        entrances="crossed",
        enemizer=EnemizerSettings(boss_shuffle="full", enemy_shuffle="shuffled"),
    )),
    RandomizerPreset("Beginner", RandomizerSettings(
        item_placement="basic", accessibility="locations",
    )),
    RandomizerPreset("Swordless", RandomizerSettings(
        weapons="swordless", item_placement="advanced",
    )),
]


def _is_built_in(name: str) -> bool:
    return any(p.name.lower() == name.lower() for p in BUILT_IN_PRESETS)


def load_user_presets(config_file: Optional[str] = None) -> List[RandomizerPreset]:
    """Return user presets, skipping entries that cannot be decoded."""
    presets = []
    for raw in load_settings(config_file).get("user_presets") or []:
        if isinstance(raw, dict) and raw.get("name"):
            presets.append(RandomizerPreset.from_dict(raw))
    return presets


def all_presets(config_file: Optional[str] = None) -> List[RandomizerPreset]:
    return BUILT_IN_PRESETS + load_user_presets(config_file)


def find_preset(name: str, config_file: Optional[str] = None) -> Optional[RandomizerPreset]:
    """Look a preset up by name, case-insensitively."""
    for preset in all_presets(config_file):
        if preset.name.lower() == name.lower():
            return preset
    return None


def _write_presets(presets: List[RandomizerPreset], config_file: Optional[str]) -> Optional[str]:
    settings = load_settings(config_file)
    settings["user_presets"] = [p.to_dict() for p in presets]
    if not save_settings(settings, config_file):
        return "Failed to save presets."
    return None


def save_preset(
    name: str,
    settings: RandomizerSettings,
    config_file: Optional[str] = None,
) -> Optional[str]:
    """Save or replace a user preset. Returns an error message or None on success."""
    name = name.strip()
    if not name:
        return "Preset name cannot be empty."
    if _is_built_in(name):
        return f'"{name}" is a built-in preset and cannot be overwritten.'

    presets = load_user_presets(config_file)
    for i, preset in enumerate(presets):
        if preset.name.lower() == name.lower():
            presets[i] = RandomizerPreset(name, settings)
            break
    else:
        presets.append(RandomizerPreset(name, settings))

    return _write_presets(presets, config_file)


def delete_preset(name: str, config_file: Optional[str] = None) -> Optional[str]:
    """Delete a user preset. Returns an error message or None on success."""
    if _is_built_in(name):
        return f'"{name}" is a built-in preset and cannot be deleted.'

    presets = load_user_presets(config_file)
    remaining = [p for p in presets if p.name.lower() != name.lower()]
    if len(remaining) == len(presets):
        return f'Preset "{name}" not found.'
    return _write_presets(remaining, config_file)
