"""Data models for the alttpr.com randomizer API."""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List


@dataclass
class CrystalsSettings:
    tower: str = "7"
    ganon: str = "7"


@dataclass
class ItemSettings:
    pool: str = "normal"
    functionality: str = "normal"


@dataclass
class EnemizerSettings:
    boss_shuffle: str = "none"
    enemy_shuffle: str = "none"
    enemy_damage: str = "default"
    enemy_health: str = "default"
    pot_shuffle: str = "off"


def _filtered(cls, data: Dict[str, Any]) -> Dict[str, Any]:
    valid_keys = {f.name for f in cls.__dataclass_fields__.values()}
    return {k: v for k, v in (data or {}).items() if k in valid_keys}


@dataclass
class RandomizerSettings:
    """Seed options sent to POST /api/randomizer.

    Field names match the API's JSON keys, so asdict() is the request body.
    """

    glitches: str = "none"
    item_placement: str = "basic"
    dungeon_items: str = "standard"
    accessibility: str = "items"
    goal: str = "ganon"
    crystals: CrystalsSettings = field(default_factory=CrystalsSettings)
    mode: str = "open"
    entrances: str = "none"
    hints: str = "on"
    weapons: str = "randomized"
    item: ItemSettings = field(default_factory=ItemSettings)
    spoilers: str = "on"
    pseudoboots: bool = False
    enemizer: EnemizerSettings = field(default_factory=EnemizerSettings)
    lang: str = "en"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RandomizerSettings":
        """Create settings from a dict, ignoring unknown keys."""
        values = _filtered(cls, data)
        if isinstance(values.get("crystals"), dict):
            values["crystals"] = CrystalsSettings(**_filtered(CrystalsSettings, values["crystals"]))
        if isinstance(values.get("item"), dict):
            values["item"] = ItemSettings(**_filtered(ItemSettings, values["item"]))
        if isinstance(values.get("enemizer"), dict):
            values["enemizer"] = EnemizerSettings(**_filtered(EnemizerSettings, values["enemizer"]))
        return cls(**values)


@dataclass
class RandomizerPreset:
    name: str
    settings: RandomizerSettings

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "settings": self.settings.to_dict()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RandomizerPreset":
        return cls(
            name=data.get("name", ""),
            settings=RandomizerSettings.from_dict(data.get("settings", {})),
        )


@dataclass
class SeedResult:
    """Everything the patch engine needs for one generated seed."""

    hash: str
    permalink: str
    bps_bytes: bytes
    dict_patches: List[Dict[str, List[int]]] = field(default_factory=list)
    size_mb: int = 2


@dataclass
class SpriteEntry:
    """One sprite in the alttpr.com sprite list."""

    name: str = ""
    author: str = ""
    file: str = ""
    preview: str = ""
    tags: List[str] = field(default_factory=list)
    usage: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SpriteEntry":
        return cls(**_filtered(cls, data))
