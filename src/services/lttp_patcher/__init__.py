"""LTTP ROM patch engine.

Turns a stock ALttP ROM plus an alttpr.com seed patch into a playable,
checksum-correct randomized ROM, with optional cosmetics and player sprite.
"""

from services.lttp_patcher.errors import (
    PatchError,
    TruncatedInput,
    MalformedInput,
    IntegrityFailure,
    BoundsViolation,
    UnsupportedFormat,
    RomValidationError,
)
from services.lttp_patcher.bps import apply_bps, get_bps_info
from services.lttp_patcher.cosmetics import CosmeticSelection, apply_cosmetics
from services.lttp_patcher.rom_utils import (
    apply_dictionary,
    expand,
    load_source_rom,
    validate_source_rom,
    write_checksum,
)
from services.lttp_patcher.sprite import SpriteContainer, SpriteKind, apply_sprite, load_sprite
from services.lttp_patcher.patcher import generate_rom

__all__ = [
    "PatchError",
    "TruncatedInput",
    "MalformedInput",
    "IntegrityFailure",
    "BoundsViolation",
    "UnsupportedFormat",
    "RomValidationError",
    "apply_bps",
    "get_bps_info",
    "CosmeticSelection",
    "apply_cosmetics",
    "apply_dictionary",
    "expand",
    "load_source_rom",
    "validate_source_rom",
    "write_checksum",
    "SpriteContainer",
    "SpriteKind",
    "apply_sprite",
    "load_sprite",
    "generate_rom",
]
