"""Cosmetic ROM patches.

Written to the expansion area (0x18xxxx), so these only make sense after the
ROM has been expanded to 2 MB. These settings are never sent to alttpr.com.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Tuple

from services.lttp_patcher.errors import BoundsViolation
from services.lttp_patcher.rom_utils import write_checksum


ADDR_HEART_BEEP = 0x180033
ADDR_HEART_COLOR = 0x187020
ADDR_MENU_SPEED = 0x180048
ADDR_QUICK_SWAP = 0x18004B

HEART_BEEP_CODES = {
    "off": 0x00,
    "normal": 0x20,
    "double": 0x10,
    "half": 0x40,
    "quarter": 0x80,
}

HEART_COLOR_CODES = {
    "red": 0x00,
    "blue": 0x01,
    "green": 0x02,
    "yellow": 0x03,
}

MENU_SPEED_CODES = {
    "normal": 0x08,
    "half": 0x04,
    "double": 0x10,
    "triple": 0x18,
    "quad": 0x20,
    "instant": 0xE8,
}

QUICK_SWAP_CODES = {
    "off": 0x00,
    "on": 0x01,
}

# (display label, value) pairs for dropdowns, default first
COSMETIC_OPTIONS: Dict[str, List[Tuple[str, str]]] = {
    "heart_beep_speed": [
        ("Normal", "normal"),
        ("Off", "off"),
        ("Double", "double"),
        ("Half", "half"),
        ("Quarter", "quarter"),
    ],
    "heart_color": [
        ("Red", "red"),
        ("Blue", "blue"),
        ("Green", "green"),
        ("Yellow", "yellow"),
    ],
    "menu_speed": [
        ("Normal", "normal"),
        ("Half", "half"),
        ("Double", "double"),
        ("Triple", "triple"),
        ("Quad", "quad"),
        ("Instant", "instant"),
    ],
    "quick_swap": [
        ("Off", "off"),
        ("On", "on"),
    ],
}


@dataclass
class CosmeticSelection:
    """The four independent cosmetic choices."""

    heart_beep_speed: str = "normal"
    heart_color: str = "red"
    menu_speed: str = "normal"
    quick_swap: str = "off"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CosmeticSelection":
        valid_keys = {f.name for f in cls.__dataclass_fields__.values()}
        return cls(**{k: v for k, v in data.items() if k in valid_keys})


def _code(codes: Dict[str, int], value: Any, default: str) -> int:
    if isinstance(value, str) and value in codes:
        return codes[value]
    return codes[default]


def encode_cosmetics(selection: CosmeticSelection) -> Dict[int, int]:
    """Map each option to {rom_offset: byte}. Unknown or non-string values use the default."""
    return {
        ADDR_HEART_BEEP: _code(HEART_BEEP_CODES, selection.heart_beep_speed, "normal"),
        ADDR_HEART_COLOR: _code(HEART_COLOR_CODES, selection.heart_color, "red"),
        ADDR_MENU_SPEED: _code(MENU_SPEED_CODES, selection.menu_speed, "normal"),
        ADDR_QUICK_SWAP: _code(QUICK_SWAP_CODES, selection.quick_swap, "off"),
    }


def apply_cosmetics(rom: bytearray, selection: CosmeticSelection) -> bytearray:
    """Write cosmetic bytes into rom and recalculate the checksum.

    Modifies rom in place and returns it for chaining.
    """
    writes = encode_cosmetics(selection)
    highest = max(writes)
    if highest >= len(rom):
        raise BoundsViolation(
            f"ROM of {len(rom):#x} bytes is too small for cosmetic byte at {highest:#x}; "
            "expand it first"
        )

    for offset, value in writes.items():
        rom[offset] = value

    write_checksum(rom)
    return rom
