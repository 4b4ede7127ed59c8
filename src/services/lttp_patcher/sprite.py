"""Player sprite (.zspr / .spr) decoder and ROM overlay.

ZSPR header (little-endian):
  0   "ZSPR" magic
  4   version
  9   u32 pixel data offset
  13  u16 pixel data length
  15  u32 palette offset
  19  u16 palette length (last 4 bytes are the gloves colours)

Legacy .spr files are headerless 0x7000-byte pixel blocks with no palette.

ROM write addresses follow the pyz3r reference implementation.
"""

import os
import struct
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from services.lttp_patcher.errors import (
    BoundsViolation,
    MalformedInput,
    UnsupportedFormat,
)


ROM_GFX_OFFSET = 0x080000
ROM_PALETTE_OFFSET = 0x0DD308
ROM_GLOVES_OFFSET = 0x0DEDF5

# Tile data budget for the player graphics (28,672 bytes)
ROM_GFX_MAX_LENGTH = 0x7000

GLOVES_LENGTH = 4

ZSPR_MAGIC = b"ZSPR"
ZSPR_GFX_OFFSET_POS = 9
ZSPR_GFX_LENGTH_POS = 13
ZSPR_PALETTE_OFFSET_POS = 15
ZSPR_PALETTE_LENGTH_POS = 19
ZSPR_MIN_HEADER_SIZE = 21


class SpriteKind(Enum):
    ZSPR = "zspr"
    LEGACY = "spr"


@dataclass(frozen=True)
class SpriteContainer:
    """Raw sprite file contents plus the container kind."""

    kind: SpriteKind
    data: bytes
    name: str = ""


@dataclass(frozen=True)
class SpriteData:
    """Decoded regions ready to be copied into the ROM."""

    graphics: bytes
    palette: bytes = b""
    gloves: Optional[bytes] = None


def sprite_kind_for_path(path: str) -> SpriteKind:
    """Pick the container kind from the file extension."""
    ext = os.path.splitext(path)[1].lower().lstrip(".")
    for kind in SpriteKind:
        if kind.value == ext:
            return kind
    raise UnsupportedFormat(
        f"Unsupported sprite format '{ext or path}'. Please use .zspr or .spr files."
    )


def load_sprite(path: str) -> SpriteContainer:
    """Read a sprite file from disk."""
    kind = sprite_kind_for_path(path)
    if not os.path.exists(path):
        raise FileNotFoundError(f"Sprite file not found: {path}")
    with open(path, "rb") as f:
        data = f.read()
    name = os.path.splitext(os.path.basename(path))[0]
    return SpriteContainer(kind=kind, data=data, name=name)


def decode_zspr(data: bytes) -> SpriteData:
    """Validate a ZSPR file and slice out its graphics and palette blocks."""
    if len(data) < ZSPR_MIN_HEADER_SIZE:
        raise MalformedInput("ZSPR file is too small to contain a valid header.")
    if data[:4] != ZSPR_MAGIC:
        raise MalformedInput("File does not have a valid ZSPR header (wrong magic bytes).")

    gfx_offset = struct.unpack_from("<I", data, ZSPR_GFX_OFFSET_POS)[0]
    gfx_length = struct.unpack_from("<H", data, ZSPR_GFX_LENGTH_POS)[0]
    pal_offset = struct.unpack_from("<I", data, ZSPR_PALETTE_OFFSET_POS)[0]
    pal_length = struct.unpack_from("<H", data, ZSPR_PALETTE_LENGTH_POS)[0]

    if gfx_offset + gfx_length > len(data):
        raise BoundsViolation("ZSPR pixel data region exceeds file size.")
    if pal_offset + pal_length > len(data):
        raise BoundsViolation("ZSPR palette data region exceeds file size.")
    if gfx_length > ROM_GFX_MAX_LENGTH:
        raise BoundsViolation(
            f"ZSPR pixel data length ({gfx_length}) exceeds maximum ({ROM_GFX_MAX_LENGTH})."
        )

    graphics = bytes(data[gfx_offset:gfx_offset + gfx_length])
    palette_block = bytes(data[pal_offset:pal_offset + pal_length])

    if pal_length >= GLOVES_LENGTH:
        return SpriteData(
            graphics=graphics,
            palette=palette_block[:-GLOVES_LENGTH],
            gloves=palette_block[-GLOVES_LENGTH:],
        )
    return SpriteData(graphics=graphics, palette=palette_block)


def decode_legacy(data: bytes) -> SpriteData:
    """Take the 0x7000-byte pixel block of a headerless .spr file."""
    if len(data) < ROM_GFX_MAX_LENGTH:
        raise BoundsViolation(
            f"Legacy .spr file must be at least 0x7000 ({ROM_GFX_MAX_LENGTH}) bytes."
        )
    return SpriteData(graphics=bytes(data[:ROM_GFX_MAX_LENGTH]))


def decode_sprite(container: SpriteContainer) -> SpriteData:
    if container.kind == SpriteKind.ZSPR:
        return decode_zspr(container.data)
    if container.kind == SpriteKind.LEGACY:
        return decode_legacy(container.data)
    raise UnsupportedFormat(f"Unsupported sprite container: {container.kind!r}")


def _check_fits(rom: bytearray, offset: int, length: int, what: str) -> None:
    if offset + length > len(rom):
        raise BoundsViolation(f"ROM is too small to receive sprite {what}.")


def overlay_sprite(rom: bytearray, sprite: SpriteData) -> bytearray:
    """Copy decoded sprite regions into rom.

    All bounds are checked first, so a failure leaves rom untouched. The
    checksum is not recalculated here.
    """
    _check_fits(rom, ROM_GFX_OFFSET, len(sprite.graphics), "pixel data")
    _check_fits(rom, ROM_PALETTE_OFFSET, len(sprite.palette), "palette data")
    if sprite.gloves is not None:
        _check_fits(rom, ROM_GLOVES_OFFSET, len(sprite.gloves), "gloves palette data")

    rom[ROM_GFX_OFFSET:ROM_GFX_OFFSET + len(sprite.graphics)] = sprite.graphics
    if sprite.palette:
        rom[ROM_PALETTE_OFFSET:ROM_PALETTE_OFFSET + len(sprite.palette)] = sprite.palette
    if sprite.gloves is not None:
        rom[ROM_GLOVES_OFFSET:ROM_GLOVES_OFFSET + len(sprite.gloves)] = sprite.gloves
    return rom


def apply_sprite(rom: bytearray, container: SpriteContainer) -> bytearray:
    """Decode a sprite container and overlay it onto rom."""
    return overlay_sprite(rom, decode_sprite(container))
