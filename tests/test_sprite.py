"""Tests for .zspr/.spr decoding and the sprite ROM overlay."""

import os
import struct
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from services.lttp_patcher.errors import BoundsViolation, MalformedInput, UnsupportedFormat
from services.lttp_patcher.rom_utils import MEGABYTE
from services.lttp_patcher.sprite import (
    ROM_GFX_MAX_LENGTH,
    ROM_GFX_OFFSET,
    ROM_GLOVES_OFFSET,
    ROM_PALETTE_OFFSET,
    SpriteContainer,
    SpriteData,
    SpriteKind,
    apply_sprite,
    decode_legacy,
    decode_sprite,
    decode_zspr,
    load_sprite,
    overlay_sprite,
    sprite_kind_for_path,
)

_HEADER_LEN = 29


def make_zspr(graphics: bytes, palette: bytes) -> bytes:
    """Build a minimal ZSPR file with graphics then palette after the header."""
    header = bytearray(_HEADER_LEN)
    header[0:4] = b"ZSPR"
    header[4] = 1
    gfx_offset = _HEADER_LEN
    pal_offset = gfx_offset + len(graphics)
    struct.pack_into("<I", header, 9, gfx_offset)
    struct.pack_into("<H", header, 13, len(graphics))
    struct.pack_into("<I", header, 15, pal_offset)
    struct.pack_into("<H", header, 19, len(palette))
    return bytes(header) + graphics + palette


def _graphics(length: int = ROM_GFX_MAX_LENGTH) -> bytes:
    return bytes(i % 251 for i in range(length))


# ---------------------------------------------------------------------------
# Format detection
# ---------------------------------------------------------------------------


def test_kind_from_extension():
    assert sprite_kind_for_path("link.zspr") == SpriteKind.ZSPR
    assert sprite_kind_for_path("LINK.ZSPR") == SpriteKind.ZSPR
    assert sprite_kind_for_path("old/link.spr") == SpriteKind.LEGACY


def test_unsupported_extension():
    with pytest.raises(UnsupportedFormat):
        sprite_kind_for_path("link.png")
    with pytest.raises(UnsupportedFormat):
        sprite_kind_for_path("link")


def test_load_sprite(tmp_path):
    path = tmp_path / "Hat Kid.zspr"
    path.write_bytes(make_zspr(b"\x01\x02", b""))
    container = load_sprite(str(path))
    assert container.kind == SpriteKind.ZSPR
    assert container.name == "Hat Kid"
    assert container.data[:4] == b"ZSPR"


def test_load_sprite_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_sprite(str(tmp_path / "nobody.zspr"))


# ---------------------------------------------------------------------------
# ZSPR
# ---------------------------------------------------------------------------


def test_decode_zspr_splits_gloves():
    palette = bytes(range(124))
    data = decode_zspr(make_zspr(b"\xaa" * 16, palette))
    assert data.graphics == b"\xaa" * 16
    assert data.palette == palette[:120]
    assert data.gloves == palette[120:]


def test_decode_zspr_short_palette_has_no_gloves():
    data = decode_zspr(make_zspr(b"\xaa", b"\x01\x02"))
    assert data.palette == b"\x01\x02"
    assert data.gloves is None


def test_decode_zspr_bad_magic():
    raw = bytearray(make_zspr(b"\x00", b""))
    raw[0:4] = b"ZSPX"
    with pytest.raises(MalformedInput):
        decode_zspr(bytes(raw))


def test_decode_zspr_short_header():
    with pytest.raises(MalformedInput):
        decode_zspr(b"ZSPR" + bytes(10))


def test_decode_zspr_region_past_end_of_file():
    raw = bytearray(make_zspr(b"\x00" * 8, b"\x00" * 4))
    struct.pack_into("<H", raw, 13, 500)
    with pytest.raises(BoundsViolation):
        decode_zspr(bytes(raw))

    raw = bytearray(make_zspr(b"\x00" * 8, b"\x00" * 4))
    struct.pack_into("<I", raw, 15, len(raw))
    with pytest.raises(BoundsViolation):
        decode_zspr(bytes(raw))


def test_decode_zspr_graphics_too_long():
    with pytest.raises(BoundsViolation):
        decode_zspr(make_zspr(_graphics(ROM_GFX_MAX_LENGTH + 1), b""))


def test_apply_zspr_to_rom():
    rom = bytearray(2 * MEGABYTE)
    graphics = _graphics()
    palette = bytes((i * 3) % 256 for i in range(124))
    container = SpriteContainer(SpriteKind.ZSPR, make_zspr(graphics, palette))

    apply_sprite(rom, container)

    assert rom[ROM_GFX_OFFSET:ROM_GFX_OFFSET + len(graphics)] == graphics
    assert rom[ROM_PALETTE_OFFSET:ROM_PALETTE_OFFSET + 120] == palette[:120]
    assert rom[ROM_GLOVES_OFFSET:ROM_GLOVES_OFFSET + 4] == palette[120:]


def test_apply_zspr_short_palette_leaves_gloves():
    rom = bytearray(2 * MEGABYTE)
    rom[ROM_GLOVES_OFFSET:ROM_GLOVES_OFFSET + 4] = b"\x11\x22\x33\x44"
    apply_sprite(rom, SpriteContainer(SpriteKind.ZSPR, make_zspr(b"\x01", b"\x05\x06")))
    assert rom[ROM_PALETTE_OFFSET:ROM_PALETTE_OFFSET + 2] == b"\x05\x06"
    assert rom[ROM_GLOVES_OFFSET:ROM_GLOVES_OFFSET + 4] == b"\x11\x22\x33\x44"


def test_invalid_zspr_leaves_rom_unmodified():
    rom = bytearray(2 * MEGABYTE)
    rom[ROM_GFX_OFFSET] = 0x42
    before = bytes(rom)
    raw = bytearray(make_zspr(_graphics(64), bytes(8)))
    struct.pack_into("<I", raw, 9, 0xFFFFFF)
    with pytest.raises(BoundsViolation):
        apply_sprite(rom, SpriteContainer(SpriteKind.ZSPR, bytes(raw)))
    assert bytes(rom) == before


def test_rom_too_small_for_palette_is_unmodified():
    rom = bytearray(ROM_PALETTE_OFFSET + 10)
    before = bytes(rom)
    sprite = SpriteData(graphics=b"\x01" * 16, palette=b"\x02" * 120, gloves=b"\x03" * 4)
    with pytest.raises(BoundsViolation):
        overlay_sprite(rom, sprite)
    assert bytes(rom) == before


# ---------------------------------------------------------------------------
# Legacy .spr
# ---------------------------------------------------------------------------


def test_apply_legacy_sprite():
    rom = bytearray(2 * MEGABYTE)
    graphics = _graphics()
    apply_sprite(rom, SpriteContainer(SpriteKind.LEGACY, graphics + b"\xff" * 0x78))
    assert rom[ROM_GFX_OFFSET:ROM_GFX_OFFSET + ROM_GFX_MAX_LENGTH] == graphics
    # No palette data in a legacy sprite
    assert rom[ROM_PALETTE_OFFSET:ROM_PALETTE_OFFSET + 120] == bytes(120)
    assert rom[ROM_GFX_OFFSET + ROM_GFX_MAX_LENGTH] == 0


def test_legacy_sprite_too_short():
    rom = bytearray(2 * MEGABYTE)
    with pytest.raises(BoundsViolation):
        apply_sprite(rom, SpriteContainer(SpriteKind.LEGACY, _graphics(ROM_GFX_MAX_LENGTH - 1)))
    assert rom == bytes(2 * MEGABYTE)


def test_decode_sprite_dispatches_on_kind():
    legacy = decode_sprite(SpriteContainer(SpriteKind.LEGACY, _graphics() + b"\x01" * 16))
    assert legacy == decode_legacy(_graphics())
    assert legacy.palette == b"" and legacy.gloves is None

    zspr = decode_sprite(SpriteContainer(SpriteKind.ZSPR, make_zspr(b"\x07", bytes(8))))
    assert zspr.graphics == b"\x07"
    assert zspr.gloves == bytes(4)
