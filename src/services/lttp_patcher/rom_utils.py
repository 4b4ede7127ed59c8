"""ROM helpers shared by the patch pipeline, cosmetics and sprite steps.

ROM layout (ALttP JP 1.0, HiROM-style header):
  - Source image is 1 MiB headerless; copiers may prepend a 512-byte header
  - Checksum complement at 0x7FDC-0x7FDD, checksum at 0x7FDE-0x7FDF (LE)
  - Randomizer seeds expand the image to the size the server asks for (2 MiB)
"""

import os
from typing import List, Mapping, Sequence, Tuple

from services.lttp_patcher.errors import (
    BoundsViolation,
    MalformedInput,
    RomValidationError,
)


# Headerless source image size
SOURCE_ROM_SIZE = 1_048_576

# SMC copier header
COPIER_HEADER_SIZE = 512

MEGABYTE = 1024 * 1024

CHECKSUM_COMPLEMENT_OFFSET = 0x7FDC
CHECKSUM_OFFSET = 0x7FDE
CHECKSUM_END = 0x7FE0

DictionaryPatch = List[Mapping[str, Sequence[int]]]


# ---------------------------------------------------------------------------
# Source image
# ---------------------------------------------------------------------------


def strip_copier_header(data: bytes) -> bytes:
    """Drop a leading 512-byte copier header if the size says there is one."""
    if len(data) == SOURCE_ROM_SIZE + COPIER_HEADER_SIZE:
        return data[COPIER_HEADER_SIZE:]
    return data


def validate_source_rom(data: bytes) -> bytes:
    """Return the headerless source image, or raise if the size is wrong.

    Content is not checked here; a wrong dump shows up as a broken seed.
    """
    data = strip_copier_header(data)
    if len(data) != SOURCE_ROM_SIZE:
        raise RomValidationError(len(data), SOURCE_ROM_SIZE)
    return bytes(data)


def load_source_rom(rom_path: str) -> bytes:
    """Read and validate the source ROM file."""
    if not os.path.exists(rom_path):
        raise FileNotFoundError(f"ROM file not found: {rom_path}")
    with open(rom_path, "rb") as f:
        return validate_source_rom(f.read())


# ---------------------------------------------------------------------------
# Sizing
# ---------------------------------------------------------------------------


def expand(target: bytearray, target_size_bytes: int) -> bytearray:
    """Zero-extend target in place to target_size_bytes. Never shrinks."""
    if len(target) >= target_size_bytes:
        return target
    target.extend(bytes(target_size_bytes - len(target)))
    return target


def expand_to_megabytes(target: bytearray, size_mb: int) -> bytearray:
    return expand(target, size_mb * MEGABYTE)


# ---------------------------------------------------------------------------
# Dictionary patches
# ---------------------------------------------------------------------------


def _parse_dictionary(patches: DictionaryPatch) -> List[Tuple[int, bytes]]:
    writes = []
    for index, entry in enumerate(patches):
        if not isinstance(entry, Mapping):
            raise MalformedInput(f"Patch entry {index} is not an offset mapping: {entry!r}")
        for offset_str, values in entry.items():
            try:
                offset = int(offset_str)
            except (TypeError, ValueError):
                raise MalformedInput(f"Patch entry {index} has a bad offset: {offset_str!r}")
            if offset < 0:
                raise MalformedInput(f"Patch entry {index} has a negative offset: {offset}")
            try:
                if isinstance(values, (int, str, bytes)):
                    raise TypeError(type(values).__name__)
                data = bytes(values)
            except (TypeError, ValueError):
                raise MalformedInput(
                    f"Patch entry {index} at {offset:#x} has values outside 0-255"
                )
            writes.append((offset, data))
    return writes


def apply_dictionary(target: bytearray, patches: DictionaryPatch) -> bytearray:
    """Overwrite target with the server's sparse {offset: [bytes]} patches.

    Entries apply in list order, so later entries win where ranges overlap.
    Everything is validated before the first byte is written.

    Raises:
        MalformedInput: an offset or value that cannot be parsed.
        BoundsViolation: a write that would run past the end of target.
    """
    writes = _parse_dictionary(patches)
    size = len(target)
    for offset, data in writes:
        if offset + len(data) > size:
            raise BoundsViolation(
                f"Patch of {len(data)} bytes at {offset:#x} exceeds ROM size {size:#x}"
            )

    for offset, data in writes:
        target[offset:offset + len(data)] = data
    return target


# ---------------------------------------------------------------------------
# Checksum
# ---------------------------------------------------------------------------


def write_checksum(rom: bytearray) -> bytearray:
    """Recalculate the 16-bit header checksum and its complement in place."""
    if len(rom) < CHECKSUM_END:
        raise BoundsViolation(f"ROM of {len(rom):#x} bytes has no checksum field")

    rom[CHECKSUM_COMPLEMENT_OFFSET:CHECKSUM_END] = b"\x00\x00\x00\x00"
    checksum = sum(rom) & 0xFFFF
    complement = checksum ^ 0xFFFF

    rom[CHECKSUM_COMPLEMENT_OFFSET] = complement & 0xFF
    rom[CHECKSUM_COMPLEMENT_OFFSET + 1] = (complement >> 8) & 0xFF
    rom[CHECKSUM_OFFSET] = checksum & 0xFF
    rom[CHECKSUM_OFFSET + 1] = (checksum >> 8) & 0xFF
    return rom


def read_checksum(rom: bytes) -> Tuple[int, int]:
    """Return (complement, checksum) as stored in the header."""
    if len(rom) < CHECKSUM_END:
        raise BoundsViolation(f"ROM of {len(rom):#x} bytes has no checksum field")
    complement = rom[CHECKSUM_COMPLEMENT_OFFSET] | (rom[CHECKSUM_COMPLEMENT_OFFSET + 1] << 8)
    checksum = rom[CHECKSUM_OFFSET] | (rom[CHECKSUM_OFFSET + 1] << 8)
    return complement, checksum


def verify_checksum(rom: bytes) -> bool:
    """True if the stored checksum matches what write_checksum would store."""
    complement, checksum = read_checksum(rom)
    if complement != checksum ^ 0xFFFF:
        return False
    body_sum = sum(rom) - sum(rom[CHECKSUM_COMPLEMENT_OFFSET:CHECKSUM_END])
    return (body_sum & 0xFFFF) == checksum
