"""BPS (beat patch system) applier.

alttpr.com ships the base patch for every seed as a BPS1 file. The format is
a header of variable-length integers, a stream of four kinds of copy/insert
actions, and a 12-byte footer holding the source, target and patch CRC32s.

Format reference: byuu's BPS specification (beat patch system, v1).
"""

import struct
import zlib
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple, Union

from services.lttp_patcher.errors import (
    BoundsViolation,
    IntegrityFailure,
    MalformedInput,
    TruncatedInput,
)


BPS_MAGIC = b"BPS1"

# source CRC32 + target CRC32 + patch CRC32
FOOTER_SIZE = 12

# Largest target image accepted from a header (randomizer ROMs are 2-4 MiB)
MAX_TARGET_SIZE = 16 * 1024 * 1024

SOURCE_READ = 0
TARGET_READ = 1
SOURCE_COPY = 2
TARGET_COPY = 3


def read_vli(data: bytes, pos: int, end: Optional[int] = None) -> Tuple[int, int]:
    """Decode one BPS variable-length integer.

    Each non-terminal byte also adds the next shift to the value, so every
    number has exactly one encoding. The high bit marks the last byte.

    Args:
        data: Buffer to read from
        pos: Offset of the first byte
        end: Read limit, defaults to len(data). Header and action reads pass
            the footer offset.

    Returns:
        (value, position after the integer)

    Raises:
        TruncatedInput: if the limit is reached before a terminal byte.
    """
    limit = len(data) if end is None else min(end, len(data))
    value = 0
    shift = 1
    while True:
        if pos >= limit:
            raise TruncatedInput(f"BPS patch truncated during VLI read at offset {pos}")
        byte = data[pos]
        pos += 1
        value += (byte & 0x7F) * shift
        if byte & 0x80:
            break
        shift <<= 7
        value += shift
    return value, pos


def read_signed_vli(data: bytes, pos: int, end: Optional[int] = None) -> Tuple[int, int]:
    """Decode a relative offset: low bit is the sign, the rest the magnitude."""
    raw, pos = read_vli(data, pos, end)
    magnitude = raw >> 1
    return (-magnitude if raw & 1 else magnitude), pos


def crc32(data: bytes, start: int = 0, end: Optional[int] = None) -> int:
    """Unsigned IEEE CRC32 of data[start:end]."""
    return zlib.crc32(memoryview(data)[start:end]) & 0xFFFFFFFF


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SourceRead:
    """Copy from the source at the current output position."""

    length: int


@dataclass(frozen=True)
class TargetRead:
    """Insert literal bytes carried in the patch."""

    data: bytes

    @property
    def length(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class SourceCopy:
    """Copy from the source at a relative cursor."""

    length: int
    delta: int


@dataclass(frozen=True)
class TargetCopy:
    """Copy from already-written output at a relative cursor."""

    length: int
    delta: int


BpsAction = Union[SourceRead, TargetRead, SourceCopy, TargetCopy]


@dataclass
class BpsInfo:
    """Header and footer fields of a BPS patch."""

    source_size: int
    target_size: int
    metadata: str
    source_crc: int
    target_crc: int
    patch_crc: int


@dataclass
class _Header:
    source_size: int
    target_size: int
    metadata: bytes
    actions_offset: int


def _check_envelope(patch: bytes) -> None:
    if len(patch) < len(BPS_MAGIC) + FOOTER_SIZE or patch[:4] != BPS_MAGIC:
        raise MalformedInput('Invalid BPS patch: missing "BPS1" magic.')


def _read_header(patch: bytes) -> _Header:
    _check_envelope(patch)
    footer_start = len(patch) - FOOTER_SIZE

    pos = len(BPS_MAGIC)
    source_size, pos = read_vli(patch, pos, footer_start)
    target_size, pos = read_vli(patch, pos, footer_start)
    metadata_length, pos = read_vli(patch, pos, footer_start)

    if target_size > MAX_TARGET_SIZE:
        raise MalformedInput(
            f"BPS target size {target_size:,} exceeds the {MAX_TARGET_SIZE:,}-byte limit"
        )

    if pos + metadata_length > footer_start:
        raise MalformedInput(
            f"BPS metadata length ({metadata_length}) runs past the patch footer"
        )
    metadata = bytes(patch[pos:pos + metadata_length])
    pos += metadata_length

    return _Header(source_size, target_size, metadata, pos)


def verify_patch_crc(patch: bytes) -> None:
    """Check the trailing patch CRC32 against the rest of the patch.

    Raises:
        IntegrityFailure: on mismatch.
    """
    _check_envelope(patch)
    expected = struct.unpack_from("<I", patch, len(patch) - 4)[0]
    actual = crc32(patch, 0, len(patch) - 4)
    if actual != expected:
        raise IntegrityFailure(
            f"BPS patch CRC32 mismatch (expected {expected:08X}, got {actual:08X}). "
            "Corrupt download?"
        )


def _iter_actions(patch: bytes, pos: int, end: int) -> Iterator[BpsAction]:
    while pos < end:
        opcode, pos = read_vli(patch, pos, end)
        length = (opcode >> 2) + 1
        kind = opcode & 3

        if kind == SOURCE_READ:
            yield SourceRead(length)
        elif kind == TARGET_READ:
            if pos + length > end:
                raise BoundsViolation(
                    f"TargetRead of {length} bytes at patch offset {pos} "
                    "runs into the footer"
                )
            yield TargetRead(bytes(patch[pos:pos + length]))
            pos += length
        elif kind == SOURCE_COPY:
            delta, pos = read_signed_vli(patch, pos, end)
            yield SourceCopy(length, delta)
        else:
            delta, pos = read_signed_vli(patch, pos, end)
            yield TargetCopy(length, delta)


def iter_bps_actions(patch: bytes) -> Iterator[BpsAction]:
    """Yield the decoded actions of a patch without applying them."""
    header = _read_header(patch)
    return _iter_actions(patch, header.actions_offset, len(patch) - FOOTER_SIZE)


def get_bps_info(patch: bytes) -> BpsInfo:
    """Read a BPS header and footer without applying or verifying it."""
    header = _read_header(patch)
    source_crc, target_crc, patch_crc = struct.unpack_from(
        "<III", patch, len(patch) - FOOTER_SIZE
    )
    return BpsInfo(
        source_size=header.source_size,
        target_size=header.target_size,
        metadata=header.metadata.decode("utf-8", errors="replace"),
        source_crc=source_crc,
        target_crc=target_crc,
        patch_crc=patch_crc,
    )


def apply_bps(source: bytes, patch: bytes) -> bytearray:
    """Apply a BPS1 patch to a source image and return the new target image.

    The declared source size is not checked; the caller's source is trusted.
    The returned buffer is freshly allocated at the declared target size and
    neither input is modified.

    Raises:
        MalformedInput: bad magic or a header inconsistent with the patch size.
        IntegrityFailure: patch CRC32 mismatch.
        TruncatedInput: a number runs off the end of the patch.
        BoundsViolation: an action reads or writes outside its buffer.
    """
    verify_patch_crc(patch)
    header = _read_header(patch)

    target = bytearray(header.target_size)
    target_size = len(target)
    source_size = len(source)

    output_pos = 0
    source_rel = 0
    target_rel = 0

    for action in _iter_actions(patch, header.actions_offset, len(patch) - FOOTER_SIZE):
        length = action.length
        if output_pos + length > target_size:
            raise BoundsViolation(
                f"BPS action writes {length} bytes at {output_pos:#x}, "
                f"past the declared target size {target_size:#x}"
            )

        if isinstance(action, SourceRead):
            # The tail past the end of the source stays zero
            available = max(0, min(length, source_size - output_pos))
            target[output_pos:output_pos + available] = source[output_pos:output_pos + available]
            output_pos += length

        elif isinstance(action, TargetRead):
            target[output_pos:output_pos + length] = action.data
            output_pos += length

        elif isinstance(action, SourceCopy):
            source_rel += action.delta
            if source_rel < 0 or source_rel + length > source_size:
                raise BoundsViolation(
                    f"SourceCopy of {length} bytes from {source_rel:#x} is outside "
                    f"the {source_size:#x}-byte source"
                )
            target[output_pos:output_pos + length] = source[source_rel:source_rel + length]
            source_rel += length
            output_pos += length

        elif isinstance(action, TargetCopy):
            target_rel += action.delta
            if target_rel < 0 or target_rel >= output_pos:
                raise BoundsViolation(
                    f"TargetCopy from {target_rel:#x} does not point at already "
                    f"written output (write position {output_pos:#x})"
                )
            # Byte at a time: overlapping ranges repeat the pattern
            for _ in range(length):
                target[output_pos] = target[target_rel]
                output_pos += 1
                target_rel += 1

        else:
            raise MalformedInput(f"Unknown BPS action: {action!r}")

    return target
