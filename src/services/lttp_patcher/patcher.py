"""LTTP ROM patch pipeline.

Runs the alttpr.com two-stage patch (BPS base patch, then the seed's
dictionary patches) and the optional client-side cosmetics and sprite:

  decode -> expand -> dictionary -> checksum -> [cosmetics] -> [sprite] -> checksum

Every call owns its buffers, so seeds can be built on parallel threads.
"""

from typing import Optional

from services.lttp_patcher.bps import apply_bps
from services.lttp_patcher.cosmetics import CosmeticSelection, apply_cosmetics
from services.lttp_patcher.rom_utils import (
    DictionaryPatch,
    apply_dictionary,
    expand_to_megabytes,
    write_checksum,
)
from services.lttp_patcher.sprite import SpriteContainer, apply_sprite


def generate_rom(
    source: bytes,
    bps_patch: bytes,
    dict_patches: DictionaryPatch,
    target_size_mb: int,
    cosmetics: Optional[CosmeticSelection] = None,
    sprite: Optional[SpriteContainer] = None,
) -> bytearray:
    """Build a finished, checksummed ROM for one seed.

    Args:
        source: Headerless 1 MiB source image (not modified)
        bps_patch: BPS1 base patch bytes from the server
        dict_patches: Seed-specific [{offset: [bytes]}] overwrites
        target_size_mb: ROM size the server asked for, in MiB
        cosmetics: Optional cosmetic choices
        sprite: Optional sprite container; None keeps the default sprite

    Returns:
        A new buffer of max(BPS target size, target_size_mb MiB) bytes.

    Raises:
        PatchError: any step failing aborts the whole build.
    """
    rom = apply_bps(source, bps_patch)
    expand_to_megabytes(rom, target_size_mb)
    apply_dictionary(rom, dict_patches)
    write_checksum(rom)

    if cosmetics is not None:
        apply_cosmetics(rom, cosmetics)

    if sprite is not None:
        apply_sprite(rom, sprite)
        write_checksum(rom)

    return rom
