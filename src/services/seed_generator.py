"""Seed generator - Main orchestrator.

Coordinates source ROM validation, seed generation on alttpr.com, sprite
resolution, the ROM patch pipeline and writing the finished ROM.
"""

import json
import os
import traceback
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from constants import OUTPUT_FILENAME_TEMPLATE
from services import esde_helper
from services.alttpr_api.client import AlttprClient, ApiError
from services.alttpr_api.models import RandomizerSettings
from services.alttpr_api.sprites import (
    RANDOM_ALL_SENTINEL,
    RANDOM_FAVORITES_SENTINEL,
    SpriteCatalog,
)
from services.lttp_patcher.cosmetics import CosmeticSelection
from services.lttp_patcher.errors import PatchError
from services.lttp_patcher.patcher import generate_rom
from services.lttp_patcher.rom_utils import load_source_rom
from services.lttp_patcher.sprite import load_sprite
from utils.logging import log_error


@dataclass
class GenerationResult:
    """Result of a generate operation."""

    success: bool
    output_path: str = ""
    seed_hash: str = ""
    permalink: str = ""
    error: str = ""


def output_filename(seed_hash: str) -> str:
    return OUTPUT_FILENAME_TEMPLATE.format(hash=seed_hash)


def write_rom(output_dir: str, file_name: str, rom: bytes) -> str:
    """Write a finished ROM via a temporary file so no partial ROM is left behind."""
    os.makedirs(output_dir, exist_ok=True)
    path = os.path.join(output_dir, file_name)
    tmp = path + ".tmp"
    try:
        with open(tmp, "wb") as f:
            f.write(rom)
        os.replace(tmp, path)
    finally:
        if os.path.exists(tmp):
            os.remove(tmp)
    return path


class SeedGenerator:
    """Runs one generation request end to end."""

    def __init__(
        self,
        client: Optional[AlttprClient] = None,
        catalog: Optional[SpriteCatalog] = None,
        on_status: Optional[Callable[[str], None]] = None,
    ):
        self.on_status = on_status
        self.client = client or AlttprClient(on_status=on_status)
        self.catalog = catalog

    def _status(self, message: str) -> None:
        if self.on_status:
            self.on_status(message)

    def generate(
        self,
        rom_path: str,
        output_dir: str,
        settings: RandomizerSettings,
        cosmetics: Optional[CosmeticSelection] = None,
        sprite_path: str = "",
        favorites: Iterable[str] = (),
        esde_mode: bool = False,
    ) -> GenerationResult:
        """Generate a seed and write the patched ROM.

        Args:
            rom_path: Path to the stock ALttP JP 1.0 ROM
            output_dir: Folder for the finished ROM
            settings: Seed options sent to alttpr.com
            cosmetics: Optional cosmetic choices
            sprite_path: Sprite file path, random sentinel, or "" for default
            favorites: Favorite sprite names for the random-favorites sentinel
            esde_mode: Write into lttpr/ and update gamelist.xml and es_systems.xml

        Returns:
            GenerationResult with success status and details
        """
        seed_hash = ""
        permalink = ""
        try:
            self._status("Validating ROM...")
            source = load_source_rom(rom_path)

            seed = self.client.generate(settings)
            seed_hash = seed.hash
            permalink = seed.permalink

            sprite = None
            if sprite_path:
                resolved = self._resolve_sprite(sprite_path, favorites)
                if resolved:
                    sprite = load_sprite(resolved)

            self._status("Patching ROM...")
            rom = generate_rom(
                source,
                seed.bps_bytes,
                seed.dict_patches,
                seed.size_mb,
                cosmetics=cosmetics,
                sprite=sprite,
            )

            self._status("Saving patched ROM...")
            file_name = output_filename(seed.hash)
            target_dir = esde_helper.ensure_folder(output_dir) if esde_mode else output_dir
            output_path = write_rom(target_dir, file_name, bytes(rom))

            if esde_mode:
                esde_helper.update_gamelist(target_dir, file_name, seed.hash, seed.permalink)
                esde_helper.write_info_file(target_dir)
                esde_helper.write_es_systems(target_dir)

            self._status(f"Done! Seed: {seed.hash}")
            return GenerationResult(
                success=True,
                output_path=output_path,
                seed_hash=seed.hash,
                permalink=seed.permalink,
            )

        except (PatchError, ApiError, OSError) as e:
            log_error(f"Seed generation failed: {e}", type(e).__name__, traceback.format_exc())
            self._status(f"Error: {e}")
            return GenerationResult(
                success=False,
                seed_hash=seed_hash,
                permalink=permalink,
                error=str(e),
            )

    def _resolve_sprite(self, sprite_path: str, favorites: Iterable[str]) -> Optional[str]:
        if self.catalog is not None:
            return self.catalog.resolve_sprite_path(sprite_path, favorites)
        if sprite_path in (RANDOM_ALL_SENTINEL, RANDOM_FAVORITES_SENTINEL):
            raise ApiError("Random sprites need a sprite catalog")
        return sprite_path


def patch_from_files(
    rom_path: str,
    bps_path: str,
    output_path: str,
    dict_patch_path: Optional[str] = None,
    size_mb: int = 2,
    cosmetics: Optional[CosmeticSelection] = None,
    sprite_path: Optional[str] = None,
) -> str:
    """Patch a ROM from local files, without contacting the web service.

    dict_patch_path may point at a JSON list of {offset: [bytes]} entries or
    at a saved /api/randomizer response whose "patch" key holds that list.

    Raises:
        PatchError: on any patch failure.
        OSError: if an input cannot be read or the output written.
    """
    source = load_source_rom(rom_path)
    with open(bps_path, "rb") as f:
        bps_bytes = f.read()

    dict_patches = []
    if dict_patch_path:
        with open(dict_patch_path, "r") as f:
            data = json.load(f)
        if isinstance(data, dict):
            size_mb = int(data.get("size", size_mb) or size_mb)
            data = data.get("patch", [])
        dict_patches = data

    sprite = load_sprite(sprite_path) if sprite_path else None
    rom = generate_rom(source, bps_bytes, dict_patches, size_mb, cosmetics=cosmetics, sprite=sprite)

    output_dir = os.path.dirname(output_path) or "."
    return write_rom(output_dir, os.path.basename(output_path), bytes(rom))
