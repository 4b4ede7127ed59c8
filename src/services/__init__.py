"""
Services layer for the LTTP Randomizer Generator.
Handles seed generation, ROM patching, the sprite catalog and ES-DE output.
"""

from .esde_helper import (
    ensure_folder,
    update_gamelist,
    write_info_file,
    write_es_systems,
)
from .seed_generator import (
    GenerationResult,
    SeedGenerator,
    patch_from_files,
)

__all__ = [
    # ES-DE
    'ensure_folder',
    'update_gamelist',
    'write_info_file',
    'write_es_systems',
    # Seed generation
    'GenerationResult',
    'SeedGenerator',
    'patch_from_files',
]
