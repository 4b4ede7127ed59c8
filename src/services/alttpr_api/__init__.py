"""alttpr.com API service.

Generates seeds through the randomizer web service and manages the sprite catalog.
"""

from services.alttpr_api.client import AlttprClient, ApiError, create_session
from services.alttpr_api.models import RandomizerSettings, SeedResult, SpriteEntry
from services.alttpr_api.sprites import (
    SpriteCatalog,
    RANDOM_ALL_SENTINEL,
    RANDOM_FAVORITES_SENTINEL,
)

__all__ = [
    "AlttprClient",
    "ApiError",
    "create_session",
    "RandomizerSettings",
    "SeedResult",
    "SpriteEntry",
    "SpriteCatalog",
    "RANDOM_ALL_SENTINEL",
    "RANDOM_FAVORITES_SENTINEL",
]
