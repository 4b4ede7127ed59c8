"""Sprite catalog: sprite list fetching, .zspr caching, random picking and previews.

Everything lives under one cache directory:
  sprites_list.json   last fetched sprite list (offline fallback)
  zspr_cache/         downloaded sprite files
  previews/           preview PNGs
"""

import hashlib
import io
import json
import os
import random
import re
import traceback
from typing import Callable, Iterable, List, Optional

import requests
from PIL import Image

from constants import ALTTPR_BASE_URL, HTTP_TIMEOUT, PREVIEW_TIMEOUT
from services.alttpr_api.client import ApiError, create_session
from services.alttpr_api.models import SpriteEntry
from utils.logging import log_error, log_warning


RANDOM_ALL_SENTINEL = "__random_all__"
RANDOM_FAVORITES_SENTINEL = "__random_favorites__"

SPRITE_LIST_FILE = "sprites_list.json"


def safe_sprite_filename(name: str) -> str:
    """File name for a downloaded sprite, safe on every platform."""
    return re.sub(r"[^a-zA-Z0-9._-]", "_", name) + ".zspr"


class SpriteCatalog:
    """Fetches and caches the alttpr.com sprite list and sprite files."""

    def __init__(
        self,
        cache_dir: str,
        base_url: str = ALTTPR_BASE_URL,
        session: Optional[requests.Session] = None,
        on_status: Optional[Callable[[str], None]] = None,
    ):
        self.cache_dir = cache_dir
        self.base_url = base_url.rstrip("/")
        self.session = session or create_session()
        self.on_status = on_status
        self.list_path = os.path.join(cache_dir, SPRITE_LIST_FILE)
        self.zspr_dir = os.path.join(cache_dir, "zspr_cache")
        self.preview_dir = os.path.join(cache_dir, "previews")
        os.makedirs(cache_dir, exist_ok=True)

    # ------------------------------------------------------------------
    # Sprite list
    # ------------------------------------------------------------------

    def _load_cached_list(self) -> Optional[List[SpriteEntry]]:
        if not os.path.exists(self.list_path):
            return None
        try:
            with open(self.list_path) as f:
                data = json.load(f)
            return self._parse_list(data)
        except (OSError, ValueError) as e:
            log_error("Failed to read cached sprite list", type(e).__name__, traceback.format_exc())
            return None

    @staticmethod
    def _parse_list(data) -> List[SpriteEntry]:
        if not isinstance(data, list):
            return []
        return [SpriteEntry.from_dict(item) for item in data if isinstance(item, dict)]

    def fetch_sprite_list(self, force_refresh: bool = False) -> List[SpriteEntry]:
        """Return the sprite list from the disk cache or the network.

        When the network fails the cached list is used if there is one.

        Raises:
            ApiError: network failure with no cached list to fall back on.
        """
        if not force_refresh:
            cached = self._load_cached_list()
            if cached is not None:
                return cached

        try:
            if self.on_status:
                self.on_status("Fetching sprite list...")
            response = self.session.get(f"{self.base_url}/sprites", timeout=HTTP_TIMEOUT)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            cached = self._load_cached_list()
            if cached is not None:
                log_warning(f"Sprite list refresh failed, using cache: {e}")
                if self.on_status:
                    self.on_status("Offline - showing cached sprite list")
                return cached
            raise ApiError(f"Failed to fetch sprites: {e}") from e

        with open(self.list_path, "w") as f:
            json.dump(data, f)
        return self._parse_list(data)

    # ------------------------------------------------------------------
    # Sprite files
    # ------------------------------------------------------------------

    def download_sprite(self, entry: SpriteEntry) -> str:
        """Download a sprite into the cache and return its path.

        Already-cached sprites are returned without a request. The file is
        written to a .tmp name first and renamed once complete.
        """
        os.makedirs(self.zspr_dir, exist_ok=True)
        target = os.path.join(self.zspr_dir, safe_sprite_filename(entry.name))
        if os.path.exists(target):
            return target

        if not entry.file:
            raise ApiError(f"Sprite '{entry.name}' has no download URL")

        try:
            response = self.session.get(entry.file, timeout=HTTP_TIMEOUT)
            response.raise_for_status()
        except requests.RequestException as e:
            raise ApiError(f"Failed to download sprite: {e}") from e
        if not response.content:
            raise ApiError("Empty sprite download")

        tmp = target + ".tmp"
        with open(tmp, "wb") as f:
            f.write(response.content)
        os.replace(tmp, target)
        return target

    @staticmethod
    def pick_random(
        sprites: List[SpriteEntry],
        favorites: Iterable[str],
        favorites_only: bool,
        rng: Optional[random.Random] = None,
    ) -> Optional[SpriteEntry]:
        """Pick a random sprite, optionally only from favorites. None if nothing to pick."""
        favorites = set(favorites)
        pool = [s for s in sprites if s.name in favorites] if favorites_only else list(sprites)
        if not pool:
            return None
        return (rng or random).choice(pool)

    def resolve_sprite_path(
        self,
        sprite_path: str,
        favorites: Iterable[str] = (),
        rng: Optional[random.Random] = None,
    ) -> Optional[str]:
        """Turn a stored sprite choice into a concrete local file path.

        Empty means the default sprite (None). The random sentinels pick and
        download a sprite; anything else is already a file path.
        """
        if not sprite_path:
            return None
        if sprite_path not in (RANDOM_ALL_SENTINEL, RANDOM_FAVORITES_SENTINEL):
            return sprite_path

        favorites_only = sprite_path == RANDOM_FAVORITES_SENTINEL
        sprites = self.fetch_sprite_list()
        picked = self.pick_random(sprites, favorites, favorites_only, rng)
        if picked is None:
            if favorites_only:
                raise ApiError(
                    "No favorite sprites selected. Star some sprites in the browser first."
                )
            raise ApiError("Sprite list is empty.")
        if self.on_status:
            self.on_status(f"Random sprite: {picked.name}")
        return self.download_sprite(picked)

    # ------------------------------------------------------------------
    # Previews
    # ------------------------------------------------------------------

    def _preview_cache_path(self, url: str) -> str:
        digest = hashlib.sha1(url.encode("utf-8")).hexdigest()
        return os.path.join(self.preview_dir, f"{digest}.png")

    def load_preview(self, entry: SpriteEntry) -> Optional[Image.Image]:
        """Return the sprite's preview as an RGBA image, cached on disk.

        Returns None when the sprite has no preview or it cannot be loaded.
        Only previews that decode are written to the cache; an unreadable
        cached file is removed so the next call downloads it again.
        """
        url = entry.preview
        if not url:
            return None

        cache_path = self._preview_cache_path(url)
        try:
            if os.path.exists(cache_path):
                with open(cache_path, "rb") as f:
                    content = f.read()
                try:
                    return Image.open(io.BytesIO(content)).convert("RGBA")
                except OSError:
                    os.remove(cache_path)
                    raise

            response = self.session.get(url, timeout=PREVIEW_TIMEOUT)
            response.raise_for_status()
            image = Image.open(io.BytesIO(response.content)).convert("RGBA")
            os.makedirs(self.preview_dir, exist_ok=True)
            with open(cache_path, "wb") as f:
                f.write(response.content)
            return image
        except (requests.RequestException, OSError) as e:
            log_error(
                f"Failed to load preview for sprite '{entry.name}'",
                type(e).__name__,
                traceback.format_exc(),
            )
            return None
