"""alttpr.com seed generation client.

Three-step flow (mirrors pyz3r):
  1. POST /api/randomizer  -> seed hash, dictionary patches, ROM size
  2. GET  /api/h/{hash}    -> bpsLocation of the base BPS patch
  3. GET  bpsLocation      -> base BPS patch bytes

No retries; any failure raises ApiError and the request is abandoned.
"""

from typing import Callable, Optional
from urllib.parse import urljoin

import requests

from constants import ALTTPR_BASE_URL, HTTP_TIMEOUT, USER_AGENT
from services.alttpr_api.models import RandomizerSettings, SeedResult


class ApiError(Exception):
    """Raised when the randomizer web service cannot produce a seed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


def create_session() -> requests.Session:
    """Session with the project user agent, shared by API and sprite calls."""
    session = requests.Session()
    session.headers.update({"User-Agent": USER_AGENT})
    return session


def _seed_payload(data: dict):
    """Return (dict_patches, size_mb) from a seed response, or raise ApiError."""
    dict_patches = data.get("patch") or []
    if not isinstance(dict_patches, list):
        raise ApiError(f"Seed patch list has unexpected type {type(dict_patches).__name__}")
    try:
        size_mb = int(data.get("size") or 2)
    except (TypeError, ValueError) as e:
        raise ApiError(f"Seed ROM size is not a number: {data.get('size')!r}") from e
    if size_mb <= 0:
        raise ApiError(f"Seed ROM size must be positive, got {size_mb}")
    return dict_patches, size_mb


class AlttprClient:
    """Client for the alttpr.com randomizer API."""

    def __init__(
        self,
        base_url: str = ALTTPR_BASE_URL,
        session: Optional[requests.Session] = None,
        on_status: Optional[Callable[[str], None]] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session or create_session()
        self.on_status = on_status  # Optional callable(message: str)

    def _status(self, message: str) -> None:
        if self.on_status:
            self.on_status(message)

    def _get(self, url: str, what: str) -> requests.Response:
        try:
            response = self.session.get(url, timeout=HTTP_TIMEOUT)
        except requests.RequestException as e:
            raise ApiError(f"Failed to fetch {what}: {e}") from e
        if not response.ok:
            raise ApiError(
                f"Failed to fetch {what}: {response.status_code}", response.status_code
            )
        return response

    def request_seed(self, settings: RandomizerSettings) -> dict:
        """POST the settings and return the decoded seed response."""
        try:
            response = self.session.post(
                f"{self.base_url}/api/randomizer",
                json=settings.to_dict(),
                timeout=HTTP_TIMEOUT,
            )
        except requests.RequestException as e:
            raise ApiError(f"Could not reach {self.base_url}: {e}") from e

        if not response.ok:
            raise ApiError(
                f"API error {response.status_code}: {response.reason}", response.status_code
            )
        try:
            data = response.json()
        except ValueError as e:
            raise ApiError("Empty or invalid API response") from e
        if not isinstance(data, dict) or not data.get("hash"):
            raise ApiError("API response did not include a seed hash")
        return data

    def get_bps_location(self, seed_hash: str) -> str:
        """Return the absolute URL of the seed's base BPS patch."""
        response = self._get(f"{self.base_url}/api/h/{seed_hash}", "patch metadata")
        try:
            data = response.json()
        except ValueError as e:
            raise ApiError("Invalid patch metadata response") from e
        location = data.get("bpsLocation") if isinstance(data, dict) else None
        if location is not None and not isinstance(location, str):
            raise ApiError(f"Seed {seed_hash} has an invalid base patch location: {location!r}")
        if not location:
            raise ApiError(f"Seed {seed_hash} has no base patch location")
        if location.startswith("http"):
            return location
        return urljoin(self.base_url + "/", location.lstrip("/"))

    def download_bps(self, url: str) -> bytes:
        content = self._get(url, "BPS patch").content
        if not content:
            raise ApiError("Empty BPS response")
        return content

    def generate(self, settings: RandomizerSettings) -> SeedResult:
        """Generate a seed and download everything needed to patch it.

        Raises:
            ApiError: on any HTTP or response-format failure.
        """
        self._status("Contacting alttpr.com...")
        data = self.request_seed(settings)
        seed_hash = data["hash"]
        dict_patches, size_mb = _seed_payload(data)

        self._status("Fetching patch metadata...")
        bps_url = self.get_bps_location(seed_hash)

        self._status("Downloading base patch...")
        bps_bytes = self.download_bps(bps_url)

        return SeedResult(
            hash=seed_hash,
            permalink=f"{self.base_url}/h/{seed_hash}",
            bps_bytes=bps_bytes,
            dict_patches=dict_patches,
            size_mb=size_mb,
        )
