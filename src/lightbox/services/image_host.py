"""Client for the external image host (Cloudinary).

Only the calls the backend needs are wrapped here:

- destroying an uploaded image when its media row is deleted,
- reading resource details (dimensions, format) for the media library,
- building delivery URLs for a public id.

Uploads go straight from the admin panel to the image host; this service only
stores the resulting records.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import httpx

from lightbox.core.settings import settings

# Configure logger for this module
logger = logging.getLogger(__name__)

API_BASE_URL = "https://api.cloudinary.com/v1_1"
DELIVERY_BASE_URL = "https://res.cloudinary.com"

HTTP_OK = 200
HTTP_NOT_FOUND = 404


class ImageHostError(RuntimeError):
    """Base exception raised for image host failures."""


class ImageHostDisabledError(ImageHostError):
    """Raised when the image host is called without credentials configured."""


@dataclass(frozen=True)
class ImageHostConfig:
    """Immutable configuration for image host operations."""

    cloud_name: str | None
    api_key: str | None
    api_secret: str | None
    timeout_seconds: float

    @property
    def enabled(self) -> bool:
        return bool(self.cloud_name and self.api_key and self.api_secret)


@dataclass(frozen=True)
class ImageResource:
    """Subset of resource details returned by the image host."""

    public_id: str
    width: int
    height: int
    format: str | None

    @property
    def aspect_ratio(self) -> float:
        return round(self.width / self.height, 2) if self.height else 0.0


def load_image_host_config() -> ImageHostConfig:
    """Build configuration object from global settings."""
    return ImageHostConfig(
        cloud_name=settings.cloudinary_cloud_name,
        api_key=settings.cloudinary_api_key,
        api_secret=settings.cloudinary_api_secret,
        timeout_seconds=float(settings.cloudinary_http_timeout_seconds),
    )


def sign_params(params: Mapping[str, Any], api_secret: str) -> str:
    """Return the SHA-1 request signature the image host expects.

    Parameters are sorted by name, joined as ``k=v`` pairs with ``&`` and the
    API secret is appended before hashing. Empty values are skipped.
    """
    to_sign = "&".join(
        f"{key}={params[key]}" for key in sorted(params) if params[key] not in (None, "")
    )
    return hashlib.sha1(f"{to_sign}{api_secret}".encode()).hexdigest()


def delivery_url(
    public_id: str,
    *,
    cloud_name: str | None = None,
    transformations: str | None = None,
) -> str:
    """Return the secure delivery URL for ``public_id``.

    Args:
        public_id: Image host identifier of the asset.
        cloud_name: Account name; defaults to the configured one.
        transformations: Optional transformation string such as ``w_1200,c_limit``.
    """
    cloud = cloud_name or settings.cloudinary_cloud_name or ""
    parts = [DELIVERY_BASE_URL, cloud, "image", "upload"]
    if transformations:
        parts.append(transformations)
    parts.append(quote(public_id, safe="/"))
    return "/".join(parts)


class ImageHostClient:
    """HTTP client wrapper for image host interactions."""

    def __init__(self, config: ImageHostConfig | None = None) -> None:
        self.config = config or load_image_host_config()
        self._client: httpx.AsyncClient | None = None
        self._client_lock = asyncio.Lock()

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    async def _ensure_client(self) -> httpx.AsyncClient:
        if not self.enabled:
            raise ImageHostDisabledError("Image host credentials are not configured")

        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    base_url=f"{API_BASE_URL}/{self.config.cloud_name}",
                    timeout=httpx.Timeout(self.config.timeout_seconds),
                )
        return self._client

    async def destroy(self, public_id: str) -> bool:
        """Delete ``public_id`` from the image host.

        Returns:
            True if the asset was deleted, False if the host did not know it.

        Raises:
            ImageHostDisabledError: If credentials are missing.
            ImageHostError: On transport failures or unexpected responses.
        """
        client = await self._ensure_client()
        params: dict[str, Any] = {
            "public_id": public_id,
            "timestamp": int(time.time()),
        }
        params["signature"] = sign_params(params, self.config.api_secret or "")
        params["api_key"] = self.config.api_key

        try:
            response = await client.post("/image/destroy", data=params)
        except httpx.HTTPError as exc:  # pragma: no cover - network failure
            raise ImageHostError(f"Image host request failed: {exc}") from exc

        if response.status_code != HTTP_OK:
            raise ImageHostError(f"Image host responded with {response.status_code}")

        result = response.json().get("result")
        if result == "ok":
            return True
        if result == "not found":
            logger.info("Image host had no asset for %s", public_id)
            return False
        raise ImageHostError(f"Unexpected destroy result for {public_id}: {result!r}")

    async def fetch_resource(self, public_id: str) -> ImageResource | None:
        """Return dimensions and format for ``public_id``, or None if unknown."""
        client = await self._ensure_client()
        path = f"/resources/image/upload/{quote(public_id, safe='/')}"
        try:
            response = await client.get(
                path,
                auth=(self.config.api_key or "", self.config.api_secret or ""),
            )
        except httpx.HTTPError as exc:  # pragma: no cover - network failure
            raise ImageHostError(f"Image host request failed: {exc}") from exc

        if response.status_code == HTTP_NOT_FOUND:
            return None
        if response.status_code != HTTP_OK:
            raise ImageHostError(f"Image host responded with {response.status_code}")

        payload = response.json()
        return ImageResource(
            public_id=payload.get("public_id", public_id),
            width=int(payload.get("width") or 0),
            height=int(payload.get("height") or 0),
            format=payload.get("format"),
        )

    async def close(self) -> None:
        """Clean up underlying HTTP client resources."""
        async with self._client_lock:
            if self._client is not None:
                await self._client.aclose()
                self._client = None


class _ImageHostClientSingleton:
    """Singleton wrapper for ImageHostClient."""

    _instance: ImageHostClient | None = None

    @classmethod
    def get_instance(cls) -> ImageHostClient:
        """Get or create the singleton ImageHostClient instance."""
        if cls._instance is None:
            cls._instance = ImageHostClient()
        return cls._instance


def get_image_host_client() -> ImageHostClient:
    """Return a singleton image host client instance."""
    return _ImageHostClientSingleton.get_instance()


async def delete_from_image_host(client: ImageHostClient, public_ids: list[str]) -> list[str]:
    """Destroy each asset, logging failures instead of raising.

    Local deletes must not be blocked by the image host, so every error is
    logged and the id reported back as failed.

    Returns:
        Public ids that could not be removed from the image host.
    """
    failed: list[str] = []
    for public_id in public_ids:
        try:
            await client.destroy(public_id)
        except ImageHostDisabledError:
            logger.debug("Image host disabled; skipping destroy for %s", public_id)
        except ImageHostError as exc:
            logger.warning("Failed to delete %s from image host: %s", public_id, exc)
            failed.append(public_id)
    return failed
