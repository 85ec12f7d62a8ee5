"""Asset storage collaborator for QR codes, avatars and design images.

Stores are synchronous; callers go through :func:`store_asset` and
:func:`discard_asset`, which run the store off the event loop with a
bounded timeout.
"""

import asyncio
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, Optional

from ..config import get_config
from ..core.errors import UpstreamError
from ..utils.logging_config import get_logger, log_exception

logger = get_logger("assets")


class AssetStore(ABC):
    """Blob storage addressed by public URL."""

    @abstractmethod
    def put(self, key: str, data: bytes, content_type: str) -> str:
        """Store ``data`` under ``key`` and return its public URL."""
        pass

    @abstractmethod
    def delete(self, url: str) -> bool:
        """Delete the asset behind ``url``; False if this store does not own it."""
        pass


class LocalAssetStore(AssetStore):
    """Stores assets on the local filesystem and serves them from ``base_url``."""

    def __init__(self, directory: str, base_url: str):
        self.directory = Path(directory)
        self.base_url = base_url.rstrip("/")

    def _path_for(self, key: str) -> Path:
        path = (self.directory / key).resolve()
        if self.directory.resolve() not in path.parents:
            raise ValueError(f"Asset key escapes the store directory: {key}")
        return path

    def put(self, key: str, data: bytes, content_type: str) -> str:
        path = self._path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return f"{self.base_url}/{key}"

    def delete(self, url: str) -> bool:
        prefix = f"{self.base_url}/"
        if not url or not url.startswith(prefix):
            return False
        path = self._path_for(url[len(prefix):])
        if path.exists():
            path.unlink()
        return True


_asset_store: Optional[AssetStore] = None


def get_asset_store() -> AssetStore:
    """FastAPI dependency returning the configured asset store."""
    global _asset_store
    if _asset_store is None:
        config = get_config().assets
        _asset_store = LocalAssetStore(config.directory, config.base_url)
    return _asset_store


async def store_asset(
    store: AssetStore,
    key: str,
    data: bytes,
    content_type: str,
    timeout: Optional[float] = None,
) -> str:
    """Upload an asset, raising UpstreamError on failure or timeout."""
    if timeout is None:
        timeout = get_config().assets.timeout_seconds
    try:
        url = await asyncio.wait_for(
            asyncio.to_thread(store.put, key, data, content_type), timeout
        )
    except asyncio.TimeoutError as e:
        log_exception("assets", e, {"key": key, "timeout": timeout})
        raise UpstreamError("Asset storage timed out")
    except (OSError, ValueError) as e:
        log_exception("assets", e, {"key": key})
        raise UpstreamError("Failed to store asset")
    logger.debug(f"Stored asset {key} ({len(data)} bytes)")
    return url


async def discard_asset(store: AssetStore, url: Optional[str], timeout: Optional[float] = None) -> None:
    """Best-effort delete; failures are logged and never raised."""
    if not url:
        return
    if timeout is None:
        timeout = get_config().assets.timeout_seconds
    try:
        await asyncio.wait_for(asyncio.to_thread(store.delete, url), timeout)
    except (asyncio.TimeoutError, OSError, ValueError) as e:
        logger.warning(f"Failed to delete asset {url}: {type(e).__name__}: {e}")


async def discard_assets(store: AssetStore, urls: Iterable[Optional[str]]) -> None:
    """Delete several assets, skipping empty references."""
    for url in urls:
        await discard_asset(store, url)
