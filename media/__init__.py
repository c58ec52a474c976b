"""
media — sandboxed storage for inline-encoded images.

Usage:
    from media import build_media_stores, default_asset_classes
    stores = build_media_stores(default_asset_classes(upload_folder))
    path = stores["avatar"].store("data:image/png;base64,...", owner_id=42)
    stores["avatar"].remove(path)
"""

import logging

from media.asset_class import AssetClassConfig, default_asset_classes, AVATAR, GALLERY
from media.exceptions import MediaStoreError, InvalidPayload, PayloadTooLarge, StorageUnavailable
from media.local import LocalMediaStore
from media.paths import normalize_prefix

logger = logging.getLogger(__name__)


def build_media_stores(configs) -> dict:
    """Return one LocalMediaStore per asset class, keyed by class name."""
    stores = {}
    for config in configs:
        if config.name in stores:
            raise ValueError(f"duplicate asset class: {config.name}")
        stores[config.name] = LocalMediaStore(config)
        logger.info(
            "Media store %s: root=%s prefixes=%s max_bytes=%d",
            config.name, config.storage_root, ", ".join(config.accepted_prefixes), config.max_bytes,
        )
    return stores


__all__ = [
    "AVATAR",
    "GALLERY",
    "AssetClassConfig",
    "InvalidPayload",
    "LocalMediaStore",
    "MediaStoreError",
    "PayloadTooLarge",
    "StorageUnavailable",
    "build_media_stores",
    "default_asset_classes",
    "normalize_prefix",
]
