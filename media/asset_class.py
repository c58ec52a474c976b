import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

from media.paths import normalize_prefix

SUPPORTED_IMAGE_TYPES = MappingProxyType({
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/webp": ".webp",
})

AVATAR = "avatar"
GALLERY = "gallery"

DEFAULT_AVATAR_MAX_BYTES = 2 * 1024 * 1024
DEFAULT_GALLERY_MAX_BYTES = 3 * 1024 * 1024


@dataclass(frozen=True)
class AssetClassConfig:
    """Immutable settings for one category of stored media.

    Prefixes are normalized on construction; the preferred prefix is removed
    from ``legacy_prefixes`` so ``accepted_prefixes`` never repeats it.
    """

    name: str
    storage_root: str
    preferred_prefix: str
    legacy_prefixes: tuple = ()
    max_bytes: int = DEFAULT_AVATAR_MAX_BYTES
    media_types: Mapping[str, str] = field(default_factory=lambda: SUPPORTED_IMAGE_TYPES)

    def __post_init__(self):
        preferred = normalize_prefix(self.preferred_prefix)
        if preferred is None:
            raise ValueError(f"{self.name}: preferred public prefix is empty")

        legacy = []
        for raw in self.legacy_prefixes:
            prefix = normalize_prefix(raw)
            if prefix and prefix != preferred and prefix not in legacy:
                legacy.append(prefix)

        if int(self.max_bytes) <= 0:
            raise ValueError(f"{self.name}: max_bytes must be positive")
        if not self.media_types:
            raise ValueError(f"{self.name}: no supported media types")

        object.__setattr__(self, "storage_root", os.path.abspath(self.storage_root))
        object.__setattr__(self, "preferred_prefix", preferred)
        object.__setattr__(self, "legacy_prefixes", tuple(legacy))
        object.__setattr__(self, "max_bytes", int(self.max_bytes))
        object.__setattr__(
            self,
            "media_types",
            MappingProxyType({k.lower(): v for k, v in self.media_types.items()}),
        )

    @property
    def accepted_prefixes(self) -> tuple:
        return (self.preferred_prefix,) + self.legacy_prefixes

    @property
    def supported_extensions(self) -> frozenset:
        return frozenset(self.media_types.values())


def _asset_class(name, upload_folder, subdir, prefix_override, max_bytes, default_max):
    default_prefix = f"/uploads/{subdir}"
    preferred = normalize_prefix(prefix_override) or default_prefix
    return AssetClassConfig(
        name=name,
        storage_root=os.path.join(upload_folder, subdir),
        preferred_prefix=preferred,
        legacy_prefixes=(f"/api{default_prefix}", default_prefix),
        max_bytes=max_bytes or default_max,
    )


def default_asset_classes(
    upload_folder: str,
    avatar_prefix: Optional[str] = None,
    avatar_max_bytes: Optional[int] = None,
    gallery_prefix: Optional[str] = None,
    gallery_max_bytes: Optional[int] = None,
) -> list:
    """Build the avatar and establishment-gallery classes under *upload_folder*."""
    return [
        _asset_class(AVATAR, upload_folder, "avatars",
                     avatar_prefix, avatar_max_bytes, DEFAULT_AVATAR_MAX_BYTES),
        _asset_class(GALLERY, upload_folder, "establishments",
                     gallery_prefix, gallery_max_bytes, DEFAULT_GALLERY_MAX_BYTES),
    ]
