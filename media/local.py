import os
import time
import secrets
import logging
from typing import Optional

from werkzeug.utils import secure_filename

from media.asset_class import AssetClassConfig
from media.exceptions import StorageUnavailable
from media.paths import PathResolver
from media.payload import PayloadDecoder

logger = logging.getLogger(__name__)

# 4 random bytes -> 8 hex characters in every generated filename.
SUFFIX_BYTES = 4
COLLISION_RETRIES = 1
# Keeps generated names well under NAME_MAX.
OWNER_TOKEN_MAX = 64


class AssetRemover:
    """Delete stored files identified by their public path."""

    def __init__(self, resolver: PathResolver):
        self._resolver = resolver

    def remove(self, public_path) -> bool:
        """Remove the file behind *public_path*.

        Return True if a file was deleted, False if the path is not an asset
        of this class or the file is already gone.
        """
        absolute = self._resolver.resolve(public_path)
        if absolute is None:
            return False
        try:
            os.remove(absolute)
        except FileNotFoundError:
            return False
        except OSError as exc:
            logger.error("Failed to delete %s: %s", absolute, exc)
            raise StorageUnavailable(f"could not delete {public_path}", absolute) from exc
        logger.info("Removed media file %s", absolute)
        return True

    def discard(self, public_path) -> None:
        """Best-effort removal; the outcome is logged and never raised."""
        try:
            self.remove(public_path)
        except Exception as exc:
            logger.warning("Leaving orphaned media file %r: %s", public_path, exc, exc_info=True)


class AssetWriter:
    """Write decoded images under the storage root with unique names."""

    def __init__(
        self,
        config: AssetClassConfig,
        resolver: PathResolver,
        decoder: PayloadDecoder,
        remover: AssetRemover,
    ):
        self._config = config
        self._resolver = resolver
        self._decoder = decoder
        self._remover = remover

    def _owner_token(self, owner_id) -> str:
        token = secure_filename(str(owner_id)) if owner_id is not None else ""
        return token[:OWNER_TOKEN_MAX] or self._config.name

    def _generate_filename(self, owner: str, extension: str) -> str:
        millis = int(time.time() * 1000)
        return f"{owner}-{millis}-{secrets.token_hex(SUFFIX_BYTES)}{extension}"

    def _ensure_dir(self) -> None:
        try:
            os.makedirs(self._config.storage_root, exist_ok=True)
        except OSError as exc:
            raise StorageUnavailable(
                f"cannot create {self._config.name} storage root", self._config.storage_root
            ) from exc

    def _write_new(self, data: bytes, owner: str, extension: str) -> str:
        """Create a brand-new file holding *data* and return its filename."""
        for attempt in range(COLLISION_RETRIES + 1):
            filename = self._generate_filename(owner, extension)
            absolute = os.path.join(self._config.storage_root, filename)
            try:
                f = open(absolute, "xb")
            except FileExistsError:
                logger.warning("Filename collision on %s (attempt %d)", filename, attempt + 1)
                continue
            except OSError as exc:
                raise StorageUnavailable(f"cannot create {filename}", absolute) from exc

            try:
                with f:
                    f.write(data)
                    f.flush()
                    os.fsync(f.fileno())
            except OSError as exc:
                try:
                    os.remove(absolute)
                except OSError:
                    logger.warning("Could not clean up partial file %s", absolute)
                raise StorageUnavailable(f"failed writing {filename}", absolute) from exc
            return filename

        raise StorageUnavailable(
            f"repeated filename collision in {self._config.name} storage",
            self._config.storage_root,
        )

    def store(self, payload, owner_id, previous_public_path: Optional[str] = None) -> str:
        """Persist *payload* and return its public path.

        When *previous_public_path* is given and differs from the new path,
        the superseded file is removed on a best-effort basis.
        """
        decoded = self._decoder.decode(payload)
        self._ensure_dir()

        filename = self._write_new(decoded.data, self._owner_token(owner_id), decoded.extension)
        public_path = self._resolver.build_public_path(filename)
        logger.info(
            "Stored %s %s (%d bytes, %s)",
            self._config.name, filename, decoded.size, decoded.media_type,
        )

        if previous_public_path and previous_public_path != public_path:
            self._remover.discard(previous_public_path)
        return public_path


class LocalMediaStore:
    """Filesystem-backed media store for a single asset class."""

    def __init__(self, config: AssetClassConfig):
        self.config = config
        self.resolver = PathResolver(config)
        self.decoder = PayloadDecoder(config)
        self.remover = AssetRemover(self.resolver)
        self.writer = AssetWriter(config, self.resolver, self.decoder, self.remover)

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def directory(self) -> str:
        return self.config.storage_root

    def store(self, payload, owner_id, previous_public_path: Optional[str] = None) -> str:
        return self.writer.store(payload, owner_id, previous_public_path)

    def remove(self, public_path) -> bool:
        return self.remover.remove(public_path)

    def resolve(self, public_path) -> Optional[str]:
        return self.resolver.resolve(public_path)

    def public_path(self, filename: str) -> str:
        return self.resolver.build_public_path(filename)

    def filename_of(self, public_path) -> Optional[str]:
        return self.resolver.filename_of(public_path)
