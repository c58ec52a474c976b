import os
import re
import logging
from typing import Optional

logger = logging.getLogger(__name__)

_REPEATED_SEP_RE = re.compile(r"/{2,}")


def normalize_prefix(raw) -> Optional[str]:
    """Normalize a configured public prefix to ``/a/b`` form.

    Returns None for empty input or a prefix that reduces to the bare root.
    """
    if raw is None:
        return None
    value = str(raw).strip()
    if not value:
        return None
    value = _REPEATED_SEP_RE.sub("/", value.replace("\\", "/"))
    value = value.strip("/")
    if not value:
        return None
    return f"/{value}"


def _is_plain_filename(name: str) -> bool:
    if not name or name in (".", ".."):
        return False
    if "/" in name or "\\" in name or "\x00" in name:
        return False
    try:
        os.fsencode(name)
    except UnicodeError:
        return False
    return True


class PathResolver:
    """Translate between public paths and files under one storage root.

    Every prefix in ``config.accepted_prefixes`` is honoured on the way in;
    only ``config.preferred_prefix`` is ever emitted.
    """

    def __init__(self, config):
        self._config = config

    @property
    def root(self) -> str:
        return self._config.storage_root

    def match_prefix(self, public_path) -> Optional[str]:
        if not isinstance(public_path, str) or not public_path:
            return None
        normalized = public_path.replace("\\", "/")
        matches = [
            prefix
            for prefix in self._config.accepted_prefixes
            if normalized == prefix or normalized.startswith(prefix + "/")
        ]
        if not matches:
            return None
        return max(matches, key=len)

    def resolve(self, public_path) -> Optional[str]:
        """Return the absolute file path for *public_path*, or None.

        None means "not an asset of this class": unknown prefix, anything
        other than a single filename after the prefix, or a location that
        ends up outside the storage root once symlinks are followed.
        """
        prefix = self.match_prefix(public_path)
        if prefix is None:
            return None
        relative = public_path.replace("\\", "/")[len(prefix):].lstrip("/")
        if not _is_plain_filename(relative):
            logger.debug("Rejected public path %r for %s", public_path, self._config.name)
            return None

        try:
            root = os.path.realpath(self.root)
            candidate = os.path.realpath(os.path.join(root, relative))
            inside = candidate != root and os.path.commonpath([root, candidate]) == root
        except (OSError, ValueError):
            logger.warning("Could not resolve public path %r for %s", public_path, self._config.name)
            return None
        if not inside:
            logger.warning("Public path %r escapes %s storage root", public_path, self._config.name)
            return None
        return candidate

    def build_public_path(self, filename: str) -> str:
        name = (filename or "").lstrip("/")
        if not _is_plain_filename(name):
            raise ValueError(f"not a plain filename: {filename!r}")
        return f"{self._config.preferred_prefix}/{name}"

    def filename_of(self, public_path) -> Optional[str]:
        absolute = self.resolve(public_path)
        if absolute is None:
            return None
        return os.path.basename(absolute)
