class MediaStoreError(Exception):
    """Base class for every failure raised by the media store."""


class InvalidPayload(MediaStoreError):
    """The inline image is malformed or declares an unsupported media type."""

    def __init__(self, reason: str):
        super().__init__(f"invalid image payload: {reason}")
        self.reason = reason


class PayloadTooLarge(MediaStoreError):
    """The decoded image exceeds the asset class's byte limit."""

    def __init__(self, limit: int, size: int):
        super().__init__(f"image is {size} bytes, limit is {limit}")
        self.limit = limit
        self.size = size


class StorageUnavailable(MediaStoreError):
    """The filesystem refused a write or delete."""

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.path = path
