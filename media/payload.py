import base64
import binascii
import re
from dataclasses import dataclass

from media.exceptions import InvalidPayload, PayloadTooLarge

_DATA_URL_RE = re.compile(
    r"^data:(?P<media_type>[^;,\s]+);base64,(?P<data>[A-Za-z0-9+/]*={0,2})",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class DecodedPayload:
    data: bytes
    media_type: str
    extension: str

    @property
    def size(self) -> int:
        return len(self.data)


class PayloadDecoder:
    """Decode ``data:<type>;base64,<text>`` images for one asset class."""

    def __init__(self, config):
        self._config = config

    def decode(self, payload) -> DecodedPayload:
        if not isinstance(payload, str):
            raise InvalidPayload("not_a_string")
        match = _DATA_URL_RE.fullmatch(payload)
        if not match:
            raise InvalidPayload("malformed")

        media_type = match.group("media_type").lower()
        extension = self._config.media_types.get(media_type)
        if extension is None:
            raise InvalidPayload("unsupported_media_type")

        try:
            data = base64.b64decode(match.group("data"), validate=True)
        except (binascii.Error, ValueError):
            raise InvalidPayload("invalid_base64")
        if not data:
            raise InvalidPayload("empty")

        # Size is only known after decoding; the transport caps the input.
        if len(data) > self._config.max_bytes:
            raise PayloadTooLarge(self._config.max_bytes, len(data))

        return DecodedPayload(data=data, media_type=media_type, extension=extension)
