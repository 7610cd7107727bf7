"""Image reference normalization.

Artwork images arrive either as remote URLs (catalog, CDN) or as inline
``data:image/...;base64,`` URIs uploaded by artists. Both are reduced to a
uniform ``ImageRef`` with a regular and a small (thumbnail) variant.
"""

import base64
import binascii
import re
from dataclasses import dataclass
from typing import Any

DATA_URI_RE = re.compile(r"^data:image/(png|jpe?g|gif|webp);base64,(?P<payload>[A-Za-z0-9+/=\s]+)$")


@dataclass(frozen=True)
class ImageRef:
    """Regular and thumbnail image references (URLs or data URIs)."""

    regular: str = ""
    small: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.regular

    def to_dict(self) -> dict:
        return {"regular": self.regular, "small": self.small}


def data_uri_size(value: str) -> int:
    """Decoded byte size of a base64 data URI (0 if not a valid one)."""
    match = DATA_URI_RE.match(value)
    if not match:
        return 0
    payload = re.sub(r"\s", "", match.group("payload"))
    try:
        return len(base64.b64decode(payload, validate=True))
    except (binascii.Error, ValueError):
        return 0


def _clean_single(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    value = value.strip()
    if not value:
        return ""
    if value.startswith("data:"):
        return value if data_uri_size(value) > 0 else ""
    if value.startswith(("http://", "https://", "/")):
        return value
    return ""


def normalize_image_ref(value: Any) -> ImageRef:
    """
    Normalize the shapes an image reference comes in.

    Accepts a URL/data URI string, a catalog ``urls`` mapping
    (``regular``/``small``/``full``/``thumb``), an existing ImageRef, or None.
    Invalid references normalize to an empty ImageRef.
    """
    if isinstance(value, ImageRef):
        return value

    if isinstance(value, dict):
        regular = (
            _clean_single(value.get("regular"))
            or _clean_single(value.get("full"))
            or _clean_single(value.get("raw"))
            or _clean_single(value.get("small"))
        )
        small = _clean_single(value.get("small")) or _clean_single(value.get("thumb")) or regular
        return ImageRef(regular=regular, small=small)

    single = _clean_single(value)
    return ImageRef(regular=single, small=single)
