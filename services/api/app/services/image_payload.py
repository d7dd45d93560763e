from __future__ import annotations

import base64
import binascii
from io import BytesIO

from PIL import Image, UnidentifiedImageError

from app.core.errors import InputError


def decode_image_payload(image: str | None) -> bytes:
    """Decode a `data:image/...;base64,` URI (or bare base64) into verified image bytes."""
    if image is None or not image.strip():
        raise InputError("No image provided")

    raw = image.strip()
    if raw.startswith("data:"):
        header, sep, raw = raw.partition(",")
        if not sep or ";base64" not in header:
            raise InputError("Invalid image payload")

    try:
        payload = base64.b64decode(raw, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InputError("Invalid image payload") from exc
    if not payload:
        raise InputError("Invalid image payload")

    try:
        with Image.open(BytesIO(payload)) as img:
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        raise InputError("Invalid image payload") from exc
    return payload


def to_jpeg_data_url(image_bytes: bytes) -> str:
    try:
        img = Image.open(BytesIO(image_bytes)).convert("RGB")
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        raise InputError("Invalid image payload") from exc
    buf = BytesIO()
    img.save(buf, format="JPEG", quality=90)
    return "data:image/jpeg;base64," + base64.b64encode(buf.getvalue()).decode("utf-8")
