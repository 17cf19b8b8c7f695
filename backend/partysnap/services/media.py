from __future__ import annotations
from dataclasses import dataclass
from PIL import Image, ImageOps, UnidentifiedImageError
import io

from partysnap.services.errors import ProcessingError


ALLOWED_FORMATS = {"JPEG", "PNG", "WEBP", "MPO"}

@dataclass
class ProcessedPhoto:
    data: bytes
    mime_type: str
    original_size: int
    compressed_size: int
    width: int
    height: int

def sniff_format(data: bytes) -> str | None:
    try:
        with Image.open(io.BytesIO(data)) as img:
            return img.format
    except Exception:
        return None

def compress_photo(data: bytes, *, quality: int = 80, max_width: int = 1200, max_bytes: int | None = None) -> ProcessedPhoto:
    """
    Normalize an uploaded photo to a JPEG no wider than `max_width`.
    EXIF orientation is applied before resizing so portrait shots stay upright.
    Raises ProcessingError for empty, oversized, unknown or corrupt input.
    """
    if not data:
        raise ProcessingError("Empty photo upload")
    if max_bytes is not None and len(data) > max_bytes:
        raise ProcessingError(f"Photo too large ({len(data)} bytes, max {max_bytes})")
    fmt = sniff_format(data)
    if fmt not in ALLOWED_FORMATS:
        raise ProcessingError("Unsupported image type")
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.verify()  # basic integrity
        with Image.open(io.BytesIO(data)) as img:
            img = ImageOps.exif_transpose(img)
            if img.mode != "RGB":
                img = img.convert("RGB")
            if img.width > max_width:
                height = max(1, round(img.height * max_width / img.width))
                img = img.resize((max_width, height), Image.Resampling.LANCZOS)
            out = io.BytesIO()
            img.save(out, format="JPEG", quality=max(1, min(95, quality)), optimize=True)
            compressed = out.getvalue()
            return ProcessedPhoto(
                data=compressed,
                mime_type="image/jpeg",
                original_size=len(data),
                compressed_size=len(compressed),
                width=img.width,
                height=img.height,
            )
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise ProcessingError(f"Invalid image file: {e}") from e
