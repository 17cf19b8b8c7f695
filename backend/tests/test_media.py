import io
import pytest
from PIL import Image

from partysnap.services.errors import ProcessingError
from partysnap.services.media import compress_photo
from helpers import jpeg_bytes


def test_wide_photo_is_scaled_to_max_width():
    out = compress_photo(jpeg_bytes(2400, 1200), quality=80, max_width=1200)
    assert out.mime_type == "image/jpeg"
    assert (out.width, out.height) == (1200, 600)
    with Image.open(io.BytesIO(out.data)) as img:
        assert img.format == "JPEG" and img.size == (1200, 600)
    assert out.compressed_size == len(out.data)


def test_small_photo_keeps_its_size():
    out = compress_photo(jpeg_bytes(320, 200), max_width=1200)
    assert (out.width, out.height) == (320, 200)


def test_png_with_alpha_becomes_jpeg():
    buf = io.BytesIO()
    Image.new("RGBA", (50, 40), (0, 255, 0, 128)).save(buf, format="PNG")
    out = compress_photo(buf.getvalue())
    with Image.open(io.BytesIO(out.data)) as img:
        assert img.format == "JPEG" and img.mode == "RGB"


def test_exif_orientation_is_applied():
    exif = Image.Exif()
    exif[0x0112] = 6  # rotated 90 CW
    buf = io.BytesIO()
    Image.new("RGB", (200, 100), (10, 10, 10)).save(buf, format="JPEG", exif=exif)
    out = compress_photo(buf.getvalue())
    assert (out.width, out.height) == (100, 200)


@pytest.mark.parametrize("data", [b"", b"plain text, not pixels"])
def test_unreadable_input_is_refused(data):
    with pytest.raises(ProcessingError):
        compress_photo(data)


def test_oversized_upload_is_refused():
    with pytest.raises(ProcessingError):
        compress_photo(jpeg_bytes(), max_bytes=10)


def test_unsupported_format_is_refused():
    buf = io.BytesIO()
    Image.new("RGB", (10, 10)).save(buf, format="BMP")
    with pytest.raises(ProcessingError):
        compress_photo(buf.getvalue())
