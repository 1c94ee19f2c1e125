import io
import logging
from pathlib import Path
from PIL import Image
from wbc.domain.errors import DecodeError, EncodeError, UnsupportedFormatError

# Format hint (lower-cased extension) -> Pillow decoder name
PIL_FORMATS = {
    "jpg": "JPEG",
    "jpeg": "JPEG",
    "png": "PNG",
    "gif": "GIF",
}

class PillowCodec:
    """Decodes JPEG/PNG/GIF bytes and encodes WebP bytes with Pillow."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def format_hint(self, path: Path) -> str:
        hint = Path(path).suffix.lower().lstrip(".")
        if hint not in PIL_FORMATS:
            raise UnsupportedFormatError(f"Unsupported image format: .{hint}", path=Path(path))
        return hint

    def decode(self, data: bytes, format_hint: str) -> Image.Image:
        """Decodes image bytes; GIFs yield their first frame."""
        pil_format = PIL_FORMATS.get(format_hint.lower())
        if pil_format is None:
            raise UnsupportedFormatError(f"Unsupported image format: .{format_hint}")
        try:
            with Image.open(io.BytesIO(data), formats=[pil_format]) as img:
                img.seek(0)
                img.load()
                return self._normalize_mode(img)
        except (OSError, ValueError, SyntaxError, EOFError, Image.DecompressionBombError) as exc:
            raise DecodeError(f"Failed to decode {pil_format} image: {exc}") from exc

    def encode(self, image: Image.Image, quality: int, lossless: bool) -> bytes:
        buffer = io.BytesIO()
        try:
            image.save(buffer, format="WEBP", quality=quality, lossless=lossless)
        except (OSError, ValueError, KeyError) as exc:
            raise EncodeError(f"Failed to encode WebP: {exc}") from exc
        return buffer.getvalue()

    def _normalize_mode(self, img: Image.Image) -> Image.Image:
        """Converts to RGB or RGBA, the modes the WebP encoder accepts."""
        has_alpha = img.mode in ("RGBA", "LA", "PA") or "transparency" in img.info
        target = "RGBA" if has_alpha else "RGB"
        if img.mode == target:
            return img.copy()
        return img.convert(target)
