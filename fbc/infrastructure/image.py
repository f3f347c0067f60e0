import logging
from pathlib import Path
from PIL import Image

class ImageResampler:
    """Resizes cover images in place to a fixed width, keeping aspect ratio."""

    def __init__(self, width: int):
        self.width = width
        self.logger = logging.getLogger(__name__)

    def resample(self, path: Path) -> None:
        """Rewrites path as a baseline JPEG of the configured width.

        Raises OSError (Pillow's UnidentifiedImageError included) when the
        file cannot be decoded or written.
        """
        with Image.open(path) as src:
            src.load()
            src_w, src_h = src.size
            if src_w <= 0 or src_h <= 0:
                raise OSError(f"Invalid image dimensions {src.size} in {path.name}")
            height = max(1, round(src_h * self.width / src_w))
            out = src.convert("RGB") if src.mode not in ("RGB", "L") else src.copy()

        if out.size != (self.width, height):
            out = out.resize((self.width, height), Image.LANCZOS)
        out.save(path, format="JPEG", quality=90)
        self.logger.debug(f"Resampled {path.name}: {src_w}x{src_h} -> {self.width}x{height}")
