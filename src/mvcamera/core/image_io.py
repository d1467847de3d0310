from __future__ import annotations

from pathlib import Path

import numpy as np
from PIL import Image


def load_rgb_u8(path: str | Path) -> np.ndarray:
    """
    Load an image as an (H,W,3) uint8 RGB array.

    Grayscale, palette and RGBA inputs are converted to RGB by Pillow.
    """
    p = Path(path)
    with Image.open(p) as im:
        im = im.convert("RGB")
        arr = np.asarray(im, dtype=np.uint8)
    return arr
