from __future__ import annotations

from pathlib import Path
from typing import Sequence

import numpy as np

from mvcamera.core.image_io import load_rgb_u8
from mvcamera.feature.point_feature import Feature, features_to_matrix


def sample_colors(image: np.ndarray, pixels: np.ndarray) -> np.ndarray:
    """
    Nearest-pixel RGB colors at (N,2) pixel positions (u right, v down).

    Positions are rounded and clamped to the image so border observations
    still get a color.
    """
    image = np.asarray(image)
    if image.ndim == 2:
        image = np.repeat(image[..., None], 3, axis=-1)
    if image.ndim != 3 or image.shape[-1] < 3:
        raise ValueError(f"image must have shape (H,W) or (H,W,3), got {image.shape}")
    pixels = np.asarray(pixels, dtype=np.float64).reshape(-1, 2)
    h, w = image.shape[:2]
    u = np.clip(np.rint(pixels[:, 0]), 0, w - 1).astype(np.intp)
    v = np.clip(np.rint(pixels[:, 1]), 0, h - 1).astype(np.intp)
    return np.asarray(image[v, u, :3], dtype=np.uint8)


def colorize_features(image_path: str | Path, features: Sequence[Feature]) -> np.ndarray:
    """(N,3) uint8 colors of the given features in an image file."""
    img = load_rgb_u8(image_path)
    return sample_colors(img, features_to_matrix(features))
