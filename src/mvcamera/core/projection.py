from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from mvcamera.core.geometry import Pose3

if TYPE_CHECKING:
    from mvcamera.core.intrinsics import CameraModel


def project(model: "CameraModel", pose: Pose3, X: np.ndarray, apply_distortion: bool = True) -> np.ndarray:
    """
    Project world point(s) X, shape (3,) or (N,3), to pixels.

    Points must lie in front of the camera (Z != 0 after the pose); this is
    not checked.
    """
    X_cam = pose(np.asarray(X, dtype=np.float64))
    x = X_cam[..., :2] / X_cam[..., 2:3]
    if apply_distortion and model.have_distortion():
        x = model.add_distortion(x)
    return model.cam2ima(x)


def residual(model: "CameraModel", pose: Pose3, X: np.ndarray, x: np.ndarray) -> np.ndarray:
    """Observed minus projected pixel."""
    return np.asarray(x, dtype=np.float64) - project(model, pose, X)


def residuals(model: "CameraModel", pose: Pose3, X: np.ndarray, x: np.ndarray) -> np.ndarray:
    """
    Residuals for N correspondences: X (N,3) world points, x (N,2) observations.
    Returns (N,2) observed minus projected.
    """
    X = np.asarray(X, dtype=np.float64)
    x = np.asarray(x, dtype=np.float64)
    if X.ndim != 2 or X.shape[1] != 3:
        raise ValueError(f"X must have shape (N,3), got {X.shape}")
    if x.ndim != 2 or x.shape[1] != 2:
        raise ValueError(f"x must have shape (N,2), got {x.shape}")
    if X.shape[0] != x.shape[0]:
        raise ValueError(f"point/observation count mismatch: {X.shape[0]} vs {x.shape[0]}")
    return x - project(model, pose, X)
