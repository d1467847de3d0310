from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from mvcamera.core.intrinsics import CameraModel

RAY_ANGLE_EPS = 1e-8


def _identity_rotation() -> np.ndarray:
    return np.eye(3, dtype=np.float64)


def _zero_center() -> np.ndarray:
    return np.zeros((3,), dtype=np.float64)


@dataclass(frozen=True, eq=False)
class Pose3:
    """
    Rigid world -> camera transform stored as (R, C).

    A world point X maps to camera coordinates X_c = R (X - C), so C is the
    camera center expressed in world coordinates.
    """

    rotation: np.ndarray = field(default_factory=_identity_rotation)  # (3,3)
    center: np.ndarray = field(default_factory=_zero_center)  # (3,)

    def __post_init__(self) -> None:
        object.__setattr__(self, "rotation", np.asarray(self.rotation, dtype=np.float64).reshape(3, 3))
        object.__setattr__(self, "center", np.asarray(self.center, dtype=np.float64).reshape(3))

    @classmethod
    def from_rt(cls, R: np.ndarray, t: np.ndarray) -> "Pose3":
        """Build from the usual X_c = R X + t convention."""
        R = np.asarray(R, dtype=np.float64).reshape(3, 3)
        t = np.asarray(t, dtype=np.float64).reshape(3)
        return cls(rotation=R, center=-R.T @ t)

    @classmethod
    def from_rotvec(cls, rvec: np.ndarray, center: np.ndarray | None = None) -> "Pose3":
        from scipy.spatial.transform import Rotation as Rot  # type: ignore

        Rm = Rot.from_rotvec(np.asarray(rvec, dtype=np.float64).reshape(3)).as_matrix()
        if center is None:
            center = np.zeros((3,), dtype=np.float64)
        return cls(rotation=Rm, center=center)

    @property
    def translation(self) -> np.ndarray:
        return -self.rotation @ self.center

    def __call__(self, X: np.ndarray) -> np.ndarray:
        """Apply the pose to (3,) or (N,3) world points."""
        X = np.asarray(X, dtype=np.float64)
        return (X - self.center) @ self.rotation.T

    def inverse(self) -> "Pose3":
        R_inv = self.rotation.T
        return Pose3(rotation=R_inv, center=-self.rotation @ self.center)

    def compose(self, other: "Pose3") -> "Pose3":
        """Return self * other (apply `other` first)."""
        return Pose3(
            rotation=self.rotation @ other.rotation,
            center=other.center + other.rotation.T @ self.center,
        )

    def as_matrix(self) -> np.ndarray:
        """3x4 [R | t]."""
        return np.concatenate([self.rotation, self.translation.reshape(3, 1)], axis=1)


def angle_between_rays(ray1: np.ndarray, ray2: np.ndarray) -> float:
    """
    Angle in degrees between two 3D direction vectors.

    The cosine is clamped to [-1 + eps, 1 - eps] so rounding never pushes
    arccos outside its domain; parallel rays therefore report a tiny
    positive angle (~8e-3 deg) rather than exactly 0.
    """
    ray1 = np.asarray(ray1, dtype=np.float64).reshape(3)
    ray2 = np.asarray(ray2, dtype=np.float64).reshape(3)
    mag = float(np.linalg.norm(ray1) * np.linalg.norm(ray2))
    cos_angle = float(np.dot(ray1, ray2)) / mag
    cos_angle = float(np.clip(cos_angle, -1.0 + RAY_ANGLE_EPS, 1.0 - RAY_ANGLE_EPS))
    return float(np.degrees(np.arccos(cos_angle)))


def angle_between_observations(
    pose1: Pose3,
    intrinsic1: "CameraModel",
    pose2: Pose3,
    intrinsic2: "CameraModel",
    x1: np.ndarray,
    x2: np.ndarray,
) -> float:
    """
    Angle (degrees) between the world-frame rays of two pixel observations.

    ray = R^T * bearing(x), i.e. the viewing direction without the camera center.
    """
    ray1 = pose1.rotation.T @ intrinsic1(x1)
    ray2 = pose2.rotation.T @ intrinsic2(x2)
    ray1 = ray1 / np.linalg.norm(ray1)
    ray2 = ray2 / np.linalg.norm(ray2)
    return angle_between_rays(ray1, ray2)


def angle_between_poses(pose1: Pose3, pose2: Pose3, X: np.ndarray) -> float:
    """Angle (degrees) subtended at a 3D point by two camera centers."""
    X = np.asarray(X, dtype=np.float64).reshape(3)
    return angle_between_rays(X - pose1.center, X - pose2.center)
