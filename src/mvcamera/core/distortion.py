from __future__ import annotations

from dataclasses import astuple, dataclass
from typing import ClassVar

import numpy as np

UNDISTORT_MAX_ITERATIONS = 20
UNDISTORT_TOL = 1e-12


class Distortion:
    """
    Distortion field on normalized camera coordinates (x=X/Z, y=Y/Z).

    Subclasses are frozen dataclasses whose field order is the flattened
    parameter order used for optimization and hashing.
    """

    n_params: ClassVar[int] = 0

    def params(self) -> list[float]:
        return [float(v) for v in astuple(self)]

    @classmethod
    def from_params(cls, params) -> "Distortion":
        values = [float(v) for v in params]
        if len(values) != cls.n_params:
            raise ValueError(f"{cls.__name__} expects {cls.n_params} parameters, got {len(values)}")
        return cls(*values)

    def distort(self, x: np.ndarray, y: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        raise NotImplementedError

    def undistort(
        self,
        xd: np.ndarray,
        yd: np.ndarray,
        iterations: int = UNDISTORT_MAX_ITERATIONS,
    ) -> tuple[np.ndarray, np.ndarray]:
        """
        Iterative inverse of distort() for small/moderate distortion.
        """
        xd = np.asarray(xd, dtype=np.float64)
        yd = np.asarray(yd, dtype=np.float64)
        x = xd.copy()
        y = yd.copy()
        for _ in range(int(iterations)):
            x_est, y_est = self.distort(x, y)
            dx = xd - x_est
            dy = yd - y_est
            x += dx
            y += dy
            if np.max(np.abs(dx), initial=0.0) < UNDISTORT_TOL and np.max(np.abs(dy), initial=0.0) < UNDISTORT_TOL:
                break
        return x, y


@dataclass(frozen=True)
class RadialK1Distortion(Distortion):
    """Single-coefficient radial distortion: x_d = x (1 + k1 r^2)."""

    n_params: ClassVar[int] = 1

    k1: float = 0.0

    def distort(self, x: np.ndarray, y: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)
        radial = 1.0 + self.k1 * (x * x + y * y)
        return x * radial, y * radial


@dataclass(frozen=True)
class RadialK3Distortion(Distortion):
    """Three-coefficient radial distortion: x_d = x (1 + k1 r^2 + k2 r^4 + k3 r^6)."""

    n_params: ClassVar[int] = 3

    k1: float = 0.0
    k2: float = 0.0
    k3: float = 0.0

    def distort(self, x: np.ndarray, y: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)
        r2 = x * x + y * y
        radial = 1.0 + r2 * (self.k1 + r2 * (self.k2 + r2 * self.k3))
        return x * radial, y * radial


@dataclass(frozen=True)
class BrownDistortion(Distortion):
    """
    Brown-Conrady distortion: radial k1, k2, k3 followed by tangential t1, t2.

    The tangential terms follow the OpenCV (p1, p2) convention.
    """

    n_params: ClassVar[int] = 5

    k1: float = 0.0
    k2: float = 0.0
    k3: float = 0.0
    t1: float = 0.0
    t2: float = 0.0

    def distort(self, x: np.ndarray, y: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)
        r2 = x * x + y * y
        r4 = r2 * r2
        r6 = r4 * r2
        radial = 1.0 + self.k1 * r2 + self.k2 * r4 + self.k3 * r6
        xy = x * y
        x_tan = 2.0 * self.t1 * xy + self.t2 * (r2 + 2.0 * x * x)
        y_tan = self.t1 * (r2 + 2.0 * y * y) + 2.0 * self.t2 * xy
        return x * radial + x_tan, y * radial + y_tan


@dataclass(frozen=True)
class FisheyeDistortion(Distortion):
    """
    Equidistant fisheye (Kannala-Brandt) distortion on the incidence angle:

      theta = atan(r),  theta_d = theta (1 + k1 theta^2 + k2 theta^4 + k3 theta^6 + k4 theta^8)

    Only valid for points in front of the camera (theta < pi/2).
    """

    n_params: ClassVar[int] = 4

    k1: float = 0.0
    k2: float = 0.0
    k3: float = 0.0
    k4: float = 0.0

    def _theta_d(self, theta: np.ndarray) -> np.ndarray:
        t2 = theta * theta
        return theta * (1.0 + t2 * (self.k1 + t2 * (self.k2 + t2 * (self.k3 + t2 * self.k4))))

    def _dtheta_d(self, theta: np.ndarray) -> np.ndarray:
        t2 = theta * theta
        return 1.0 + t2 * (3.0 * self.k1 + t2 * (5.0 * self.k2 + t2 * (7.0 * self.k3 + t2 * 9.0 * self.k4)))

    def distort(self, x: np.ndarray, y: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)
        r = np.hypot(x, y)
        theta = np.arctan(r)
        safe_r = np.where(r > 1e-8, r, 1.0)
        scale = np.where(r > 1e-8, self._theta_d(theta) / safe_r, 1.0)
        return x * scale, y * scale

    def undistort(
        self,
        xd: np.ndarray,
        yd: np.ndarray,
        iterations: int = UNDISTORT_MAX_ITERATIONS,
    ) -> tuple[np.ndarray, np.ndarray]:
        """Newton inversion of theta_d(theta), then back to the normalized plane."""
        xd = np.asarray(xd, dtype=np.float64)
        yd = np.asarray(yd, dtype=np.float64)
        theta_d = np.hypot(xd, yd)
        theta = theta_d.copy()
        for _ in range(int(iterations)):
            step = (self._theta_d(theta) - theta_d) / self._dtheta_d(theta)
            theta = theta - step
            if np.max(np.abs(step), initial=0.0) < UNDISTORT_TOL:
                break
        safe_theta_d = np.where(theta_d > 1e-8, theta_d, 1.0)
        scale = np.where(theta_d > 1e-8, np.tan(theta) / safe_theta_d, 1.0)
        return xd * scale, yd * scale
