from __future__ import annotations

from dataclasses import replace
from typing import Any, ClassVar

import numpy as np

from mvcamera.core.distortion import (
    BrownDistortion,
    Distortion,
    FisheyeDistortion,
    RadialK1Distortion,
    RadialK3Distortion,
)
from mvcamera.core.geometry import Pose3
from mvcamera.core.intrinsics import (
    UNKNOWN_FOCAL_LENGTH,
    CameraAttributes,
    CameraModel,
    EIntrinsic,
    as_points2,
    intrinsic_class,
    register_intrinsic,
)


@register_intrinsic
class Pinhole(CameraModel):
    """
    Pinhole intrinsics with a single focal length (pixels) and principal point.

    Parameters: [f, ppx, ppy].
    """

    TYPE: ClassVar[EIntrinsic | str] = EIntrinsic.PINHOLE_CAMERA

    def __init__(
        self,
        width: int = 0,
        height: int = 0,
        focal_length_pix: float = 0.0,
        ppx: float = 0.0,
        ppy: float = 0.0,
        serial_number: str = "",
        initial_focal_length_pix: float = UNKNOWN_FOCAL_LENGTH,
    ) -> None:
        super().__init__(width, height, serial_number, initial_focal_length_pix)
        self._f = float(focal_length_pix)
        self._pp = np.array([float(ppx), float(ppy)], dtype=np.float64)

    @property
    def focal_length_pix(self) -> float:
        return self._f

    @property
    def principal_point(self) -> np.ndarray:
        return self._pp.copy()

    def K(self) -> np.ndarray:
        return np.array(
            [[self._f, 0.0, self._pp[0]], [0.0, self._f, self._pp[1]], [0.0, 0.0, 1.0]],
            dtype=np.float64,
        )

    @classmethod
    def param_count(cls) -> int:
        return 3

    def get_params(self) -> list[float]:
        return [self._f, float(self._pp[0]), float(self._pp[1])]

    def _params_valid(self, params: list[float]) -> bool:
        return params[0] > 0.0

    def _apply_params(self, params: list[float]) -> None:
        self._f = params[0]
        self._pp = np.array(params[1:3], dtype=np.float64)

    def cam2ima(self, p: np.ndarray) -> np.ndarray:
        return self._f * as_points2(p) + self._pp

    def ima2cam(self, p: np.ndarray) -> np.ndarray:
        return (as_points2(p) - self._pp) / self._f

    def add_distortion(self, p: np.ndarray) -> np.ndarray:
        return as_points2(p).copy()

    def remove_distortion(self, p: np.ndarray) -> np.ndarray:
        return as_points2(p).copy()

    def __call__(self, p: np.ndarray) -> np.ndarray:
        x = self.remove_distortion(self.ima2cam(p))
        d = np.concatenate([x, np.ones_like(x[..., :1])], axis=-1)
        return d / np.linalg.norm(d, axis=-1, keepdims=True)

    def image_plane_to_camera_plane_error(self, value: float) -> float:
        return float(value) / self._f

    def get_projective_equivalent(self, pose: Pose3) -> np.ndarray:
        return self.K() @ pose.as_matrix()

    def to_variant_dict(self) -> dict[str, Any]:
        return {
            "pxFocalLength": self._f,
            "principalPoint": [float(self._pp[0]), float(self._pp[1])],
        }

    @classmethod
    def _distortion_params_from_dict(cls, data: dict[str, Any]) -> list[float]:
        return []

    @classmethod
    def from_variant_dict(cls, data: dict[str, Any], attributes: CameraAttributes) -> "Pinhole":
        pp = data["principalPoint"]
        if len(pp) != 2:
            raise ValueError("principalPoint must be [x, y]")
        params = [data["pxFocalLength"], pp[0], pp[1]] + cls._distortion_params_from_dict(data)
        model = cls()
        model.attributes = replace(attributes)
        if not model.update_from_params(params):
            raise ValueError(f"invalid parameters for {cls.__name__}")
        return model


class DistortedPinhole(Pinhole):
    """
    Pinhole intrinsics composed with a distortion field.

    Parameters: [f, ppx, ppy] followed by the distortion coefficients.
    """

    DISTORTION: ClassVar[type[Distortion]]

    def __init__(
        self,
        width: int = 0,
        height: int = 0,
        focal_length_pix: float = 0.0,
        ppx: float = 0.0,
        ppy: float = 0.0,
        distortion_params=None,
        serial_number: str = "",
        initial_focal_length_pix: float = UNKNOWN_FOCAL_LENGTH,
    ) -> None:
        super().__init__(width, height, focal_length_pix, ppx, ppy, serial_number, initial_focal_length_pix)
        if distortion_params is None:
            self.distortion = self.DISTORTION()
        else:
            self.distortion = self.DISTORTION.from_params(distortion_params)

    @classmethod
    def param_count(cls) -> int:
        return 3 + cls.DISTORTION.n_params

    def get_params(self) -> list[float]:
        return super().get_params() + self.distortion.params()

    def _apply_params(self, params: list[float]) -> None:
        distortion = self.DISTORTION.from_params(params[3:])
        super()._apply_params(params[:3])
        self.distortion = distortion

    def have_distortion(self) -> bool:
        return True

    def add_distortion(self, p: np.ndarray) -> np.ndarray:
        p = as_points2(p)
        xd, yd = self.distortion.distort(p[..., 0], p[..., 1])
        return np.stack([xd, yd], axis=-1)

    def remove_distortion(self, p: np.ndarray) -> np.ndarray:
        p = as_points2(p)
        x, y = self.distortion.undistort(p[..., 0], p[..., 1])
        return np.stack([x, y], axis=-1)

    def to_variant_dict(self) -> dict[str, Any]:
        d = super().to_variant_dict()
        d["distortionParams"] = self.distortion.params()
        return d

    @classmethod
    def _distortion_params_from_dict(cls, data: dict[str, Any]) -> list[float]:
        # Older files may predate the distortion block: keep the zero distortion.
        dist = data.get("distortionParams")
        if dist is None:
            return cls.DISTORTION().params()
        if len(dist) != cls.DISTORTION.n_params:
            raise ValueError(
                f"distortionParams for {cls.__name__} must have {cls.DISTORTION.n_params} values, got {len(dist)}"
            )
        return list(dist)


@register_intrinsic
class PinholeRadialK1(DistortedPinhole):
    """Parameters: [f, ppx, ppy, k1]."""

    TYPE = EIntrinsic.PINHOLE_CAMERA_RADIAL1
    DISTORTION = RadialK1Distortion


@register_intrinsic
class PinholeRadialK3(DistortedPinhole):
    """Parameters: [f, ppx, ppy, k1, k2, k3]."""

    TYPE = EIntrinsic.PINHOLE_CAMERA_RADIAL3
    DISTORTION = RadialK3Distortion


@register_intrinsic
class PinholeBrown(DistortedPinhole):
    """Parameters: [f, ppx, ppy, k1, k2, k3, t1, t2]."""

    TYPE = EIntrinsic.PINHOLE_CAMERA_BROWN
    DISTORTION = BrownDistortion


@register_intrinsic
class PinholeFisheye(DistortedPinhole):
    """Parameters: [f, ppx, ppy, k1, k2, k3, k4] (equidistant fisheye)."""

    TYPE = EIntrinsic.PINHOLE_CAMERA_FISHEYE
    DISTORTION = FisheyeDistortion


def create_intrinsic(
    intrinsic_type: EIntrinsic | str,
    width: int = 0,
    height: int = 0,
    focal_length_pix: float = 0.0,
    ppx: float = 0.0,
    ppy: float = 0.0,
) -> Pinhole:
    """Build a pinhole-family model with zero distortion."""
    cls = intrinsic_class(intrinsic_type)
    if not issubclass(cls, Pinhole):
        raise ValueError(f"{cls.__name__} is not a pinhole-family model")
    return cls(width=width, height=height, focal_length_pix=focal_length_pix, ppx=ppx, ppy=ppy)
