from __future__ import annotations

import copy
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, ClassVar

import numpy as np

from mvcamera.core import projection
from mvcamera.core.geometry import Pose3
from mvcamera.log import default_logger

UNKNOWN_FOCAL_LENGTH = -1.0


class EIntrinsic(str, Enum):
    """Built-in camera model tags. Custom models may use any other string."""

    PINHOLE_CAMERA = "pinhole"
    PINHOLE_CAMERA_RADIAL1 = "radial1"
    PINHOLE_CAMERA_RADIAL3 = "radial3"
    PINHOLE_CAMERA_BROWN = "brown"
    PINHOLE_CAMERA_FISHEYE = "fisheye4"


def intrinsic_tag(tag: EIntrinsic | str) -> str:
    return str(tag.value) if isinstance(tag, Enum) else str(tag)


class IntrinsicTypeError(TypeError):
    pass


@dataclass
class CameraAttributes:
    """Shared, model-independent camera fields."""

    width: int = 0
    height: int = 0
    serial_number: str = ""
    initial_focal_length_pix: float = UNKNOWN_FOCAL_LENGTH

    def __post_init__(self) -> None:
        self.width = image_size("width", self.width)
        self.height = image_size("height", self.height)


def image_size(name: str, value: int) -> int:
    """Image dimensions are non-negative; 0 marks an uninitialized camera."""
    value = int(value)
    if value < 0:
        raise ValueError(f"{name} must be >= 0, got {value}")
    return value


INTRINSIC_TYPES: dict[str, type["CameraModel"]] = {}


def register_intrinsic(cls: type["CameraModel"]) -> type["CameraModel"]:
    """Class decorator adding a model to the tag -> class dispatch table."""
    tag = intrinsic_tag(cls.TYPE)
    existing = INTRINSIC_TYPES.get(tag)
    if existing is not None and existing is not cls:
        raise ValueError(f"intrinsic type {tag!r} already registered by {existing.__name__}")
    INTRINSIC_TYPES[tag] = cls
    return cls


def intrinsic_class(tag: EIntrinsic | str) -> type["CameraModel"]:
    key = intrinsic_tag(tag)
    try:
        return INTRINSIC_TYPES[key]
    except KeyError:
        raise ValueError(f"unknown intrinsic type {key!r}") from None


def as_points2(p: np.ndarray) -> np.ndarray:
    p = np.asarray(p, dtype=np.float64)
    if p.shape[-1] != 2:
        raise ValueError(f"expected 2D points with shape (2,) or (N,2), got {p.shape}")
    return p


class CameraModel(ABC):
    """
    Base class of every intrinsic camera model.

    Holds the image size and sensor identity (`attributes`) and defines the
    optical interface: pixel <-> normalized camera plane, distortion, bearing
    vectors and the flat parameter view used by optimizers.

    Point arguments are (2,) or (N,2) arrays; results keep the leading shape.
    Parameters change only through `update_from_params` or `assign`.
    """

    TYPE: ClassVar[EIntrinsic | str]

    def __init__(
        self,
        width: int = 0,
        height: int = 0,
        serial_number: str = "",
        initial_focal_length_pix: float = UNKNOWN_FOCAL_LENGTH,
    ) -> None:
        self.attributes = CameraAttributes(
            width=int(width),
            height=int(height),
            serial_number=str(serial_number),
            initial_focal_length_pix=float(initial_focal_length_pix),
        )

    # --
    # Shared attributes
    # --

    @property
    def width(self) -> int:
        return self.attributes.width

    @width.setter
    def width(self, value: int) -> None:
        self.attributes.width = image_size("width", value)

    @property
    def height(self) -> int:
        return self.attributes.height

    @height.setter
    def height(self, value: int) -> None:
        self.attributes.height = image_size("height", value)

    @property
    def serial_number(self) -> str:
        return self.attributes.serial_number

    @serial_number.setter
    def serial_number(self, value: str) -> None:
        self.attributes.serial_number = str(value)

    @property
    def initial_focal_length_pix(self) -> float:
        return self.attributes.initial_focal_length_pix

    @initial_focal_length_pix.setter
    def initial_focal_length_pix(self, value: float) -> None:
        self.attributes.initial_focal_length_pix = float(value)

    def is_valid(self) -> bool:
        return self.width != 0 and self.height != 0

    def get_type(self) -> EIntrinsic | str:
        return self.TYPE

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CameraModel):
            return NotImplemented
        return (
            self.width == other.width
            and self.height == other.height
            and self.serial_number == other.serial_number
            and intrinsic_tag(self.get_type()) == intrinsic_tag(other.get_type())
            and self.get_params() == other.get_params()
        )

    __hash__ = None  # type: ignore[assignment]  # mutable; use hash_value() for grouping

    def __repr__(self) -> str:
        params = ", ".join(f"{v:.6g}" for v in self.get_params())
        return f"{type(self).__name__}({self.width}x{self.height}, serial={self.serial_number!r}, params=[{params}])"

    # --
    # Copy semantics
    # --

    def clone(self) -> "CameraModel":
        return copy.deepcopy(self)

    def assign(self, other: "CameraModel") -> None:
        """Copy the full state of `other` into self; both must be the same concrete type."""
        if type(other) is not type(self):
            raise IntrinsicTypeError(f"cannot assign {type(other).__name__} to {type(self).__name__}")
        state = copy.deepcopy(other.__dict__)
        self.__dict__.clear()
        self.__dict__.update(state)

    # --
    # Flat parameter view
    # --

    @classmethod
    @abstractmethod
    def param_count(cls) -> int:
        """Length of the flattened parameter vector."""

    @abstractmethod
    def get_params(self) -> list[float]:
        """Current parameters, in the fixed order of the model."""

    def _params_valid(self, params: list[float]) -> bool:
        """Variant-specific consistency check run before `_apply_params`."""
        return True

    @abstractmethod
    def _apply_params(self, params: list[float]) -> None:
        """Replace the model state from an already validated parameter list."""

    def update_from_params(self, params) -> bool:
        """
        Replace the model parameters from a flat sequence.

        Returns False, leaving the model untouched, if the sequence has the
        wrong length, contains non-finite / non-numeric values or describes an
        inconsistent model (see `_params_valid`).
        """
        try:
            values = [float(v) for v in params]
        except (TypeError, ValueError):
            default_logger().debug("%s: rejected non-numeric parameter vector", type(self).__name__)
            return False
        if len(values) != self.param_count():
            default_logger().debug(
                "%s: expected %d parameters, got %d", type(self).__name__, self.param_count(), len(values)
            )
            return False
        if not all(math.isfinite(v) for v in values):
            default_logger().debug("%s: rejected non-finite parameter vector", type(self).__name__)
            return False
        if not self._params_valid(values):
            default_logger().debug("%s: rejected inconsistent parameter vector", type(self).__name__)
            return False
        self._apply_params(values)
        return True

    # --
    # Optical interface
    # --

    @abstractmethod
    def __call__(self, p: np.ndarray) -> np.ndarray:
        """Unit bearing vector(s) in camera frame for image point(s) p."""

    @abstractmethod
    def cam2ima(self, p: np.ndarray) -> np.ndarray:
        """Normalized camera plane -> image plane (pixels)."""

    @abstractmethod
    def ima2cam(self, p: np.ndarray) -> np.ndarray:
        """Image plane (pixels) -> normalized camera plane."""

    def have_distortion(self) -> bool:
        return False

    @abstractmethod
    def add_distortion(self, p: np.ndarray) -> np.ndarray:
        """Apply the distortion field to normalized camera point(s)."""

    @abstractmethod
    def remove_distortion(self, p: np.ndarray) -> np.ndarray:
        """Remove the distortion from normalized camera point(s)."""

    def get_undistorted_pixel(self, p: np.ndarray) -> np.ndarray:
        return self.cam2ima(self.remove_distortion(self.ima2cam(p)))

    def get_distorted_pixel(self, p: np.ndarray) -> np.ndarray:
        return self.cam2ima(self.add_distortion(self.ima2cam(p)))

    @abstractmethod
    def image_plane_to_camera_plane_error(self, value: float) -> float:
        """Convert a pixel error magnitude into normalized camera plane units."""

    @abstractmethod
    def get_projective_equivalent(self, pose: Pose3) -> np.ndarray:
        """3x4 projective matrix ignoring the non-linear distortion."""

    # --
    # Persistence of variant-specific fields
    # --

    def to_variant_dict(self) -> dict[str, Any]:
        return {"params": self.get_params()}

    @classmethod
    def from_variant_dict(cls, data: dict[str, Any], attributes: CameraAttributes) -> "CameraModel":
        model = cls()
        model.attributes = replace(attributes)
        if not model.update_from_params(data["params"]):
            raise ValueError(f"invalid params for {cls.__name__}")
        return model

    # --
    # Projection helpers
    # --

    def project(self, pose: Pose3, X: np.ndarray, apply_distortion: bool = True) -> np.ndarray:
        return projection.project(self, pose, X, apply_distortion=apply_distortion)

    def residual(self, pose: Pose3, X: np.ndarray, x: np.ndarray) -> np.ndarray:
        return projection.residual(self, pose, X, x)

    def residuals(self, pose: Pose3, X: np.ndarray, x: np.ndarray) -> np.ndarray:
        return projection.residuals(self, pose, X, x)

    def hash_value(self) -> int:
        from mvcamera.core.hashing import hash_value

        return hash_value(self)
