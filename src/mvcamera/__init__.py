from mvcamera.api import CameraSchemaError, camera_from_dict, camera_to_dict, load_cameras, save_cameras
from mvcamera.core.geometry import Pose3, angle_between_observations, angle_between_poses, angle_between_rays
from mvcamera.core.hashing import group_by_intrinsics, hash_value
from mvcamera.core.intrinsics import (
    CameraAttributes,
    CameraModel,
    EIntrinsic,
    IntrinsicTypeError,
    register_intrinsic,
)
from mvcamera.core.pinhole import (
    Pinhole,
    PinholeBrown,
    PinholeFisheye,
    PinholeRadialK1,
    PinholeRadialK3,
    create_intrinsic,
)
from mvcamera.core.projection import project, residual, residuals

__all__ = [
    "CameraAttributes",
    "CameraModel",
    "CameraSchemaError",
    "EIntrinsic",
    "IntrinsicTypeError",
    "Pinhole",
    "PinholeBrown",
    "PinholeFisheye",
    "PinholeRadialK1",
    "PinholeRadialK3",
    "Pose3",
    "angle_between_observations",
    "angle_between_poses",
    "angle_between_rays",
    "camera_from_dict",
    "camera_to_dict",
    "create_intrinsic",
    "group_by_intrinsics",
    "hash_value",
    "load_cameras",
    "project",
    "register_intrinsic",
    "residual",
    "residuals",
    "save_cameras",
]
