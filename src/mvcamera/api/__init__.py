from mvcamera.api.colorize import colorize_features, sample_colors
from mvcamera.api.model_io import (
    CameraSchemaError,
    camera_from_dict,
    camera_to_dict,
    load_cameras,
    save_cameras,
)

__all__ = [
    "CameraSchemaError",
    "camera_from_dict",
    "camera_to_dict",
    "load_cameras",
    "save_cameras",
    "colorize_features",
    "sample_colors",
]
