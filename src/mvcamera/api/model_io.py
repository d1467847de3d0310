from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from mvcamera.core.intrinsics import (
    INTRINSIC_TYPES,
    UNKNOWN_FOCAL_LENGTH,
    CameraAttributes,
    CameraModel,
    intrinsic_tag,
)
from mvcamera.log import default_logger

# Importing the module registers the built-in pinhole-family models.
from mvcamera.core import pinhole as _pinhole  # noqa: F401

SCHEMA_VERSION = "mvcamera.cameras.v1"
# v0 files were written before serialNumber / initialFocalLengthPix existed.
SUPPORTED_SCHEMA_VERSIONS = ("mvcamera.cameras.v0", SCHEMA_VERSION)


class CameraSchemaError(ValueError):
    pass


def _require(cond: bool, msg: str) -> None:
    if not cond:
        raise CameraSchemaError(msg)


def attributes_to_dict(attrs: CameraAttributes) -> dict[str, Any]:
    return {
        "width": int(attrs.width),
        "height": int(attrs.height),
        "serialNumber": str(attrs.serial_number),
        "initialFocalLengthPix": float(attrs.initial_focal_length_pix),
    }


def attributes_from_dict(data: Mapping[str, Any]) -> CameraAttributes:
    """
    Read the shared camera fields.

    width/height are required; serialNumber and initialFocalLengthPix are
    optional so that files written by older versions still load.
    """
    w_raw = data.get("width")
    h_raw = data.get("height")
    _require(w_raw is not None and h_raw is not None, "width and height are required")
    try:
        w = int(w_raw)
        h = int(h_raw)
    except (TypeError, ValueError) as exc:
        raise CameraSchemaError("width and height must be integers") from exc
    _require(w >= 0 and h >= 0, "width and height must be >= 0")

    log = default_logger()
    if "serialNumber" in data:
        serial = str(data["serialNumber"])
    else:
        log.debug("camera record without serialNumber, using empty serial")
        serial = ""
    if "initialFocalLengthPix" in data:
        try:
            f0 = float(data["initialFocalLengthPix"])
        except (TypeError, ValueError) as exc:
            raise CameraSchemaError("initialFocalLengthPix must be a number") from exc
    else:
        log.debug("camera record without initialFocalLengthPix, using %s", UNKNOWN_FOCAL_LENGTH)
        f0 = UNKNOWN_FOCAL_LENGTH

    return CameraAttributes(width=w, height=h, serial_number=serial, initial_focal_length_pix=f0)


def camera_to_dict(model: CameraModel) -> dict[str, Any]:
    d: dict[str, Any] = {"type": intrinsic_tag(model.get_type())}
    d.update(attributes_to_dict(model.attributes))
    d.update(model.to_variant_dict())
    return d


def camera_from_dict(data: Mapping[str, Any]) -> CameraModel:
    _require(isinstance(data, Mapping), "camera record must be an object")
    tag = data.get("type")
    _require(tag is not None, "camera record is missing 'type'")
    cls = INTRINSIC_TYPES.get(str(tag))
    _require(cls is not None, f"unknown camera type {tag!r} (known: {', '.join(sorted(INTRINSIC_TYPES))})")

    attrs = attributes_from_dict(data)
    try:
        return cls.from_variant_dict(dict(data), attrs)
    except (KeyError, TypeError, ValueError) as exc:
        raise CameraSchemaError(f"invalid {tag} camera record: {exc}") from exc


def cameras_to_document(cameras: Mapping[int, CameraModel]) -> dict[str, Any]:
    intrinsics = []
    for intrinsic_id, model in cameras.items():
        rec = {"intrinsicId": int(intrinsic_id)}
        rec.update(camera_to_dict(model))
        intrinsics.append(rec)
    return {"schema_version": SCHEMA_VERSION, "intrinsics": intrinsics}


def cameras_from_document(data: Mapping[str, Any]) -> dict[int, CameraModel]:
    _require(isinstance(data, Mapping), "camera document must be an object")
    schema_version = data.get("schema_version")
    _require(
        schema_version in SUPPORTED_SCHEMA_VERSIONS,
        f"schema_version must be one of {', '.join(SUPPORTED_SCHEMA_VERSIONS)}",
    )
    records = data.get("intrinsics", [])
    _require(isinstance(records, list), "intrinsics must be a list")

    cameras: dict[int, CameraModel] = {}
    for rec in records:
        _require(isinstance(rec, Mapping) and "intrinsicId" in rec, "each intrinsic needs an intrinsicId")
        intrinsic_id = rec["intrinsicId"]
        _require(
            isinstance(intrinsic_id, int) and not isinstance(intrinsic_id, bool),
            f"intrinsicId must be an integer, got {intrinsic_id!r}",
        )
        _require(intrinsic_id not in cameras, f"duplicate intrinsicId {intrinsic_id}")
        cameras[intrinsic_id] = camera_from_dict(rec)
    return cameras


def save_cameras(path: Path, cameras: Mapping[int, CameraModel]) -> Path:
    """
    Save camera models keyed by intrinsic id into a JSON document.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    doc = cameras_to_document(cameras)
    path.write_text(json.dumps(doc, indent=2, sort_keys=True), encoding="utf-8")
    return path


def load_cameras(path: Path) -> dict[int, CameraModel]:
    path = Path(path)
    data = json.loads(path.read_text(encoding="utf-8"))
    return cameras_from_document(data)
