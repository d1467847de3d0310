from __future__ import annotations

import hashlib
import struct
from collections.abc import Hashable, Mapping
from typing import TYPE_CHECKING

from mvcamera.core.intrinsics import intrinsic_tag

if TYPE_CHECKING:
    from mvcamera.core.intrinsics import CameraModel


def _update_str(h: "hashlib._Hash", s: str) -> None:
    b = s.encode("utf-8")
    h.update(struct.pack("<Q", len(b)))
    h.update(b)


def hash_value(model: "CameraModel") -> int:
    """
    Deterministic 64-bit fingerprint of a camera model.

    Combined in order: type tag, width, height, serial number, then every
    flattened parameter. Equal models hash equal; the value is stable across
    processes (unlike the built-in str hash).
    """
    h = hashlib.blake2b(digest_size=8)
    _update_str(h, intrinsic_tag(model.get_type()))
    h.update(struct.pack("<QQ", int(model.width), int(model.height)))
    _update_str(h, model.serial_number)
    for v in model.get_params():
        # +0.0 folds -0.0 onto 0.0 so that equal values share one encoding.
        h.update(struct.pack("<d", float(v) + 0.0))
    return int.from_bytes(h.digest(), "little")


def group_by_intrinsics(models: Mapping[Hashable, "CameraModel"]) -> dict[int, list[Hashable]]:
    """
    Group keys whose camera models share the same fingerprint.

    Groups and their members keep the iteration order of `models`.
    """
    groups: dict[int, list[Hashable]] = {}
    for key, model in models.items():
        groups.setdefault(hash_value(model), []).append(key)
    return groups
