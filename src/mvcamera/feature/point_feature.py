"""
Plain-text feature files: one feature per line, fields separated by a single space.

  point: "x y"
  sio:   "x y scale orientation"   (scale in pixels, orientation in radians)

A file holds a single feature kind chosen by the caller; there is no marker
in the file, so a line with the wrong number of fields is reported as corrupt.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Sequence, Union

import numpy as np

FeatureKind = Literal["point", "sio"]


class FeatureFileError(Exception):
    pass


class FeatureFileAccessError(FeatureFileError, OSError):
    """The feature file could not be opened (read or write)."""


class FeatureFileCorruptError(FeatureFileError, ValueError):
    """The feature file was opened but its content is not a valid feature list."""


@dataclass
class PointFeature:
    x: float = 0.0
    y: float = 0.0

    @property
    def coords(self) -> np.ndarray:
        return np.array([self.x, self.y], dtype=np.float64)


@dataclass
class SIOPointFeature(PointFeature):
    """Scale-invariant oriented point feature."""

    scale: float = 0.0
    orientation: float = 0.0

    def orientation_vector(self) -> np.ndarray:
        return np.array([math.cos(self.orientation), math.sin(self.orientation)], dtype=np.float64)

    def scaled_orientation_vector(self) -> np.ndarray:
        return self.scale * self.orientation_vector()


Feature = Union[PointFeature, SIOPointFeature]


def _fmt(v: float) -> str:
    s = repr(float(v))
    return s[:-2] if s.endswith(".0") else s


def _parse_fields(line: str, n: int) -> list[float]:
    tokens = line.split()
    if len(tokens) != n:
        raise ValueError(f"expected {n} fields, got {len(tokens)}")
    return [float(t) for t in tokens]


def encode_point_feature(f: PointFeature) -> str:
    return f"{_fmt(f.x)} {_fmt(f.y)}"


def decode_point_feature(line: str) -> PointFeature:
    x, y = _parse_fields(line, 2)
    return PointFeature(x, y)


def encode_sio_feature(f: SIOPointFeature) -> str:
    return f"{_fmt(f.x)} {_fmt(f.y)} {_fmt(f.scale)} {_fmt(f.orientation)}"


def decode_sio_feature(line: str) -> SIOPointFeature:
    x, y, scale, orientation = _parse_fields(line, 4)
    return SIOPointFeature(x, y, scale, orientation)


_DECODERS = {"point": decode_point_feature, "sio": decode_sio_feature}


def load_features(path: str | Path, kind: FeatureKind = "point") -> list[Feature]:
    """
    Read a feature file written with a single feature kind.

    Raises FeatureFileAccessError if the file cannot be opened and
    FeatureFileCorruptError if a non-empty line is not a valid `kind` record.
    """
    if kind not in _DECODERS:
        raise ValueError(f"unknown feature kind {kind!r}")
    decode = _DECODERS[kind]
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as exc:
        raise FeatureFileAccessError(f"can't load features file, can't open '{p}'") from exc
    except UnicodeDecodeError as exc:
        raise FeatureFileCorruptError(f"can't load features file, '{p}' is not text") from exc

    feats: list[Feature] = []
    for lineno, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            feats.append(decode(line))
        except ValueError as exc:
            raise FeatureFileCorruptError(f"features file '{p}' is incorrect at line {lineno}: {exc}") from exc
    return feats


def save_features(path: str | Path, features: Sequence[Feature]) -> Path:
    """
    Write features one per line. All features must be of the same kind.
    """
    kinds = {type(f) for f in features}
    if len(kinds) > 1:
        raise ValueError("cannot save a mix of feature kinds in one file")
    encode = encode_sio_feature if kinds == {SIOPointFeature} else encode_point_feature

    p = Path(path)
    try:
        with p.open("w", encoding="utf-8") as fh:
            for f in features:
                fh.write(encode(f) + "\n")
    except OSError as exc:
        raise FeatureFileAccessError(f"can't save features file, can't write '{p}'") from exc
    return p


def features_to_matrix(features: Sequence[Feature]) -> np.ndarray:
    """Stack feature positions into an (N,2) array."""
    out = np.zeros((len(features), 2), dtype=np.float64)
    for i, f in enumerate(features):
        out[i, 0] = f.x
        out[i, 1] = f.y
    return out
