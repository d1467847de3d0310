from __future__ import annotations

import json
from pathlib import Path

import numpy as np
from PIL import Image

from mvcamera.api.model_io import SCHEMA_VERSION, load_cameras, save_cameras
from mvcamera.cli.main import main
from mvcamera.core.hashing import hash_value
from mvcamera.core.pinhole import Pinhole, PinholeRadialK1


def test_inspect_cameras_reports_shared_groups(tmp_path: Path, capsys) -> None:
    shared = PinholeRadialK1(640, 480, 500.0, 320.0, 240.0, [0.05], serial_number="cam-a")
    path = save_cameras(tmp_path / "cams.json", {0: shared, 1: Pinhole(), 2: shared.clone()})
    assert main(["inspect-cameras", str(path)]) == 0
    out = capsys.readouterr().out
    assert "0: type=radial1 size=640x480 valid=True" in out
    assert "1: type=pinhole size=0x0 valid=False" in out
    assert f"shared intrinsics {hash_value(shared):016x}: 0, 2" in out


def test_upgrade_cameras_from_legacy_schema(tmp_path: Path) -> None:
    legacy = tmp_path / "legacy.json"
    legacy.write_text(
        json.dumps(
            {
                "schema_version": "mvcamera.cameras.v0",
                "intrinsics": [
                    {"intrinsicId": 5, "type": "pinhole", "width": 64, "height": 48, "pxFocalLength": 50.0, "principalPoint": [32, 24]}
                ],
            }
        ),
        encoding="utf-8",
    )
    out = tmp_path / "upgraded.json"
    assert main(["--verbose-level", "warning", "upgrade-cameras", str(legacy), "--out", str(out)]) == 0
    doc = json.loads(out.read_text(encoding="utf-8"))
    assert doc["schema_version"] == SCHEMA_VERSION
    rec = doc["intrinsics"][0]
    assert rec["serialNumber"] == ""
    assert rec["initialFocalLengthPix"] == -1.0
    assert load_cameras(out)[5] == Pinhole(64, 48, 50.0, 32.0, 24.0)


def test_feature_colors(tmp_path: Path) -> None:
    img = np.zeros((4, 6, 3), dtype=np.uint8)
    img[1, 2] = (255, 0, 0)
    img[3, 5] = (0, 10, 200)
    Image.fromarray(img).save(tmp_path / "img.png")
    (tmp_path / "feats.txt").write_text("2 1\n5.4 2.6\n40 -3\n", encoding="utf-8")

    out = tmp_path / "colors" / "colors.txt"
    rc = main(
        [
            "feature-colors",
            "--image",
            str(tmp_path / "img.png"),
            "--features",
            str(tmp_path / "feats.txt"),
            "--out",
            str(out),
        ]
    )
    assert rc == 0
    lines = out.read_text(encoding="utf-8").splitlines()
    assert lines == ["2 1 255 0 0", "5.4 2.6 0 10 200", "40 -3 0 0 0"]


def test_feature_colors_keeps_full_coordinate_precision(tmp_path: Path) -> None:
    Image.fromarray(np.full((2, 2, 3), 7, dtype=np.uint8)).save(tmp_path / "img.png")
    (tmp_path / "feats.txt").write_text("12345.678 0.1234567\n", encoding="utf-8")

    out = tmp_path / "colors.txt"
    args = ["feature-colors", "--image", str(tmp_path / "img.png"), "--features", str(tmp_path / "feats.txt")]
    assert main(args + ["--out", str(out)]) == 0
    assert out.read_text(encoding="utf-8").splitlines() == ["12345.678 0.1234567 7 7 7"]
