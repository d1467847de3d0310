from __future__ import annotations

import argparse
from pathlib import Path

from mvcamera.api.colorize import colorize_features
from mvcamera.api.model_io import load_cameras, save_cameras
from mvcamera.core.hashing import group_by_intrinsics, hash_value
from mvcamera.core.intrinsics import intrinsic_tag
from mvcamera.feature.point_feature import encode_point_feature, load_features
from mvcamera.log import DEFAULT_VERBOSE_LEVEL, VERBOSE_LEVELS, set_verbose_level


def inspect_cameras(path: Path) -> None:
    cameras = load_cameras(path)
    for intrinsic_id, model in cameras.items():
        params = " ".join(f"{v:.6g}" for v in model.get_params())
        print(
            f"{intrinsic_id}: type={intrinsic_tag(model.get_type())} size={model.width}x{model.height} "
            f"valid={model.is_valid()} serial={model.serial_number!r} hash={hash_value(model):016x} params=[{params}]"
        )
    for h, ids in group_by_intrinsics(cameras).items():
        if len(ids) > 1:
            print(f"shared intrinsics {h:016x}: {', '.join(str(i) for i in ids)}")


def upgrade_cameras(path: Path, out: Path) -> Path:
    cameras = load_cameras(path)
    return save_cameras(out, cameras)


def write_feature_colors(image: Path, features_path: Path, out: Path, *, kind: str = "point") -> Path:
    feats = load_features(features_path, kind=kind)
    colors = colorize_features(image, feats)
    out.parent.mkdir(parents=True, exist_ok=True)
    lines = [f"{encode_point_feature(f)} {int(c[0])} {int(c[1])} {int(c[2])}" for f, c in zip(feats, colors)]
    out.write_text("".join(line + "\n" for line in lines), encoding="utf-8")
    return out


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="mvcamera")
    parser.add_argument(
        "--verbose-level",
        "-v",
        type=str,
        default=DEFAULT_VERBOSE_LEVEL,
        choices=list(VERBOSE_LEVELS),
        help="Verbosity level.",
    )
    sub = parser.add_subparsers(dest="cmd", required=True)

    insp = sub.add_parser("inspect-cameras", help="Print camera models, validity, hashes and shared-intrinsic groups.")
    insp.add_argument("cameras", type=Path)

    upg = sub.add_parser("upgrade-cameras", help="Load a camera file (any supported schema) and save it in the current one.")
    upg.add_argument("cameras", type=Path)
    upg.add_argument("--out", type=Path, required=True)

    col = sub.add_parser("feature-colors", help="Sample image colors at feature positions (writes 'x y r g b' lines).")
    col.add_argument("--image", type=Path, required=True)
    col.add_argument("--features", type=Path, required=True)
    col.add_argument("--out", type=Path, required=True)
    col.add_argument("--kind", type=str, default="point", choices=["point", "sio"], help="Feature file kind.")

    args = parser.parse_args(argv)
    log = set_verbose_level(args.verbose_level)

    if args.cmd == "inspect-cameras":
        inspect_cameras(args.cameras)
        return 0

    if args.cmd == "upgrade-cameras":
        log.info("Saving output result to %s...", args.out)
        out = upgrade_cameras(args.cameras, args.out)
        print(f"Wrote {out}")
        return 0

    if args.cmd == "feature-colors":
        out = write_feature_colors(args.image, args.features, args.out, kind=args.kind)
        print(f"Wrote {out}")
        return 0

    raise AssertionError(f"Unhandled cmd: {args.cmd}")


if __name__ == "__main__":
    raise SystemExit(main())
