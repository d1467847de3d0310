from __future__ import annotations

import numpy as np
import pytest

from mvcamera.core.geometry import Pose3
from mvcamera.core.intrinsics import EIntrinsic, IntrinsicTypeError
from mvcamera.core.pinhole import (
    Pinhole,
    PinholeBrown,
    PinholeFisheye,
    PinholeRadialK1,
    PinholeRadialK3,
    create_intrinsic,
)


def _hd_pinhole() -> Pinhole:
    return Pinhole(width=1920, height=1080, focal_length_pix=1000.0, ppx=960.0, ppy=540.0)


def _all_models():
    return [
        _hd_pinhole(),
        PinholeRadialK1(1920, 1080, 1000.0, 955.0, 545.0, [0.05]),
        PinholeRadialK3(1920, 1080, 1000.0, 955.0, 545.0, [0.05, -0.01, 0.002]),
        PinholeBrown(1920, 1080, 1000.0, 955.0, 545.0, [0.05, -0.01, 0.002, 0.001, -0.0005]),
        PinholeFisheye(1920, 1080, 700.0, 955.0, 545.0, [0.02, -0.005, 0.001, -0.0002]),
    ]


def test_project_known_points_identity_pose():
    cam = _hd_pinhole()
    pose = Pose3()
    assert np.allclose(cam.project(pose, np.array([0.0, 0.0, 10.0])), [960.0, 540.0], atol=1e-12)
    assert np.allclose(cam.project(pose, np.array([1.0, 0.0, 10.0])), [1060.0, 540.0], atol=1e-12)


def test_project_batch_matches_single_points():
    cam = _all_models()[3]
    pose = Pose3.from_rotvec(np.array([0.05, -0.02, 0.01]), center=np.array([0.1, 0.0, -1.0]))
    rng = np.random.default_rng(0)
    X = np.column_stack([rng.uniform(-2, 2, 20), rng.uniform(-1, 1, 20), rng.uniform(5, 10, 20)])
    batch = cam.project(pose, X)
    assert batch.shape == (20, 2)
    for i in range(X.shape[0]):
        assert np.max(np.abs(batch[i] - cam.project(pose, X[i]))) < 1e-12


def test_project_without_distortion_skips_distortion_field():
    cam = PinholeRadialK1(1920, 1080, 1000.0, 960.0, 540.0, [0.2])
    pose = Pose3()
    X = np.array([2.0, 1.0, 5.0])
    ideal = cam.project(pose, X, apply_distortion=False)
    assert np.allclose(ideal, _hd_pinhole().project(pose, X), atol=1e-12)
    assert not np.allclose(cam.project(pose, X), ideal)


@pytest.mark.parametrize("cam", _all_models(), ids=lambda c: type(c).__name__)
def test_cam2ima_ima2cam_roundtrip(cam):
    rng = np.random.default_rng(1)
    uv = np.column_stack([rng.uniform(0, cam.width - 1, 500), rng.uniform(0, cam.height - 1, 500)])
    uv2 = cam.cam2ima(cam.ima2cam(uv))
    assert np.max(np.abs(uv2 - uv)) < 1e-9


@pytest.mark.parametrize("cam", _all_models(), ids=lambda c: type(c).__name__)
def test_params_roundtrip_on_clone(cam):
    params = cam.get_params()
    assert len(params) == cam.param_count()

    fresh = type(cam)(width=cam.width, height=cam.height)
    assert fresh != cam
    assert fresh.update_from_params(params)
    assert fresh == cam

    twin = cam.clone()
    assert type(twin) is type(cam)
    assert twin.update_from_params(params)
    assert twin == cam


def test_clone_is_independent():
    cam = _all_models()[2]
    twin = cam.clone()
    p = twin.get_params()
    p[3] += 0.01
    assert twin.update_from_params(p)
    assert twin != cam
    assert cam.get_params()[3] == pytest.approx(0.05)


def test_update_from_params_rejects_bad_input_without_mutation():
    cam = PinholeBrown(640, 480, 500.0, 320.0, 240.0, [0.1, 0.0, 0.0, 0.0, 0.0])
    before = cam.get_params()
    assert not cam.update_from_params(before[:-1])
    assert not cam.update_from_params(before + [0.0])
    assert not cam.update_from_params([float("nan")] + before[1:])
    assert not cam.update_from_params(["a"] * len(before))
    assert not cam.update_from_params([0.0] + before[1:])
    assert not cam.update_from_params([-5.0] + before[1:])
    assert cam.image_plane_to_camera_plane_error(1.0) > 0.0
    assert cam.get_params() == before


def test_negative_image_size_is_rejected():
    with pytest.raises(ValueError):
        Pinhole(-1, 480, 500.0, 320.0, 240.0)

    cam = Pinhole(640, 480, 500.0, 320.0, 240.0)
    with pytest.raises(ValueError):
        cam.width = -1
    with pytest.raises(ValueError):
        cam.height = -480
    assert (cam.width, cam.height) == (640, 480)

    cam.width = 0
    assert not cam.is_valid()


def test_equality_covers_size_serial_type_and_params():
    a = _hd_pinhole()
    b = _hd_pinhole()
    assert a == b

    b.serial_number = "SN-1"
    assert a != b
    b.serial_number = ""
    b.width = 1280
    assert a != b

    radial = PinholeRadialK1(1920, 1080, 1000.0, 960.0, 540.0, [0.0])
    assert radial != a

    # The initial focal length is metadata only.
    c = _hd_pinhole()
    c.initial_focal_length_pix = 1200.0
    assert a == c


def test_is_valid_depends_on_image_size():
    assert _hd_pinhole().is_valid()
    assert not Pinhole().is_valid()
    assert not Pinhole(width=640, height=0, focal_length_pix=500.0).is_valid()


def test_assign_copies_state_of_same_type():
    src = PinholeRadialK3(800, 600, 700.0, 400.0, 300.0, [0.1, 0.01, 0.001], serial_number="lens-a")
    dst = PinholeRadialK3()
    dst.assign(src)
    assert dst == src
    assert dst.initial_focal_length_pix == src.initial_focal_length_pix
    # No shared state after assignment.
    assert src.update_from_params([710.0, 400.0, 300.0, 0.1, 0.01, 0.001])
    assert dst != src


def test_assign_rejects_other_type():
    dst = PinholeBrown()
    with pytest.raises(IntrinsicTypeError):
        dst.assign(_hd_pinhole())
    with pytest.raises(IntrinsicTypeError):
        _hd_pinhole().assign(PinholeRadialK1(1920, 1080, 1000.0, 960.0, 540.0))


def test_bearing_vectors_are_unit_and_point_through_pixel():
    cam = _hd_pinhole()
    b = cam(np.array([1960.0, 540.0]))
    assert np.allclose(b, np.array([1.0, 0.0, 1.0]) / np.sqrt(2.0), atol=1e-12)

    distorted = _all_models()[3]
    pose = Pose3()
    X = np.array([[0.4, -0.3, 2.0], [-1.0, 0.5, 4.0]])
    uv = distorted.project(pose, X)
    rays = distorted(uv)
    assert np.allclose(np.linalg.norm(rays, axis=1), 1.0)
    expected = X / np.linalg.norm(X, axis=1, keepdims=True)
    assert np.max(np.abs(rays - expected)) < 1e-9


def test_image_plane_error_scales_by_focal():
    cam = _hd_pinhole()
    assert cam.image_plane_to_camera_plane_error(2.0) == pytest.approx(0.002)
    assert cam.image_plane_to_camera_plane_error(4.0) > cam.image_plane_to_camera_plane_error(2.0) > 0.0


def test_projective_equivalent_matches_undistorted_projection():
    cam = _all_models()[1]
    pose = Pose3.from_rotvec(np.array([0.1, 0.2, -0.1]), center=np.array([0.3, -0.2, -5.0]))
    P = cam.get_projective_equivalent(pose)
    assert P.shape == (3, 4)
    X = np.array([[0.5, 0.2, 1.0], [-0.3, 0.1, 2.0]])
    xh = (P @ np.concatenate([X, np.ones((2, 1))], axis=1).T).T
    uv = xh[:, :2] / xh[:, 2:3]
    assert np.max(np.abs(uv - cam.project(pose, X, apply_distortion=False))) < 1e-9


def test_distorted_and_undistorted_pixels_are_inverse():
    cam = _all_models()[3]
    rng = np.random.default_rng(2)
    uv = np.column_stack([rng.uniform(500, 1400, 200), rng.uniform(200, 900, 200)])
    uv2 = cam.get_undistorted_pixel(cam.get_distorted_pixel(uv))
    assert np.max(np.abs(uv2 - uv)) < 1e-6


def test_undistorted_model_has_no_distortion():
    cam = _hd_pinhole()
    assert not cam.have_distortion()
    p = np.array([0.1, -0.2])
    assert np.array_equal(cam.add_distortion(p), p)
    assert np.array_equal(cam.remove_distortion(p), p)
    assert PinholeRadialK1().have_distortion()


def test_create_intrinsic_by_tag():
    cam = create_intrinsic("brown", 640, 480, 500.0, 320.0, 240.0)
    assert isinstance(cam, PinholeBrown)
    assert cam.get_type() == EIntrinsic.PINHOLE_CAMERA_BROWN
    assert cam.get_params() == [500.0, 320.0, 240.0, 0.0, 0.0, 0.0, 0.0, 0.0]
    with pytest.raises(ValueError):
        create_intrinsic("no-such-model")


def test_ima2cam_rejects_non_2d_points():
    with pytest.raises(ValueError):
        _hd_pinhole().ima2cam(np.zeros((4, 3)))
