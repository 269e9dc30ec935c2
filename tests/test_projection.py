import numpy as np

from fovcam.api.camera import FovCamera
from fovcam.api.store import ParameterStore
from fovcam.params import IntrinsicParams


def _camera(w: float = 0.07, size=(640, 480)) -> FovCamera:
    params = IntrinsicParams(0.5, 0.8, 0.5, 0.5, w)
    store = ParameterStore({"Camera.Parameters": params.as_vector()})
    return FovCamera("Camera", size, store=store)


def _points(cam: FovCamera, n: int = 500, seed: int = 0) -> np.ndarray:
    rng = np.random.default_rng(seed)
    r = rng.uniform(0.02, 0.99 * cam.max_radius, size=n)
    theta = rng.uniform(-np.pi, np.pi, size=n)
    return np.stack([r * np.cos(theta), r * np.sin(theta)], axis=-1)


def test_default_camera_center_maps_to_offset_principal_point():
    cam = FovCamera("Camera", (640, 480))
    res = cam.project((0.0, 0.0))
    np.testing.assert_array_equal(res.image, [319.5, 239.5])
    assert res.factor == 1.0
    assert res.invalid is False

    back = cam.unproject((319.5, 239.5))
    assert np.max(np.abs(back.cam)) < 1e-12


def test_project_unproject_roundtrip():
    cam = _camera()
    p = _points(cam)
    q = cam.project(p)
    assert not np.any(q.invalid)
    back = cam.unproject(q.image)
    assert np.max(np.abs(back.cam - p)) < 1e-9

    # And the other way around, starting from pixels.
    back2 = cam.project(back.cam)
    assert np.max(np.abs(back2.image - q.image)) < 1e-7


def test_ufb_roundtrip():
    cam = _camera(w=0.4)
    p = _points(cam, seed=1)
    q = cam.ufb_project(p)
    back = cam.ufb_unproject(q.image)
    assert np.max(np.abs(back.cam - p)) < 1e-9


def test_ufb_uses_normalized_intrinsics():
    cam = _camera()
    np.testing.assert_allclose(cam.ufb_project((0.0, 0.0)).image, [0.5, 0.5])
    # Same distortion, only the affine map differs.
    p = np.array([0.3, -0.2])
    px = cam.project(p)
    ufb = cam.ufb_project(p)
    np.testing.assert_allclose(ufb.dist_cam, px.dist_cam)
    np.testing.assert_allclose(ufb.image, [0.5 + 0.5 * px.dist_cam[0], 0.5 + 0.8 * px.dist_cam[1]])


def test_batch_matches_single_points():
    cam = _camera()
    p = _points(cam, n=5, seed=2)
    batch = cam.project(p)
    assert batch.is_batch
    assert batch.image.shape == (5, 2)
    assert batch.r.shape == (5,)
    for i in range(5):
        single = cam.project(p[i])
        assert not single.is_batch
        np.testing.assert_allclose(single.image, batch.image[i], rtol=0, atol=1e-12)
        assert abs(single.factor - batch.factor[i]) < 1e-15


def test_zero_distortion_is_pinhole():
    cam = _camera(w=0.0)
    p = _points(cam, n=50, seed=3)
    res = cam.project(p)
    focal = np.array([320.0, 384.0])
    center = np.array([319.5, 239.5])
    np.testing.assert_allclose(res.image, center + focal * p, rtol=0, atol=1e-9)
    np.testing.assert_array_equal(res.factor, np.ones(50))
    back = cam.unproject(res.image)
    np.testing.assert_allclose(back.cam, p, rtol=0, atol=1e-12)


def test_disable_radial_distortion():
    cam = _camera(w=0.2)
    cam.disable_radial_distortion()
    assert cam.params.w == 0.0
    assert not cam.state.distortion.enabled
    np.testing.assert_array_equal(cam.store.get("Camera.Parameters")[4], 0.0)
    res = cam.project((0.4, 0.1))
    np.testing.assert_allclose(res.image, [319.5 + 320.0 * 0.4, 239.5 + 384.0 * 0.1])


def test_invalid_flag_beyond_max_radius():
    cam = _camera()
    d = np.array([np.cos(0.3), np.sin(0.3)])
    assert cam.project(0.99 * cam.max_radius * d).invalid is False
    assert cam.project(1.01 * cam.max_radius * d).invalid is True
    res = cam.project(np.stack([0.5 * cam.max_radius * d, 2.0 * cam.max_radius * d]))
    np.testing.assert_array_equal(res.invalid, [False, True])


def test_max_radius_from_farthest_corner():
    cam = _camera()
    w = 0.07
    rd = np.hypot(0.5 / 0.5, 0.5 / 0.8)
    ru = np.tan(rd * w) / (2.0 * np.tan(w / 2.0))
    assert abs(cam.state.largest_radius - ru) < 1e-12
    assert abs(cam.max_radius - 1.5 * ru) < 1e-12


def test_set_image_size_rescales_pixels_only():
    cam = _camera()
    before = cam.params
    cam.set_image_size(1280, 960)
    assert cam.params == before
    assert cam.image_size == (1280.0, 960.0)
    np.testing.assert_allclose(cam.state.focal, [640.0, 768.0])
    np.testing.assert_allclose(cam.state.center, [639.5, 479.5])


def test_update_params_adds_delta_and_writes_store():
    cam = _camera()
    cam.update_params([0.01, 0.0, 0.0, -0.02, 0.0])
    np.testing.assert_allclose(cam.params.as_vector(), [0.51, 0.8, 0.5, 0.48, 0.07])
    np.testing.assert_allclose(cam.store.get("Camera.Parameters"), [0.51, 0.8, 0.5, 0.48, 0.07])
    np.testing.assert_allclose(cam.state.focal, [0.51 * 640.0, 0.8 * 480.0])


def test_one_pixel_distance_pinhole():
    cam = _camera(w=0.0)
    expected = np.hypot(1.0 / 320.0, 1.0 / 384.0) / np.sqrt(2.0)
    assert abs(cam.one_pixel_dist - expected) < 1e-12


def test_invalid_flag_at_exact_boundary():
    cam = _camera()
    assert cam.project((cam.max_radius, 0.0)).invalid is False
    assert cam.project((np.nextafter(cam.max_radius, np.inf), 0.0)).invalid is True


def test_unproject_sets_invalid_flag():
    cam = _camera()
    inside = cam.project((0.9 * cam.max_radius, 0.0))
    outside = cam.project((1.2 * cam.max_radius, 0.0))
    assert cam.unproject(inside.image).invalid is False
    assert cam.unproject(outside.image).invalid is True


def test_results_do_not_alias_caller_buffers():
    cam = _camera()
    pts = np.array([[0.3, -0.2], [0.1, 0.4]], dtype=np.float64)
    res = cam.project(pts)
    before = cam.camera_parameter_derivs(res)
    J_before = cam.projection_derivs(res)
    pts[:] = 0.0
    np.testing.assert_array_equal(res.cam, [[0.3, -0.2], [0.1, 0.4]])
    np.testing.assert_array_equal(cam.camera_parameter_derivs(res), before)
    np.testing.assert_array_equal(cam.projection_derivs(res), J_before)

    px = res.image.copy()
    back = cam.unproject(px)
    px[:] = 0.0
    np.testing.assert_array_equal(back.image, res.image)
