import numpy as np
import pytest

from fovcam.core.grid_overlay import render_distortion_grid
from fovcam.core.state import CameraState
from fovcam.params import DEFAULT_PARAMS, IntrinsicParams


def test_render_grid_draws_lines():
    state = CameraState.build(DEFAULT_PARAMS, (160, 120))
    img = render_distortion_grid(state, spacing=0.2, samples=32)
    assert img.mode == "L"
    assert img.size == (160, 120)
    arr = np.asarray(img)
    # Grid lines plus the principal-point cross, on a black background.
    assert np.any(arr[58:62, 78:82] == 255)
    assert 0.01 < np.mean(arr == 255) < 0.5


def test_pinhole_grid_lines_are_straight():
    state = CameraState.build(IntrinsicParams(0.5, 0.5, 0.5, 0.5, 0.0), (101, 101))
    arr = np.asarray(render_distortion_grid(state, spacing=0.5, samples=16))
    # x = 0 maps onto the principal column u = 101 * 0.5 - 0.5 = 50.
    assert np.all(arr[5:95, 50] == 255)


def test_render_grid_rejects_bad_arguments():
    state = CameraState.build(DEFAULT_PARAMS, (32, 24))
    with pytest.raises(ValueError):
        render_distortion_grid(state, spacing=0.0)
    with pytest.raises(ValueError):
        render_distortion_grid(state, samples=1)
