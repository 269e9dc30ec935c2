from __future__ import annotations

import numpy as np
from PIL import Image, ImageDraw

from fovcam.core.projection import project
from fovcam.core.state import CameraState


def _grid_values(lo: float, hi: float, spacing: float) -> np.ndarray:
    start = np.floor(lo / spacing) * spacing
    stop = np.ceil(hi / spacing) * spacing
    n = int(round((stop - start) / spacing)) + 1
    return start + spacing * np.arange(n, dtype=np.float64)


def _polyline(draw: ImageDraw.ImageDraw, state: CameraState, pts: np.ndarray, fill: int) -> None:
    res = project(state, pts)
    uv = np.asarray(res.image)
    ok = ~np.asarray(res.invalid)
    # Break the line wherever a sample falls outside the model's valid radius.
    run: list[tuple[float, float]] = []
    for (u, v), good in zip(uv, ok):
        if good:
            run.append((float(u), float(v)))
            continue
        if len(run) >= 2:
            draw.line(run, fill=fill, width=1)
        run = []
    if len(run) >= 2:
        draw.line(run, fill=fill, width=1)


def render_distortion_grid(
    state: CameraState,
    *,
    spacing: float = 0.1,
    samples: int = 64,
    background: int = 0,
    grid_value: int = 255,
    border_value: int = 128,
) -> Image.Image:
    """
    Draw straight lines of the undistorted z=1 plane as the lens images them.

    Lines are `spacing` apart (normalized units) over the image plane bounding box.
    The circle of maximum valid radius is drawn with `border_value`, and a small
    cross marks the principal point.
    """
    if spacing <= 0.0:
        raise ValueError("spacing must be > 0")
    if samples < 2:
        raise ValueError("samples must be >= 2")

    w, h = (int(round(x)) for x in state.image_size)
    img = Image.new("L", (w, h), color=int(background))
    draw = ImageDraw.Draw(img)

    tl = state.bounds.top_left
    br = state.bounds.bottom_right
    t_x = np.linspace(tl[0], br[0], samples)
    t_y = np.linspace(tl[1], br[1], samples)
    for x in _grid_values(tl[0], br[0], spacing):
        _polyline(draw, state, np.stack([np.full_like(t_y, x), t_y], axis=-1), grid_value)
    for y in _grid_values(tl[1], br[1], spacing):
        _polyline(draw, state, np.stack([t_x, np.full_like(t_x, y)], axis=-1), grid_value)

    # Slightly inside the limit, otherwise rounding can flag every sample invalid.
    theta = np.linspace(0.0, 2.0 * np.pi, 4 * samples)
    r = state.max_radius * (1.0 - 1e-9)
    _polyline(draw, state, np.stack([r * np.cos(theta), r * np.sin(theta)], axis=-1), border_value)

    cx, cy = (float(c) for c in state.center)
    draw.line([(cx - 4, cy), (cx + 4, cy)], fill=grid_value)
    draw.line([(cx, cy - 4), (cx, cy + 4)], fill=grid_value)
    return img
