from __future__ import annotations

import numpy as np

from fovcam.core.distortion import SMALL_RADIUS_JACOBIAN
from fovcam.core.projection import ProjectionResult, project
from fovcam.core.state import CameraState
from fovcam.params import N_PARAMS

PARAM_STEP = 0.001


def projection_derivs(state: CameraState, result: ProjectionResult) -> np.ndarray:
    """
    d(pixel)/d(normalized point) at the point of `result`, rows = pixel axis.

    With f(ru) = atan(k ru) / (w ru), k = 2 tan(w/2):

      df/dx = (k / (w (1 + k^2 ru^2)) - f) * x / ru^2     (same for y)
      d(u)/dx = fx (df/dx x + f),  d(u)/dy = fx df/dy x
      d(v)/dx = fy df/dx y,        d(v)/dy = fy (df/dy y + f)

    Returns (2,2) for a single point, (N,2,2) for a batch.
    """
    cam = np.asarray(result.cam, dtype=np.float64).reshape(-1, 2)
    factor = np.asarray(result.factor, dtype=np.float64).reshape(-1)
    dist = state.distortion
    ru = np.asarray(result.r, dtype=np.float64).reshape(-1) * (1.0 if dist.enabled else 0.0)
    k = dist.two_tan
    x = cam[:, 0]
    y = cam[:, 1]

    small = ru < SMALL_RADIUS_JACOBIAN
    ru_safe = np.where(small, 1.0, ru)
    common = (dist.w_inv * k / (1.0 + k * k * ru_safe * ru_safe) - factor) / (ru_safe * ru_safe)
    dfdx = np.where(small, 0.0, common * x)
    dfdy = np.where(small, 0.0, common * y)

    fx, fy = state.focal
    m = np.empty((cam.shape[0], 2, 2), dtype=np.float64)
    m[:, 0, 0] = fx * (dfdx * x + factor)
    m[:, 0, 1] = fx * (dfdy * x)
    m[:, 1, 0] = fy * (dfdx * y)
    m[:, 1, 1] = fy * (dfdy * y + factor)
    return m if result.is_batch else m[0]


def camera_parameter_derivs(
    state: CameraState,
    result: ProjectionResult,
    *,
    step: float = PARAM_STEP,
    central: bool = False,
) -> np.ndarray:
    """
    Numeric d(pixel)/d(params) at the undistorted point of `result`.

    Each column re-projects through a perturbed copy of the state, so `state`
    itself is never touched. The w column stays zero while distortion is disabled.
    Returns (2,5) for a single point, (N,2,5) for a batch.
    """
    step = float(step)
    if step <= 0.0:
        raise ValueError("step must be > 0")

    cam = np.asarray(result.cam, dtype=np.float64).reshape(-1, 2)
    base = np.asarray(project(state, cam).image)
    out = np.zeros((cam.shape[0], 2, N_PARAMS), dtype=np.float64)

    for i in range(N_PARAMS):
        if i == N_PARAMS - 1 and not state.distortion.enabled:
            continue
        delta = np.zeros((N_PARAMS,), dtype=np.float64)
        delta[i] = step
        plus = np.asarray(project(state.with_params(state.params.updated(delta)), cam).image)
        if central:
            minus = np.asarray(project(state.with_params(state.params.updated(-delta)), cam).image)
            out[:, :, i] = (plus - minus) / (2.0 * step)
        else:
            out[:, :, i] = (plus - base) / step

    return out if result.is_batch else out[0]
