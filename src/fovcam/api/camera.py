from __future__ import annotations

import logging
from typing import Any

import numpy as np

from fovcam.api.store import ParameterStore
from fovcam.core import derivatives, projection
from fovcam.core.frustum import ImagePlaneBounds, ufb_linear_frustum_matrix
from fovcam.core.projection import ProjectionResult
from fovcam.core.state import CameraState
from fovcam.params import DEFAULT_PARAMS, IntrinsicParams, ParamsValidationError

logger = logging.getLogger(__name__)


def _image_size(width: Any, height: Any) -> tuple[float, float]:
    w, h = float(width), float(height)
    if not (w > 0.0 and h > 0.0):
        raise ParamsValidationError(f"image size must be > 0, got {(w, h)}")
    return w, h


class FovCamera:
    """
    FOV-model camera with its parameters kept in a `ParameterStore` under
    "<name>.Parameters".

    Projections return a `ProjectionResult`; pass it to `projection_derivs` or
    `camera_parameter_derivs` to differentiate at that point.

    Instances are not thread-safe: parameter updates rebuild the state in place.
    Use one camera per thread or hold a lock around every call.
    """

    def __init__(
        self,
        name: str = "Camera",
        image_size: tuple[float, float] = (640, 480),
        *,
        store: ParameterStore | None = None,
        required: bool = False,
    ) -> None:
        self.name = str(name)
        self.store = store if store is not None else ParameterStore()
        vec = self.store.get(self.key, DEFAULT_PARAMS.as_vector(), required=required)
        self._params = IntrinsicParams.from_vector(vec)
        self._state = CameraState.build(self._params, _image_size(*image_size))
        logger.debug("camera %s ready: params=%s", self.name, self._params.as_vector().tolist())

    @property
    def key(self) -> str:
        return f"{self.name}.Parameters"

    @property
    def params(self) -> IntrinsicParams:
        return self._params

    @property
    def state(self) -> CameraState:
        return self._state

    @property
    def image_size(self) -> tuple[float, float]:
        w, h = self._state.image_size
        return float(w), float(h)

    @property
    def max_radius(self) -> float:
        return self._state.max_radius

    @property
    def one_pixel_dist(self) -> float:
        return self._state.one_pixel_dist

    @property
    def image_plane_bounds(self) -> ImagePlaneBounds:
        return self._state.bounds

    def _set_params(self, params: IntrinsicParams) -> None:
        self._params = params
        self._state = self._state.with_params(params)
        self.store.set(self.key, params.as_vector())

    def set_image_size(self, width: float, height: float) -> None:
        self._state = self._state.with_image_size(_image_size(width, height))

    def update_params(self, delta: Any) -> None:
        """Add `delta` to [fx_n, fy_n, cx_n, cy_n, w]; the calibration update step."""
        self._set_params(self._params.updated(delta))

    def disable_radial_distortion(self) -> None:
        self._set_params(self._params.with_distortion_disabled())

    def project(self, p: Any) -> ProjectionResult:
        return projection.project(self._state, p)

    def unproject(self, q: Any) -> ProjectionResult:
        return projection.unproject(self._state, q)

    def ufb_project(self, p: Any) -> ProjectionResult:
        return projection.ufb_project(self._state, p)

    def ufb_unproject(self, q: Any) -> ProjectionResult:
        return projection.ufb_unproject(self._state, q)

    def projection_derivs(self, result: ProjectionResult) -> np.ndarray:
        return derivatives.projection_derivs(self._state, result)

    def camera_parameter_derivs(
        self,
        result: ProjectionResult,
        *,
        step: float = derivatives.PARAM_STEP,
        central: bool = False,
    ) -> np.ndarray:
        return derivatives.camera_parameter_derivs(self._state, result, step=step, central=central)

    def make_ufb_linear_frustum_matrix(self, near: float, far: float) -> np.ndarray:
        return ufb_linear_frustum_matrix(self._state.bounds, near, far)
