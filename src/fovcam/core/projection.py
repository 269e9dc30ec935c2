from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import numpy as np

from fovcam.core.distortion import SMALL_RADIUS_UNPROJECT, FovDistortion

if TYPE_CHECKING:
    from fovcam.core.state import CameraState


@dataclass(frozen=True)
class ProjectionResult:
    """
    Everything a projection or unprojection computed along the way.

    cam      undistorted normalized point(s) on the z=1 plane
    dist_cam distorted normalized point(s)
    image    pixel (or UFB plane) point(s)
    r        undistorted radius, dist_r distorted radius
    factor   distortion factor dist_r / r as used by the model
    invalid  r beyond the model's maximum valid radius

    Single points give (2,) vectors and scalars; batches give (N,2) and (N,).
    """

    cam: np.ndarray
    dist_cam: np.ndarray
    image: np.ndarray
    r: Any
    dist_r: Any
    factor: Any
    invalid: Any

    @property
    def is_batch(self) -> bool:
        return np.ndim(self.cam) == 2


def _as_points(p: Any) -> tuple[np.ndarray, bool]:
    arr = np.array(p, dtype=np.float64)
    single = arr.ndim == 1
    if arr.ndim not in (1, 2) or arr.shape[-1] != 2:
        raise ValueError(f"expected a point (2,) or points (N,2), got shape {arr.shape}")
    return arr.reshape(-1, 2), single


def _pack(single: bool, **fields: np.ndarray) -> ProjectionResult:
    if single:
        out: dict[str, Any] = {}
        for k, v in fields.items():
            if v.ndim == 2:
                out[k] = v[0].copy()
            elif v.dtype == bool:
                out[k] = bool(v[0])
            else:
                out[k] = float(v[0])
        return ProjectionResult(**out)
    return ProjectionResult(**fields)


def distort_and_map(
    distortion: FovDistortion,
    focal: np.ndarray,
    center: np.ndarray,
    max_radius: float,
    p: Any,
) -> ProjectionResult:
    """
    Normalized Euclidean point(s) -> distorted, then affine map `center + focal * dist_cam`.
    """
    cam, single = _as_points(p)
    r = np.linalg.norm(cam, axis=1)
    invalid = r > max_radius
    factor = distortion.factor(r)
    dist_r = factor * r
    dist_cam = factor[:, None] * cam
    image = center[None, :] + focal[None, :] * dist_cam
    return _pack(single, cam=cam, dist_cam=dist_cam, image=image, r=r, dist_r=dist_r, factor=factor, invalid=invalid)


def unmap_and_undistort(
    distortion: FovDistortion,
    inv_focal: np.ndarray,
    center: np.ndarray,
    max_radius: float,
    q: Any,
) -> ProjectionResult:
    """
    Inverse of `distort_and_map`. Near the center (dist_r <= 0.01) the radius ratio is
    numerically unstable and the undistortion factor is taken as exactly 1.
    """
    image, single = _as_points(q)
    dist_cam = (image - center[None, :]) * inv_focal[None, :]
    dist_r = np.linalg.norm(dist_cam, axis=1)
    r = distortion.undistort_radius(dist_r)
    far = dist_r > SMALL_RADIUS_UNPROJECT
    undist = np.where(far, r / np.where(far, dist_r, 1.0), 1.0)
    cam = undist[:, None] * dist_cam
    return _pack(
        single,
        cam=cam,
        dist_cam=dist_cam,
        image=image,
        r=r,
        dist_r=dist_r,
        factor=1.0 / undist,
        invalid=r > max_radius,
    )


def project(state: "CameraState", p: Any) -> ProjectionResult:
    return distort_and_map(state.distortion, state.focal, state.center, state.max_radius, p)


def unproject(state: "CameraState", q: Any) -> ProjectionResult:
    return unmap_and_undistort(state.distortion, state.inv_focal, state.center, state.max_radius, q)


def ufb_project(state: "CameraState", p: Any) -> ProjectionResult:
    """
    Same as `project`, but onto the resolution independent plane given by the
    normalized intrinsics (fx_n, fy_n, cx_n, cy_n) instead of pixels.
    """
    v = state.params.as_vector()
    return distort_and_map(state.distortion, v[0:2], v[2:4], state.max_radius, p)


def ufb_unproject(state: "CameraState", q: Any) -> ProjectionResult:
    v = state.params.as_vector()
    return unmap_and_undistort(state.distortion, 1.0 / v[0:2], v[2:4], state.max_radius, q)
