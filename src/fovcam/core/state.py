from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import numpy as np

from fovcam.core.distortion import FovDistortion
from fovcam.core.frustum import ImagePlaneBounds
from fovcam.core.projection import unmap_and_undistort
from fovcam.params import IntrinsicParams

logger = logging.getLogger(__name__)

# Display convention kept for compatibility: pixel centers sit half a pixel off
# the projective origin so that border pixels land inside the rendering canvas.
PIXEL_OFFSET = 0.5

# The model is trusted up to this multiple of the farthest image corner radius.
MAX_RADIUS_SCALE = 1.5


@dataclass(frozen=True)
class CameraState:
    """
    Everything derived from (intrinsics, image size). Rebuilt as a unit, never patched.
    """

    params: IntrinsicParams
    image_size: np.ndarray  # (2,) width, height in px
    focal: np.ndarray  # (2,) px
    inv_focal: np.ndarray  # (2,)
    center: np.ndarray  # (2,) px, includes PIXEL_OFFSET
    distortion: FovDistortion
    largest_radius: float  # undistorted radius of the farthest image corner
    max_radius: float
    one_pixel_dist: float  # normalized-plane length of one pixel near the center
    bounds: ImagePlaneBounds

    @classmethod
    def build(cls, params: IntrinsicParams, image_size: Any) -> "CameraState":
        size = np.asarray(image_size, dtype=np.float64).reshape(2)
        v = params.as_vector()

        focal = size * v[0:2]
        center = size * v[2:4] - PIXEL_OFFSET
        inv_focal = 1.0 / focal
        distortion = FovDistortion(w=params.w)

        # Farthest corner, worked out in [0,1]x[0,1] image-fraction space.
        corner = np.maximum(v[2:4], 1.0 - v[2:4]) / v[0:2]
        largest_radius = float(distortion.undistort_radius(float(np.linalg.norm(corner))))
        max_radius = MAX_RADIUS_SCALE * largest_radius

        def back(q: np.ndarray) -> np.ndarray:
            return np.asarray(unmap_and_undistort(distortion, inv_focal, center, max_radius, q).cam)

        mid = 0.5 * size
        pair = back(np.stack([mid, mid + 1.0]))
        one_pixel_dist = float(np.linalg.norm(pair[0] - pair[1]) / np.sqrt(2.0))

        w, h = size
        corners_px = np.array(
            [
                [-PIXEL_OFFSET, -PIXEL_OFFSET],
                [w - PIXEL_OFFSET, -PIXEL_OFFSET],
                [w - PIXEL_OFFSET, h - PIXEL_OFFSET],
                [-PIXEL_OFFSET, h - PIXEL_OFFSET],
            ],
            dtype=np.float64,
        )
        bounds = ImagePlaneBounds.from_points(back(corners_px))

        logger.debug(
            "camera state: size=%s focal=%s center=%s w=%g max_r=%g",
            size.tolist(),
            focal.tolist(),
            center.tolist(),
            params.w,
            max_radius,
        )
        return cls(
            params=params,
            image_size=size,
            focal=focal,
            inv_focal=inv_focal,
            center=center,
            distortion=distortion,
            largest_radius=largest_radius,
            max_radius=max_radius,
            one_pixel_dist=one_pixel_dist,
            bounds=bounds,
        )

    def with_params(self, params: IntrinsicParams) -> "CameraState":
        return CameraState.build(params, self.image_size)

    def with_image_size(self, image_size: Any) -> "CameraState":
        return CameraState.build(self.params, image_size)

    def summary(self) -> dict[str, Any]:
        return {
            "image_size": self.image_size.tolist(),
            "focal_px": self.focal.tolist(),
            "center_px": self.center.tolist(),
            "w": float(self.distortion.w),
            "distortion_enabled": bool(self.distortion.enabled),
            "largest_radius": float(self.largest_radius),
            "max_radius": float(self.max_radius),
            "one_pixel_dist": float(self.one_pixel_dist),
            "implane_top_left": self.bounds.top_left.tolist(),
            "implane_bottom_right": self.bounds.bottom_right.tolist(),
        }
