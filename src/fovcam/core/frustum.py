from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np


@dataclass(frozen=True)
class ImagePlaneBounds:
    """
    Axis-aligned box on the undistorted z=1 plane covering the whole image.

    The linear (focal, center) pair maps the box onto the unit square:
      s = linear_center + linear_focal * p
    """

    top_left: np.ndarray  # (2,)
    bottom_right: np.ndarray  # (2,)

    @classmethod
    def from_points(cls, pts: np.ndarray) -> "ImagePlaneBounds":
        pts = np.asarray(pts, dtype=np.float64).reshape(-1, 2)
        return cls(top_left=pts.min(axis=0), bottom_right=pts.max(axis=0))

    @property
    def linear_inv_focal(self) -> np.ndarray:
        return self.bottom_right - self.top_left

    @property
    def linear_focal(self) -> np.ndarray:
        return 1.0 / self.linear_inv_focal

    @property
    def linear_center(self) -> np.ndarray:
        return -1.0 * self.top_left * self.linear_focal

    def to_unit_square(self, p: Any) -> np.ndarray:
        p = np.asarray(p, dtype=np.float64)
        return self.linear_center + self.linear_focal * p

    def from_unit_square(self, s: Any) -> np.ndarray:
        s = np.asarray(s, dtype=np.float64)
        return (s - self.linear_center) * self.linear_inv_focal


def ufb_linear_frustum_matrix(bounds: ImagePlaneBounds, near: float, far: float) -> np.ndarray:
    """
    Off-axis perspective matrix for the image plane box, scaled to the near plane.

    Right-handed with +z in front of the camera (glFrustum uses -z), so the
    z row and the w row differ in sign from the glFrustum manpage.
    """
    near = float(near)
    far = float(far)
    if not near > 0.0:
        raise ValueError("near must be > 0")
    if not far > near:
        raise ValueError("far must be > near")

    left = float(bounds.top_left[0]) * near
    right = float(bounds.bottom_right[0]) * near
    top = float(bounds.top_left[1]) * near
    bottom = float(bounds.bottom_right[1]) * near

    m4 = np.zeros((4, 4), dtype=np.float64)
    m4[0, 0] = (2.0 * near) / (right - left)
    m4[1, 1] = (2.0 * near) / (top - bottom)
    m4[0, 2] = (right + left) / (left - right)
    m4[1, 2] = (top + bottom) / (bottom - top)
    m4[2, 2] = (far + near) / (far - near)
    m4[3, 2] = 1.0
    m4[2, 3] = 2.0 * near * far / (near - far)
    return m4
