from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

# Below these radii the FOV ratios degenerate to 0/0; the model treats them as undistorted.
SMALL_RADIUS_FACTOR = 0.001
SMALL_RADIUS_UNPROJECT = 0.01
SMALL_RADIUS_JACOBIAN = 0.01


@dataclass(frozen=True)
class FovDistortion:
    """
    Devernay-Faugeras FOV ("ATAN") radial distortion on normalized camera coordinates.

      rd = atan(2 ru tan(w/2)) / w
      ru = tan(rd w) / (2 tan(w/2))

    The same scalar factor rd/ru is applied to both axes. w == 0 is the identity.
    """

    w: float = 0.0

    @property
    def enabled(self) -> bool:
        return self.w != 0.0

    @property
    def two_tan(self) -> float:
        return 2.0 * math.tan(self.w / 2.0) if self.enabled else 0.0

    @property
    def one_over_two_tan(self) -> float:
        return 1.0 / self.two_tan if self.enabled else 0.0

    @property
    def w_inv(self) -> float:
        return 1.0 / self.w if self.enabled else 0.0

    def factor(self, r: np.ndarray | float) -> np.ndarray:
        """Distortion factor rd/ru for an undistorted radius."""
        r = np.asarray(r, dtype=np.float64)
        if not self.enabled:
            return np.ones_like(r)
        small = r < SMALL_RADIUS_FACTOR
        r_safe = np.where(small, 1.0, r)
        f = np.arctan(r_safe * self.two_tan) * self.w_inv / r_safe
        return np.where(small, 1.0, f)

    def distort_radius(self, r: np.ndarray | float) -> np.ndarray:
        r = np.asarray(r, dtype=np.float64)
        return self.factor(r) * r

    def undistort_radius(self, rd: np.ndarray | float) -> np.ndarray:
        rd = np.asarray(rd, dtype=np.float64)
        if not self.enabled:
            return rd.copy()
        return np.tan(rd * self.w) * self.one_over_two_tan
