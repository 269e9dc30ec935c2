from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np

N_PARAMS = 5
PARAM_NAMES = ("fx_n", "fy_n", "cx_n", "cy_n", "w")


class ParamsValidationError(ValueError):
    pass


def _require(cond: bool, msg: str) -> None:
    if not cond:
        raise ParamsValidationError(msg)


@dataclass(frozen=True)
class IntrinsicParams:
    """
    FOV camera intrinsics, resolution independent.

      fx_n = fx / width,  fy_n = fy / height
      cx_n = cx / width,  cy_n = cy / height
      w    = Devernay-Faugeras FOV angle (0 disables radial distortion)
    """

    fx_n: float
    fy_n: float
    cx_n: float
    cy_n: float
    w: float = 0.0

    @property
    def distortion_enabled(self) -> bool:
        return self.w != 0.0

    def as_vector(self) -> np.ndarray:
        return np.array([self.fx_n, self.fy_n, self.cx_n, self.cy_n, self.w], dtype=np.float64)

    @classmethod
    def from_vector(cls, v: Any) -> "IntrinsicParams":
        v = np.asarray(v, dtype=np.float64).reshape(-1)
        _require(v.shape[0] == N_PARAMS, f"parameter vector must have {N_PARAMS} entries, got {v.shape[0]}")
        _require(bool(np.all(np.isfinite(v))), "parameter vector must be finite")
        _require(v[0] != 0.0 and v[1] != 0.0, "fx_n and fy_n must be non-zero")
        return cls(*(float(x) for x in v))

    def updated(self, delta: Any) -> "IntrinsicParams":
        delta = np.asarray(delta, dtype=np.float64).reshape(-1)
        _require(delta.shape[0] == N_PARAMS, f"update vector must have {N_PARAMS} entries, got {delta.shape[0]}")
        return IntrinsicParams.from_vector(self.as_vector() + delta)

    def with_distortion_disabled(self) -> "IntrinsicParams":
        return IntrinsicParams(self.fx_n, self.fy_n, self.cx_n, self.cy_n, 0.0)


# Roughly a webcam: at 5 m the frustum section is about 10 m x 10 m, centered principal point.
DEFAULT_PARAMS = IntrinsicParams(fx_n=0.5, fy_n=0.8, cx_n=0.5, cy_n=0.5, w=0.07)


def parse_params(data: dict[str, Any]) -> IntrinsicParams:
    missing = [k for k in PARAM_NAMES if k not in data]
    _require(not missing, f"missing intrinsic parameters: {', '.join(missing)}")
    return IntrinsicParams.from_vector([float(data[k]) for k in PARAM_NAMES])


def params_to_dict(p: IntrinsicParams) -> dict[str, float]:
    return {name: float(val) for name, val in zip(PARAM_NAMES, p.as_vector())}
