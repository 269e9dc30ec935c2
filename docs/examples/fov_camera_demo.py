"""
FOV camera API demo.

It does:
1) build a camera from a parameter store (defaults if the file is absent),
2) project a ring of normalized points and unproject them back,
3) print the 2x2 projection Jacobian and the 2x5 parameter Jacobian at one point,
4) print the rendering frustum for the image plane bounding box.
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path

import numpy as np

from fovcam.api import FovCamera, ParameterStore


def main() -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--params", type=Path, default=None)
    ap.add_argument("--name", type=str, default="Camera")
    ap.add_argument("--width", type=int, default=640)
    ap.add_argument("--height", type=int, default=480)
    args = ap.parse_args()

    store = ParameterStore.load(args.params) if args.params is not None and args.params.exists() else ParameterStore()
    cam = FovCamera(args.name, (args.width, args.height), store=store)

    theta = np.linspace(0.0, 2.0 * np.pi, 12, endpoint=False)
    ring = 0.8 * cam.state.largest_radius * np.stack([np.cos(theta), np.sin(theta)], axis=-1)
    fwd = cam.project(ring)
    back = cam.unproject(fwd.image)
    err = np.linalg.norm(back.cam - ring, axis=1)

    one = cam.project(ring[1])
    report = {
        "state": cam.state.summary(),
        "ring_roundtrip_max_err": float(err.max()),
        "projection_derivs": cam.projection_derivs(one).tolist(),
        "camera_parameter_derivs": cam.camera_parameter_derivs(one).tolist(),
        "frustum": cam.make_ufb_linear_frustum_matrix(0.1, 100.0).tolist(),
    }
    print(json.dumps(report, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
