from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any

import numpy as np

from fovcam.api.camera import FovCamera
from fovcam.api.store import ParameterStore
from fovcam.core.grid_overlay import render_distortion_grid
from fovcam.core.projection import ProjectionResult
from fovcam.params import DEFAULT_PARAMS, params_to_dict, parse_params


def _camera_from_args(args: argparse.Namespace) -> FovCamera:
    store = ParameterStore.load(args.params) if args.params is not None else ParameterStore()
    return FovCamera(args.name, (args.width, args.height), store=store, required=args.required)


def _result_dict(cam: FovCamera, res: ProjectionResult) -> dict[str, Any]:
    return {
        "cam": np.asarray(res.cam).tolist(),
        "dist_cam": np.asarray(res.dist_cam).tolist(),
        "image_px": np.asarray(res.image).tolist(),
        "r": float(res.r),
        "dist_r": float(res.dist_r),
        "factor": float(res.factor),
        "invalid": bool(res.invalid),
        "projection_derivs": cam.projection_derivs(res).tolist(),
        "camera_parameter_derivs": cam.camera_parameter_derivs(res).tolist(),
    }


def main(argv: list[str] | None = None) -> int:
    log_opts = argparse.ArgumentParser(add_help=False)
    log_opts.add_argument("-v", "--verbose", action="store_true")

    common = argparse.ArgumentParser(add_help=False, parents=[log_opts])
    common.add_argument("--params", type=Path, default=None, help="Parameter store (JSON). Defaults are used if omitted.")
    common.add_argument("--name", type=str, default="Camera", help="Camera name; the store key is <name>.Parameters.")
    common.add_argument("--width", type=int, default=640)
    common.add_argument("--height", type=int, default=480)
    common.add_argument("--required", action="store_true", help="Fail if the camera parameters are not in the store.")

    parser = argparse.ArgumentParser(prog="fovcam")
    sub = parser.add_subparsers(dest="cmd", required=True)

    sub.add_parser("info", parents=[common], help="Print the derived camera state as JSON.")

    pr = sub.add_parser("project", parents=[common], help="Project a normalized point (x, y) to pixels.")
    pr.add_argument("x", type=float)
    pr.add_argument("y", type=float)
    pr.add_argument("--ufb", action="store_true", help="Project onto the normalized-intrinsics plane instead of pixels.")

    un = sub.add_parser("unproject", parents=[common], help="Unproject a pixel (u, v) to the normalized plane.")
    un.add_argument("u", type=float)
    un.add_argument("v", type=float)
    un.add_argument("--ufb", action="store_true", help="Input is on the normalized-intrinsics plane.")

    grid = sub.add_parser("render-grid", parents=[common], help="Render the distorted image of a straight grid (PNG).")
    grid.add_argument("--out", type=Path, required=True)
    grid.add_argument("--spacing", type=float, default=0.1, help="Grid spacing on the z=1 plane.")
    grid.add_argument("--samples", type=int, default=64, help="Samples per grid line.")

    init = sub.add_parser("init-params", parents=[log_opts], help="Write a parameter store holding the default intrinsics.")
    init.add_argument("--out", type=Path, required=True)
    init.add_argument("--name", type=str, default="Camera")
    init.add_argument("--no-distortion", action="store_true", help="Store w = 0.")
    init.add_argument(
        "--intrinsics",
        type=str,
        default=None,
        help="JSON object with fx_n, fy_n, cx_n, cy_n, w (defaults to the built-in webcam values).",
    )

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if getattr(args, "verbose", False) else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.cmd == "init-params":
        params = parse_params(json.loads(args.intrinsics)) if args.intrinsics else DEFAULT_PARAMS
        if args.no_distortion:
            params = params.with_distortion_disabled()
        store = ParameterStore({f"{args.name}.Parameters": params.as_vector()})
        print(f"Wrote {store.save(args.out)}")
        return 0

    cam = _camera_from_args(args)

    if args.cmd == "info":
        out = {"name": cam.name, "params": params_to_dict(cam.params), **cam.state.summary()}
        print(json.dumps(out, indent=2))
        return 0

    if args.cmd == "project":
        res = cam.ufb_project((args.x, args.y)) if args.ufb else cam.project((args.x, args.y))
        print(json.dumps(_result_dict(cam, res), indent=2))
        return 0

    if args.cmd == "unproject":
        res = cam.ufb_unproject((args.u, args.v)) if args.ufb else cam.unproject((args.u, args.v))
        print(json.dumps(_result_dict(cam, res), indent=2))
        return 0

    if args.cmd == "render-grid":
        img = render_distortion_grid(cam.state, spacing=args.spacing, samples=args.samples)
        args.out.parent.mkdir(parents=True, exist_ok=True)
        img.save(args.out)
        print(f"Wrote {args.out}")
        return 0

    raise AssertionError(f"Unhandled cmd: {args.cmd}")


if __name__ == "__main__":
    raise SystemExit(main())
