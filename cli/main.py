"""CLI entry point for headless gravity-well runs."""

from __future__ import annotations

import argparse
from datetime import datetime, timezone
from pathlib import Path
import platform
import time

import numpy as np
from tidepool.camera import Viewport
from tidepool.config import SimulationConfig, SimulationParameters
from tidepool.io import RunOutput, run_slug
from tidepool.labels import describe_parameters, grid_label
from tidepool.metrics import SurfaceMetrics, surface_metrics
from tidepool.raster import render_image
from tidepool.simulation import Simulation


def build_parser(config: SimulationConfig | None = None) -> argparse.ArgumentParser:
    ranges = (config or SimulationConfig()).ranges
    parser = argparse.ArgumentParser(description="Fluid surface deformed by a hovering point mass")
    parser.add_argument("--mass-exp", type=float, default=ranges.default_mass_exponent, help="log10 of mass in kg")
    parser.add_argument(
        "--volume-exp", type=float, default=ranges.default_volume_exponent, help="log10 of volume in km^3"
    )
    parser.add_argument(
        "--height-km", type=float, default=ranges.default_height_km, help="Clearance above the surface in km"
    )
    parser.add_argument(
        "--grid",
        type=int,
        choices=ranges.grid_sizes,
        default=ranges.default_grid_size,
        help="Cells per grid side",
    )
    parser.add_argument("--seconds", type=float, default=10.0, help="Wall-clock seconds to simulate")
    parser.add_argument("--fps", type=float, default=30.0, help="Host frame rate")
    parser.add_argument("--frame-every", type=int, default=30, help="Write every Nth frame; 0 writes only the last")
    parser.add_argument("--width", type=int, default=960, help="Viewport width in pixels")
    parser.add_argument("--height", type=int, default=640, help="Viewport height in pixels")
    parser.add_argument("--pixel-ratio", type=float, default=1.0, help="Device pixel ratio of the output images")
    parser.add_argument("--spin", type=float, default=0.0, help="Horizontal drag in pixels applied each frame")
    parser.add_argument("--zoom", type=float, default=0.0, help="Wheel delta applied once before the run")
    parser.add_argument("--out", default="out", help="Output root directory")
    parser.add_argument("--overwrite", action="store_true", help="Overwrite files in existing output directory")
    parser.add_argument(
        "--json",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Write metadata JSON files",
    )
    return parser


def _check_parameters(parser: argparse.ArgumentParser, args: argparse.Namespace, config: SimulationConfig) -> None:
    ranges = config.ranges
    checks = (
        ("--mass-exp", args.mass_exp, ranges.mass_exponent),
        ("--volume-exp", args.volume_exp, ranges.volume_exponent),
        ("--height-km", args.height_km, ranges.height_km),
    )
    for flag, value, (lo, hi) in checks:
        if not np.isfinite(value) or not lo <= value <= hi:
            parser.error(f"{flag} must lie in [{lo:g}, {hi:g}], got {value}")
    if args.seconds < 0 or args.fps <= 0:
        parser.error("--seconds must be >= 0 and --fps must be positive")
    if args.width <= 0 or args.height <= 0 or args.pixel_ratio <= 0:
        parser.error("--width, --height and --pixel-ratio must be positive")
    if args.frame_every < 0:
        parser.error("--frame-every must be >= 0")


def _metrics_dict(metrics: SurfaceMetrics) -> dict[str, object]:
    return {
        "min_height_m": metrics.min_height_m,
        "max_height_m": metrics.max_height_m,
        "mean_height_m": metrics.mean_height_m,
        "rms_height_m": metrics.rms_height_m,
        "peak_abs_height_m": metrics.peak_abs_height_m,
        "peak_cell": list(metrics.peak_cell),
        "center_height_m": metrics.center_height_m,
        "finite": metrics.finite,
    }


def main(argv: list[str] | None = None) -> int:
    config = SimulationConfig()
    parser = build_parser(config)
    args = parser.parse_args(argv)
    _check_parameters(parser, args, config)

    params = SimulationParameters(
        mass_exponent=args.mass_exp,
        volume_exponent=args.volume_exp,
        height_km=args.height_km,
    )
    sim = Simulation(config, grid_size=args.grid, parameters=params)
    viewport = Viewport.from_size(args.width, args.height, config.camera, pixel_ratio=args.pixel_ratio)
    if args.zoom:
        sim.controller.wheel(args.zoom)

    output = RunOutput.open(
        args.out,
        run_slug(args.mass_exp, args.volume_exp, args.height_km),
        args.grid,
        overwrite=args.overwrite,
    )

    frame_dt = 1.0 / args.fps
    frame_count = max(1, int(round(args.seconds * args.fps)))
    render_seconds = 0.0
    written_frames: list[str] = []

    try:
        run_start = time.perf_counter()
        if args.spin:
            sim.controller.pointer_down(0.0, 0.0)
        for frame_idx in range(frame_count):
            if args.spin:
                sim.controller.pointer_move(args.spin * (frame_idx + 1), 0.0)
            sim.advance(frame_dt)

            is_last = frame_idx == frame_count - 1
            if is_last or (args.frame_every and frame_idx % args.frame_every == 0):
                render_start = time.perf_counter()
                image = render_image(sim.compose(viewport))
                written_frames.append(output.write_frame(frame_idx, image))
                render_seconds += time.perf_counter() - render_start
        if args.spin:
            sim.controller.pointer_up()
        run_seconds = time.perf_counter() - run_start

        metrics = surface_metrics(sim.fields.height)
        output.write_height(sim.fields.height)
        if args.json:
            source = sim.source()
            deterministic_meta = {
                "grid_size": sim.grid_size,
                "parameters": {
                    "mass_exponent": params.mass_exponent,
                    "volume_exponent": params.volume_exponent,
                    "height_km": params.height_km,
                },
                "source": {
                    "mass_kg": source.mass_kg,
                    "radius_m": source.radius_m,
                    "center_height_m": source.center_height_m,
                },
                "steps": sim.steps_taken,
                "simulated_seconds": sim.simulated_seconds,
                "frames": written_frames,
                "camera": {
                    "yaw": sim.camera.yaw,
                    "pitch": sim.camera.pitch,
                    "distance": sim.camera.distance,
                },
                "viewport": {
                    "width": args.width,
                    "height": args.height,
                    "pixel_ratio": args.pixel_ratio,
                },
                "config": config.to_dict(),
                "metrics": _metrics_dict(metrics),
            }
            meta = {
                **deterministic_meta,
                "generated_at_utc": datetime.now(timezone.utc).isoformat(),
                "run_seconds": run_seconds,
                "render_seconds": render_seconds,
                "python_version": platform.python_version(),
                "numpy_version": np.__version__,
            }
            output.write_json("deterministic_meta.json", deterministic_meta)
            output.write_json("meta.json", meta)

        out_dir = output.commit(project_root=Path.cwd())
    finally:
        output.discard()

    labels = describe_parameters(params)
    print(f"Simulated surface: {out_dir}")
    print(f"Mass {labels['mass']}; volume {labels['volume']}; height {labels['height']}")
    print(f"Grid {grid_label(sim.grid_size)}: {sim.steps_taken} steps ({sim.simulated_seconds:.2f} s simulated)")
    print(
        "Surface: "
        f"min={metrics.min_height_m:.1f}m, "
        f"max={metrics.max_height_m:.1f}m, "
        f"rms={metrics.rms_height_m:.1f}m, "
        f"peak at {metrics.peak_cell}"
    )
    print(f"Run time: {run_seconds:.3f} s (render {render_seconds:.3f} s)")
    print(f"Output files: {len(output.written)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
