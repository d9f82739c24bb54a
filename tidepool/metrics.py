"""Surface state summaries."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class SurfaceMetrics:
    """Height-field statistics in meters."""

    min_height_m: float
    max_height_m: float
    mean_height_m: float
    rms_height_m: float
    peak_abs_height_m: float
    peak_cell: tuple[int, int]
    center_height_m: float
    finite: bool


def surface_metrics(height_m: np.ndarray) -> SurfaceMetrics:
    """Summarize a square height field; ``peak_cell`` is ``(x, y)``."""

    if height_m.ndim != 2:
        raise ValueError("height_m must be 2D")

    rows, cols = height_m.shape
    finite = bool(np.isfinite(height_m).all())
    magnitude = np.abs(np.nan_to_num(height_m, nan=0.0, posinf=0.0, neginf=0.0))
    peak_y, peak_x = np.unravel_index(int(np.argmax(magnitude)), height_m.shape)
    # Mean of the (up to) four cells touching the grid centre.
    center = height_m[(rows - 1) // 2 : rows // 2 + 1, (cols - 1) // 2 : cols // 2 + 1]

    return SurfaceMetrics(
        min_height_m=float(np.min(height_m)),
        max_height_m=float(np.max(height_m)),
        mean_height_m=float(np.mean(height_m)),
        rms_height_m=float(np.sqrt(np.mean(np.square(height_m)))),
        peak_abs_height_m=float(magnitude[peak_y, peak_x]),
        peak_cell=(int(peak_x), int(peak_y)),
        center_height_m=float(np.mean(center)),
        finite=finite,
    )
