"""Staged output for simulation runs.

Frames, the final height field and metadata are written into a hidden staging
directory beside the run directory. ``commit`` swaps them in, so an interrupted
run never leaves a half-written run directory behind.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import json
from pathlib import Path
import shutil
import tempfile
from typing import Any

import numpy as np
from PIL import Image


def run_slug(mass_exponent: float, volume_exponent: float, height_km: float) -> str:
    """Directory-safe name for one parameter set, e.g. ``m24_v7_h50``."""

    def _fmt(value: float) -> str:
        return f"{value:g}".replace("-", "n").replace(".", "p")

    return f"m{_fmt(mass_exponent)}_v{_fmt(volume_exponent)}_h{_fmt(height_km)}"


def frame_filename(frame_idx: int) -> str:
    return f"frame_{frame_idx:05d}.png"


def _require_inside(path: Path, parent: Path, what: str) -> None:
    try:
        path.resolve().relative_to(parent.resolve())
    except ValueError as exc:
        raise ValueError(f"{what} {path} is outside {parent}") from exc


@dataclass
class RunOutput:
    """One run directory ``<root>/<slug>/<N>x<N>`` fed through a staging directory."""

    root: Path
    run_dir: Path
    staging_dir: Path
    written: list[str] = field(default_factory=list)

    @classmethod
    def open(
        cls,
        out_root: str | Path,
        slug: str,
        grid_size: int,
        *,
        overwrite: bool,
    ) -> RunOutput:
        root = Path(out_root)
        run_dir = root / slug / f"{grid_size}x{grid_size}"
        if run_dir.is_dir() and any(run_dir.iterdir()) and not overwrite:
            raise FileExistsError(
                f"Output directory already exists and is not empty: {run_dir}. Use --overwrite to replace files."
            )
        run_dir.parent.mkdir(parents=True, exist_ok=True)
        staging_dir = Path(tempfile.mkdtemp(prefix=f".{run_dir.name}-staging-", dir=str(run_dir.parent)))
        return cls(root=root, run_dir=run_dir, staging_dir=staging_dir)

    def _staged(self, name: str) -> Path:
        self.written.append(name)
        return self.staging_dir / name

    def write_frame(self, frame_idx: int, image: Image.Image) -> str:
        name = frame_filename(frame_idx)
        image.save(self._staged(name), format="PNG")
        return name

    def write_height(self, height_m: np.ndarray, name: str = "height.npy") -> None:
        np.save(self._staged(name), np.asarray(height_m, dtype=np.float64), allow_pickle=False)

    def write_json(self, name: str, payload: dict[str, Any]) -> None:
        text = json.dumps(payload, indent=2, sort_keys=True)
        self._staged(name).write_text(text + "\n", encoding="utf-8")

    def commit(self, *, project_root: Path) -> Path:
        """Replace the run directory's contents with everything staged so far.

        The run directory must sit under ``root`` and ``root`` under
        ``project_root``; nothing is deleted otherwise.
        """

        _require_inside(self.run_dir, self.root, "run directory")
        _require_inside(self.root, project_root, "output root")

        self.run_dir.mkdir(parents=True, exist_ok=True)
        for stale in self.run_dir.iterdir():
            if stale.is_dir() and not stale.is_symlink():
                shutil.rmtree(stale)
            else:
                stale.unlink()
        for name in self.written:
            shutil.move(str(self.staging_dir / name), str(self.run_dir / name))
        self.discard()
        return self.run_dir

    def discard(self) -> None:
        shutil.rmtree(self.staging_dir, ignore_errors=True)
