"""Pillow rasterization of composed frames."""

from __future__ import annotations

import numpy as np
from PIL import Image, ImageDraw

from tidepool.compositor import RGBA, Frame, Polygon, Polyline, Sphere, TriangleBatch


def _rgba_u8(color: RGBA | np.ndarray) -> tuple[int, int, int, int]:
    r, g, b, a = (float(c) for c in color)
    return (
        int(round(r * 255.0)),
        int(round(g * 255.0)),
        int(round(b * 255.0)),
        int(round(a * 255.0)),
    )


def _points(points: np.ndarray, ratio: float) -> list[tuple[float, float]]:
    return [(float(x) * ratio, float(y) * ratio) for x, y in points]


def sphere_gradient_rgb(sphere: Sphere, size: tuple[int, int], origin: tuple[int, int], ratio: float) -> np.ndarray:
    """Radial gradient from the highlight point outward, sampled on a pixel box."""

    width, height = size
    ys, xs = np.indices((height, width), dtype=np.float64)
    xs = (xs + origin[0] + 0.5) / ratio
    ys = (ys + origin[1] + 0.5) / ratio

    hx, hy = sphere.highlight_center
    cx, cy = sphere.center
    reach = sphere.radius_px + np.hypot(cx - hx, cy - hy) - sphere.highlight_radius_px
    t = (np.hypot(xs - hx, ys - hy) - sphere.highlight_radius_px) / max(reach, 1e-6)
    t = np.clip(t, 0.0, 1.0)

    offsets = np.array([offset for offset, _ in sphere.gradient], dtype=np.float64)
    colors = np.array([color[:3] for _, color in sphere.gradient], dtype=np.float64) * 255.0
    channels = [np.interp(t, offsets, colors[:, k]) for k in range(3)]
    return np.stack(channels, axis=-1).astype(np.uint8)


def _draw_sphere(image: Image.Image, draw: ImageDraw.ImageDraw, sphere: Sphere, ratio: float) -> None:
    cx, cy = sphere.center
    r = sphere.radius_px
    if r <= 0.0 or not np.isfinite(r):
        return

    left = max(int(np.floor((cx - r) * ratio)), 0)
    top = max(int(np.floor((cy - r) * ratio)), 0)
    right = min(int(np.ceil((cx + r) * ratio)), image.width)
    bottom = min(int(np.ceil((cy + r) * ratio)), image.height)
    if right > left and bottom > top:
        size = (right - left, bottom - top)
        fill = Image.fromarray(sphere_gradient_rgb(sphere, size, (left, top), ratio))
        mask = Image.new("L", size, 0)
        ImageDraw.Draw(mask).ellipse(
            ((cx - r) * ratio - left, (cy - r) * ratio - top, (cx + r) * ratio - left, (cy + r) * ratio - top),
            fill=255,
        )
        image.paste(fill, (left, top), mask)

    draw.ellipse(
        ((cx - r) * ratio, (cy - r) * ratio, (cx + r) * ratio, (cy + r) * ratio),
        outline=_rgba_u8(sphere.outline),
        width=max(1, int(round(sphere.outline_width * ratio))),
    )


def render_image(frame: Frame) -> Image.Image:
    """Paint ``frame`` in command order onto a new RGB image."""

    ratio = frame.viewport.pixel_ratio
    size = (
        max(1, int(round(frame.viewport.width * ratio))),
        max(1, int(round(frame.viewport.height * ratio))),
    )
    image = Image.new("RGB", size, _rgba_u8(frame.background)[:3])
    draw = ImageDraw.Draw(image, "RGBA")

    for cmd in frame.commands:
        if isinstance(cmd, Polygon):
            draw.polygon(_points(cmd.points, ratio), fill=_rgba_u8(cmd.fill))
        elif isinstance(cmd, TriangleBatch):
            for triangle, fill in zip(cmd.vertices, cmd.fills):
                draw.polygon(_points(triangle, ratio), fill=_rgba_u8(fill))
        elif isinstance(cmd, Sphere):
            _draw_sphere(image, draw, cmd, ratio)
        elif isinstance(cmd, Polyline):
            points = _points(cmd.points, ratio)
            if cmd.closed and points:
                points.append(points[0])
            draw.line(points, fill=_rgba_u8(cmd.stroke), width=max(1, int(round(cmd.width * ratio))))
        else:
            raise TypeError(f"unknown draw command: {type(cmd).__name__}")
    return image
