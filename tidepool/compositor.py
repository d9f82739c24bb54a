"""Painter's-algorithm scene composition into ordered draw commands."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

import numpy as np
from matplotlib.colors import hsv_to_rgb, to_rgba

from tidepool.camera import CameraBasis, OrbitCamera, Viewport, project_point, project_points
from tidepool.config import SceneConfig, SimulationConfig, SourceProperties
from tidepool.fields import FieldStore
from tidepool.mesher import project_surface, surface_z_units, z_scale

RGBA = tuple[float, float, float, float]


@dataclass(frozen=True)
class Face:
    """Transient quad: four world points, fill and mean projected depth."""

    world: np.ndarray
    screen: np.ndarray
    fill: RGBA
    depth: float


@dataclass(frozen=True)
class Polygon:
    points: np.ndarray
    fill: RGBA
    depth: float


@dataclass(frozen=True)
class TriangleBatch:
    """Surface triangles in emission order, two per cell."""

    vertices: np.ndarray
    fills: np.ndarray
    depths: np.ndarray
    cells: np.ndarray


@dataclass(frozen=True)
class Sphere:
    center: tuple[float, float]
    radius_px: float
    depth: float
    highlight_center: tuple[float, float]
    highlight_radius_px: float
    gradient: tuple[tuple[float, RGBA], ...]
    outline: RGBA
    outline_width: float


@dataclass(frozen=True)
class Polyline:
    points: np.ndarray
    stroke: RGBA
    width: float
    closed: bool = True


DrawCommand = Union[Polygon, TriangleBatch, Sphere, Polyline]


@dataclass(frozen=True)
class Frame:
    """Everything needed to paint one frame, back to front."""

    commands: tuple[DrawCommand, ...]
    grid_size: int
    viewport: Viewport
    background: RGBA

    def face_depths(self) -> list[float]:
        return [cmd.depth for cmd in self.commands if isinstance(cmd, Polygon)]

    def surface_depths(self) -> list[float]:
        """Depths of surface triangles and the sphere in emission order."""

        depths: list[float] = []
        for cmd in self.commands:
            if isinstance(cmd, TriangleBatch):
                depths.extend(float(d) for d in cmd.depths)
            elif isinstance(cmd, Sphere):
                depths.append(cmd.depth)
        return depths

    def sphere_index(self) -> int:
        """Number of surface cells drawn before the sphere."""

        drawn = 0
        for cmd in self.commands:
            if isinstance(cmd, Sphere):
                return drawn // 2
            if isinstance(cmd, TriangleBatch):
                drawn += len(cmd.depths)
        raise ValueError("frame has no sphere")


def collect_face(
    faces: list[Face],
    corners: list[tuple[float, float, float]],
    fill: RGBA,
    basis: CameraBasis,
    viewport: Viewport,
    *,
    near_depth: float,
) -> None:
    world = np.asarray(corners, dtype=np.float64)
    sx, sy, depth = project_points(world, basis, viewport, near_depth=near_depth)
    faces.append(
        Face(
            world=world,
            screen=np.stack((sx, sy), axis=-1),
            fill=fill,
            depth=float(depth.mean()),
        )
    )


def collect_seabed_faces(
    faces: list[Face],
    fields: FieldStore,
    basis: CameraBasis,
    viewport: Viewport,
    config: SimulationConfig,
) -> None:
    """Top and four sides of the static seabed slab."""

    scene = config.scene
    near = config.camera.near_depth
    h = fields.half
    z_top = 0.0
    z_bottom = -scene.seabed_thickness_m * z_scale(config)

    p0, p1, p2, p3 = (-h, -h, z_top), (h, -h, z_top), (h, h, z_top), (-h, h, z_top)
    b0, b1, b2, b3 = (-h, -h, z_bottom), (h, -h, z_bottom), (h, h, z_bottom), (-h, h, z_bottom)

    collect_face(faces, [p0, p1, p2, p3], to_rgba(scene.seabed_top_color), basis, viewport, near_depth=near)
    collect_face(faces, [p1, p2, b2, b1], to_rgba(scene.seabed_right_color), basis, viewport, near_depth=near)
    collect_face(faces, [p0, p3, b3, b0], to_rgba(scene.seabed_left_color), basis, viewport, near_depth=near)
    collect_face(faces, [p3, p2, b2, b3], to_rgba(scene.seabed_front_color), basis, viewport, near_depth=near)
    collect_face(faces, [p0, p1, b1, b0], to_rgba(scene.seabed_back_color), basis, viewport, near_depth=near)


def collect_water_side_faces(
    faces: list[Face],
    fields: FieldStore,
    basis: CameraBasis,
    viewport: Viewport,
    config: SimulationConfig,
) -> None:
    """One quad per edge cell on each of the four water walls."""

    scene = config.scene
    near = config.camera.near_depth
    right = to_rgba(scene.side_right_color, scene.side_alpha)
    left = to_rgba(scene.side_left_color, scene.side_alpha)
    front = to_rgba(scene.side_front_color, scene.side_alpha)
    back = to_rgba(scene.side_back_color, scene.side_alpha)

    n = fields.grid_size
    h = fields.half
    z = surface_z_units(fields.surface_nodes, config)
    z_base = 0.0

    for i in range(n):
        a = i - h
        b = i + 1 - h
        # surface_nodes is indexed [y, x]
        collect_face(
            faces,
            [(h, a, z_base), (h, b, z_base), (h, b, z[i + 1, n]), (h, a, z[i, n])],
            right,
            basis,
            viewport,
            near_depth=near,
        )
        collect_face(
            faces,
            [(-h, b, z_base), (-h, a, z_base), (-h, a, z[i, 0]), (-h, b, z[i + 1, 0])],
            left,
            basis,
            viewport,
            near_depth=near,
        )
        collect_face(
            faces,
            [(a, h, z_base), (b, h, z_base), (b, h, z[n, i + 1]), (a, h, z[n, i])],
            front,
            basis,
            viewport,
            near_depth=near,
        )
        collect_face(
            faces,
            [(b, -h, z_base), (a, -h, z_base), (a, -h, z[0, i]), (b, -h, z[0, i + 1])],
            back,
            basis,
            viewport,
            near_depth=near,
        )


def sort_faces(faces: list[Face]) -> list[Face]:
    """Farthest first; ties keep collection order."""

    return sorted(faces, key=lambda face: -face.depth)


def _corner_means(nodes: np.ndarray) -> np.ndarray:
    return (nodes[:-1, :-1] + nodes[:-1, 1:] + nodes[1:, 1:] + nodes[1:, :-1]) * 0.25


def prepare_surface_order(fields: FieldStore) -> None:
    """Recompute per-cell depth and re-sort the draw order far to near."""

    fields.cell_depth[...] = _corner_means(fields.node_depth)
    fields.cell_order[...] = np.argsort(-fields.cell_depth.ravel(), kind="stable")


def surface_lightness(
    average_height_m: np.ndarray,
    cell_depth: np.ndarray,
    camera_distance: float,
    scene: SceneConfig,
) -> np.ndarray:
    """HSL lightness in percent for each surface cell."""

    depth_shade = np.minimum(1.0, cell_depth / (camera_distance * scene.depth_shade_distance_scale))
    lightness = (
        scene.lightness_base
        + average_height_m * scene.lightness_height_gain
        - depth_shade * scene.lightness_depth_gain
    )
    return np.clip(lightness, scene.lightness_min, scene.lightness_max)


def hsl_to_rgba(hue_deg: float, saturation: float, lightness: np.ndarray, alpha: float) -> np.ndarray:
    """Vectorized HSL (lightness in [0, 1]) to RGBA via the HSV model."""

    light = np.asarray(lightness, dtype=np.float64)
    value = light + saturation * np.minimum(light, 1.0 - light)
    sat_v = np.where(value > 0.0, 2.0 * (1.0 - light / np.where(value > 0.0, value, 1.0)), 0.0)
    hsv = np.stack((np.full_like(light, (hue_deg % 360.0) / 360.0), sat_v, value), axis=-1)
    rgb = hsv_to_rgb(np.clip(hsv, 0.0, 1.0))
    alpha_channel = np.full(light.shape + (1,), alpha, dtype=np.float64)
    return np.concatenate((rgb, alpha_channel), axis=-1)


def surface_triangles(fields: FieldStore, camera_distance: float, scene: SceneConfig) -> TriangleBatch:
    """Two shaded triangles per cell, emitted in ``cell_order``."""

    order = fields.cell_order
    screen = np.stack((fields.node_screen_x, fields.node_screen_y), axis=-1)
    p00 = screen[:-1, :-1].reshape(-1, 2)[order]
    p10 = screen[:-1, 1:].reshape(-1, 2)[order]
    p11 = screen[1:, 1:].reshape(-1, 2)[order]
    p01 = screen[1:, :-1].reshape(-1, 2)[order]

    first = np.stack((p00, p10, p11), axis=1)
    second = np.stack((p00, p11, p01), axis=1)
    vertices = np.stack((first, second), axis=1).reshape(-1, 3, 2)

    depth = fields.cell_depth.ravel()[order]
    average_height = _corner_means(fields.surface_nodes).ravel()[order]
    lightness = surface_lightness(average_height, depth, camera_distance, scene)
    fills = hsl_to_rgba(scene.surface_hue_deg, scene.surface_saturation, lightness / 100.0, scene.surface_alpha)

    return TriangleBatch(
        vertices=vertices,
        fills=np.repeat(fills, 2, axis=0),
        depths=np.repeat(depth, 2),
        cells=np.repeat(order, 2),
    )


def sphere_insertion_index(sorted_depths: np.ndarray, sphere_depth: float) -> int:
    """Index of the first cell (far-to-near order) not farther than the sphere."""

    nearer = np.flatnonzero(np.asarray(sorted_depths) <= sphere_depth)
    if nearer.size == 0:
        return int(len(sorted_depths))
    return int(nearer[0])


def build_sphere(
    source: SourceProperties,
    basis: CameraBasis,
    viewport: Viewport,
    config: SimulationConfig,
) -> Sphere:
    scene = config.scene
    center_z = surface_z_units(source.center_height_m, config)
    radius_units = source.radius_m / config.physics.cell_meters
    center = project_point((0.0, 0.0, center_z), basis, viewport, near_depth=config.camera.near_depth)
    radius_px = viewport.focal_length * radius_units / center.depth

    ox, oy = scene.sphere_highlight_offset
    return Sphere(
        center=(center.x, center.y),
        radius_px=radius_px,
        depth=center.depth - radius_units,
        highlight_center=(center.x + radius_px * ox, center.y + radius_px * oy),
        highlight_radius_px=radius_px * scene.sphere_highlight_radius,
        gradient=tuple((offset, to_rgba(color)) for offset, color in scene.sphere_gradient),
        outline=to_rgba(scene.sphere_outline_color, scene.sphere_outline_alpha),
        outline_width=scene.sphere_outline_width,
    )


def surface_outline(fields: FieldStore, scene: SceneConfig) -> Polyline:
    """Closed stroke around the projected perimeter of the surface."""

    n = fields.grid_size
    xs = fields.node_screen_x
    ys = fields.node_screen_y
    rows = np.concatenate(
        (
            np.zeros(n + 1, dtype=np.int64),
            np.arange(1, n + 1),
            np.full(n, n),
            np.arange(n - 1, 0, -1),
        )
    )
    cols = np.concatenate(
        (
            np.arange(n + 1),
            np.full(n, n),
            np.arange(n - 1, -1, -1),
            np.zeros(n - 1, dtype=np.int64),
        )
    )
    return Polyline(
        points=np.stack((xs[rows, cols], ys[rows, cols]), axis=-1),
        stroke=to_rgba(scene.outline_color, scene.outline_alpha),
        width=scene.outline_width,
    )


def _split_batch(batch: TriangleBatch, start: int, stop: int) -> TriangleBatch:
    return TriangleBatch(
        vertices=batch.vertices[start:stop],
        fills=batch.fills[start:stop],
        depths=batch.depths[start:stop],
        cells=batch.cells[start:stop],
    )


def compose_frame(
    fields: FieldStore,
    camera: OrbitCamera,
    viewport: Viewport,
    source: SourceProperties,
    config: SimulationConfig,
) -> Frame:
    """Project, sort and emit the whole scene back to front."""

    basis = camera.basis()
    project_surface(fields, basis, viewport, config)
    prepare_surface_order(fields)

    faces: list[Face] = []
    collect_seabed_faces(faces, fields, basis, viewport, config)
    collect_water_side_faces(faces, fields, basis, viewport, config)
    commands: list[DrawCommand] = [
        Polygon(points=face.screen, fill=face.fill, depth=face.depth) for face in sort_faces(faces)
    ]

    sphere = build_sphere(source, basis, viewport, config)
    triangles = surface_triangles(fields, camera.distance, config.scene)
    split = 2 * sphere_insertion_index(fields.cell_depth.ravel()[fields.cell_order], sphere.depth)

    behind = _split_batch(triangles, 0, split)
    in_front = _split_batch(triangles, split, len(triangles.depths))
    if len(behind.depths):
        commands.append(behind)
    commands.append(sphere)
    if len(in_front.depths):
        commands.append(in_front)
    commands.append(surface_outline(fields, config.scene))

    return Frame(
        commands=tuple(commands),
        grid_size=fields.grid_size,
        viewport=viewport,
        background=to_rgba(config.scene.background_color),
    )
