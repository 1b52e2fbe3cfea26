"""
Secondary (lightmap) UV generation.

Every sub-mesh of the combined mesh gets its own square tile in a grid
covering [0, 1]^2, so instances of one mesh never share lightmap texels.
Inside its tile a sub-mesh is box-projected: each vertex is assigned to
the box side its world normal points at most, projected onto that side's
plane and placed into the side's cell:

    +------+------+------+   v = 1
    |  -Y  |  +Z  |  -Z  |
    +------+------+------+
    |  +X  |  -X  |  +Y  |
    +------+------+------+   v = 0

Projections are normalized by the sub-mesh's own world bounds, so the set
is independent of the atlas UVs.
"""

import math

import numpy as np

CELL_COLUMNS = 3
CELL_ROWS = 2
CELL_PADDING = 0.02  # fraction of a cell kept empty on each side
TILE_PADDING = 0.01  # fraction of a tile kept empty on each side

# Dominant axis -> the two axes spanning its projection plane
_PROJECTION_AXES = {
    0: (2, 1),  # X: (z, y)
    1: (0, 2),  # Y: (x, z)
    2: (0, 1),  # Z: (x, y)
}


def _box_project(vertices: np.ndarray, normals: np.ndarray) -> np.ndarray:
    """Box-projected UVs in [0, 1] for one chart."""
    count = len(vertices)
    uv2 = np.zeros((count, 2), dtype=np.float64)
    if count == 0:
        return uv2

    low = vertices.min(axis=0)
    extent = vertices.max(axis=0) - low
    extent[extent == 0] = 1.0
    local = (vertices - low) / extent

    axis = np.argmax(np.abs(normals), axis=1)
    negative = normals[np.arange(count), axis] < 0
    cell = axis * 2 + negative.astype(np.int64)
    column = cell % CELL_COLUMNS
    row = cell // CELL_COLUMNS

    for dominant, (u_axis, v_axis) in _PROJECTION_AXES.items():
        mask = axis == dominant
        uv2[mask, 0] = local[mask, u_axis]
        uv2[mask, 1] = local[mask, v_axis]

    cell_w = 1.0 / CELL_COLUMNS
    cell_h = 1.0 / CELL_ROWS
    uv2[:, 0] = (column + CELL_PADDING + uv2[:, 0] * (1 - 2 * CELL_PADDING)) * cell_w
    uv2[:, 1] = (row + CELL_PADDING + uv2[:, 1] * (1 - 2 * CELL_PADDING)) * cell_h
    return uv2


def tile_grid_size(chart_count: int) -> int:
    """Tiles per side of the smallest square grid holding chart_count tiles."""
    return max(1, math.ceil(math.sqrt(chart_count)))


def generate_lightmap_uvs(vertices, normals, chart_sizes=None) -> np.ndarray:
    """
    Lightmap UVs in [0, 1] for every vertex.

    Args:
        vertices: (N, 3) world positions
        normals: (N, 3) world normals
        chart_sizes: Vertex count of each consecutive sub-mesh; each gets its
            own tile. Defaults to a single chart over all vertices.

    Returns:
        (N, 2) float64 array
    """
    vertices = np.asarray(vertices, dtype=np.float64).reshape(-1, 3)
    normals = np.asarray(normals, dtype=np.float64).reshape(-1, 3)
    count = len(vertices)
    if chart_sizes is None:
        chart_sizes = [count]
    if sum(chart_sizes) != count:
        raise ValueError(f"Chart sizes cover {sum(chart_sizes)} vertices, mesh has {count}")

    uv2 = np.zeros((count, 2), dtype=np.float64)
    tiles = tile_grid_size(len(chart_sizes))
    scale = (1 - 2 * TILE_PADDING) / tiles

    start = 0
    for index, size in enumerate(chart_sizes):
        end = start + size
        local = _box_project(vertices[start:end], normals[start:end])
        column, row = index % tiles, index // tiles
        uv2[start:end, 0] = (column + TILE_PADDING) / tiles + local[:, 0] * scale
        uv2[start:end, 1] = (row + TILE_PADDING) / tiles + local[:, 1] * scale
        start = end
    return uv2
