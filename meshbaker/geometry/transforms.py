"""
Local-to-world transform helpers.

Rotations are quaternions in [w, x, y, z] order. Matrices are 4x4,
row-major, applied to column vectors (p' = M @ p).
"""

import math
from typing import List, Sequence

import numpy as np


def normalize_quaternion(quat: Sequence[float]) -> List[float]:
    """
    Normalize a quaternion to unit length and ensure consistent sign (w >= 0).

    Args:
        quat: Quaternion [w, x, y, z]

    Returns:
        Normalized quaternion [w, x, y, z] with w >= 0
    """
    w, x, y, z = quat
    magnitude = math.sqrt(w*w + x*x + y*y + z*z)
    if magnitude == 0:
        return [1.0, 0.0, 0.0, 0.0]

    normalized = [w/magnitude, x/magnitude, y/magnitude, z/magnitude]

    # q and -q are the same rotation
    if normalized[0] < 0:
        normalized = [-c for c in normalized]

    return normalized


def quaternion_to_matrix(quat: Sequence[float]) -> np.ndarray:
    """3x3 rotation matrix for a [w, x, y, z] quaternion."""
    w, x, y, z = normalize_quaternion(quat)
    return np.array([
        [1 - 2*(y*y + z*z), 2*(x*y - w*z),     2*(x*z + w*y)],
        [2*(x*y + w*z),     1 - 2*(x*x + z*z), 2*(y*z - w*x)],
        [2*(x*z - w*y),     2*(y*z + w*x),     1 - 2*(x*x + y*y)],
    ], dtype=np.float64)


def trs_matrix(
    position: Sequence[float] = (0, 0, 0),
    rotation: Sequence[float] = (1, 0, 0, 0),
    scale: Sequence[float] = (1, 1, 1),
) -> np.ndarray:
    """Compose translation * rotation * scale into a 4x4 matrix."""
    matrix = np.eye(4, dtype=np.float64)
    matrix[:3, :3] = quaternion_to_matrix(rotation) @ np.diag(np.asarray(scale, dtype=np.float64))
    matrix[:3, 3] = np.asarray(position, dtype=np.float64)
    return matrix


def transform_points(matrix: np.ndarray, points: np.ndarray) -> np.ndarray:
    points = np.asarray(points, dtype=np.float64)
    return points @ matrix[:3, :3].T + matrix[:3, 3]


def transform_normals(matrix: np.ndarray, normals: np.ndarray) -> np.ndarray:
    """
    Transform normals by the inverse-transpose of the linear part and renormalize.

    Uses the cofactor matrix (inverse-transpose times determinant), which is
    still defined for zero scale. Normals collapsed by a zero scale come out
    as zero vectors.
    """
    normals = np.asarray(normals, dtype=np.float64)
    linear = matrix[:3, :3]
    a, b, c = linear[:, 0], linear[:, 1], linear[:, 2]
    normal_matrix = np.column_stack([np.cross(b, c), np.cross(c, a), np.cross(a, b)])
    # Cofactors carry the determinant's sign; mirrored normals keep their side
    if np.linalg.det(linear) < 0:
        normal_matrix = -normal_matrix
    result = normals @ normal_matrix.T
    lengths = np.linalg.norm(result, axis=1, keepdims=True)
    lengths[lengths == 0] = 1.0
    return result / lengths


def flips_winding(matrix: np.ndarray) -> bool:
    """True for mirroring transforms, which turn triangles inside out."""
    return bool(np.linalg.det(matrix[:3, :3]) < 0)


def vertex_normals(vertices: np.ndarray, faces: np.ndarray) -> np.ndarray:
    """Area-weighted vertex normals from triangle faces."""
    vertices = np.asarray(vertices, dtype=np.float64)
    faces = np.asarray(faces, dtype=np.int64).reshape(-1, 3)
    normals = np.zeros_like(vertices)
    if len(faces):
        tris = vertices[faces]
        # Cross product length is twice the area, which gives the weighting
        face_normals = np.cross(tris[:, 1] - tris[:, 0], tris[:, 2] - tris[:, 0])
        for corner in range(3):
            np.add.at(normals, faces[:, corner], face_normals)
    lengths = np.linalg.norm(normals, axis=1, keepdims=True)
    # Unreferenced or degenerate vertices point up
    empty = lengths[:, 0] == 0
    normals[empty] = (0.0, 1.0, 0.0)
    lengths[empty] = 1.0
    return normals / lengths
