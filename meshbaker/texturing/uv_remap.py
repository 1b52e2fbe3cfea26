"""
UV remapping from a mesh's own [0, 1] UV space into its atlas placement.
"""

from typing import Dict, Sequence

import numpy as np

from meshbaker.texturing.atlas_packer import Rect


def remap_uvs(uvs, placement: Rect) -> np.ndarray:
    """
    Map UVs into the placement rectangle.

        u' = lerp(x_min, x_max, u)
        v' = lerp(y_min, y_max, v)

    UVs are clamped to [0, 1] first, so results never leave the placement.

    Args:
        uvs: (N, 2) UVs in the mesh's own texture space
        placement: Normalized atlas-space rectangle of the mesh's images

    Returns:
        New (N, 2) float64 array of atlas-space UVs
    """
    uvs = np.clip(np.asarray(uvs, dtype=np.float64).reshape(-1, 2), 0.0, 1.0)
    remapped = np.empty_like(uvs)
    remapped[:, 0] = placement.x_min + (placement.x_max - placement.x_min) * uvs[:, 0]
    remapped[:, 1] = placement.y_min + (placement.y_max - placement.y_min) * uvs[:, 1]
    return remapped


def remap_meshes(meshes: Sequence, placements: Sequence[Rect]) -> Dict:
    """Remap each mesh's UVs into the placement at the same index."""
    if len(meshes) != len(placements):
        raise ValueError(f"Got {len(meshes)} meshes but {len(placements)} placements")
    return {mesh: remap_uvs(mesh.uvs, rect) for mesh, rect in zip(meshes, placements)}
