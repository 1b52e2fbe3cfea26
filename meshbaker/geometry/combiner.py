"""
Mesh combining: merges every selected object into one vertex/index buffer.

Each object contributes a world-space copy of its mesh whose UVs are
replaced by the atlas-space UVs of that mesh. Instances share one remapped
UV array but still each add their own vertices.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Sequence

import numpy as np
import trimesh
from trimesh.visual import TextureVisuals

from meshbaker.geometry.lightmap import generate_lightmap_uvs
from meshbaker.geometry.transforms import flips_winding, transform_normals, transform_points

logger = logging.getLogger(__name__)

# 16-bit indices address at most 65535 vertices
WIDE_INDEX_THRESHOLD = 65536


def index_format(vertex_count: int) -> str:
    """'uint32' when vertex_count reaches WIDE_INDEX_THRESHOLD, else 'uint16'."""
    return 'uint32' if vertex_count >= WIDE_INDEX_THRESHOLD else 'uint16'


@dataclass
class CombinedMesh:
    """
    Merged output geometry.

    Attributes:
        vertices: (N, 3) world positions
        normals: (N, 3) world normals
        uv: (N, 2) atlas-space UVs
        uv2: (N, 2) lightmap UVs
        faces: (F, 3) indices, uint16 or uint32 (see index_format)
    """
    vertices: np.ndarray
    normals: np.ndarray
    uv: np.ndarray
    uv2: np.ndarray
    faces: np.ndarray

    @property
    def vertex_count(self) -> int:
        return len(self.vertices)

    @property
    def index_format(self) -> str:
        return str(self.faces.dtype)

    def to_trimesh(self) -> trimesh.Trimesh:
        """Exportable trimesh carrying positions, normals and atlas UVs."""
        return trimesh.Trimesh(
            vertices=self.vertices,
            faces=self.faces.astype(np.int64),
            vertex_normals=self.normals,
            visual=TextureVisuals(uv=self.uv),
            process=False,
        )


def combine(objects: Sequence, remapped_uvs: Dict) -> CombinedMesh:
    """
    Combine objects into one mesh.

    Args:
        objects: Source objects, each with a mesh and a 4x4 transform
        remapped_uvs: SourceMesh -> (N, 2) atlas-space UVs

    Returns:
        CombinedMesh with indices offset per sub-mesh

    Raises:
        ValueError: If there is nothing to combine or a mesh has no remapped UVs
    """
    if not objects:
        raise ValueError("No objects to combine")

    vertices, normals, uvs, faces = [], [], [], []
    offset = 0
    for obj in objects:
        mesh = obj.mesh
        if mesh not in remapped_uvs:
            raise ValueError(f"No remapped UVs for mesh '{mesh.name}' of object '{obj.name}'")

        sub_faces = mesh.faces + offset
        if flips_winding(obj.transform):
            sub_faces = sub_faces[:, [0, 2, 1]]

        vertices.append(transform_points(obj.transform, mesh.vertices))
        normals.append(transform_normals(obj.transform, mesh.normals))
        uvs.append(np.asarray(remapped_uvs[mesh], dtype=np.float64))
        faces.append(sub_faces)
        offset += mesh.vertex_count

    all_vertices = np.concatenate(vertices)
    all_normals = np.concatenate(normals)
    fmt = index_format(len(all_vertices))

    combined = CombinedMesh(
        vertices=all_vertices,
        normals=all_normals,
        uv=np.concatenate(uvs),
        uv2=generate_lightmap_uvs(all_vertices, all_normals, [obj.mesh.vertex_count for obj in objects]),
        faces=np.concatenate(faces).astype(fmt),
    )
    logger.info(
        f"Combined {len(objects)} objects into {combined.vertex_count} vertices, "
        f"{len(combined.faces)} triangles ({fmt} indices)"
    )
    return combined
