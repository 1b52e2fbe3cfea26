"""Geometry: transforms, mesh combining and lightmap UVs."""
from .transforms import normalize_quaternion, quaternion_to_matrix, trs_matrix
from .combiner import CombinedMesh, combine, index_format, WIDE_INDEX_THRESHOLD
from .lightmap import generate_lightmap_uvs

__all__ = [
    'normalize_quaternion',
    'quaternion_to_matrix',
    'trs_matrix',
    'CombinedMesh',
    'combine',
    'index_format',
    'WIDE_INDEX_THRESHOLD',
    'generate_lightmap_uvs',
]
