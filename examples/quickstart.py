"""
MeshBaker Quick Start Example

Builds three crates from two meshes in code and bakes them into one mesh
with one material under output/Baked/.
"""

from PIL import Image

from meshbaker import BakeSettings, FileAssetStore, MaterialDescriptor, MeshBaker, SourceMesh, SourceObject
from meshbaker.geometry import trs_matrix

quad = SourceMesh(
    name="quad",
    vertices=[[0, 0, 0], [1, 0, 0], [1, 1, 0], [0, 1, 0]],
    uvs=[[0, 0], [1, 0], [1, 1], [0, 1]],
    faces=[[0, 1, 2], [0, 2, 3]],
)
big_quad = SourceMesh(
    name="big_quad",
    vertices=[[0, 0, 0], [2, 0, 0], [2, 2, 0], [0, 2, 0]],
    uvs=[[0, 0], [1, 0], [1, 1], [0, 1]],
    faces=[[0, 1, 2], [0, 2, 3]],
)

wood = MaterialDescriptor("wood", images={"Albedo": Image.new('RGBA', (256, 256), (140, 90, 40, 255))})
metal = MaterialDescriptor("metal", images={
    "Albedo": Image.new('RGBA', (512, 512), (160, 160, 170, 255)),
    "Metallic": Image.new('RGBA', (512, 512), (230, 230, 230, 255)),
})

objects = [
    SourceObject("crate_1", quad, wood, trs_matrix(position=(0, 0, 0))),
    SourceObject("crate_2", quad, wood, trs_matrix(position=(2, 0, 0))),
    SourceObject("panel", big_quad, metal, trs_matrix(position=(0, 2, 0))),
]

settings = BakeSettings(atlas_size=1024, bake_ao=True)
result = MeshBaker(settings, FileAssetStore("output")).bake(objects)

for kind, handle in result.images.items():
    print(f"✅ {kind.value}: output/{handle.path}")
print(f"✅ Mesh: {result.mesh.vertex_count} vertices, {result.mesh.index_format} indices")
