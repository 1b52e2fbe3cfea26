"""
MeshBaker Advanced Example

Loads a scene manifest, bakes it in memory and inspects the intermediate
results (layout, remapped UVs, lightmap UVs) before writing anything.
"""

import sys

from meshbaker import BakeSettings, FileAssetStore, MemoryAssetStore, MeshBaker, load_scene

manifest = sys.argv[1] if len(sys.argv) > 1 else "scene.json"
objects = load_scene(manifest)

# Dry run first
store = MemoryAssetStore()
result = MeshBaker(BakeSettings(atlas_size=2048, bake_ao=True), store).bake(objects)

print("--- Layout ---")
for index, rect in enumerate(result.placements):
    print(f"  #{index}: u {rect.x_min:.3f}..{rect.x_max:.3f}  v {rect.y_min:.3f}..{rect.y_max:.3f}")

print("\n--- Remapped UVs ---")
for mesh, uvs in result.remapped_uvs.items():
    print(f"  {mesh.name}: {len(uvs)} UVs in [{uvs.min():.3f}, {uvs.max():.3f}]")

print("\n--- Would write ---")
for path in store.paths:
    print(f"  {path}")

# Then for real
MeshBaker(BakeSettings(atlas_size=2048, bake_ao=True), FileAssetStore("output")).bake(objects)
print("\nAll assets saved! Check the output/ directory.")
