"""
Tests for asset stores
"""
import json

import trimesh
from PIL import Image

from meshbaker import BakeSettings, FileAssetStore, MeshBaker

from conftest import make_material, make_object, make_quad


class TestFileAssetStore:
    """Files written under the store root"""

    def test_image_and_import_settings(self, tmp_path):
        store = FileAssetStore(tmp_path)
        handle = store.save_image(Image.new('RGBA', (8, 8), (1, 2, 3, 255)), "Baked/BakedNormal00.png", linear=True, normal_map=True)

        assert handle.path == "Baked/BakedNormal00.png"
        with Image.open(tmp_path / "Baked" / "BakedNormal00.png") as img:
            assert img.getpixel((0, 0)) == (1, 2, 3, 255)
        sidecar = json.loads((tmp_path / "Baked" / "BakedNormal00.png.import.json").read_text())
        assert sidecar == {"texture_type": "normal_map", "srgb": False}

    def test_material_rewritten_on_change(self, tmp_path):
        store = FileAssetStore(tmp_path)
        material = store.create_material("Standard", "Baked/BakedMaterial00.json", {"_Glossiness": 0.5})
        image = store.save_image(Image.new('RGBA', (8, 8)), "Baked/BakedAlbedo00.png")
        store.set_material_image(material, "_MainTex", image)
        store.set_material_keyword(material, "_NORMALMAP")
        store.set_material_keyword(material, "_NORMALMAP")

        data = json.loads((tmp_path / "Baked" / "BakedMaterial00.json").read_text())
        assert data == {
            "shader": "Standard",
            "properties": {"_Glossiness": 0.5},
            "images": {"_MainTex": "Baked/BakedAlbedo00.png"},
            "keywords": ["_NORMALMAP"],
        }

    def test_full_bake_writes_files(self, tmp_path):
        objects = [
            make_object("a", make_quad("a"), make_material("a", ao=(9, 9, 9, 255))),
            make_object("b", make_quad("b"), make_material("b"), position=(2, 0, 0)),
        ]
        settings = BakeSettings(atlas_size=512, bake_ao=True, suffix="01")
        MeshBaker(settings, FileAssetStore(tmp_path)).bake(objects)

        folder = tmp_path / "Baked"
        for name in ["BakedAlbedo01.png", "BakedMetallic01.png", "BakedNormal01.png", "BakedAO01.png",
                     "BakedMaterial01.json", "BakedMesh01.glb"]:
            assert (folder / name).exists(), name

        loaded = trimesh.load(str(folder / "BakedMesh01.glb"), force='mesh')
        assert len(loaded.faces) == 4
