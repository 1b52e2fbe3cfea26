"""
Tests for the bake pipeline end to end
"""
import numpy as np
import pytest

from meshbaker import BakeSettings, BakeState, ChannelKind, MemoryAssetStore, MeshBaker
from meshbaker.baker import find_unique_sources, validate_selection
from meshbaker.exceptions import (
    InsufficientSelection,
    MissingRenderData,
    MissingRequiredChannel,
    PackingOverflow,
    TooManyUniqueSources,
)
from meshbaker.geometry import trs_matrix
from meshbaker.scene import SourceObject
from meshbaker.texturing import channel_baker

from conftest import make_material, make_object, make_quad, pixel_at


def _scenario_objects():
    """3 objects over 2 unique meshes: A lacks a normal map, B lacks a specular map."""
    mat_a = make_material("mat_a", albedo=(200, 0, 0, 255), specular=(30, 30, 30, 255))
    mat_b = make_material("mat_b", albedo=(0, 200, 0, 255), normal=(100, 100, 250, 255))
    mesh_a = make_quad("mesh_a")
    mesh_b = make_quad("mesh_b", size=2.0)
    return [
        make_object("a1", mesh_a, mat_a),
        make_object("b1", mesh_b, mat_b, position=(3, 0, 0)),
        make_object("a2", mesh_a, mat_a, position=(0, 3, 0)),
    ]


class TestScenario:
    """Two unique meshes, one instanced, with missing optional channels"""

    def setup_method(self):
        self.settings = BakeSettings(atlas_size=512, bake_specular=True, bake_normals=True, bake_ao=False)
        self.store = MemoryAssetStore()
        self.objects = _scenario_objects()
        self.baker = MeshBaker(self.settings, self.store)
        self.result = self.baker.bake(self.objects)

    def test_atlases_produced(self):
        """Albedo, Specular and Normal are baked; AO is off."""
        assert set(self.result.atlases) == {ChannelKind.ALBEDO, ChannelKind.SPECULAR, ChannelKind.NORMAL}
        assert ChannelKind.AO not in self.result.images
        assert not any("AO" in path for path in self.store.images)

    def test_every_atlas_has_two_entries_in_same_layout(self):
        """All channels share the Albedo placements."""
        albedo = self.result.atlases[ChannelKind.ALBEDO]
        assert len(albedo.placements) == 2
        for atlas in self.result.atlases.values():
            assert atlas.placements == albedo.placements

    def test_default_fills(self):
        """Missing channel images are filled with their defaults."""
        specular = self.result.atlases[ChannelKind.SPECULAR]
        normal = self.result.atlases[ChannelKind.NORMAL]
        assert pixel_at(specular.image, specular.placements[0]) == (30, 30, 30, 255)
        assert pixel_at(specular.image, specular.placements[1]) == (128, 128, 128, 255)
        assert pixel_at(normal.image, normal.placements[0]) == (128, 128, 255, 255)
        assert pixel_at(normal.image, normal.placements[1]) == (100, 100, 250, 255)

    def test_combined_vertex_count(self):
        """Every object contributes its vertices, instances included."""
        expected = sum(obj.mesh.vertex_count for obj in self.objects)
        assert self.result.mesh.vertex_count == expected == 12

    def test_instances_share_remapped_uvs(self):
        """Instances of one mesh carry the same atlas UVs."""
        assert len(self.result.remapped_uvs) == 2
        mesh_a = self.objects[0].mesh
        uvs = self.result.remapped_uvs[mesh_a]
        np.testing.assert_allclose(self.result.mesh.uv[0:4], uvs)
        np.testing.assert_allclose(self.result.mesh.uv[8:12], uvs)

    def test_uvs_inside_placements(self):
        """Remapped UVs stay inside their mesh placement."""
        for mesh, rect in zip([self.objects[0].mesh, self.objects[1].mesh], self.result.placements):
            uvs = self.result.remapped_uvs[mesh]
            assert uvs[:, 0].min() >= rect.x_min and uvs[:, 0].max() <= rect.x_max
            assert uvs[:, 1].min() >= rect.y_min and uvs[:, 1].max() <= rect.y_max

    def test_material(self):
        """Output material binds each atlas and enables its keywords."""
        asset = self.store.materials["Baked/BakedMaterial00.json"]
        assert asset.images == {
            "_MainTex": "Baked/BakedAlbedo00.png",
            "_SpecGlossMap": "Baked/BakedSpecular00.png",
            "_BumpMap": "Baked/BakedNormal00.png",
        }
        assert asset.keywords == ["_NORMALMAP", "_SPECGLOSSMAP"]

    def test_linear_channels(self):
        """Specular and Normal are stored linear, Albedo as sRGB."""
        assert self.store.import_settings["Baked/BakedSpecular00.png"].srgb is False
        assert self.store.import_settings["Baked/BakedNormal00.png"].srgb is False
        assert self.store.import_settings["Baked/BakedAlbedo00.png"].srgb is True

    def test_mesh_saved(self):
        """Combined mesh is written to the store."""
        assert self.result.mesh_handle.path == "Baked/BakedMesh00.glb"
        assert self.store.meshes["Baked/BakedMesh00.glb"] is self.result.mesh

    def test_state_done(self):
        """A successful bake ends in DONE without a failure."""
        assert self.baker.state == BakeState.DONE
        assert self.baker.failure is None


class TestWorkflow:
    """Specular vs metallic"""

    def test_metallic_when_first_material_has_no_specular(self):
        """First material decides the metallic workflow."""
        objects = [
            make_object("a", make_quad("a"), make_material("a")),
            make_object("b", make_quad("b"), make_material("b", specular=(1, 1, 1, 255))),
        ]
        store = MemoryAssetStore()
        result = MeshBaker(BakeSettings(atlas_size=512), store).bake(objects)
        assert ChannelKind.METALLIC in result.atlases
        assert ChannelKind.SPECULAR not in result.atlases
        assert "_METALLICGLOSSMAP" in result.material.asset.keywords
        assert "Baked/BakedMetallic00.png" in store.images

    def test_specular_srgb_toggle(self):
        """Legacy flag stores specular atlases as sRGB."""
        objects = _scenario_objects()
        store = MemoryAssetStore()
        MeshBaker(BakeSettings(atlas_size=512, specular_srgb=True), store).bake(objects)
        assert store.import_settings["Baked/BakedSpecular00.png"].srgb is True

    def test_albedo_only(self):
        """Disabling optional channels bakes Albedo alone."""
        objects = _scenario_objects()
        store = MemoryAssetStore()
        settings = BakeSettings(atlas_size=512, bake_specular=False, bake_normals=False, save_mesh=False)
        result = MeshBaker(settings, store).bake(objects)
        assert list(result.atlases) == [ChannelKind.ALBEDO]
        assert result.material.asset.keywords == []
        assert result.mesh_handle is None
        assert store.meshes == {}


class TestValidation:
    """Failures before any work happens"""

    def test_too_many_unique_meshes(self, monkeypatch):
        """Too many unique meshes fail before packing or writing."""
        def fail(*args, **kwargs):
            raise AssertionError("packing must not start")
        monkeypatch.setattr("meshbaker.baker.build_channel_atlas", fail)

        objects = [make_object(f"o{i}", make_quad(f"m{i}"), make_material(f"m{i}")) for i in range(5)]
        store = MemoryAssetStore()
        baker = MeshBaker(BakeSettings(atlas_size=512, max_unique_meshes=4), store)

        with pytest.raises(TooManyUniqueSources):
            baker.bake(objects)

        assert store.paths == []
        assert baker.state == BakeState.FAILED
        assert isinstance(baker.failure, TooManyUniqueSources)

    def test_single_object(self):
        """One object is not enough to bake."""
        store = MemoryAssetStore()
        with pytest.raises(InsufficientSelection):
            MeshBaker(BakeSettings(), store).bake([make_object("a", make_quad(), make_material("a"))])
        assert store.paths == []

    def test_missing_mesh(self):
        """An object without a mesh is named in the error."""
        objects = [
            make_object("a", make_quad(), make_material("a")),
            SourceObject("b", None, make_material("b")),
        ]
        with pytest.raises(MissingRenderData, match="'b'"):
            MeshBaker().bake(objects)

    def test_missing_material(self):
        """An object without a material is rejected."""
        objects = [
            make_object("a", make_quad(), make_material("a")),
            SourceObject("b", make_quad(), None),
        ]
        with pytest.raises(MissingRenderData):
            MeshBaker().bake(objects)

    def test_missing_albedo(self):
        """A material without Albedo aborts before any write."""
        material = make_material("plain")
        del material.images[ChannelKind.ALBEDO]
        objects = [
            make_object("a", make_quad("a"), make_material("a")),
            make_object("b", make_quad("b"), material),
        ]
        store = MemoryAssetStore()
        with pytest.raises(MissingRequiredChannel, match="plain"):
            MeshBaker(BakeSettings(atlas_size=512), store).bake(objects)
        assert store.paths == []

    def test_packing_overflow(self):
        """Images that do not fit the atlas fail the bake."""
        objects = [
            make_object("a", make_quad("a"), make_material("a", size=512)),
            make_object("b", make_quad("b"), make_material("b", size=512)),
        ]
        baker = MeshBaker(BakeSettings(atlas_size=512))
        with pytest.raises(PackingOverflow):
            baker.bake(objects)
        assert baker.state == BakeState.FAILED


class TestUniqueSources:
    """Deduplication by mesh identity"""

    def test_first_material_wins(self, caplog):
        """Shared meshes keep the first material and warn about others."""
        mesh = make_quad()
        first, second = make_material("first"), make_material("second")
        objects = [make_object("a", mesh, first), make_object("b", mesh, second)]
        uniques = find_unique_sources(objects)
        assert len(uniques) == 1
        assert uniques[0].material is first
        assert "second" in caplog.text

    def test_validate_selection_context(self):
        """Validation returns objects, unique meshes and workflow."""
        mesh = make_quad()
        material = make_material("m", specular=(1, 1, 1, 255))
        context = validate_selection(
            [make_object("a", mesh, material), make_object("b", mesh, material)],
            BakeSettings(),
        )
        assert len(context.objects) == 2
        assert context.meshes == [mesh]
        assert context.specular_workflow is True


class TestResolution:
    """Source images of different widths"""

    def test_larger_image_downscaled_before_packing(self):
        """Wider sources are scaled to the smallest width."""
        a = make_material("a", size=512)
        b = make_material("b", size=1024)
        objects = [make_object("a", make_quad("a"), a), make_object("b", make_quad("b"), b)]
        settings = BakeSettings(atlas_size=2048, bake_specular=False, bake_normals=False)
        result = MeshBaker(settings).bake(objects)

        albedo = result.atlases[ChannelKind.ALBEDO]
        assert [(box.width, box.height) for box in albedo.boxes] == [(512, 512), (512, 512)]
        assert albedo.image.size == (2048, 2048)


class TestDeterminism:
    """Same input, same layout"""

    def test_repeat_bake_same_layout(self):
        """Repeating a bake gives identical placements."""
        settings = BakeSettings(atlas_size=512)
        baker = MeshBaker(settings)
        first = baker.bake(_scenario_objects())
        second = baker.bake(_scenario_objects())
        assert first.placements == second.placements
        assert baker.state == BakeState.DONE


class TestNormalRestore:
    """Packed normal maps are restored exactly once per source image"""

    def test_restored_once_per_packed_normal(self, monkeypatch):
        """Each packed normal map is restored exactly once."""
        calls = []
        original = channel_baker.restore_normal_channel

        def counting(image):
            calls.append(id(image))
            return original(image)

        monkeypatch.setattr(channel_baker, "restore_normal_channel", counting)

        mat_a = make_material("a", normal=(0, 128, 255, 200))
        mat_b = make_material("b", normal=(0, 128, 255, 100))
        mat_a.packed_normals = mat_b.packed_normals = True
        objects = [
            make_object("a1", make_quad("a"), mat_a),
            make_object("b1", make_quad("b"), mat_b),
        ]
        objects.append(make_object("a2", objects[0].mesh, mat_a))

        result = MeshBaker(BakeSettings(atlas_size=512)).bake(objects)

        assert len(calls) == 2
        assert len(set(calls)) == 2
        normal = result.atlases[ChannelKind.NORMAL]
        assert pixel_at(normal.image, normal.placements[0])[0] == 200

    def test_not_restored_when_plain(self, monkeypatch):
        """Plain normal maps are left alone."""
        calls = []
        monkeypatch.setattr(channel_baker, "restore_normal_channel", lambda img: calls.append(img) or img)
        objects = [
            make_object("a", make_quad("a"), make_material("a", normal=(0, 128, 255, 200))),
            make_object("b", make_quad("b"), make_material("b")),
        ]
        MeshBaker(BakeSettings(atlas_size=512)).bake(objects)
        assert calls == []

    def test_shared_material_restored_once(self, monkeypatch):
        """Two meshes sharing one packed normal material restore its map once."""
        calls = []
        original = channel_baker.restore_normal_channel

        def counting(image):
            calls.append(id(image))
            return original(image)

        monkeypatch.setattr(channel_baker, "restore_normal_channel", counting)

        shared = make_material("shared", normal=(0, 128, 255, 170))
        shared.packed_normals = True
        objects = [
            make_object("a", make_quad("a"), shared),
            make_object("b", make_quad("b"), shared, position=(2, 0, 0)),
        ]

        result = MeshBaker(BakeSettings(atlas_size=512)).bake(objects)

        assert len(calls) == 1
        normal = result.atlases[ChannelKind.NORMAL]
        assert pixel_at(normal.image, normal.placements[0])[0] == 170
        assert pixel_at(normal.image, normal.placements[1])[0] == 170


class TestDegenerateTransforms:
    """Objects scaled flat"""

    def test_zero_scale_object_bakes(self):
        """An object with zero scale on one axis still bakes to DONE."""
        mesh = make_quad()
        material = make_material("m")
        objects = [
            make_object("a", mesh, material),
            SourceObject("flat", make_quad("flat"), make_material("flat"), trs_matrix(scale=(1, 1, 0))),
        ]
        baker = MeshBaker(BakeSettings(atlas_size=512))
        result = baker.bake(objects)

        assert baker.state == BakeState.DONE
        assert result.mesh.vertex_count == 8
        assert np.isfinite(result.mesh.normals).all()
