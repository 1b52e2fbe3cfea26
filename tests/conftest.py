"""
Shared builders for bake tests: small inline meshes and solid-color materials.
"""
import numpy as np
import pytest
from PIL import Image

from meshbaker.channels import ChannelKind
from meshbaker.geometry.transforms import trs_matrix
from meshbaker.scene import MaterialDescriptor, SourceMesh, SourceObject


def make_quad(name="quad", size=1.0):
    """Unit quad in the XY plane facing +Z, UVs covering [0, 1]."""
    s = size
    return SourceMesh(
        name=name,
        vertices=[[0, 0, 0], [s, 0, 0], [s, s, 0], [0, s, 0]],
        uvs=[[0, 0], [1, 0], [1, 1], [0, 1]],
        faces=[[0, 1, 2], [0, 2, 3]],
    )


def make_material(name, albedo=(255, 0, 0, 255), size=64, **channels):
    """Material with a solid albedo plus optional solid channel images given as colors."""
    images = {ChannelKind.ALBEDO: Image.new('RGBA', (size, size), albedo)}
    for key, color in channels.items():
        images[ChannelKind[key.upper()]] = Image.new('RGBA', (size, size), color)
    return MaterialDescriptor(name=name, images=images)


def make_object(name, mesh, material, position=(0, 0, 0)):
    return SourceObject(name=name, mesh=mesh, material=material, transform=trs_matrix(position))


@pytest.fixture
def quad():
    return make_quad()


@pytest.fixture
def two_quads():
    """Two objects, two unique meshes, albedo only."""
    red = make_material("red", albedo=(255, 0, 0, 255))
    blue = make_material("blue", albedo=(0, 0, 255, 255))
    return [
        make_object("a", make_quad("mesh_a"), red),
        make_object("b", make_quad("mesh_b"), blue, position=(2, 0, 0)),
    ]


def pixel_at(image, rect, size=None):
    """RGBA of the atlas pixel at the center of a normalized rect (bottom-left origin)."""
    size = size or image.size[0]
    u = (rect.x_min + rect.x_max) / 2
    v = (rect.y_min + rect.y_max) / 2
    x = int(u * size)
    y = size - 1 - int(v * size)
    return image.getpixel((x, y))


def as_array(image):
    return np.asarray(image.convert('RGBA'))
