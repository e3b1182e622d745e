import pytest

from pxr import Usd, UsdShade

from vmt_usd.usd.utils import find_shader_by_id, iter_shaders, valid_prim_name


def test_iter_shaders_walks_nested_shaders():
    """Ensure iter_shaders visits descendants and skips non-shader prims."""
    stage = Usd.Stage.CreateInMemory()
    material = UsdShade.Material.Define(stage, "/brick")
    UsdShade.Shader.Define(stage, "/brick/Surface")
    stage.DefinePrim("/brick/nodes", "Scope")
    UsdShade.Shader.Define(stage, "/brick/nodes/albedoTexture")

    names = [shader.GetPrim().GetName() for shader in iter_shaders(material.GetPrim())]

    assert names == ["Surface", "albedoTexture"]


def test_iter_shaders_ignores_invalid_prim():
    stage = Usd.Stage.CreateInMemory()

    assert list(iter_shaders(stage.GetPrimAtPath("/missing"))) == []


def test_find_shader_by_id_matches_id():
    stage = Usd.Stage.CreateInMemory()
    material = UsdShade.Material.Define(stage, "/brick")
    texture = UsdShade.Shader.Define(stage, "/brick/albedoTexture")
    texture.CreateIdAttr("UsdUVTexture")
    surface = UsdShade.Shader.Define(stage, "/brick/Surface")
    surface.CreateIdAttr("UsdPreviewSurface")

    found = find_shader_by_id(material.GetPrim(), ["UsdPreviewSurface"])

    assert found.GetPath() == surface.GetPath()
    assert find_shader_by_id(material.GetPrim(), ["ND_standard_surface"]) is None


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("brick", "brick"),
        ("brick-wall 01", "brick_wall_01"),
        ("01_floor", "_1_floor"),
        ("", "Material"),
    ],
)
def test_valid_prim_name(name, expected):
    assert valid_prim_name(name) == expected
