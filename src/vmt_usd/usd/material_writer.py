"""Author and read material record layers.

A record layer holds one ``UsdShade.Material`` as its default prim. The
surface shader lives at ``<material>/Surface`` and every managed texture slot
gets a texture node named ``<material>/<slot>Texture``. Updating a record only
touches those texture nodes and the three managed shader inputs, so anything
else authored on the material survives repeated conversions.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from pxr import Gf, Sdf, Usd, UsdShade

from ..core.exceptions import MaterialRecordError
from ..core.models import MaterialRecord
from ..core.texture_keys import (
    SHADER_SLOT_INPUTS,
    SLOT_ALBEDO,
    SLOT_METALLIC,
    SLOT_NORMAL,
    TEXTURE_SLOTS,
)
from ..core.texture_paths import relative_asset_path
from .utils import find_shader_by_id, valid_prim_name


logger = logging.getLogger(__name__)

SURFACE_SHADER_NAME = "Surface"
ST_READER_NAME = "TexCoordReader"
MTLX_RENDER_CONTEXT = "mtlx"


@dataclass(frozen=True)
class _SlotWiring:
    input_type: Sdf.ValueTypeName
    preview_output: str
    preview_output_type: Sdf.ValueTypeName
    mtlx_signature: str
    color_space: str


_SLOT_WIRING: Dict[str, _SlotWiring] = {
    SLOT_ALBEDO: _SlotWiring(
        input_type=Sdf.ValueTypeNames.Color3f,
        preview_output="rgb",
        preview_output_type=Sdf.ValueTypeNames.Float3,
        mtlx_signature="color3",
        color_space="sRGB",
    ),
    SLOT_NORMAL: _SlotWiring(
        input_type=Sdf.ValueTypeNames.Normal3f,
        preview_output="rgb",
        preview_output_type=Sdf.ValueTypeNames.Float3,
        mtlx_signature="vector3",
        color_space="raw",
    ),
    SLOT_METALLIC: _SlotWiring(
        input_type=Sdf.ValueTypeNames.Float,
        preview_output="r",
        preview_output_type=Sdf.ValueTypeNames.Float,
        mtlx_signature="float",
        color_space="raw",
    ),
}


def _is_mtlx(shader_id: str) -> bool:
    return shader_id.startswith("ND_")


def texture_prim_name(slot: str) -> str:
    return f"{slot}Texture"


def _file_input(texture: UsdShade.Shader) -> UsdShade.Input:
    # inputs:file retyped outside the tool is replaced by an asset input.
    existing = texture.GetInput("file")
    if existing and existing.GetTypeName() != Sdf.ValueTypeNames.Asset:
        texture.GetPrim().RemoveProperty(existing.GetAttr().GetName())
    return texture.CreateInput("file", Sdf.ValueTypeNames.Asset)


class MaterialRecordWriter:
    """Write a material record's shader network into a stage.

    Attributes:
        stage: Stage holding the record layer.
        record: Record whose bindings are authored.
    """

    def __init__(self, stage: Usd.Stage, record: MaterialRecord) -> None:
        self.stage = stage
        self.record = record

    @property
    def _material_path(self) -> str:
        default_prim = self.stage.GetDefaultPrim()
        if default_prim:
            return str(default_prim.GetPath())
        return f"/{valid_prim_name(self.record.name)}"

    def create(self) -> UsdShade.Material:
        """Define the material, its surface shader and all bound textures."""
        material_path = f"/{valid_prim_name(self.record.name)}"
        material = UsdShade.Material.Define(self.stage, material_path)
        prim = material.GetPrim()
        prim.SetCustomDataByKey("source_material_name", self.record.name)
        prim.SetMetadata("displayName", self.record.name)
        self.stage.SetDefaultPrim(prim)

        shader = UsdShade.Shader.Define(
            self.stage, f"{material_path}/{SURFACE_SHADER_NAME}"
        )
        shader.CreateIdAttr(self.record.shader_id)
        render_context = MTLX_RENDER_CONTEXT if _is_mtlx(self.record.shader_id) else ""
        material.CreateSurfaceOutput(render_context).ConnectToSource(
            shader.ConnectableAPI(), "surface"
        )
        self._wire_textures(shader)
        return material

    def update(self) -> UsdShade.Shader:
        """Rewrite the managed texture bindings of an existing record."""
        material_prim = self.stage.GetPrimAtPath(self._material_path)
        shader = find_shader_by_id(material_prim, [self.record.shader_id])
        if shader is None:
            raise MaterialRecordError(
                "Material record has no supported surface shader.",
                details={
                    "path": str(self.record.path),
                    "shader_id": self.record.shader_id,
                },
            )
        self._wire_textures(shader)
        return shader

    def _wire_textures(self, shader: UsdShade.Shader) -> None:
        inputs = SHADER_SLOT_INPUTS.get(self.record.shader_id, {})
        for slot in TEXTURE_SLOTS:
            texture_path = self.record.textures.get(slot)
            input_name = inputs.get(slot)
            if texture_path is None or input_name is None:
                continue
            file_path = relative_asset_path(texture_path, self.record.path.parent)
            if _is_mtlx(self.record.shader_id):
                self._wire_mtlx_texture(shader, slot, input_name, file_path)
            else:
                self._wire_preview_texture(shader, slot, input_name, file_path)

    def _st_reader(self) -> UsdShade.Shader:
        reader = UsdShade.Shader.Define(
            self.stage, f"{self._material_path}/{ST_READER_NAME}"
        )
        reader.CreateIdAttr("UsdPrimvarReader_float2")
        reader.CreateInput("varname", Sdf.ValueTypeNames.Token).Set("st")
        return reader

    def _wire_preview_texture(
        self, shader: UsdShade.Shader, slot: str, input_name: str, file_path: str
    ) -> None:
        wiring = _SLOT_WIRING[slot]
        texture = UsdShade.Shader.Define(
            self.stage, f"{self._material_path}/{texture_prim_name(slot)}"
        )
        texture.CreateIdAttr("UsdUVTexture")
        _file_input(texture).Set(file_path)
        texture.CreateInput("wrapS", Sdf.ValueTypeNames.Token).Set("repeat")
        texture.CreateInput("wrapT", Sdf.ValueTypeNames.Token).Set("repeat")
        texture.CreateInput("sourceColorSpace", Sdf.ValueTypeNames.Token).Set(
            wiring.color_space
        )
        texture.CreateInput("st", Sdf.ValueTypeNames.Float2).ConnectToSource(
            self._st_reader().ConnectableAPI(), "result"
        )
        if slot == SLOT_NORMAL:
            texture.CreateInput("scale", Sdf.ValueTypeNames.Float4).Set(
                Gf.Vec4f(2.0, 2.0, 2.0, 1.0)
            )
            texture.CreateInput("bias", Sdf.ValueTypeNames.Float4).Set(
                Gf.Vec4f(-1.0, -1.0, -1.0, 0.0)
            )
        texture.CreateOutput(wiring.preview_output, wiring.preview_output_type)
        shader.CreateInput(input_name, wiring.input_type).ConnectToSource(
            texture.ConnectableAPI(), wiring.preview_output
        )

    def _wire_mtlx_texture(
        self, shader: UsdShade.Shader, slot: str, input_name: str, file_path: str
    ) -> None:
        wiring = _SLOT_WIRING[slot]
        texture = UsdShade.Shader.Define(
            self.stage, f"{self._material_path}/{texture_prim_name(slot)}"
        )
        texture.CreateIdAttr(f"ND_image_{wiring.mtlx_signature}")
        _file_input(texture).Set(file_path)
        if slot == SLOT_NORMAL:
            normal_map = UsdShade.Shader.Define(
                self.stage, f"{self._material_path}/normalMap"
            )
            normal_map.CreateIdAttr("ND_normalmap")
            normal_map.CreateInput("in", Sdf.ValueTypeNames.Float3).ConnectToSource(
                texture.ConnectableAPI(), "out"
            )
            shader.CreateInput(input_name, Sdf.ValueTypeNames.Float3).ConnectToSource(
                normal_map.ConnectableAPI(), "out"
            )
            return
        shader.CreateInput(input_name, wiring.input_type).ConnectToSource(
            texture.ConnectableAPI(), "out"
        )


def read_record(stage: Usd.Stage, path: Path) -> MaterialRecord:
    """Build a MaterialRecord from an opened record layer.

    Args:
        stage: Stage opened on the record file.
        path: Record file path, used to resolve relative texture paths.

    Returns:
        MaterialRecord: Record with its current texture bindings.

    Raises:
        MaterialRecordError: If the layer holds no usable material.
    """
    material_prim = stage.GetDefaultPrim()
    if not material_prim or not material_prim.IsA(UsdShade.Material):
        raise MaterialRecordError(
            "Material record has no default material prim.",
            details={"path": str(path)},
        )
    shader = find_shader_by_id(material_prim, SHADER_SLOT_INPUTS.keys())
    if shader is None:
        raise MaterialRecordError(
            "Material record has no supported surface shader.",
            details={"path": str(path)},
        )

    record = MaterialRecord(
        path=path,
        name=str(
            material_prim.GetCustomDataByKey("source_material_name")
            or material_prim.GetName()
        ),
        shader_id=str(shader.GetIdAttr().Get()),
    )
    for slot in TEXTURE_SLOTS:
        texture_path = _texture_file(stage, material_prim, slot, path.parent)
        if texture_path is not None:
            record.textures[slot] = texture_path
    return record


def _texture_file(
    stage: Usd.Stage, material_prim: Usd.Prim, slot: str, anchor_dir: Path
) -> Optional[Path]:
    prim = stage.GetPrimAtPath(
        material_prim.GetPath().AppendChild(texture_prim_name(slot))
    )
    if not prim:
        return None
    file_input = UsdShade.Shader(prim).GetInput("file")
    if not file_input:
        return None
    asset = file_input.Get()
    if asset is None:
        return None
    if not isinstance(asset, Sdf.AssetPath):
        logger.warning(
            "Ignoring %s: inputs:file is not an asset path (%r).", prim.GetPath(), asset
        )
        return None
    if not asset.path:
        return None
    return Path(os.path.normpath(str(anchor_dir / asset.path)))
