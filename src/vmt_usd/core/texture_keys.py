from typing import Dict, Mapping, Optional


SLOT_ALBEDO = "albedo"
SLOT_NORMAL = "normal"
SLOT_METALLIC = "metallic"

TEXTURE_SLOTS = (SLOT_ALBEDO, SLOT_NORMAL, SLOT_METALLIC)

# $phongexponenttexture stands in for the metallic map.
_VMT_KEY_SLOTS = [
    ("$basetexture", SLOT_ALBEDO),
    ("$bumpmap", SLOT_NORMAL),
    ("$phongexponenttexture", SLOT_METALLIC),
]

PREVIEW_SURFACE_ID = "UsdPreviewSurface"
MTLX_STANDARD_SURFACE_ID = "ND_standard_surface_surfaceshader"
MTLX_OPENPBR_SURFACE_ID = "ND_open_pbr_surface_surfaceshader"

DEFAULT_SHADER_NAME = "UsdPreviewSurface"

DEFAULT_SHADER_REGISTRY: Dict[str, str] = {
    "UsdPreviewSurface": PREVIEW_SURFACE_ID,
    "standard_surface": MTLX_STANDARD_SURFACE_ID,
    "open_pbr_surface": MTLX_OPENPBR_SURFACE_ID,
}

# Base color map, normal map and metallic map inputs per surface shader.
SHADER_SLOT_INPUTS: Dict[str, Dict[str, str]] = {
    PREVIEW_SURFACE_ID: {
        SLOT_ALBEDO: "diffuseColor",
        SLOT_NORMAL: "normal",
        SLOT_METALLIC: "metallic",
    },
    MTLX_STANDARD_SURFACE_ID: {
        SLOT_ALBEDO: "base_color",
        SLOT_NORMAL: "normal",
        SLOT_METALLIC: "metalness",
    },
    MTLX_OPENPBR_SURFACE_ID: {
        SLOT_ALBEDO: "base_color",
        SLOT_NORMAL: "geometry_normal",
        SLOT_METALLIC: "base_metalness",
    },
}


def vmt_key_slots() -> Mapping[str, str]:
    """Return the recognized VMT keys mapped to their texture slots."""
    return dict(_VMT_KEY_SLOTS)


def shader_input_for_slot(shader_id: str, slot: str) -> Optional[str]:
    """Return the shader input a texture slot binds to.

    Args:
        shader_id: USD shader id of the surface shader.
        slot: Texture slot name.

    Returns:
        Optional[str]: Input name, or None for an unsupported shader or slot.
    """
    return SHADER_SLOT_INPUTS.get(shader_id, {}).get(slot)
