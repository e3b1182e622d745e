"""USD helpers shared by the record writer and reader."""

import logging
from typing import Iterable, Iterator, Optional

from pxr import Sdf, Tf, Usd, UsdShade


logger = logging.getLogger(__name__)


def valid_prim_name(name: str, fallback: str = "Material") -> str:
    """Return name as a valid USD prim identifier."""
    prim_name = name or fallback
    if Sdf.Path.IsValidIdentifier(prim_name):
        return prim_name
    sanitized = Tf.MakeValidIdentifier(prim_name)
    logger.debug(
        "Material name '%s' is not a valid USD identifier; using '%s'.",
        prim_name,
        sanitized,
    )
    return sanitized


def iter_shaders(material_prim: Usd.Prim) -> Iterator[UsdShade.Shader]:
    """Yield every shader below material_prim, depth first.

    An invalid prim yields nothing.
    """
    if not material_prim or not material_prim.IsValid():
        logger.debug("No prim to search for shaders: %s", material_prim)
        return
    prims = iter(Usd.PrimRange(material_prim))
    next(prims)  # the material itself
    for prim in prims:
        if prim.IsA(UsdShade.Shader):
            yield UsdShade.Shader(prim)


def find_shader_by_id(
    material_prim: Usd.Prim, shader_ids: Iterable[str]
) -> Optional[UsdShade.Shader]:
    """Return the first shader under material_prim whose id is in shader_ids."""
    wanted = set(shader_ids)
    for shader in iter_shaders(material_prim):
        if shader.GetIdAttr().Get() in wanted:
            return shader
    return None
