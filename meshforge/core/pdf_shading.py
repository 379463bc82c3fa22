# MeshForge - PDF Mesh Shading Decoder
# Copyright (c) 2025-2026 Scott Bowman
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
pypdf adapter for mesh shadings.

Reads the scalar parameters of a Type 4/6/7 shading dictionary, gets the
decompressed stream data from pypdf and hands both to decode_mesh().  Also
finds the mesh shadings a page uses through its /Shading resources and its
shading patterns.
"""

from __future__ import annotations

import logging
from typing import Any, Iterator

from pypdf.generic import ArrayObject, DictionaryObject, StreamObject

from .affine import IDENTITY, Matrix, as_matrix
from .diagnostics import DiagnosticSink, log_diagnostic
from .error import ConfigurationError
from .mesh_shading import (MESH_SHADING_TYPES, MeshResult, MeshShadingParameters,
                           decode_mesh)

logger = logging.getLogger(__name__)

# Suppress noisy "Multiple definitions in dictionary" warnings from pypdf
logging.getLogger('pypdf').setLevel(logging.ERROR)

_COMPONENT_COUNTS = {
    "/DeviceGray": 1, "/CalGray": 1, "/Indexed": 1, "/Separation": 1,
    "/DeviceRGB": 3, "/CalRGB": 3, "/Lab": 3,
    "/DeviceCMYK": 4,
    # abbreviations allowed in inline content
    "/G": 1, "/I": 1, "/RGB": 3, "/CMYK": 4,
}


def _resolve(obj: Any) -> Any:
    return obj.get_object() if hasattr(obj, "get_object") else obj


def _get_int(d: DictionaryObject, key: str, default: int) -> int:
    """Get an integer value from a shading dictionary."""
    obj = _resolve(d.get(key))
    if obj is None:
        return default
    return int(obj)


def _get_float_array(d: DictionaryObject, key: str) -> list[float] | None:
    obj = _resolve(d.get(key))
    if obj is None:
        return None
    return [float(_resolve(v)) for v in obj]


def shading_type(shading: DictionaryObject) -> int:
    return _get_int(shading, "/ShadingType", 0)


def color_component_count(shading: DictionaryObject) -> int:
    """Number of color components per vertex in the stream data.

    A shading with a /Function stores a single parametric value per vertex.
    """
    if shading.get("/Function") is not None:
        return 1
    cs = _resolve(shading.get("/ColorSpace"))
    if cs is None:
        raise ConfigurationError("shading has no /ColorSpace")
    if isinstance(cs, ArrayObject):
        family = str(_resolve(cs[0]))
        if family == "/ICCBased":
            return _get_int(_resolve(cs[1]), "/N", 3)
        if family == "/DeviceN":
            return len(_resolve(cs[1]))
    else:
        family = str(cs)
    if family in _COMPONENT_COUNTS:
        return _COMPONENT_COUNTS[family]
    raise ConfigurationError(f"unsupported shading color space {family}")


def parameters_from_shading(shading: DictionaryObject,
                            pattern_matrix: Matrix = IDENTITY,
                            device_transform: Matrix = IDENTITY,
                            **kwargs) -> MeshShadingParameters:
    """Collect the decode parameters of a mesh shading dictionary.

    Extra keyword arguments (max_triangles, zero_terminator) are passed on
    to MeshShadingParameters.
    """
    n_comps = color_component_count(shading)
    decode = _get_float_array(shading, "/Decode") or []
    return MeshShadingParameters.from_decode(
        decode,
        bits_per_coordinate=_get_int(shading, "/BitsPerCoordinate", -1),
        bits_per_component=_get_int(shading, "/BitsPerComponent", -1),
        bits_per_flag=_get_int(shading, "/BitsPerFlag", -1),
        n_comps=n_comps,
        pattern_matrix=as_matrix(pattern_matrix),
        device_transform=as_matrix(device_transform),
        **kwargs,
    )


def decode_shading(shading: DictionaryObject,
                   pattern_matrix: Matrix = IDENTITY,
                   device_transform: Matrix = IDENTITY,
                   sink: DiagnosticSink = log_diagnostic,
                   **kwargs) -> MeshResult:
    """Decode a Type 4, 6 or 7 shading stream object into triangles.

    A shading that is not a stream has no mesh data and decodes to an
    empty result.

    Raises:
        ConfigurationError: not a mesh shading, or unusable parameters.
    """
    shading = _resolve(shading)
    stype = shading_type(shading)
    if stype not in MESH_SHADING_TYPES:
        raise ConfigurationError(f"shading type {stype} is not a mesh shading")
    if not isinstance(shading, StreamObject):
        logger.debug("Type %d shading is not a stream, nothing to decode", stype)
        return MeshResult([], None, [] if stype != 4 else None)
    params = parameters_from_shading(shading, pattern_matrix, device_transform, **kwargs)
    return decode_mesh(stype, shading.get_data(), params, sink)


def iter_page_shadings(page: DictionaryObject) -> Iterator[tuple[str, StreamObject, Matrix]]:
    """Yield (resource name, shading, pattern matrix) for each mesh shading of a page.

    Shadings from /Shading resources get the identity matrix; shading
    patterns (/PatternType 2) contribute their /Matrix.
    """
    resources = _resolve(page.get("/Resources"))
    if not isinstance(resources, DictionaryObject):
        return

    shadings = _resolve(resources.get("/Shading"))
    if isinstance(shadings, DictionaryObject):
        for name, ref in shadings.items():
            shading = _resolve(ref)
            # entries that are null or not dictionaries carry no shading
            if isinstance(shading, DictionaryObject) and shading_type(shading) in MESH_SHADING_TYPES:
                yield str(name), shading, IDENTITY

    patterns = _resolve(resources.get("/Pattern"))
    if isinstance(patterns, DictionaryObject):
        for name, ref in patterns.items():
            pattern = _resolve(ref)
            if not isinstance(pattern, DictionaryObject) or _get_int(pattern, "/PatternType", 0) != 2:
                continue
            shading = _resolve(pattern.get("/Shading"))
            if not isinstance(shading, DictionaryObject) or shading_type(shading) not in MESH_SHADING_TYPES:
                continue
            yield str(name), shading, as_matrix(_get_float_array(pattern, "/Matrix"))
