# MeshForge - PDF Mesh Shading Decoder
# Copyright (c) 2025-2026 Scott Bowman
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Cairo Mesh Rendering Module

Paints decoded shaded triangles to Cairo contexts and gives access to the
rendered pixels as numpy arrays.
"""

from __future__ import annotations

from typing import Callable, Iterable, Sequence

import cairo
import numpy as np

from ...core.mesh_types import ShadedTriangle

RGB = tuple[float, float, float]


def device_rgb(color: Sequence[float]) -> RGB:
    """Convert gray, RGB or CMYK components to RGB.

    Uses the plain device formulas; no color management.
    """
    n = len(color)
    if n == 1:
        gray = color[0]
        return (gray, gray, gray)
    if n == 3:
        return (color[0], color[1], color[2])
    if n == 4:
        c, m, y, k = color
        return ((1 - c) * (1 - k), (1 - m) * (1 - k), (1 - y) * (1 - k))
    raise ValueError(f"no device RGB conversion for {n} color components")


def render_triangles(triangles: Iterable[ShadedTriangle], cairo_ctx: cairo.Context,
                     color_to_rgb: Callable[[Sequence[float]], RGB] = device_rgb) -> int:
    """Render Gouraud-shaded triangles using a single Cairo MeshPattern.

    Each triangle is converted to a degenerate Coons patch (Cairo mesh patch
    with 3 distinct corners; the 4th corner is collapsed onto the 3rd).

    Returns the number of triangles painted.
    """
    pat = cairo.MeshPattern()
    count = 0
    for tri in triangles:
        (x0, y0), (x1, y1), (x2, y2) = tri.corner
        r0, g0, b0 = color_to_rgb(tri.color[0])
        r1, g1, b1 = color_to_rgb(tri.color[1])
        r2, g2, b2 = color_to_rgb(tri.color[2])

        pat.begin_patch()
        pat.move_to(x0, y0)
        pat.line_to(x1, y1)
        pat.line_to(x2, y2)
        pat.line_to(x2, y2)  # degenerate 4th side (collapse onto 3rd vertex)

        pat.set_corner_color_rgb(0, r0, g0, b0)
        pat.set_corner_color_rgb(1, r1, g1, b1)
        pat.set_corner_color_rgb(2, r2, g2, b2)
        pat.set_corner_color_rgb(3, r2, g2, b2)  # same as corner 2

        pat.end_patch()
        count += 1

    if count == 0:
        return 0

    cairo_ctx.save()
    try:
        cairo_ctx.set_source(pat)
        cairo_ctx.paint()
    finally:
        cairo_ctx.restore()
    return count


def render_to_surface(triangles: Iterable[ShadedTriangle], width: int, height: int,
                      color_to_rgb: Callable[[Sequence[float]], RGB] = device_rgb,
                      antialias: int = cairo.ANTIALIAS_DEFAULT) -> cairo.ImageSurface:
    """Paint triangles (already in device space) onto a new white RGB24 surface."""
    surface = cairo.ImageSurface(cairo.FORMAT_RGB24, width, height)
    cc = cairo.Context(surface)
    cc.set_antialias(antialias)

    # Fill in the white background
    cc.set_source_rgb(1.0, 1.0, 1.0)
    cc.rectangle(0, 0, width, height)
    cc.fill()

    render_triangles(triangles, cc, color_to_rgb)
    surface.flush()
    return surface


def surface_to_array(surface: cairo.ImageSurface) -> np.ndarray:
    """Copy an RGB24/ARGB32 surface into a (height, width, 3) uint8 RGB array."""
    surface.flush()
    width = surface.get_width()
    height = surface.get_height()
    stride = surface.get_stride()
    # Cairo stores pixels as native-endian 32-bit words: BGRX on little endian
    data = np.frombuffer(bytes(surface.get_data()), dtype=np.uint8)
    pixels = data.reshape((height, stride // 4, 4))[:, :width, :]
    return np.ascontiguousarray(pixels[:, :, 2::-1])
