# MeshForge - PDF Mesh Shading Decoder
# Copyright (c) 2025-2026 Scott Bowman
# SPDX-License-Identifier: AGPL-3.0-or-later

import cairo
import numpy as np
import pytest

from meshforge.core.mesh_types import ShadedTriangle
from meshforge.devices.common.cairo_mesh import (device_rgb, render_to_surface,
                                                  render_triangles, surface_to_array)

RED = ((1.0, 0.0, 0.0),) * 3


def test_device_rgb():
    assert device_rgb((0.5,)) == (0.5, 0.5, 0.5)
    assert device_rgb((0.1, 0.2, 0.3)) == (0.1, 0.2, 0.3)
    assert device_rgb((1.0, 0.0, 0.0, 0.0)) == (0.0, 1.0, 1.0)
    assert device_rgb((0.0, 0.0, 0.0, 1.0)) == (0.0, 0.0, 0.0)
    with pytest.raises(ValueError):
        device_rgb((0.1, 0.2))


def test_red_triangle_on_white():
    tri = ShadedTriangle(((0.0, 0.0), (40.0, 0.0), (0.0, 40.0)), RED)
    pixels = surface_to_array(render_to_surface([tri], 40, 40))
    assert pixels.shape == (40, 40, 3)
    assert pixels.dtype == np.uint8
    assert np.all(np.abs(pixels[5, 5].astype(int) - [255, 0, 0]) <= 2)
    assert pixels[38, 38].tolist() == [255, 255, 255]


def test_gouraud_colors_follow_corners():
    colors = ((0.0,), (1.0,), (1.0,))
    tri = ShadedTriangle(((0.0, 0.0), (64.0, 0.0), (0.0, 64.0)), colors)
    pixels = surface_to_array(render_to_surface([tri], 64, 64))
    near_dark = int(pixels[1, 1, 0])
    near_light = int(pixels[1, 60, 0])
    assert near_dark < 40
    assert near_light > 200


def test_empty_triangle_list_leaves_surface_white():
    surface = cairo.ImageSurface(cairo.FORMAT_RGB24, 8, 8)
    ctx = cairo.Context(surface)
    ctx.set_source_rgb(1, 1, 1)
    ctx.paint()
    assert render_triangles([], ctx) == 0
    assert np.all(surface_to_array(surface) == 255)


def test_custom_color_conversion():
    tri = ShadedTriangle(((0.0, 0.0), (20.0, 0.0), (0.0, 20.0)), ((0.0,),) * 3)
    pixels = surface_to_array(render_to_surface([tri], 20, 20, lambda c: (0.0, 0.0, 1.0)))
    assert np.all(np.abs(pixels[3, 3].astype(int) - [0, 0, 255]) <= 2)


def test_array_shape_is_height_by_width():
    surface = render_to_surface([], 5, 3)
    assert surface_to_array(surface).shape == (3, 5, 3)
