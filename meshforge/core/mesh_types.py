# MeshForge - PDF Mesh Shading Decoder
# Copyright (c) 2025-2026 Scott Bowman
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Value types shared by the mesh decoders and the patch tessellator."""

from __future__ import annotations

from dataclasses import dataclass

Point = tuple[float, float]
Color = tuple[float, ...]
BBox = tuple[float, float, float, float]  # (x_min, y_min, x_max, y_max)


@dataclass(frozen=True)
class Vertex:
    """A decoded vertex: device-space position and color components."""
    point: Point
    color: Color


@dataclass(frozen=True)
class ShadedTriangle:
    """Three corners and their colors, index-paired."""
    corner: tuple[Point, Point, Point]
    color: tuple[Color, Color, Color]

    def __post_init__(self) -> None:
        if len(self.corner) != 3 or len(self.color) != 3:
            raise ValueError("a shaded triangle needs exactly 3 corners and 3 colors")

    @classmethod
    def from_vertices(cls, v0: Vertex, v1: Vertex, v2: Vertex) -> ShadedTriangle:
        return cls((v0.point, v1.point, v2.point), (v0.color, v1.color, v2.color))

    def vertex(self, i: int) -> Vertex:
        return Vertex(self.corner[i], self.color[i])


@dataclass(frozen=True)
class CoordinateColorPair:
    """One tessellation grid sample."""
    coordinate: Point
    color: Color
