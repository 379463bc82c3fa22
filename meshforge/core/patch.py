# MeshForge - PDF Mesh Shading Decoder
# Copyright (c) 2025-2026 Scott Bowman
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

"""
Coons (Type 6) and tensor-product (Type 7) patches.

A Patch is one value type tagged with its kind, COONS or TENSOR, which is
also its control point count.  Everything that differs between the two kinds
(the control point layout, how the dividing level is chosen, the surface
equation and which control points make up the shared edges) lives in a
_PatchLayout looked up by kind.

Tessellation samples the patch surface on a (2**level_v + 1) x
(2**level_u + 1) grid, interpolates the 4 corner colors bilinearly over the
grid and emits two triangles per grid cell, leaving out cells that collapse
to a point or a line.

Control point order is the one the patch mesh stream uses (PDF 32000-1
8.7.4.5.7/8).  Corner colors c0..c3 belong to the points 0, 3, 6, 9 of that
order.
"""

import math
from typing import Callable, Sequence

from .bezier import (CubicBezierCurve, bernstein_polynomials,
                     edge_equation_value, edge_length, is_straight)
from .mesh_types import Color, CoordinateColorPair, Point, ShadedTriangle

# patch kinds, valued by control point count
COONS = 12
TENSOR = 16

# highest dividing level; edges are split into at most 2**4 segments
MAX_LEVEL = 4

# two grid points closer than this are treated as one
OVERLAP_TOLERANCE = 0.001

Edge = tuple[Point, Point, Point, Point]
Grid = list[list[CoordinateColorPair]]


def _level_for_edges(len1: float, len2: float) -> int:
    """Dividing level for a pair of straight opposite edges.

    Lengths are in device space units, so longer edges get more segments.
    """
    if len1 > 800 or len2 > 800:
        return MAX_LEVEL
    if len1 > 400 or len2 > 400:
        return 3
    if len1 > 200 or len2 > 200:
        return 2
    return 1


def _bilinear_color(colors: Sequence[Color], u: float, v: float) -> Color:
    c0, c1, c2, c3 = colors
    return tuple((1 - v) * ((1 - u) * c0[ci] + u * c3[ci])
                 + v * ((1 - u) * c1[ci] + u * c2[ci])
                 for ci in range(len(c0)))


# ---------------------------------------------------------------------------
# Coons patch: 12 boundary points reshaped into the 4 boundary curves
#   C1 = p0 p11 p10 p9   (v = 0)
#   C2 = p3 p4  p5  p6   (v = 1)
#   D1 = p0 p1  p2  p3   (u = 0)
#   D2 = p9 p8  p7  p6   (u = 1)
# ---------------------------------------------------------------------------

def _coons_reshape(p: Sequence[Point]) -> tuple[Edge, Edge, Edge, Edge]:
    return (
        (p[0], p[11], p[10], p[9]),
        (p[3], p[4], p[5], p[6]),
        (p[0], p[1], p[2], p[3]),
        (p[9], p[8], p[7], p[6]),
    )


def _coons_level(ctl) -> tuple[int, int]:
    c1, c2, d1, d2 = ctl
    level_u = level_v = MAX_LEVEL
    # two opposite straight edges allow a lower level in that direction
    if is_straight(c1) and is_straight(c2):
        level_u = _level_for_edges(edge_length(c1[0], c1[3]), edge_length(c2[0], c2[3]))
    if is_straight(d1) and is_straight(d2):
        level_v = _level_for_edges(edge_length(d1[0], d1[3]), edge_length(d2[0], d2[3]))
    return level_u, level_v


def _coons_surface(ctl, level: tuple[int, int], colors: Sequence[Color]) -> Grid:
    """Sample the Coons surface S = Sc + Sd - Sb on the grid."""
    c1, c2, d1, d2 = ctl
    curve_c1 = CubicBezierCurve(c1, level[0]).curve
    curve_c2 = CubicBezierCurve(c2, level[0]).curve
    curve_d1 = CubicBezierCurve(d1, level[1]).curve
    curve_d2 = CubicBezierCurve(d2, level[1]).curve

    sz_v = len(curve_d1)
    sz_u = len(curve_c1)
    (p00x, p00y), (p03x, p03y) = c1[0], c1[3]
    (p30x, p30y), (p33x, p33y) = c2[0], c2[3]

    grid = []
    for i in range(sz_v):
        v = i / (sz_v - 1)
        row = []
        for j in range(sz_u):
            u = j / (sz_u - 1)
            scx = (1 - v) * curve_c1[j][0] + v * curve_c2[j][0]
            scy = (1 - v) * curve_c1[j][1] + v * curve_c2[j][1]
            sdx = (1 - u) * curve_d1[i][0] + u * curve_d2[i][0]
            sdy = (1 - u) * curve_d1[i][1] + u * curve_d2[i][1]
            sbx = (1 - v) * ((1 - u) * p00x + u * p03x) + v * ((1 - u) * p30x + u * p33x)
            sby = (1 - v) * ((1 - u) * p00y + u * p03y) + v * ((1 - u) * p30y + u * p33y)
            row.append(CoordinateColorPair((scx + sdx - sbx, scy + sdy - sby),
                                           _bilinear_color(colors, u, v)))
        grid.append(row)
    return grid


def _coons_edges(ctl) -> tuple[Edge, Edge, Edge]:
    c1, c2, _, d2 = ctl
    return (c2, d2[::-1], c1[::-1])


# ---------------------------------------------------------------------------
# Tensor-product patch: 16 points reshaped into the 4x4 matrix p[i][j], i
# running along u and j along v.  Stream order is
#   p00 p01 p02 p03 p13 p23 p33 p32 p31 p30 p20 p10 p11 p12 p22 p21
# ---------------------------------------------------------------------------

def _tensor_reshape(tcp: Sequence[Point]) -> tuple[Edge, Edge, Edge, Edge]:
    square = [[None] * 4 for _ in range(4)]
    for i in range(4):
        square[0][i] = tcp[i]
        square[3][i] = tcp[9 - i]
    for i in (1, 2):
        square[i][0] = tcp[12 - i]
        square[i][2] = tcp[12 + i]
        square[i][3] = tcp[3 + i]
    square[1][1] = tcp[12]
    square[2][1] = tcp[15]
    return tuple(tuple(row) for row in square)


def _tensor_level(ctl) -> tuple[int, int]:
    level_u = level_v = MAX_LEVEL
    inner = (ctl[1][1], ctl[1][2], ctl[2][1], ctl[2][2])

    def same_side_cc(p: Point) -> bool:
        # p on the same side of both v-boundaries
        return (edge_equation_value(p, ctl[0][0], ctl[3][0])
                * edge_equation_value(p, ctl[0][3], ctl[3][3])) > 0

    def same_side_dd(p: Point) -> bool:
        # p on the same side of both u-boundaries
        return (edge_equation_value(p, ctl[0][0], ctl[0][3])
                * edge_equation_value(p, ctl[3][0], ctl[3][3])) > 0

    ctl_c1 = tuple(ctl[j][0] for j in range(4))
    ctl_c2 = tuple(ctl[j][3] for j in range(4))
    # an interior point outside the boundary keeps the high level
    if is_straight(ctl_c1) and is_straight(ctl_c2):
        if not any([same_side_cc(p) for p in inner]):
            level_u = _level_for_edges(edge_length(ctl_c1[0], ctl_c1[3]),
                                       edge_length(ctl_c2[0], ctl_c2[3]))
    if is_straight(ctl[0]) and is_straight(ctl[3]):
        if not any([same_side_dd(p) for p in inner]):
            level_v = _level_for_edges(edge_length(ctl[0][0], ctl[0][3]),
                                       edge_length(ctl[3][0], ctl[3][3]))
    return level_u, level_v


def _tensor_surface(ctl, level: tuple[int, int], colors: Sequence[Color]) -> Grid:
    """Sample S(u, v) = sum p[i][j] * B_i(u) * B_j(v) on the grid."""
    poly_u = bernstein_polynomials(level[0])
    poly_v = bernstein_polynomials(level[1])
    sz_u = len(poly_u[0])
    sz_v = len(poly_v[0])

    grid = []
    for k in range(sz_v):
        v = k / (sz_v - 1)
        row = []
        for l in range(sz_u):
            u = l / (sz_u - 1)
            x = 0.0
            y = 0.0
            for i in range(4):
                for j in range(4):
                    w = poly_u[i][l] * poly_v[j][k]
                    x += ctl[i][j][0] * w
                    y += ctl[i][j][1] * w
            row.append(CoordinateColorPair((x, y), _bilinear_color(colors, u, v)))
        grid.append(row)
    return grid


def _tensor_edges(ctl) -> tuple[Edge, Edge, Edge]:
    return (
        tuple(ctl[i][3] for i in range(4)),
        tuple(ctl[3][3 - i] for i in range(4)),
        tuple(ctl[3 - i][0] for i in range(4)),
    )


class _PatchLayout:
    """The kind-specific operations of a patch."""
    __slots__ = ('reshape', 'level', 'surface', 'edges')

    def __init__(self, reshape: Callable, level: Callable, surface: Callable, edges: Callable) -> None:
        self.reshape = reshape
        self.level = level
        self.surface = surface
        self.edges = edges


_LAYOUTS = {
    COONS: _PatchLayout(_coons_reshape, _coons_level, _coons_surface, _coons_edges),
    TENSOR: _PatchLayout(_tensor_reshape, _tensor_level, _tensor_surface, _tensor_edges),
}


def overlaps(p0: Point, p1: Point) -> bool:
    """Whether two grid points coincide within OVERLAP_TOLERANCE."""
    return math.hypot(p0[0] - p1[0], p0[1] - p1[1]) < OVERLAP_TOLERANCE


def shaded_triangles(grid: Grid) -> list[ShadedTriangle]:
    """Split every grid cell into a lower-left and an upper-right triangle.

    For the cell with corners p0 = (i-1, j-1), p1 = (i-1, j), p2 = (i, j)
    and p3 = (i, j-1), the lower-left triangle p0 p1 p3 is dropped when p0
    coincides with p1 or p3.  The upper-right triangle p3 p1 p2 is emitted
    only when the lower-left one was and p2 coincides with neither p1 nor p3.
    """
    triangles = []
    for i in range(1, len(grid)):
        prev_row = grid[i - 1]
        row = grid[i]
        for j in range(1, len(row)):
            cc0 = prev_row[j - 1]
            cc1 = prev_row[j]
            cc2 = row[j]
            cc3 = row[j - 1]
            p0, p1, p2, p3 = cc0.coordinate, cc1.coordinate, cc2.coordinate, cc3.coordinate

            ll = not (overlaps(p0, p1) or overlaps(p0, p3))
            if ll:
                # counter clockwise: p1 has priority over p0, p3 over p1
                triangles.append(ShadedTriangle((p0, p1, p3), (cc0.color, cc1.color, cc3.color)))
            ur_degenerate = overlaps(p2, p1) or overlaps(p2, p3)
            if ll and not ur_degenerate:
                triangles.append(ShadedTriangle((p3, p1, p2), (cc3.color, cc1.color, cc2.color)))
    return triangles


class Patch:
    """A decoded Coons or tensor-product patch.

    points holds the control points in stream order, control_points the
    kind-specific reshaped form, corner_color the 4 corner colors and level
    the (level_u, level_v) dividing levels.  triangles is computed once on
    construction.
    """
    __slots__ = ('kind', 'points', 'control_points', 'corner_color', 'level',
                 'triangles', '_edges')

    def __init__(self, kind: int, points: Sequence[Point], colors: Sequence[Sequence[float]]) -> None:
        if kind not in _LAYOUTS:
            raise ValueError(f"unknown patch kind {kind}")
        if len(points) != kind:
            raise ValueError(f"patch of kind {kind} needs {kind} control points, got {len(points)}")
        if len(colors) != 4:
            raise ValueError(f"patch needs 4 corner colors, got {len(colors)}")
        layout = _LAYOUTS[kind]
        self.kind = kind
        self.points = tuple(points)
        self.corner_color = tuple(tuple(c) for c in colors)
        self.control_points = layout.reshape(self.points)
        self.level = layout.level(self.control_points)
        self._edges = layout.edges(self.control_points)
        self.triangles = tuple(self.tessellate())

    def tessellate(self) -> list[ShadedTriangle]:
        grid = _LAYOUTS[self.kind].surface(self.control_points, self.level, self.corner_color)
        return shaded_triangles(grid)

    def flag_edge(self, flag: int) -> Edge:
        """The 4 control points a following patch with this flag shares."""
        if flag not in (1, 2, 3):
            raise ValueError(f"no implicit edge for flag {flag}")
        return self._edges[flag - 1]

    def flag_color(self, flag: int) -> tuple[Color, Color]:
        """The 2 corner colors a following patch with this flag shares."""
        c0, c1, c2, c3 = self.corner_color
        if flag == 1:
            return (c1, c2)
        if flag == 2:
            return (c2, c3)
        if flag == 3:
            return (c3, c0)
        raise ValueError(f"no implicit colors for flag {flag}")

    def __repr__(self) -> str:
        name = "CoonsPatch" if self.kind == COONS else "TensorPatch"
        return f"{name}(level={self.level}, triangles={len(self.triangles)})"
