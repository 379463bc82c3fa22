# MeshForge - PDF Mesh Shading Decoder
# Copyright (c) 2025-2026 Scott Bowman
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Cubic Bezier sampling for patch edges.

A patch edge is a cubic Bezier curve given by 4 control points.  For
tessellation the curve is sampled at 2**level + 1 evenly spaced parameter
values, and edges whose control points (nearly) lie on the chord can be
sampled more coarsely.
"""

from __future__ import annotations

import math
from typing import Sequence

Point = tuple[float, float]


def subdivide(points: Sequence[Point], level: int) -> list[Point]:
    """Sample the cubic Bezier curve through points at 2**level + 1 positions.

    B(t) = (1-t)^3 P0 + 3t(1-t)^2 P1 + 3t^2(1-t) P2 + t^3 P3

    A negative level is treated as 0, which yields only the two endpoints.
    """
    if level < 0:
        level = 0
    (x0, y0), (x1, y1), (x2, y2), (x3, y3) = points
    segments = 1 << level
    res = []
    for i in range(segments + 1):
        t = i / segments
        s = 1 - t
        b0 = s * s * s
        b1 = 3 * t * s * s
        b2 = 3 * t * t * s
        b3 = t * t * t
        res.append((b0 * x0 + b1 * x1 + b2 * x2 + b3 * x3,
                    b0 * y0 + b1 * y1 + b2 * y2 + b3 * y3))
    return res


def bernstein_polynomials(level: int) -> list[list[float]]:
    """Cubic Bernstein basis sampled at 2**level + 1 positions.

    Returns 4 rows, row k holding B_k(t) for every sample t.
    """
    if level < 0:
        level = 0
    segments = 1 << level
    poly = [[], [], [], []]
    for i in range(segments + 1):
        t = i / segments
        s = 1 - t
        poly[0].append(s * s * s)
        poly[1].append(3 * t * s * s)
        poly[2].append(3 * t * t * s)
        poly[3].append(t * t * t)
    return poly


def edge_equation_value(p: Point, p1: Point, p2: Point) -> float:
    """Plug p into the implicit equation of the line p1-p2.

    Zero on the line, and the sign tells the side.  The magnitude is the
    perpendicular distance scaled by the length of p1-p2.
    """
    return (p2[1] - p1[1]) * (p[0] - p1[0]) - (p2[0] - p1[0]) * (p[1] - p1[1])


def edge_length(ps: Point, pe: Point) -> float:
    return math.hypot(pe[0] - ps[0], pe[1] - ps[1])


def is_straight(points: Sequence[Point]) -> bool:
    """Cheap test for an edge whose 4 control points are on a line.

    Both interior control points must have an edge equation value no larger
    than the endpoints' span along the same axis.  A heuristic, not a
    geometric tolerance.
    """
    ctl1 = abs(edge_equation_value(points[1], points[0], points[3]))
    ctl2 = abs(edge_equation_value(points[2], points[0], points[3]))
    x = abs(points[0][0] - points[3][0])
    y = abs(points[0][1] - points[3][1])
    return (ctl1 <= x and ctl2 <= x) or (ctl1 <= y and ctl2 <= y)


class CubicBezierCurve:
    """A cubic Bezier edge together with its samples at a dividing level."""
    __slots__ = ('control_points', 'level', 'curve')

    def __init__(self, control_points: Sequence[Point], level: int) -> None:
        self.control_points = tuple(control_points)  # p0, p1, p2, p3
        self.level = level
        self.curve = subdivide(self.control_points, level)

    def __repr__(self) -> str:
        pts = " ".join(f"({x:g}, {y:g})" for x, y in self.control_points)
        return f"CubicBezierCurve({pts}, level={self.level})"
