# MeshForge - PDF Mesh Shading Decoder
# Copyright (c) 2025-2026 Scott Bowman
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
2-D affine matrices in PDF order: (a, b, c, d, tx, ty).

    x' = a*x + c*y + tx
    y' = b*x + d*y + ty
"""

from __future__ import annotations

from typing import Sequence

Matrix = tuple[float, float, float, float, float, float]

IDENTITY: Matrix = (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)


def as_matrix(values: Sequence[float] | None) -> Matrix:
    """Coerce a 6-number sequence into a Matrix (None gives the identity)."""
    if values is None:
        return IDENTITY
    if len(values) != 6:
        raise ValueError(f"affine matrix needs 6 numbers, got {len(values)}")
    a, b, c, d, tx, ty = (float(v) for v in values)
    return (a, b, c, d, tx, ty)


def transform_point(m: Matrix, x: float, y: float) -> tuple[float, float]:
    return (m[0] * x + m[2] * y + m[4],
            m[1] * x + m[3] * y + m[5])


def concat(m1: Matrix, m2: Matrix) -> Matrix:
    """Return m1 followed by m2 (points go through m1 first)."""
    a1, b1, c1, d1, tx1, ty1 = m1
    a2, b2, c2, d2, tx2, ty2 = m2
    return (
        a1 * a2 + b1 * c2,
        a1 * b2 + b1 * d2,
        c1 * a2 + d1 * c2,
        c1 * b2 + d1 * d2,
        tx1 * a2 + ty1 * c2 + tx2,
        tx1 * b2 + ty1 * d2 + ty2,
    )
