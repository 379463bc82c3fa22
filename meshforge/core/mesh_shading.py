# MeshForge - PDF Mesh Shading Decoder
# Copyright (c) 2025-2026 Scott Bowman
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Mesh Shading Decoder for Types 4, 6 and 7

Decodes the packed data of free-form Gouraud-shaded triangle meshes
(Type 4), Coons patch meshes (Type 6) and tensor-product patch meshes
(Type 7) into a list of ShadedTriangle in device space.

Every record starts with an edge flag.  Flag 0 starts a fresh triangle or
patch; the other flags continue from the previous record and reuse part of
its geometry and colors, so records are decoded strictly in order.  The
continuation state is a value passed into each decode step and returned
updated by it.

Streams carry no record count: running out of bits is how a mesh ends, and
whatever was decoded before that is kept.

Reference: PDF 32000-1:2008 Section 8.7.4.5.5 - 8.7.4.5.8
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

from . import diagnostics as diag
from .affine import IDENTITY, Matrix, concat, transform_point
from .bit_reader import BitReader, interpolate, max_sample
from .diagnostics import DiagnosticSink, MeshDiagnostic
from .error import ConfigurationError, EndOfData
from .mesh_types import BBox, Color, Point, ShadedTriangle, Vertex
from .patch import COONS, TENSOR, Edge, Patch

logger = logging.getLogger(__name__)

# output cap, in triangles, per decoded shading
DEFAULT_MAX_TRIANGLES = 2_000_000

# shading type -> patch kind
PATCH_SHADING_TYPES = {6: COONS, 7: TENSOR}
MESH_SHADING_TYPES = (4, 6, 7)

Range = tuple[float, float]


@dataclass(frozen=True)
class MeshShadingParameters:
    """Scalar inputs of a mesh shading.

    range_x / range_y / color_ranges come from the shading's Decode array;
    a missing color range is kept as None so validate() can reject it.
    Coordinates go through pattern_matrix first, then device_transform.
    """
    bits_per_coordinate: int
    bits_per_component: int
    bits_per_flag: int
    n_comps: int
    range_x: Range | None
    range_y: Range | None
    color_ranges: tuple[Range | None, ...]
    pattern_matrix: Matrix = IDENTITY
    device_transform: Matrix = IDENTITY
    max_triangles: int | None = DEFAULT_MAX_TRIANGLES
    zero_terminator: bool = True

    @classmethod
    def from_decode(cls, decode: Sequence[float], bits_per_coordinate: int,
                    bits_per_component: int, bits_per_flag: int, n_comps: int,
                    **kwargs) -> MeshShadingParameters:
        """Build parameters from a flat Decode array.

        decode is [xmin xmax ymin ymax c0min c0max c1min c1max ...]; pairs the
        array is too short for become None.
        """
        def pair(index: int) -> Range | None:
            if 2 * index + 1 >= len(decode):
                return None
            return (float(decode[2 * index]), float(decode[2 * index + 1]))

        return cls(bits_per_coordinate, bits_per_component, bits_per_flag, n_comps,
                   pair(0), pair(1), tuple(pair(2 + i) for i in range(n_comps)),
                   **kwargs)

    @property
    def is_empty_domain(self) -> bool:
        """True when the coordinate ranges cannot span any area."""
        return (self.range_x is None or self.range_y is None
                or self.range_x[0] == self.range_x[1]
                or self.range_y[0] == self.range_y[1])

    def validate(self) -> None:
        """Raise ConfigurationError unless the stream can be decoded."""
        for name in ("bits_per_coordinate", "bits_per_component", "bits_per_flag"):
            bits = getattr(self, name)
            if bits <= 0:
                raise ConfigurationError(f"{name} must be positive, got {bits}")
        if self.n_comps <= 0:
            raise ConfigurationError(f"n_comps must be positive, got {self.n_comps}")
        if len(self.color_ranges) < self.n_comps or any(
                r is None for r in self.color_ranges[:self.n_comps]):
            raise ConfigurationError("Range missing in shading /Decode entry")
        if self.max_triangles is not None and self.max_triangles < 0:
            raise ConfigurationError(f"max_triangles must not be negative, got {self.max_triangles}")


@dataclass
class MeshResult:
    """Decoded triangles in stream order, their bounds and, for Types 6/7, the patches."""
    triangles: list[ShadedTriangle]
    bounds: BBox | None
    patches: list[Patch] | None = None


class _MeshStream:
    """Record-level reads over a BitReader for one decode pass."""

    def __init__(self, data: bytes | bytearray | memoryview, params: MeshShadingParameters,
                 sink: DiagnosticSink) -> None:
        self.reader = BitReader(data)
        self.params = params
        self.sink = sink
        self.record = 0
        self.bpc = params.bits_per_coordinate
        self.bpco = params.bits_per_component
        self.bpfl = params.bits_per_flag
        self.max_coord = max_sample(self.bpc)
        self.max_color = max_sample(self.bpco)
        self.x_min, self.x_max = params.range_x
        self.y_min, self.y_max = params.range_y
        self.color_ranges = params.color_ranges[:params.n_comps]
        self.matrix = concat(params.pattern_matrix, params.device_transform)

    def report(self, code: str, message: str, level: int = logging.WARNING) -> None:
        self.sink(MeshDiagnostic(code, message, self.record, self.reader.bit_pos, level))

    def read_flag(self) -> int:
        # only the low two bits of a flag carry meaning
        return self.reader.read_bits(self.bpfl) & 3

    def read_point(self) -> Point:
        read_bits = self.reader.read_bits
        raw_x = read_bits(self.bpc)
        raw_y = read_bits(self.bpc)
        x = interpolate(raw_x, self.max_coord, self.x_min, self.x_max)
        y = interpolate(raw_y, self.max_coord, self.y_min, self.y_max)
        return transform_point(self.matrix, x, y)

    def read_color(self) -> Color:
        read_bits = self.reader.read_bits
        max_color = self.max_color
        return tuple(interpolate(read_bits(self.bpco), max_color, c_min, c_max)
                     for c_min, c_max in self.color_ranges)

    def read_vertex(self) -> Vertex:
        point = self.read_point()
        return Vertex(point, self.read_color())

    def over_limit(self, count: int) -> bool:
        limit = self.params.max_triangles
        if limit is not None and count > limit:
            self.report(diag.LIMIT_CHECK, f"more than {limit} triangles, output truncated")
            return True
        return False


def _is_zero_triple(v0: Vertex, v1: Vertex, v2: Vertex) -> bool:
    return all(v.point[0] + v.point[1] == 0 for v in (v0, v1, v2))


# returned for a free triangle whose three vertices are all zero; some
# producers pad the stream with zeros instead of ending it
_END_OF_MESH = object()


# ---------------------------------------------------------------------------
# Type 4
# ---------------------------------------------------------------------------

def _decode_triangle_record(stream: _MeshStream, flag: int,
                            previous: ShadedTriangle | None) -> ShadedTriangle | object | None:
    """Decode the triangle that starts with flag.

    previous is the last emitted triangle (the continuation state).  Returns
    the new triangle, None when the record yields nothing, or _END_OF_MESH
    for the all-zero end marker.  Raises EndOfData when the stream ends
    inside the record.
    """
    if flag == 0:
        v0 = stream.read_vertex()
        vertices = [v0]
        for _ in range(2):
            stream.record += 1
            inner_flag = stream.read_flag()
            if inner_flag != 0:
                stream.report(diag.BAD_TRIANGLE,
                              f"flag {inner_flag} inside a free triangle, ignored")
            vertices.append(stream.read_vertex())
        if stream.params.zero_terminator and _is_zero_triple(*vertices):
            stream.report(diag.ZERO_TERMINATOR, "all-zero triangle taken as end of data",
                          logging.DEBUG)
            return _END_OF_MESH
        return ShadedTriangle.from_vertices(*vertices)

    # flag 1 shares edge v1-v2 of the previous triangle, flag 2 edge v0-v2
    vc = stream.read_vertex()
    if previous is None:
        stream.report(diag.NO_PREDECESSOR,
                      f"flag {flag} with no previous triangle, vertex skipped")
        return None
    va = previous.vertex(1 if flag == 1 else 0)
    vb = previous.vertex(2)
    return ShadedTriangle.from_vertices(va, vb, vc)


def collect_triangles(data: bytes | bytearray | memoryview, params: MeshShadingParameters,
                      sink: DiagnosticSink = diag.log_diagnostic) -> list[ShadedTriangle]:
    """Decode a Type 4 free-form triangle mesh stream."""
    if params.is_empty_domain:
        sink(MeshDiagnostic(diag.EMPTY_DOMAIN, "degenerate coordinate range, mesh is empty",
                            level=logging.DEBUG))
        return []
    params.validate()

    stream = _MeshStream(data, params, sink)
    triangles: list[ShadedTriangle] = []
    previous = None
    try:
        flag = stream.read_flag()
        while True:
            if flag == 3:
                stream.report(diag.BAD_FLAG, f"bad flag {flag}, decoding stopped")
                break
            triangle = _decode_triangle_record(stream, flag, previous)
            if triangle is _END_OF_MESH:
                break
            if triangle is not None:
                if stream.over_limit(len(triangles) + 1):
                    break
                triangles.append(triangle)
                previous = triangle
            stream.record += 1
            flag = stream.read_flag()
    except EndOfData as ex:
        logger.debug("Type 4 mesh ended after %d triangles: %s", len(triangles), ex)
    return triangles


# ---------------------------------------------------------------------------
# Types 6 and 7
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PatchContinuation:
    """Edges and corner colors the next patch may reuse, indexed by flag - 1."""
    edges: tuple[Edge, Edge, Edge] | None = None
    colors: tuple[tuple[Color, Color], ...] | None = None

    @classmethod
    def from_patch(cls, patch: Patch) -> PatchContinuation:
        return cls(tuple(patch.flag_edge(f) for f in (1, 2, 3)),
                   tuple(patch.flag_color(f) for f in (1, 2, 3)))

    @property
    def available(self) -> bool:
        return self.edges is not None

    def implicit(self, flag: int) -> tuple[Edge, tuple[Color, Color]]:
        return self.edges[flag - 1], self.colors[flag - 1]


def _decode_patch_record(stream: _MeshStream, flag: int, kind: int,
                         state: PatchContinuation) -> tuple[Patch | None, PatchContinuation]:
    """Decode one patch record; returns the patch and the updated continuation.

    Raises EndOfData when the stream ends inside the record.
    """
    if flag == 0:
        points = [stream.read_point() for _ in range(kind)]
        colors = [stream.read_color() for _ in range(4)]
    else:
        new_points = [stream.read_point() for _ in range(kind - 4)]
        new_colors = [stream.read_color() for _ in range(2)]
        if not state.available:
            stream.report(diag.NO_PREDECESSOR,
                          f"flag {flag} with no previous patch, patch skipped")
            return None, state
        edge, edge_colors = state.implicit(flag)
        points = list(edge) + new_points
        colors = list(edge_colors) + new_colors
    patch = Patch(kind, points, colors)
    return patch, PatchContinuation.from_patch(patch)


def collect_patches(data: bytes | bytearray | memoryview, params: MeshShadingParameters,
                    kind: int, sink: DiagnosticSink = diag.log_diagnostic) -> list[Patch]:
    """Decode a Type 6 (kind COONS) or Type 7 (kind TENSOR) patch mesh stream."""
    if kind not in (COONS, TENSOR):
        raise ConfigurationError(f"patch meshes have 12 or 16 control points, not {kind}")
    if params.is_empty_domain:
        sink(MeshDiagnostic(diag.EMPTY_DOMAIN, "degenerate coordinate range, mesh is empty",
                            level=logging.DEBUG))
        return []
    params.validate()

    stream = _MeshStream(data, params, sink)
    patches: list[Patch] = []
    state = PatchContinuation()
    n_triangles = 0
    try:
        flag = stream.read_flag()
        while True:
            patch, state = _decode_patch_record(stream, flag, kind, state)
            if patch is not None:
                n_triangles += len(patch.triangles)
                if stream.over_limit(n_triangles):
                    break
                patches.append(patch)
            stream.record += 1
            flag = stream.read_flag()
    except EndOfData as ex:
        logger.debug("patch mesh ended after %d patches: %s", len(patches), ex)
    return patches


# ---------------------------------------------------------------------------
# Bounds and entry point
# ---------------------------------------------------------------------------

def get_bounds(triangles: Iterable[ShadedTriangle]) -> BBox | None:
    """Axis-aligned box around every triangle corner, None for no triangles."""
    x_min = y_min = float('inf')
    x_max = y_max = float('-inf')
    found = False
    for tri in triangles:
        found = True
        for x, y in tri.corner:
            if x < x_min:
                x_min = x
            if x > x_max:
                x_max = x
            if y < y_min:
                y_min = y
            if y > y_max:
                y_max = y
    if not found:
        return None
    return (x_min, y_min, x_max, y_max)


def decode_mesh(shading_type: int, data: bytes | bytearray | memoryview,
                params: MeshShadingParameters,
                sink: DiagnosticSink = diag.log_diagnostic) -> MeshResult:
    """Decode a Type 4, 6 or 7 mesh shading stream into triangles and bounds.

    Raises:
        ConfigurationError: unsupported shading type or unusable parameters.
    """
    if shading_type == 4:
        triangles = collect_triangles(data, params, sink)
        return MeshResult(triangles, get_bounds(triangles))
    if shading_type in PATCH_SHADING_TYPES:
        patches = collect_patches(data, params, PATCH_SHADING_TYPES[shading_type], sink)
        triangles = [tri for patch in patches for tri in patch.triangles]
        return MeshResult(triangles, get_bounds(triangles), patches)
    raise ConfigurationError(f"shading type {shading_type} is not a supported mesh shading")
