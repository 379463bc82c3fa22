# MeshForge - PDF Mesh Shading Decoder
# Copyright (c) 2025-2026 Scott Bowman
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Builders for packed mesh shading streams and shading dictionaries used by the tests."""

from pypdf.generic import (ArrayObject, DecodedStreamObject, DictionaryObject, FloatObject,
                           NameObject, NumberObject)

from meshforge.core.mesh_shading import MeshShadingParameters


class BitWriter:
    """Pack values MSB-first, the way mesh shading streams are laid out."""

    def __init__(self):
        self._value = 0
        self._nbits = 0

    def write(self, value, n):
        assert 0 <= value < (1 << n), f"{value} does not fit in {n} bits"
        self._value = (self._value << n) | value
        self._nbits += n
        return self

    def getvalue(self):
        pad = (-self._nbits) % 8
        return (self._value << pad).to_bytes((self._nbits + pad) // 8, "big")


def make_params(n_comps=1, bpc=8, bpco=8, bpfl=8, **kwargs):
    kwargs.setdefault("range_x", (0.0, 255.0))
    kwargs.setdefault("range_y", (0.0, 255.0))
    kwargs.setdefault("color_ranges", tuple((0.0, 1.0) for _ in range(n_comps)))
    return MeshShadingParameters(bits_per_coordinate=bpc, bits_per_component=bpco,
                                 bits_per_flag=bpfl, n_comps=n_comps, **kwargs)


def write_vertex(w, params, flag, x, y, colors):
    w.write(flag, params.bits_per_flag)
    w.write(x, params.bits_per_coordinate)
    w.write(y, params.bits_per_coordinate)
    for c in colors:
        w.write(c, params.bits_per_component)
    return w


def write_patch(w, params, flag, points, colors):
    w.write(flag, params.bits_per_flag)
    for x, y in points:
        w.write(x, params.bits_per_coordinate)
        w.write(y, params.bits_per_coordinate)
    for color in colors:
        for c in color:
            w.write(c, params.bits_per_component)
    return w


# 90 x 90 square with its Coons control points on the thirds of each side
SQUARE_COONS = [
    (0, 0), (0, 30), (0, 60), (0, 90),
    (30, 90), (60, 90), (90, 90),
    (90, 60), (90, 30), (90, 0),
    (60, 0), (30, 0),
]

# the same square as a tensor-product patch, in stream order
SQUARE_TENSOR = SQUARE_COONS + [(30, 30), (30, 60), (60, 60), (60, 30)]


def numbers(*values):
    return ArrayObject(FloatObject(v) if isinstance(v, float) else NumberObject(v)
                       for v in values)


def mesh_dict(stype, color_space=NameObject("/DeviceGray"), decode=(0, 255, 0, 255, 0, 1),
              bits=(8, 8, 8)):
    d = DictionaryObject()
    d[NameObject("/ShadingType")] = NumberObject(stype)
    d[NameObject("/ColorSpace")] = color_space
    if decode is not None:
        d[NameObject("/Decode")] = numbers(*decode)
    for key, value in zip(("/BitsPerCoordinate", "/BitsPerComponent", "/BitsPerFlag"), bits):
        if value is not None:
            d[NameObject(key)] = NumberObject(value)
    return d


def mesh_stream(stype, data, **kwargs):
    stream = DecodedStreamObject()
    stream.update(mesh_dict(stype, **kwargs))
    stream.set_data(data)
    return stream


def one_triangle():
    params = make_params()
    w = BitWriter()
    for x, y in ((0, 0), (255, 0), (0, 255)):
        write_vertex(w, params, 0, x, y, [255])
    return w.getvalue()
