# MeshForge - PDF Mesh Shading Decoder
# Copyright (c) 2025-2026 Scott Bowman
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Mesh shading error types.

Only ConfigurationError ever reaches the caller of decode_mesh().
EndOfData is the normal way a mesh stream ends and is consumed by the
decoders; protocol anomalies are reported as diagnostics, not raised.
"""

from __future__ import annotations


class MeshShadingError(Exception):
    """Base class for all mesh shading failures."""


class ConfigurationError(MeshShadingError):
    """The shading parameters cannot describe a decodable mesh."""


class EndOfData(MeshShadingError, EOFError):
    """The bit stream ran out in the middle of a read."""

    def __init__(self, requested: int, available: int) -> None:
        super().__init__(f"requested {requested} bits, {available} available")
        self.requested = requested
        self.available = available
