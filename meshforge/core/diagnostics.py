# MeshForge - PDF Mesh Shading Decoder
# Copyright (c) 2025-2026 Scott Bowman
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Decoder diagnostics.

Anomalies found while walking a mesh stream (bad flags, continuation records
without a predecessor, the output cap being hit) do not abort decoding.  The
decoders describe each one as a MeshDiagnostic and hand it to a sink, which is
any callable taking one diagnostic.  The default sink forwards to logging; a
DiagnosticCollector keeps them for inspection.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

logger = logging.getLogger(__name__)

# diagnostic codes
BAD_FLAG = "badflag"
BAD_TRIANGLE = "badtriangle"
NO_PREDECESSOR = "nopredecessor"
LIMIT_CHECK = "limitcheck"
ZERO_TERMINATOR = "zeroterminator"
EMPTY_DOMAIN = "emptydomain"


@dataclass(frozen=True)
class MeshDiagnostic:
    """One anomaly seen while decoding.

    record is the zero-based index of the record being decoded (a vertex
    record for Type 4, a patch record for Types 6/7) and bit_pos the reader
    position when the anomaly was detected.
    """
    code: str
    message: str
    record: int = -1
    bit_pos: int = -1
    level: int = logging.WARNING

    def __str__(self) -> str:
        return f"{self.code}: {self.message} (record {self.record}, bit {self.bit_pos})"


DiagnosticSink = Callable[[MeshDiagnostic], None]


def log_diagnostic(diagnostic: MeshDiagnostic) -> None:
    """Default sink: forward to the module logger at the diagnostic's level."""
    logger.log(diagnostic.level, "%s", diagnostic)


class DiagnosticCollector:
    """Sink that keeps every diagnostic it receives.

    With forward=True each diagnostic is also passed on to log_diagnostic().
    """

    def __init__(self, forward: bool = False) -> None:
        self.diagnostics: list[MeshDiagnostic] = []
        self.forward = forward

    def __call__(self, diagnostic: MeshDiagnostic) -> None:
        self.diagnostics.append(diagnostic)
        if self.forward:
            log_diagnostic(diagnostic)

    def __len__(self) -> int:
        return len(self.diagnostics)

    def codes(self) -> list[str]:
        return [d.code for d in self.diagnostics]
