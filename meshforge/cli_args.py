# MeshForge - PDF Mesh Shading Decoder
# Copyright (c) 2025-2026 Scott Bowman
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
CLI argument parsing for MeshForge.

Builds the argument parser and the helpers it needs for page selection
and output file naming.
"""

from __future__ import annotations

import argparse
import os

from .core.mesh_shading import DEFAULT_MAX_TRIANGLES

VERSION = "0.3.0"


def parse_page_ranges(text: str) -> set[int]:
    """Turn ``3``, ``1-5`` or ``1-3,7,10-12`` into a set of 1-based page numbers."""
    pages: set[int] = set()
    for part in filter(None, (p.strip() for p in text.split(","))):
        first, dash, last = part.partition("-")
        try:
            start = int(first)
            end = int(last) if dash else start
        except ValueError:
            raise ValueError(f"Invalid page selection: '{part}'") from None
        if start < 1 or end < start:
            raise ValueError(f"Invalid page selection: '{part}'")
        pages.update(range(start, end + 1))
    if not pages:
        raise ValueError("No pages selected")
    return pages


def get_output_path(outputfile: str, page_num: int, multiple: bool) -> str:
    """
    Derive the PNG path for one page.

    With several pages selected, the page number is appended to the base
    name: ``out.png`` becomes ``out-3.png``.
    """
    base, ext = os.path.splitext(outputfile)
    if not ext:
        ext = ".png"
    if multiple:
        return f"{base}-{page_num}{ext}"
    return f"{base}{ext}"


def _non_negative_int(text: str) -> int:
    value = int(text)
    if value < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {text}")
    return value


def build_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the MeshForge argument parser."""
    parser = argparse.ArgumentParser(
        prog="meshforge",
        description="MeshForge - decode PDF mesh shadings (Types 4, 6, 7) into triangles",
    )

    parser.add_argument(
        "-V", "--version", action="version", version=f"MeshForge {VERSION}"
    )
    parser.add_argument("inputfile", help="PDF file to inspect")
    parser.add_argument(
        "-o", "--output", dest="outputfile",
        help="Render the mesh shadings of each selected page to this PNG file"
    )
    parser.add_argument(
        "--pages", type=parse_page_ranges,
        help="Page range to process (e.g., 1-5, 3, 1-3,7,10-12; default: all)"
    )
    parser.add_argument(
        "-r", "--resolution", type=float, default=72.0,
        help="Rendering resolution in DPI (default: 72)"
    )
    parser.add_argument(
        "--max-triangles", type=_non_negative_int, default=DEFAULT_MAX_TRIANGLES,
        help=f"Stop decoding a shading after this many triangles (default: {DEFAULT_MAX_TRIANGLES})"
    )
    parser.add_argument(
        "--no-zero-terminator", dest="zero_terminator", action="store_false",
        help="Do not treat an all-zero Type 4 triangle as the end of the mesh"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose output"
    )

    return parser
