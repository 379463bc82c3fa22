#!/usr/bin/env python3
# MeshForge - PDF Mesh Shading Decoder
# Copyright (c) 2025-2026 Scott Bowman
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
MeshForge - command line entry point.

Lists the mesh shadings (Types 4, 6 and 7) of a PDF's pages with their
triangle counts and device-space bounds, and optionally renders them.

Usage:
    meshforge input.pdf
    meshforge --pages 2-3 -r 150 -o mesh.png input.pdf
"""

from __future__ import annotations

import logging
import sys
import zlib

from pypdf import PdfReader
from pypdf.errors import PdfReadError

from .cli_args import build_argument_parser, get_output_path
from .core.affine import Matrix
from .core.diagnostics import DiagnosticCollector
from .core.error import ConfigurationError
from .core.mesh_types import BBox
from .core.pdf_shading import decode_shading, iter_page_shadings, shading_type
from .devices.common.cairo_mesh import render_to_surface


def page_transform(mediabox, dpi: float) -> tuple[Matrix, int, int]:
    """Map PDF user space to image pixels (origin top-left, y down).

    Returns the matrix and the image width and height.
    """
    scale = dpi / 72.0
    left, bottom = float(mediabox.left), float(mediabox.bottom)
    right, top = float(mediabox.right), float(mediabox.top)
    width = max(1, int(round((right - left) * scale)))
    height = max(1, int(round((top - bottom) * scale)))
    return (scale, 0.0, 0.0, -scale, -left * scale, top * scale), width, height


def format_bounds(bounds: BBox | None) -> str:
    if bounds is None:
        return "empty"
    return "[{:.2f} {:.2f} {:.2f} {:.2f}]".format(*bounds)


def process_page(page, page_num: int, args, outputs: list[str] | None) -> int:
    """Decode every mesh shading of one page; returns the number of failures."""
    transform, width, height = page_transform(page.mediabox, args.resolution)
    failures = 0
    page_triangles = []
    found = False

    for name, shading, matrix in iter_page_shadings(page):
        found = True
        collector = DiagnosticCollector(forward=True)
        try:
            result = decode_shading(shading, matrix, transform, collector,
                                    max_triangles=args.max_triangles,
                                    zero_terminator=args.zero_terminator)
        except (ConfigurationError, PdfReadError, ValueError, NotImplementedError, zlib.error) as e:
            # configuration problems and corrupt or unsupported stream filters
            print(f"Page {page_num} {name}: MeshForge Error: {e}")
            failures += 1
            continue
        line = (f"Page {page_num} {name}: type {shading_type(shading)}, "
                f"{len(result.triangles)} triangles")
        if result.patches is not None:
            line += f" from {len(result.patches)} patches"
        line += f", bounds {format_bounds(result.bounds)}"
        if collector.diagnostics:
            line += f", {len(collector)} anomalies"
        print(line)
        page_triangles.extend(result.triangles)

    if not found:
        print(f"Page {page_num}: no mesh shadings")

    if outputs is not None:
        path = get_output_path(args.outputfile, page_num, args.multiple_pages)
        surface = render_to_surface(page_triangles, width, height)
        surface.write_to_png(path)
        outputs.append(path)
    return failures


def main(argv: list[str] | None = None) -> int:
    parser = build_argument_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        reader = PdfReader(args.inputfile, strict=False)
        n_pages = len(reader.pages)
    except FileNotFoundError:
        print(f"MeshForge Error: Input file '{args.inputfile}' not found.")
        return 1
    except (OSError, PdfReadError) as e:
        print(f"MeshForge Error: Cannot read '{args.inputfile}': {e}")
        return 1

    pages = sorted(args.pages) if args.pages else list(range(1, n_pages + 1))
    args.multiple_pages = len(pages) > 1
    outputs: list[str] | None = [] if args.outputfile else None
    failures = 0

    for page_num in pages:
        if page_num > n_pages:
            print(f"Page {page_num}: out of range (document has {n_pages} pages)")
            continue
        failures += process_page(reader.pages[page_num - 1], page_num, args, outputs)

    for path in outputs or []:
        print(f"Wrote {path}")
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
