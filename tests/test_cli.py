# MeshForge - PDF Mesh Shading Decoder
# Copyright (c) 2025-2026 Scott Bowman
# SPDX-License-Identifier: AGPL-3.0-or-later

import argparse
import os
import zlib

import pytest
from pypdf import PageObject, PdfWriter
from pypdf.errors import PdfReadError
from pypdf.generic import DictionaryObject, NameObject

from meshforge import cli
from meshforge.cli import format_bounds, main, page_transform, process_page
from meshforge.cli_args import build_argument_parser, get_output_path, parse_page_ranges
from meshforge.core.mesh_shading import DEFAULT_MAX_TRIANGLES
from meshforge.core.pdf_shading import decode_shading

from mesh_helpers import mesh_stream, one_triangle


class TestParsePageRanges:
    def test_single_page(self):
        assert parse_page_ranges("3") == {3}

    def test_range_and_list(self):
        assert parse_page_ranges("1-3, 7,10-11") == {1, 2, 3, 7, 10, 11}

    def test_single_page_range(self):
        assert parse_page_ranges("2-2") == {2}

    @pytest.mark.parametrize("text", ["", "0", "3-1", "a", "1-", "-2"])
    def test_invalid(self, text):
        with pytest.raises(ValueError):
            parse_page_ranges(text)


def test_get_output_path():
    assert get_output_path("out.png", 3, False) == "out.png"
    assert get_output_path("out.png", 3, True) == "out-3.png"
    assert get_output_path("render", 2, True) == "render-2.png"


def test_parser_defaults():
    args = build_argument_parser().parse_args(["in.pdf"])
    assert args.inputfile == "in.pdf"
    assert args.outputfile is None
    assert args.pages is None
    assert args.resolution == 72.0
    assert args.max_triangles == DEFAULT_MAX_TRIANGLES
    assert args.zero_terminator is True
    assert args.verbose is False


def test_parser_options():
    args = build_argument_parser().parse_args(
        ["-o", "x.png", "--pages", "2-3", "-r", "150", "--max-triangles", "10",
         "--no-zero-terminator", "in.pdf"])
    assert args.outputfile == "x.png"
    assert args.pages == {2, 3}
    assert args.resolution == 150.0
    assert args.max_triangles == 10
    assert args.zero_terminator is False


def test_zero_triangle_cap_is_accepted():
    args = build_argument_parser().parse_args(["--max-triangles", "0", "in.pdf"])
    assert args.max_triangles == 0


def test_negative_triangle_cap_is_rejected():
    with pytest.raises(SystemExit):
        build_argument_parser().parse_args(["--max-triangles", "-1", "in.pdf"])


def test_page_transform_flips_y():
    page = PageObject.create_blank_page(width=200, height=100)
    matrix, width, height = page_transform(page.mediabox, 144)
    assert (width, height) == (400, 200)
    assert matrix == (2.0, 0.0, 0.0, -2.0, 0.0, 200.0)


def test_format_bounds():
    assert format_bounds(None) == "empty"
    assert format_bounds((0, 1.5, 2, 3)) == "[0.00 1.50 2.00 3.00]"


def test_process_page_lists_and_renders(tmp_path, capsys):
    page = PageObject.create_blank_page(width=255, height=255)
    shadings = DictionaryObject()
    shadings[NameObject("/Sh1")] = mesh_stream(4, one_triangle())
    resources = DictionaryObject()
    resources[NameObject("/Shading")] = shadings
    page[NameObject("/Resources")] = resources

    out = str(tmp_path / "mesh.png")
    args = argparse.Namespace(resolution=72.0, max_triangles=DEFAULT_MAX_TRIANGLES,
                              zero_terminator=True, outputfile=out, multiple_pages=False)
    outputs = []
    assert process_page(page, 1, args, outputs) == 0
    assert outputs == [out]
    assert os.path.getsize(out) > 0
    assert "Page 1 /Sh1: type 4, 1 triangles, bounds [0.00 0.00 255.00 255.00]" in capsys.readouterr().out


def test_process_page_counts_failures(capsys):
    page = PageObject.create_blank_page(width=10, height=10)
    shadings = DictionaryObject()
    shadings[NameObject("/Sh1")] = mesh_stream(4, one_triangle(), bits=(8, None, 8))
    resources = DictionaryObject()
    resources[NameObject("/Shading")] = shadings
    page[NameObject("/Resources")] = resources

    args = argparse.Namespace(resolution=72.0, max_triangles=None, zero_terminator=True,
                              outputfile=None, multiple_pages=False)
    assert process_page(page, 1, args, None) == 1
    assert "MeshForge Error" in capsys.readouterr().out


@pytest.mark.parametrize("error", [PdfReadError("bad stream"), zlib.error("incorrect header check"),
                                   ValueError("bad filter parameters")])
def test_process_page_continues_after_unreadable_stream(monkeypatch, capsys, error):
    page = PageObject.create_blank_page(width=255, height=255)
    broken = mesh_stream(4, one_triangle())
    shadings = DictionaryObject()
    shadings[NameObject("/Sh1")] = broken
    shadings[NameObject("/Sh2")] = mesh_stream(4, one_triangle())
    resources = DictionaryObject()
    resources[NameObject("/Shading")] = shadings
    page[NameObject("/Resources")] = resources

    def decode(shading, *args, **kwargs):
        if shading is broken:
            raise error
        return decode_shading(shading, *args, **kwargs)

    monkeypatch.setattr(cli, "decode_shading", decode)
    args = argparse.Namespace(resolution=72.0, max_triangles=None, zero_terminator=True,
                              outputfile=None, multiple_pages=False)
    assert process_page(page, 1, args, None) == 1
    out = capsys.readouterr().out
    assert "Page 1 /Sh1: MeshForge Error" in out
    assert "Page 1 /Sh2: type 4, 1 triangles" in out


def test_main_missing_file(tmp_path, capsys):
    assert main([str(tmp_path / "missing.pdf")]) == 1
    assert "not found" in capsys.readouterr().out


def test_main_page_without_shadings(tmp_path, capsys):
    path = tmp_path / "blank.pdf"
    writer = PdfWriter()
    writer.add_blank_page(width=72, height=72)
    writer.write(str(path))

    assert main([str(path), "--pages", "1,4"]) == 0
    out = capsys.readouterr().out
    assert "Page 1: no mesh shadings" in out
    assert "Page 4: out of range" in out
