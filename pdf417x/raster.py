"""Raster Encoder: render a grid of PDF417 codewords as a grayscale PNG.

Each codeword becomes a run of 17 modules (18 for the stop pattern closing a
line), each module ``bar_width`` pixels wide. Every logical row is stretched
vertically to ``scale_factor`` modules, and the symbol is wrapped in a white
quiet zone two modules wide.
"""

import io
import numbers
from collections.abc import Iterator, Sequence

import numpy as np
from PIL import Image

from pdf417x.config import (
    CODEWORD_BITS,
    DEFAULT_CONFIG,
    STOP_PATTERN_BITS,
    RenderConfig,
    sink_options,
)
from pdf417x.errors import IrregularGridError, MalformedCodewordError
from pdf417x.logging import audit, get_logger, trace
from pdf417x.sink import PngSink

log = get_logger("raster")

Codeword = int | None
Grid = Sequence[Sequence[Codeword]]


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------

def width(grid: Grid, config: RenderConfig = DEFAULT_CONFIG) -> int:
    """Image width in pixels. Assumes at least two codewords per line."""
    columns = len(grid[0])
    total_bits = (columns - 2) * CODEWORD_BITS + CODEWORD_BITS + STOP_PATTERN_BITS
    return total_bits * config.bar_width + 2 * config.quiet_zone


def height(grid: Grid, config: RenderConfig = DEFAULT_CONFIG) -> int:
    """Image height in pixels."""
    return len(grid) * config.scale_factor * config.bar_width + 2 * config.quiet_zone


def validate_grid(grid: Grid):
    """Reject grids the geometry cannot describe.

    Raises:
        IrregularGridError: no lines, fewer than two codewords per line,
            or lines of different lengths.
    """
    if len(grid) == 0:
        raise IrregularGridError("grid has no lines")
    columns = len(grid[0])
    if columns < 2:
        raise IrregularGridError(f"grid lines need at least 2 codewords, got {columns}")
    for index, line in enumerate(grid):
        if len(line) != columns:
            raise IrregularGridError(
                f"line {index} has {len(line)} codewords, line 0 has {columns}"
            )


# ---------------------------------------------------------------------------
# Bit expansion
# ---------------------------------------------------------------------------

def codeword_width(column: int, columns: int) -> int:
    """Bit width of the codeword at ``column`` in a line of ``columns`` codewords."""
    return STOP_PATTERN_BITS if column == columns - 1 else CODEWORD_BITS


def expand_codeword(codeword: Codeword, bits: int,
                    line: int | None = None, column: int | None = None) -> list[int]:
    """Expand a codeword to ``bits`` binary digits, MSB first, zero padded on the left.

    An absent codeword always yields CODEWORD_BITS zeros, stop pattern
    position included, so a line ending in None renders one module short.

    Raises:
        MalformedCodewordError: the value is negative, not an integer, or
            needs more than ``bits`` digits. Values are never truncated.
    """
    if codeword is None:
        return [0] * CODEWORD_BITS
    if isinstance(codeword, bool) or not isinstance(codeword, numbers.Integral):
        raise MalformedCodewordError(codeword, bits, line, column)
    value = int(codeword)
    if value < 0 or value.bit_length() > bits:
        raise MalformedCodewordError(value, bits, line, column)
    return [(value >> (bits - 1 - i)) & 1 for i in range(bits)]


def line_bits(line: Sequence[Codeword], line_index: int | None = None) -> list[int]:
    """Concatenate the expanded codewords of one line in column order."""
    columns = len(line)
    bits: list[int] = []
    for column, codeword in enumerate(line):
        bits.extend(expand_codeword(codeword, codeword_width(column, columns), line_index, column))
    return bits


# ---------------------------------------------------------------------------
# Rows
# ---------------------------------------------------------------------------

def make_row(line: Sequence[Codeword], config: RenderConfig = DEFAULT_CONFIG,
             line_index: int | None = None) -> bytes:
    """Build the pixel row for one grid line, quiet zone included."""
    bits = np.asarray(line_bits(line, line_index), dtype=np.uint8)
    modules = np.where(bits == 1, config.black, config.white).astype(np.uint8)
    margin = np.full(config.quiet_zone, config.white, dtype=np.uint8)
    row = np.concatenate([margin, np.repeat(modules, config.bar_width), margin])
    return row.tobytes()


def margin_row(row_width: int, config: RenderConfig = DEFAULT_CONFIG) -> bytes:
    """An all-white row of the full image width."""
    return bytes([config.white]) * row_width


def render_rows(grid: Grid, config: RenderConfig = DEFAULT_CONFIG) -> Iterator[bytes]:
    """Yield every pixel row of the image, top to bottom.

    Every yielded row is ``width(grid, config)`` samples long. A line whose
    stop pattern is None expands one module short and raises
    MalformedCodewordError when that line is reached.
    """
    validate_grid(grid)
    yield from _rows(grid, config)


def _rows(grid: Grid, config: RenderConfig) -> Iterator[bytes]:
    row_width = width(grid, config)
    blank = margin_row(row_width, config)

    for _ in range(config.quiet_zone):
        yield blank

    for index, line in enumerate(grid):
        data_row = make_row(line, config, line_index=index)
        if len(data_row) != row_width:
            raise MalformedCodewordError(
                line[-1], STOP_PATTERN_BITS, index, len(line) - 1,
                reason=f"expands to {CODEWORD_BITS} bits, the stop pattern needs {STOP_PATTERN_BITS}",
            )
        for _ in range(config.row_repeat):
            yield data_row

    for _ in range(config.quiet_zone):
        yield blank


# ---------------------------------------------------------------------------
# Driver
# ---------------------------------------------------------------------------

@trace
def encode(grid: Grid, options: dict | None = None, config: RenderConfig | None = None) -> bytes:
    """Render ``grid`` and return the PNG file bytes.

    Args:
        grid: Lines of codewords (int or None), all of equal length.
        options: Sink options overlaid on the computed defaults (size, mode,
            on_row, compress_level, optimize, dpi). Caller values win.
        config: Rendering parameters. Defaults to 5px modules, scale 4.

    Raises:
        IrregularGridError: the grid shape is unusable.
        MalformedCodewordError: a codeword does not fit its column width,
            including a None stop pattern.
        SinkError: the sink rejected a row, e.g. after a size override.
    """
    config = config or DEFAULT_CONFIG
    validate_grid(grid)
    size = (width(grid, config), height(grid, config))
    opts = sink_options({"size": size, "mode": "L", "on_row": None}, options)

    with PngSink.open(**opts) as sink:
        for row in _rows(grid, config):
            sink.append(row)
        png = sink.close()

    audit("raster.encoded", logger=log,
          lines=len(grid), columns=len(grid[0]), size=f"{size[0]}x{size[1]}",
          bar_width=config.bar_width, png_bytes=len(png))
    return png


@trace
def encode_to_image(grid: Grid, options: dict | None = None,
                    config: RenderConfig | None = None) -> Image.Image:
    """Render ``grid`` and decode the PNG back into a Pillow image."""
    img = Image.open(io.BytesIO(encode(grid, options=options, config=config)))
    img.load()
    return img
