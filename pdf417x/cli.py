"""PDF417-X CLI: render codeword grids to PNG from the command line."""

import argparse
import json
import sys
from pathlib import Path

from pdf417x.config import RenderConfig
from pdf417x.errors import RasterError
from pdf417x.logging import setup_logging, get_logger, audit

log = get_logger("cli")


def _load_grid(path: str) -> list[list[int | None]]:
    """Read a grid from a JSON file holding a list of lists (null = absent codeword)."""
    with open(path, encoding="utf-8") as fh:
        grid = json.load(fh)
    if not isinstance(grid, list) or not all(isinstance(line, list) for line in grid):
        raise RasterError(f"{path}: expected a JSON list of codeword lists")
    return grid


def _config_from_args(args) -> RenderConfig:
    return RenderConfig(
        bar_width=args.bar_width,
        scale_factor=args.scale,
        black=getattr(args, "black", 0),
        white=getattr(args, "white", 255),
    )


def cmd_render(args):
    """Render a grid to a PNG file."""
    from pdf417x.raster import encode

    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)

    grid = _load_grid(args.grid)
    png = encode(grid, config=_config_from_args(args))
    output.write_bytes(png)
    print(f"Rendered: {output} ({len(grid)} lines x {len(grid[0])} codewords, {len(png)} bytes)")


def cmd_geometry(args):
    """Print the image geometry a grid would produce."""
    from pdf417x.raster import height, validate_grid, width

    grid = _load_grid(args.grid)
    validate_grid(grid)
    config = _config_from_args(args)
    print(f"Lines:      {len(grid)}")
    print(f"Codewords:  {len(grid[0])} per line")
    print(f"Quiet zone: {config.quiet_zone}px")
    print(f"Image:      {width(grid, config)}x{height(grid, config)}")


def _add_geometry_flags(p):
    p.add_argument("grid", help="JSON file with the codeword grid")
    p.add_argument("--bar-width", type=int, default=5, help="Module pixel width")
    p.add_argument("--scale", type=int, default=4, help="Row height in modules")


def main(argv=None):
    parser = argparse.ArgumentParser(prog="pdf417x", description="PDF417-X: codeword grid rasterizer")

    # Global logging flags
    parser.add_argument("-V", "--verbose", action="store_true", help="Enable DEBUG-level logging")
    parser.add_argument("--log-file", default=None, help="Write JSON logs to file")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- render ---
    p_render = subparsers.add_parser("render", help="Render a grid to PNG")
    _add_geometry_flags(p_render)
    p_render.add_argument("-o", "--output", default="output/pdf417.png", help="Output file path")
    p_render.add_argument("--black", type=int, default=0, help="Sample value for dark modules")
    p_render.add_argument("--white", type=int, default=255, help="Sample value for light modules")

    # --- geometry ---
    p_geo = subparsers.add_parser("geometry", help="Show image size for a grid")
    _add_geometry_flags(p_geo)

    args = parser.parse_args(argv)

    # Console stays quiet unless -V; the log file keeps the audit trail
    level = "DEBUG" if args.verbose else "INFO"
    setup_logging(level=level, log_file=args.log_file,
                  console_level=None if args.verbose else "ERROR")
    audit("cli.start", logger=log, command=args.command, verbose=args.verbose)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    commands = {
        "render": cmd_render,
        "geometry": cmd_geometry,
    }
    try:
        commands[args.command](args)
    except (RasterError, OSError, json.JSONDecodeError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        sys.exit(1)
    audit("cli.done", logger=log, command=args.command)


if __name__ == "__main__":
    main()
