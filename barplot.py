from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from barplot_studio.data_model import PALETTES, with_items
from barplot_studio.export import EXPORT_FORMATS, export_chart
from barplot_studio.importer import ImportOptions, plan_import, apply_import
from barplot_studio.layout import build_render_tree
from barplot_studio.storage import STATE_PATH, load_state, save_state
from barplot_studio.ticks import format_tick, generate_ticks

logger = logging.getLogger("barplot")


# -----------------------------
# Commands
# -----------------------------

def cmd_render(args: argparse.Namespace) -> int:
    state = load_state(args.state)
    tree = build_render_tree(state, args.width, args.height)
    scale = args.scale if args.scale is not None else state.style.export_scale
    transparent = args.transparent or state.style.export_transparent
    out = export_chart(tree, args.out, args.format, scale=scale, transparent=transparent)
    print(out)
    return 0


def cmd_import(args: argparse.Namespace) -> int:
    try:
        text = Path(args.csv).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        print(f"Unable to read the selected file: {e}", file=sys.stderr)
        return 1

    options = ImportOptions(
        delimiter=args.delimiter,
        custom_delimiter=args.custom_delimiter,
        has_header=not args.no_header,
        decimal_separator=args.decimal,
    )
    preview = plan_import(text, options)
    state = load_state(args.state)
    palette = args.palette or state.style.palette_name
    result = apply_import(preview, palette)
    if result.messages:
        for msg in result.messages:
            print(msg, file=sys.stderr)
        return 1

    style = replace(state.style, palette_name=palette)
    save_state(replace(with_items(state, result.items), style=style), args.state)
    print(f"Imported {len(result.items)} items")
    if result.ignored_rows:
        print(f"{result.ignored_rows} rows beyond the import limit were ignored")
    return 0


def cmd_ticks(args: argparse.Namespace) -> int:
    scale = generate_ticks(
        args.data_min,
        args.data_max,
        min_value=args.min,
        max_value=args.max,
        step=args.step,
        count=args.count,
    )
    print(" ".join(format_tick(t) for t in scale.ticks))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="barplot", description="Bar chart layout, import and export.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("render", help="Render a saved chart state to SVG, PNG or PDF.")
    p.add_argument("state", nargs="?", type=Path, default=STATE_PATH, help="Saved state JSON file.")
    p.add_argument("out", help="Output file.")
    p.add_argument("--format", choices=EXPORT_FORMATS, default=None)
    p.add_argument("--scale", type=float, default=None, help="Raster scale factor (1-6).")
    p.add_argument("--transparent", action="store_true")
    p.add_argument("--width", type=float, default=None)
    p.add_argument("--height", type=float, default=None)
    p.set_defaults(func=cmd_render)

    p = sub.add_parser("import", help="Import delimited text into the saved chart state.")
    p.add_argument("csv", help="Delimited text file.")
    p.add_argument("--delimiter", default=",", help="comma, semicolon, tab, pipe, space, custom or a literal.")
    p.add_argument("--custom-delimiter", default="")
    p.add_argument("--no-header", action="store_true")
    p.add_argument("--decimal", choices=(".", ","), default=".")
    p.add_argument("--state", type=Path, default=STATE_PATH)
    p.add_argument("--palette", choices=sorted(PALETTES), default=None)
    p.set_defaults(func=cmd_import)

    p = sub.add_parser("ticks", help="Print the ticks chosen for a value range.")
    p.add_argument("data_min", type=float)
    p.add_argument("data_max", type=float)
    p.add_argument("--min", type=float, default=None)
    p.add_argument("--max", type=float, default=None)
    p.add_argument("--step", type=float, default=None)
    p.add_argument("--count", type=int, default=6)
    p.set_defaults(func=cmd_ticks)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
