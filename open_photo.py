#!/usr/bin/env python3
"""
Open Photo command line.

Loads an image, applies adjustments, geometry and overlay layers through
an EditorSession and writes the exported result.

Usage:
    # Warm the image and add some grain
    python open_photo.py beach.jpg -o beach_edit.jpg --set temperature=40 --set noise=15

    # Sepia, rotated a quarter turn, as PNG
    python open_photo.py in.png -o out.png --filter sepia --rotate 90 --format PNG

    # Crop (canvas coordinates) and draw layers from a JSON file
    python open_photo.py in.jpg -o out.jpg --crop 50,50,400,300 --layers layers.json

The layers file holds a list of layer objects, e.g.
    [{"kind": "text", "content": "Hello", "x": 20, "y": 20, "font_size": 32}]
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from OP_Libs.config import EditorConfig, load_config
from OP_Libs.constants import ADJUSTMENT_RANGES, EXPORT_MIME_TYPES, NAMED_FILTERS
from OP_Libs.EditorLib.editor_session import EditorSession
from OP_Libs.errors import PhotoEditorError
from OP_Libs.ImageEditingLib.geometry import CropRect
from OP_Libs.LayersLib.layer_stack import LayerStack

logger = logging.getLogger("open_photo")


def parse_knob(text: str) -> Dict[str, float]:
    """Parse 'name=value' into {name: value}."""
    name, sep, value = text.partition("=")
    name = name.strip().lower()
    if not sep or name not in ADJUSTMENT_RANGES:
        raise argparse.ArgumentTypeError(
            f"expected knob=value with knob one of: {', '.join(ADJUSTMENT_RANGES)}"
        )
    try:
        return {name: float(value)}
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"{name}: {value!r} is not a number") from e


def parse_crop(text: str) -> CropRect:
    """Parse 'x,y,width,height'."""
    parts = text.split(",")
    if len(parts) != 4:
        raise argparse.ArgumentTypeError("expected x,y,width,height")
    try:
        x, y, width, height = (float(p) for p in parts)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"crop values must be numbers: {text!r}") from e
    return CropRect(x, y, width, height)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Apply photo adjustments and overlay layers to an image")
    parser.add_argument("input", type=Path, help="Source image")
    parser.add_argument("-o", "--output", type=Path, required=True, help="Where to write the result")
    parser.add_argument(
        "--set",
        dest="knobs",
        type=parse_knob,
        action="append",
        default=[],
        metavar="KNOB=VALUE",
        help="Set an adjustment (repeatable), e.g. --set brightness=20",
    )
    parser.add_argument("--filter", choices=NAMED_FILTERS, help="Named colour filter")
    parser.add_argument("--rotate", type=float, help="Rotation in degrees, clockwise")
    parser.add_argument("--flip-h", action="store_true", help="Mirror horizontally")
    parser.add_argument("--flip-v", action="store_true", help="Mirror vertically")
    parser.add_argument("--crop", type=parse_crop, metavar="X,Y,W,H", help="Crop rectangle in canvas pixels")
    parser.add_argument("--layers", type=Path, help="JSON file with a list of layers")
    parser.add_argument(
        "--format",
        type=str.upper,
        choices=sorted(set(EXPORT_MIME_TYPES) | {"JPG"}),
        help="Output format (default from config: JPEG)",
    )
    parser.add_argument("--quality", type=int, help="JPEG/WEBP quality 1-100")
    parser.add_argument("--config", type=Path, help="JSON editor config")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="More logging (-vv for debug)")
    return parser


def load_layers(path: Path) -> LayerStack:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid layers file {path}: {e}") from e

    if not isinstance(payload, list):
        raise ValueError(f"Layers file {path} must contain a JSON list")
    return LayerStack.from_dicts(payload)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    try:
        config = load_config(args.config) if args.config else EditorConfig()
        layers = load_layers(args.layers) if args.layers else None

        with EditorSession.from_file(args.input, config=config, layers=layers) as session:
            for knob in args.knobs:
                session.update_adjustments(**knob)
            if args.filter:
                session.set_named_filter(args.filter)
            if args.rotate is not None:
                session.set_rotation(args.rotate)
            if args.flip_h:
                session.set_flip_horizontal(True)
            if args.flip_v:
                session.set_flip_vertical(True)
            if args.crop is not None:
                session.crop(args.crop)

            exported = session.export_final(export_format=args.format, quality=args.quality)

        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_bytes(exported.data)
    except (PhotoEditorError, ValueError, OSError) as e:
        logger.error(str(e))
        return 1

    print(f"Wrote {args.output} ({exported.width}x{exported.height}, {exported.mime_type})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
