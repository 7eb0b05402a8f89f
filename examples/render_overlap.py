#!/usr/bin/env python3
"""Render two rotated boxes, their intersection and overlap metrics.

Usage:
    python -m examples.render_overlap [options]

Options:
    --box1 X Y W H R    First box (default: 0 0 2 1 0.3)
    --box2 X Y W H R    Second box (default: 0.5 0.2 1 2 -0.4)
    --algorithm NAME    default, rotating_caliper or sutherland_hodgeman
    --size SIZE         Image width and height in pixels (default: 512)
    --output OUTPUT     Output file path (default: overlap.png)
    --show              Open a Matplotlib preview window
    --quiet             Suppress progress output

Example:
    python -m examples.render_overlap --box2 1 0 2 1 0.8 --algorithm rotating_caliper
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import taichi as ti


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render two rotated boxes and their intersection.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--box1",
        type=float,
        nargs=5,
        default=[0.0, 0.0, 2.0, 1.0, 0.3],
        metavar=("X", "Y", "W", "H", "R"),
        help="First box as center, size and rotation (default: 0 0 2 1 0.3)",
    )
    parser.add_argument(
        "--box2",
        type=float,
        nargs=5,
        default=[0.5, 0.2, 1.0, 2.0, -0.4],
        metavar=("X", "Y", "W", "H", "R"),
        help="Second box as center, size and rotation (default: 0.5 0.2 1 2 -0.4)",
    )
    parser.add_argument(
        "--algorithm",
        type=str,
        default="default",
        choices=["default", "rotating_caliper", "sutherland_hodgeman"],
        help="Intersection algorithm (default: default)",
    )
    parser.add_argument(
        "--size",
        type=int,
        default=512,
        help="Image width and height in pixels (default: 512)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="overlap.png",
        help="Output file path (default: overlap.png)",
    )
    parser.add_argument(
        "--show",
        action="store_true",
        help="Open a Matplotlib preview window",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args()


def render_overlap(
    box1: list[float],
    box2: list[float],
    algorithm: str = "default",
    size: int = 512,
    output_path: str = "overlap.png",
    show: bool = False,
    quiet: bool = False,
) -> Path:
    """Compute the overlap metrics of two boxes and save a preview image.

    Args:
        box1: First box (x, y, w, h, r).
        box2: Second box (x, y, w, h, r).
        algorithm: Intersection algorithm name.
        size: Image width and height in pixels.
        output_path: Output file path (PNG).
        show: If True, also display the image.
        quiet: If True, suppress progress output.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports so the precision is resolved after argument parsing
    from dgal.batch import api
    from dgal.batch.polygons import PolygonBatch
    from dgal.preview.export import save_png
    from dgal.preview.raster import rasterize_pair

    a = PolygonBatch.from_xywhr([box1])
    b = PolygonBatch.from_xywhr([box2])

    overlap = api.intersect(a, b, algorithm)
    iou = api.iou(a, b, algorithm).values[0]
    giou = api.giou(a, b, algorithm).values[0]
    diou = api.diou(a, b, algorithm).values[0]
    if not quiet:
        print(f"Intersection: {overlap.polygons.counts[0]} vertices, area {api.area(overlap.polygons)[0]:.6f}")
        print(f"IoU:  {iou:.6f}")
        print(f"GIoU: {giou:.6f}")
        print(f"DIoU: {diou:.6f}")

    image = rasterize_pair(a, b, width=size, height=size, algorithm=algorithm)
    output_file = Path(output_path)
    save_png(image, str(output_file))
    if not quiet:
        print(f"Saved to: {output_file.absolute()}")

    if show:
        from dgal.preview.display import show_image

        show_image(image, title=f"IoU {iou:.3f}  GIoU {giou:.3f}  DIoU {diou:.3f}")

    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()

    import dgal.config

    dgal.config.init(arch=ti.cpu)

    try:
        render_overlap(
            box1=args.box1,
            box2=args.box2,
            algorithm=args.algorithm,
            size=args.size,
            output_path=args.output,
            show=args.show,
            quiet=args.quiet,
        )
        return 0
    except (ValueError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
