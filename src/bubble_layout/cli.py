"""
Command-line interface for the bubble layout engine.

Usage:
    bubble-layout preview --items items.csv --mode spending --ticks 300 --out frame.png
    bubble-layout gui --items items.csv -c configs/default.yaml
"""

import argparse
import sys
from pathlib import Path

from .config import default_config, load_config
from .datasets import MetricMode, SAMPLE_ITEMS, load_items
from .engine import BubbleEngine
from .exceptions import InvalidItemDataError, UnknownMetricModeError, UnsupportedFileTypeError
from .preview import export_png
from .utils.logger.logger import Logger


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Force-directed bubble chart layout",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Render the sample items after 300 ticks
    bubble-layout preview --out frame.png

    # Spending mode on a phone-sized container
    bubble-layout preview --mode spending --width 375 --height 667 --out phone.png

    # Interactive window
    bubble-layout gui --items items.csv
"""
    )
    sub = parser.add_subparsers(dest="command", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help="Path to YAML configuration file (optional)"
    )
    common.add_argument(
        "--items", "-i",
        type=Path,
        default=None,
        help="Item dataset (CSV, XLSX or JSON); sample items when omitted"
    )
    common.add_argument(
        "--mode", "-m",
        type=str,
        default=MetricMode.FREQUENCY.value,
        help="Metric mode: frequency or spending (default: frequency)"
    )

    preview = sub.add_parser("preview", parents=[common], help="Run headless and write a PNG")
    preview.add_argument("--ticks", "-t", type=int, default=300, help="Ticks to simulate (default: 300)")
    preview.add_argument("--width", type=float, default=800.0, help="Container width in px")
    preview.add_argument("--height", type=float, default=600.0, help="Container height in px")
    preview.add_argument("--seed", type=int, default=None, help="Random seed (overrides config)")
    preview.add_argument("--out", "-o", type=Path, default=Path("frame.png"), help="Output PNG path")
    preview.add_argument("--quiet", "-q", action="store_true", help="Suppress output except errors")

    sub.add_parser("gui", parents=[common], help="Open the interactive window")
    return parser


def run_preview(args) -> int:
    config = load_config(args.config) if args.config else default_config()
    if args.seed is not None:
        config.seed = args.seed
    items = load_items(args.items) if args.items else list(SAMPLE_ITEMS)

    with BubbleEngine(config) as engine:
        engine.mount(lambda: (args.width, args.height))
        engine.load_items(items, args.mode)
        snapshot = engine.run_ticks(args.ticks)
        viewport = engine.viewport
        export_png(snapshot, viewport.width, viewport.height, out=args.out)

    if not args.quiet:
        print(f"Simulated {args.ticks} ticks for {len(items)} items ({args.mode})")
        print(f"  Container: {viewport.width:.0f}x{viewport.height:.0f}"
              f"{' (constrained)' if viewport.is_constrained else ''}")
        print(f"  Wrote: {args.out}")
    return 0


def main(argv=None):
    """Main CLI entry point."""
    args = _build_parser().parse_args(argv)
    Logger.initialize()

    if args.command == "gui":
        # Import here to avoid DearPyGui import for headless use
        from .gui.app import run_gui

        try:
            run_gui(
                str(args.items) if args.items else None,
                str(args.config) if args.config else None,
                args.mode
            )
        except KeyboardInterrupt:
            print("\nGUI closed.")
        return 0

    try:
        return run_preview(args)
    except FileNotFoundError as e:
        print(f"Error: File not found: {e.filename}", file=sys.stderr)
    except (ValueError, InvalidItemDataError, UnsupportedFileTypeError, UnknownMetricModeError) as e:
        print(f"Error: {e}", file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())
