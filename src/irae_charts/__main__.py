"""Entry point for the irAE chart demo.

Launch the Gradio web interface with::

    python -m irae_charts
    python -m irae_charts --port 7860 --share --debug

or write a static HTML snapshot of every chart::

    python -m irae_charts --snapshot charts.html --seed 7
"""

from __future__ import annotations

import argparse
import locale
import logging
from pathlib import Path

from irae_charts.config.settings import get_typed_config

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line argument parser."""
    cfg = get_typed_config()
    parser = argparse.ArgumentParser(
        prog="irae_charts",
        description="Interactive irAE trajectory charts -- Gradio demo",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(cfg.get("demo.port", 7860)),
        help="Port number for the Gradio server (default: 7860).",
    )
    parser.add_argument(
        "--share",
        action="store_true",
        default=False,
        help="Create a publicly shareable Gradio link.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Enable debug mode with verbose logging.",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=int(cfg.get("demo.seed", 42)),
        help="Seed for the synthetic demo payload (default: 42).",
    )
    parser.add_argument(
        "--snapshot",
        type=str,
        default=None,
        help="Write the rendered charts to this HTML file and exit.",
    )
    return parser


def _configure_logging(debug: bool) -> None:
    """Set up root logger.

    Parameters
    ----------
    debug:
        If True, set log level to DEBUG; otherwise INFO.
    """
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _configure_collation() -> None:
    """Use the environment's collation order for text column sorting."""
    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error as exc:
        logger.warning("Unsupported collation locale, sorting by code point: %s", exc)


def write_snapshot(path: str | Path, seed: int) -> Path:
    """Render the demo payload for *seed* to a standalone HTML file."""
    from irae_charts.data.synthetic import generate_demo_payload
    from irae_charts.ui.callbacks import render_snapshot

    out = Path(path)
    body = render_snapshot(generate_demo_payload(seed))
    out.write_text(f"<!DOCTYPE html>\n<html><head><meta charset=\"utf-8\"></head>{body}</html>\n",
                   encoding="utf-8")
    logger.info("Wrote chart snapshot to %s", out)
    return out


def main(argv: list[str] | None = None) -> None:
    """Parse arguments and launch the Gradio application."""
    args = build_parser().parse_args(argv)
    _configure_logging(args.debug)
    _configure_collation()

    if args.snapshot:
        write_snapshot(args.snapshot, args.seed)
        return

    import os

    os.environ["IRAE_DEMO__SEED"] = str(args.seed)
    get_typed_config.cache_clear()

    from irae_charts.ui import launch

    logger.info("Starting irAE chart demo on port %d", args.port)
    launch(port=args.port, share=args.share, debug=args.debug)


if __name__ == "__main__":
    main()
