"""UI sub-package.

Plotly figure builders and a Gradio demo for the irAE charts.

Quick usage::

    from irae_charts.ui import launch
    launch(port=7860, share=False)
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import gradio as gr

logger = logging.getLogger(__name__)


def create_app() -> "gr.Blocks":
    """Build and return the Gradio Blocks application.

    Lazy-imports the app module so that ``import irae_charts.ui`` does not
    require Gradio to be installed until the app is actually created.
    """
    from irae_charts.ui.app import create_app as _create_app

    return _create_app()


def launch(
    port: int = 7860,
    share: bool = False,
    debug: bool = False,
) -> None:
    """Build the app and launch the Gradio server.

    Parameters
    ----------
    port:
        Port number for the Gradio server.
    share:
        If ``True``, create a publicly shareable Gradio link.
    debug:
        If ``True``, enable Gradio debug mode.
    """
    app = create_app()
    logger.info("Launching irAE chart demo on port %d", port)
    app.launch(server_port=port, share=share, debug=debug)


__all__ = ["create_app", "launch"]
