"""Gradio Blocks demo -- one tab per chart plus a static markup view."""
from __future__ import annotations

import logging

try:
    import gradio as gr  # type: ignore[import-untyped]
except ImportError as _exc:  # pragma: no cover
    raise ImportError("Gradio is required: pip install 'gradio>=4.0'") from _exc

from irae_charts.config.settings import get_typed_config
from irae_charts.ui import callbacks as _cb

logger = logging.getLogger(__name__)

_HEADER = (
    '<div style="text-align:center;padding:16px 0 8px;">'
    '<h1 style="font-size:1.8rem;font-weight:700;margin:0;">irAE Trajectory Charts</h1>'
    '<p style="color:#666;font-size:0.9rem;margin:6px 0 0;">'
    'Cumulative incidence &bull; State transitions &bull; Hazard ratios</p></div>'
)


def create_app() -> gr.Blocks:
    """Build the demo application on a synthetic payload."""
    seed = int(get_typed_config().get("demo.seed", 42))

    with gr.Blocks(title="irAE Trajectory Charts") as app:
        gr.HTML(_HEADER)
        with gr.Row():
            sd = gr.Number(value=seed, label="Random seed", precision=0)
            gb = gr.Button("Generate", variant="primary")

        with gr.Tab("Cumulative Incidence"):
            gr.Markdown("Click a legend entry to hide or show a category. "
                        "Curves are truncated at three years.")
            inc = gr.Plot(show_label=False)
        with gr.Tab("Transitions"):
            flow = gr.Plot(show_label=False)
        with gr.Tab("Hazard Ratios"):
            gr.Markdown("Only significant comparisons are colored; others are gray.")
            hm = gr.Plot(show_label=False)
        with gr.Tab("Tables"):
            hrt = gr.Dataframe(label="Hazard ratios", interactive=False)
            ast = gr.Dataframe(label="Associations", interactive=False)
        with gr.Tab("Static Markup"):
            snap = gr.HTML()

        outputs = [inc, flow, hm, hrt, ast, snap]
        gb.click(_cb.load_dashboard, [sd], outputs)
        app.load(_cb.load_dashboard, [sd], outputs)
    return app
