"""Hugging Face Spaces entry point for the irAE chart demo."""
import os
import sys

# Ensure src/ is on the Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "src"))

from irae_charts.ui import create_app  # noqa: E402

app = create_app()
app.launch(server_name="0.0.0.0", server_port=7860)
