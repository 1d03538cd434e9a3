"""Terminal-Anzeige eines Lehrer-Tages (Rich)."""

from view.tui_renderer import render_day_rows, render_queue_rows

__all__ = ["render_day_rows", "render_queue_rows"]
