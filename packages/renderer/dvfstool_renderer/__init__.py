"""Terminal rendering for the dvfstool live view."""

from .live_view import LiveView, build_lines, format_temp_c

__all__ = [
    "LiveView",
    "build_lines",
    "format_temp_c",
]
