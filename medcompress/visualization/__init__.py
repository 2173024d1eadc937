"""Visualization tools for compression statistics."""

from medcompress.visualization.plots import (
    plot_achieved_ratio,
    plot_compression_time,
    save_summary_figures,
)

__all__ = [
    "plot_achieved_ratio",
    "plot_compression_time",
    "save_summary_figures",
]
