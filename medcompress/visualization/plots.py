"""
Plotting functions for compression statistics.
"""

from typing import Optional, Tuple
from pathlib import Path

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import seaborn as sns

from medcompress.metrics.statistics import StatisticsSummary


def _save(fig, save_path: Optional[Path]):
    if save_path is not None:
        save_path = Path(save_path)
        save_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(save_path, dpi=150, bbox_inches="tight")


def plot_achieved_ratio(
    summary: StatisticsSummary,
    figsize: Tuple[int, int] = (8, 6),
    save_path: Optional[Path] = None,
) -> "plt.Figure":
    """
    Achieved vs. target compression ratio per codec.
    
    Buckets without a successful encode are left out. The dashed line
    marks achieved == target.
    
    Args:
        summary: Statistics to plot
        figsize: Figure size
        save_path: Optional path to save figure
    
    Returns:
        Matplotlib figure
    """
    df = summary.to_dataframe()
    df = df[df["avg_time_ms"] > 0]
    
    fig, ax = plt.subplots(figsize=figsize)
    if not df.empty:
        sns.lineplot(data=df, x="target_ratio", y="avg_ratio", hue="codec", marker="o", ax=ax)
    
    ratios = summary.target_ratios
    if ratios:
        ax.plot([min(ratios), max(ratios)], [min(ratios), max(ratios)], "k--", alpha=0.5, label="target")
    
    ax.set_xlabel("Target ratio", fontsize=12)
    ax.set_ylabel("Achieved ratio", fontsize=12)
    ax.set_title("Achieved compression ratio", fontsize=14)
    ax.grid(True, alpha=0.3)
    ax.legend(loc="upper left")
    
    _save(fig, save_path)
    return fig


def plot_compression_time(
    summary: StatisticsSummary,
    figsize: Tuple[int, int] = (10, 6),
    save_path: Optional[Path] = None,
) -> "plt.Figure":
    """Grouped bar chart of mean encode time per target ratio and codec."""
    df = summary.to_dataframe()
    df = df[df["avg_time_ms"] > 0]
    
    fig, ax = plt.subplots(figsize=figsize)
    if not df.empty:
        sns.barplot(data=df, x="target_ratio", y="avg_time_ms", hue="codec", ax=ax)
    
    ax.set_xlabel("Target ratio", fontsize=12)
    ax.set_ylabel("Avg time (ms)", fontsize=12)
    ax.set_title("Compression time", fontsize=14)
    ax.grid(True, axis="y", alpha=0.3)
    
    _save(fig, save_path)
    return fig


def save_summary_figures(summary: StatisticsSummary, output_dir: Path):
    """Render both summary plots into `output_dir`."""
    output_dir = Path(output_dir)
    for plot, filename in (
        (plot_achieved_ratio, "achieved_ratio.png"),
        (plot_compression_time, "compression_time.png"),
    ):
        fig = plot(summary, save_path=output_dir / filename)
        plt.close(fig)
