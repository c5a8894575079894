"""Bar chart of RVU per period, rendered to an image file."""

import logging
from typing import Optional, Sequence

from matplotlib.figure import Figure

from ..logic.analytics import PeriodSummary

logger = logging.getLogger(__name__)

BAR_COLOR = '#4a90d9'
SELECTED_BAR_COLOR = '#e67e22'
DIMMED_BAR_COLOR = '#a9c6ea'


def render_period_chart(summaries: Sequence[PeriodSummary], path: str,
                        selected_index: Optional[int] = None,
                        title: str = "RVU by Period") -> str:
    """Write a bar chart of total RVU per bucket.

    Args:
        summaries: Period summaries, oldest first
        path: Output file; the format follows the extension (.png, .svg, .pdf)
        selected_index: Bucket to highlight; the others are dimmed
        title: Chart title

    Returns:
        The path written
    """
    labels = [s.period_label for s in summaries]
    values = [s.total_rvu for s in summaries]

    if selected_index is not None and 0 <= selected_index < len(summaries):
        colors = [SELECTED_BAR_COLOR if i == selected_index else DIMMED_BAR_COLOR
                  for i in range(len(summaries))]
    else:
        colors = [BAR_COLOR] * len(summaries)

    fig_width = max(6, min(0.6 * len(summaries) + 2, 24))
    fig = Figure(figsize=(fig_width, 4.5), dpi=100)
    ax = fig.add_subplot(1, 1, 1)

    positions = list(range(len(summaries)))
    ax.bar(positions, values, color=colors)
    ax.set_xticks(positions)
    ax.set_xticklabels(labels, rotation=45 if len(labels) > 6 else 0, ha='right' if len(labels) > 6 else 'center',
                       fontsize=8)
    ax.set_ylabel("Work RVU")
    ax.set_title(title, fontsize=12, fontweight='bold')
    ax.grid(axis='y', alpha=0.3)

    if not summaries:
        ax.text(0.5, 0.5, "No visits in range", ha='center', va='center', transform=ax.transAxes)

    fig.tight_layout()
    fig.savefig(path)
    logger.info(f"Wrote period chart with {len(summaries)} bars to {path}")
    return path


__all__ = ['render_period_chart']
