from __future__ import annotations

from pathlib import Path
from typing import Union

import matplotlib
import matplotlib.pyplot as plt

from survey_analyzer.tools.stats import DistributionResult

matplotlib.use("Agg")


def plot_distribution(
    result: DistributionResult,
    path: Union[str, Path],
    top_k: int = 15,
) -> Path:
    """
    Horizontal bar chart of the top_k options of a distribution, saved as PNG.

    Bars show the percentage of respondents who gave each option, so for a
    multiple-choice question the bars do not add up to 100%.

    Args:
        result: Distribution to draw.
        path: Output image path (parent directories are created).
        top_k: Number of options to keep, in presentation order.

    Returns:
        Path: the written file.
    """
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)

    rows = result.items()[: max(int(top_k), 1)]
    # Largest bar on top.
    labels = [r[0] for r in reversed(rows)]
    values = [r[2] for r in reversed(rows)]

    fig, ax = plt.subplots(figsize=(10, max(3.0, 0.4 * len(rows) + 1.5)))
    try:
        bars = ax.barh(labels, values, color="#4C72B0")
        ax.bar_label(bars, fmt="%.1f%%", padding=3, fontsize=8)
        ax.set_xlabel("Respondents (%)")
        ax.set_title(f"{result.question_id}: {result.question_label}\n(n={result.total_responses})", fontsize=10)
        ax.set_xlim(0, max(values + [1.0]) * 1.15)
        ax.grid(True, axis="x", linestyle="--", alpha=0.7)
        fig.tight_layout()
        fig.savefig(out, dpi=120)
    finally:
        plt.close(fig)
    return out
