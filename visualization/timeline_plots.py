"""
Score history and screening plots for the caregiver report.

Generates static plots showing:
- Per-game score history over time
- ADHD z-scores against the flag threshold

Clinical rationale:
- Score history shows practice effects vs. persistent difficulty
- Z-score bars make "how far from age peers" visible at a glance

Engineering approach:
- Matplotlib (Agg backend) for static PNGs embedded in the HTML report
- Seaborn styling
- One line per game, color-coded consistently across reports
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import matplotlib.dates as mdates
import seaborn as sns

from sessions.models import GameKind
from sessions.reconciliation import parse_timestamp

logger = logging.getLogger(__name__)

sns.set_style("whitegrid")
plt.rcParams['font.size'] = 10

GAME_COLORS = {
    GameKind.COLOR_SPOTTER.value: '#ec4899',
    GameKind.EMOTION_DETECTOR.value: '#0ea5e9',
    GameKind.LETTER_SOUND.value: '#14b8a6',
    GameKind.SYMBOL_SPOTTER.value: '#f59e0b',
    GameKind.EMOTION_ADVENTURE.value: '#6366f1',
}


def plot_score_history(
    history: List,
    output_path: str,
    title: str = "Score History"
) -> str:
    """
    Create a line plot of scores over time, one line per game.

    Args:
        history: SessionRow objects (any order)
        output_path: Path to save plot
        title: Plot title

    Returns:
        Path to saved plot, or "" when there is nothing to plot
    """
    series: Dict[str, List] = {}
    for row in history:
        if row.game_key is None:
            continue
        series.setdefault(row.game_key, []).append((parse_timestamp(row.timestamp), row.score))

    if not series:
        logger.warning("No game sessions to plot")
        return ""

    logger.info(f"Generating score history plot: {output_path}")

    fig, ax = plt.subplots(figsize=(10, 5))

    for kind in GameKind:
        points = sorted(series.get(kind.value, []), key=lambda p: p[0])
        if not points:
            continue
        times, scores = zip(*points)
        ax.plot(
            times, scores,
            marker='o', linewidth=2, alpha=0.8,
            color=GAME_COLORS[kind.value], label=kind.display_name
        )

    ax.set_ylabel('Score', fontsize=12, fontweight='bold')
    ax.set_title(title, fontsize=14, fontweight='bold')
    ax.xaxis.set_major_formatter(mdates.DateFormatter('%b %d'))
    ax.legend(loc='upper left')
    fig.autofmt_xdate()

    return save_plot(fig, output_path)


def plot_adhd_zscores(
    adhd: Optional[Dict],
    output_path: str,
    flag_threshold: float = 1.5,
    title: str = "ADHD Screening Z-Scores"
) -> str:
    """
    Create a bar chart of the three ADHD z-scores.

    Args:
        adhd: ADHD metrics dict (z_omission, z_commission, z_sd_rt)
        output_path: Path to save plot
        flag_threshold: Z value above which a measure counts as a flag
        title: Plot title

    Returns:
        Path to saved plot, or "" when ADHD metrics are unavailable
    """
    if not adhd:
        logger.warning("No ADHD metrics to plot")
        return ""

    logger.info(f"Generating ADHD z-score plot: {output_path}")

    names = ['Omission', 'Commission', 'RT SD']
    values = [adhd['z_omission'], adhd['z_commission'], adhd['z_sd_rt']]
    colors = ['#d62728' if v > flag_threshold else '#2ca02c' for v in values]

    fig, ax = plt.subplots(figsize=(8, 5))
    bars = ax.bar(names, values, color=colors, alpha=0.7, edgecolor='black', linewidth=1.5)

    for bar, value in zip(bars, values):
        ax.text(bar.get_x() + bar.get_width() / 2., bar.get_height(),
                f'{value:.2f}',
                ha='center', va='bottom' if value >= 0 else 'top', fontweight='bold', fontsize=11)

    ax.axhline(y=flag_threshold, color='gray', linestyle='--', alpha=0.6, label=f'Flag threshold (z > {flag_threshold})')
    ax.axhline(y=0, color='black', linewidth=0.8)
    ax.set_ylabel('Z-score vs. age norms', fontsize=12, fontweight='bold')
    ax.set_title(title, fontsize=14, fontweight='bold')
    ax.legend()

    return save_plot(fig, output_path)


def save_plot(fig, output_path: str, dpi: int = 150) -> str:
    """
    Save matplotlib figure to file and close it.

    Args:
        fig: Matplotlib figure object
        output_path: Path to save
        dpi: Resolution
    """
    Path(output_path).parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    fig.savefig(output_path, dpi=dpi, bbox_inches='tight')
    plt.close(fig)
    logger.info(f"Plot saved: {output_path}")
    return output_path
