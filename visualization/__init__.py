"""
Visualization and reporting module.

This package renders the caregiver report:
- Score history plot: per-game scores over time
- ADHD z-score plot: distance from age norms per measure
- HTML report: child summary, game cards, history table, ADHD summary

Non-diagnostic language throughout.
"""

from .timeline_plots import (
    plot_score_history,
    plot_adhd_zscores,
    save_plot
)
from .report_generator import (
    generate_html_report,
    render_html
)

__all__ = [
    'plot_score_history',
    'plot_adhd_zscores',
    'save_plot',
    'generate_html_report',
    'render_html',
]
