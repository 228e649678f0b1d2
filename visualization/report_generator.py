"""
HTML caregiver report.

Renders a ChildReport as a single self-contained HTML page:
- Child header with plays and average score
- One card per played game
- Session history table (Letter Sound dyslexia flags highlighted)
- ADHD screening summary with z-scores
- Optional embedded plots
"""

import base64
import html
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

from reporting.aggregator import ChildReport, GameSummary, NO_SCORE

logger = logging.getLogger(__name__)

GAME_STYLES = {
    'color': ('🎨', 'pink'),
    'emotion': ('😊', 'sky'),
    'letterSound': ('🔤', 'teal'),
    'symbol': ('✨', 'amber'),
    'emotionAdventure': ('🌟', 'indigo'),
}


def generate_html_report(
    report: ChildReport,
    output_path: str,
    history_plot_path: Optional[str] = None,
    adhd_plot_path: Optional[str] = None
) -> str:
    """
    Generate the caregiver HTML report.

    Args:
        report: ChildReport from the aggregator
        output_path: Path to save HTML report
        history_plot_path: Optional path to score history plot image
        adhd_plot_path: Optional path to ADHD z-score plot image

    Returns:
        Path to generated HTML report
    """
    logger.info(f"Generating HTML report: {output_path}")

    page = render_html(report, history_plot_path, adhd_plot_path)

    Path(output_path).parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, 'w', encoding='utf-8') as f:
        f.write(page)

    logger.info(f"HTML report saved: {output_path}")
    return output_path


def render_html(
    report: ChildReport,
    history_plot_path: Optional[str] = None,
    adhd_plot_path: Optional[str] = None
) -> str:
    """Build complete HTML document with Tailwind."""
    history_img = _embed_image(history_plot_path) if history_plot_path else ""
    adhd_img = _embed_image(adhd_plot_path) if adhd_plot_path else ""
    name = html.escape(report.child_id)

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Play Scope Report - {name}</title>
    <script src="https://cdn.tailwindcss.com"></script>
</head>
<body class="bg-white text-gray-800 antialiased font-sans">
    <div class="max-w-screen-lg mx-auto px-4 py-8 space-y-10">
        {_build_header(report)}
        {_build_availability_notice(report)}
        {_build_game_cards(report)}
        {_build_plot(history_img, "Score History")}
        {_build_history_table(report)}
        {_build_adhd_section(report, adhd_img)}
        {_build_footer()}
    </div>
</body>
</html>
"""


def _build_header(report: ChildReport) -> str:
    joined = ""
    if report.created_at:
        joined = f'<p class="text-sm text-gray-500">Joined: {html.escape(str(report.created_at))}</p>'
    age = report.age if report.age is not None else NO_SCORE
    return f"""
    <header class="flex items-center space-x-6">
        <div>
            <h1 class="text-4xl font-extrabold">{html.escape(report.child_id)}</h1>
            <p class="text-lg">Age: {age}</p>
            {joined}
            <p class="mt-6 font-semibold">Sessions Played: {report.total_plays}</p>
            <p class="font-semibold">Average Score: {report.average_score_display}</p>
        </div>
    </header>
    """


def _build_availability_notice(report: ChildReport) -> str:
    missing = []
    if not report.local_available:
        missing.append("this device's saved sessions")
    if not report.remote_available:
        missing.append("synced sessions from other devices")
    if not missing:
        return ""
    return f"""
    <div class="bg-amber-50 rounded p-4 border border-amber-200 text-sm text-amber-800">
        Some data could not be loaded ({' and '.join(missing)}). This report shows everything else.
    </div>
    """


def _build_game_cards(report: ChildReport) -> str:
    if not report.game_summaries:
        return ""
    cards = "".join(_build_game_card(s) for s in report.game_summaries)
    return f"""
    <section class="grid grid-cols-1 sm:grid-cols-2 md:grid-cols-3 lg:grid-cols-5 gap-6">
        {cards}
    </section>
    """


def _build_game_card(summary: GameSummary) -> str:
    icon, color = GAME_STYLES.get(summary.key, ('🎮', 'gray'))
    risk = ""
    if summary.latest_risk is not None:
        risk_class = "text-red-600" if summary.latest_risk > 2 else "text-gray-700"
        risk = f'<p class="text-sm {risk_class}">Recent Risk: {summary.latest_risk:.2f}</p>'
    return f"""
        <div class="bg-{color}-50 rounded p-4 shadow flex flex-col items-center">
            <div class="text-6xl select-none">{icon}</div>
            <h3 class="text-xl font-semibold mb-1">{summary.display}</h3>
            <p class="text-sm mb-2">Attempts: {summary.attempts}</p>
            <p class="text-2xl font-bold mb-2">{_format_number(summary.best_score)}</p>
            {risk}
            {_describe_metrics(summary.key, summary.metrics)}
        </div>
    """


def _describe_metrics(key: str, metrics: Optional[Dict]) -> str:
    """One-line caregiver summary of a game's full-history metrics."""
    if not metrics:
        return ""
    if key == 'color':
        text = f"Flagged in {metrics['flagged_sessions']} of {metrics['screened_sessions']} screens"
    elif key == 'emotion':
        text = metrics['risk_level']
    elif key == 'letterSound':
        text = "Reading difficulty indicators present" if metrics['flag_dyslexia'] else "Within expected range"
    elif key == 'symbol':
        text = metrics['interpretation']
    elif key == 'emotionAdventure':
        text = metrics['feedback']
    else:
        return ""
    return f'<p class="text-xs text-gray-600 text-center mt-2">{html.escape(text)}</p>'


def _build_history_table(report: ChildReport) -> str:
    if not report.history:
        body = '<tr><td colspan="7" class="text-center p-6 text-gray-500">No sessions found.</td></tr>'
    else:
        rows = []
        for row in report.history:
            accuracy = f"{row.accuracy * 100:.0f}%" if row.accuracy is not None else NO_SCORE
            avg_time = f"{row.avg_time:.2f}" if row.avg_time is not None else NO_SCORE
            highlight = ' class="bg-yellow-100"' if row.flag_dyslexia else ''
            rows.append(f"""
                <tr{highlight}>
                    <td class="px-2 py-1 border border-gray-300">{html.escape(row.timestamp)}</td>
                    <td class="px-2 py-1 border border-gray-300">{html.escape(row.game)}</td>
                    <td class="px-2 py-1 border border-gray-300 font-semibold">{_format_number(row.score)}</td>
                    <td class="px-2 py-1 border border-gray-300">{accuracy}</td>
                    <td class="px-2 py-1 border border-gray-300">{avg_time}</td>
                    <td class="px-2 py-1 border border-gray-300">{"⚠️" if row.flag_dyslexia else ""}</td>
                    <td class="px-2 py-1 border border-gray-300">{html.escape(row.status)}</td>
                </tr>""")
        body = "".join(rows)

    return f"""
    <section>
        <h2 class="text-2xl font-bold mb-4">Session History</h2>
        <div class="overflow-x-auto">
            <table class="w-full border border-gray-300 rounded text-sm">
                <thead class="bg-gray-100">
                    <tr>
                        <th class="p-2 border border-gray-300">Date</th>
                        <th class="p-2 border border-gray-300">Game</th>
                        <th class="p-2 border border-gray-300">Score</th>
                        <th class="p-2 border border-gray-300">Accuracy</th>
                        <th class="p-2 border border-gray-300">Avg Time (s)</th>
                        <th class="p-2 border border-gray-300">Dyslexia Flag</th>
                        <th class="p-2 border border-gray-300">Status</th>
                    </tr>
                </thead>
                <tbody>{body}</tbody>
            </table>
        </div>
    </section>
    """


def _build_adhd_section(report: ChildReport, adhd_img: str) -> str:
    adhd = report.adhd
    if not adhd:
        return ""
    plot = _build_plot(adhd_img, "ADHD Z-Scores")
    return f"""
    <section class="max-w-screen-md mx-auto bg-yellow-50 p-6 rounded shadow">
        <h2 class="text-2xl font-bold mb-4 text-yellow-900">ADHD Screening Summary</h2>
        <div class="grid grid-cols-2 gap-4 text-yellow-900 mb-4">
            <div>Omission Rate: {adhd['omission'] * 100:.1f}%</div>
            <div>Commission Rate: {adhd['commission'] * 100:.1f}%</div>
            <div>Mean Reaction Time: {adhd['mean_rt'] * 1000:.0f} ms</div>
            <div>Reaction Time SD: {adhd['sd_rt'] * 1000:.0f} ms</div>
        </div>
        <div>
            <strong>Z-Scores:</strong>
            <ul class="list-disc list-inside">
                <li>Omission: {adhd['z_omission']:.2f}</li>
                <li>Commission: {adhd['z_commission']:.2f}</li>
                <li>RT SD: {adhd['z_sd_rt']:.2f}</li>
            </ul>
        </div>
        <div class="mt-2">
            Composite Score: {adhd['composite_score']:.2f}<br />
            Flags triggered: {adhd['flags']} / 3: {html.escape(adhd['interpretation'])}
        </div>
        {plot}
    </section>
    """


def _build_plot(img: str, alt: str) -> str:
    if not img:
        return ""
    return f'<div class="rounded-lg border border-gray-200 p-4 flex justify-center"><img src="{img}" alt="{alt}" class="max-h-96" /></div>'


def _build_footer() -> str:
    generated = datetime.now().strftime('%Y-%m-%d %H:%M')
    return f"""
    <footer class="pt-8 border-t border-gray-200 text-center text-gray-400 text-sm">
        <p class="font-medium text-gray-500 mb-1">Generated by Play Scope &bull; {generated}</p>
        <p>Screening indicators only. Not a medical diagnosis.</p>
    </footer>
    """


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.2f}"


def _embed_image(image_path: str) -> str:
    """Embed image as base64 data URI."""
    try:
        with open(image_path, 'rb') as f:
            img_data = base64.b64encode(f.read()).decode('utf-8')
    except OSError as e:
        logger.error(f"Failed to embed image {image_path}: {e}")
        return ""

    suffix = Path(image_path).suffix.lower()
    mime_type = 'image/png' if suffix == '.png' else 'image/jpeg'
    return f"data:{mime_type};base64,{img_data}"
