"""
Tests for caregiver report rendering.

Tests cover:
- HTML sections for a populated report
- Empty and degraded reports
- Plot generation
"""

import pytest # pyright: ignore[reportMissingImports]
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from reporting.aggregator import build_child_report
from scoring.emotion_adventure import compute_anxiety_score
from sessions.models import ChildProfile, SessionRecord
from visualization.report_generator import generate_html_report, render_html
from visualization.timeline_plots import plot_adhd_zscores, plot_score_history


def make_report(**kwargs):
    sessions = [SessionRecord.from_dict(r) for r in [
        {'kid': 'maya', 'date': '2024-05-03T10:00:00Z', 'game': 'Symbol Spotter',
         'hits': 5, 'misses': 5, 'falseAlarms': 5, 'totalTargets': 10,
         'trials': [{'is_correct': True, 'response_time': rt} for rt in (0.5, 0.9)]},
        {'kid': 'maya', 'date': '2024-05-02T10:00:00Z', 'game': 'Letter Sound',
         'total': 10, 'score': 5, 'total_time': 20},
        {'kid': 'maya', 'date': '2024-05-01T10:00:00Z', 'game': 'Emotion Adventure', 'score': 2,
         'choices': [{'score': 2, 'rt': 5}, {'score': 2, 'rt': 5}]},
    ]]
    return build_child_report('maya', sessions, ChildProfile.create('maya', age=4), **kwargs)


class TestRenderHtml:
    """Test HTML content."""

    def test_sections_present(self):
        """Test sections present."""
        page = render_html(make_report())

        assert "<h1" in page and "maya" in page
        assert "Sessions Played: 3" in page
        assert "Session History" in page
        assert "ADHD Screening Summary" in page
        assert "Elevated ADHD risk detected; consult a specialist." in page
        assert compute_anxiety_score([2, 2], [5, 5]).feedback in page
        assert "Not a medical diagnosis." in page

    def test_dyslexia_row_highlighted(self):
        """Test dyslexia row highlighted."""
        page = render_html(make_report())
        assert 'class="bg-yellow-100"' in page

    def test_empty_report(self):
        """Test empty report."""
        report = build_child_report('leo', [])
        page = render_html(report)

        assert "No sessions found." in page
        assert "Average Score: —" in page
        assert "ADHD Screening Summary" not in page

    def test_degraded_source_notice(self):
        """Test degraded source notice."""
        page = render_html(make_report(remote_available=False))
        assert "Some data could not be loaded" in page

    def test_child_name_escaped(self):
        """Test child name escaped."""
        page = render_html(build_child_report('<b>x</b>', []))
        assert "<b>x</b>" not in page


class TestFiles:
    """Test plots and report files."""

    def test_generate_with_plots(self, tmp_path):
        """Test generate with plots."""
        report = make_report()
        history_plot = plot_score_history(list(report.history), str(tmp_path / "history.png"))
        adhd_plot = plot_adhd_zscores(report.adhd, str(tmp_path / "adhd.png"))

        assert Path(history_plot).exists()
        assert Path(adhd_plot).exists()

        html_path = generate_html_report(report, str(tmp_path / "out" / "report.html"), history_plot, adhd_plot)
        content = Path(html_path).read_text(encoding='utf-8')
        assert "data:image/png;base64," in content

    def test_nothing_to_plot(self, tmp_path):
        """Test nothing to plot."""
        report = build_child_report('leo', [])
        assert plot_score_history(list(report.history), str(tmp_path / "history.png")) == ""
        assert plot_adhd_zscores(report.adhd, str(tmp_path / "adhd.png")) == ""


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
