"""
Unit tests for caregiver report aggregation.

Tests cover:
- Game summary cards (attempts, best score, latest risk)
- Per-session history rows
- ADHD summary availability
- Empty histories
- Idempotence
"""

import json
import pytest # pyright: ignore[reportMissingImports]
import numpy as np
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from reporting.aggregator import NO_SCORE, build_child_report, partition_by_game
from scoring.emotion_detector import LOW_RISK
from sessions.models import ChildProfile, GameKind, SessionRecord
from sessions.reconciliation import merge_sessions


def make_history():
    raw = [
        {'kid': 'maya', 'date': '2024-05-05T10:00:00Z', 'game': 'Color Spotter', 'score': 4,
         'userAnswers': ['cat', 'dog', 'fox', 'bee'], 'correctAnswers': ['cat', 'dog', 'fox', 'owl']},
        {'kid': 'maya', 'date': '2024-05-04T10:00:00Z', 'game': 'Color Spotter', 'score': 6,
         'userAnswers': ['cat', 'ant', 'bee', 'owl'], 'correctAnswers': ['cat', 'dog', 'fox', 'owl']},
        {'kid': 'maya', 'date': '2024-05-03T10:00:00Z', 'game': 'Symbol Spotter',
         'hits': 8, 'misses': 2, 'falseAlarms': 1, 'totalTargets': 10,
         'trials': [{'is_correct': True, 'response_time': rt} for rt in (0.6, 0.7, 0.65)]},
        {'kid': 'maya', 'date': '2024-05-02T10:00:00Z', 'game': 'LetterSound',
         'total': 10, 'score': 9, 'total_time': 5},
        {'kid': 'maya', 'date': '2024-05-01T12:00:00Z', 'game': 'EmotionMatch', 'score': 1, 'risk_score': 1.0,
         'trials': [{'is_correct': True, 'response_time': 1.0}, {'is_correct': False, 'response_time': 0}]},
        {'kid': 'maya', 'date': '2024-05-01T10:00:00Z', 'game': 'Animal Hide & Seek', 'score': 5},
    ]
    return [SessionRecord.from_dict(r) for r in raw]


class TestBuildChildReport:
    """Test the full report structure."""

    def test_totals_include_every_session(self):
        """Test totals include every session."""
        report = build_child_report('maya', make_history(), ChildProfile.create('maya', age=4))

        assert report.total_plays == 6
        # (4 + 6 + 8 + 9 + 1 + 5) / 6
        assert report.average_score == pytest.approx(33 / 6)
        assert report.average_score_display == "5.5"

    def test_cards_only_for_played_games(self):
        """Test cards only for played games."""
        report = build_child_report('maya', make_history(), ChildProfile.create('maya', age=4))

        keys = [s.key for s in report.game_summaries]
        assert keys == ['color', 'emotion', 'letterSound', 'symbol']
        assert report.summary_for(GameKind.EMOTION_ADVENTURE) is None

    def test_color_card(self):
        """Test Color Spotter card attempts, best score and flags."""
        report = build_child_report('maya', make_history())
        card = report.summary_for(GameKind.COLOR_SPOTTER)

        assert card.attempts == 2
        assert card.best_score == 6
        assert card.metrics == {'screened_sessions': 2, 'flagged_sessions': 1, 'latest_flag': False}

    def test_emotion_card_uses_alias_sessions(self):
        """Test emotion card uses alias sessions."""
        report = build_child_report('maya', make_history())
        card = report.summary_for(GameKind.EMOTION_DETECTOR)

        assert card.display == "Emotion Detector"
        assert card.latest_risk == 1.0
        assert card.metrics['risk_score'] == 1.0
        assert card.metrics['risk_level'] == LOW_RISK

    def test_letter_sound_history_row(self):
        """Test letter sound history row."""
        report = build_child_report('maya', make_history())
        row = next(r for r in report.history if r.game_key == 'letterSound')

        assert row.accuracy == pytest.approx(0.9)
        assert row.avg_time == pytest.approx(0.5)
        assert row.flag_dyslexia is False

    def test_history_keeps_order_and_unknown_games(self):
        """Test history keeps order and unknown games."""
        report = build_child_report('maya', make_history())

        assert [r.timestamp for r in report.history] == [s.timestamp_iso for s in make_history()]
        unknown = report.history[-1]
        assert unknown.game == 'Animal Hide & Seek'
        assert unknown.game_key is None
        assert unknown.metrics is None

    def test_adhd_summary_with_age(self):
        """Test ADHD summary with age."""
        report = build_child_report('maya', make_history(), ChildProfile.create('maya', age=4))

        assert report.adhd is not None
        assert report.adhd['z_omission'] == pytest.approx(1.6)
        assert report.adhd['flags'] == 1
        assert report.adhd['is_at_risk'] is False

    def test_adhd_unavailable_without_age(self):
        """Test ADHD unavailable without age."""
        report = build_child_report('maya', make_history(), ChildProfile.create('maya'))

        assert report.adhd is None
        assert report.summary_for(GameKind.SYMBOL_SPOTTER).metrics is None

    def test_adhd_unavailable_outside_bands(self):
        """Test ADHD unavailable outside bands."""
        report = build_child_report('maya', make_history(), ChildProfile.create('maya', age=11))
        assert report.adhd is None

    def test_empty_history(self):
        """Test empty history."""
        report = build_child_report('Maya', [], ChildProfile.create('maya', age=4))

        assert report.child_id == 'maya'
        assert report.total_plays == 0
        assert report.average_score is None
        assert report.average_score_display == NO_SCORE
        assert report.game_summaries == ()
        assert report.adhd is None

    def test_availability_flags_carried(self):
        """Test availability flags carried."""
        report = build_child_report('maya', [], remote_available=False)
        assert report.local_available
        assert not report.remote_available

    def test_idempotent(self):
        """Test report is identical across repeated runs."""
        sessions = merge_sessions(make_history(), make_history())
        profile = ChildProfile.create('maya', age=4, created_at='2024-04-01T09:00:00+00:00')

        first = json.dumps(build_child_report('maya', sessions, profile).to_dict(), sort_keys=True)
        second = json.dumps(build_child_report('maya', sessions, profile).to_dict(), sort_keys=True)
        assert first == second

    def test_config_thresholds_flow_through(self):
        """Test config thresholds flow through."""
        config = {'scoring': {'color_spotter': {'mismatch_threshold': 1}}}
        report = build_child_report('maya', make_history(), config=config)

        card = report.summary_for(GameKind.COLOR_SPOTTER)
        assert card.metrics['flagged_sessions'] == 2
        assert card.metrics['latest_flag'] is True

    def test_adhd_pools_response_times_from_all_sessions(self):
        """Test ADHD pools response times from all sessions."""
        sessions = [SessionRecord.from_dict(r) for r in [
            {'kid': 'maya', 'date': '2024-05-03T10:00:00Z', 'game': 'Symbol Spotter',
             'hits': 8, 'misses': 2, 'falseAlarms': 1, 'totalTargets': 10,
             'trials': [{'is_correct': True, 'response_time': rt} for rt in (0.6, 0.7, 0.65)]},
            {'kid': 'maya', 'date': '2024-05-02T10:00:00Z', 'game': 'Emotion Detector',
             'trials': [{'is_correct': True, 'response_time': 4.0}]},
        ]]
        profile = ChildProfile.create('maya', age=4)

        report = build_child_report('maya', sessions, profile)
        assert report.adhd['sd_rt'] == pytest.approx(np.std([0.6, 0.7, 0.65, 4.0], ddof=1))
        assert report.adhd['z_omission'] == pytest.approx(1.6)
        assert report.summary_for(GameKind.SYMBOL_SPOTTER).metrics == report.adhd

        symbol_only = {'scoring': {'symbol_spotter': {'adhd_pool': 'symbol'}}}
        report = build_child_report('maya', sessions, profile, config=symbol_only)
        assert report.adhd['sd_rt'] == pytest.approx(0.05)

    def test_invalid_adhd_pool(self):
        """Test invalid ADHD pool."""
        config = {'scoring': {'symbol_spotter': {'adhd_pool': 'games'}}}
        with pytest.raises(ValueError):
            build_child_report('maya', make_history(), ChildProfile.create('maya', age=4), config)


class TestPartitionByGame:
    """Test grouping by canonical game."""

    def test_groups_keep_order(self):
        """Test groups keep order."""
        groups = partition_by_game(make_history())

        assert len(groups[GameKind.COLOR_SPOTTER]) == 2
        assert groups[GameKind.COLOR_SPOTTER][0].score == 4
        assert groups[GameKind.EMOTION_ADVENTURE] == []
        assert sum(len(v) for v in groups.values()) == 5


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
