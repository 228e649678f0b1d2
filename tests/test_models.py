"""
Unit tests for session records and ingestion-time normalization.

Tests cover:
- Game name aliases
- Score fallback chain
- Counters derived from trials
- Child id normalization
- Malformed records
"""

import pytest # pyright: ignore[reportMissingImports]
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from sessions.models import (
    GameKind,
    SessionRecord,
    SessionRecordError,
    TrialEvent,
    ChildProfile,
    normalize_child_id,
    parse_sessions
)


class TestGameKind:
    """Test game name resolution."""

    def test_canonical_names(self):
        """Test canonical names."""
        assert GameKind.from_name("Color Spotter") is GameKind.COLOR_SPOTTER
        assert GameKind.from_name("Symbol Spotter") is GameKind.SYMBOL_SPOTTER
        assert GameKind.from_name("Emotion Adventure") is GameKind.EMOTION_ADVENTURE

    def test_legacy_aliases(self):
        """Test legacy aliases."""
        assert GameKind.from_name("EmotionMatch") is GameKind.EMOTION_DETECTOR
        assert GameKind.from_name("Emotion Detector") is GameKind.EMOTION_DETECTOR
        assert GameKind.from_name("LetterSound") is GameKind.LETTER_SOUND
        assert GameKind.from_name("Letter Sound") is GameKind.LETTER_SOUND

    def test_case_and_spacing_folded(self):
        """Test case and spacing folded."""
        assert GameKind.from_name("letter sound") is GameKind.LETTER_SOUND
        assert GameKind.from_name("emotionmatch") is GameKind.EMOTION_DETECTOR

    def test_unknown_game(self):
        """Test unknown game."""
        assert GameKind.from_name("Animal Hide & Seek") is None
        assert GameKind.from_name("") is None
        assert GameKind.from_name(None) is None

    def test_display_names(self):
        """Test display names."""
        assert GameKind.EMOTION_DETECTOR.display_name == "Emotion Detector"
        assert GameKind.LETTER_SOUND.value == "letterSound"


class TestSessionRecord:
    """Test SessionRecord normalization."""

    def test_child_id_normalized(self):
        """Test child id normalized."""
        record = SessionRecord.from_dict({'kid': '  Maya ', 'date': '2024-05-01T10:00:00Z', 'game': 'Color Spotter'})
        assert record.child_id == 'maya'
        assert normalize_child_id('MAYA') == 'maya'

    def test_child_id_fallback_argument(self):
        """Test child id fallback argument."""
        record = SessionRecord.from_dict({'date': '2024-05-01T10:00:00Z', 'game': 'Color Spotter'}, child_id='Leo')
        assert record.child_id == 'leo'

    def test_score_falls_back_to_hits(self):
        """Test score falls back to hits."""
        record = SessionRecord.from_dict({
            'kid': 'maya', 'date': '2024-05-01T10:00:00Z', 'game': 'Symbol Spotter', 'hits': 7,
        })
        assert record.score == 7.0

    def test_score_defaults_to_zero(self):
        """Test score defaults to zero."""
        record = SessionRecord.from_dict({'kid': 'maya', 'date': '2024-05-01T10:00:00Z', 'game': 'Emotion Adventure'})
        assert record.score == 0.0

    def test_recorded_score_wins(self):
        """Test recorded score wins."""
        record = SessionRecord.from_dict({
            'kid': 'maya', 'date': '2024-05-01T10:00:00Z', 'game': 'Symbol Spotter', 'hits': 7, 'score': 12,
        })
        assert record.score == 12.0

    def test_symbol_counters_derived_from_trials(self):
        """Test symbol counters derived from trials."""
        record = SessionRecord.from_dict({
            'kid': 'maya', 'date': '2024-05-01T10:00:00Z', 'game': 'Symbol Spotter',
            'trials': [
                {'is_correct': True, 'response_time': 0.5},
                {'is_correct': True, 'response_time': 0.6},
                {'is_correct': False, 'response_time': 0.4},
            ],
        })
        assert record.hits == 2
        assert record.false_alarms == 1
        assert record.score == 2.0

    def test_letter_sound_totals_from_trials(self):
        """Test letter sound totals from trials."""
        record = SessionRecord.from_dict({
            'kid': 'maya', 'date': '2024-05-01T10:00:00Z', 'game': 'LetterSound', 'score': 2,
            'trials': [
                {'isCorrect': True, 'responseTimeSeconds': 1.5},
                {'isCorrect': True, 'responseTimeSeconds': 2.5},
                {'isCorrect': False, 'responseTimeSeconds': 1.0},
            ],
        })
        assert record.game is GameKind.LETTER_SOUND
        assert record.total_trials == 3
        assert record.total_time == pytest.approx(5.0)
        assert record.trials[0] == TrialEvent(True, 1.5)

    def test_unknown_game_kept(self):
        """Test unknown game kept."""
        record = SessionRecord.from_dict({
            'kid': 'maya', 'date': '2024-05-01T10:00:00Z', 'game': 'Animal Hide & Seek', 'score': 4,
        })
        assert record.game is None
        assert record.game_name == 'Animal Hide & Seek'
        assert record.score == 4.0

    def test_wire_format_preserved(self):
        """Test wire format preserved."""
        raw = {
            'kid': 'maya', 'date': '2024-05-01T10:00:00Z', 'game': 'Color Spotter', 'score': 3,
            'userAnswers': ['cat', 'dog'], 'correctAnswers': ['cat', 'fox'], 'level': 2,
        }
        data = SessionRecord.from_dict(raw).to_dict()
        assert data['userAnswers'] == ['cat', 'dog']
        assert data['correctAnswers'] == ['cat', 'fox']
        assert data['level'] == 2
        assert data['status'] == 'Completed'

    def test_missing_fields_rejected(self):
        """Test missing fields rejected."""
        with pytest.raises(SessionRecordError):
            SessionRecord.from_dict({'date': '2024-05-01T10:00:00Z', 'game': 'Color Spotter'})
        with pytest.raises(SessionRecordError):
            SessionRecord.from_dict({'kid': 'maya', 'game': 'Color Spotter'})
        with pytest.raises(SessionRecordError):
            SessionRecord.from_dict({'kid': 'maya', 'date': '2024-05-01T10:00:00Z'})
        with pytest.raises(SessionRecordError):
            SessionRecord.from_dict(["not", "a", "dict"])

    def test_parse_sessions_skips_malformed(self):
        """Test parse sessions skips malformed."""
        raw = [
            {'kid': 'maya', 'date': '2024-05-01T10:00:00Z', 'game': 'Color Spotter'},
            {'kid': 'maya'},
            'garbage',
        ]
        records = parse_sessions(raw)
        assert len(records) == 1

    def test_empty_kid_uses_fallback_argument(self):
        """Test empty kid uses fallback argument."""
        record = SessionRecord.from_dict({'kid': '', 'date': '2024-05-01T10:00:00Z', 'game': 'Color Spotter'}, child_id='Leo')
        assert record.child_id == 'leo'

        record = SessionRecord.from_dict({'kid': None, 'date': '2024-05-01T10:00:00Z', 'game': 'Color Spotter'}, child_id='Leo')
        assert record.child_id == 'leo'

    def test_is_correct_must_be_boolean(self):
        """Test is_correct accepts only booleans or 0/1."""
        assert TrialEvent.from_dict({'is_correct': 1}).is_correct is True
        assert TrialEvent.from_dict({'isCorrect': 0}).is_correct is False
        assert TrialEvent.from_dict({}).is_correct is False
        with pytest.raises(SessionRecordError):
            TrialEvent.from_dict({'is_correct': 'false'})
        with pytest.raises(SessionRecordError):
            TrialEvent.from_dict({'is_correct': 2})

    def test_string_is_correct_rejects_session(self):
        """Test string is_correct rejects the whole session."""
        with pytest.raises(SessionRecordError):
            SessionRecord.from_dict({
                'kid': 'maya', 'date': '2024-05-01T10:00:00Z', 'game': 'Symbol Spotter',
                'trials': [{'is_correct': 'false', 'response_time': 0.5}],
            })


class TestChildProfile:
    """Test profile creation."""

    def test_create_normalizes_name(self):
        """Test create normalizes name."""
        profile = ChildProfile.create('Maya', age=4)
        assert profile.name == 'maya'
        assert profile.to_dict() == {'name': 'maya', 'age': 4, 'created_at': None}

    def test_empty_name_rejected(self):
        """Test empty name rejected."""
        with pytest.raises(ValueError):
            ChildProfile.create('   ')


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
