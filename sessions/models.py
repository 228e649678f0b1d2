"""
Session data model and ingestion-time normalization.

Mini-games write loosely shaped JSON records (different games carry
different counters, and older builds used different game names). This
module turns each raw record into one immutable SessionRecord:
- Game names are resolved once to a closed GameKind (legacy aliases included)
- The score fallback chain (score, then hits, then 0) is resolved once
- Counters missing from a record are derived from its trials
- Child identifiers are case-normalized
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


class SessionRecordError(ValueError):
    """Raised when a raw session record cannot be normalized."""


class GameKind(Enum):
    """The five screening mini-games, keyed as the report keys them."""
    COLOR_SPOTTER = "color"
    EMOTION_DETECTOR = "emotion"
    LETTER_SOUND = "letterSound"
    SYMBOL_SPOTTER = "symbol"
    EMOTION_ADVENTURE = "emotionAdventure"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def aliases(self) -> Tuple[str, ...]:
        return _ALIASES[self]

    @classmethod
    def from_name(cls, name: Optional[str]) -> Optional["GameKind"]:
        """Resolve a recorded game name (or alias); None if unknown."""
        if not name:
            return None
        for kind in cls:
            if name in kind.aliases:
                return kind
        folded = _fold(name)
        for kind in cls:
            if folded == _fold(kind.value) or any(folded == _fold(a) for a in kind.aliases):
                return kind
        return None


_DISPLAY_NAMES = {
    GameKind.COLOR_SPOTTER: "Color Spotter",
    GameKind.EMOTION_DETECTOR: "Emotion Detector",
    GameKind.LETTER_SOUND: "Letter Sound",
    GameKind.SYMBOL_SPOTTER: "Symbol Spotter",
    GameKind.EMOTION_ADVENTURE: "Emotion Adventure",
}

_ALIASES = {
    GameKind.COLOR_SPOTTER: ("Color Spotter",),
    GameKind.EMOTION_DETECTOR: ("Emotion Detector", "EmotionMatch"),
    GameKind.LETTER_SOUND: ("Letter Sound", "LetterSound"),
    GameKind.SYMBOL_SPOTTER: ("Symbol Spotter",),
    GameKind.EMOTION_ADVENTURE: ("Emotion Adventure",),
}


def _fold(name: str) -> str:
    return "".join(name.split()).lower()


def normalize_child_id(child_id: Any) -> str:
    return str(child_id).strip().lower()


@dataclass(frozen=True)
class TrialEvent:
    """One stimulus-response event; response_time 0 means untimed."""
    is_correct: bool
    response_time: float = 0.0

    @classmethod
    def from_dict(cls, data: Dict) -> "TrialEvent":
        if not isinstance(data, dict):
            raise SessionRecordError(f"Trial must be an object, got {type(data).__name__}")
        is_correct = _first(data, 'is_correct', 'isCorrect')
        if is_correct is None:
            is_correct = False
        elif isinstance(is_correct, bool) or (isinstance(is_correct, int) and is_correct in (0, 1)):
            is_correct = bool(is_correct)
        else:
            raise SessionRecordError(f"Trial is_correct must be a boolean, got {is_correct!r}")
        rt = data.get('response_time', data.get('responseTimeSeconds'))
        return cls(is_correct=is_correct, response_time=_as_float(rt) or 0.0)

    def to_dict(self) -> Dict:
        return {'is_correct': self.is_correct, 'response_time': self.response_time}


@dataclass(frozen=True)
class Choice:
    """One Emotion Adventure story choice."""
    score: float
    rt: float

    @classmethod
    def from_dict(cls, data: Dict) -> "Choice":
        if not isinstance(data, dict):
            raise SessionRecordError(f"Choice must be an object, got {type(data).__name__}")
        return cls(score=_as_float(data.get('score')) or 0.0, rt=_as_float(data.get('rt')) or 0.0)

    def to_dict(self) -> Dict:
        return {'score': self.score, 'rt': self.rt}


@dataclass(frozen=True)
class SessionRecord:
    """
    One completed (or aborted) play of one mini-game by one child.

    Attributes:
        child_id: Case-normalized child identifier
        game_label: Game name as recorded by the mini-game
        game: Canonical game (None for games outside the screening suite)
        timestamp_iso: ISO-8601 timestamp of the session end
        score: Canonical score (recorded score, else hits, else 0)
        trials: Timed responses
        hits, misses, false_alarms, total_targets: Symbol Spotter counters
        total_trials, total_time: Letter Sound totals
        choices: Emotion Adventure choices
        user_answers, correct_answers: Color Spotter answer arrays
        risk_score: Risk recorded by the game, if any
        status: "Completed", "Game Over", ...
    """
    child_id: str
    game_label: str
    game: Optional[GameKind]
    timestamp_iso: str
    score: float = 0.0
    trials: Tuple[TrialEvent, ...] = ()
    hits: Optional[int] = None
    misses: Optional[int] = None
    false_alarms: Optional[int] = None
    total_targets: Optional[int] = None
    total_trials: Optional[int] = None
    total_time: Optional[float] = None
    choices: Tuple[Choice, ...] = ()
    user_answers: Optional[Tuple] = None
    correct_answers: Optional[Tuple] = None
    risk_score: Optional[float] = None
    status: str = "Completed"
    extra: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def game_name(self) -> str:
        """Canonical display name, or the recorded label for unknown games."""
        return self.game.display_name if self.game else self.game_label

    @property
    def has_answers(self) -> bool:
        return self.correct_answers is not None and self.user_answers is not None

    @classmethod
    def from_dict(cls, data: Dict, child_id: Optional[str] = None) -> "SessionRecord":
        """
        Normalize a raw session record.

        Args:
            data: Raw record as written by a mini-game
            child_id: Owner to assign when the record itself carries none

        Returns:
            SessionRecord

        Raises:
            SessionRecordError: If the record lacks a child, timestamp or game
        """
        if not isinstance(data, dict):
            raise SessionRecordError(f"Session must be an object, got {type(data).__name__}")

        raw_child = _first(data, 'kid', 'childId', 'child_id') or child_id
        timestamp = data.get('date', data.get('timestampIso', data.get('timestamp')))
        game_label = data.get('game')
        if raw_child in (None, ""):
            raise SessionRecordError("Session has no child id")
        if not timestamp:
            raise SessionRecordError("Session has no timestamp")
        if not game_label:
            raise SessionRecordError("Session has no game name")

        game = GameKind.from_name(game_label)
        trials = tuple(TrialEvent.from_dict(t) for t in (data.get('trials') or []))
        choices = tuple(Choice.from_dict(c) for c in (data.get('choices') or []))

        hits = _as_int(data.get('hits'))
        misses = _as_int(data.get('misses'))
        false_alarms = _as_int(_first(data, 'falseAlarms', 'false_alarms'))
        total_targets = _as_int(_first(data, 'totalTargets', 'total_targets'))

        if game is GameKind.SYMBOL_SPOTTER and trials:
            if hits is None:
                hits = sum(1 for t in trials if t.is_correct)
            if false_alarms is None:
                false_alarms = sum(1 for t in trials if not t.is_correct)

        # Zero totals fall back to the trials, as the games write them
        total_trials = _as_int(data.get('total')) or len(trials) or None
        total_time = _as_float(data.get('total_time')) or (
            sum(t.response_time for t in trials) if trials else None
        )

        recorded_score = _as_float(data.get('score'))
        if recorded_score is not None:
            score = recorded_score
        elif hits is not None:
            score = float(hits)
        else:
            score = 0.0

        user_answers = _first(data, 'userAnswers', 'user_answers')
        correct_answers = _first(data, 'correctAnswers', 'correct_answers')

        known = {
            'kid', 'childId', 'child_id', 'date', 'timestampIso', 'timestamp', 'game',
            'trials', 'choices', 'hits', 'misses', 'falseAlarms', 'false_alarms',
            'totalTargets', 'total_targets', 'total', 'total_time', 'score',
            'userAnswers', 'user_answers', 'correctAnswers', 'correct_answers',
            'risk_score', 'status',
        }

        return cls(
            child_id=normalize_child_id(raw_child),
            game_label=str(game_label),
            game=game,
            timestamp_iso=str(timestamp),
            score=score,
            trials=trials,
            hits=hits,
            misses=misses,
            false_alarms=false_alarms,
            total_targets=total_targets,
            total_trials=total_trials,
            total_time=total_time,
            choices=choices,
            user_answers=tuple(user_answers) if isinstance(user_answers, list) else None,
            correct_answers=tuple(correct_answers) if isinstance(correct_answers, list) else None,
            risk_score=_as_float(data.get('risk_score')),
            status=str(data.get('status') or "Completed"),
            extra={k: v for k, v in data.items() if k not in known},
        )

    def to_dict(self) -> Dict:
        """Serialize to the mini-game wire format."""
        data: Dict[str, Any] = dict(self.extra)
        data.update({
            'kid': self.child_id,
            'date': self.timestamp_iso,
            'game': self.game_label,
            'score': self.score,
            'status': self.status,
        })
        if self.trials:
            data['trials'] = [t.to_dict() for t in self.trials]
        if self.choices:
            data['choices'] = [c.to_dict() for c in self.choices]
        optional = {
            'hits': self.hits,
            'misses': self.misses,
            'falseAlarms': self.false_alarms,
            'totalTargets': self.total_targets,
            'total': self.total_trials,
            'total_time': self.total_time,
            'risk_score': self.risk_score,
        }
        data.update({k: v for k, v in optional.items() if v is not None})
        if self.user_answers is not None:
            data['userAnswers'] = list(self.user_answers)
        if self.correct_answers is not None:
            data['correctAnswers'] = list(self.correct_answers)
        return data


@dataclass(frozen=True)
class ChildProfile:
    """Child profile keyed by case-normalized name."""
    name: str
    age: Optional[int] = None
    created_at: Optional[str] = None

    @classmethod
    def create(cls, name: str, age: Optional[int] = None, created_at: Optional[str] = None) -> "ChildProfile":
        if not str(name).strip():
            raise ValueError("Profile name must not be empty")
        return cls(name=normalize_child_id(name), age=age, created_at=created_at)

    def to_dict(self) -> Dict:
        return {'name': self.name, 'age': self.age, 'created_at': self.created_at}


def parse_sessions(raw_records: List, child_id: Optional[str] = None) -> List[SessionRecord]:
    """Normalize a list of raw records, skipping malformed ones."""
    records = []
    for i, raw in enumerate(raw_records):
        try:
            records.append(SessionRecord.from_dict(raw, child_id=child_id))
        except SessionRecordError as e:
            logger.warning(f"Skipping malformed session record #{i}: {e}")
    return records


def _first(data: Dict, *keys: str) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return int(value)
