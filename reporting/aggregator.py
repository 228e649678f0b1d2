"""
Caregiver report aggregation.

Turns a child's reconciled session history into the report structure the
presentation layer renders:
- One summary card per game that has been played (attempts, best score,
  most recent recorded risk, full-history metrics)
- One history row per session with that session's own metrics
- The ADHD screening summary over all sessions (counters and response times)
- Global play count and average score

The aggregation is a pure function of (sessions, profile, config): running
it twice on the same input yields identical output.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from scoring import (
    NormBand,
    compute_anxiety_score,
    compute_emotion_score,
    compute_letter_sound_stats,
    compute_symbol_spotter_adhd_metrics,
    count_mismatches,
    is_color_blind,
    load_norm_bands,
)
from sessions.models import ChildProfile, GameKind, SessionRecord, normalize_child_id

logger = logging.getLogger(__name__)

NO_SCORE = "—"


@dataclass(frozen=True)
class GameSummary:
    """
    Summary card for one game.

    Attributes:
        key: GameKind key ('color', 'emotion', ...)
        display: Display name
        attempts: Number of sessions played
        best_score: Highest canonical score
        latest_risk: Risk recorded on the most recent session (None if absent)
        metrics: Full-history metrics for the game (None if unavailable)
    """
    key: str
    display: str
    attempts: int
    best_score: float
    latest_risk: Optional[float] = None
    metrics: Optional[Dict] = None

    def to_dict(self) -> Dict:
        return {
            'key': self.key,
            'display': self.display,
            'attempts': self.attempts,
            'best_score': self.best_score,
            'latest_risk': self.latest_risk,
            'metrics': self.metrics,
        }


@dataclass(frozen=True)
class SessionRow:
    """One row of the session history table."""
    timestamp: str
    game: str
    game_key: Optional[str]
    score: float
    status: str
    accuracy: Optional[float] = None
    avg_time: Optional[float] = None
    flag_dyslexia: bool = False
    metrics: Optional[Dict] = None

    def to_dict(self) -> Dict:
        return {
            'timestamp': self.timestamp,
            'game': self.game,
            'game_key': self.game_key,
            'score': self.score,
            'status': self.status,
            'accuracy': self.accuracy,
            'avg_time': self.avg_time,
            'flag_dyslexia': self.flag_dyslexia,
            'metrics': self.metrics,
        }


@dataclass(frozen=True)
class ChildReport:
    """
    Complete caregiver report for one child.

    Attributes:
        child_id: Normalized child identifier
        age: Age from the profile (None if unknown)
        created_at: Profile creation timestamp
        total_plays: Number of sessions
        average_score: Mean canonical score (None when there are no sessions)
        game_summaries: Cards for games with at least one attempt
        history: Session rows, most recent first
        adhd: ADHD screening summary (None when unavailable)
        local_available: Whether local sessions were readable
        remote_available: Whether remote sessions were readable
    """
    child_id: str
    age: Optional[int]
    created_at: Optional[str]
    total_plays: int
    average_score: Optional[float]
    game_summaries: Tuple[GameSummary, ...] = ()
    history: Tuple[SessionRow, ...] = ()
    adhd: Optional[Dict] = None
    local_available: bool = True
    remote_available: bool = True

    @property
    def average_score_display(self) -> str:
        if self.average_score is None:
            return NO_SCORE
        return f"{self.average_score:.1f}"

    def summary_for(self, kind: GameKind) -> Optional[GameSummary]:
        for summary in self.game_summaries:
            if summary.key == kind.value:
                return summary
        return None

    def to_dict(self) -> Dict:
        return {
            'child_id': self.child_id,
            'age': self.age,
            'created_at': self.created_at,
            'total_plays': self.total_plays,
            'average_score': self.average_score,
            'average_score_display': self.average_score_display,
            'game_summaries': [s.to_dict() for s in self.game_summaries],
            'history': [r.to_dict() for r in self.history],
            'adhd': self.adhd,
            'local_available': self.local_available,
            'remote_available': self.remote_available,
        }


def partition_by_game(sessions: Sequence[SessionRecord]) -> Dict[GameKind, List[SessionRecord]]:
    """Group sessions by canonical game, keeping input order; unknown games are left out."""
    groups: Dict[GameKind, List[SessionRecord]] = {kind: [] for kind in GameKind}
    for record in sessions:
        if record.game is not None:
            groups[record.game].append(record)
    return groups


def _color_summary(records: List[SessionRecord], config: Dict) -> Optional[Dict]:
    screened = [r for r in records if r.has_answers]
    if not screened:
        return None
    flags = [is_color_blind(r.user_answers, r.correct_answers, config) for r in screened]
    return {
        'screened_sessions': len(screened),
        'flagged_sessions': sum(flags),
        'latest_flag': flags[0],
    }


def _emotion_metrics(records: List[SessionRecord], config: Dict) -> Optional[Dict]:
    trials = [t for r in records for t in r.trials]
    if not trials:
        return None
    return compute_emotion_score(trials, config).to_dict()


def _letter_sound_metrics(records: List[SessionRecord], config: Dict) -> Optional[Dict]:
    result = compute_letter_sound_stats(records, config)
    return result.to_dict() if result else None


def _adhd_metrics(
    records: List[SessionRecord],
    age: Optional[int],
    config: Dict,
    bands: Sequence[NormBand]
) -> Optional[Dict]:
    if not records:
        return None
    result = compute_symbol_spotter_adhd_metrics(records, age, config, bands)
    return result.to_dict() if result else None


def _adhd_pool(sessions: List[SessionRecord], config: Dict) -> List[SessionRecord]:
    """Sessions feeding the ADHD summary (scoring.symbol_spotter.adhd_pool: all | symbol)."""
    pool = config.get('scoring', {}).get('symbol_spotter', {}).get('adhd_pool', 'all')
    if pool == 'symbol':
        return [r for r in sessions if r.game is GameKind.SYMBOL_SPOTTER]
    if pool != 'all':
        raise ValueError(f"scoring.symbol_spotter.adhd_pool must be 'all' or 'symbol', got {pool!r}")
    return sessions


def _anxiety_metrics(records: List[SessionRecord], config: Dict) -> Optional[Dict]:
    choices = [c for r in records for c in r.choices]
    if not choices:
        return None
    return compute_anxiety_score([c.score for c in choices], [c.rt for c in choices], config).to_dict()


def _session_row(
    record: SessionRecord,
    age: Optional[int],
    config: Dict,
    bands: Sequence[NormBand]
) -> SessionRow:
    metrics = None
    accuracy = None
    avg_time = None
    flag_dyslexia = False

    if record.game is GameKind.COLOR_SPOTTER:
        if record.has_answers:
            metrics = {
                'mismatches': count_mismatches(record.user_answers, record.correct_answers),
                'is_color_blind': is_color_blind(record.user_answers, record.correct_answers, config),
            }
    elif record.game is GameKind.EMOTION_DETECTOR:
        metrics = _emotion_metrics([record], config)
    elif record.game is GameKind.LETTER_SOUND:
        metrics = _letter_sound_metrics([record], config)
        if metrics is not None:
            accuracy = metrics['accuracy']
            avg_time = metrics['avg_time']
            flag_dyslexia = metrics['flag_dyslexia']
    elif record.game is GameKind.SYMBOL_SPOTTER:
        metrics = _adhd_metrics([record], age, config, bands)
    elif record.game is GameKind.EMOTION_ADVENTURE:
        metrics = _anxiety_metrics([record], config)

    return SessionRow(
        timestamp=record.timestamp_iso,
        game=record.game_label,
        game_key=record.game.value if record.game else None,
        score=record.score,
        status=record.status,
        accuracy=accuracy,
        avg_time=avg_time,
        flag_dyslexia=flag_dyslexia,
        metrics=metrics,
    )


def build_child_report(
    child_id: str,
    sessions: Sequence[SessionRecord],
    profile: Optional[ChildProfile] = None,
    config: Optional[Dict] = None,
    local_available: bool = True,
    remote_available: bool = True
) -> ChildReport:
    """
    Aggregate a child's reconciled sessions into a caregiver report.

    Args:
        child_id: Child identifier
        sessions: Reconciled sessions, most recent first
        profile: Child profile (age drives the ADHD norms)
        config: Configuration dict (scoring.*, norms.bands)
        local_available: Whether the local cache was readable this pass
        remote_available: Whether the remote store was readable this pass

    Returns:
        ChildReport
    """
    if config is None:
        config = {}
    bands = load_norm_bands(config)
    age = profile.age if profile else None
    sessions = list(sessions)

    logger.info(f"Building report for '{child_id}' from {len(sessions)} sessions")

    groups = partition_by_game(sessions)

    # Counters and response times pool across every session by default
    adhd = _adhd_metrics(_adhd_pool(sessions, config), age, config, bands)
    if adhd is None and groups[GameKind.SYMBOL_SPOTTER]:
        logger.info(f"ADHD summary unavailable for '{child_id}' (age: {age})")

    metric_builders = {
        GameKind.COLOR_SPOTTER: lambda recs: _color_summary(recs, config),
        GameKind.EMOTION_DETECTOR: lambda recs: _emotion_metrics(recs, config),
        GameKind.LETTER_SOUND: lambda recs: _letter_sound_metrics(recs, config),
        GameKind.SYMBOL_SPOTTER: lambda recs: adhd,
        GameKind.EMOTION_ADVENTURE: lambda recs: _anxiety_metrics(recs, config),
    }

    summaries = []
    for kind in GameKind:
        records = groups[kind]
        if not records:
            continue
        latest = records[0]
        summaries.append(GameSummary(
            key=kind.value,
            display=kind.display_name,
            attempts=len(records),
            best_score=max(r.score for r in records),
            latest_risk=latest.risk_score,
            metrics=metric_builders[kind](records),
        ))

    history = tuple(_session_row(r, age, config, bands) for r in sessions)

    total_plays = len(sessions)
    average_score = sum(r.score for r in sessions) / total_plays if total_plays else None

    return ChildReport(
        child_id=normalize_child_id(child_id),
        age=age,
        created_at=profile.created_at if profile else None,
        total_plays=total_plays,
        average_score=average_score,
        game_summaries=tuple(summaries),
        history=history,
        adhd=adhd,
        local_available=local_available,
        remote_available=remote_available,
    )
