"""
Letter Sound dyslexia screen.

Aggregates letter-sound matching sessions into one accuracy/speed composite:

    score = accuracy - 0.5 * avg_time_per_trial
    flag_dyslexia = score < 0.1

An empty session list returns None: "no data" must never read as "at risk".
"""

import logging
from dataclasses import asdict, dataclass
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LetterSoundResult:
    """Aggregated Letter Sound metrics."""
    total_trials: int
    total_correct: float
    accuracy: float
    avg_time: float
    score: float
    flag_dyslexia: bool

    def to_dict(self) -> Dict:
        return asdict(self)


def compute_letter_sound_stats(sessions: List, config: Optional[Dict] = None) -> Optional[LetterSoundResult]:
    """
    Compute Letter Sound accuracy, speed and dyslexia flag.

    Args:
        sessions: SessionRecord-like objects with total_trials, score and
            total_time (already normalized at ingestion)
        config: Configuration dict (scoring.letter_sound)

    Returns:
        LetterSoundResult, or None when no sessions are given
    """
    if not sessions:
        return None

    if config is None:
        config = {}
    letter_config = config.get('scoring', {}).get('letter_sound', {})
    time_weight = letter_config.get('time_weight', 0.5)
    threshold = letter_config.get('dyslexia_threshold', 0.1)

    total_trials = 0
    total_correct = 0.0
    total_time = 0.0
    for s in sessions:
        total_trials += s.total_trials or 0
        total_correct += s.score or 0
        total_time += s.total_time or 0.0

    accuracy = total_correct / total_trials if total_trials else 0.0
    avg_time = total_time / total_trials if total_trials else 0.0

    score = accuracy - time_weight * avg_time

    logger.debug(f"Letter Sound: accuracy {accuracy:.2f}, avg time {avg_time:.2f}s, score {score:.3f}")

    return LetterSoundResult(
        total_trials=total_trials,
        total_correct=total_correct,
        accuracy=accuracy,
        avg_time=avg_time,
        score=score,
        flag_dyslexia=score < threshold,
    )
