"""
Emotion Adventure anxiety score.

Each story choice is scored 0 (bold), 1 (hesitant) or 2 (avoidant) and timed.

Formula:
    choice_index = sum(scores) / (2 * n_choices)        # 0..1
    rt_index = min(mean_rt, RT_MAX) / RT_MAX             # 0..1, RT_MAX = 5s
    anxiety = 0.7 * choice_index + 0.3 * rt_index

Score interpretation:
- > 0.6: High anxiety
- > 0.25: Mildly anxious
- otherwise: Confident
"""

import logging
from dataclasses import asdict, dataclass
from typing import Dict, Optional, Sequence

import numpy as np

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnxietyResult:
    anxiety_score: float
    feedback: str
    avg_rt: float
    choice_index: float
    rt_index: float

    def to_dict(self) -> Dict:
        return asdict(self)


def compute_anxiety_score(
    scores: Optional[Sequence[float]],
    rts: Optional[Sequence[float]],
    config: Optional[Dict] = None
) -> AnxietyResult:
    """
    Compute the Emotion Adventure anxiety score.

    Empty or missing inputs are treated as a single zero-valued choice.

    Args:
        scores: Per-choice scores on the 0-2 scale
        rts: Per-choice reaction times in seconds
        config: Configuration dict (scoring.emotion_adventure)

    Returns:
        AnxietyResult
    """
    if config is None:
        config = {}
    adventure_config = config.get('scoring', {}).get('emotion_adventure', {})
    choice_weight = adventure_config.get('choice_weight', 0.7)
    rt_cap = adventure_config.get('rt_cap_sec', 5.0)
    high_threshold = adventure_config.get('high_threshold', 0.6)
    mild_threshold = adventure_config.get('mild_threshold', 0.25)

    safe_scores = list(scores) if scores else [0]
    safe_rts = list(rts) if rts else [0]

    choice_index = sum(safe_scores) / (2 * len(safe_scores))
    avg_rt = float(np.mean(safe_rts))
    rt_index = min(avg_rt, rt_cap) / rt_cap

    anxiety_score = choice_weight * choice_index + (1 - choice_weight) * rt_index

    if anxiety_score > high_threshold:
        feedback = 'High anxiety'
    elif anxiety_score > mild_threshold:
        feedback = 'Mildly anxious'
    else:
        feedback = 'Confident'

    logger.debug(f"Emotion Adventure: choice={choice_index:.2f} rt={rt_index:.2f} anxiety={anxiety_score:.2f}")

    return AnxietyResult(
        anxiety_score=float(anxiety_score),
        feedback=feedback,
        avg_rt=avg_rt,
        choice_index=float(choice_index),
        rt_index=float(rt_index),
    )
