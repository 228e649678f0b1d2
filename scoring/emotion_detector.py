"""
Emotion Detector mimicry risk score.

The child is shown a facial expression and asked to mimic it; each attempt is
one trial (correct/incorrect plus the time taken for a correct mimic).

Formula:
    risk = A * inaccuracy + B * delay
    inaccuracy = total_trials - correct_trials
    delay = max(0, mean_correct_rt - EXPECTED_RT)

Risk bands:
- risk > 3: High risk
- risk > 1: Moderate concern
- otherwise: Low risk

The band strings are matched verbatim by report consumers.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Dict, List, Optional

import numpy as np

logger = logging.getLogger(__name__)

HIGH_RISK = "High risk. Recommend further clinical evaluation for ASD."
MODERATE_CONCERN = "Moderate concern. Consider observing other social behaviors."
LOW_RISK = "Low risk. Mimicry behavior is within expected range."


@dataclass(frozen=True)
class EmotionDetectorResult:
    """
    Emotion Detector metrics.

    Attributes:
        total_trials: Number of mimic attempts
        correct_count: Number of correct mimics
        accuracy_percent: 0-100
        avg_response_time: Mean seconds over timed correct trials (None if none)
        risk_score: Weighted inaccuracy + delay
        risk_level: One of the verbatim band strings
    """
    total_trials: int
    correct_count: int
    accuracy_percent: float
    avg_response_time: Optional[float]
    risk_score: float
    risk_level: str

    def to_dict(self) -> Dict:
        return asdict(self)


def compute_emotion_score(trials: List, config: Optional[Dict] = None) -> EmotionDetectorResult:
    """
    Compute the Emotion Detector risk score.

    Args:
        trials: TrialEvent-like objects with is_correct and response_time
        config: Configuration dict (scoring.emotion_detector)

    Returns:
        EmotionDetectorResult
    """
    if config is None:
        config = {}
    emotion_config = config.get('scoring', {}).get('emotion_detector', {})
    expected_rt = emotion_config.get('expected_rt_sec', 1.5)
    inaccuracy_weight = emotion_config.get('inaccuracy_weight', 1.0)
    delay_weight = emotion_config.get('delay_weight', 2.0)
    high_threshold = emotion_config.get('high_risk_threshold', 3.0)
    moderate_threshold = emotion_config.get('moderate_threshold', 1.0)

    trials = list(trials or [])
    total_trials = len(trials)
    correct_count = sum(1 for t in trials if t.is_correct)
    accuracy_percent = (correct_count / total_trials) * 100 if total_trials else 0.0

    correct_rts = [
        t.response_time for t in trials
        if t.is_correct and t.response_time is not None and t.response_time > 0
    ]
    avg_response_time = float(np.mean(correct_rts)) if correct_rts else None

    inaccuracy = total_trials - correct_count
    delay = max(0.0, avg_response_time - expected_rt) if avg_response_time is not None else 0.0

    risk_score = inaccuracy_weight * inaccuracy + delay_weight * delay

    if risk_score > high_threshold:
        risk_level = HIGH_RISK
    elif risk_score > moderate_threshold:
        risk_level = MODERATE_CONCERN
    else:
        risk_level = LOW_RISK

    logger.debug(
        f"Emotion Detector: {correct_count}/{total_trials} correct, "
        f"avg RT {avg_response_time}, risk {risk_score:.2f}"
    )

    return EmotionDetectorResult(
        total_trials=total_trials,
        correct_count=correct_count,
        accuracy_percent=float(accuracy_percent),
        avg_response_time=avg_response_time,
        risk_score=float(risk_score),
        risk_level=risk_level,
    )
