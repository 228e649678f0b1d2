"""
Color Spotter color-vision screen.

The child picks the hidden animal in Ishihara-style scenes; each scene has
one correct answer. Two or more wrong picks (about a quarter of the scenes)
flag a positive color-vision-deficiency screen. There is no severity grading.
"""

import logging
from typing import Dict, Optional, Sequence

logger = logging.getLogger(__name__)


def count_mismatches(user_answers: Sequence, correct_answers: Sequence) -> int:
    """Count index-wise mismatches; a missing user answer is a mismatch."""
    user_answers = list(user_answers or [])
    wrong = 0
    for i, expected in enumerate(correct_answers or []):
        if i >= len(user_answers) or user_answers[i] != expected:
            wrong += 1
    return wrong


def is_color_blind(
    user_answers: Sequence,
    correct_answers: Sequence,
    config: Optional[Dict] = None
) -> bool:
    """
    Flag a positive color-vision-deficiency screen.

    Args:
        user_answers: Answers given by the child, in scene order
        correct_answers: Expected answers, in scene order
        config: Configuration dict (scoring.color_spotter.mismatch_threshold)

    Returns:
        True when the mismatch count reaches the threshold (default 2)
    """
    if config is None:
        config = {}
    threshold = config.get('scoring', {}).get('color_spotter', {}).get('mismatch_threshold', 2)

    wrong = count_mismatches(user_answers, correct_answers)
    logger.debug(f"Color Spotter: {wrong} mismatches (threshold {threshold})")
    return wrong >= threshold
