"""
Per-game screening metrics.

This package reduces session telemetry to interpretable screening indicators:
1. Color Spotter: color-vision-deficiency flag
2. Emotion Detector: mimicry risk score and band
3. Letter Sound: accuracy/speed composite and dyslexia flag
4. Symbol Spotter: age-normed ADHD z-score composite
5. Emotion Adventure: anxiety score and band

All metrics are:
- Deterministic (pure reductions over in-memory data)
- Explicit about missing data (None means "unavailable", never "no risk")
- Non-diagnostic (screening indicators, not medical diagnosis)
"""

from .norms import NormBand, DEFAULT_NORM_BANDS, lookup_norms, z_score, load_norm_bands
from .color_spotter import is_color_blind, count_mismatches
from .emotion_detector import compute_emotion_score, EmotionDetectorResult
from .letter_sound import compute_letter_sound_stats, LetterSoundResult
from .symbol_spotter import compute_symbol_spotter_adhd_metrics, SymbolSpotterResult
from .emotion_adventure import compute_anxiety_score, AnxietyResult

__all__ = [
    'NormBand',
    'DEFAULT_NORM_BANDS',
    'lookup_norms',
    'z_score',
    'load_norm_bands',
    'is_color_blind',
    'count_mismatches',
    'compute_emotion_score',
    'EmotionDetectorResult',
    'compute_letter_sound_stats',
    'LetterSoundResult',
    'compute_symbol_spotter_adhd_metrics',
    'SymbolSpotterResult',
    'compute_anxiety_score',
    'AnxietyResult',
]
