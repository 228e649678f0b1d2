"""
Symbol Spotter ADHD composite (continuous-performance-test scoring).

Symbols scroll past a hit zone; the child clicks only the target symbol.
Across all sessions this module derives:
- Omission rate: misses / targets (inattention)
- Commission rate: false alarms / all clicks (impulsivity)
- Reaction time mean and variability (sample SD, N-1)

Each rate is standardized against age-banded norms and the three z-scores
(omission, commission, RT SD) are combined:

    composite = z_omission + z_commission + z_sd_rt
    flags = count(z > 1.5)
    at_risk = flags >= 2

Clinical rationale:
- A single elevated measure is common in typical children
- Agreement of two or more measures is required before flagging
- Without an age band the composite is unavailable, never "no risk"
"""

import logging
from dataclasses import asdict, dataclass
from typing import Dict, List, Optional, Sequence

import numpy as np

from .norms import NormBand, lookup_norms, z_score

logger = logging.getLogger(__name__)

AT_RISK_MESSAGE = "Elevated ADHD risk detected; consult a specialist."
NO_RISK_MESSAGE = "No elevated risk detected."


@dataclass(frozen=True)
class SymbolSpotterResult:
    """
    ADHD screening metrics with every intermediate value.

    Attributes:
        omission: Missed-target rate (0-1)
        commission: False-alarm share of responses (0-1)
        mean_rt: Mean reaction time of timed responses (seconds)
        sd_rt: Sample SD of reaction times (seconds)
        z_omission: Age-normed omission z-score
        z_commission: Age-normed commission z-score
        z_sd_rt: Age-normed RT variability z-score
        composite_score: Sum of the three z-scores
        flags: Number of z-scores above the flag threshold
        is_at_risk: Whether enough measures are elevated
    """
    omission: float
    commission: float
    mean_rt: float
    sd_rt: float
    z_omission: float
    z_commission: float
    z_sd_rt: float
    composite_score: float
    flags: int
    is_at_risk: bool

    @property
    def interpretation(self) -> str:
        return AT_RISK_MESSAGE if self.is_at_risk else NO_RISK_MESSAGE

    def to_dict(self) -> Dict:
        data = asdict(self)
        data['interpretation'] = self.interpretation
        return data


def pool_response_times(sessions: List) -> List[float]:
    """Collect every positive trial response time across sessions."""
    samples = []
    for s in sessions:
        for t in s.trials or ():
            rt = t.response_time
            if isinstance(rt, (int, float)) and not isinstance(rt, bool) and rt > 0:
                samples.append(float(rt))
    return samples


def compute_symbol_spotter_adhd_metrics(
    sessions: List,
    age: Optional[float],
    config: Optional[Dict] = None,
    bands: Optional[Sequence[NormBand]] = None
) -> Optional[SymbolSpotterResult]:
    """
    Compute the Symbol Spotter ADHD composite.

    Args:
        sessions: SessionRecord-like objects with hits, misses, false_alarms,
            total_targets and trials
        age: Child age in years
        config: Configuration dict (scoring.symbol_spotter)
        bands: Norm table override (defaults to the built-in bands)

    Returns:
        SymbolSpotterResult, or None when age or norms are unavailable
    """
    if not age:
        logger.info("No age on profile; ADHD metrics unavailable")
        return None

    if config is None:
        config = {}
    symbol_config = config.get('scoring', {}).get('symbol_spotter', {})
    flag_threshold = symbol_config.get('z_flag_threshold', 1.5)
    min_flags = symbol_config.get('min_flags_at_risk', 2)

    hits = sum(s.hits or 0 for s in sessions)
    misses = sum(s.misses or 0 for s in sessions)
    false_alarms = sum(s.false_alarms or 0 for s in sessions)
    total_targets = sum(s.total_targets or 0 for s in sessions)
    rt_samples = pool_response_times(sessions)

    omission = misses / total_targets if total_targets else 0.0
    commission = false_alarms / (hits + false_alarms) if (hits + false_alarms) > 0 else 0.0
    mean_rt = float(np.mean(rt_samples)) if rt_samples else 0.0
    sd_rt = float(np.std(rt_samples, ddof=1)) if len(rt_samples) > 1 else 0.0

    norms = lookup_norms(age, bands)
    if norms is None:
        logger.info(f"No norm band for age {age}; ADHD metrics unavailable")
        return None

    z_omission = z_score(omission, *norms.omission)
    z_commission = z_score(commission, *norms.commission)
    z_sd_rt = z_score(sd_rt, *norms.rt_sd)
    z_values = [z_omission, z_commission, z_sd_rt]
    if any(z is None for z in z_values):
        logger.warning(f"Degenerate norm band {norms.age_min}-{norms.age_max}; ADHD metrics unavailable")
        return None

    composite_score = z_omission + z_commission + z_sd_rt
    flags = sum(1 for z in z_values if z > flag_threshold)

    logger.info(
        f"ADHD composite: omission={omission:.3f} commission={commission:.3f} "
        f"sdRT={sd_rt:.3f} composite={composite_score:.2f} flags={flags}"
    )

    return SymbolSpotterResult(
        omission=omission,
        commission=commission,
        mean_rt=mean_rt,
        sd_rt=sd_rt,
        z_omission=z_omission,
        z_commission=z_commission,
        z_sd_rt=z_sd_rt,
        composite_score=composite_score,
        flags=flags,
        is_at_risk=flags >= min_flags,
    )
