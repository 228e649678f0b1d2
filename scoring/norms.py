"""
Age-banded population norms and z-score standardization.

Norm bands hold (mean, std) pairs for the continuous-performance-test
measures used by the Symbol Spotter ADHD composite:
- Omission rate (missed targets)
- Commission rate (responses to non-targets)
- Mean reaction time
- Reaction time variability (SD)

Clinical rationale:
- Attention measures change quickly with age in young children
- Raw rates are only meaningful relative to age peers
- Ages outside every band are "unavailable", never "typical"

Engineering approach:
- Static, read-only band table (overridable from config)
- Exact inclusive band containment, no interpolation
- Zero-std guard in the z-score helper
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NormBand:
    """
    Population norms for one age band.

    Attributes:
        age_min: Youngest age covered (inclusive)
        age_max: Oldest age covered (inclusive)
        omission: (mean, std) of omission rate
        commission: (mean, std) of commission rate
        mean_rt: (mean, std) of mean reaction time
        rt_sd: (mean, std) of reaction time SD
    """
    age_min: int
    age_max: int
    omission: Tuple[float, float]
    commission: Tuple[float, float]
    mean_rt: Tuple[float, float]
    rt_sd: Tuple[float, float]

    def __post_init__(self):
        if self.age_min > self.age_max:
            raise ValueError(f"Invalid age band {self.age_min}-{self.age_max}")
        for name in ('omission', 'commission', 'mean_rt', 'rt_sd'):
            pair = getattr(self, name)
            if len(pair) != 2:
                raise ValueError(f"Norm '{name}' must be a (mean, std) pair, got {pair!r}")
            if pair[1] < 0:
                raise ValueError(f"Norm '{name}' has negative std: {pair[1]}")

    def contains(self, age: float) -> bool:
        return self.age_min <= age <= self.age_max


DEFAULT_NORM_BANDS: Tuple[NormBand, ...] = (
    NormBand(
        age_min=3,
        age_max=5,
        omission=(0.12, 0.05),
        commission=(0.07, 0.03),
        mean_rt=(650.0, 100.0),
        rt_sd=(180.0, 40.0),
    ),
    NormBand(
        age_min=6,
        age_max=9,
        omission=(0.08, 0.04),
        commission=(0.05, 0.02),
        mean_rt=(550.0, 80.0),
        rt_sd=(150.0, 30.0),
    ),
)


def lookup_norms(age: Optional[float], bands: Optional[Sequence[NormBand]] = None) -> Optional[NormBand]:
    """
    Find the norm band containing an age.

    Args:
        age: Child age in years (None or 0 means unknown)
        bands: Band table to search (defaults to DEFAULT_NORM_BANDS)

    Returns:
        Matching NormBand, or None when no band covers the age
    """
    if not age:
        return None

    for band in (DEFAULT_NORM_BANDS if bands is None else bands):
        if band.contains(age):
            return band

    logger.debug(f"No norm band covers age {age}")
    return None


def z_score(x: float, mean: float, std: float) -> Optional[float]:
    """Standardize x against (mean, std); None when std is zero."""
    if std == 0:
        logger.warning(f"Zero std in norm pair (mean={mean}); z-score undefined")
        return None
    return (x - mean) / std


def load_norm_bands(config: Optional[Dict]) -> Tuple[NormBand, ...]:
    """
    Build the norm table from configuration.

    Reads ``config['norms']['bands']``, a list of mappings with keys
    ``age_min``, ``age_max``, ``omission``, ``commission``, ``mean_rt``
    and ``rt_sd``. Falls back to DEFAULT_NORM_BANDS when absent.

    Raises:
        ValueError: If a configured band is incomplete or invalid
    """
    raw_bands: List[Dict] = ((config or {}).get('norms') or {}).get('bands') or []
    if not raw_bands:
        return DEFAULT_NORM_BANDS

    bands = []
    for raw in raw_bands:
        try:
            bands.append(NormBand(
                age_min=int(raw['age_min']),
                age_max=int(raw['age_max']),
                omission=tuple(float(v) for v in raw['omission']),
                commission=tuple(float(v) for v in raw['commission']),
                mean_rt=tuple(float(v) for v in raw['mean_rt']),
                rt_sd=tuple(float(v) for v in raw['rt_sd']),
            ))
        except (KeyError, TypeError) as e:
            raise ValueError(f"Invalid norm band in config: {raw!r}") from e

    logger.info(f"Loaded {len(bands)} norm bands from config")
    return tuple(bands)
