"""
Parametric models: fragment length, read identity and glitches.
"""

import bisect
import numpy as np
from scipy import stats
from typing import List, Optional, Sequence, Tuple

from ..exceptions import ModelError
from ..seq_utils import random_seq


def cumulative_weights(weights: Sequence[float]) -> List[float]:
    """
    Validate weights and return their running sum.

    Raises:
        ModelError: If a weight is negative or not finite, or all weights are zero
    """
    total = 0.0
    cumulative = []
    for weight in weights:
        weight = float(weight)
        if not np.isfinite(weight) or weight < 0:
            raise ModelError(f"Invalid weight: {weight}")
        total += weight
        cumulative.append(total)

    if not cumulative or total <= 0:
        raise ModelError("Weights must contain at least one positive value")

    return cumulative


def weighted_index(cumulative: List[float], rng: np.random.Generator) -> int:
    """Draw an index with probability proportional to its weight"""
    index = bisect.bisect_right(cumulative, rng.random() * cumulative[-1])
    return min(index, len(cumulative) - 1)


class LengthModel:
    """Gamma distributed fragment length"""

    def __init__(self, mean: float, stdev: float):
        """
        Initialize the length model.

        Args:
            mean: Mean fragment length
            stdev: Standard deviation of fragment length (0 gives a fixed length)
        """
        if mean <= 0 or stdev < 0:
            raise ModelError(f"Length parameters must be upper than 0 (mean={mean}, stdev={stdev})")

        self.mean = float(mean)
        self.stdev = float(stdev)

        if self.stdev > 0:
            self.shape = self.mean ** 2 / self.stdev ** 2
            self.scale = self.stdev ** 2 / self.mean
        else:
            self.shape = None
            self.scale = None

    def get_length(self, rng: np.random.Generator) -> int:
        """
        Sample a fragment length.

        Args:
            rng: Random generator of the current task

        Returns:
            int: Fragment length, at least 1
        """
        if self.shape is None:
            return max(1, int(round(self.mean)))

        value = stats.gamma.rvs(self.shape, scale=self.scale, random_state=rng)
        return max(1, int(round(value)))


class IdentityModel:
    """Beta distributed read identity, scaled to a maximum identity"""

    def __init__(self, mean: float, max_identity: float = 100.0, stdev: float = 0.0):
        """
        Initialize the identity model. Parameters are percentages.

        Args:
            mean: Mean read identity
            max_identity: Maximum read identity
            stdev: Standard deviation of read identity
        """
        if mean <= 0 or stdev < 0 or max_identity <= 0:
            raise ModelError(
                f"Identity parameters must be upper than 0 (mean={mean}, max={max_identity}, stdev={stdev})"
            )
        if max_identity > 100 or mean > max_identity:
            raise ModelError(f"Identity mean ({mean}) must be lower than max ({max_identity}) and max lower than 100")

        self.mean = mean / 100.0
        self.max = max_identity / 100.0
        self.stdev = stdev / 100.0

        if abs(self.mean - self.max) <= np.finfo(float).eps or self.stdev == 0:
            self.alpha = None
            self.beta = None
        else:
            ratio = self.mean / self.max
            self.alpha = ((1.0 - ratio) / (self.stdev / self.max) ** 2 - self.max / self.mean) * ratio ** 2
            self.beta = self.alpha * (self.max / self.mean - 1.0)

            if self.alpha <= 0 or self.beta <= 0:
                raise ModelError(f"Identity stdev ({stdev}) is too large for mean {mean} and max {max_identity}")

    def get_identity(self, rng: np.random.Generator) -> float:
        """
        Sample a target identity in (0, 1].

        Args:
            rng: Random generator of the current task

        Returns:
            float: Target identity
        """
        if self.alpha is None:
            return self.mean

        value = self.max * stats.beta.rvs(self.alpha, self.beta, random_state=rng)
        return float(min(max(value, np.finfo(float).eps), 1.0))


class GlitchModel:
    """Glitches: a run of raw bases replaced by random bases"""

    def __init__(self, rate: float = 0.0, size: float = 0.0, skip: float = 0.0):
        """
        Initialize the glitch model.

        Args:
            rate: Per-base probability that a glitch starts, in [0, 1)
            size: Mean number of random bases inserted by a glitch
            skip: Mean number of raw bases dropped by a glitch
        """
        if not 0.0 <= rate < 1.0:
            raise ModelError(f"Glitch rate must be in [0, 1) (rate={rate})")
        if size < 0 or skip < 0:
            raise ModelError(f"Glitch size and skip must be positive (size={size}, skip={skip})")

        self.rate = float(rate)
        self.size = float(size)
        self.skip = float(skip)

    @classmethod
    def from_interval(cls, interval: float, size: float, skip: float) -> 'GlitchModel':
        """
        Build a model from the mean distance between glitches.

        Args:
            interval: Mean number of bases between glitches (0 disables glitches)
            size: Mean glitch insertion size
            skip: Mean glitch skip size
        """
        if interval == 0:
            return cls(0.0, size, skip)
        if interval <= 1:
            raise ModelError(f"Glitch interval must be 0 or upper than 1 (interval={interval})")
        return cls(1.0 / interval, size, skip)

    @property
    def enabled(self) -> bool:
        return self.rate > 0

    @staticmethod
    def _sample_run(mean: float, rng: np.random.Generator) -> int:
        # geometric on {1, 2, ...} shifted to {0, 1, ...}, mean preserved
        return int(rng.geometric(1.0 / (mean + 1.0))) - 1

    def get_glitch(self, rng: np.random.Generator) -> Optional[Tuple[int, int, bytes]]:
        """
        Sample the next glitch.

        Args:
            rng: Random generator of the current task

        Returns:
            Optional[Tuple[int, int, bytes]]: Distance from the previous glitch,
                number of skipped raw bases and inserted sequence; None when disabled
        """
        if not self.enabled:
            return None

        distance = int(rng.geometric(self.rate))
        skip = self._sample_run(self.skip, rng)
        seq = random_seq(self._sample_run(self.size, rng), rng)

        return distance, skip, seq
