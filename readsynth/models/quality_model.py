"""
Quality score model keyed by local edit-trace windows.
"""

import logging
import numpy as np
from typing import Dict, List, Sequence, Tuple

from ..exceptions import ModelError
from .distributions import cumulative_weights, weighted_index

# Set up logging
logging.basicConfig(level=logging.INFO,
                    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger('QualityModel')

# Constants
TRACE_ALPHABET = frozenset(b'=XID')
MINIMAL_WINDOWS = (b'=', b'X', b'I')
PHRED_OFFSET = 33
MAX_PHRED = 93


class QualityModel:
    """Map an odd-length edit-trace window to a weighted quality score distribution"""

    def __init__(self, table: Dict[bytes, Sequence[Tuple[int, float]]]):
        """
        Initialize the quality model.

        Args:
            table: Mapping from trace window (odd length, over '=XID') to
                (Phred score, weight) pairs. Single-op windows '=', 'X' and 'I'
                are mandatory.

        Raises:
            ModelError: If a window is malformed or a minimal window is missing
        """
        self._scores: Dict[bytes, Tuple[Tuple[int, ...], List[float]]] = {}

        for window, entries in table.items():
            window = bytes(window)
            if len(window) % 2 == 0:
                raise ModelError(f"Quality model window '{window.decode(errors='replace')}' length must be odd")
            if not set(window) <= TRACE_ALPHABET:
                raise ModelError(f"Quality model window '{window.decode(errors='replace')}' contains unknown operations")
            if not entries:
                raise ModelError(f"Quality model window '{window.decode()}' has no score")

            scores = tuple(int(score) for score, _ in entries)
            if any(score < 0 or score > MAX_PHRED for score in scores):
                raise ModelError(f"Quality model window '{window.decode()}' has a score outside [0, {MAX_PHRED}]")

            self._scores[window] = (scores, cumulative_weights([weight for _, weight in entries]))

        missing = [window.decode() for window in MINIMAL_WINDOWS if window not in self._scores]
        if missing:
            raise ModelError(f"Quality model does not contain minimal cigar strings: {', '.join(missing)}")

        self.max_k = max(len(window) for window in self._scores)
        all_scores = [score for scores, _ in self._scores.values() for score in scores]
        self.min_score = min(all_scores)
        self.max_score = max(all_scores)

        logger.debug(f"Quality model with {len(self._scores)} windows, max window {self.max_k}")

    @classmethod
    def random(cls, low: int = 1, high: int = 40) -> 'QualityModel':
        """Quality model drawing scores uniformly in [low, high] whatever the context"""
        if low < 0 or high < low or high > MAX_PHRED:
            raise ModelError(f"Invalid random quality range [{low}, {high}]")
        entries = [(score, 1.0) for score in range(low, high + 1)]
        return cls({window: entries for window in MINIMAL_WINDOWS + (b'D',)})

    @classmethod
    def ideal(cls, score: int = 40) -> 'QualityModel':
        """Quality model always returning the same maximum score"""
        return cls.random(score, score)

    def __contains__(self, window):
        return window in self._scores

    def get_qscore(self, window: bytes, rng: np.random.Generator) -> int:
        """
        Draw a quality byte (Phred+33) for a trace window.

        A window absent from the table is shrunk by one operation on each side
        until a known window is found.

        Args:
            window: Odd-length edit-trace window centered on the base
            rng: Random generator of the current task

        Returns:
            int: Phred+33 quality byte
        """
        current = window
        while current:
            if len(current) % 2 == 0:
                raise ModelError(f"Cigar window '{current.decode(errors='replace')}' length must be odd")

            entry = self._scores.get(current)
            if entry is not None:
                scores, cumulative = entry
                return scores[weighted_index(cumulative, rng)] + PHRED_OFFSET

            current = current[1:-1]

        raise ModelError(f"Quality model does not contain a window for '{window.decode(errors='replace')}'")
