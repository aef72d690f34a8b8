"""
k-mer based sequencing error model.
"""

import logging
import numpy as np
from typing import Dict, List, Optional, Sequence, Tuple

from ..alignment import edit_distance
from ..exceptions import ModelError
from ..seq_utils import random_base, random_base_diff
from .distributions import cumulative_weights, weighted_index

# Set up logging
logging.basicConfig(level=logging.INFO,
                    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger('ErrorModel')


def random_error(kmer: bytes, rng: np.random.Generator) -> bytes:
    """
    Apply one random substitution, insertion or deletion to a k-mer.

    Args:
        kmer: Original k-mer
        rng: Random generator of the current task

    Returns:
        bytes: k-mer with a single edit
    """
    pos = int(rng.integers(len(kmer)))
    new_kmer = bytearray(kmer[:pos])

    error_type = int(rng.integers(3))
    if error_type == 0:  # substitution
        new_kmer.append(random_base_diff(kmer[pos], rng))
    elif error_type == 1:  # insertion
        new_kmer.append(random_base(rng))
        new_kmer.append(kmer[pos])
    # deletion: drop kmer[pos]

    new_kmer.extend(kmer[pos + 1:])
    return bytes(new_kmer)


class ErrorModel:
    """Map each k-mer to weighted erroneous versions of itself"""

    def __init__(self, table: Optional[Dict[bytes, Sequence[Tuple[bytes, float]]]] = None,
                 k: Optional[int] = None):
        """
        Initialize the error model.

        Args:
            table: Mapping from k-mer to (alternative, weight) pairs. When the
                weights of a k-mer sum below 1, the remainder is given to a
                random single-edit alternative.
            k: k-mer size, required only when table is empty (random model)
        """
        self._alternatives: Dict[bytes, Tuple[Tuple[Optional[bytes], ...], Tuple[int, ...], List[float]]] = {}

        if not table:
            if k is None or k < 1:
                raise ModelError("An error model needs a k-mer table or a k-mer size upper than 0")
            self.k = int(k)
            return

        sizes = {len(kmer) for kmer in table}
        if len(sizes) != 1 or 0 in sizes:
            raise ModelError(f"Error model k-mers must share one non-zero length (found {sorted(sizes)})")
        self.k = sizes.pop()
        if k is not None and k != self.k:
            raise ModelError(f"Error model k-mer size is {self.k}, expected {k}")

        for kmer, candidates in table.items():
            if not candidates:
                raise ModelError(f"No alternative for k-mer {kmer.decode(errors='replace')}")

            alternatives = [bytes(alt) for alt, _ in candidates]
            weights = [float(weight) for _, weight in candidates]
            total = sum(weights)
            if total < 1.0:
                alternatives.append(None)
                weights.append(1.0 - total)

            edits = tuple(1 if alt is None else edit_distance(kmer, alt) for alt in alternatives)
            self._alternatives[bytes(kmer)] = (tuple(alternatives), edits, cumulative_weights(weights))

        logger.debug(f"Error model with {len(self._alternatives)} {self.k}-mers")

    @classmethod
    def random(cls, k: int = 7) -> 'ErrorModel':
        """Error model where every k-mer receives one random edit"""
        return cls(None, k=k)

    @property
    def is_random(self) -> bool:
        return not self._alternatives

    def __len__(self):
        return len(self._alternatives)

    def __contains__(self, kmer):
        return kmer in self._alternatives

    def add_errors_to_kmer(self, kmer: bytes, rng: np.random.Generator) -> Tuple[bytes, int]:
        """
        Draw an erroneous version of a k-mer.

        K-mers missing from the table fall back to a random single edit.

        Args:
            kmer: Original k-mer
            rng: Random generator of the current task

        Returns:
            Tuple[bytes, int]: Erroneous k-mer and its edit distance to the original
        """
        entry = self._alternatives.get(kmer)
        if entry is None:
            return random_error(kmer, rng), 1

        alternatives, edits, cumulative = entry
        index = weighted_index(cumulative, rng)
        alternative = alternatives[index]
        if alternative is None:
            return random_error(kmer, rng), 1

        return alternative, edits[index]
