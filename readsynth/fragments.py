"""
Fragment generation: real, junk, random and chimeric fragments.
"""

import logging
import numpy as np
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .description import Origin
from .exceptions import ModelError
from .models import IdentityModel, LengthModel
from .quantity import Budget
from .references import ReferencePool
from .seq_utils import random_seq

# Set up logging
logging.basicConfig(level=logging.INFO,
                    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger('FragmentGenerator')

# Constants
MAX_JUNK_MOTIF = 5


@dataclass
class Fragment:
    """Raw fragment before errors, with the origin of each part"""
    raw: bytes
    origins: List[Origin] = field(default_factory=list)
    identity: float = 1.0

    @property
    def length(self) -> int:
        return len(self.raw)

    @property
    def is_chimera(self) -> bool:
        return len(self.origins) > 1


class FragmentGenerator:
    """
    Produce fragments until a budget is met.

    Each fragment is built from one or more parts. A part is random with
    probability random_rate, else junk with probability junk_rate, else a
    reference window. Parts are appended while a chimera draw succeeds.
    """

    def __init__(self, pool: ReferencePool, length_model: LengthModel, identity_model: IdentityModel,
                 junk_rate: float = 0.0, random_rate: float = 0.0, chimera_rate: float = 0.0,
                 budget: Optional[Budget] = None, rng: Optional[np.random.Generator] = None):
        """
        Initialize the generator.

        Args:
            pool: Reference pool
            length_model: Fragment length model
            identity_model: Target identity model
            junk_rate: Probability of a junk part, in [0, 1)
            random_rate: Probability of a random part, in [0, 1)
            chimera_rate: Probability of appending one more part, in [0, 1)
            budget: Budget consumed when iterating
            rng: Random generator used when iterating
        """
        for name, rate in (('junk', junk_rate), ('random', random_rate), ('chimera', chimera_rate)):
            if not 0.0 <= rate < 1.0:
                raise ModelError(f"{name} rate must be in [0, 1) ({name}_rate={rate})")
        if junk_rate + random_rate > 1.0:
            raise ModelError(f"junk_rate + random_rate must be lower than 1 ({junk_rate} + {random_rate})")

        self.pool = pool
        self.length_model = length_model
        self.identity_model = identity_model
        self.junk_rate = junk_rate
        self.random_rate = random_rate
        self.chimera_rate = chimera_rate
        self.budget = budget
        self.rng = rng if rng is not None else np.random.default_rng()

    def __iter__(self):
        return self

    def __next__(self) -> Fragment:
        if self.budget is None or self.budget.exhausted:
            raise StopIteration

        fragment = self.generate(self.rng)
        if not self.budget.claim(fragment.length):
            raise StopIteration
        return fragment

    def real_part(self, length: int, rng: np.random.Generator) -> Tuple[bytes, Origin]:
        """
        Take a window of a reference.

        Args:
            length: Requested length
            rng: Random generator of the current task

        Returns:
            Tuple[bytes, Origin]: Window and its origin
        """
        index, strand = self.pool.choose_reference(rng)
        reference = self.pool[index]
        ref_len = len(reference)

        if reference.circular:
            start = int(rng.integers(ref_len))
        else:
            start = int(rng.integers(max(1, ref_len - length + 1)))

        window, fwd_start, fwd_end = self.pool.get_window(index, strand, start, length)
        return window, Origin.reference(reference.id, strand, fwd_start, fwd_end)

    @staticmethod
    def junk_part(length: int, rng: np.random.Generator) -> Tuple[bytes, Origin]:
        """Low complexity part: a short random motif repeated to the length"""
        motif = random_seq(int(rng.integers(1, MAX_JUNK_MOTIF + 1)), rng)
        repeats = length // len(motif) + 1
        return (motif * repeats)[:length], Origin.junk(length)

    @staticmethod
    def random_part(length: int, rng: np.random.Generator) -> Tuple[bytes, Origin]:
        return random_seq(length, rng), Origin.random(length)

    def generate_part(self, rng: np.random.Generator) -> Tuple[bytes, Origin]:
        """Draw the type and length of one part and build it"""
        if rng.random() < self.random_rate:
            builder = self.random_part
        elif rng.random() < self.junk_rate:
            builder = self.junk_part
        else:
            builder = self.real_part

        return builder(self.length_model.get_length(rng), rng)

    def generate(self, rng: np.random.Generator) -> Fragment:
        """
        Build one fragment and draw its target identity.

        Args:
            rng: Random generator of the current task

        Returns:
            Fragment: New fragment
        """
        parts = [self.generate_part(rng)]
        while rng.random() < self.chimera_rate:
            parts.append(self.generate_part(rng))

        raw = b''.join(seq for seq, _ in parts)
        identity = self.identity_model.get_identity(rng)

        if len(parts) > 1:
            logger.debug(f"Chimeric fragment with {len(parts)} parts")

        return Fragment(raw, [origin for _, origin in parts], identity)
