"""
Adapter contamination model.
"""

import numpy as np
from scipy import stats
from typing import Optional

from ..exceptions import ModelError


class AdapterEnd:
    """One side of the read: adapter sequence, presence rate and mean amount"""

    def __init__(self, seq: bytes, rate: float, amount: float):
        if not 0.0 <= rate <= 100.0:
            raise ModelError(f"Adapter rate must be in [0, 100] (rate={rate})")
        if not 0.0 <= amount <= 100.0:
            raise ModelError(f"Adapter amount must be in [0, 100] (amount={amount})")

        self.seq = bytes(seq)
        self.rate = rate / 100.0
        self.amount = amount / 100.0

    @property
    def enabled(self) -> bool:
        return bool(self.seq) and self.rate > 0 and self.amount > 0

    def sample_length(self, rng: np.random.Generator) -> int:
        """
        Draw how many adapter bases are present on this end.

        Args:
            rng: Random generator of the current task

        Returns:
            int: Number of bases, 0 when the adapter is absent
        """
        if not self.enabled or rng.random() >= self.rate:
            return 0

        if self.amount >= 1.0:
            fraction = 1.0
        else:
            fraction = stats.beta.rvs(2.0 * self.amount, 2.0 - 2.0 * self.amount, random_state=rng)

        return int(round(len(self.seq) * fraction))


class AdapterModel:
    """Start and end adapter sequences and the identity they are sequenced at"""

    def __init__(self, start_seq: bytes = b'', end_seq: bytes = b'',
                 start_rate: float = 0.0, start_amount: float = 0.0,
                 end_rate: float = 0.0, end_amount: float = 0.0,
                 identity: Optional[float] = None):
        """
        Initialize the adapter model. Rates, amounts and identity are percentages.

        Args:
            start_seq: Adapter sequence found at read starts
            end_seq: Adapter sequence found at read ends
            start_rate: Fraction of reads carrying a start adapter
            start_amount: Mean fraction of the start adapter present
            end_rate: Fraction of reads carrying an end adapter
            end_amount: Mean fraction of the end adapter present
            identity: Identity adapters are sequenced at; the read identity when None
        """
        if identity is not None and not 0.0 < identity <= 100.0:
            raise ModelError(f"Adapter identity must be in (0, 100] (identity={identity})")

        self.start = AdapterEnd(start_seq, start_rate, start_amount)
        self.end = AdapterEnd(end_seq, end_rate, end_amount)
        self.identity = None if identity is None else identity / 100.0

    @classmethod
    def disabled(cls) -> 'AdapterModel':
        return cls()

    @property
    def enabled(self) -> bool:
        return self.start.enabled or self.end.enabled

    def get_start(self, rng: np.random.Generator) -> bytes:
        """Start adapter piece: a suffix of the start sequence, possibly empty"""
        length = self.start.sample_length(rng)
        return self.start.seq[len(self.start.seq) - length:] if length else b''

    def get_end(self, rng: np.random.Generator) -> bytes:
        """End adapter piece: a prefix of the end sequence, possibly empty"""
        length = self.end.sample_length(rng)
        return self.end.seq[:length]
