"""
Quality string assignment from an edit trace.
"""

import numpy as np

from .alignment import DELETION
from .models import QualityModel


class QualityAssigner:
    """Give each read base a score drawn from its local trace context"""

    def __init__(self, quality_model: QualityModel):
        self.quality_model = quality_model
        self.half_window = (quality_model.max_k - 1) // 2

    def assign(self, trace: bytes, rng: np.random.Generator) -> bytes:
        """
        Build the quality string of a read.

        Each non deletion operation gets a window centred on it, of the model
        maximum size and shrunk symmetrically near the read ends.

        Args:
            trace: Edit trace of the read
            rng: Random generator of the current task

        Returns:
            bytes: Phred+33 quality string, one byte per read base
        """
        quality = bytearray()
        last = len(trace) - 1

        for i, op in enumerate(trace):
            if op == DELETION:
                continue
            margin = min(self.half_window, i, last - i)
            quality.append(self.quality_model.get_qscore(trace[i - margin:i + margin + 1], rng))

        return bytes(quality)
