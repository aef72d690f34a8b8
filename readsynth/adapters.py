"""
Adapter composition around an erroneous fragment.
"""

import numpy as np
from typing import Tuple

from .changes import sequence
from .models import AdapterModel, ErrorModel, GlitchModel

# Adapters are sequenced without glitches
NO_GLITCH = GlitchModel()


class AdapterComposer:
    """Add start and end adapters, with their own sequencing errors"""

    def __init__(self, adapter_model: AdapterModel, error_model: ErrorModel):
        self.adapter_model = adapter_model
        self.error_model = error_model

    def _with_errors(self, piece: bytes, identity: float, rng: np.random.Generator) -> Tuple[bytes, bytes]:
        if not piece:
            return b'', b''
        err, trace, _ = sequence(piece, identity, self.error_model, NO_GLITCH, rng)
        return err, trace

    def compose(self, seq: bytes, trace: bytes, read_identity: float,
                rng: np.random.Generator) -> Tuple[bytes, bytes]:
        """
        Surround a read with adapter pieces.

        Args:
            seq: Erroneous fragment
            trace: Edit trace of the fragment
            read_identity: Target identity of the read, used when the adapter
                model has no identity of its own
            rng: Random generator of the current task

        Returns:
            Tuple[bytes, bytes]: Read with adapters and its full edit trace
        """
        if not self.adapter_model.enabled:
            return seq, trace

        identity = self.adapter_model.identity or read_identity

        start_seq, start_trace = self._with_errors(self.adapter_model.get_start(rng), identity, rng)
        end_seq, end_trace = self._with_errors(self.adapter_model.get_end(rng), identity, rng)

        return start_seq + seq + end_seq, start_trace + trace + end_trace
