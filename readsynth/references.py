"""
Reference sequences, weighted reference sampling and reference loaders.
"""

import re
import gzip
import logging
import numpy as np
from abc import ABC, abstractmethod
from Bio import SeqIO
from typing import Iterable, List, Optional, Tuple

from .exceptions import ModelError
from .models.distributions import cumulative_weights, weighted_index
from .seq_utils import reverse_complement

# Set up logging
logging.basicConfig(level=logging.INFO,
                    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger('ReferencePool')

# Constants
FORWARD = '+'
REVERSE = '-'
DEFAULT_LENGTH_FLOOR = 10000

_DEPTH_RE = re.compile(r'depth=([0-9]*\.?[0-9]+(?:[eE][-+]?[0-9]+)?)')
_CIRCULAR_RE = re.compile(r'circular=true', re.IGNORECASE)


class Reference:
    """A reference sequence with its circularity flag and relative depth"""

    def __init__(self, ref_id: str, seq: bytes, circular: bool = False, depth: float = 1.0):
        if not seq:
            raise ModelError(f"Reference {ref_id} is empty")
        if not np.isfinite(depth) or depth <= 0:
            raise ModelError(f"Reference {ref_id} depth must be upper than 0 (depth={depth})")

        self.id = ref_id
        self.seq = bytes(seq).upper()
        self.circular = bool(circular)
        self.depth = float(depth)

    def __len__(self):
        return len(self.seq)

    def __repr__(self):
        return f"Reference({self.id!r}, length={len(self)}, circular={self.circular}, depth={self.depth})"


class ReferencePool:
    """Ordered references, their cached reverse complements and sampling weights"""

    def __init__(self, references: List[Reference], small_reference_adjustment: bool = False,
                 length_floor: int = DEFAULT_LENGTH_FLOOR, max_buffered_bases: Optional[int] = None):
        """
        Initialize the reference pool.

        Args:
            references: References to sample from
            small_reference_adjustment: Weight circular references shorter than
                length_floor as if they had length_floor bases
            length_floor: Length used by the small reference adjustment
            max_buffered_bases: Maximum number of reverse complement bases kept
                in memory (None for no limit)
        """
        if not references:
            raise ModelError("Reference pool is empty")
        if length_floor <= 0:
            raise ModelError(f"Reference length floor must be upper than 0 (length_floor={length_floor})")
        if max_buffered_bases is not None and max_buffered_bases < 0:
            raise ModelError(f"max_buffered_bases must be positive (max_buffered_bases={max_buffered_bases})")

        self.references = list(references)
        self.small_reference_adjustment = small_reference_adjustment
        self.length_floor = int(length_floor)
        self.max_buffered_bases = max_buffered_bases

        weights = []
        for reference in self.references:
            length = len(reference)
            if small_reference_adjustment and reference.circular and length < self.length_floor:
                length = self.length_floor
            weights.append(length * reference.depth)

        self._cumulative = cumulative_weights(weights)
        if not np.isfinite(self._cumulative[-1]):
            raise ModelError("Sum of reference weights is not finite")
        self.weights = np.asarray(weights) / self._cumulative[-1]

        self._revcomps: List[Optional[bytes]] = []
        buffered = 0
        for reference in self.references:
            if max_buffered_bases is None or buffered + len(reference) <= max_buffered_bases:
                self._revcomps.append(reverse_complement(reference.seq))
                buffered += len(reference)
            else:
                self._revcomps.append(None)

        logger.info(f"Reference pool: {len(self.references)} references, {self.total_length} bases, "
                    f"{buffered} reverse complement bases cached")

    def __len__(self):
        return len(self.references)

    def __getitem__(self, index):
        return self.references[index]

    @property
    def total_length(self) -> int:
        return sum(len(reference) for reference in self.references)

    @property
    def max_length(self) -> int:
        return max(len(reference) for reference in self.references)

    def choose_reference(self, rng: np.random.Generator) -> Tuple[int, str]:
        """
        Pick a reference by weight and a strand uniformly.

        Args:
            rng: Random generator of the current task

        Returns:
            Tuple[int, str]: Reference index and strand ('+' or '-')
        """
        index = weighted_index(self._cumulative, rng)
        strand = FORWARD if rng.random() < 0.5 else REVERSE
        return index, strand

    def strand_seq(self, index: int, strand: str) -> bytes:
        """Whole reference sequence on a strand"""
        reference = self.references[index]
        if strand == FORWARD:
            return reference.seq
        cached = self._revcomps[index]
        return cached if cached is not None else reverse_complement(reference.seq)

    def get_window(self, index: int, strand: str, start: int, length: int) -> Tuple[bytes, int, int]:
        """
        Extract a window of a reference.

        Circular references wrap around their end (at most one full turn),
        linear references are clipped at their end.

        Args:
            index: Reference index
            strand: '+' or '-'
            start: Window start on the chosen strand
            length: Requested window length

        Returns:
            Tuple[bytes, int, int]: Window sequence and its forward strand start
                and end. For a window wrapping a circular reference, end < start.
        """
        reference = self.references[index]
        ref_len = len(reference)
        if not 0 <= start < ref_len:
            raise ModelError(f"Window start {start} outside reference {reference.id} of length {ref_len}")

        if reference.circular:
            length = min(length, ref_len)
        else:
            length = min(length, ref_len - start)
        end = start + length

        if strand == FORWARD:
            fwd_start, fwd_end = start, end if end <= ref_len else end - ref_len
        else:
            fwd_start, fwd_end = (ref_len - end) % ref_len, ref_len - start

        cached = self._revcomps[index] if strand == REVERSE else reference.seq
        if cached is not None:
            window = cached[start:end]
            if end > ref_len:
                window += cached[:end - ref_len]
            return window, fwd_start, fwd_end

        # reverse complement not buffered: complement the forward window only
        window = reference.seq[fwd_start:fwd_start + length]
        if fwd_start + length > ref_len:
            window += reference.seq[:fwd_start + length - ref_len]
        return reverse_complement(window), fwd_start, fwd_end


class ReferenceLoader(ABC):
    """Source of references"""

    @abstractmethod
    def load(self) -> ReferencePool:
        """Build the reference pool"""


class RecordReferenceLoader(ReferenceLoader):
    """Build a pool from in-memory (id, sequence, circular) records"""

    def __init__(self, records: Iterable[Tuple[str, bytes, bool]], **pool_options):
        self.records = records
        self.pool_options = pool_options

    def load(self) -> ReferencePool:
        references = []
        for ref_id, seq, circular in self.records:
            if isinstance(seq, str):
                seq = seq.encode('ascii')
            references.append(Reference(ref_id, seq, circular))
        return ReferencePool(references, **self.pool_options)


class FastaReferenceLoader(ReferenceLoader):
    """Build a pool from a (optionally gzipped) FASTA file"""

    def __init__(self, fasta_file: str, small_reference_adjustment: bool = False,
                 length_floor: int = DEFAULT_LENGTH_FLOOR, max_buffered_bases: Optional[int] = None):
        """
        Initialize the FASTA loader.

        Record descriptions may carry 'circular=true' and 'depth=<float>'.

        Args:
            fasta_file: Path to FASTA file
            small_reference_adjustment: See ReferencePool
            length_floor: See ReferencePool
            max_buffered_bases: See ReferencePool
        """
        self.fasta_file = fasta_file
        self.small_reference_adjustment = small_reference_adjustment
        self.length_floor = length_floor
        self.max_buffered_bases = max_buffered_bases

    @staticmethod
    def parse_description(description: str) -> Tuple[bool, float]:
        """
        Read circularity and depth from a FASTA description line.

        Args:
            description: Record description

        Returns:
            Tuple[bool, float]: Circular flag and depth (1.0 when absent)
        """
        circular = _CIRCULAR_RE.search(description) is not None
        match = _DEPTH_RE.search(description)
        depth = float(match.group(1)) if match else 1.0
        return circular, depth

    def load(self) -> ReferencePool:
        logger.info(f"Loading references from {self.fasta_file}")

        # Use gzip if file is compressed
        open_func = gzip.open if self.fasta_file.endswith('.gz') else open
        mode = 'rt' if self.fasta_file.endswith('.gz') else 'r'

        references = []
        try:
            with open_func(self.fasta_file, mode) as f:
                for record in SeqIO.parse(f, "fasta"):
                    if len(record.seq) == 0:
                        logger.warning(f"Skipping empty reference {record.id}")
                        continue
                    circular, depth = self.parse_description(record.description)
                    references.append(Reference(record.id, str(record.seq).encode('ascii'), circular, depth))
        except Exception as e:
            logger.error(f"Error loading references: {str(e)}")
            raise

        return ReferencePool(references,
                             small_reference_adjustment=self.small_reference_adjustment,
                             length_floor=self.length_floor,
                             max_buffered_bases=self.max_buffered_bases)
