"""
Small sequence helpers shared by the simulation components.
"""

import numpy as np
from Bio.Seq import Seq

# Constants
NUCLEOTIDES = b'ACGT'
_NUCLEOTIDE_ARRAY = np.frombuffer(NUCLEOTIDES, dtype=np.uint8)


def random_base(rng: np.random.Generator) -> int:
    """Draw one nucleotide byte uniformly"""
    return NUCLEOTIDES[rng.integers(4)]


def random_base_diff(base: int, rng: np.random.Generator) -> int:
    """Draw a nucleotide byte different from base"""
    options = [nuc for nuc in NUCLEOTIDES if nuc != base]
    return options[rng.integers(len(options))]


def random_seq(length: int, rng: np.random.Generator) -> bytes:
    """Draw a uniformly random nucleotide sequence"""
    if length <= 0:
        return b''
    return _NUCLEOTIDE_ARRAY[rng.integers(0, 4, size=length)].tobytes()


def reverse_complement(seq: bytes) -> bytes:
    """Reverse complement of a nucleotide sequence (IUPAC aware)"""
    return str(Seq(seq.decode('ascii')).reverse_complement()).encode('ascii')
