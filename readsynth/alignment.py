"""
Pairwise alignment helpers: Levenshtein distance, identity and edit traces.

Edit traces use one byte per aligned column:
    '=' match, 'X' mismatch, 'I' base present only in the query (erroneous) sequence,
    'D' base present only in the target (raw) sequence.
"""

import numpy as np
from itertools import groupby
from typing import Tuple, Union

Sequence = Union[bytes, bytearray, str]

MATCH = ord('=')
MISMATCH = ord('X')
INSERTION = ord('I')
DELETION = ord('D')


def _as_bytes(seq: Sequence) -> bytes:
    if isinstance(seq, str):
        return seq.encode('ascii')
    return bytes(seq)


def edit_distance(seq1: Sequence, seq2: Sequence) -> int:
    """
    Compute the Levenshtein distance between two sequences.

    Substitution, insertion and deletion all cost 1. Rows of the dynamic
    programming matrix are computed with numpy; the insertion recurrence
    along a row is resolved with a running minimum.

    Args:
        seq1: First sequence
        seq2: Second sequence

    Returns:
        int: Edit distance
    """
    seq1, seq2 = _as_bytes(seq1), _as_bytes(seq2)
    if len(seq1) < len(seq2):
        seq1, seq2 = seq2, seq1
    if not seq2:
        return len(seq1)

    columns = np.frombuffer(seq2, dtype=np.uint8)
    offsets = np.arange(len(columns) + 1, dtype=np.int64)
    previous = offsets.copy()

    for i, base in enumerate(seq1, start=1):
        current = np.empty_like(previous)
        current[0] = i
        current[1:] = np.minimum(previous[:-1] + (columns != base), previous[1:] + 1)
        previous = np.minimum.accumulate(current - offsets) + offsets

    return int(previous[-1])


def identity(seq1: Sequence, seq2: Sequence) -> float:
    """
    Normalized identity between two sequences, in [0, 1].

    Args:
        seq1: First sequence
        seq2: Second sequence

    Returns:
        float: 1 - edit_distance / length of the longest sequence
    """
    longest = max(len(seq1), len(seq2))
    if longest == 0:
        return 1.0
    return 1.0 - edit_distance(seq1, seq2) / longest


def align(query: Sequence, target: Sequence) -> Tuple[int, bytes]:
    """
    Globally align query against target with unit edit costs.

    Args:
        query: Erroneous sequence
        target: Raw sequence

    Returns:
        Tuple[int, bytes]: Number of edits and the edit trace
    """
    query, target = _as_bytes(query), _as_bytes(target)
    n, m = len(query), len(target)

    if n == 0:
        return m, bytes([DELETION]) * m
    if m == 0:
        return n, bytes([INSERTION]) * n

    columns = np.frombuffer(target, dtype=np.uint8)
    offsets = np.arange(m + 1, dtype=np.int64)
    matrix = np.empty((n + 1, m + 1), dtype=np.int64)
    matrix[0] = offsets

    for i in range(1, n + 1):
        row = np.empty(m + 1, dtype=np.int64)
        row[0] = i
        row[1:] = np.minimum(matrix[i - 1, :-1] + (columns != query[i - 1]),
                             matrix[i - 1, 1:] + 1)
        matrix[i] = np.minimum.accumulate(row - offsets) + offsets

    trace = bytearray()
    i, j = n, m
    while i > 0 or j > 0:
        if i > 0 and j > 0:
            same = query[i - 1] == target[j - 1]
            if matrix[i, j] == matrix[i - 1, j - 1] + (0 if same else 1):
                trace.append(MATCH if same else MISMATCH)
                i -= 1
                j -= 1
                continue
        if i > 0 and matrix[i, j] == matrix[i - 1, j] + 1:
            trace.append(INSERTION)
            i -= 1
        else:
            trace.append(DELETION)
            j -= 1

    trace.reverse()
    return int(matrix[n, m]), bytes(trace)


def count_edits(cigar: bytes) -> int:
    """Number of non-match columns in an edit trace"""
    return len(cigar) - cigar.count(MATCH)


def identity_from_cigar(cigar: bytes) -> float:
    """Fraction of aligned columns that are matches"""
    if not cigar:
        return 1.0
    return cigar.count(MATCH) / len(cigar)


def check_trace(cigar: bytes, raw: Sequence, err: Sequence) -> bool:
    """
    Check that an edit trace turns raw into err.

    Args:
        cigar: Edit trace
        raw: Sequence before errors
        err: Sequence after errors

    Returns:
        bool: True if replaying the trace over raw reproduces err exactly
    """
    raw, err = _as_bytes(raw), _as_bytes(err)
    i = j = 0
    for op in cigar:
        if op == MATCH or op == MISMATCH:
            if i >= len(raw) or j >= len(err):
                return False
            if (raw[i] == err[j]) != (op == MATCH):
                return False
            i += 1
            j += 1
        elif op == INSERTION:
            if j >= len(err):
                return False
            j += 1
        elif op == DELETION:
            if i >= len(raw):
                return False
            i += 1
        else:
            return False
    return i == len(raw) and j == len(err)


def compress_cigar(cigar: bytes) -> str:
    """Run-length encode an edit trace, e.g. b'===X==' -> '3=1X2='"""
    return ''.join(f"{len(list(run))}{chr(op)}" for op, run in groupby(cigar))
