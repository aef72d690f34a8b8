"""
Error and glitch injection.

Edits applied to a raw fragment are stored as Changes: a raw interval
[begin, end_raw) replaced by an erroneous sequence, with the edit trace that
turns one into the other. A ChangeSet keeps Changes sorted by begin and
merges them as they are added, so that no two Changes overlap or touch on
the raw axis.
"""

import bisect
import logging
import numpy as np
from functools import lru_cache
from typing import Iterator, List, Optional, Tuple

from .alignment import DELETION, INSERTION, MATCH, align, count_edits
from .exceptions import ModelError
from .models import ErrorModel, GlitchModel

# Set up logging
logging.basicConfig(level=logging.INFO,
                    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger('ChangeSet')


@lru_cache(maxsize=1 << 16)
def _align_window(seq: bytes, raw: bytes) -> Tuple[int, bytes]:
    return align(seq, raw)


class Change:
    """Replacement of raw[begin:end_raw] by seq"""

    __slots__ = ('begin', 'end_raw', 'seq', 'cigar', 'edit')

    def __init__(self, begin: int, end_raw: int, seq: bytes, cigar: bytes, edit: Optional[int] = None):
        if begin < 0 or end_raw < begin:
            raise ModelError(f"Invalid change interval [{begin}, {end_raw})")

        self.begin = begin
        self.end_raw = end_raw
        self.seq = bytes(seq)
        self.cigar = bytes(cigar)
        self.edit = count_edits(self.cigar) if edit is None else edit

    @classmethod
    def from_seq(cls, begin: int, end_raw: int, seq: bytes, raw: bytes) -> 'Change':
        """
        Build a Change and align its sequence to the raw window it replaces.

        Args:
            begin: First replaced raw position
            end_raw: End (excluded) of the replaced raw interval
            seq: Replacement sequence
            raw: Whole raw fragment

        Returns:
            Change: Change with its edit trace and edit count
        """
        edit, cigar = _align_window(bytes(seq), bytes(raw[begin:end_raw]))
        return cls(begin, end_raw, seq, cigar, edit)

    @property
    def end_err(self) -> int:
        return self.begin + len(self.seq)

    def contains(self, other: 'Change') -> bool:
        """
        True if the raw interval of other lies inside the one of self.

        An insertion (empty raw interval) sitting on either boundary of self
        is not contained: it is merged next to self instead of dropped.
        """
        if other.begin == other.end_raw and other.begin in (self.begin, self.end_raw):
            return False
        return self.begin <= other.begin and other.end_raw <= self.end_raw

    def touches(self, other: 'Change') -> bool:
        """True if other, starting at or after self, overlaps or is adjacent to self"""
        return other.begin <= self.end_raw

    def _cut(self, raw_cut: int, with_insertions: bool) -> Tuple[int, int]:
        # trace and seq offsets once raw_cut raw bases are consumed
        raw_used = 0
        seq_used = 0
        i = 0
        while i < len(self.cigar) and raw_used < raw_cut:
            op = self.cigar[i]
            if op != INSERTION:
                raw_used += 1
            if op != DELETION:
                seq_used += 1
            i += 1

        if with_insertions:
            while i < len(self.cigar) and self.cigar[i] == INSERTION:
                seq_used += 1
                i += 1

        return i, seq_used

    def merge(self, other: 'Change') -> 'Change':
        """
        Merge a following, overlapping or adjacent Change.

        The merged Change keeps the replacement of self for raw positions
        before other.begin (insertions at that boundary included), then the
        whole replacement of other, then the replacement of self for raw
        positions after other.end_raw if self reaches further. Its edit count
        is recomputed from the merged trace.

        Args:
            other: Change with self.begin <= other.begin <= self.end_raw

        Returns:
            Change: Change spanning [self.begin, max(self.end_raw, other.end_raw))
        """
        i, seq_used = self._cut(other.begin - self.begin, True)
        seq = self.seq[:seq_used] + other.seq
        cigar = self.cigar[:i] + other.cigar

        if other.end_raw >= self.end_raw:
            return Change(self.begin, other.end_raw, seq, cigar)

        j, seq_from = self._cut(other.end_raw - self.begin, False)
        if j < i:
            j, seq_from = i, seq_used

        return Change(self.begin, self.end_raw, seq + self.seq[seq_from:], cigar + self.cigar[j:])

    def __eq__(self, other):
        if not isinstance(other, Change):
            return NotImplemented
        return (self.begin, self.end_raw, self.seq, self.cigar) == \
            (other.begin, other.end_raw, other.seq, other.cigar)

    def __repr__(self):
        return (f"Change(begin={self.begin}, end_raw={self.end_raw}, seq={self.seq!r}, "
                f"cigar={self.cigar!r}, edit={self.edit})")


class ChangeSet:
    """Sorted, non overlapping, non adjacent Changes of one fragment"""

    def __init__(self):
        self._changes: List[Change] = []
        self._begins: List[int] = []
        self.edit = 0

    @classmethod
    def from_changes(cls, changes) -> 'ChangeSet':
        """Build a ChangeSet by adding Changes sorted by begin, longest first"""
        changeset = cls()
        for change in sorted(changes, key=lambda c: (c.begin, -c.end_raw)):
            changeset.add(change)
        return changeset

    def __len__(self):
        return len(self._changes)

    def __iter__(self) -> Iterator[Change]:
        return iter(self._changes)

    def __getitem__(self, index):
        return self._changes[index]

    def _pop(self, index: int) -> Change:
        self._begins.pop(index)
        change = self._changes.pop(index)
        self.edit -= change.edit
        return change

    def add(self, change: Change) -> int:
        """
        Insert a Change, merging it with its neighbours.

        A Change contained in its predecessor is discarded. A Change
        overlapping or touching its predecessor is merged into it, and any
        following Change it reaches is merged in turn (or discarded if
        contained). Insertions on the boundary of a Change are merged,
        never discarded.

        Args:
            change: Change to add

        Returns:
            int: Variation of the total edit count
        """
        before = self.edit
        index = bisect.bisect_right(self._begins, change.begin)

        if index > 0:
            previous = self._changes[index - 1]
            if previous.contains(change):
                return 0
            if previous.touches(change):
                index -= 1
                change = self._pop(index).merge(change)

        while index < len(self._changes) and change.touches(self._changes[index]):
            following = self._pop(index)
            if not change.contains(following):
                change = change.merge(following)

        self._changes.insert(index, change)
        self._begins.insert(index, change.begin)
        self.edit += change.edit

        return self.edit - before

    def apply(self, raw: bytes) -> Tuple[bytes, bytes]:
        """
        Apply all Changes to the raw fragment, left to right.

        Args:
            raw: Raw fragment

        Returns:
            Tuple[bytes, bytes]: Erroneous sequence and its end-to-end edit trace
        """
        err = bytearray()
        trace = bytearray()
        position = 0

        for change in self._changes:
            err += raw[position:change.begin]
            trace += bytes([MATCH]) * (change.begin - position)
            err += change.seq
            trace += change.cigar
            position = change.end_raw

        err += raw[position:]
        trace += bytes([MATCH]) * (len(raw) - position)

        return bytes(err), bytes(trace)


def number_of_edits(identity: float, length: int) -> float:
    """Edits needed to bring a sequence of this length down to identity"""
    return (1.0 - identity) * length


def add_glitches(raw: bytes, changeset: ChangeSet, glitch_model: GlitchModel,
                 rng: np.random.Generator):
    """
    Walk along the fragment and add a Change for each glitch.

    Args:
        raw: Raw fragment
        changeset: ChangeSet receiving the glitches
        glitch_model: Glitch model
        rng: Random generator of the current task
    """
    position = 0
    while True:
        glitch = glitch_model.get_glitch(rng)
        if glitch is None:
            break

        distance, skip, seq = glitch
        position += distance
        if position > len(raw):
            break

        end = min(position + skip, len(raw))
        change = Change.from_seq(position, end, seq, raw)
        if change.edit:
            changeset.add(change)


def error_change(position: int, kmer: bytes, alternative: bytes, raw: bytes) -> Optional[Change]:
    """
    Change replacing the k-mer at position by its alternative.

    The bases the alternative shares with the k-mer on both ends are left
    out, so the Change only covers what the error actually alters.

    Returns:
        Optional[Change]: Trimmed Change, None if the alternative equals the k-mer
    """
    size = min(len(kmer), len(alternative))
    prefix = 0
    while prefix < size and kmer[prefix] == alternative[prefix]:
        prefix += 1

    suffix = 0
    while suffix < size - prefix and kmer[-1 - suffix] == alternative[-1 - suffix]:
        suffix += 1

    if prefix == len(kmer) == len(alternative):
        return None

    change = Change.from_seq(position + prefix, position + len(kmer) - suffix,
                             alternative[prefix:len(alternative) - suffix], raw)
    return change if change.edit else None


def add_errors(raw: bytes, target: float, changeset: ChangeSet, error_model: ErrorModel,
               rng: np.random.Generator, max_attempts: Optional[int] = None):
    """
    Add k-mer errors at random positions until the ChangeSet reaches the target.

    Each error only covers the bases it alters, so errors landing next to
    existing Changes add up instead of replacing them. An error falling
    inside an already changed region is dropped and another position is
    drawn.

    Args:
        raw: Raw fragment
        target: Edit count to reach (edits already in the ChangeSet count)
        changeset: ChangeSet receiving the errors
        error_model: k-mer error model
        rng: Random generator of the current task
        max_attempts: Maximum number of drawn positions
    """
    if target <= 0 or not raw:
        return

    window = min(error_model.k, len(raw))
    if max_attempts is None:
        max_attempts = 20 * len(raw) + 100

    attempts = 0
    while changeset.edit < target and attempts < max_attempts:
        attempts += 1
        position = int(rng.integers(len(raw) - window + 1))
        kmer = raw[position:position + window]

        alternative, edit = error_model.add_errors_to_kmer(kmer, rng)
        if edit == 0:
            continue

        change = error_change(position, kmer, alternative, raw)
        if change is not None:
            changeset.add(change)

    if changeset.edit < target:
        logger.debug(f"Stopped after {attempts} attempts with {changeset.edit} edits (target {target:.1f})")


def sequence(raw: bytes, identity: float, error_model: ErrorModel, glitch_model: GlitchModel,
             rng: np.random.Generator) -> Tuple[bytes, bytes, ChangeSet]:
    """
    Add glitches and errors to a fragment.

    Args:
        raw: Raw fragment
        identity: Target identity in (0, 1]
        error_model: k-mer error model
        glitch_model: Glitch model
        rng: Random generator of the current task

    Returns:
        Tuple[bytes, bytes, ChangeSet]: Erroneous sequence, edit trace and applied Changes
    """
    changeset = ChangeSet()

    add_glitches(raw, changeset, glitch_model, rng)
    add_errors(raw, number_of_edits(identity, len(raw)), changeset, error_model, rng)

    err, trace = changeset.apply(raw)
    return err, trace, changeset
