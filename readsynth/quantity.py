"""
Simulation quantity: how many bases (or reads) to produce.
"""

import re
import threading
from typing import Optional

from .exceptions import CliError

# Constants
BASES = 'bases'
READS = 'reads'

_QUANTITY_RE = re.compile(r'^\s*(\d+(?:\.\d*)?|\.\d+)\s*([kKmMgGxXrR]?)\s*$')
_MULTIPLIERS = {'': 1, 'K': 10 ** 3, 'M': 10 ** 6, 'G': 10 ** 9}


class Budget:
    """
    Shared counter of produced bases or reads.

    A claim is granted while the target is not reached, so the last granted
    read may overshoot the target by at most its own length.
    """

    def __init__(self, target: int, unit: str = BASES):
        if target < 0:
            raise CliError(f"Budget target must be positive (target={target})")
        if unit not in (BASES, READS):
            raise CliError(f"Unknown budget unit: {unit}")

        self.target = int(target)
        self.unit = unit
        self.consumed = 0
        self.reads = 0
        self._lock = threading.Lock()

    @property
    def exhausted(self) -> bool:
        with self._lock:
            return self.consumed >= self.target

    def claim(self, length: int) -> bool:
        """
        Try to account for one read.

        Args:
            length: Read length in bases

        Returns:
            bool: True if the read is granted and must be emitted
        """
        with self._lock:
            if self.consumed >= self.target:
                return False
            self.consumed += length if self.unit == BASES else 1
            self.reads += 1
            return True

    def __repr__(self):
        return f"Budget(target={self.target}, unit={self.unit!r}, consumed={self.consumed})"


class Quantity:
    """Parsed quantity: an absolute base count, a coverage or a read count"""

    def __init__(self, value: float, suffix: str = ''):
        self.value = value
        self.suffix = suffix.lower() if suffix.lower() in ('x', 'r') else suffix.upper()

    @classmethod
    def parse(cls, text: str) -> 'Quantity':
        """
        Parse a quantity such as '50000', '250K', '1.5M', '2G', '30x' or '1000r'.

        Raises:
            CliError: If the text is not a valid quantity
        """
        match = _QUANTITY_RE.match(str(text))
        if match is None:
            raise CliError(f"Can't parse quantity '{text}'")
        return cls(float(match.group(1)), match.group(2))

    @property
    def is_coverage(self) -> bool:
        return self.suffix == 'x'

    @property
    def is_read_count(self) -> bool:
        return self.suffix == 'r'

    def number_of_base(self, total_length: int) -> int:
        """
        Number of bases to simulate.

        Args:
            total_length: Total length of the references

        Returns:
            int: Base count
        """
        if self.is_read_count:
            raise CliError("A read count quantity has no base count")
        if self.is_coverage:
            return int(round(self.value * total_length))
        return int(round(self.value * _MULTIPLIERS[self.suffix]))

    def number_of_reads(self) -> Optional[int]:
        return int(round(self.value)) if self.is_read_count else None

    def to_budget(self, total_length: int) -> Budget:
        """Budget matching this quantity for references of the given total length"""
        if self.is_read_count:
            return Budget(self.number_of_reads(), READS)
        return Budget(self.number_of_base(total_length), BASES)

    def __str__(self):
        value = int(self.value) if self.value == int(self.value) else self.value
        return f"{value}{self.suffix}"
