"""
Read provenance: read types, origins, descriptions and emitted records.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List


class ReadType(Enum):
    """Kind of sequence a fragment part comes from"""
    REAL = "real"
    JUNK = "junk"
    RANDOM = "random"


@dataclass(frozen=True)
class Origin:
    """Where a fragment part comes from, in forward strand coordinates"""
    ref_id: str
    strand: str
    start: int
    end: int
    read_type: ReadType = ReadType.REAL

    @classmethod
    def reference(cls, ref_id: str, strand: str, start: int, end: int) -> 'Origin':
        return cls(ref_id, strand, start, end, ReadType.REAL)

    @classmethod
    def junk(cls, length: int) -> 'Origin':
        return cls('', '*', 0, length, ReadType.JUNK)

    @classmethod
    def random(cls, length: int) -> 'Origin':
        return cls('', '*', 0, length, ReadType.RANDOM)

    def __str__(self):
        if self.read_type is ReadType.JUNK:
            return "junk_seq"
        if self.read_type is ReadType.RANDOM:
            return "random_seq"
        return f"{self.ref_id},{self.strand}strand,{self.start}-{self.end}"


@dataclass
class Description:
    """
    Header of an emitted read.

    Attributes:
        origin: Origin of the first fragment part
        chimeras: Origins of the following parts, empty for a non chimeric read
        length: Final read length (adapters and errors included)
        error_free_length: Raw fragment length
        identity: Realized identity in [0, 1]
    """
    origin: Origin
    chimeras: List[Origin] = field(default_factory=list)
    length: int = 0
    error_free_length: int = 0
    identity: float = 1.0

    @property
    def is_chimera(self) -> bool:
        return bool(self.chimeras)

    @property
    def origins(self) -> List[Origin]:
        return [self.origin] + list(self.chimeras)

    def __str__(self):
        parts = " chimera ".join(str(origin) for origin in self.origins)
        return (f"{parts} length={self.length} error-free_length={self.error_free_length} "
                f"read_identity={self.identity * 100:.2f}%")


@dataclass
class ReadRecord:
    """One simulated read"""
    read_id: str
    sequence: bytes
    quality: bytes
    description: Description

    def to_fastq(self) -> str:
        return (f"@{self.read_id} {self.description}\n"
                f"{self.sequence.decode('ascii')}\n+\n{self.quality.decode('ascii')}\n")

    def to_dict(self) -> Dict[str, Any]:
        """Ground truth row of the read"""
        desc = self.description
        return {
            'read_id': self.read_id,
            'read_type': desc.origin.read_type.value,
            'origins': ";".join(str(origin) for origin in desc.origins),
            'chimera': desc.is_chimera,
            'length': desc.length,
            'error_free_length': desc.error_free_length,
            'identity': desc.identity,
        }
