"""
ReadSynth: a long-read sequencing simulator producing reads with realistic
length, error, quality and adapter profiles, and their ground truth.
"""

from .readsynth import ReadSynth
from .simulator import SimulationContext, Simulator
from .fragments import Fragment, FragmentGenerator
from .changes import Change, ChangeSet
from .references import Reference, ReferencePool, FastaReferenceLoader, RecordReferenceLoader
from .quantity import Budget, Quantity
from .exceptions import ReadSynthError, CliError, ModelError
from .evaluation.read_metrics import ReadLevelMetrics

__version__ = "0.1.0"
__all__ = [
    "ReadSynth",
    "SimulationContext",
    "Simulator",
    "Fragment",
    "FragmentGenerator",
    "Change",
    "ChangeSet",
    "Reference",
    "ReferencePool",
    "FastaReferenceLoader",
    "RecordReferenceLoader",
    "Budget",
    "Quantity",
    "ReadSynthError",
    "CliError",
    "ModelError",
    "ReadLevelMetrics"
]
