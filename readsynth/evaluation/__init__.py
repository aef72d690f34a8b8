"""
Evaluation metrics for simulated long reads.
"""

from .read_metrics import ReadLevelMetrics

__all__ = [
    "ReadLevelMetrics"
]
