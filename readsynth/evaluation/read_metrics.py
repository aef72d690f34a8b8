"""
Evaluate read-level characteristics of simulated data, optionally against real data.
"""

import os
import re
import gzip
import logging
import numpy as np
import pandas as pd
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
from Bio import SeqIO
from typing import Dict, Optional

# Set up logging
logging.basicConfig(level=logging.INFO,
                    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger('ReadLevelMetrics')

_IDENTITY_RE = re.compile(r'read_identity=([0-9.]+)%')


def read_type_from_description(description: str) -> str:
    """Read category encoded in a simulated read header"""
    if ' chimera ' in description:
        return 'chimera'
    if 'junk_seq' in description:
        return 'junk'
    if 'random_seq' in description:
        return 'random'
    if 'strand,' in description:
        return 'real'
    return 'unknown'


class ReadLevelMetrics:
    """Evaluate read-level characteristics of simulated data"""

    def __init__(self, synthetic_fastq: str, output_dir: str, real_fastq: Optional[str] = None):
        """
        Initialize ReadLevelMetrics.

        Args:
            synthetic_fastq: Path to simulated FASTQ file
            output_dir: Directory to save results
            real_fastq: Path to real FASTQ file (optional)
        """
        self.synthetic_fastq = synthetic_fastq
        self.real_fastq = real_fastq
        self.output_dir = output_dir

        os.makedirs(output_dir, exist_ok=True)

    def extract_read_stats(self, fastq_file: str, max_reads: int = 100000) -> Dict:
        """
        Extract read statistics from a FASTQ file.

        Args:
            fastq_file: Path to FASTQ file
            max_reads: Maximum number of reads to process

        Returns:
            Dict: Per read table and quality scores
        """
        logger.info(f"Extracting read stats from: {fastq_file}")

        rows = []
        quality_scores = []

        # Use gzip if file is compressed
        open_func = gzip.open if fastq_file.endswith('.gz') else open
        mode = 'rt' if fastq_file.endswith('.gz') else 'r'

        with open_func(fastq_file, mode) as f:
            for record in SeqIO.parse(f, "fastq"):
                seq = str(record.seq)
                qualities = record.letter_annotations["phred_quality"]
                quality_scores.extend(qualities)

                match = _IDENTITY_RE.search(record.description)
                rows.append({
                    'read_id': record.id,
                    'length': len(seq),
                    'mean_quality': float(np.mean(qualities)) if qualities else np.nan,
                    'gc_content': (seq.count('G') + seq.count('C')) / len(seq) if len(seq) > 0 else 0,
                    'identity': float(match.group(1)) / 100 if match else np.nan,
                    'read_type': read_type_from_description(record.description)
                })

                if len(rows) % 10000 == 0:
                    logger.info(f"Processed {len(rows)} reads")

                # Limit the number of reads to process
                if len(rows) >= max_reads:
                    break

        logger.info(f"Processed total of {len(rows)} reads")
        return {
            'reads': pd.DataFrame(rows, columns=['read_id', 'length', 'mean_quality', 'gc_content',
                                                 'identity', 'read_type']),
            'quality_scores': np.array(quality_scores, dtype=int)
        }

    @staticmethod
    def summarize(stats: Dict) -> Dict[str, float]:
        """
        Summary statistics of one FASTQ file.

        Args:
            stats: Output of extract_read_stats

        Returns:
            Dict: Summary values
        """
        reads = stats['reads']
        quality = stats['quality_scores']
        summary = {
            'reads': len(reads),
            'bases': int(reads['length'].sum()),
            'mean_length': reads['length'].mean(),
            'median_length': reads['length'].median(),
            'n50': _n50(reads['length'].to_numpy()),
            'mean_quality': quality.mean() if len(quality) else np.nan,
            'mean_gc': reads['gc_content'].mean(),
            'mean_identity': reads['identity'].mean(),
        }
        for read_type, fraction in reads['read_type'].value_counts(normalize=True).items():
            summary[f'{read_type}_fraction'] = fraction
        return summary

    def compare_stats(self, max_reads: int = 100000) -> Dict:
        """
        Compute statistics, write the summary table and comparison plots.

        Args:
            max_reads: Maximum number of reads to process per file

        Returns:
            Dict: Statistics of the simulated data (and real data when given)
        """
        results = {'synthetic_stats': self.extract_read_stats(self.synthetic_fastq, max_reads)}
        if self.real_fastq:
            results['real_stats'] = self.extract_read_stats(self.real_fastq, max_reads)

        summary = pd.DataFrame({
            name.replace('_stats', ''): self.summarize(stats) for name, stats in results.items()
        })
        summary_file = os.path.join(self.output_dir, 'read_summary.csv')
        summary.to_csv(summary_file)
        logger.info(f"Summary saved to {summary_file}")

        self._compare_read_lengths(results)
        self._compare_quality_scores(results)
        self._plot_identity(results['synthetic_stats'])

        return results

    def _compare_read_lengths(self, results: Dict):
        """
        Compare read length distributions.

        Args:
            results: Statistics per data set
        """
        plt.figure(figsize=(12, 6))

        lengths = {name: stats['reads']['length'].to_numpy() for name, stats in results.items()}
        max_length = max((values.max() for values in lengths.values() if len(values)), default=1)
        bins = np.linspace(0, max_length, 50)

        for name, values in lengths.items():
            label = 'Real Data' if name == 'real_stats' else 'Synthetic Data'
            plt.hist(values, bins=bins, alpha=0.5, label=label, density=True)

        plt.xlabel('Read Length')
        plt.ylabel('Density')
        plt.title('Read Length Distribution')
        plt.legend()
        plt.grid(True, alpha=0.3)

        plt.tight_layout()
        plt.savefig(os.path.join(self.output_dir, 'read_length_comparison.png'), dpi=150)
        plt.close()

    def _compare_quality_scores(self, results: Dict):
        """
        Compare quality score distributions.

        Args:
            results: Statistics per data set
        """
        plt.figure(figsize=(12, 6))

        bins = np.arange(0, 95)
        for name, stats in results.items():
            label = 'Real Data' if name == 'real_stats' else 'Synthetic Data'
            plt.hist(stats['quality_scores'], bins=bins, alpha=0.5, label=label, density=True)

        plt.xlabel('Quality Score (Phred)')
        plt.ylabel('Density')
        plt.title('Quality Score Distribution')
        plt.legend()
        plt.grid(True, alpha=0.3)

        plt.tight_layout()
        plt.savefig(os.path.join(self.output_dir, 'quality_score_comparison.png'), dpi=150)
        plt.close()

    def _plot_identity(self, stats: Dict):
        """Histogram of the identity reported in simulated read headers"""
        identity = stats['reads']['identity'].dropna().to_numpy()
        if len(identity) == 0:
            logger.warning("No read_identity found in read descriptions")
            return

        plt.figure(figsize=(12, 6))
        plt.hist(identity * 100, bins=50, alpha=0.7)
        plt.xlabel('Read Identity (%)')
        plt.ylabel('Reads')
        plt.title('Simulated Read Identity')
        plt.grid(True, alpha=0.3)

        stats_text = f"Mean={identity.mean() * 100:.2f}%, Median={np.median(identity) * 100:.2f}%"
        plt.annotate(stats_text, xy=(0.02, 0.95), xycoords='axes fraction',
                     bbox=dict(boxstyle="round,pad=0.3", fc="white", alpha=0.8))

        plt.tight_layout()
        plt.savefig(os.path.join(self.output_dir, 'identity_distribution.png'), dpi=150)
        plt.close()


def _n50(lengths: np.ndarray) -> int:
    if len(lengths) == 0:
        return 0
    ordered = np.sort(lengths)[::-1]
    cumulative = np.cumsum(ordered)
    return int(ordered[np.searchsorted(cumulative, cumulative[-1] / 2)])
