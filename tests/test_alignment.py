"""
Unit tests for alignment helpers.
"""

import unittest
import os
import sys
import numpy as np

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from readsynth.alignment import (align, check_trace, compress_cigar, count_edits, edit_distance,
                                 identity, identity_from_cigar)
from readsynth.seq_utils import random_seq


class TestAlignment(unittest.TestCase):
    """Test edit distance, identity and edit traces"""

    def test_edit_distance(self):
        """Test classical Levenshtein values"""
        self.assertEqual(edit_distance("kitten", "sitting"), 3)
        self.assertEqual(edit_distance(b"ACGT", b"ACGT"), 0)
        self.assertEqual(edit_distance(b"", b"ACGT"), 4)
        self.assertEqual(edit_distance(b"ACGT", b""), 4)
        self.assertEqual(edit_distance(b"ACGT", b"AGT"), 1)
        self.assertEqual(edit_distance(b"AAAA", b"TTTT"), 4)

    def test_edit_distance_symmetric(self):
        """Test that edit distance does not depend on argument order"""
        rng = np.random.default_rng(7)
        for _ in range(20):
            a = random_seq(int(rng.integers(0, 30)), rng)
            b = random_seq(int(rng.integers(0, 30)), rng)
            self.assertEqual(edit_distance(a, b), edit_distance(b, a))

    def test_identity(self):
        """Test normalized identity"""
        self.assertEqual(identity(b"ACGT", b"ACGT"), 1.0)
        self.assertEqual(identity(b"", b""), 1.0)
        self.assertAlmostEqual(identity(b"AAAA", b"AAAT"), 0.75)
        self.assertEqual(identity(b"AAAA", b""), 0.0)

    def test_align_substitutions(self):
        """Test trace of a window with two substitutions"""
        edits, cigar = align(b"GGTAACC", b"GGTGTCC")
        self.assertEqual(edits, 2)
        self.assertEqual(cigar, b"===XX==")

    def test_align_deletions(self):
        """Test trace of a window missing two raw bases"""
        edits, cigar = align(b"GTTTG", b"GTCCTTG")
        self.assertEqual(edits, 2)
        self.assertEqual(cigar, b"==DD===")

    def test_align_empty(self):
        """Test alignment against empty sequences"""
        self.assertEqual(align(b"", b"ACG"), (3, b"DDD"))
        self.assertEqual(align(b"ACG", b""), (3, b"III"))

    def test_align_matches_edit_distance(self):
        """Test that traces are optimal and replay correctly"""
        rng = np.random.default_rng(11)
        for _ in range(30):
            target = random_seq(int(rng.integers(1, 25)), rng)
            query = random_seq(int(rng.integers(1, 25)), rng)
            edits, cigar = align(query, target)
            self.assertEqual(edits, edit_distance(query, target))
            self.assertEqual(count_edits(cigar), edits)
            self.assertTrue(check_trace(cigar, target, query))

    def test_check_trace_rejects_wrong_trace(self):
        """Test that an inconsistent trace is detected"""
        self.assertTrue(check_trace(b"==X=", b"ACGT", b"ACTT"))
        self.assertFalse(check_trace(b"====", b"ACGT", b"ACTT"))
        self.assertFalse(check_trace(b"===", b"ACGT", b"ACG"))
        self.assertTrue(check_trace(b"===D", b"ACGT", b"ACG"))
        self.assertTrue(check_trace(b"==I==", b"ACGT", b"ACAGT"))

    def test_identity_from_cigar(self):
        """Test identity computed from a trace"""
        self.assertEqual(identity_from_cigar(b""), 1.0)
        self.assertAlmostEqual(identity_from_cigar(b"===X"), 0.75)
        self.assertAlmostEqual(identity_from_cigar(b"==ID"), 0.5)

    def test_compress_cigar(self):
        """Test run-length encoding of traces"""
        self.assertEqual(compress_cigar(b"===X=="), "3=1X2=")
        self.assertEqual(compress_cigar(b"IIDD"), "2I2D")
        self.assertEqual(compress_cigar(b""), "")


if __name__ == '__main__':
    unittest.main()
